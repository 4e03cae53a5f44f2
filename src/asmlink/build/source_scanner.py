"""
Assembly source discovery.

This module handles:
- Listing the assembly sources (.s, .as, .asm) directly inside a directory
- Wrapping each one in an immutable SourceFile record
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

from .errors import BuildError

# Accepted source suffixes, compared case-sensitively like the shell globs
SOURCE_EXTENSIONS = ('.s', '.as', '.asm')


class SourceDirectoryNotFoundError(BuildError):
    """Raised when the directory to scan does not exist."""

    def __init__(self, directory: Path, reason: str = "Folder not found"):
        self.directory = directory
        super().__init__(f"{reason}: '{directory}'")


@dataclass(frozen=True)
class SourceFile:
    """An assembly source discovered by the scanner."""

    path: Path

    @property
    def base_name(self) -> str:
        """File name without its extension (the grouping key)."""
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix

    def __str__(self) -> str:
        return str(self.path)


class SourceScanner:
    """
    Scans a single directory for assembly sources.

    The scan is non-recursive: subdirectories are ignored even when their
    names end in an accepted extension. Results are sorted by path so that
    every run assembles and links in the same order.
    """

    def __init__(self, extensions: tuple = SOURCE_EXTENSIONS):
        """
        Initialize source scanner.

        Args:
            extensions: Accepted file suffixes, including the leading dot
        """
        self.extensions = tuple(extensions)

    def scan(self, directory: Path) -> List[SourceFile]:
        """
        Scan a directory for assembly sources.

        Args:
            directory: Directory to scan

        Returns:
            Sorted list of SourceFile records (empty if nothing matched)

        Raises:
            SourceDirectoryNotFoundError: If directory is missing or not a directory
        """
        directory = Path(directory)
        if not directory.exists():
            raise SourceDirectoryNotFoundError(directory)
        if not directory.is_dir():
            raise SourceDirectoryNotFoundError(directory, "Not a folder")

        # ".s" alone has no base name for its object or executable; pathlib
        # gives it an empty suffix, so it is skipped. ".start.s" is kept.
        sources = [
            SourceFile(path=entry)
            for entry in directory.iterdir()
            if entry.is_file() and entry.suffix in self.extensions
        ]
        return sorted(sources, key=lambda source: str(source.path))
