"""
Base-name conflict detection.

Two sources that share a base name (foo.s and foo.asm) would both assemble
to foo.o, so one object file would silently overwrite the other. The
detector groups every source by base name and refuses the whole set if any
group has more than one member.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

from .errors import BuildError
from .source_scanner import SourceFile


class DuplicateBaseNameError(BuildError):
    """Raised when two or more sources share a base name.

    Attributes:
        conflicts: Every conflicting base name mapped to all paths claiming it
    """

    def __init__(self, conflicts: Dict[str, List[Path]]):
        self.conflicts = conflicts
        lines = []
        for base_name, paths in conflicts.items():
            lines.append(f"Multiple assembly files found for base name '{base_name}':")
            lines.extend(f"  - {path}" for path in paths)
        lines.append("Please resolve the conflicts by removing or renaming duplicate files.")
        super().__init__("\n".join(lines))


@dataclass(frozen=True)
class ConflictSet:
    """Sources grouped by base name, in discovery order."""

    groups: Dict[str, List[SourceFile]]

    @property
    def conflicts(self) -> Dict[str, List[SourceFile]]:
        """Groups claimed by more than one source."""
        return {name: members for name, members in self.groups.items() if len(members) > 1}

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class ConflictDetector:
    """Checks a scanned source list for base-name collisions."""

    @staticmethod
    def group(sources: Sequence[SourceFile]) -> ConflictSet:
        """Group sources by base name without judging the result."""
        groups: Dict[str, List[SourceFile]] = {}
        for source in sources:
            groups.setdefault(source.base_name, []).append(source)
        return ConflictSet(groups=groups)

    def check(self, sources: Sequence[SourceFile]) -> ConflictSet:
        """
        Group sources and fail on any shared base name.

        Args:
            sources: Ordered sources from the scanner

        Returns:
            ConflictSet in which every group has exactly one member

        Raises:
            DuplicateBaseNameError: Listing every conflicting name and all of its paths
        """
        conflict_set = self.group(sources)
        conflicts = conflict_set.conflicts
        if conflicts:
            raise DuplicateBaseNameError({
                name: [member.path for member in members]
                for name, members in conflicts.items()
            })
        return conflict_set
