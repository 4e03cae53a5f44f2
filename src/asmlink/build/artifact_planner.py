"""
Artifact planning.

Derives the object file for every source and the final executable, and
records which of those paths already exist. Planning reads the filesystem
but never writes to it; the snapshot can go stale before the stages run.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Sequence, Tuple

from .source_scanner import SourceFile

OBJECT_SUFFIX = '.o'
DEFAULT_OUTPUT_NAME = 'main'


class TargetNameRule(Enum):
    """How the executable name was chosen."""

    SINGLE_SOURCE = "single_source"  # base name of the only source
    DEFAULT = "default"              # fixed default for multi-source builds


@dataclass(frozen=True)
class ObjectFile:
    """Object file produced from one source."""

    path: Path
    source: SourceFile
    existed_before: bool = False


@dataclass(frozen=True)
class BuildTarget:
    """The linked executable."""

    path: Path
    rule: TargetNameRule
    existed_before: bool = False

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class BuildPlan:
    """Fixed plan for one pipeline run.

    ``objects[i]`` is always the object file of ``sources[i]``.
    """

    sources: Tuple[SourceFile, ...]
    objects: Tuple[ObjectFile, ...]
    target: BuildTarget

    @property
    def object_paths(self) -> List[Path]:
        return [obj.path for obj in self.objects]

    @property
    def existing_objects(self) -> List[Path]:
        """Object files that will be overwritten."""
        return [obj.path for obj in self.objects if obj.existed_before]

    @property
    def existing_artifacts(self) -> List[Path]:
        """Every planned path already on disk, objects first."""
        paths = self.existing_objects
        if self.target.existed_before:
            paths.append(self.target.path)
        return paths


class ArtifactPlanner:
    """
    Builds a BuildPlan from a conflict-free source list.

    Example usage:
        planner = ArtifactPlanner(default_output_name="main")
        plan = planner.plan(Path("asm"), sources)
        print(plan.target.path)  # asm/main, or asm/<stem> for a single source
    """

    def __init__(self, default_output_name: str = DEFAULT_OUTPUT_NAME):
        """
        Initialize artifact planner.

        Args:
            default_output_name: Executable name used when there are several sources
        """
        self.default_output_name = default_output_name

    def object_path_for(self, directory: Path, source: SourceFile) -> Path:
        """Object path for a source: same directory, object suffix."""
        return Path(directory) / f"{source.base_name}{OBJECT_SUFFIX}"

    def target_for(self, directory: Path, sources: Sequence[SourceFile]) -> BuildTarget:
        """Select the executable path by the single-source/default rule."""
        if len(sources) == 1:
            name = sources[0].base_name
            rule = TargetNameRule.SINGLE_SOURCE
        else:
            name = self.default_output_name
            rule = TargetNameRule.DEFAULT
        path = Path(directory) / name
        return BuildTarget(path=path, rule=rule, existed_before=path.exists())

    def plan(self, directory: Path, sources: Sequence[SourceFile]) -> BuildPlan:
        """
        Plan object and target paths for the given sources.

        Args:
            directory: Directory the sources were scanned from (artifacts go here)
            sources: Ordered, conflict-checked sources (must not be empty)

        Returns:
            BuildPlan with index-aligned sources and objects
        """
        if not sources:
            raise ValueError("Cannot plan a build without sources")

        objects = []
        for source in sources:
            obj_path = self.object_path_for(directory, source)
            objects.append(ObjectFile(
                path=obj_path,
                source=source,
                existed_before=obj_path.exists()
            ))

        return BuildPlan(
            sources=tuple(sources),
            objects=tuple(objects),
            target=self.target_for(directory, sources)
        )
