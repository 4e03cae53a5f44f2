"""
Build pipeline components for asmlink.

This module provides the assemble-and-link pipeline including:
- Source discovery and base-name conflict detection
- Artifact planning and overwrite confirmation
- Assembling (as) and linking (gcc -nostdlib -static)
- Build orchestration
"""

from .artifact_planner import ArtifactPlanner, BuildPlan, BuildTarget, ObjectFile, TargetNameRule
from .assembler import Assembler, AssemblyFailedError
from .conflict_detector import ConflictDetector, ConflictSet, DuplicateBaseNameError
from .errors import BuildError
from .linker import LINKER_FLAGS, Linker, LinkFailedError, LinkResult
from .orchestrator import BuildOrchestrator, BuildResult, BuildState
from .overwrite_guard import OverwriteDeclinedError, OverwriteGuard
from .source_scanner import (
    SOURCE_EXTENSIONS,
    SourceDirectoryNotFoundError,
    SourceFile,
    SourceScanner,
)
from .tool_runner import ToolNotFoundError, ToolResult, ToolRunner, resolve_tool

__all__ = [
    'ArtifactPlanner',
    'Assembler',
    'AssemblyFailedError',
    'BuildError',
    'BuildOrchestrator',
    'BuildPlan',
    'BuildResult',
    'BuildState',
    'BuildTarget',
    'ConflictDetector',
    'ConflictSet',
    'DuplicateBaseNameError',
    'LINKER_FLAGS',
    'Linker',
    'LinkFailedError',
    'LinkResult',
    'ObjectFile',
    'OverwriteDeclinedError',
    'OverwriteGuard',
    'SOURCE_EXTENSIONS',
    'SourceDirectoryNotFoundError',
    'SourceFile',
    'SourceScanner',
    'TargetNameRule',
    'ToolNotFoundError',
    'ToolResult',
    'ToolRunner',
    'resolve_tool',
]
