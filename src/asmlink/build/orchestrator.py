"""
Build orchestration for asmlink.

This module runs the whole pipeline for one directory, strictly in order:
- Source scanning (.s, .as, .asm, non-recursive)
- Base-name conflict checking
- Artifact planning (object files and executable)
- Overwrite confirmation for pre-existing artifacts
- Assembling every source
- Linking all objects into one executable

Any stage may fail the run. Failures are terminal: there is no retry and no
resume, a new attempt starts again from scanning.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..config import BuildConfig
from .artifact_planner import ArtifactPlanner, BuildPlan
from .assembler import Assembler, AssemblyFailedError
from .conflict_detector import ConflictDetector
from .errors import BuildError
from .linker import LinkFailedError, Linker
from .overwrite_guard import ConfirmCallback, OverwriteGuard
from .source_scanner import SOURCE_EXTENSIONS, SourceScanner
from .tool_runner import ToolRunner, resolve_tool


class BuildState(Enum):
    """Pipeline states. DONE and FAILED are terminal."""

    SCANNING = "scanning"
    CONFLICT_CHECKING = "conflict_checking"
    PLANNING = "planning"
    OVERWRITE_CONFIRM = "overwrite_confirm"
    ASSEMBLING = "assembling"
    LINKING = "linking"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildResult:
    """Result of a complete pipeline run."""

    success: bool
    state: BuildState
    message: str
    build_time: float
    target_path: Optional[Path] = None
    object_paths: List[Path] = field(default_factory=list)
    plan: Optional[BuildPlan] = None
    failed_stage: Optional[BuildState] = None
    error: Optional[BuildError] = None
    no_op: bool = False


class BuildOrchestrator:
    """
    Orchestrates one assemble-and-link run.

    Phases:
    1. Scan the directory for assembly sources
    2. Check for base-name conflicts
    3. Plan object files and the executable
    4. Confirm overwriting of pre-existing artifacts
    5. Assemble each source (stop on first failure)
    6. Link all objects (single invocation)

    Example usage:
        orchestrator = BuildOrchestrator(BuildConfig(overwrite_policy=OverwritePolicy.FORCE_OVERWRITE))
        result = orchestrator.build(Path("asm"))
        if result.success and not result.no_op:
            print(f"Executable: {result.target_path}")
    """

    TOTAL_PHASES = 6

    def __init__(
        self,
        config: Optional[BuildConfig] = None,
        confirm: Optional[ConfirmCallback] = None,
        verbose: bool = False
    ):
        """
        Initialize build orchestrator.

        Args:
            config: Effective build settings (defaults if omitted)
            confirm: Callback asked before overwriting under the PROMPT policy
            verbose: Enable verbose output
        """
        self.config = config or BuildConfig()
        self.confirm = confirm
        self.verbose = verbose
        self.state = BuildState.SCANNING

    def build(self, target_dir: Path) -> BuildResult:
        """
        Execute the pipeline on a directory.

        Args:
            target_dir: Directory holding the assembly sources

        Returns:
            BuildResult; failures are reported in the result, not raised
        """
        start_time = time.time()
        target_dir = Path(target_dir)
        plan: Optional[BuildPlan] = None
        produced: List[Path] = []

        try:
            # Phase 1: Scan sources
            self._enter(BuildState.SCANNING, f"Searching for assembly files in '{target_dir}'...")
            sources = SourceScanner(SOURCE_EXTENSIONS).scan(target_dir)

            if not sources:
                print(f"No assembly files found in '{target_dir}'. Nothing to do.")
                return self._finish(BuildResult(
                    success=True,
                    state=BuildState.DONE,
                    message="No assembly files found",
                    build_time=time.time() - start_time,
                    no_op=True
                ))

            print(f"Found {len(sources)} assembly file(s):")
            for source in sources:
                print(f"  {source.path}")

            # Phase 2: Conflict check
            self._enter(BuildState.CONFLICT_CHECKING, "Checking for base name conflicts...")
            ConflictDetector().check(sources)

            # Phase 3: Plan artifacts
            self._enter(BuildState.PLANNING, "Planning build artifacts...")
            plan = ArtifactPlanner(self.config.default_output_name).plan(target_dir, sources)
            if self.verbose:
                print(f"      Target: {plan.target.path} ({plan.target.rule.value})")

            # Phase 4: Overwrite confirmation
            if plan.existing_artifacts:
                self._enter(BuildState.OVERWRITE_CONFIRM, "Checking existing artifacts...")
                OverwriteGuard(self.config.overwrite_policy, self.confirm).check(plan)

            # Phase 5: Assemble
            self._enter(BuildState.ASSEMBLING, "Assembling files...")
            runner = ToolRunner(timeout=self.config.timeout)
            assembler = Assembler(resolve_tool(self.config.assembler, "Assembler"), runner)
            linker = Linker(resolve_tool(self.config.linker, "Linker"), runner)
            try:
                produced = assembler.assemble_all(plan)
            except AssemblyFailedError as e:
                produced = list(e.produced)
                raise
            print("Assembly successful.")

            # Phase 6: Link
            self._enter(BuildState.LINKING, "Linking...")
            link_result = linker.link(plan)
            if self.verbose and link_result.stderr:
                print(link_result.stderr.rstrip())

            return self._finish(BuildResult(
                success=True,
                state=BuildState.DONE,
                message=f"Executable created at '{link_result.target_path}'",
                build_time=time.time() - start_time,
                target_path=link_result.target_path,
                object_paths=link_result.object_paths,
                plan=plan
            ))

        except BuildError as e:
            failed_stage = self.state
            logging.debug(f"Build failed during {failed_stage.value}: {type(e).__name__}")

            if self.config.cleanup_on_failure:
                stale = list(produced)
                if isinstance(e, LinkFailedError):
                    stale.append(e.target)
                self._cleanup_partial_artifacts(stale)

            return self._finish(BuildResult(
                success=False,
                state=BuildState.FAILED,
                message=str(e),
                build_time=time.time() - start_time,
                plan=plan,
                object_paths=produced,
                failed_stage=failed_stage,
                error=e
            ))

    def _enter(self, state: BuildState, message: str) -> None:
        """Transition to a pipeline state."""
        self.state = state
        logging.debug(f"Pipeline state: {state.value}")
        if self.verbose:
            phase = list(BuildState).index(state) + 1
            print(f"[{phase}/{self.TOTAL_PHASES}] {message}")

    def _finish(self, result: BuildResult) -> BuildResult:
        """Record the terminal state."""
        self.state = result.state
        return result

    def _cleanup_partial_artifacts(self, paths: List[Path]) -> None:
        """Remove artifacts written by a failed run (opt-in)."""
        for path in paths:
            try:
                if path.exists():
                    path.unlink()
                    print(f"Removed partial artifact '{path}'")
            except OSError as e:
                logging.warning(f"Failed to remove {path}: {e}")
