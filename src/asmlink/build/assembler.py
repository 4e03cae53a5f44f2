"""
Assembler stage.

Invokes the external assembler once per source, in plan order:

    <assembler> <source> -o <object>

The stage stops at the first failure. Object files written by earlier
invocations are left on disk.
"""

from pathlib import Path
from typing import List, Optional

from .artifact_planner import BuildPlan, ObjectFile
from .errors import BuildError
from .tool_runner import ToolResult, ToolRunner


class AssemblyFailedError(BuildError):
    """Raised when the assembler fails on a source.

    Attributes:
        source: Source that failed to assemble
        returncode: Assembler exit status (None on timeout)
        stderr: Assembler diagnostics
        timed_out: Whether the invocation hit the timeout
        produced: Object files written before the failure
    """

    def __init__(
        self,
        source: Path,
        returncode: Optional[int],
        stderr: str = '',
        timed_out: bool = False,
        produced: Optional[List[Path]] = None
    ):
        self.source = source
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out
        self.produced = produced or []

        if timed_out:
            message = f"Assembly timed out for '{source}'."
        elif returncode is None:
            message = f"Assembly failed for '{source}'."
        else:
            message = f"Assembly failed for '{source}' (exit status {returncode})."
        if stderr.strip():
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)


class Assembler:
    """
    Wrapper around the external assembler.

    Example usage:
        assembler = Assembler(Path("/usr/bin/as"), ToolRunner(timeout=30))
        objects = assembler.assemble_all(plan)
    """

    def __init__(self, assembler: Path, runner: ToolRunner, show_progress: bool = True):
        """
        Initialize assembler stage.

        Args:
            assembler: Resolved path to the assembler executable
            runner: Runner used for every invocation
            show_progress: Print one line per source
        """
        self.assembler = Path(assembler)
        self.runner = runner
        self.show_progress = show_progress

    def build_command(self, source: Path, output: Path) -> List[str]:
        return [str(self.assembler), str(source), '-o', str(output)]

    def assemble(self, obj: ObjectFile) -> ToolResult:
        """Assemble one source into its object file."""
        if self.show_progress:
            print(f"  Assembling '{obj.source.path}' -> '{obj.path}'")
        return self.runner.run(self.build_command(obj.source.path, obj.path))

    def assemble_all(self, plan: BuildPlan) -> List[Path]:
        """
        Assemble every source in the plan.

        Args:
            plan: Build plan (objects index-aligned with sources)

        Returns:
            Object file paths, in plan order

        Raises:
            AssemblyFailedError: On the first failing source; later sources are not attempted
        """
        produced: List[Path] = []
        for obj in plan.objects:
            # Only an object written by this invocation counts as its output
            obj.path.unlink(missing_ok=True)
            try:
                result = self.assemble(obj)
            except OSError as e:
                raise AssemblyFailedError(
                    obj.source.path,
                    None,
                    stderr=f"failed to start {self.assembler}: {e}",
                    produced=produced
                ) from e

            # Exit 0 without an object file is a broken assembler, not a success
            if result.success and not obj.path.exists():
                raise AssemblyFailedError(
                    obj.source.path,
                    result.returncode,
                    stderr=f"assembler exited 0 but did not write {obj.path}",
                    produced=produced
                )
            if not result.success:
                raise AssemblyFailedError(
                    obj.source.path,
                    result.returncode,
                    stderr=result.stderr,
                    timed_out=result.timed_out,
                    produced=produced
                )

            if self.show_progress and result.stderr:
                print(result.stderr.rstrip())
            produced.append(obj.path)

        return produced
