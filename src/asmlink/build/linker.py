"""
Linker stage.

Invokes the linker driver exactly once with every object file:

    <linker> -nostdlib -static <obj1> <obj2> ... -o <target>

A failed link is final. A partially written executable is left in place.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .artifact_planner import BuildPlan
from .errors import BuildError
from .tool_runner import ToolRunner

# Fixed flag set: no C runtime or standard library, static executable
LINKER_FLAGS = ('-nostdlib', '-static')


class LinkFailedError(BuildError):
    """Raised when linking fails.

    Attributes:
        target: Executable that was being produced
        returncode: Linker exit status (None on timeout)
        stderr: Linker diagnostics
        timed_out: Whether the invocation hit the timeout
    """

    def __init__(
        self,
        target: Path,
        returncode: Optional[int],
        stderr: str = '',
        timed_out: bool = False
    ):
        self.target = target
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out

        if timed_out:
            message = f"Linking timed out while producing '{target}'."
        elif returncode is None:
            message = f"Linking failed while producing '{target}'."
        else:
            message = f"Linking failed while producing '{target}' (exit status {returncode})."
        if stderr.strip():
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)


@dataclass
class LinkResult:
    """Result of a successful link."""

    target_path: Path
    object_paths: List[Path]
    stdout: str
    stderr: str


class Linker:
    """
    Wrapper around the external linker driver.

    Example usage:
        linker = Linker(Path("/usr/bin/gcc"), ToolRunner())
        result = linker.link(plan)
    """

    def __init__(self, linker: Path, runner: ToolRunner, show_progress: bool = True):
        """
        Initialize linker stage.

        Args:
            linker: Resolved path to the linker driver (gcc by default)
            runner: Runner for the single invocation
            show_progress: Print the link command
        """
        self.linker = Path(linker)
        self.runner = runner
        self.show_progress = show_progress

    def build_command(self, object_paths: List[Path], output: Path) -> List[str]:
        cmd = [str(self.linker)]
        cmd.extend(LINKER_FLAGS)
        cmd.extend(str(obj) for obj in object_paths)
        cmd.extend(['-o', str(output)])
        return cmd

    def link(self, plan: BuildPlan) -> LinkResult:
        """
        Link all object files of the plan into its target.

        Args:
            plan: Build plan whose objects have all been assembled

        Returns:
            LinkResult describing the produced executable

        Raises:
            LinkFailedError: On a non-zero exit, a timeout, or a missing output
        """
        object_paths = plan.object_paths
        target = plan.target.path
        cmd = self.build_command(object_paths, target)

        if self.show_progress:
            print(f"Linking {len(object_paths)} object file(s) into '{target}'...")
            print(f"  Command: {' '.join(cmd)}")

        # Only an executable written by this call counts as its output
        target.unlink(missing_ok=True)

        try:
            result = self.runner.run(cmd)
        except OSError as e:
            raise LinkFailedError(target, None, stderr=f"failed to start {cmd[0]}: {e}") from e

        if not result.success:
            raise LinkFailedError(
                target,
                result.returncode,
                stderr=result.stderr,
                timed_out=result.timed_out
            )
        if not target.exists():
            raise LinkFailedError(
                target,
                result.returncode,
                stderr=f"linker exited 0 but did not write {target}"
            )

        return LinkResult(
            target_path=target,
            object_paths=object_paths,
            stdout=result.stdout,
            stderr=result.stderr
        )
