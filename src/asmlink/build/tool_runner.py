"""External tool execution.

This module runs the assembler and linker as subprocesses.

Design:
    - Resolves tool names through PATH, explicit paths are checked as-is
    - Captures stdout/stderr as text
    - Applies an optional timeout; on expiry the whole process tree is
      terminated, since compiler drivers such as gcc spawn as/collect2/ld
"""

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import psutil

from .errors import BuildError


class ToolNotFoundError(BuildError):
    """Raised when the assembler or linker cannot be located."""

    def __init__(self, tool: str, role: str):
        self.tool = tool
        self.role = role
        super().__init__(
            f"{role} not found: '{tool}'. Install it or point asmlink at it "
            f"with --{role.lower()} or asmlink.ini."
        )


def resolve_tool(tool: str, role: str) -> Path:
    """Locate an executable.

    Args:
        tool: Program name (looked up on PATH) or path to the program
        role: Human-readable role used in errors ("Assembler", "Linker")

    Returns:
        Path to the executable

    Raises:
        ToolNotFoundError: If the program can't be found
    """
    if os.sep in tool or (os.altsep and os.altsep in tool):
        path = Path(tool)
        if not path.is_file():
            raise ToolNotFoundError(tool, role)
        return path

    found = shutil.which(tool)
    if found is None:
        raise ToolNotFoundError(tool, role)
    return Path(found)


@dataclass
class ToolResult:
    """Outcome of one tool invocation."""

    cmd: List[str]
    returncode: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return not self.timed_out and self.returncode == 0


def kill_process_tree(pid: int, grace_period: float = 3.0) -> int:
    """Terminate a process and all of its descendants.

    Children are signalled before their parent. Processes still alive after
    the grace period are force-killed.

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True)
        processes.reverse()
        processes.append(root)
    except psutil.NoSuchProcess:
        return 0

    signalled: List[psutil.Process] = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
            logging.debug(f"Terminated process {proc.pid}")
        except psutil.NoSuchProcess:
            pass  # Already dead

    _gone, alive = psutil.wait_procs(signalled, timeout=grace_period)
    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass

    return len(signalled)


class ToolRunner:
    """Runs external tools with an optional per-invocation timeout."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds to wait for each invocation, None waits forever
        """
        self.timeout = timeout

    def run(self, cmd: List[str], cwd: Optional[Path] = None) -> ToolResult:
        """Run a command to completion.

        Args:
            cmd: Program and arguments
            cwd: Working directory for the tool

        Returns:
            ToolResult; a timed-out run has returncode None and timed_out set

        Raises:
            OSError: If the program can't be started
        """
        logging.debug(f"Running: {shlex.join(cmd)}")

        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
        try:
            stdout, stderr = proc.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            killed = kill_process_tree(proc.pid)
            stdout, stderr = proc.communicate()
            logging.warning(
                f"{Path(cmd[0]).name} timed out after {self.timeout}s, killed {killed} process(es)"
            )
            return ToolResult(cmd=cmd, returncode=None, stdout=stdout, stderr=stderr, timed_out=True)
        except KeyboardInterrupt:
            kill_process_tree(proc.pid)
            proc.wait()
            raise

        logging.debug(f"{Path(cmd[0]).name} exited with {proc.returncode}")
        return ToolResult(cmd=cmd, returncode=proc.returncode, stdout=stdout, stderr=stderr)
