"""
Confirmation gate for overwriting existing build artifacts.

The guard is advisory: it neither snapshots nor locks the flagged files, so
another process can still touch them before the stages run.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from ..config import OverwritePolicy
from .artifact_planner import BuildPlan
from .errors import BuildError

# Receives the overwrite notice, returns True to continue
ConfirmCallback = Callable[[str], bool]


class OverwriteDeclinedError(BuildError):
    """Raised when existing artifacts may not be overwritten."""

    def __init__(self, paths: List[Path], reason: str):
        self.paths = paths
        listing = "\n".join(f"  {path}" for path in paths)
        super().__init__(f"{reason}:\n{listing}")


def format_overwrite_notice(plan: BuildPlan) -> str:
    """Describe pre-existing artifacts, object files and target listed apart."""
    lines = []
    existing_objects = plan.existing_objects
    if existing_objects:
        lines.append("The following object files already exist and will be overwritten:")
        lines.extend(f"  {path}" for path in existing_objects)
    if plan.target.existed_before:
        lines.append(f"Executable '{plan.target.path}' already exists and will be overwritten.")
    return "\n".join(lines)


class OverwriteGuard:
    """
    Applies an OverwritePolicy to a BuildPlan.

    Plans without pre-existing artifacts pass silently under every policy.
    """

    def __init__(
        self,
        policy: OverwritePolicy = OverwritePolicy.PROMPT,
        confirm: Optional[ConfirmCallback] = None
    ):
        """
        Initialize overwrite guard.

        Args:
            policy: How to treat pre-existing artifacts
            confirm: Interactive callback used by the PROMPT policy; without
                one, PROMPT refuses to overwrite
        """
        self.policy = policy
        self.confirm = confirm

    def check(self, plan: BuildPlan) -> List[Path]:
        """
        Gate the pipeline on pre-existing artifacts.

        Args:
            plan: Plan produced by the ArtifactPlanner

        Returns:
            Paths that will be overwritten (empty if none existed)

        Raises:
            OverwriteDeclinedError: If the policy or the operator refuses
        """
        existing = plan.existing_artifacts
        if not existing:
            return []

        if self.policy is OverwritePolicy.FORCE_OVERWRITE:
            logging.debug(f"Overwriting {len(existing)} existing artifact(s) without confirmation")
            return existing

        if self.policy is OverwritePolicy.ABORT_ON_EXISTING:
            raise OverwriteDeclinedError(
                existing,
                "Refusing to overwrite existing build artifacts (--no-clobber); "
                "remove them or rerun with --force"
            )

        if self.confirm is None:
            raise OverwriteDeclinedError(
                existing,
                "Existing build artifacts need confirmation but no terminal is available; "
                "rerun with --force to overwrite them"
            )
        if not self.confirm(format_overwrite_notice(plan)):
            raise OverwriteDeclinedError(existing, "Overwrite not confirmed, build aborted")
        return existing
