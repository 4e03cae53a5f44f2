"""
Effective settings for one pipeline run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OverwritePolicy(Enum):
    """What to do when planned artifacts already exist on disk."""

    PROMPT = "prompt"            # ask the operator
    FORCE_OVERWRITE = "force"    # proceed without asking
    ABORT_ON_EXISTING = "abort"  # fail before assembling anything

    @classmethod
    def from_string(cls, value: str) -> "OverwritePolicy":
        """Parse a policy name (case-insensitive).

        Raises:
            ValueError: If value names no policy
        """
        normalized = value.strip().lower()
        for policy in cls:
            if policy.value == normalized:
                return policy
        valid = ", ".join(policy.value for policy in cls)
        raise ValueError(f"Unknown overwrite policy '{value}' (expected one of: {valid})")


@dataclass
class BuildConfig:
    """
    Build settings after merging defaults, config files and CLI flags.

    Attributes:
        assembler: Assembler program (name on PATH or path)
        linker: Linker driver program (name on PATH or path)
        default_output_name: Executable name for multi-source builds
        timeout: Seconds allowed per tool invocation, None for no limit
        overwrite_policy: Handling of pre-existing artifacts
        cleanup_on_failure: Delete this run's artifacts after a failed stage
    """

    assembler: str = "as"
    linker: str = "gcc"
    default_output_name: str = "main"
    timeout: Optional[float] = None
    overwrite_policy: OverwritePolicy = OverwritePolicy.PROMPT
    cleanup_on_failure: bool = False
