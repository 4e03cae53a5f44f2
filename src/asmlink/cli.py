"""
Command-line interface for asmlink.

This module provides the `asmlink` CLI tool for assembling and linking a
directory of assembly sources into one executable.
"""

import argparse
import math
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional

from asmlink import __version__
from asmlink.build import (
    AssemblyFailedError,
    BuildOrchestrator,
    DuplicateBaseNameError,
    LinkFailedError,
    OverwriteDeclinedError,
    SourceDirectoryNotFoundError,
    ToolNotFoundError,
)
from asmlink.cli_utils import ErrorFormatter, prompt_overwrite, setup_logging
from asmlink.config import AsmlinkConfigError, OverwritePolicy, load_build_config


@dataclass
class BuildArgs:
    """Arguments for a build run."""

    target_dir: Path
    overwrite_policy: Optional[OverwritePolicy] = None
    config_path: Optional[Path] = None
    timeout: Optional[float] = None
    assembler: Optional[str] = None
    linker: Optional[str] = None
    cleanup_on_failure: bool = False
    verbose: bool = False


# Failure banner title per error kind
ERROR_TITLES = {
    SourceDirectoryNotFoundError: "Folder not found",
    DuplicateBaseNameError: "Base name conflict",
    OverwriteDeclinedError: "Build aborted",
    ToolNotFoundError: "Toolchain not found",
    AssemblyFailedError: "Assembly failed!",
    LinkFailedError: "Linking failed!",
}


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        ErrorFormatter.print_error("Invalid arguments", message)
        sys.exit(1)


def build_command(args: BuildArgs) -> None:
    """Assemble and link every source in a directory.

    Examples:
        asmlink asm/                   # Build asm/*.s, *.as, *.asm
        asmlink asm/ --force           # Overwrite existing .o/executable without asking
        asmlink asm/ --no-clobber      # Fail if any artifact already exists
        asmlink asm/ -t 30             # Give each tool invocation 30 seconds
        asmlink asm/ --verbose         # Verbose output
    """
    print(f"asmlink v{__version__}")
    print()

    try:
        config = load_build_config(args.config_path)

        # Command-line flags override config files
        overrides: dict = {}
        if args.overwrite_policy is not None:
            overrides["overwrite_policy"] = args.overwrite_policy
        if args.timeout is not None:
            overrides["timeout"] = args.timeout
        if args.assembler:
            overrides["assembler"] = args.assembler
        if args.linker:
            overrides["linker"] = args.linker
        if args.cleanup_on_failure:
            overrides["cleanup_on_failure"] = True
        config = replace(config, **overrides)

        if args.verbose:
            print(f"Target folder: {args.target_dir}")
            print(f"Assembler: {config.assembler}")
            print(f"Linker: {config.linker}")
            print(f"Overwrite policy: {config.overwrite_policy.value}")
            print()

        orchestrator = BuildOrchestrator(
            config=config,
            confirm=prompt_overwrite,
            verbose=args.verbose,
        )
        result = orchestrator.build(args.target_dir)

        if result.success:
            if result.no_op:
                sys.exit(0)
            ErrorFormatter.print_success("Build successful!")
            print()
            print(f"Executable: {result.target_path}")
            print(f"Build time: {result.build_time:.2f}s")
            sys.exit(0)
        else:
            title = ERROR_TITLES.get(type(result.error), "Build failed!")
            ErrorFormatter.print_error(title, result.message)
            sys.exit(1)

    except AsmlinkConfigError as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        sys.exit(1)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def positive_float(value: str) -> float:
    """argparse type for strictly positive numbers."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'")
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number: '{value}'")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = _ArgumentParser(
        prog="asmlink",
        description="Assemble *.s, *.as and *.asm files in a folder and link them into one executable",
        epilog=(
            "The executable is named after the source when there is exactly one, "
            "otherwise it defaults to 'main'."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"asmlink {__version__}",
    )
    parser.add_argument(
        "target_dir",
        type=Path,
        help="Folder containing the assembly sources",
    )

    overwrite_group = parser.add_mutually_exclusive_group()
    overwrite_group.add_argument(
        "-f",
        "--force",
        dest="overwrite_policy",
        action="store_const",
        const=OverwritePolicy.FORCE_OVERWRITE,
        help="Overwrite existing object files and executable without asking",
    )
    overwrite_group.add_argument(
        "-n",
        "--no-clobber",
        dest="overwrite_policy",
        action="store_const",
        const=OverwritePolicy.ABORT_ON_EXISTING,
        help="Fail instead of prompting when build artifacts already exist",
    )

    parser.add_argument(
        "-c",
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Config file applied on top of ./asmlink.ini",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=positive_float,
        default=None,
        help="Seconds allowed per assembler/linker invocation (default: no limit)",
    )
    parser.add_argument(
        "--assembler",
        default=None,
        help="Assembler program (default: as)",
    )
    parser.add_argument(
        "--linker",
        default=None,
        help="Linker driver program (default: gcc)",
    )
    parser.add_argument(
        "--cleanup-on-failure",
        action="store_true",
        help="Delete object files and executable written by a failed run",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """asmlink - assemble and link a folder of assembly sources."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    setup_logging(parsed_args.verbose)

    build_args = BuildArgs(
        target_dir=parsed_args.target_dir,
        overwrite_policy=parsed_args.overwrite_policy,
        config_path=parsed_args.config_path,
        timeout=parsed_args.timeout,
        assembler=parsed_args.assembler,
        linker=parsed_args.linker,
        cleanup_on_failure=parsed_args.cleanup_on_failure,
        verbose=parsed_args.verbose,
    )
    build_command(build_args)


if __name__ == "__main__":
    main()
