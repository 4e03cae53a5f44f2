"""
Shared fixtures: fake assembler and linker.

The fakes are POSIX shell scripts that follow the real tools' calling
convention and record every invocation in a log file:
- assembler: ``as <source> -o <object>``, copies the source to the object,
  fails on sources containing FAIL, sleeps on sources containing HANG,
  writes a Latin-1 warning for LATIN1 and exits 0 without output for NOOP
- linker: ``gcc -nostdlib -static <objects...> -o <target>``, concatenates
  the objects into the target
"""

import logging
import stat
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

import pytest

from asmlink.cli_utils import LOG_HANDLER_NAME

ASSEMBLER_SCRIPT = """#!/bin/sh
echo "as $*" >> "{log}"
if grep -q LATIN1 "$1"; then
  printf 'Warning: caf\\351\\n' >&2
fi
if grep -q FAIL "$1"; then
  echo "$1:1: Error: no such instruction: 'FAIL'" >&2
  exit 1
fi
if grep -q HANG "$1"; then
  sleep 30
fi
if grep -q NOOP "$1"; then
  exit 0
fi
cp "$1" "$3"
"""

LINKER_SCRIPT = """#!/bin/sh
echo "ld $*" >> "{log}"
out=""
objs=""
while [ $# -gt 0 ]; do
  case "$1" in
    -o) out="$2"; shift 2 ;;
    -*) shift ;;
    *) objs="$objs $1"; shift ;;
  esac
done
{link_action}
"""

LINK_OK = 'cat $objs > "$out"'
LINK_FAIL = """echo "partial" > "$out"
echo "ld: undefined reference to '_start'" >&2
exit 1"""
LINK_NOOP = "exit 0"


@dataclass
class FakeToolchain:
    """Paths to the fake tools and their invocation log."""

    assembler: Path
    linker: Path
    log: Path

    def calls(self) -> List[str]:
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()

    def assembler_calls(self) -> List[str]:
        return [call for call in self.calls() if call.startswith("as ")]

    def linker_calls(self) -> List[str]:
        return [call for call in self.calls() if call.startswith("ld ")]


def _write_script(path: Path, content: str) -> Path:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def make_toolchain(tmp_path):
    """Factory for fake toolchains; pass link_fails=True for a failing linker,
    link_writes=False for one that exits 0 without writing the target."""
    if sys.platform == "win32":
        pytest.skip("fake tools are POSIX shell scripts")

    def _make(link_fails: bool = False, link_writes: bool = True) -> FakeToolchain:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        log = tmp_path / "tool_calls.log"
        assembler = _write_script(bin_dir / "fake-as", ASSEMBLER_SCRIPT.format(log=log))
        if link_fails:
            link_action = LINK_FAIL
        else:
            link_action = LINK_OK if link_writes else LINK_NOOP
        linker = _write_script(bin_dir / "fake-ld", LINKER_SCRIPT.format(log=log, link_action=link_action))
        return FakeToolchain(assembler=assembler, linker=linker, log=log)

    return _make


@pytest.fixture
def fake_toolchain(make_toolchain):
    """Fake toolchain whose assembler and linker succeed."""
    return make_toolchain()


@pytest.fixture
def asm_dir(tmp_path):
    """Empty directory for assembly sources."""
    directory = tmp_path / "asm"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop the CLI's stderr handler so it never outlives a captured stream."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == LOG_HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)
