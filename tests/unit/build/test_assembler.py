"""
Unit tests for the assembler stage.

Uses the fake assembler from tests/conftest.py.
"""

import sys

import pytest
from pathlib import Path
from unittest.mock import Mock
from asmlink.build.artifact_planner import ArtifactPlanner
from asmlink.build.assembler import Assembler, AssemblyFailedError
from asmlink.build.errors import BuildError
from asmlink.build.source_scanner import SourceScanner
from asmlink.build.tool_runner import ToolResult, ToolRunner


def make_plan(asm_dir, sources):
    for name, content in sources.items():
        (asm_dir / name).write_text(content)
    return ArtifactPlanner().plan(asm_dir, SourceScanner().scan(asm_dir))


class TestAssembler:
    """Test suite for Assembler."""

    def test_build_command(self):
        assembler = Assembler(Path('/usr/bin/as'), ToolRunner())
        cmd = assembler.build_command(Path('asm/a.s'), Path('asm/a.o'))
        assert cmd == [str(Path('/usr/bin/as')), str(Path('asm/a.s')), '-o', str(Path('asm/a.o'))]

    def test_assemble_all_success(self, fake_toolchain, asm_dir):
        plan = make_plan(asm_dir, {'a.s': 'nop A\n', 'b.as': 'nop B\n', 'c.asm': 'nop C\n'})
        assembler = Assembler(fake_toolchain.assembler, ToolRunner(), show_progress=False)

        produced = assembler.assemble_all(plan)

        assert produced == [asm_dir / 'a.o', asm_dir / 'b.o', asm_dir / 'c.o']
        assert all(path.exists() for path in produced)
        assert (asm_dir / 'b.o').read_text() == 'nop B\n'
        assert len(fake_toolchain.assembler_calls()) == 3

    def test_invoked_in_plan_order(self, fake_toolchain, asm_dir):
        plan = make_plan(asm_dir, {'z.s': 'z\n', 'a.s': 'a\n', 'm.s': 'm\n'})
        Assembler(fake_toolchain.assembler, ToolRunner(), show_progress=False).assemble_all(plan)

        calls = fake_toolchain.assembler_calls()
        assert [Path(call.split()[1]).name for call in calls] == ['a.s', 'm.s', 'z.s']

    def test_stops_on_first_failure(self, fake_toolchain, asm_dir):
        """Failure on the second of three sources leaves a.o and never creates c.o."""
        plan = make_plan(asm_dir, {'a.s': 'ok\n', 'b.s': 'FAIL\n', 'c.s': 'ok\n'})
        assembler = Assembler(fake_toolchain.assembler, ToolRunner(), show_progress=False)

        with pytest.raises(AssemblyFailedError) as exc_info:
            assembler.assemble_all(plan)

        error = exc_info.value
        assert error.source == asm_dir / 'b.s'
        assert error.returncode == 1
        assert 'no such instruction' in error.stderr
        assert error.produced == [asm_dir / 'a.o']
        assert (asm_dir / 'a.o').exists()
        assert not (asm_dir / 'c.o').exists()
        assert len(fake_toolchain.assembler_calls()) == 2

    def test_error_message(self, fake_toolchain, asm_dir):
        plan = make_plan(asm_dir, {'bad.s': 'FAIL\n'})
        assembler = Assembler(fake_toolchain.assembler, ToolRunner(), show_progress=False)

        with pytest.raises(AssemblyFailedError, match=r"Assembly failed for '.*bad\.s' \(exit status 1\)"):
            assembler.assemble_all(plan)

    def test_timeout_reported(self, fake_toolchain, asm_dir):
        plan = make_plan(asm_dir, {'slow.s': 'HANG\n'})
        assembler = Assembler(fake_toolchain.assembler, ToolRunner(timeout=0.5), show_progress=False)

        with pytest.raises(AssemblyFailedError, match='timed out') as exc_info:
            assembler.assemble_all(plan)

        assert exc_info.value.timed_out
        assert exc_info.value.returncode is None

    def test_exit_zero_without_object_is_failure(self, asm_dir):
        plan = make_plan(asm_dir, {'a.s': 'nop\n'})
        runner = Mock(spec=ToolRunner)
        runner.run.return_value = ToolResult(cmd=[], returncode=0, stdout='', stderr='')

        with pytest.raises(AssemblyFailedError, match='did not write'):
            Assembler(Path('as'), runner, show_progress=False).assemble_all(plan)

    def test_stale_object_not_taken_as_output(self, fake_toolchain, asm_dir):
        """An object left by an earlier run does not hide an assembler that wrote nothing."""
        plan = make_plan(asm_dir, {'main.s': 'NOOP\n'})
        (asm_dir / 'main.o').write_text('STALE\n')

        with pytest.raises(AssemblyFailedError, match='did not write') as exc_info:
            Assembler(fake_toolchain.assembler, ToolRunner(), show_progress=False).assemble_all(plan)

        assert exc_info.value.produced == []
        assert not (asm_dir / 'main.o').exists()

    def test_latin1_warning_on_success(self, fake_toolchain, asm_dir, capsys):
        plan = make_plan(asm_dir, {'main.s': 'LATIN1\n'})

        produced = Assembler(fake_toolchain.assembler, ToolRunner()).assemble_all(plan)

        assert produced == [asm_dir / 'main.o']
        assert 'Warning: caf' in capsys.readouterr().out

    def test_latin1_diagnostics_on_failure(self, fake_toolchain, asm_dir):
        plan = make_plan(asm_dir, {'main.s': 'LATIN1 FAIL\n'})

        with pytest.raises(AssemblyFailedError) as exc_info:
            Assembler(fake_toolchain.assembler, ToolRunner(), show_progress=False).assemble_all(plan)

        assert exc_info.value.returncode == 1
        assert 'Warning: caf' in exc_info.value.stderr

    def test_progress_output(self, fake_toolchain, asm_dir, capsys):
        plan = make_plan(asm_dir, {'main.s': 'nop\n'})
        Assembler(fake_toolchain.assembler, ToolRunner()).assemble_all(plan)

        captured = capsys.readouterr()
        assert 'Assembling' in captured.out
        assert 'main.s' in captured.out

    def test_error_is_build_error(self):
        assert issubclass(AssemblyFailedError, BuildError)

    @pytest.mark.skipif(sys.platform == 'win32', reason='relies on POSIX exec permissions')
    def test_unstartable_assembler(self, asm_dir, tmp_path):
        """A tool that can't be executed is reported as an assembly failure."""
        plan = make_plan(asm_dir, {'a.s': 'nop\n'})
        not_executable = tmp_path / 'as-not-executable'
        not_executable.write_text('not a program')
        not_executable.chmod(0o644)

        with pytest.raises(AssemblyFailedError, match='failed to start') as exc_info:
            Assembler(not_executable, ToolRunner(), show_progress=False).assemble_all(plan)

        assert exc_info.value.returncode is None
        assert exc_info.value.produced == []
