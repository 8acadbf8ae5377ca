# =============================================================================
# test_cli.py - Command-Line Interface Tests
# =============================================================================
# Tests for the p8asm command: options, output files and exit codes.
# =============================================================================

import pytest
from click.testing import CliRunner

from pdp8asm.cli.errors import ExitCode
from pdp8asm.cli.p8asm import main


GOOD_SOURCE = """
START,  CLA CLL
        TAD VALUE
        HLT
VALUE,  0d42
"""

OFF_PAGE_SOURCE = """
        TAD FAR
        .ORG 400
FAR,    0
"""


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("PDP8ASM_CPU", raising=False)
    monkeypatch.delenv("PDP8ASM_NOWARN", raising=False)
    return CliRunner()


def write_source(tmp_path, text: str, name: str = "prog.pal"):
    path = tmp_path / name
    path.write_text(text)
    return path


# =============================================================================
# Basic Options
# =============================================================================

class TestCliBasics:
    """Test help and version."""

    def test_help(self, runner):
        """--help describes the command."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Assemble PDP-8 family source code" in result.output
        assert "--cpu" in result.output

    def test_version(self, runner):
        """--version shows the program name."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "p8asm" in result.output

    def test_missing_input(self, runner, tmp_path):
        """A missing input file is a usage error."""
        result = runner.invoke(main, [str(tmp_path / "missing.pal")])
        assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# Assembly
# =============================================================================

class TestCliAssembly:
    """Test assembling files from the command line."""

    def test_default_output(self, runner, tmp_path):
        """Without -o the tape is written next to the input."""
        source = write_source(tmp_path, GOOD_SOURCE)
        result = runner.invoke(main, [str(source)])
        assert result.exit_code == ExitCode.SUCCESS
        assert (tmp_path / "prog.bin").exists()

    def test_all_outputs(self, runner, tmp_path):
        """-o, -l and -s write their files."""
        source = write_source(tmp_path, GOOD_SOURCE)
        result = runner.invoke(main, [
            str(source),
            "-o", str(tmp_path / "out.bin"),
            "-l", str(tmp_path / "out.lst"),
            "-s", str(tmp_path / "out.sym"),
        ])
        assert result.exit_code == ExitCode.SUCCESS
        assert (tmp_path / "out.bin").exists()
        assert "START" in (tmp_path / "out.sym").read_text()
        assert "00201  1203" in (tmp_path / "out.lst").read_text()

    def test_verbose(self, runner, tmp_path):
        """-v reports what was written."""
        source = write_source(tmp_path, GOOD_SOURCE)
        result = runner.invoke(main, [str(source), "-v"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "Wrote 4 words" in result.output
        assert "Defined 2 symbols" in result.output

    def test_errors_exit_one(self, runner, tmp_path):
        """Error diagnostics give exit code 1 and no tape."""
        source = write_source(tmp_path, OFF_PAGE_SOURCE)
        result = runner.invoke(main, [str(source), "-l", str(tmp_path / "out.lst")])
        assert result.exit_code == ExitCode.ASSEMBLY_ERROR
        assert ": W " in result.output
        assert "1 errors, 0 warnings" in result.output
        assert not (tmp_path / "prog.bin").exists()
        assert (tmp_path / "out.lst").exists()

    def test_nowarn_option(self, runner, tmp_path):
        """-W suppresses a code for the whole file."""
        source = write_source(tmp_path, OFF_PAGE_SOURCE)
        result = runner.invoke(main, [str(source), "-W", "W"])
        assert result.exit_code == ExitCode.SUCCESS

    def test_nowarn_from_env(self, runner, tmp_path, monkeypatch):
        """PDP8ASM_NOWARN suppresses codes too."""
        monkeypatch.setenv("PDP8ASM_NOWARN", "W")
        source = write_source(tmp_path, OFF_PAGE_SOURCE)
        result = runner.invoke(main, [str(source)])
        assert result.exit_code == ExitCode.SUCCESS

    def test_bad_nowarn_code(self, runner, tmp_path):
        """Unknown -W codes are rejected."""
        source = write_source(tmp_path, GOOD_SOURCE)
        result = runner.invoke(main, [str(source), "-W", "Q"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_cpu_option(self, runner, tmp_path):
        """--cpu selects the instruction set."""
        source = write_source(tmp_path, "        PAC1\n")
        assert runner.invoke(main, [str(source)]).exit_code == ExitCode.ASSEMBLY_ERROR
        assert runner.invoke(main, [str(source), "--cpu", "hm6120"]).exit_code == ExitCode.SUCCESS

    def test_warnings_do_not_fail(self, runner, tmp_path):
        """F alone still succeeds."""
        source = write_source(tmp_path, "        .FIELD 10\n        HLT\n")
        result = runner.invoke(main, [str(source)])
        assert result.exit_code == ExitCode.SUCCESS
        assert ": F " in result.output
