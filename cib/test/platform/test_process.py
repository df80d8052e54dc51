"""Tests for cib.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

from cib.core.pipeline import OutputMode
from cib.core.result import Err, Ok
from cib.platform.process import (
    ExitFailed,
    ProcessRunner,
    ProgramNotFound,
    StartFailed,
    child_env,
)

PYTHON = sys.executable


def runner_for(tmp_path: Path, **kwargs) -> ProcessRunner:
    base_env = {"PATH": str(Path(PYTHON).parent), "TMP": str(tmp_path), "TEMP": str(tmp_path)}
    return ProcessRunner(base_env, cwd=tmp_path, **kwargs)


class TestChildEnv:
    def test_adds_propagated_variables(self) -> None:
        env = child_env({"REGISTRY": "docker.io"}, {"PATH": "/bin", "TMP": "/tmp", "HOME": "/root"})
        assert env == {"REGISTRY": "docker.io", "PATH": "/bin", "TMP": "/tmp"}

    def test_base_wins_over_caller(self) -> None:
        env = child_env({"PATH": "/evil"}, {"PATH": "/bin"})
        assert env["PATH"] == "/bin"

    def test_absent_base_variable_not_invented(self) -> None:
        assert child_env({}, {}) == {}


class TestProcessRunner:
    """Test running real processes."""

    def test_capture_output(self, tmp_path: Path) -> None:
        result = runner_for(tmp_path).run(PYTHON, ["-c", "print('hello')"], {})

        assert isinstance(result, Ok)
        assert result.value.strip() == "hello"

    def test_stderr_interleaved_into_output(self, tmp_path: Path) -> None:
        result = runner_for(tmp_path).run(
            PYTHON, ["-c", "import sys; sys.stderr.write('warn\\n')"], {}
        )

        assert isinstance(result, Ok)
        assert "warn" in result.value

    def test_empty_env_still_gets_path_tmp_and_temp(self, tmp_path: Path) -> None:
        code = "import os; print(os.environ.get('PATH')); print(os.environ.get('TMP')); "
        code += "print(os.environ.get('TEMP'))"
        result = runner_for(tmp_path).run(PYTHON, ["-c", code], {})

        assert isinstance(result, Ok)
        lines = result.value.splitlines()
        assert lines[0] == str(Path(PYTHON).parent)
        assert lines[1] == str(tmp_path)
        assert lines[2] == str(tmp_path)

    def test_only_given_variables_reach_child(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("CIB_LEAK_CHECK", "leaked")
        code = "import os; print(os.environ.get('CIB_LEAK_CHECK', 'absent'), os.environ['TAG'])"
        result = runner_for(tmp_path).run(PYTHON, ["-c", code], {"TAG": "latest"})

        assert isinstance(result, Ok)
        assert result.value.split() == ["absent", "latest"]

    def test_stdin_is_piped(self, tmp_path: Path) -> None:
        code = "import sys; print(sys.stdin.read().upper())"
        result = runner_for(tmp_path).run(PYTHON, ["-c", code], {}, stdin="secret")

        assert isinstance(result, Ok)
        assert result.value.strip() == "SECRET"

    def test_runs_in_working_directory(self, tmp_path: Path) -> None:
        result = runner_for(tmp_path).run(PYTHON, ["-c", "import os; print(os.getcwd())"], {})

        assert isinstance(result, Ok)
        assert Path(result.value.strip()).resolve() == tmp_path.resolve()

    def test_nonzero_exit_keeps_output(self, tmp_path: Path) -> None:
        code = "import sys; print('partial'); sys.exit(3)"
        result = runner_for(tmp_path).run(PYTHON, ["-c", code], {})

        assert isinstance(result, Err)
        assert isinstance(result.error, ExitFailed)
        assert result.error.returncode == 3
        assert "partial" in result.error.output
        assert "exit 3" in str(result.error)

    def test_program_not_found(self, tmp_path: Path) -> None:
        result = runner_for(tmp_path).run("nonexistent_command_12345", [], {})

        assert isinstance(result, Err)
        assert result.error == ProgramNotFound("nonexistent_command_12345")

    def test_stream_mode_returns_empty_output(self, tmp_path: Path) -> None:
        runner = runner_for(tmp_path, mode=OutputMode.STREAM)
        result = runner.run(PYTHON, ["-c", "print('to the terminal')"], {})

        assert result == Ok("")

    def test_mode_override_per_call(self, tmp_path: Path) -> None:
        runner = runner_for(tmp_path, mode=OutputMode.STREAM)
        result = runner.run(PYTHON, ["-c", "print('captured')"], {}, mode=OutputMode.CAPTURE)

        assert isinstance(result, Ok)
        assert result.value.strip() == "captured"

    def test_start_failure(self, tmp_path: Path) -> None:
        result = runner_for(tmp_path).run(PYTHON, ["-c", "pass"], {}, cwd=tmp_path / "missing")

        assert isinstance(result, Err)
        assert isinstance(result.error, StartFailed)
