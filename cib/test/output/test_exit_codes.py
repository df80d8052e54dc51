"""Tests for cib.output.errors module."""

from __future__ import annotations

from pathlib import Path

import pytest

from cib.archive.context import ContextError
from cib.build.errors import BuildFailed, DockerApiError, PrepareFailed, PushFailed, TestFailed
from cib.core.errors import ErrorCode
from cib.core.failures import CredentialMissing, DecodeError, FileError, ReleaseNotFound, TransportError
from cib.output.errors import cause_exit_code, stage_error_exit_code
from cib.platform.process import ExitFailed, ProgramNotFound


@pytest.mark.parametrize(
    ("cause", "code"),
    [
        (TransportError(url="u", status=500, message="x"), ErrorCode.NETWORK_ERROR),
        (ReleaseNotFound(repo="r", version="1"), ErrorCode.NETWORK_ERROR),
        (DecodeError(source="s", message="m"), ErrorCode.IO_ERROR),
        (FileError(path=Path("p"), operation="open", message="m"), ErrorCode.IO_ERROR),
        (ContextError(directory=Path("d"), message="m"), ErrorCode.IO_ERROR),
        (CredentialMissing(registry="r", variable="U"), ErrorCode.ENV_ERROR),
        (ProgramNotFound("docker"), ErrorCode.ENV_ERROR),
        (ExitFailed(command=("docker",), returncode=1, output=""), ErrorCode.BUILD_ERROR),
        (DockerApiError(operation="push", message="denied"), ErrorCode.BUILD_ERROR),
    ],
)
def test_cause_exit_code(cause: object, code: ErrorCode) -> None:
    assert cause_exit_code(cause) == int(code)


class TestStageErrorExitCode:
    def test_prepare(self) -> None:
        error = PrepareFailed(version="1", cause=ReleaseNotFound(repo="r", version="1"))
        assert stage_error_exit_code(error) == int(ErrorCode.NETWORK_ERROR)

    def test_unit_stages_use_cause(self) -> None:
        missing = CredentialMissing(registry="r", variable="U")
        exited = ExitFailed(command=("docker",), returncode=1, output="")
        assert stage_error_exit_code(PushFailed("1", "t", "r", missing)) == int(ErrorCode.ENV_ERROR)
        assert stage_error_exit_code(TestFailed("1", "t", "r", exited)) == int(ErrorCode.BUILD_ERROR)
        assert stage_error_exit_code(BuildFailed("1", "t", "r", exited)) == int(ErrorCode.BUILD_ERROR)
