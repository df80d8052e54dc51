"""Exit code mapping for build failures."""

from __future__ import annotations

from cib.archive.context import ContextError
from cib.build.errors import (
    BuildFailed,
    DockerApiError,
    PrepareFailed,
    PushFailed,
    StageError,
    TestFailed,
)
from cib.core.errors import ErrorCode
from cib.core.failures import (
    CredentialMissing,
    DecodeError,
    FileError,
    ReleaseNotFound,
    TransportError,
)
from cib.platform.process import ExitFailed, ProgramNotFound, StartFailed

__all__ = ["cause_exit_code", "stage_error_exit_code"]


def cause_exit_code(cause: object) -> int:
    """Exit code for the underlying cause of a stage failure."""
    match cause:
        case TransportError() | ReleaseNotFound():
            return int(ErrorCode.NETWORK_ERROR)
        case DecodeError() | FileError() | ContextError():
            return int(ErrorCode.IO_ERROR)
        case CredentialMissing() | ProgramNotFound():
            return int(ErrorCode.ENV_ERROR)
        case StartFailed() | ExitFailed() | DockerApiError():
            return int(ErrorCode.BUILD_ERROR)
    return int(ErrorCode.BUILD_ERROR)


def stage_error_exit_code(error: StageError) -> int:
    match error:
        case PrepareFailed(cause=cause):
            return cause_exit_code(cause)
        case BuildFailed(cause=cause) | TestFailed(cause=cause) | PushFailed(cause=cause):
            return cause_exit_code(cause)
    return int(ErrorCode.BUILD_ERROR)
