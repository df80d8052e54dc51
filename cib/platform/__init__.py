"""Platform abstraction layer."""

from .process import (
    ExitFailed,
    ProcessError,
    ProcessRunner,
    ProgramNotFound,
    StartFailed,
    child_env,
)

__all__ = [
    "ExitFailed",
    "ProcessError",
    "ProcessRunner",
    "ProgramNotFound",
    "StartFailed",
    "child_env",
]
