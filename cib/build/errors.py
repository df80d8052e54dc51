"""Stage-level build errors.

Each stage wraps whatever went wrong underneath (a process exit, a download,
a missing credential) together with the version/tag/registry it was working
on, so the top level can both report precisely and branch on the kind.
"""

from __future__ import annotations

from dataclasses import dataclass

from cib.archive.context import ContextError
from cib.archive.extract import ArchiveError
from cib.core.failures import CredentialMissing, FileError
from cib.github.releases import ReleaseError
from cib.platform.process import ProcessError

__all__ = [
    "BuildCause",
    "BuildFailed",
    "DockerApiError",
    "PrepareCause",
    "PrepareFailed",
    "PushCause",
    "PushFailed",
    "StageError",
    "TestFailed",
]


@dataclass(frozen=True, slots=True)
class DockerApiError:
    """The docker daemon rejected or aborted a request."""

    operation: str
    message: str

    def __str__(self) -> str:
        return f"docker {self.operation} failed: {self.message}"


PrepareCause = ReleaseError | FileError | ArchiveError
BuildCause = ProcessError | DockerApiError | ContextError
PushCause = ProcessError | DockerApiError | CredentialMissing


@dataclass(frozen=True, slots=True)
class PrepareFailed:
    """Fetching or unpacking the release for ``version`` failed."""

    version: str
    cause: PrepareCause

    def __str__(self) -> str:
        return f"preparing build context for {self.version} failed: {self.cause}"


@dataclass(frozen=True, slots=True)
class BuildFailed:
    version: str
    tag: str
    registry: str
    cause: BuildCause

    def __str__(self) -> str:
        return f"build of {self.version} ({self.registry}, {self.tag}) failed: {self.cause}"


@dataclass(frozen=True, slots=True)
class TestFailed:
    version: str
    tag: str
    registry: str
    cause: ProcessError

    __test__ = False  # not a pytest test class

    def __str__(self) -> str:
        return f"tests of {self.version} ({self.registry}, {self.tag}) failed: {self.cause}"


@dataclass(frozen=True, slots=True)
class PushFailed:
    version: str
    tag: str
    registry: str
    cause: PushCause

    def __str__(self) -> str:
        return f"push of {self.version} ({self.registry}, {self.tag}) failed: {self.cause}"


StageError = PrepareFailed | BuildFailed | TestFailed | PushFailed
