"""Low-level failure types shared by the download, extraction and push steps.

Stage-level wrappers (build/test/push) live in ``cib.build.errors``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

__all__ = [
    "CredentialMissing",
    "DecodeError",
    "FileError",
    "FileOperation",
    "ReleaseNotFound",
    "TransportError",
]


@dataclass(frozen=True, slots=True)
class TransportError:
    """Network failure or unexpected HTTP status.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Status text or network error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class ReleaseNotFound:
    """No release of ``repo`` is tagged ``version`` or ``v<version>``."""

    repo: str
    version: str

    def __str__(self) -> str:
        return f"version {self.version} not found in {self.repo} releases"


@dataclass(frozen=True, slots=True)
class DecodeError:
    """Malformed JSON response or corrupt archive."""

    source: str
    message: str

    def __str__(self) -> str:
        return f"failed to decode {self.source}: {self.message}"


FileOperation = Literal["create", "open", "copy"]


@dataclass(frozen=True, slots=True)
class FileError:
    """Local filesystem failure while creating, opening or filling a file."""

    path: Path
    operation: FileOperation
    message: str

    def __str__(self) -> str:
        return f"failed to {self.operation} {self.path}: {self.message}"


@dataclass(frozen=True, slots=True)
class CredentialMissing:
    """A registry credential variable is unset or empty."""

    registry: str
    variable: str

    def __str__(self) -> str:
        return f"credential variable {self.variable} for {self.registry} is not set"
