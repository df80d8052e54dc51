"""Exit codes for the build CLI.

The numeric values are the process exit status and should remain stable,
since CI jobs branch on them:
- 0: Success
- 1: User error (bad manifest, invalid arguments)
- 2: Environment error (missing credentials, missing docker CLI)
- 3: Build error (image build, integration test or push failed)
- 4: Network error (release lookup or download failed)
- 5: I/O error (archive unreadable, files not writable)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the build CLI."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
