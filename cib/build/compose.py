"""Compose-driven build, integration test and push.

The compose file in the working directory references the variables set by
``unit_env`` (version, tag, registry, GitHub token) and does the actual image
build. This module only drives ``docker compose`` and ``docker login``.
"""

from __future__ import annotations

from pathlib import Path

from cib.build.units import BuildUnit
from cib.core.result import Err, Ok, Result
from cib.platform.process import ExitFailed, ProcessError, ProcessRunner

__all__ = [
    "ComposeBackend",
    "ComposeIntegrationStage",
    "SENTINEL_SERVICE",
    "command_output",
    "unit_env",
]

DOCKER = "docker"

# Service whose exit code decides whether the integration tests passed.
SENTINEL_SERVICE = "sut"


def unit_env(unit: BuildUnit, github_token: str) -> dict[str, str]:
    return {
        "CONTAINERSSH_VERSION": unit.version,
        "CONTAINERSSH_TAG": unit.tag,
        "GITHUB_TOKEN": github_token,
        "REGISTRY": unit.registry,
    }


class ComposeBackend:
    """Builds and pushes through ``docker compose``."""

    def __init__(self, runner: ProcessRunner, *, github_token: str = "", workdir: Path | None = None) -> None:
        self._runner = runner
        self._github_token = github_token
        self._workdir = workdir

    def prepare(self, version: str) -> Ok[None]:
        # The compose build fetches the release itself.
        return Ok(None)

    def build(self, unit: BuildUnit) -> Result[str, ProcessError]:
        return self._compose(unit, ["build"])

    def login(self, unit: BuildUnit, username: str, password: str) -> Result[str, ProcessError]:
        """Log in with the password piped through stdin, never on argv."""
        return self._runner.run(
            DOCKER,
            ["login", "--username", username, "--password-stdin", unit.registry],
            unit_env(unit, self._github_token),
            stdin=password,
            cwd=self._workdir,
        )

    def push(self, unit: BuildUnit) -> Result[str, ProcessError]:
        return self._compose(unit, ["push"])

    def _compose(self, unit: BuildUnit, args: list[str]) -> Result[str, ProcessError]:
        return self._runner.run(
            DOCKER,
            ["compose", *args],
            unit_env(unit, self._github_token),
            cwd=self._workdir,
        )


class ComposeIntegrationStage:
    """Runs the compose stack until the sentinel service exits, then tears it down."""

    def __init__(self, runner: ProcessRunner, *, github_token: str = "", workdir: Path | None = None) -> None:
        self._runner = runner
        self._github_token = github_token
        self._workdir = workdir

    def run(self, unit: BuildUnit) -> tuple[str, Result[None, ProcessError]]:
        """Run ``up`` then, whatever happened, ``down``.

        Returns:
            The combined output of both commands and the outcome: the ``up``
            failure if there was one, otherwise the ``down`` failure, if any.
        """
        env = unit_env(unit, self._github_token)
        up = self._runner.run(
            DOCKER,
            ["compose", "up", "--abort-on-container-exit", "--exit-code-from", SENTINEL_SERVICE],
            env,
            cwd=self._workdir,
        )
        down = self._runner.run(DOCKER, ["compose", "down"], env, cwd=self._workdir)

        output = command_output(up) + command_output(down)
        if isinstance(up, Err):
            return output, up
        if isinstance(down, Err):
            return output, down
        return output, Ok(None)


def command_output(result: Result[str, object]) -> str:
    """Captured output of a run, successful or not."""
    match result:
        case Ok(text):
            return text
        case Err(ExitFailed(output=text)):
            return text
        case _:
            return ""
