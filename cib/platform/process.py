"""External program execution with Result-based error handling.

Wraps ``subprocess.run`` for the docker / compose invocations of a build:

- the program is resolved to an absolute path up front
- the child gets exactly the environment the caller built, plus PATH, TMP
  and TEMP from our own environment
- output is either streamed live or captured for the grouped report
- secrets go in through stdin, never through argv

Usage:
    runner = ProcessRunner(mode=OutputMode.CAPTURE)
    result = runner.run("docker", ["compose", "build"], {"REGISTRY": "docker.io"})
    match result:
        case Ok(output):
            print(output)
        case Err(error):
            print(f"Failed: {error}")
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from cib.core.pipeline import OutputMode
from cib.core.result import Err, Ok, Result
from cib.core.settings import PROPAGATED_ENV_VARS

__all__ = [
    "ExitFailed",
    "ProcessError",
    "ProcessRunner",
    "ProgramNotFound",
    "StartFailed",
    "child_env",
]


def _format_command(command: tuple[str, ...]) -> str:
    cmd_str = " ".join(command[:3])
    if len(command) > 3:
        cmd_str += " ..."
    return cmd_str


@dataclass(frozen=True, slots=True)
class ProgramNotFound:
    """The program is not on the search path."""

    program: str

    def __str__(self) -> str:
        return f"{self.program}: not found on PATH"


@dataclass(frozen=True, slots=True)
class StartFailed:
    """The program was found but could not be started."""

    command: tuple[str, ...]
    message: str

    def __str__(self) -> str:
        return f"{_format_command(self.command)} could not be started ({self.message})"


@dataclass(frozen=True, slots=True)
class ExitFailed:
    """The program ran and exited non-zero.

    Attributes:
        command: Full argv, program resolved to an absolute path
        returncode: Exit status
        output: Captured combined output (empty in stream mode)
    """

    command: tuple[str, ...]
    returncode: int
    output: str

    def __str__(self) -> str:
        return f"{_format_command(self.command)} failed (exit {self.returncode})"


ProcessError = ProgramNotFound | StartFailed | ExitFailed


def child_env(env: Mapping[str, str], base_env: Mapping[str, str]) -> dict[str, str]:
    """Build a child environment from the caller's variables.

    PATH, TMP and TEMP are copied from ``base_env`` when present there, and
    take precedence over the caller's values.
    """
    out = dict(env)
    for key in PROPAGATED_ENV_VARS:
        value = base_env.get(key)
        if value is not None:
            out[key] = value
    return out


class ProcessRunner:
    """Runs external programs synchronously.

    Args:
        base_env: Environment PATH/TMP/TEMP are taken from (defaults to ours)
        mode: Default output mode for ``run``
        cwd: Default working directory
    """

    def __init__(
        self,
        base_env: Mapping[str, str] | None = None,
        *,
        mode: OutputMode = OutputMode.CAPTURE,
        cwd: Path | None = None,
    ) -> None:
        if base_env is None:
            base_env = {k: os.environ[k] for k in PROPAGATED_ENV_VARS if k in os.environ}
        self._base_env = dict(base_env)
        self._mode = mode
        self._cwd = cwd

    def which(self, program: str) -> str | None:
        return shutil.which(program, path=self._base_env.get("PATH"))

    def run(
        self,
        program: str,
        args: Sequence[str],
        env: Mapping[str, str],
        *,
        stdin: str | None = None,
        cwd: Path | None = None,
        mode: OutputMode | None = None,
    ) -> Result[str, ProcessError]:
        """Execute ``program`` with ``args`` and wait for it.

        Args:
            program: Program name, looked up on PATH
            args: Arguments (without the program itself)
            env: Variables for the child; PATH/TMP/TEMP are added
            stdin: Text written to the child's stdin (credentials)
            cwd: Working directory (defaults to the runner's)
            mode: Output mode override

        Returns:
            Ok(captured output, "" when streaming) or Err(ProcessError)
        """
        resolved = self.which(program)
        if resolved is None:
            return Err(ProgramNotFound(program))

        command = (resolved, *args)
        effective_mode = mode or self._mode
        workdir = cwd or self._cwd
        capture = effective_mode == OutputMode.CAPTURE

        try:
            proc = subprocess.run(
                command,
                cwd=str(workdir) if workdir else None,
                env=child_env(env, self._base_env),
                input=stdin,
                stdin=subprocess.DEVNULL if stdin is None else None,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.STDOUT if capture else None,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            return Err(StartFailed(command=command, message=str(e)))

        output = (proc.stdout or "") if capture else ""
        if proc.returncode != 0:
            return Err(ExitFailed(command=command, returncode=proc.returncode, output=output))
        return Ok(output)
