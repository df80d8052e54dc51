"""Run settings assembled once at startup.

Components receive a ``BuildSettings`` instead of reading ``os.environ``
themselves. The one exception is registry credentials, which are looked up
through ``resolve_credential`` at push time so they never sit in the settings
object or in a report.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .pipeline import Pipeline

__all__ = [
    "BuildSettings",
    "CI_ENV_VARS",
    "DEFAULT_IMAGE_NAME",
    "DEFAULT_RELEASE_REPO",
    "PROPAGATED_ENV_VARS",
    "resolve_credential",
]

DEFAULT_RELEASE_REPO = "containerssh/containerssh"
DEFAULT_IMAGE_NAME = "containerssh/containerssh"

# Always handed to child processes, whatever environment the caller builds.
PROPAGATED_ENV_VARS = ("PATH", "TMP", "TEMP")

# Set by CI runners; output there is not a TTY but the log viewer renders colors.
CI_ENV_VARS = ("GITHUB_ACTIONS", "CI")


@dataclass(frozen=True, slots=True)
class BuildSettings:
    """Everything a build run needs besides the manifest itself.

    Attributes:
        push: Log in and push after building (``--push``)
        github_token: Bearer token for the GitHub API and downloads (may be empty)
        workdir: Directory holding build.yaml, the compose file and the build context
        pipeline: Backend/test/output capability set
        release_repo: GitHub repository publishing the release tarballs
        image_name: Image path below the registry host
        base_env: Snapshot of the variables propagated to child processes
        ci: Running under a CI runner (force colored output)
    """

    push: bool = False
    github_token: str = ""
    workdir: Path = field(default_factory=Path.cwd)
    pipeline: Pipeline = field(default_factory=Pipeline)
    release_repo: str = DEFAULT_RELEASE_REPO
    image_name: str = DEFAULT_IMAGE_NAME
    base_env: Mapping[str, str] = field(default_factory=dict)
    ci: bool = False

    @classmethod
    def from_environ(
        cls,
        *,
        push: bool,
        workdir: Path,
        pipeline: Pipeline,
        environ: Mapping[str, str] | None = None,
    ) -> BuildSettings:
        env = os.environ if environ is None else environ
        return cls(
            push=push,
            github_token=env.get("GITHUB_TOKEN", ""),
            workdir=workdir,
            pipeline=pipeline,
            base_env={k: env[k] for k in PROPAGATED_ENV_VARS if k in env},
            ci=any(env.get(k, "").lower() in ("true", "1") for k in CI_ENV_VARS),
        )

    @property
    def context_dir(self) -> Path:
        """Image build context for the native backend."""
        return self.workdir / "containerssh"


def resolve_credential(variable: str, environ: Mapping[str, str] | None = None) -> str | None:
    """Return the value of a credential variable, or None if unset or empty."""
    env = os.environ if environ is None else environ
    value = env.get(variable)
    if not value:
        return None
    return value
