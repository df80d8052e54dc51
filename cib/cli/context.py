from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from cib.build.compose import ComposeBackend, ComposeIntegrationStage
from cib.build.orchestrator import ImageBackend, Orchestrator
from cib.core.errors import ErrorCode
from cib.core.manifest import MANIFEST_FILE, BuildManifest, load_manifest
from cib.core.pipeline import Backend
from cib.core.result import Err
from cib.core.settings import BuildSettings
from cib.output.console import ConsoleProtocol, RichConsole
from cib.platform.process import ProcessRunner


@dataclass(frozen=True, slots=True)
class CLIContext:
    manifest: BuildManifest
    settings: BuildSettings
    console: ConsoleProtocol


def build_context(*, push: bool, workdir: Path | None = None) -> CLIContext:
    root = workdir or Path.cwd()
    manifest_result = load_manifest(root / MANIFEST_FILE)
    if isinstance(manifest_result, Err):
        typer.echo(f"error: {manifest_result.error}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    manifest = manifest_result.value
    settings = BuildSettings.from_environ(push=push, workdir=root, pipeline=manifest.pipeline)
    console = RichConsole(force_terminal=True if settings.ci else None)
    return CLIContext(manifest=manifest, settings=settings, console=console)


def _native_backend(settings: BuildSettings, console: ConsoleProtocol) -> ImageBackend:
    import docker
    from docker.errors import DockerException

    from cib.build.native import NativeBackend
    from cib.github.http import RealHttpClient

    try:
        client = docker.from_env()
    except DockerException as e:
        typer.echo(f"error: failed to set up docker client: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return NativeBackend(client, RealHttpClient(settings.github_token), settings, console)


def build_orchestrator(ctx: CLIContext) -> Orchestrator:
    """Wire the backend and test stage selected by the manifest's pipeline."""
    settings = ctx.settings
    runner = ProcessRunner(settings.base_env, mode=settings.pipeline.output, cwd=settings.workdir)

    backend: ImageBackend
    if settings.pipeline.backend == Backend.NATIVE:
        backend = _native_backend(settings, ctx.console)
    else:
        backend = ComposeBackend(runner, github_token=settings.github_token, workdir=settings.workdir)

    test_stage = None
    if settings.pipeline.test:
        test_stage = ComposeIntegrationStage(
            runner, github_token=settings.github_token, workdir=settings.workdir
        )

    return Orchestrator(settings, backend, ctx.console, test_stage=test_stage)
