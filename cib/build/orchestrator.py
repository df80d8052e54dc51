"""Build / test / push orchestration.

For every version in the manifest the backend first prepares the version
(for the native backend: fetch and unpack the release), then each unit
(expanded tag x registry) goes through:

1. build
2. integration test, when a test stage is configured (``down`` always runs)
3. login + push, when pushing is enabled
4. the report block, whatever happened

The first failing unit stops the whole run.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

from cib.build.compose import command_output
from cib.build.errors import (
    BuildFailed,
    PrepareCause,
    PrepareFailed,
    PushCause,
    PushFailed,
    StageError,
    TestFailed,
)
from cib.build.units import BuildUnit, plan_units
from cib.core.failures import CredentialMissing
from cib.core.pipeline import OutputMode
from cib.core.result import Err, Ok, Result
from cib.core.settings import resolve_credential
from cib.output.report import ExecutionReport, print_report

if TYPE_CHECKING:
    from cib.build.errors import BuildCause
    from cib.core.manifest import BuildManifest, Registry
    from cib.core.settings import BuildSettings
    from cib.output.console import ConsoleProtocol
    from cib.platform.process import ProcessError

__all__ = ["ImageBackend", "Orchestrator", "IntegrationStage"]


class ImageBackend(Protocol):
    def prepare(self, version: str) -> Result[None, PrepareCause]: ...

    def build(self, unit: BuildUnit) -> Result[str, BuildCause]: ...

    def login(self, unit: BuildUnit, username: str, password: str) -> Result[str, PushCause]: ...

    def push(self, unit: BuildUnit) -> Result[str, PushCause]: ...


class IntegrationStage(Protocol):
    def run(self, unit: BuildUnit) -> tuple[str, Result[None, ProcessError]]: ...


class Orchestrator:
    """Runs every unit of a manifest through the configured pipeline.

    Args:
        settings: Run settings (push flag, output mode, image name)
        backend: Build/push implementation
        console: Where progress and report blocks go
        test_stage: Integration test stage, or None to skip testing
        environ: Where registry credentials are looked up (defaults to ours)
    """

    def __init__(
        self,
        settings: BuildSettings,
        backend: ImageBackend,
        console: ConsoleProtocol,
        *,
        test_stage: IntegrationStage | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = settings
        self._backend = backend
        self._console = console
        self._test_stage = test_stage
        self._environ = environ

    def run(self, manifest: BuildManifest) -> Result[int, StageError]:
        """Build every version, sorted. Returns the number of units processed."""
        done = 0
        for version in sorted(manifest.versions):
            result = self.build_version(manifest, version)
            if isinstance(result, Err):
                return result
            done += result.value
        return Ok(done)

    def build_version(self, manifest: BuildManifest, version: str) -> Result[int, StageError]:
        self._console.header(f"Version {version}")

        prepared = self._backend.prepare(version)
        if isinstance(prepared, Err):
            return prepared.map_err(lambda cause: PrepareFailed(version=version, cause=cause))

        units = plan_units(
            version,
            manifest.versions[version],
            manifest.registries,
            revision=manifest.revision,
            image=self._settings.image_name,
        )
        for unit in units:
            outcome = self._run_unit(unit, manifest.registries[unit.registry])
            if isinstance(outcome, Err):
                return outcome
        return Ok(len(units))

    def _run_unit(self, unit: BuildUnit, registry: Registry) -> Result[None, StageError]:
        streaming = self._settings.pipeline.output == OutputMode.STREAM
        if streaming:
            self._console.group(unit.label)

        output: list[str] = []
        error = self._stages(unit, registry, output)

        report = ExecutionReport(
            version=unit.version,
            registry=unit.registry,
            tag=unit.tag,
            output="".join(output),
            error=error,
        )
        print_report(report, self._console, opened=streaming)

        if error is not None:
            return Err(error)
        return Ok(None)

    def _stages(self, unit: BuildUnit, registry: Registry, output: list[str]) -> StageError | None:
        built = self._backend.build(unit)
        output.append(command_output(built))
        if isinstance(built, Err):
            return BuildFailed(unit.version, unit.tag, unit.registry, built.error)

        if self._test_stage is not None:
            test_output, tested = self._test_stage.run(unit)
            output.append(test_output)
            if isinstance(tested, Err):
                return TestFailed(unit.version, unit.tag, unit.registry, tested.error)

        if not self._settings.push:
            return None

        pushed = self._push(unit, registry, output)
        if isinstance(pushed, Err):
            return PushFailed(unit.version, unit.tag, unit.registry, pushed.error)
        return None

    def _push(self, unit: BuildUnit, registry: Registry, output: list[str]) -> Result[None, PushCause]:
        username = resolve_credential(registry.user_variable, self._environ)
        if username is None:
            return Err(CredentialMissing(registry=registry.name, variable=registry.user_variable))
        password = resolve_credential(registry.password_variable, self._environ)
        if password is None:
            return Err(CredentialMissing(registry=registry.name, variable=registry.password_variable))

        logged_in = self._backend.login(unit, username, password)
        output.append(command_output(logged_in))
        if isinstance(logged_in, Err):
            return logged_in

        pushed = self._backend.push(unit)
        output.append(command_output(pushed))
        if isinstance(pushed, Err):
            return pushed
        return Ok(None)
