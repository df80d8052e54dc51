from __future__ import annotations

from pathlib import Path

import pytest
import typer
from docker.errors import DockerException
from typer.testing import CliRunner

import cib.cli.app as app_module
from cib.build.compose import ComposeBackend, ComposeIntegrationStage
from cib.build.errors import BuildFailed, DockerApiError, PushFailed
from cib.cli.context import CLIContext, build_context, build_orchestrator
from cib.core.errors import ErrorCode
from cib.core.failures import CredentialMissing
from cib.core.manifest import BuildManifest, Registry
from cib.core.pipeline import Backend, Pipeline
from cib.core.result import Err, Ok, Result
from cib.core.settings import BuildSettings
from cib.output.console import MockConsole
from cib.output.report import ExecutionReport, print_report

MANIFEST = """\
revision: "20240101"
versions:
  1.2.3: [stable]
registries:
  example.com:
    user_variable: U
    password_variable: P
"""

runner = CliRunner()

FAILED = BuildFailed("1.2.3", "stable", "example.com", DockerApiError(operation="build", message="boom"))


class FakeOrchestrator:
    def __init__(self, result: Result[int, PushFailed]) -> None:
        self.result = result
        self.manifests: list[BuildManifest] = []

    def run(self, manifest: BuildManifest) -> Result[int, PushFailed]:
        self.manifests.append(manifest)
        return self.result


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "build.yaml").write_text(MANIFEST, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def install_orchestrator(monkeypatch: pytest.MonkeyPatch, fake: FakeOrchestrator) -> dict[str, CLIContext]:
    seen: dict[str, CLIContext] = {}

    def fake_build_orchestrator(ctx: CLIContext) -> FakeOrchestrator:
        seen["ctx"] = ctx
        return fake

    monkeypatch.setattr(app_module, "build_orchestrator", fake_build_orchestrator)
    return seen


def test_build_success(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeOrchestrator(Ok(2))
    seen = install_orchestrator(monkeypatch, fake)

    result = runner.invoke(app_module.app, [])

    assert result.exit_code == 0
    assert "2 image(s) built" in result.output
    assert "pushed" not in result.output
    assert seen["ctx"].settings.push is False
    assert fake.manifests[0].versions == {"1.2.3": ["stable"]}


def test_push_flag(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen = install_orchestrator(monkeypatch, FakeOrchestrator(Ok(2)))

    result = runner.invoke(app_module.app, ["--push"])

    assert result.exit_code == 0
    assert "built and pushed" in result.output
    assert seen["ctx"].settings.push is True


def test_stage_failure_exit_code(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    error = PushFailed("1.2.3", "stable", "example.com", CredentialMissing("example.com", "U"))
    install_orchestrator(monkeypatch, FakeOrchestrator(Err(error)))

    result = runner.invoke(app_module.app, ["--push"])

    assert result.exit_code == int(ErrorCode.ENV_ERROR)
    assert "credential variable U for example.com is not set" in result.output


def test_missing_manifest(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app_module.app, [])

    assert result.exit_code == int(ErrorCode.USER_ERROR)
    assert "Manifest not found" in result.output


def test_unknown_option_rejected(workdir: Path) -> None:
    result = runner.invoke(app_module.app, ["--force"])
    assert result.exit_code != 0


class TestBuildContext:
    def test_reads_manifest_and_environment(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_cli")

        ctx = build_context(push=True, workdir=workdir)

        assert ctx.manifest.registries["example.com"] == Registry("example.com", "U", "P")
        assert ctx.settings.github_token == "ghp_cli"
        assert ctx.settings.workdir == workdir

    def test_report_colored_under_ci(
        self, workdir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        monkeypatch.setenv("TERM", "xterm-256color")
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TTY_COMPATIBLE", raising=False)
        ctx = build_context(push=False, workdir=workdir)

        print_report(ExecutionReport("1.2.3", "example.com", "stable", "out\n", error=FAILED), ctx.console)

        out = capsys.readouterr().out
        assert "::group::" in out
        assert "\x1b[" in out

    def test_report_plain_outside_ci(
        self, workdir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        for name in ("GITHUB_ACTIONS", "CI", "FORCE_COLOR", "TTY_COMPATIBLE"):
            monkeypatch.delenv(name, raising=False)
        ctx = build_context(push=False, workdir=workdir)

        print_report(ExecutionReport("1.2.3", "example.com", "stable", "out\n", error=FAILED), ctx.console)

        out = capsys.readouterr().out
        assert out.startswith("::group::[FAILED] 1.2.3 / stable / example.com\n")
        assert "\x1b[" not in out


class TestBuildOrchestrator:
    def _ctx(self, tmp_path: Path, pipeline: Pipeline) -> CLIContext:
        manifest = BuildManifest(revision="1", versions={}, registries={}, pipeline=pipeline)
        settings = BuildSettings(workdir=tmp_path, pipeline=pipeline)
        return CLIContext(manifest=manifest, settings=settings, console=MockConsole())

    def test_external_backend_with_tests(self, tmp_path: Path) -> None:
        orch = build_orchestrator(self._ctx(tmp_path, Pipeline()))

        assert isinstance(orch._backend, ComposeBackend)
        assert isinstance(orch._test_stage, ComposeIntegrationStage)

    def test_tests_disabled(self, tmp_path: Path) -> None:
        orch = build_orchestrator(self._ctx(tmp_path, Pipeline(test=False)))
        assert orch._test_stage is None

    def test_native_backend_without_daemon(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def no_daemon() -> None:
            raise DockerException("Error while fetching server API version")

        monkeypatch.setattr("docker.from_env", no_daemon)

        with pytest.raises(typer.Exit) as exc_info:
            build_orchestrator(self._ctx(tmp_path, Pipeline(backend=Backend.NATIVE)))

        assert exc_info.value.exit_code == int(ErrorCode.ENV_ERROR)
