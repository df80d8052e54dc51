"""Image build and push through the docker SDK.

The image is built from the release binary rather than by the compose file:
``prepare`` downloads the linux/amd64 tarball of the version from GitHub and
unpacks the binary and license files into the build context directory, which
is then streamed to the daemon.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import IO, TYPE_CHECKING

from docker.errors import DockerException

from cib.archive.context import stream_build_context
from cib.archive.extract import ArchiveEntry, extract_entries, missing_targets
from cib.build.errors import BuildCause, DockerApiError, PrepareCause
from cib.build.units import BuildUnit
from cib.core.pipeline import OutputMode
from cib.core.result import Err, Ok, Result
from cib.github.releases import download_release, release_asset_name

if TYPE_CHECKING:
    import docker

    from cib.core.settings import BuildSettings
    from cib.github.http import HttpClient
    from cib.output.console import ConsoleProtocol

__all__ = ["NativeBackend", "context_entries"]

DOCKERFILE = "Dockerfile"
TARBALL_NAME = "containerssh.tar.gz"


def context_entries(context_dir: Path) -> list[ArchiveEntry]:
    """Files taken from the release tarball into the build context."""
    return [
        ArchiveEntry("containerssh", context_dir / "containerssh"),
        ArchiveEntry("LICENSE.md", context_dir / "LICENSE.md"),
        ArchiveEntry("NOTICE.md", context_dir / "NOTICE.md"),
    ]


class NativeBackend:
    """Builds, logs in and pushes via the docker daemon API."""

    def __init__(
        self,
        client: docker.DockerClient,
        http: HttpClient,
        settings: BuildSettings,
        console: ConsoleProtocol,
        *,
        tmp_dir: Path | None = None,
    ) -> None:
        self._client = client
        self._http = http
        self._settings = settings
        self._console = console
        self._tmp_dir = tmp_dir or Path(tempfile.gettempdir())

    @property
    def _streaming(self) -> bool:
        return self._settings.pipeline.output == OutputMode.STREAM

    def prepare(self, version: str) -> Result[None, PrepareCause]:
        context_dir = self._settings.context_dir
        tarball = self._tmp_dir / TARBALL_NAME
        entries = context_entries(context_dir)

        self._console.info(f"Downloading assets for version {version}...")
        try:
            downloaded = download_release(
                self._http,
                self._settings.release_repo,
                version,
                {release_asset_name(version): tarball},
            )
            if isinstance(downloaded, Err):
                return downloaded

            extracted = extract_entries(tarball, entries)
            if isinstance(extracted, Err):
                return extracted
        finally:
            tarball.unlink(missing_ok=True)

        for entry in missing_targets(entries):
            self._console.warning(f"{entry.source} not found in the {version} release tarball")
        return Ok(None)

    def build(self, unit: BuildUnit) -> Result[str, BuildCause]:
        self._console.info(f"Building image {unit.ref}...")

        def consume(context: IO[bytes]) -> Result[str, DockerApiError]:
            try:
                chunks = self._client.api.build(
                    fileobj=context,
                    custom_context=True,
                    encoding="gzip",
                    dockerfile=DOCKERFILE,
                    tag=unit.ref,
                    rm=True,
                    decode=True,
                )
                return self._drain("build", chunks)
            except (DockerException, OSError) as e:
                return Err(DockerApiError(operation="build", message=str(e)))

        return stream_build_context(self._settings.context_dir, consume)

    def login(self, unit: BuildUnit, username: str, password: str) -> Result[str, DockerApiError]:
        try:
            response = self._client.login(username=username, password=password, registry=unit.registry)
        except (DockerException, OSError) as e:
            return Err(DockerApiError(operation="login", message=str(e)))
        status = response.get("Status", "") if isinstance(response, dict) else ""
        return Ok(f"{status}\n" if status else "")

    def push(self, unit: BuildUnit) -> Result[str, DockerApiError]:
        self._console.info(f"Pushing image {unit.ref}...")
        try:
            chunks = self._client.api.push(unit.repository, tag=unit.tag, stream=True, decode=True)
            return self._drain("push", chunks)
        except (DockerException, OSError) as e:
            return Err(DockerApiError(operation="push", message=str(e)))

    def _drain(self, operation: str, chunks: Iterable[Mapping[str, object]]) -> Result[str, DockerApiError]:
        """Collect a decoded progress stream, failing on an ``error`` record."""
        lines: list[str] = []
        for chunk in chunks:
            error = chunk.get("error")
            if error:
                return Err(DockerApiError(operation=operation, message=str(error).strip()))
            line = _chunk_text(chunk)
            if not line:
                continue
            if self._streaming:
                self._console.output(line)
            else:
                lines.append(line)
        return Ok("".join(lines))


def _chunk_text(chunk: Mapping[str, object]) -> str:
    stream = chunk.get("stream")
    if isinstance(stream, str):
        return stream
    status = chunk.get("status")
    if isinstance(status, str):
        ident = chunk.get("id")
        prefix = f"{ident}: " if isinstance(ident, str) else ""
        return f"{prefix}{status}\n"
    return ""
