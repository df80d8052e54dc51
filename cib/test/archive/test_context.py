"""Tests for cib.archive.context module."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import IO

from cib.archive.context import ContextError, context_files, stream_build_context, write_context_tar
from cib.core.result import Err, Ok, Result


def make_context(root: Path) -> Path:
    ctx = root / "containerssh"
    ctx.mkdir()
    (ctx / "Dockerfile").write_text("FROM scratch\nCOPY containerssh /\n")
    (ctx / "containerssh").write_bytes(b"\x7fELF" + b"\0" * 200_000)
    (ctx / "etc").mkdir()
    (ctx / "etc" / "config.yaml").write_text("listen: 0.0.0.0:2222\n")
    return ctx


def read_members(stream: IO[bytes]) -> Result[dict[str, bytes], str]:
    out: dict[str, bytes] = {}
    with tarfile.open(fileobj=stream, mode="r|gz") as tar:
        for member in tar:
            handle = tar.extractfile(member)
            assert handle is not None
            out[member.name] = handle.read()
    return Ok(out)


class TestContextFiles:
    def test_sorted_relative_names(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        names = [name for _, name in context_files(ctx)]
        assert names == ["Dockerfile", "containerssh", "etc/config.yaml"]

    def test_symlinks_skipped(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        (ctx / "link").symlink_to(ctx / "Dockerfile")
        names = [name for _, name in context_files(ctx)]
        assert "link" not in names


class _KeepOpen(io.BytesIO):
    def close(self) -> None:
        pass


class TestWriteContextTar:
    def test_roundtrip_through_buffer(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        buffer = _KeepOpen()

        write_context_tar(ctx, buffer)

        buffer.seek(0)
        with tarfile.open(fileobj=buffer, mode="r:gz") as tar:
            assert sorted(tar.getnames()) == ["Dockerfile", "containerssh", "etc/config.yaml"]


class TestStreamBuildContext:
    """Tests for the producer thread / consumer pipe pairing."""

    def test_consumer_sees_whole_context(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)

        result = stream_build_context(ctx, read_members)

        assert isinstance(result, Ok)
        assert result.value["Dockerfile"].startswith(b"FROM scratch")
        assert len(result.value["containerssh"]) == 200_004

    def test_consumer_error_wins_over_broken_pipe(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)

        def reject(stream: IO[bytes]) -> Result[None, str]:
            stream.read(10)
            return Err("daemon refused the build")

        result = stream_build_context(ctx, reject)

        assert result == Err("daemon refused the build")

    def test_missing_directory(self, tmp_path: Path) -> None:
        missing = tmp_path / "nope"

        def drain(stream: IO[bytes]) -> Result[int, str]:
            return Ok(len(stream.read()))

        result = stream_build_context(missing, drain)

        assert isinstance(result, Err)
        assert isinstance(result.error, ContextError)
        assert result.error.directory == missing
        assert "nope" in str(result.error)
