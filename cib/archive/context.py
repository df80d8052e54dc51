"""Streaming an image build context to the docker daemon.

The build context directory is packed into a gzip tar on a worker thread and
written into an OS pipe; the caller reads the other end and hands it to the
build API, so the context is never held in memory as a whole.

The worker's outcome is a future the caller checks after consuming the
stream, which turns a packing failure into an ordinary ``Err``.
"""

from __future__ import annotations

import os
import tarfile
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from cib.core.result import Err, Result

__all__ = ["ContextError", "context_files", "stream_build_context", "write_context_tar"]


@dataclass(frozen=True, slots=True)
class ContextError:
    """The build context could not be packed."""

    directory: Path
    message: str

    def __str__(self) -> str:
        return f"failed to tar build directory {self.directory}: {self.message}"


def context_files(directory: Path) -> list[tuple[Path, str]]:
    """Regular files below ``directory`` with their archive names, sorted."""
    out: list[tuple[Path, str]] = []
    for path in sorted(directory.rglob("*")):
        if path.is_file() and not path.is_symlink():
            out.append((path, path.relative_to(directory).as_posix()))
    return out


def write_context_tar(directory: Path, sink: IO[bytes]) -> None:
    """Write ``directory`` as a gzip tar stream into ``sink`` and close it."""
    with sink:
        if not directory.is_dir():
            raise FileNotFoundError(f"no such directory: {directory}")
        with tarfile.open(fileobj=sink, mode="w|gz") as tar:
            for path, arcname in context_files(directory):
                tar.add(path, arcname=arcname, recursive=False)


def stream_build_context[T, E](
    directory: Path,
    consume: Callable[[IO[bytes]], Result[T, E]],
) -> Result[T, E | ContextError]:
    """Pack ``directory`` on a worker thread while ``consume`` reads it.

    Args:
        directory: Build context root
        consume: Reads the tar stream to its end (e.g. the image build call)

    Returns:
        The consumer's result, or Err(ContextError) when packing failed for
        a reason other than the consumer hanging up early.
    """
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "rb")
    writer = os.fdopen(write_fd, "wb")

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="build-context") as pool:
        future = pool.submit(write_context_tar, directory, writer)
        try:
            consumed = consume(reader)
        finally:
            # Unblocks a producer still writing into a full pipe.
            reader.close()
        produced = future.exception()

    if produced is not None and not isinstance(produced, BrokenPipeError):
        return Err(ContextError(directory=directory, message=str(produced)))
    if isinstance(consumed, Err):
        return consumed
    if produced is not None:
        return Err(ContextError(directory=directory, message=str(produced)))
    return consumed
