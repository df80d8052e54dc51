"""Selective extraction from a gzip-compressed tar archive.

The archive is read as a stream (``tarfile`` mode ``r|gz``): one pass, no
seeking, members handled as they come. Only regular files whose name appears
in the entry list are written; everything else is skipped.

Reaching the end of the archive is success even if some listed entries never
showed up. Use ``missing_targets`` afterwards when completeness matters.
"""

from __future__ import annotations

import contextlib
import os
import tarfile
import zlib
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from cib.core.failures import DecodeError, FileError
from cib.core.result import Err, Ok, Result

__all__ = ["ArchiveEntry", "ArchiveError", "extract_entries", "missing_targets"]

ArchiveError = FileError | DecodeError

CHUNK_SIZE = 64 * 1024

# Raised by the gzip/tar stream on truncated or corrupt input.
_DECODE_ERRORS = (tarfile.TarError, zlib.error, EOFError, OSError)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """Archive member name -> local file."""

    source: str
    target: Path


def _open_targets(
    entries: Sequence[ArchiveEntry],
) -> Result[list[tuple[ArchiveEntry, IO[bytes]]], FileError]:
    handles: list[tuple[ArchiveEntry, IO[bytes]]] = []
    for entry in entries:
        try:
            entry.target.parent.mkdir(parents=True, exist_ok=True)
            handles.append((entry, open(entry.target, "wb")))
        except OSError as e:
            for _, handle in handles:
                handle.close()
            return Err(FileError(path=entry.target, operation="create", message=str(e)))
    return Ok(handles)


def _copy_member(
    tar: tarfile.TarFile,
    member: tarfile.TarInfo,
    entries: Sequence[ArchiveEntry],
    source: str,
) -> Result[None, ArchiveError]:
    """Stream one member into every matching target."""
    src = tar.extractfile(member)
    if src is None:
        return Ok(None)

    opened = _open_targets(entries)
    if isinstance(opened, Err):
        return opened

    targets = opened.value
    try:
        while True:
            try:
                chunk = src.read(CHUNK_SIZE)
            except _DECODE_ERRORS as e:
                return Err(DecodeError(source=source, message=f"reading {member.name}: {e}"))
            if not chunk:
                break
            for entry, handle in targets:
                try:
                    handle.write(chunk)
                except OSError as e:
                    return Err(FileError(path=entry.target, operation="copy", message=str(e)))
    finally:
        for _, handle in targets:
            handle.close()

    mode = member.mode & 0o777
    if mode:
        for entry in entries:
            with contextlib.suppress(OSError):
                os.chmod(entry.target, mode)
    return Ok(None)


def extract_entries(archive: Path, entries: Sequence[ArchiveEntry]) -> Result[None, ArchiveError]:
    """Extract the listed members of a .tar.gz archive.

    Args:
        archive: Path to the gzip-compressed tarball
        entries: Member name -> destination pairs; targets are truncated

    Returns:
        Ok(None) once the end of the archive is reached, or Err with
        FileError (open/create/copy) or DecodeError (corrupt stream)
    """
    source = str(archive)
    try:
        fh = open(archive, "rb")
    except OSError as e:
        return Err(FileError(path=archive, operation="open", message=str(e)))

    with fh:
        try:
            tar = tarfile.open(fileobj=fh, mode="r|gz")
        except _DECODE_ERRORS as e:
            return Err(DecodeError(source=source, message=str(e)))

        with tar:
            while True:
                try:
                    member = tar.next()
                except _DECODE_ERRORS as e:
                    return Err(DecodeError(source=source, message=f"failed to read header: {e}"))
                if member is None:
                    break
                if not member.isreg():
                    continue

                matching = [entry for entry in entries if entry.source == member.name]
                if not matching:
                    continue

                copied = _copy_member(tar, member, matching, source)
                if isinstance(copied, Err):
                    return copied

    return Ok(None)


def missing_targets(entries: Sequence[ArchiveEntry]) -> list[ArchiveEntry]:
    """Entries whose target file does not exist."""
    return [entry for entry in entries if not entry.target.is_file()]
