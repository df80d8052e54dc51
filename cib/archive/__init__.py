"""Tarball handling: selective extraction and build context streaming."""

from .context import ContextError, stream_build_context
from .extract import ArchiveEntry, ArchiveError, extract_entries, missing_targets

__all__ = [
    "ArchiveEntry",
    "ArchiveError",
    "ContextError",
    "extract_entries",
    "missing_targets",
    "stream_build_context",
]
