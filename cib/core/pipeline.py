"""Capability set selecting how images are built, tested and reported."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__ = ["Backend", "OutputMode", "Pipeline"]


class Backend(StrEnum):
    """How images are built and pushed.

    ``native`` talks to the docker daemon through the SDK and builds from the
    binary published in the GitHub release. ``external`` shells out to
    ``docker compose`` and lets the compose file's build definition do the rest.
    """

    NATIVE = "native"
    EXTERNAL = "external"


class OutputMode(StrEnum):
    """What happens to child process output."""

    STREAM = "stream"  # inherit our stdout/stderr
    CAPTURE = "capture"  # buffer combined output for the grouped report


@dataclass(frozen=True, slots=True)
class Pipeline:
    backend: Backend = Backend.EXTERNAL
    test: bool = True
    output: OutputMode = OutputMode.CAPTURE
