"""Ok/Err values returned by every build step.

Release lookup, downloads, extraction and external commands all fail in ways
the caller has to report with context, so they return ``Ok(value)`` or
``Err(error)`` and the caller decides what to wrap and where to stop:

    match resolve_release(http, "containerssh/containerssh", "0.5.0"):
        case Ok(release):
            print(release.tag)
        case Err(error):
            print(f"lookup failed: {error}")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def map_err(self, wrap: Callable[..., object]) -> Ok[T]:
        return self


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E

    def map_err[F](self, wrap: Callable[[E], F]) -> Err[F]:
        """Wrap the carried error, e.g. to attach the unit being built."""
        return Err(wrap(self.error))


type Result[T, E] = Ok[T] | Err[E]
