"""Units of work: one image reference per (version, tag, registry)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

__all__ = ["BuildUnit", "expand_tags", "plan_units"]

# Tags that are not pinned with the revision suffix.
UNSUFFIXED_TAGS = frozenset({"latest"})


@dataclass(frozen=True, slots=True)
class BuildUnit:
    version: str
    tag: str
    registry: str
    image: str

    @property
    def repository(self) -> str:
        return f"{self.registry}/{self.image}"

    @property
    def ref(self) -> str:
        return f"{self.repository}:{self.tag}"

    @property
    def label(self) -> str:
        return f"{self.version} / {self.tag} / {self.registry}"


def expand_tags(tags: Iterable[str], revision: str) -> list[str]:
    """Each tag plus its ``<tag>-<revision>`` twin (``latest`` stays bare)."""
    out: list[str] = []
    for tag in tags:
        out.append(tag)
        if tag not in UNSUFFIXED_TAGS:
            out.append(f"{tag}-{revision}")
    return out


def plan_units(
    version: str,
    tags: Iterable[str],
    registries: Mapping[str, object],
    *,
    revision: str,
    image: str,
) -> list[BuildUnit]:
    """Tags in manifest order, registries sorted by name."""
    return [
        BuildUnit(version=version, tag=tag, registry=registry, image=image)
        for tag in expand_tags(tags, revision)
        for registry in sorted(registries)
    ]
