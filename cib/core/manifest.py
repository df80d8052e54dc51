"""Build manifest (``build.yaml``) loading.

Example manifest:

    revision: "20240101"
    versions:
      0.5.0: [latest, "0.5"]
    registries:
      docker.io:
        user_variable: DOCKER_USERNAME
        password_variable: DOCKER_PASSWORD
    pipeline:
      backend: external
      test: true
      output: capture

``pipeline`` is optional; everything else is required.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .pipeline import Backend, OutputMode, Pipeline
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, as_str_list, get_bool, get_str, get_table, scalar_str

__all__ = [
    "MANIFEST_FILE",
    "BuildManifest",
    "ManifestError",
    "Registry",
    "load_manifest",
    "parse_manifest",
]

MANIFEST_FILE = "build.yaml"


class _ManifestLoader(yaml.SafeLoader):
    """SafeLoader that keeps numbers and dates as written.

    Versions, tags and the revision end up in image references, so an unquoted
    ``0.10`` must stay ``0.10`` rather than become the float 0.1. Booleans still
    resolve (``pipeline.test``).
    """


def _scalar_text(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


for _tag in ("int", "float", "timestamp"):
    _ManifestLoader.add_constructor(f"tag:yaml.org,2002:{_tag}", _scalar_text)


@dataclass(frozen=True, slots=True)
class ManifestError:
    """Error when the manifest cannot be read or has the wrong shape."""

    message: str
    path: Path | None = None

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message} ({self.path})"
        return self.message


@dataclass(frozen=True, slots=True)
class Registry:
    """A push target.

    Only the *names* of the environment variables holding the credentials are
    kept; the values are looked up at push time.
    """

    name: str
    user_variable: str
    password_variable: str


@dataclass(frozen=True, slots=True)
class BuildManifest:
    revision: str
    versions: dict[str, list[str]]
    registries: dict[str, Registry]
    pipeline: Pipeline = field(default_factory=Pipeline)


def _parse_versions(data: StrDict) -> Result[dict[str, list[str]], str]:
    raw = data.get("versions")
    if not isinstance(raw, dict):
        return Err("'versions' must be a mapping of version to tag list")

    versions: dict[str, list[str]] = {}
    for key, value in raw.items():
        version = scalar_str(key)
        if version is None:
            return Err(f"invalid version key: {key!r}")
        tags = as_str_list(value)
        if tags is None:
            return Err(f"tags for version {version} must be a list of strings")
        versions[version] = tags
    return Ok(versions)


def _parse_registries(data: StrDict) -> Result[dict[str, Registry], str]:
    raw = get_table(data, "registries")
    if raw is None:
        return Err("'registries' must be a mapping of registry name to credentials")

    registries: dict[str, Registry] = {}
    for name, value in raw.items():
        entry = as_str_dict(value)
        if entry is None:
            return Err(f"registry {name} must be a mapping")
        user_variable = get_str(entry, "user_variable")
        password_variable = get_str(entry, "password_variable")
        if user_variable is None or password_variable is None:
            return Err(f"registry {name} needs user_variable and password_variable")
        registries[name] = Registry(
            name=name,
            user_variable=user_variable,
            password_variable=password_variable,
        )
    return Ok(registries)


def _parse_pipeline(data: StrDict) -> Result[Pipeline, str]:
    raw = data.get("pipeline")
    if raw is None:
        return Ok(Pipeline())
    table = as_str_dict(raw)
    if table is None:
        return Err("'pipeline' must be a mapping")

    default = Pipeline()
    try:
        backend = Backend(get_str(table, "backend") or default.backend)
        output = OutputMode(get_str(table, "output") or default.output)
    except ValueError as e:
        return Err(f"invalid pipeline setting: {e}")
    test = get_bool(table, "test")
    return Ok(Pipeline(backend=backend, test=default.test if test is None else test, output=output))


def parse_manifest(data: object, path: Path | None = None) -> Result[BuildManifest, ManifestError]:
    """Validate a parsed YAML document and turn it into a BuildManifest."""
    table = as_str_dict(data)
    if table is None:
        return Err(ManifestError("Manifest root must be a mapping", path=path))

    revision = scalar_str(table.get("revision"))
    if revision is None:
        return Err(ManifestError("'revision' is required", path=path))

    versions = _parse_versions(table)
    if isinstance(versions, Err):
        return Err(ManifestError(versions.error, path=path))

    registries = _parse_registries(table)
    if isinstance(registries, Err):
        return Err(ManifestError(registries.error, path=path))

    pipeline = _parse_pipeline(table)
    if isinstance(pipeline, Err):
        return Err(ManifestError(pipeline.error, path=path))

    return Ok(
        BuildManifest(
            revision=revision,
            versions=versions.value,
            registries=registries.value,
            pipeline=pipeline.value,
        )
    )


def load_manifest(path: Path) -> Result[BuildManifest, ManifestError]:
    """Load and validate the build manifest.

    Args:
        path: Path to build.yaml

    Returns:
        Ok(BuildManifest) on success, Err(ManifestError) on failure
    """
    try:
        data: object = yaml.load(path.read_text(encoding="utf-8"), Loader=_ManifestLoader)
    except FileNotFoundError:
        return Err(ManifestError("Manifest not found", path=path))
    except PermissionError:
        return Err(ManifestError("Permission denied reading manifest", path=path))
    except yaml.YAMLError as e:
        return Err(ManifestError(f"Invalid YAML: {e}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ManifestError(f"Error reading manifest: {e}", path=path))

    return parse_manifest(data, path=path)
