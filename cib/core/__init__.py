"""Core domain types: manifest, settings, results, exit codes."""

from .errors import ErrorCode
from .manifest import BuildManifest, ManifestError, Registry, load_manifest
from .pipeline import Backend, OutputMode, Pipeline
from .result import Err, Ok, Result
from .settings import BuildSettings, resolve_credential

__all__ = [
    # errors
    "ErrorCode",
    # manifest
    "BuildManifest",
    "ManifestError",
    "Registry",
    "load_manifest",
    # pipeline
    "Backend",
    "OutputMode",
    "Pipeline",
    # result
    "Err",
    "Ok",
    "Result",
    # settings
    "BuildSettings",
    "resolve_credential",
]
