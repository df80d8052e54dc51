"""GitHub release lookup and downloads."""

from .http import HttpClient, MockHttpClient, RealHttpClient
from .releases import Release, ReleaseAsset, download_release, resolve_release

__all__ = [
    "HttpClient",
    "MockHttpClient",
    "RealHttpClient",
    "Release",
    "ReleaseAsset",
    "download_release",
    "resolve_release",
]
