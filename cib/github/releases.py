"""GitHub release lookup and asset download.

A product version maps to a release whose tag is either the bare version
(``0.5.0``) or the ``v``-prefixed form (``v0.5.0``). Releases are scanned in
the order the API returns them and the first match wins; no sorting is applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from cib.core.failures import DecodeError, FileError, ReleaseNotFound, TransportError
from cib.core.result import Err, Ok, Result
from cib.core.structured import as_obj_list, as_str_dict, get_str

if TYPE_CHECKING:
    from cib.github.http import HttpClient

__all__ = [
    "GITHUB_API",
    "Release",
    "ReleaseAsset",
    "ReleaseError",
    "download_release",
    "parse_releases",
    "release_asset_name",
    "releases_url",
    "resolve_release",
    "select_release",
]

GITHUB_API = "https://api.github.com"

ReleaseError = TransportError | DecodeError | ReleaseNotFound


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    name: str
    download_url: str


@dataclass(frozen=True, slots=True)
class Release:
    tag: str
    assets: tuple[ReleaseAsset, ...]


def releases_url(repo: str) -> str:
    return f"{GITHUB_API}/repos/{repo}/releases"


def release_asset_name(version: str) -> str:
    """Name of the linux/amd64 tarball published for ``version``."""
    return f"containerssh_{version}_linux_amd64.tar.gz"


def parse_releases(data: object, source: str) -> Result[list[Release], DecodeError]:
    """Turn the decoded API payload into Release objects.

    Assets without a name or download URL are dropped rather than failing the
    whole listing; only the release list shape itself is validated.
    """
    items = as_obj_list(data)
    if items is None:
        return Err(DecodeError(source=source, message="expected a JSON array of releases"))

    releases: list[Release] = []
    for item in items:
        entry = as_str_dict(item)
        if entry is None:
            return Err(DecodeError(source=source, message="release entry is not an object"))
        tag = entry.get("tag_name")
        if not isinstance(tag, str):
            return Err(DecodeError(source=source, message="release entry has no tag_name"))

        assets: list[ReleaseAsset] = []
        for raw_asset in as_obj_list(entry.get("assets")) or []:
            asset = as_str_dict(raw_asset)
            if asset is None:
                continue
            name = get_str(asset, "name")
            url = get_str(asset, "browser_download_url")
            if name and url:
                assets.append(ReleaseAsset(name=name, download_url=url))

        releases.append(Release(tag=tag, assets=tuple(assets)))
    return Ok(releases)


def select_release(releases: list[Release], version: str) -> Release | None:
    """Return the first release tagged ``version`` or ``v<version>``."""
    prefixed = f"v{version}"
    for release in releases:
        if release.tag == version or release.tag == prefixed:
            return release
    return None


def resolve_release(http: HttpClient, repo: str, version: str) -> Result[Release, ReleaseError]:
    """Find the release of ``repo`` matching ``version``.

    Args:
        http: HTTP client (carries the optional bearer token)
        repo: Repository in "owner/repo" format
        version: Product version, with or without the "v" prefix in the tag

    Returns:
        Ok(Release), or Err with TransportError / DecodeError / ReleaseNotFound
    """
    url = releases_url(repo)
    fetched = http.get_json(url)
    if isinstance(fetched, Err):
        return fetched

    parsed = parse_releases(fetched.value, source=url)
    if isinstance(parsed, Err):
        return parsed

    release = select_release(parsed.value, version)
    if release is None:
        return Err(ReleaseNotFound(repo=repo, version=version))
    return Ok(release)


def download_release(
    http: HttpClient,
    repo: str,
    version: str,
    targets: Mapping[str, Path],
) -> Result[list[Path], ReleaseError | FileError]:
    """Download the assets named in ``targets`` from the matching release.

    Args:
        http: HTTP client
        repo: Repository in "owner/repo" format
        version: Product version
        targets: Asset file name -> local destination

    Returns:
        Ok with the written paths (release asset order). Asset names in
        ``targets`` that the release does not carry are not an error here.
    """
    resolved = resolve_release(http, repo, version)
    if isinstance(resolved, Err):
        return resolved

    written: list[Path] = []
    for asset in resolved.value.assets:
        dest = targets.get(asset.name)
        if dest is None:
            continue
        result = http.download(asset.download_url, dest)
        if isinstance(result, Err):
            return result
        written.append(result.value)
    return Ok(written)
