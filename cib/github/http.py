"""HTTP client for the GitHub release API and asset downloads.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import http.client
import json
import ssl
import urllib.error
import urllib.request
from pathlib import Path
from typing import Protocol, runtime_checkable

from cib import __version__
from cib.core.failures import DecodeError, FileError, TransportError
from cib.core.result import Err, Ok, Result

__all__ = [
    "FetchError",
    "HttpClient",
    "JsonError",
    "MockHttpClient",
    "RealHttpClient",
]

JsonError = TransportError | DecodeError
FetchError = TransportError | FileError

CHUNK_SIZE = 64 * 1024


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Lets tests inject canned responses instead of calling GitHub.
    """

    def get_json(self, url: str) -> Result[object, JsonError]:
        """Fetch URL and decode the body as JSON (any top-level type)."""
        ...

    def download(self, url: str, dest: Path) -> Result[Path, FetchError]:
        """Download URL into dest.

        dest is created (truncated) before the request is made, so it exists
        even when the download fails. Its existence says nothing about success
        and the caller owns its cleanup.
        """
        ...


class RealHttpClient:
    """HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Optional bearer token, not forwarded on redirects (asset downloads
      redirect to a signed storage URL that rejects a second auth scheme)
    - Streaming downloads with a length check
    """

    def __init__(
        self,
        token: str = "",
        *,
        timeout: float = 30.0,
        user_agent: str = f"cib/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._token = token
        self._ssl_context = ssl.create_default_context()

    def _build_request(self, url: str, accept: str) -> urllib.request.Request:
        req = urllib.request.Request(
            url,
            headers={"User-Agent": self.user_agent, "Accept": accept},
        )
        if self._token:
            req.add_unredirected_header("Authorization", f"bearer {self._token}")
        return req

    def _open(self, req: urllib.request.Request) -> Result[http.client.HTTPResponse, TransportError]:
        url = req.full_url
        try:
            response: http.client.HTTPResponse = urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            )
        except urllib.error.HTTPError as e:
            e.close()
            return Err(TransportError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(TransportError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(TransportError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError, http.client.HTTPException) as e:
            return Err(TransportError(url=url, status=0, message=str(e)))

        if response.status != 200:
            response.close()
            return Err(TransportError(url=url, status=response.status, message=response.reason))
        return Ok(response)

    def get_json(self, url: str) -> Result[object, JsonError]:
        opened = self._open(self._build_request(url, "application/vnd.github+json"))
        if isinstance(opened, Err):
            return opened

        with opened.value as response:
            try:
                body = response.read()
            except (OSError, http.client.HTTPException) as e:
                return Err(TransportError(url=url, status=0, message=str(e)))

        try:
            return Ok(json.loads(body.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(DecodeError(source=url, message=str(e)))

    def download(self, url: str, dest: Path) -> Result[Path, FetchError]:
        try:
            handle = open(dest, "wb")
        except OSError as e:
            return Err(FileError(path=dest, operation="create", message=str(e)))

        with handle:
            opened = self._open(self._build_request(url, "application/octet-stream"))
            if isinstance(opened, Err):
                return opened

            with opened.value as response:
                expected = response.getheader("Content-Length")
                written = 0
                try:
                    while chunk := response.read(CHUNK_SIZE):
                        handle.write(chunk)
                        written += len(chunk)
                except (OSError, http.client.HTTPException) as e:
                    return Err(FileError(path=dest, operation="copy", message=str(e)))

        if expected is not None and expected.isdigit() and written != int(expected):
            return Err(
                FileError(
                    path=dest,
                    operation="copy",
                    message=f"short read: got {written} of {expected} bytes",
                )
            )
        return Ok(dest)


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.github.com/repos/o/r/releases", [...])
        client.set_download("https://example.com/a.tar.gz", b"...")
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, object | TransportError | DecodeError] = {}
        self._download_responses: dict[str, bytes | TransportError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_json(self, url: str, response: object) -> None:
        self._json_responses[url] = response

    def set_download(self, url: str, response: bytes | TransportError) -> None:
        self._download_responses[url] = response

    def get_json(self, url: str) -> Result[object, JsonError]:
        self.calls.append(("get_json", url))

        if url not in self._json_responses:
            return Err(TransportError(url=url, status=404, message="Not Found (mock)"))

        response = self._json_responses[url]
        if isinstance(response, (TransportError, DecodeError)):
            return Err(response)
        return Ok(response)

    def download(self, url: str, dest: Path) -> Result[Path, FetchError]:
        """Mirror RealHttpClient: truncate dest first, then write the body."""
        self.calls.append(("download", url))

        try:
            dest.write_bytes(b"")
        except OSError as e:
            return Err(FileError(path=dest, operation="create", message=str(e)))

        if url not in self._download_responses:
            return Err(TransportError(url=url, status=404, message="Not Found (mock)"))

        response = self._download_responses[url]
        if isinstance(response, TransportError):
            return Err(response)

        dest.write_bytes(response)
        return Ok(dest)
