"""
Blocking fetch client for WMS documents and tile images.

All functions are synchronous; async callers wrap them in asyncio.to_thread().
Failures never raise to the caller: a missing or unreadable resource is
returned as None and logged. There is no retry policy.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from ..constants import (
    DEFAULT_HTTP_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    HTTP_CHUNK_SIZE,
    SERVER_ADDRESS_PREFIXES,
)
from . import raster_io

logger = logging.getLogger(__name__)


def contains_server_address(uri: str) -> bool:
    """True when ``uri`` names a network resource rather than a local path."""
    return uri.lower().startswith(SERVER_ADDRESS_PREFIXES)


@dataclass(frozen=True)
class FetchOptions:
    """Per-request options handed to the fetch client."""

    timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    headers: dict[str, str] = field(default_factory=dict)

    def request_headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        headers.update(self.headers)
        return headers


class ProgressCallback:
    """Cancellation and progress channel for one fetch.

    ``cancel()`` may be called from any thread. ``report_progress`` returns
    True when the fetch should stop.
    """

    def __init__(self) -> None:
        self._canceled = threading.Event()
        self.current = 0.0
        self.total = 0.0

    def cancel(self) -> None:
        self._canceled.set()

    @property
    def canceled(self) -> bool:
        return self._canceled.is_set()

    def report_progress(self, current: float, total: float) -> bool:
        self.current = current
        self.total = total
        return self.canceled


class FetchClient:
    """Fetches bytes and images over HTTP (httpx) or from the local disk."""

    def __init__(
        self,
        options: FetchOptions | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.options = options or FetchOptions()
        self._client = client or httpx.Client(follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def fetch_bytes(
        self,
        uri: str,
        options: FetchOptions | None = None,
        progress: ProgressCallback | None = None,
    ) -> bytes | None:
        """Read a resource; None on any failure or cancellation."""
        if progress is not None and progress.canceled:
            return None

        if not contains_server_address(uri):
            return self._read_local(uri)

        opts = options or self.options
        try:
            with self._client.stream(
                "GET",
                uri,
                headers=opts.request_headers(),
                timeout=opts.timeout_s,
            ) as response:
                if response.status_code != 200:
                    logger.warning(f"HTTP {response.status_code} fetching {uri}")
                    return None

                total = float(response.headers.get("Content-Length") or 0)
                chunks = []
                received = 0
                for chunk in response.iter_bytes(HTTP_CHUNK_SIZE):
                    chunks.append(chunk)
                    received += len(chunk)
                    if progress is not None and progress.report_progress(received, total):
                        logger.info(f"Fetch cancelled: {uri}")
                        return None
                return b"".join(chunks)

        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {uri}: {e}")
            return None

    def fetch_image(
        self,
        uri: str,
        options: FetchOptions | None = None,
        progress: ProgressCallback | None = None,
    ) -> Any | None:
        """Fetch and decode an image; None if absent or undecodable."""
        data = self.fetch_bytes(uri, options, progress)
        if not data:
            return None
        try:
            return raster_io.decode_image(data)
        except ValueError as e:
            logger.warning(f"Could not decode image from {uri}: {e}")
            return None

    @staticmethod
    def _read_local(path: str) -> bytes | None:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None
