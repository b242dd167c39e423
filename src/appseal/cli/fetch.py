"""Artifact source resolution for the CLI.

The core only ever sees resolved bytes. This module turns a command-line
source (a local path or an ``http(s)://`` URL) into those bytes. HTTP
fetching uses ``httpx.AsyncClient`` and is only imported when a URL is
actually given.

Raises ``FetchError`` on any failure so the CLI can exit with code 2.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from appseal import __version__
from appseal.exceptions import FetchError

logger = logging.getLogger(__name__)

# Timeout for artifact downloads (seconds).
DEFAULT_TIMEOUT: float = 120.0

# Refuse downloads larger than this many bytes.
MAX_DOWNLOAD_BYTES: int = 2 * 1024 * 1024 * 1024

USER_AGENT: str = f"appseal/{__version__}"


def _ensure_httpx() -> Any:  # noqa: ANN401
    """Lazily import httpx and raise a friendly error if missing.

    Raises:
        SystemExit: If httpx is not installed.
    """
    try:
        import httpx  # noqa: F811

        return httpx
    except ImportError:
        raise SystemExit(
            "httpx is required to fetch artifacts from URLs.\n"
            "Install it with: pip install appseal[fetch]"
        )


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def fetch_bytes(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = MAX_DOWNLOAD_BYTES,
) -> bytes:
    """Download *url* and return the response body.

    Raises:
        FetchError: On timeouts, HTTP errors, or oversized responses.
    """
    httpx = _ensure_httpx()
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", url) as resp:
                resp.raise_for_status()
                chunks: list[bytes] = []
                received = 0
                async for chunk in resp.aiter_bytes():
                    received += len(chunk)
                    if received > max_bytes:
                        raise FetchError(url, f"response exceeds {max_bytes} bytes")
                    chunks.append(chunk)
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise FetchError(url, "timed out") from exc
    except httpx.HTTPStatusError as exc:
        logger.warning("HTTP %d from %s", exc.response.status_code, url)
        raise FetchError(url, f"HTTP {exc.response.status_code}") from exc
    except httpx.RequestError as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise FetchError(url, str(exc)) from exc
    logger.debug("Fetched %d bytes from %s", received, url)
    return b"".join(chunks)


def load_source(source: str, *, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """Return the bytes behind a path or URL.

    Raises:
        FetchError: If the file cannot be read or the URL cannot be fetched.
    """
    if is_url(source):
        return asyncio.run(fetch_bytes(source, timeout=timeout))
    try:
        return Path(source).read_bytes()
    except OSError as exc:
        raise FetchError(source, exc.strerror or str(exc)) from exc
