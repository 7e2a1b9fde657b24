"""HTTP client utilities for the IndieAuth SDK.

Builds the httpx clients the SDK talks through and holds the single
response validator every fetch and send passes through.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from .errors import HTTPStatusError

if TYPE_CHECKING:
    from .config import IndieAuthConfig


def _timeout(config: IndieAuthConfig) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.connect_timeout,
        read=config.timeout,
        write=config.timeout,
        pool=config.timeout,
    )


def create_http_client(config: IndieAuthConfig) -> httpx.Client:
    """Create configured HTTP client.

    Args:
        config: SDK configuration.

    Returns:
        Configured httpx.Client.
    """
    return httpx.Client(
        timeout=_timeout(config),
        headers={"User-Agent": config.user_agent},
        # Profile URLs commonly redirect (http -> https, trailing slash)
        follow_redirects=True,
    )


def create_async_http_client(config: IndieAuthConfig) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        config: SDK configuration.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        timeout=_timeout(config),
        headers={"User-Agent": config.user_agent},
        follow_redirects=True,
    )


def is_success(status_code: int | None) -> bool:
    return status_code is not None and 200 <= status_code <= 299


def validate_response(url: str, response: httpx.Response | None) -> bytes:
    """Return the response body if the exchange succeeded.

    Args:
        url: The URL that was requested.
        response: The HTTP response, or None if none was received.

    Returns:
        Raw response body.

    Raises:
        HTTPStatusError: If there is no response or its status is not 2xx.
    """
    if response is None:
        raise HTTPStatusError(url, None)
    if not is_success(response.status_code):
        raise HTTPStatusError(url, response.status_code)
    return response.content
