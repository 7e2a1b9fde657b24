"""Centralized error factory for the IndieAuth SDK.

Translates transport and payload failures into SDK errors so the sync and
async clients classify them identically.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from ..errors import (
    DecodeError,
    IndieAuthError,
    InvalidURLError,
    NetworkError,
    TimeoutError,
)


class ErrorFactory:
    """Centralized error creation with consistent structure."""

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        url: str | None = None,
    ) -> IndieAuthError:
        """Create SDK error from a transport exception.

        Args:
            exc: Original exception.
            url: The URL being requested.

        Returns:
            Appropriate IndieAuthError subclass.
        """
        if isinstance(exc, IndieAuthError):
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(
                f"Request timed out: {exc}",
                url=url,
                cause=exc,
            )

        if isinstance(exc, httpx.ConnectError):
            return NetworkError(
                f"Connection failed: {exc}",
                url=url,
                cause=exc,
            )

        # httpx and urllib report unusable request URLs outside HTTPError
        if isinstance(exc, (httpx.InvalidURL, ValueError)):
            return InvalidURLError(url or "")

        if isinstance(exc, httpx.HTTPError):
            return NetworkError(
                f"HTTP error: {exc}",
                url=url,
                cause=exc,
            )

        return NetworkError(
            f"Unexpected error: {exc}",
            url=url,
            cause=exc,
        )

    @staticmethod
    def decode_error(
        exc: Exception,
        *,
        url: str | None = None,
        target: str | None = None,
    ) -> DecodeError:
        """Create a decode error for a malformed payload.

        Args:
            exc: The JSON or validation exception.
            url: The URL the payload came from.
            target: Name of the model being decoded.

        Returns:
            DecodeError carrying the cause.
        """
        what = target or "response"
        if isinstance(exc, ValidationError):
            message = f"Malformed {what} payload: {exc.error_count()} validation error(s)"
        else:
            message = f"Malformed {what} payload: {exc}"
        return DecodeError(message, url=url, cause=exc)
