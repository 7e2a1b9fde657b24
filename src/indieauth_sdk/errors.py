"""Error classes for the IndieAuth SDK.

Every failure the SDK raises is an ``IndieAuthError`` with a stable
error code, so callers can discriminate on type or on ``code``.
"""

from __future__ import annotations

from enum import StrEnum
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .urls import URLRule, URLType

SPEC_BASE_URI = "https://indieauth.spec.indieweb.org"


class ErrorCode(StrEnum):
    """Standardized error codes for the IndieAuth SDK."""

    # Configuration errors (1xxx)
    INVALID_CONFIG = "CFG_1001"

    # URL conformance errors (2xxx)
    INVALID_URL = "URL_2001"

    # Transport errors (3xxx)
    NETWORK_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"

    # HTTP status errors (4xxx)
    INVALID_HTTP_RESPONSE = "HTTP_4001"

    # Payload errors (5xxx)
    DECODE_ERROR = "DEC_5001"

    # Discovery errors (6xxx)
    METADATA_NOT_FOUND = "DISC_6001"

    # PKCE errors (7xxx)
    INVALID_CODE_VERIFIER = "PKCE_7001"

    # Authorization callback errors (8xxx)
    AUTHORIZATION_RESPONSE_INVALID = "AUTHZ_8001"


class IndieAuthError(Exception):
    """Base error for the IndieAuth SDK with structured error information."""

    reference_uri: str | None = None

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "reference_uri": self.reference_uri,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidConfigError(IndieAuthError):
    """Invalid SDK configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
        self.field = field


class NetworkError(IndieAuthError):
    """The transport failed before an HTTP response was received."""

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        url: str | None = None,
        cause: Exception | None = None,
        code: ErrorCode = ErrorCode.NETWORK_ERROR,
    ) -> None:
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, code, details=details)
        self.url = url
        self.__cause__ = cause


class TimeoutError(NetworkError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, url=url, cause=cause, code=ErrorCode.TIMEOUT_ERROR)


class HTTPStatusError(IndieAuthError):
    """The server answered with a non-2xx status, or not over HTTP at all."""

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            _status_message(status_code),
            ErrorCode.INVALID_HTTP_RESPONSE,
            status_code=status_code,
            details={"url": url},
        )
        self.url = url


class DecodeError(IndieAuthError):
    """A response payload could not be decoded."""

    def __init__(
        self,
        message: str = "Response payload could not be decoded",
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, ErrorCode.DECODE_ERROR, details=details)
        self.url = url
        self.__cause__ = cause


class InvalidURLError(IndieAuthError):
    """A URL does not conform to the IndieAuth identifier rules."""

    reference_uri = f"{SPEC_BASE_URI}/#user-profile-url"

    def __init__(
        self,
        url: str,
        *,
        rule: URLRule | None = None,
        url_type: URLType | None = None,
        violations: list[URLRule] | None = None,
    ) -> None:
        kind = f"{url_type.description} " if url_type else ""
        if rule:
            message = f"{kind}URL violates rule {rule.description}: {url}"
        else:
            message = f"{kind}URL is malformed: {url}"
        super().__init__(
            message,
            ErrorCode.INVALID_URL,
            details={
                "url": url,
                "rule": rule.value if rule else None,
                "url_type": url_type.value if url_type else None,
                "violations": [v.value for v in violations or []],
            },
        )
        self.url = url
        self.rule = rule
        self.url_type = url_type
        self.violations = list(violations or ([rule] if rule else []))


class MetadataNotFoundError(IndieAuthError):
    """The profile document advertises no usable IndieAuth endpoints."""

    reference_uri = f"{SPEC_BASE_URI}/#discovery-by-clients"

    def __init__(
        self,
        message: str = "Metadata cannot be found.",
        *,
        url: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.METADATA_NOT_FOUND,
            details={"url": url} if url else None,
        )
        self.url = url


class InvalidCodeVerifierError(IndieAuthError):
    """Code verifier violates the PKCE length or character rules."""

    reference_uri = f"{SPEC_BASE_URI}/#authorization-request"

    def __init__(self, message: str = "Invalid code verifier.") -> None:
        super().__init__(message, ErrorCode.INVALID_CODE_VERIFIER)


class AuthorizationResponseError(IndieAuthError):
    """The authorization callback is an error, or fails state/issuer checks."""

    reference_uri = f"{SPEC_BASE_URI}/#authorization-response"

    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        error_description: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if error:
            details["error"] = error
        if error_description:
            details["error_description"] = error_description
        super().__init__(
            message,
            ErrorCode.AUTHORIZATION_RESPONSE_INVALID,
            details=details,
        )
        self.error = error
        self.error_description = error_description


def _status_message(status_code: int | None) -> str:
    if status_code is None:
        return "Unknown URL response error."
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return f"HTTP status {status_code}"
