"""Token lifecycle operations for the IndieAuth SDK.

Request builders and response interpreters for redemption, refresh,
verification and revocation. They perform no I/O, so the sync and
async clients share them unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from ..errors import HTTPStatusError
from ..models import (
    RedemptionRequest,
    RedemptionResponse,
    RefreshTokenRequest,
    VerificationResponse,
)
from .codec import decode

if TYPE_CHECKING:
    from ..config import IndieAuthConfig

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

# Legacy token endpoints report an invalid token through these statuses
LEGACY_INACTIVE_STATUSES = frozenset({400, 401, 403})


def _form_headers() -> dict[str, str]:
    return {"Content-Type": FORM_CONTENT_TYPE, "Accept": JSON_CONTENT_TYPE}


def _bearer(token: str) -> str:
    return f"Bearer {token}"


def redemption_request(token_endpoint: str, request: RedemptionRequest) -> httpx.Request:
    """Build the authorization code exchange request."""
    return httpx.Request(
        "POST",
        str(token_endpoint),
        headers=_form_headers(),
        data=request.to_form_data(),
    )


def refresh_request(token_endpoint: str, request: RefreshTokenRequest) -> httpx.Request:
    """Build the refresh token grant request."""
    return httpx.Request(
        "POST",
        str(token_endpoint),
        headers=_form_headers(),
        data=request.to_form_data(),
    )


def verification_request(introspection_endpoint: str, token: str) -> httpx.Request:
    """Build a token introspection request."""
    headers = _form_headers()
    headers["Authorization"] = _bearer(token)
    return httpx.Request(
        "POST",
        str(introspection_endpoint),
        headers=headers,
        data={"token": token},
    )


def legacy_verification_request(token_endpoint: str, token: str) -> httpx.Request:
    """Build a legacy token verification request (GET with bearer header)."""
    return httpx.Request(
        "GET",
        str(token_endpoint),
        headers={"Authorization": _bearer(token)},
    )


def revocation_request(revocation_endpoint: str, token: str) -> httpx.Request:
    """Build a token revocation request."""
    return httpx.Request(
        "POST",
        str(revocation_endpoint),
        headers=_form_headers(),
        data={"token": token},
    )


def legacy_revocation_request(token_endpoint: str, token: str) -> httpx.Request:
    """Build a legacy revocation request against the token endpoint."""
    return httpx.Request(
        "POST",
        str(token_endpoint),
        headers={"Content-Type": FORM_CONTENT_TYPE},
        data={"action": "revoke", "token": token},
    )


def parse_redemption_response(response: httpx.Response) -> RedemptionResponse:
    return decode(RedemptionResponse, response.content, url=str(response.request.url))


def parse_verification_response(response: httpx.Response) -> VerificationResponse:
    return decode(VerificationResponse, response.content, url=str(response.request.url))


def legacy_verification_fallback(error: HTTPStatusError) -> VerificationResponse:
    """Map a legacy verification failure to a result.

    Legacy token endpoints answer 400, 401 or 403 for a token that is not
    valid, where introspection would return ``active: false``.

    Raises:
        HTTPStatusError: The original error, for any other status.
    """
    if error.status_code in LEGACY_INACTIVE_STATUSES:
        return VerificationResponse.inactive()
    raise error


class TokenOperations:
    """Token request building bound to a client configuration.

    Shared by the sync and async clients, so both send identical requests.
    """

    def __init__(self, config: IndieAuthConfig) -> None:
        """Initialize token operations.

        Args:
            config: SDK configuration.
        """
        self.config = config

    def build_redemption_request(
        self,
        token_endpoint: str,
        code: str,
        code_verifier: str | None = None,
    ) -> httpx.Request:
        """Build authorization code exchange request.

        Args:
            token_endpoint: Token endpoint from discovery.
            code: Authorization code from the callback.
            code_verifier: PKCE code verifier used for the request.

        Returns:
            Prepared request.
        """
        return redemption_request(
            token_endpoint,
            RedemptionRequest(
                code=code,
                client_id=self.config.client_id,
                redirect_uri=self.config.redirect_uri,
                code_verifier=code_verifier,
            ),
        )

    def build_refresh_request(
        self,
        token_endpoint: str,
        refresh_token: str,
        scope: str | None = None,
    ) -> httpx.Request:
        """Build refresh token grant request.

        Args:
            token_endpoint: Token endpoint from discovery.
            refresh_token: Refresh token previously issued.
            scope: Optional narrower scope.

        Returns:
            Prepared request.
        """
        return refresh_request(
            token_endpoint,
            RefreshTokenRequest(
                refresh_token=refresh_token,
                client_id=self.config.client_id_str,
                scope=scope,
            ),
        )
