"""Authorization URL builder for the IndieAuth SDK.

Provides authorization URL construction and callback handling shared by
the sync and async clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode, urlsplit, urlunsplit

from ..errors import AuthorizationResponseError
from ..models import AuthorizationRequest, AuthorizationResponse, LegacyServerMetadata

if TYPE_CHECKING:
    from ..config import IndieAuthConfig
    from ..models import ServerMetadata


def authorize_request_url(endpoint: str, request: AuthorizationRequest) -> str:
    """Serialize an authorization request onto the authorization endpoint.

    Query parameters already present on the endpoint are preserved.

    Args:
        endpoint: Authorization endpoint URL.
        request: The authorization request.

    Returns:
        URL to send the user to.
    """
    parts = urlsplit(str(endpoint))
    query = urlencode(request.to_query_params())
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class AuthorizationBuilder:
    """Authorization URL builder shared by sync and async clients."""

    def __init__(self, config: IndieAuthConfig) -> None:
        """Initialize authorization builder.

        Args:
            config: SDK configuration.
        """
        self.config = config

    def build_request(
        self,
        metadata: ServerMetadata | LegacyServerMetadata,
        *,
        scope: str | None = None,
        me: str | None = None,
        state: str | None = None,
        code_verifier: str | None = None,
    ) -> AuthorizationRequest:
        """Build an authorization request for the discovered server."""
        return AuthorizationRequest.from_metadata(
            metadata,
            self.config,
            state=state,
            code_verifier=code_verifier,
            scope=scope,
            me=me,
        )

    def build_authorization_url(
        self,
        metadata: ServerMetadata | LegacyServerMetadata,
        *,
        scope: str | None = None,
        me: str | None = None,
        state: str | None = None,
        code_verifier: str | None = None,
    ) -> tuple[str, AuthorizationRequest]:
        """Build authorization URL for the authorization code flow.

        The returned request holds the state and code verifier; the caller
        keeps it until the callback arrives.

        Args:
            metadata: Server metadata from discovery.
            scope: Space-separated scopes to request.
            me: The URL the user entered.
            state: CSRF state (generated if not provided).
            code_verifier: PKCE verifier (generated if not provided).

        Returns:
            Tuple of (authorization_url, authorization_request).
        """
        request = self.build_request(
            metadata, scope=scope, me=me, state=state, code_verifier=code_verifier
        )
        return authorize_request_url(str(metadata.authorization_endpoint), request), request

    def parse_callback_url(
        self,
        callback_url: str,
        request: AuthorizationRequest,
        metadata: ServerMetadata | LegacyServerMetadata,
    ) -> AuthorizationResponse:
        """Parse authorization callback URL and check it against the request.

        Legacy endpoints publish no issuer to compare ``iss`` with, so their
        callbacks are rejected here; read them with
        ``AuthorizationResponse.from_callback`` and compare the state yourself.

        Args:
            callback_url: The redirect URL the user came back on.
            request: The authorization request that started the flow.
            metadata: Server metadata whose issuer must match ``iss``.

        Returns:
            The validated authorization response.

        Raises:
            AuthorizationResponseError: On an error callback, missing
                parameters, a state/issuer mismatch, or legacy metadata.
        """
        if isinstance(metadata, LegacyServerMetadata):
            msg = "Legacy endpoints publish no issuer to validate the callback against"
            raise AuthorizationResponseError(msg)

        AuthorizationResponse.raise_for_error(callback_url)

        response = AuthorizationResponse.from_callback(callback_url)
        if response is None:
            msg = "Callback is missing code, state or iss"
            raise AuthorizationResponseError(msg)

        return response.validate_against(request.state, metadata.issuer)
