"""Async IndieAuth client.

The primary client: discovery, authorization URL construction and the
token lifecycle (redeem, refresh, verify, revoke) over ``httpx.AsyncClient``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from .config import IndieAuthConfig
from .core.auth_builder import AuthorizationBuilder
from .core.http_executor import AsyncHTTPExecutor
from .core.token_ops import (
    TokenOperations,
    legacy_revocation_request,
    legacy_verification_fallback,
    legacy_verification_request,
    parse_redemption_response,
    parse_verification_response,
    revocation_request,
    verification_request,
)
from .discovery import decode_metadata, metadata_url, prepare_profile_url
from .discovery import discover_legacy as legacy_endpoints
from .errors import HTTPStatusError, MetadataNotFoundError
from .html import ProfileDocument
from .http import create_async_http_client
from .telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    import httpx

    from .models import (
        AuthorizationRequest,
        AuthorizationResponse,
        LegacyServerMetadata,
        RedemptionResponse,
        RefreshTokenResponse,
        ServerMetadata,
        VerificationResponse,
    )


class AsyncIndieAuthClient:
    """Asynchronous IndieAuth client.

    Holds only immutable configuration and the HTTP client, so one
    instance may serve concurrent flows.
    """

    def __init__(
        self,
        config: IndieAuthConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize async client.

        Args:
            config: SDK configuration.
            http_client: Optional pre-configured HTTP client. The client
                closes only an HTTP client it created itself.
        """
        self.config = config
        self._owns_http = http_client is None
        self._http = http_client or create_async_http_client(config)
        self._executor = AsyncHTTPExecutor(self._http)
        self._tokens = TokenOperations(config)
        self._auth = AuthorizationBuilder(config)
        self._logger = get_logger()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_http:
            await self._http.aclose()

    # Discovery

    async def fetch_profile(
        self, profile_url: str, *, strict_profile_url: bool = False
    ) -> ProfileDocument:
        """Fetch a profile page for discovery.

        Args:
            profile_url: URL (or bare host) the user entered.
            strict_profile_url: Enforce the profile URL rules before fetching.

        Returns:
            The fetched document, reusable for modern and legacy discovery.
        """
        url = prepare_profile_url(profile_url, strict=strict_profile_url)
        response = await self._executor.fetch(url)
        return ProfileDocument.from_response(response)

    async def _document(self, target: str | ProfileDocument) -> ProfileDocument:
        if isinstance(target, ProfileDocument):
            return target
        return await self.fetch_profile(target)

    async def discover(self, target: str | ProfileDocument) -> ServerMetadata:
        """Discover server metadata through the ``indieauth-metadata`` link.

        Args:
            target: Profile URL to fetch, or an already-fetched document.

        Returns:
            Decoded server metadata.

        Raises:
            MetadataNotFoundError: If the profile has no metadata link.
            HTTPStatusError: If a fetch returns a non-2xx status.
            DecodeError: If the metadata document is malformed.
            NetworkError: On transport failure.
        """
        with trace_operation("discover"):
            document = await self._document(target)
            url = metadata_url(document)
            response = await self._executor.fetch(url)
            metadata = decode_metadata(url, response.content)
            self._logger.info("Discovered server metadata", profile=document.url, issuer=metadata.issuer)
            return metadata

    async def discover_legacy(self, target: str | ProfileDocument) -> LegacyServerMetadata:
        """Discover legacy ``authorization_endpoint``/``token_endpoint`` links.

        Args:
            target: Profile URL to fetch, or an already-fetched document.

        Returns:
            Legacy endpoints.

        Raises:
            MetadataNotFoundError: Unless both links are present.
        """
        with trace_operation("discover_legacy"):
            document = await self._document(target)
            endpoints = legacy_endpoints(document)
            self._logger.info("Discovered legacy endpoints", profile=document.url)
            return endpoints

    async def discover_endpoints(
        self, profile_url: str, *, strict_profile_url: bool = False
    ) -> ServerMetadata | LegacyServerMetadata:
        """Discover endpoints, falling back to legacy links.

        The profile page is fetched once and reused for both attempts.
        """
        document = await self.fetch_profile(profile_url, strict_profile_url=strict_profile_url)
        try:
            return await self.discover(document)
        except MetadataNotFoundError:
            self._logger.info("No metadata link, trying legacy discovery", profile=document.url)
            return await self.discover_legacy(document)

    # Authorization

    def authorization_url(
        self,
        metadata: ServerMetadata | LegacyServerMetadata,
        *,
        scope: str | None = None,
        me: str | None = None,
        state: str | None = None,
        code_verifier: str | None = None,
    ) -> tuple[str, AuthorizationRequest]:
        """Create the URL to send the user to.

        Returns:
            Tuple of (authorization_url, authorization_request). Keep the
            request: its state and code verifier are needed later.
        """
        return self._auth.build_authorization_url(
            metadata, scope=scope, me=me, state=state, code_verifier=code_verifier
        )

    def parse_callback(
        self,
        callback_url: str,
        request: AuthorizationRequest,
        metadata: ServerMetadata | LegacyServerMetadata,
    ) -> AuthorizationResponse:
        """Parse and validate the redirect back from the authorization server."""
        return self._auth.parse_callback_url(callback_url, request, metadata)

    # Token lifecycle

    async def redeem(
        self,
        token_endpoint: str,
        code: str,
        *,
        code_verifier: str | None = None,
    ) -> RedemptionResponse:
        """Exchange authorization code for tokens.

        Args:
            token_endpoint: Token endpoint from discovery.
            code: Authorization code from the callback.
            code_verifier: PKCE code verifier of the authorization request.

        Returns:
            Redemption response carrying ``me`` and any tokens.
        """
        with trace_operation("redeem"):
            request = self._tokens.build_redemption_request(
                str(token_endpoint), code, code_verifier
            )
            response = parse_redemption_response(await self._executor.send(request))
            self._logger.info("Redeemed authorization code", me=str(response.me))
            return response

    async def refresh(
        self,
        token_endpoint: str,
        refresh_token: str,
        *,
        scope: str | None = None,
    ) -> RefreshTokenResponse:
        """Obtain new tokens with a refresh token.

        Args:
            token_endpoint: Token endpoint from discovery.
            refresh_token: Refresh token previously issued.
            scope: Optional equal-or-narrower scope.

        Returns:
            New token response.
        """
        with trace_operation("refresh"):
            request = self._tokens.build_refresh_request(
                str(token_endpoint), refresh_token, scope
            )
            return parse_redemption_response(await self._executor.send(request))

    async def verify(self, introspection_endpoint: str, token: str) -> VerificationResponse:
        """Introspect an access token."""
        with trace_operation("verify"):
            request = verification_request(str(introspection_endpoint), token)
            return parse_verification_response(await self._executor.send(request))

    async def verify_legacy(self, token_endpoint: str, token: str) -> VerificationResponse:
        """Verify an access token against a legacy token endpoint.

        Statuses 400, 401 and 403 yield ``VerificationResponse.inactive()``.

        Raises:
            HTTPStatusError: For any other non-2xx status.
        """
        with trace_operation("verify_legacy"):
            request = legacy_verification_request(str(token_endpoint), token)
            try:
                response = await self._executor.send(request)
            except HTTPStatusError as e:
                return legacy_verification_fallback(e)
            return parse_verification_response(response)

    async def revoke(self, revocation_endpoint: str, token: str) -> None:
        """Revoke a token at the revocation endpoint."""
        with trace_operation("revoke"):
            await self._executor.send(revocation_request(str(revocation_endpoint), token))

    async def revoke_legacy(self, token_endpoint: str, token: str) -> None:
        """Revoke a token with ``action=revoke`` at a legacy token endpoint."""
        with trace_operation("revoke_legacy"):
            await self._executor.send(legacy_revocation_request(str(token_endpoint), token))
