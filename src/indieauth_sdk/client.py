"""Synchronous IndieAuth client.

Mirrors ``AsyncIndieAuthClient`` over ``httpx.Client``. Request building
and response interpretation come from ``core``, so both clients send and
accept exactly the same messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from .config import IndieAuthConfig
from .core.auth_builder import AuthorizationBuilder
from .core.http_executor import SyncHTTPExecutor
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
from .http import create_http_client
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


class IndieAuthClient:
    """Synchronous IndieAuth client."""

    def __init__(
        self,
        config: IndieAuthConfig,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self._owns_http = http_client is None
        self._http = http_client or create_http_client(config)
        self._executor = SyncHTTPExecutor(self._http)
        self._tokens = TokenOperations(config)
        self._auth = AuthorizationBuilder(config)
        self._logger = get_logger()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_http:
            self._http.close()

    def fetch_profile(
        self, profile_url: str, *, strict_profile_url: bool = False
    ) -> ProfileDocument:
        """Fetch a profile page for discovery."""
        url = prepare_profile_url(profile_url, strict=strict_profile_url)
        return ProfileDocument.from_response(self._executor.fetch(url))

    def _document(self, target: str | ProfileDocument) -> ProfileDocument:
        if isinstance(target, ProfileDocument):
            return target
        return self.fetch_profile(target)

    def discover(self, target: str | ProfileDocument) -> ServerMetadata:
        """Discover server metadata through the ``indieauth-metadata`` link.

        Raises:
            MetadataNotFoundError: If the profile has no metadata link.
        """
        with trace_operation("discover"):
            document = self._document(target)
            url = metadata_url(document)
            metadata = decode_metadata(url, self._executor.fetch(url).content)
            self._logger.info("Discovered server metadata", profile=document.url, issuer=metadata.issuer)
            return metadata

    def discover_legacy(self, target: str | ProfileDocument) -> LegacyServerMetadata:
        """Discover legacy ``authorization_endpoint``/``token_endpoint`` links."""
        with trace_operation("discover_legacy"):
            document = self._document(target)
            endpoints = legacy_endpoints(document)
            self._logger.info("Discovered legacy endpoints", profile=document.url)
            return endpoints

    def discover_endpoints(
        self, profile_url: str, *, strict_profile_url: bool = False
    ) -> ServerMetadata | LegacyServerMetadata:
        """Discover endpoints, falling back to legacy links."""
        document = self.fetch_profile(profile_url, strict_profile_url=strict_profile_url)
        try:
            return self.discover(document)
        except MetadataNotFoundError:
            self._logger.info("No metadata link, trying legacy discovery", profile=document.url)
            return self.discover_legacy(document)

    def authorization_url(
        self,
        metadata: ServerMetadata | LegacyServerMetadata,
        *,
        scope: str | None = None,
        me: str | None = None,
        state: str | None = None,
        code_verifier: str | None = None,
    ) -> tuple[str, AuthorizationRequest]:
        """Create the URL to send the user to."""
        return self._auth.build_authorization_url(
            metadata, scope=scope, me=me, state=state, code_verifier=code_verifier
        )

    def parse_callback(
        self,
        callback_url: str,
        request: AuthorizationRequest,
        metadata: ServerMetadata | LegacyServerMetadata,
    ) -> AuthorizationResponse:
        return self._auth.parse_callback_url(callback_url, request, metadata)

    def redeem(
        self,
        token_endpoint: str,
        code: str,
        *,
        code_verifier: str | None = None,
    ) -> RedemptionResponse:
        """Exchange authorization code for tokens."""
        with trace_operation("redeem"):
            request = self._tokens.build_redemption_request(
                str(token_endpoint), code, code_verifier
            )
            response = parse_redemption_response(self._executor.send(request))
            self._logger.info("Redeemed authorization code", me=str(response.me))
            return response

    def refresh(
        self,
        token_endpoint: str,
        refresh_token: str,
        *,
        scope: str | None = None,
    ) -> RefreshTokenResponse:
        """Obtain new tokens with a refresh token."""
        with trace_operation("refresh"):
            request = self._tokens.build_refresh_request(
                str(token_endpoint), refresh_token, scope
            )
            return parse_redemption_response(self._executor.send(request))

    def verify(self, introspection_endpoint: str, token: str) -> VerificationResponse:
        """Introspect an access token."""
        with trace_operation("verify"):
            request = verification_request(str(introspection_endpoint), token)
            return parse_verification_response(self._executor.send(request))

    def verify_legacy(self, token_endpoint: str, token: str) -> VerificationResponse:
        """Verify an access token against a legacy token endpoint."""
        with trace_operation("verify_legacy"):
            request = legacy_verification_request(str(token_endpoint), token)
            try:
                response = self._executor.send(request)
            except HTTPStatusError as e:
                return legacy_verification_fallback(e)
            return parse_verification_response(response)

    def revoke(self, revocation_endpoint: str, token: str) -> None:
        with trace_operation("revoke"):
            self._executor.send(revocation_request(str(revocation_endpoint), token))

    def revoke_legacy(self, token_endpoint: str, token: str) -> None:
        with trace_operation("revoke_legacy"):
            self._executor.send(legacy_revocation_request(str(token_endpoint), token))
