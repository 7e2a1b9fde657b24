"""Pydantic models for the IndieAuth SDK.

Wire payloads use snake_case names, which are also the field names here,
so every model decodes straight from JSON with ``model_validate_json``.
Models are frozen; build modified copies with ``model_copy(update=...)``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Self
from urllib.parse import parse_qsl, urlsplit

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    computed_field,
    field_validator,
)

from .errors import AuthorizationResponseError
from .oauth import (
    AuthorizationResponseType,
    GrantType,
    PKCEChallengeMethod,
    TokenAuthenticationMethod,
)
from .pkce import (
    code_challenge,
    ensure_code_verifier,
    generate_code_verifier,
    generate_state,
)

if TYPE_CHECKING:
    from .config import IndieAuthConfig


def _known(enum_cls: type[StrEnum]) -> BeforeValidator:
    """Drop registry values this SDK does not recognise instead of failing."""

    def keep_known(values: Any) -> Any:
        if not isinstance(values, list):
            return values
        allowed = {member.value for member in enum_cls}
        return [v for v in values if v in allowed]

    return BeforeValidator(keep_known)


class ServerMetadata(BaseModel):
    """IndieAuth server metadata (RFC 8414 profile).

    Optional lists fall back to the IndieAuth defaults when absent:
    ``response_types_supported`` -> ``[code]``,
    ``grant_types_supported`` -> ``[authorization_code]``,
    ``revocation_endpoint_auth_methods_supported`` -> ``[none]``.
    A missing ``code_challenge_methods_supported`` is treated as plain only.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Kept verbatim: callbacks compare `iss` against it by plain string equality
    issuer: str
    authorization_endpoint: HttpUrl
    token_endpoint: HttpUrl
    introspection_endpoint: HttpUrl
    introspection_endpoint_auth_methods_supported: Annotated[
        list[TokenAuthenticationMethod], _known(TokenAuthenticationMethod)
    ] = Field(default_factory=list)
    revocation_endpoint: HttpUrl | None = None
    revocation_endpoint_auth_methods_supported: Annotated[
        list[TokenAuthenticationMethod], _known(TokenAuthenticationMethod)
    ] = Field(default_factory=lambda: [TokenAuthenticationMethod.NONE])
    scopes_supported: list[str] = Field(default_factory=list)
    response_types_supported: Annotated[
        list[AuthorizationResponseType], _known(AuthorizationResponseType)
    ] = Field(default_factory=lambda: [AuthorizationResponseType.CODE])
    grant_types_supported: Annotated[list[GrantType], _known(GrantType)] = Field(
        default_factory=lambda: [GrantType.AUTHORIZATION_CODE]
    )
    service_documentation: HttpUrl | None = None
    code_challenge_methods_supported: Annotated[
        list[PKCEChallengeMethod], _known(PKCEChallengeMethod)
    ] = Field(default_factory=list)
    authorization_response_iss_parameter_supported: bool = False
    userinfo_endpoint: HttpUrl | None = None

    @field_validator("issuer")
    @classmethod
    def validate_issuer(cls, v: str) -> str:
        """Issuer identifiers are http(s) URLs with no query or fragment."""
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            msg = "issuer must be an http(s) URL"
            raise ValueError(msg)
        if parts.query or parts.fragment or v.endswith(("?", "#")):
            msg = "issuer must not contain a query or fragment component"
            raise ValueError(msg)
        return v

    @property
    def supports_s256(self) -> bool:
        return PKCEChallengeMethod.S256 in self.code_challenge_methods_supported

    @property
    def preferred_code_challenge_method(self) -> PKCEChallengeMethod:
        """S256 when advertised, plain otherwise."""
        return PKCEChallengeMethod.S256 if self.supports_s256 else PKCEChallengeMethod.PLAIN

    @property
    def preferred_response_type(self) -> str:
        if self.response_types_supported:
            return self.response_types_supported[0].value
        return AuthorizationResponseType.CODE.value


DiscoveryResponse = ServerMetadata


class LegacyServerMetadata(BaseModel):
    """Endpoints found through separate ``<link>`` tags on the profile page."""

    model_config = ConfigDict(frozen=True)

    authorization_endpoint: HttpUrl
    token_endpoint: HttpUrl

    # Legacy servers advertise nothing, so the metadata defaults apply
    @property
    def preferred_code_challenge_method(self) -> PKCEChallengeMethod:
        return PKCEChallengeMethod.PLAIN

    @property
    def preferred_response_type(self) -> str:
        return AuthorizationResponseType.CODE.value


class AuthorizationRequest(BaseModel):
    """Parameters of the authorization redirect.

    ``code_challenge`` is always derived from ``code_verifier`` and
    ``code_challenge_method``; it cannot be set on its own.
    """

    model_config = ConfigDict(frozen=True)

    response_type: str = "code"
    client_id: HttpUrl
    redirect_uri: HttpUrl
    state: str = Field(default_factory=generate_state, min_length=1)
    code_verifier: str = Field(default_factory=generate_code_verifier, min_length=1)
    code_challenge_method: PKCEChallengeMethod = PKCEChallengeMethod.S256
    scope: str | None = None
    me: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def code_challenge(self) -> str:
        return code_challenge(self.code_verifier, self.code_challenge_method)

    @classmethod
    def from_metadata(
        cls,
        metadata: ServerMetadata | LegacyServerMetadata,
        config: IndieAuthConfig,
        *,
        state: str | None = None,
        code_verifier: str | None = None,
        scope: str | None = None,
        me: str | None = None,
    ) -> Self:
        """Build a request from discovered metadata and client configuration.

        Args:
            metadata: Server metadata from discovery.
            config: Client configuration supplying identity and lengths.
            state: State value (generated if not provided).
            code_verifier: PKCE verifier (generated if not provided).
            scope: Space-separated scopes to request.
            me: The URL the user entered, as a hint to the server.

        Returns:
            Authorization request using S256 when the server supports it.

        Raises:
            InvalidCodeVerifierError: If a supplied verifier breaks RFC 7636.
        """
        return cls(
            response_type=metadata.preferred_response_type,
            client_id=config.client_id,
            redirect_uri=config.redirect_uri,
            state=state or generate_state(config.state_length),
            code_verifier=(
                ensure_code_verifier(code_verifier)
                if code_verifier
                else generate_code_verifier(config.code_verifier_length)
            ),
            code_challenge_method=metadata.preferred_code_challenge_method,
            scope=scope,
            me=me,
        )

    def to_query_params(self) -> dict[str, str]:
        """Convert to URL query parameters."""
        params: dict[str, str] = {
            "response_type": self.response_type,
            "client_id": str(self.client_id),
            "redirect_uri": str(self.redirect_uri),
            "state": self.state,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method.value,
        }
        if self.scope is not None:
            params["scope"] = self.scope
        if self.me is not None:
            params["me"] = self.me
        return params


def _callback_params(url: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for name, value in parse_qsl(urlsplit(str(url)).query):
        params.setdefault(name, value)
    return params


class AuthorizationResponse(BaseModel):
    """Query parameters of the redirect back from the authorization endpoint."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    iss: str = Field(..., min_length=1)

    @classmethod
    def from_callback(cls, url: str) -> Self | None:
        """Parse a callback URL; ``None`` if code, state or iss is missing."""
        params = _callback_params(url)
        try:
            return cls(code=params["code"], state=params["state"], iss=params["iss"])
        except KeyError:
            return None

    @staticmethod
    def raise_for_error(url: str) -> None:
        """Raise if the callback carries an OAuth ``error`` parameter."""
        params = _callback_params(url)
        if "error" in params:
            error = params["error"]
            description = params.get("error_description")
            msg = f"Authorization error: {error}"
            if description:
                msg += f" - {description}"
            raise AuthorizationResponseError(
                msg, error=error, error_description=description
            )

    def validate_against(self, expected_state: str, expected_issuer: str) -> Self:
        """Check state and issuer with simple string comparison.

        Raises:
            AuthorizationResponseError: On a state or issuer mismatch.
        """
        if self.state != expected_state:
            msg = "State mismatch - possible CSRF attack"
            raise AuthorizationResponseError(msg)
        if self.iss != expected_issuer:
            msg = f"Issuer mismatch: expected {expected_issuer}, got {self.iss}"
            raise AuthorizationResponseError(msg)
        return self


class RedemptionRequest(BaseModel):
    """Authorization code exchange parameters."""

    model_config = ConfigDict(frozen=True)

    grant_type: Literal[GrantType.AUTHORIZATION_CODE] = GrantType.AUTHORIZATION_CODE
    code: str = Field(..., min_length=1)
    client_id: HttpUrl
    redirect_uri: HttpUrl
    code_verifier: str | None = None

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for the token endpoint."""
        data: dict[str, str] = {
            "grant_type": self.grant_type.value,
            "code": self.code,
            "client_id": str(self.client_id),
            "redirect_uri": str(self.redirect_uri),
        }
        if self.code_verifier is not None:
            data["code_verifier"] = self.code_verifier
        return data


class Profile(BaseModel):
    """Profile information returned with the ``profile`` scope."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    url: HttpUrl
    photo: HttpUrl
    email: str | None = None


class RedemptionResponse(BaseModel):
    """Token endpoint response for code redemption and refresh."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str | None = None
    me: HttpUrl
    profile: Profile | None = None
    expires_in: int | float | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    scope: str | None = None


RefreshTokenResponse = RedemptionResponse


class RefreshTokenRequest(BaseModel):
    """Refresh token grant parameters."""

    model_config = ConfigDict(frozen=True)

    grant_type: Literal[GrantType.REFRESH_TOKEN] = GrantType.REFRESH_TOKEN
    refresh_token: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    scope: str | None = None

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for the token endpoint."""
        data: dict[str, str] = {
            "grant_type": self.grant_type.value,
            "refresh_token": self.refresh_token,
            "client_id": self.client_id,
        }
        if self.scope is not None:
            data["scope"] = self.scope
        return data


class VerificationResponse(BaseModel):
    """Token introspection (or legacy token verification) response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    active: bool
    me: HttpUrl | None = None
    client_id: HttpUrl | None = None
    scope: str | None = None
    exp: int | float | None = None
    iat: int | float | None = None

    @classmethod
    def inactive(cls) -> Self:
        """The canonical "no valid session" response."""
        return cls(active=False)

    @property
    def scopes(self) -> list[str]:
        """Get scopes as list."""
        if self.scope is None:
            return []
        return self.scope.split()

    @property
    def expires_at(self) -> datetime | None:
        if self.exp is None:
            return None
        return datetime.fromtimestamp(self.exp, tz=UTC)

    @property
    def issued_at(self) -> datetime | None:
        if self.iat is None:
            return None
        return datetime.fromtimestamp(self.iat, tz=UTC)
