"""OAuth 2.0 registry values used by IndieAuth.

Values follow the IANA OAuth Parameters registry.
"""

from __future__ import annotations

from enum import StrEnum


class AuthorizationResponseType(StrEnum):
    """Authorization endpoint response types."""

    CODE = "code"
    ID_TOKEN = "id_token"
    TOKEN = "token"


class TokenAuthenticationMethod(StrEnum):
    """Token endpoint authentication methods."""

    NONE = "none"
    CLIENT_SECRET_POST = "client_secret_post"
    CLIENT_SECRET_BASIC = "client_secret_basic"
    CLIENT_SECRET_JWT = "client_secret_jwt"
    PRIVATE_KEY_JWT = "private_key_jwt"
    TLS_CLIENT_AUTH = "tls_client_auth"
    SELF_SIGNED_TLS_CLIENT_AUTH = "self_signed_tls_client_auth"


class PKCEChallengeMethod(StrEnum):
    """PKCE code challenge methods."""

    PLAIN = "plain"
    S256 = "S256"


class GrantType(StrEnum):
    """OAuth 2.0 grant types (RFC 7591 section 2)."""

    AUTHORIZATION_CODE = "authorization_code"
    IMPLICIT = "implicit"
    PASSWORD = "password"
    CLIENT_CREDENTIALS = "client_credentials"
    REFRESH_TOKEN = "refresh_token"
    JWT_BEARER = "urn:ietf:params:oauth:grant-type:jwt-bearer"
    SAML2_BEARER = "urn:ietf:params:oauth:grant-type:saml2-bearer"
