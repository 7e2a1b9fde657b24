"""IndieAuth client SDK for Python."""

from .async_client import AsyncIndieAuthClient
from .client import IndieAuthClient
from .config import IndieAuthConfig, TelemetryConfig
from .errors import (
    AuthorizationResponseError,
    DecodeError,
    ErrorCode,
    HTTPStatusError,
    IndieAuthError,
    InvalidCodeVerifierError,
    InvalidConfigError,
    InvalidURLError,
    MetadataNotFoundError,
    NetworkError,
    TimeoutError,
)
from .html import ProfileDocument
from .models import (
    AuthorizationRequest,
    AuthorizationResponse,
    DiscoveryResponse,
    LegacyServerMetadata,
    Profile,
    RedemptionRequest,
    RedemptionResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    ServerMetadata,
    VerificationResponse,
)
from .oauth import (
    AuthorizationResponseType,
    GrantType,
    PKCEChallengeMethod,
    TokenAuthenticationMethod,
)
from .pkce import code_challenge, generate_code_verifier, generate_state
from .telemetry import configure_telemetry
from .urls import URLRule, URLType

__all__ = [
    "AsyncIndieAuthClient",
    "IndieAuthClient",
    "IndieAuthConfig",
    "TelemetryConfig",
    "AuthorizationResponseError",
    "DecodeError",
    "ErrorCode",
    "HTTPStatusError",
    "IndieAuthError",
    "InvalidCodeVerifierError",
    "InvalidConfigError",
    "InvalidURLError",
    "MetadataNotFoundError",
    "NetworkError",
    "TimeoutError",
    "ProfileDocument",
    "AuthorizationRequest",
    "AuthorizationResponse",
    "DiscoveryResponse",
    "LegacyServerMetadata",
    "Profile",
    "RedemptionRequest",
    "RedemptionResponse",
    "RefreshTokenRequest",
    "RefreshTokenResponse",
    "ServerMetadata",
    "VerificationResponse",
    "AuthorizationResponseType",
    "GrantType",
    "PKCEChallengeMethod",
    "TokenAuthenticationMethod",
    "code_challenge",
    "generate_code_verifier",
    "generate_state",
    "configure_telemetry",
    "URLRule",
    "URLType",
]

__version__ = "0.1.0"
