"""Configuration for the IndieAuth SDK.

Client identity is passed explicitly through an immutable config object,
validated once at construction.
"""

from __future__ import annotations

from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

from .errors import InvalidConfigError
from .pkce import DEFAULT_CODE_VERIFIER_LENGTH, DEFAULT_STATE_LENGTH
from .urls import CLIENT_ID_RULES, validate


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "indieauth-sdk"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        supported = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in supported:
            msg = f"Unsupported log level: {v}. Supported: {supported}"
            raise ValueError(msg)
        return v.upper()


class IndieAuthConfig(BaseModel):
    """Main configuration for the IndieAuth SDK."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Required
    client_id: HttpUrl
    redirect_uri: HttpUrl

    # PKCE / state generation
    state_length: Annotated[int, Field(ge=1, le=512)] = DEFAULT_STATE_LENGTH
    # None, or a value outside 43-128, means a random verifier length
    code_verifier_length: int | None = DEFAULT_CODE_VERIFIER_LENGTH

    # HTTP settings, enforced by the HTTP client only
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0
    user_agent: str = "indieauth-sdk/0.1.0 Python"

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    validate_client_id: bool = True

    @model_validator(mode="after")
    def check_client_id(self) -> Self:
        """Reject client identifiers that break the IndieAuth URL rules."""
        if self.validate_client_id:
            violations = validate(str(self.client_id), CLIENT_ID_RULES)
            if violations:
                reasons = "; ".join(rule.description for rule in violations)
                msg = f"client_id {self.client_id} is not a valid client identifier: {reasons}"
                raise ValueError(msg)
        return self

    @property
    def client_id_str(self) -> str:
        return str(self.client_id)

    @property
    def redirect_uri_str(self) -> str:
        return str(self.redirect_uri)

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "INDIEAUTH_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        client_id = get_env("CLIENT_ID")
        if not client_id:
            msg = f"{prefix}CLIENT_ID environment variable is required"
            raise InvalidConfigError(msg, field="client_id")

        redirect_uri = get_env("REDIRECT_URI")
        if not redirect_uri:
            msg = f"{prefix}REDIRECT_URI environment variable is required"
            raise InvalidConfigError(msg, field="redirect_uri")

        verifier_length = get_env("CODE_VERIFIER_LENGTH", str(DEFAULT_CODE_VERIFIER_LENGTH))

        return cls(
            client_id=client_id,
            redirect_uri=redirect_uri,
            state_length=int(get_env("STATE_LENGTH", str(DEFAULT_STATE_LENGTH))),
            code_verifier_length=int(verifier_length) if verifier_length else None,
            timeout=float(get_env("TIMEOUT", "30.0")),
        )
