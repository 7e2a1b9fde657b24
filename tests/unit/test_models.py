"""Unit tests for IndieAuth SDK models."""

from datetime import UTC, datetime
from urllib.parse import quote

import pytest
from pydantic import ValidationError

from conftest import CLIENT_ID, ISSUER, METADATA, REDIRECT_URI
from indieauth_sdk.config import IndieAuthConfig
from indieauth_sdk.errors import AuthorizationResponseError, InvalidCodeVerifierError
from indieauth_sdk.models import (
    AuthorizationRequest,
    AuthorizationResponse,
    LegacyServerMetadata,
    RedemptionRequest,
    RedemptionResponse,
    RefreshTokenRequest,
    ServerMetadata,
    VerificationResponse,
)
from indieauth_sdk.oauth import (
    AuthorizationResponseType,
    GrantType,
    PKCEChallengeMethod,
    TokenAuthenticationMethod,
)
from indieauth_sdk.pkce import s256_encode

MINIMAL_METADATA = {
    "issuer": ISSUER,
    "authorization_endpoint": "https://auth.example.org/auth",
    "token_endpoint": "https://auth.example.org/token",
    "introspection_endpoint": "https://auth.example.org/introspect",
}


class TestServerMetadata:
    """Tests for ServerMetadata decoding."""

    def test_defaults_for_absent_lists(self) -> None:
        metadata = ServerMetadata.model_validate(MINIMAL_METADATA)

        assert metadata.response_types_supported == [AuthorizationResponseType.CODE]
        assert metadata.grant_types_supported == [GrantType.AUTHORIZATION_CODE]
        assert metadata.revocation_endpoint_auth_methods_supported == [
            TokenAuthenticationMethod.NONE
        ]
        assert metadata.code_challenge_methods_supported == []
        assert metadata.preferred_code_challenge_method is PKCEChallengeMethod.PLAIN
        assert metadata.revocation_endpoint is None
        assert metadata.authorization_response_iss_parameter_supported is False

    def test_full_document(self) -> None:
        metadata = ServerMetadata.model_validate(METADATA)

        assert metadata.supports_s256
        assert metadata.preferred_code_challenge_method is PKCEChallengeMethod.S256
        assert metadata.scopes_supported == ["profile", "create"]
        assert str(metadata.revocation_endpoint) == "https://auth.example.org/revoke"

    def test_issuer_kept_verbatim(self) -> None:
        metadata = ServerMetadata.model_validate({**MINIMAL_METADATA, "issuer": "https://auth.example.org"})
        assert metadata.issuer == "https://auth.example.org"

    def test_unknown_registry_values_dropped(self) -> None:
        metadata = ServerMetadata.model_validate(
            {
                **MINIMAL_METADATA,
                "code_challenge_methods_supported": ["S512", "S256"],
                "grant_types_supported": ["authorization_code", "urn:example:custom"],
            }
        )
        assert metadata.code_challenge_methods_supported == [PKCEChallengeMethod.S256]
        assert metadata.grant_types_supported == [GrantType.AUTHORIZATION_CODE]

    @pytest.mark.parametrize(
        "issuer",
        ["https://auth.example.org/?tenant=1", "https://auth.example.org/#x", "ftp://auth.example.org/", "auth"],
    )
    def test_invalid_issuer_rejected(self, issuer: str) -> None:
        with pytest.raises(ValidationError):
            ServerMetadata.model_validate({**MINIMAL_METADATA, "issuer": issuer})

    @pytest.mark.parametrize("field", ["issuer", "authorization_endpoint", "token_endpoint", "introspection_endpoint"])
    def test_required_fields(self, field: str) -> None:
        data = dict(MINIMAL_METADATA)
        del data[field]
        with pytest.raises(ValidationError):
            ServerMetadata.model_validate(data)

    def test_frozen(self) -> None:
        metadata = ServerMetadata.model_validate(MINIMAL_METADATA)
        with pytest.raises(ValidationError):
            metadata.issuer = "https://other.example/"


class TestAuthorizationRequest:
    """Tests for AuthorizationRequest."""

    def test_from_metadata_prefers_s256(self, config: IndieAuthConfig, metadata: ServerMetadata) -> None:
        request = AuthorizationRequest.from_metadata(metadata, config, scope="profile")

        assert request.code_challenge_method is PKCEChallengeMethod.S256
        assert request.code_challenge == s256_encode(request.code_verifier)
        assert len(request.state) == config.state_length
        assert len(request.code_verifier) == 128
        assert request.response_type == "code"

    def test_from_metadata_without_s256_uses_plain(self, config: IndieAuthConfig) -> None:
        metadata = ServerMetadata.model_validate(MINIMAL_METADATA)
        request = AuthorizationRequest.from_metadata(metadata, config)

        assert request.code_challenge_method is PKCEChallengeMethod.PLAIN
        assert request.code_challenge == request.code_verifier

    def test_from_legacy_metadata_uses_plain(self, config: IndieAuthConfig) -> None:
        legacy = LegacyServerMetadata(
            authorization_endpoint="https://auth.example.org/auth",
            token_endpoint="https://auth.example.org/token",
        )
        request = AuthorizationRequest.from_metadata(legacy, config)
        assert request.code_challenge_method is PKCEChallengeMethod.PLAIN

    def test_supplied_values_used(self, config: IndieAuthConfig, metadata: ServerMetadata) -> None:
        verifier = "v" * 50
        request = AuthorizationRequest.from_metadata(metadata, config, state="abc", code_verifier=verifier)
        assert request.state == "abc"
        assert request.code_verifier == verifier

    def test_supplied_invalid_verifier_rejected(self, config: IndieAuthConfig, metadata: ServerMetadata) -> None:
        with pytest.raises(InvalidCodeVerifierError):
            AuthorizationRequest.from_metadata(metadata, config, code_verifier="too-short")

    def test_query_params_omit_absent_optionals(self) -> None:
        request = AuthorizationRequest(client_id=CLIENT_ID, redirect_uri=REDIRECT_URI)
        params = request.to_query_params()

        assert set(params) == {
            "response_type",
            "client_id",
            "redirect_uri",
            "state",
            "code_challenge",
            "code_challenge_method",
        }
        assert params["client_id"] == CLIENT_ID
        assert params["code_challenge_method"] == "S256"

    def test_query_params_include_scope_and_me(self) -> None:
        request = AuthorizationRequest(
            client_id=CLIENT_ID,
            redirect_uri=REDIRECT_URI,
            scope="profile create",
            me="https://user.example.net/",
        )
        params = request.to_query_params()
        assert params["scope"] == "profile create"
        assert params["me"] == "https://user.example.net/"


class TestAuthorizationResponse:
    """Tests for callback parsing."""

    def callback(self, query: str) -> str:
        return f"{REDIRECT_URI}?{query}"

    def test_from_callback(self) -> None:
        url = self.callback(f"code=abc&state=xyz&iss={quote(ISSUER, safe='')}")
        response = AuthorizationResponse.from_callback(url)

        assert response is not None
        assert response.code == "abc"
        assert response.state == "xyz"
        assert response.iss == ISSUER

    @pytest.mark.parametrize(
        "query",
        ["state=xyz&iss=x", "code=abc&iss=x", "code=abc&state=xyz", "code=&state=xyz&iss=x", ""],
    )
    def test_missing_or_blank_parameters(self, query: str) -> None:
        assert AuthorizationResponse.from_callback(self.callback(query)) is None

    def test_first_value_wins(self) -> None:
        response = AuthorizationResponse.from_callback(self.callback("code=one&code=two&state=s&iss=i"))
        assert response is not None
        assert response.code == "one"

    def test_raise_for_error(self) -> None:
        url = self.callback("error=access_denied&error_description=User+denied+access&state=xyz")
        with pytest.raises(AuthorizationResponseError) as exc_info:
            AuthorizationResponse.raise_for_error(url)

        assert exc_info.value.error == "access_denied"
        assert exc_info.value.error_description == "User denied access"
        assert "access_denied" in exc_info.value.message

    def test_raise_for_error_ignores_success(self) -> None:
        AuthorizationResponse.raise_for_error(self.callback("code=abc&state=xyz&iss=i"))

    def test_validate_against(self) -> None:
        response = AuthorizationResponse(code="abc", state="xyz", iss=ISSUER)
        assert response.validate_against("xyz", ISSUER) is response

    def test_state_mismatch(self) -> None:
        response = AuthorizationResponse(code="abc", state="xyz", iss=ISSUER)
        with pytest.raises(AuthorizationResponseError, match="State mismatch"):
            response.validate_against("other", ISSUER)

    def test_issuer_compared_as_plain_string(self) -> None:
        response = AuthorizationResponse(code="abc", state="xyz", iss="https://auth.example.org")
        with pytest.raises(AuthorizationResponseError, match="Issuer mismatch"):
            response.validate_against("xyz", ISSUER)


class TestTokenModels:
    """Tests for token request and response models."""

    def test_redemption_form_data(self) -> None:
        request = RedemptionRequest(
            code="abc",
            client_id=CLIENT_ID,
            redirect_uri=REDIRECT_URI,
            code_verifier="verifier",
        )
        assert request.to_form_data() == {
            "grant_type": "authorization_code",
            "code": "abc",
            "client_id": CLIENT_ID,
            "redirect_uri": REDIRECT_URI,
            "code_verifier": "verifier",
        }

    def test_redemption_form_data_without_verifier(self) -> None:
        request = RedemptionRequest(code="abc", client_id=CLIENT_ID, redirect_uri=REDIRECT_URI)
        assert "code_verifier" not in request.to_form_data()

    def test_refresh_form_data(self) -> None:
        request = RefreshTokenRequest(refresh_token="r", client_id=CLIENT_ID, scope="profile")
        assert request.to_form_data() == {
            "grant_type": "refresh_token",
            "refresh_token": "r",
            "client_id": CLIENT_ID,
            "scope": "profile",
        }

    def test_redemption_response_requires_me(self) -> None:
        with pytest.raises(ValidationError):
            RedemptionResponse.model_validate({"access_token": "t"})

    def test_redemption_response_with_profile(self) -> None:
        response = RedemptionResponse.model_validate(
            {
                "me": "https://user.example.net/",
                "access_token": "t",
                "token_type": "Bearer",
                "expires_in": 3600,
                "profile": {
                    "name": "User",
                    "url": "https://user.example.net/",
                    "photo": "https://user.example.net/photo.jpg",
                },
            }
        )
        assert response.profile is not None
        assert response.profile.name == "User"
        assert response.profile.email is None
        assert response.expires_in == 3600

    def test_verification_inactive(self) -> None:
        response = VerificationResponse.inactive()
        assert response.active is False
        assert response.me is None
        assert response.scopes == []

    def test_verification_times_and_scopes(self) -> None:
        response = VerificationResponse.model_validate(
            {"active": True, "me": "https://user.example.net/", "scope": "create update", "exp": 0, "iat": 60}
        )
        assert response.scopes == ["create", "update"]
        assert response.expires_at == datetime(1970, 1, 1, tzinfo=UTC)
        assert response.issued_at == datetime(1970, 1, 1, 0, 1, tzinfo=UTC)

    def test_fractional_expires_in(self) -> None:
        response = RedemptionResponse.model_validate_json(
            b'{"me": "https://user.example.net/", "access_token": "a", "expires_in": 3599.5}'
        )
        assert response.expires_in == 3599.5

    def test_fractional_verification_times(self) -> None:
        response = VerificationResponse.model_validate_json(
            b'{"active": true, "exp": 90.5, "iat": 30.25}'
        )
        assert response.expires_at == datetime(1970, 1, 1, 0, 1, 30, 500000, tzinfo=UTC)
        assert response.issued_at == datetime(1970, 1, 1, 0, 0, 30, 250000, tzinfo=UTC)
