"""Unit tests for token request builders and response interpreters."""

from urllib.parse import parse_qs

import httpx
import pytest

from conftest import CLIENT_ID, REDIRECT_URI, TOKEN_ENDPOINT
from indieauth_sdk.config import IndieAuthConfig
from indieauth_sdk.core.token_ops import (
    TokenOperations,
    legacy_revocation_request,
    legacy_verification_fallback,
    legacy_verification_request,
    parse_redemption_response,
    parse_verification_response,
    revocation_request,
    verification_request,
)
from indieauth_sdk.errors import DecodeError, HTTPStatusError


def form(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.content.decode())


class TestRequestBuilders:
    """Tests for token request construction."""

    def test_redemption(self, config: IndieAuthConfig) -> None:
        request = TokenOperations(config).build_redemption_request(TOKEN_ENDPOINT, "abc", "verifier")

        assert request.method == "POST"
        assert str(request.url) == TOKEN_ENDPOINT
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Accept"] == "application/json"
        assert form(request) == {
            "grant_type": ["authorization_code"],
            "code": ["abc"],
            "client_id": [CLIENT_ID],
            "redirect_uri": [REDIRECT_URI],
            "code_verifier": ["verifier"],
        }

    def test_redemption_without_verifier(self, config: IndieAuthConfig) -> None:
        request = TokenOperations(config).build_redemption_request(TOKEN_ENDPOINT, "abc")
        assert "code_verifier" not in form(request)

    def test_refresh(self, config: IndieAuthConfig) -> None:
        request = TokenOperations(config).build_refresh_request(TOKEN_ENDPOINT, "r1", "profile create")

        assert request.method == "POST"
        assert b"scope=profile+create" in request.content
        assert form(request) == {
            "grant_type": ["refresh_token"],
            "refresh_token": ["r1"],
            "client_id": [CLIENT_ID],
            "scope": ["profile create"],
        }

    def test_verification(self) -> None:
        request = verification_request("https://auth.example.org/introspect", "tok")

        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Accept"] == "application/json"
        assert form(request) == {"token": ["tok"]}

    def test_legacy_verification(self) -> None:
        request = legacy_verification_request(TOKEN_ENDPOINT, "tok")

        assert request.method == "GET"
        assert request.headers["Authorization"] == "Bearer tok"
        assert "Content-Type" not in request.headers
        assert request.content == b""

    def test_revocation(self) -> None:
        request = revocation_request("https://auth.example.org/revoke", "tok")

        assert request.method == "POST"
        assert "Authorization" not in request.headers
        assert form(request) == {"token": ["tok"]}

    def test_legacy_revocation(self) -> None:
        request = legacy_revocation_request(TOKEN_ENDPOINT, "tok")

        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert "Accept" not in request.headers
        assert form(request) == {"action": ["revoke"], "token": ["tok"]}


class TestResponseInterpreters:
    """Tests for token response decoding."""

    def response(self, **kwargs: object) -> httpx.Response:
        return httpx.Response(200, request=httpx.Request("POST", TOKEN_ENDPOINT), **kwargs)

    def test_redemption(self) -> None:
        response = parse_redemption_response(
            self.response(json={"me": "https://user.example.net/", "access_token": "t", "scope": "create"})
        )
        assert str(response.me) == "https://user.example.net/"
        assert response.access_token == "t"

    def test_redemption_malformed(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            parse_redemption_response(self.response(content=b"<html>"))
        assert exc_info.value.url == TOKEN_ENDPOINT

    def test_verification(self) -> None:
        response = parse_verification_response(
            self.response(json={"active": True, "me": "https://user.example.net/", "client_id": CLIENT_ID})
        )
        assert response.active
        assert str(response.client_id) == CLIENT_ID

    def test_verification_requires_active(self) -> None:
        with pytest.raises(DecodeError):
            parse_verification_response(self.response(json={"me": "https://user.example.net/"}))


class TestLegacyVerificationFallback:
    @pytest.mark.parametrize("status_code", [400, 401, 403])
    def test_inactive_statuses(self, status_code: int) -> None:
        result = legacy_verification_fallback(HTTPStatusError(TOKEN_ENDPOINT, status_code))
        assert result.active is False

    @pytest.mark.parametrize("status_code", [404, 500, None])
    def test_other_statuses_reraised(self, status_code: int | None) -> None:
        error = HTTPStatusError(TOKEN_ENDPOINT, status_code)
        with pytest.raises(HTTPStatusError) as exc_info:
            legacy_verification_fallback(error)
        assert exc_info.value is error
