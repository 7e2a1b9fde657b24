"""
Shared test fixtures for IndieAuth SDK tests.

Provides configuration, server metadata and an in-process HTTP server
built on ``httpx.MockTransport``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import pytest

from indieauth_sdk.config import IndieAuthConfig, TelemetryConfig
from indieauth_sdk.models import ServerMetadata

CLIENT_ID = "https://app.example.com/"
REDIRECT_URI = "https://app.example.com/callback"
PROFILE_URL = "https://user.example.net/"
ISSUER = "https://auth.example.org/"
METADATA_URL = "https://auth.example.org/.well-known/oauth-authorization-server"
AUTHORIZATION_ENDPOINT = "https://auth.example.org/auth"
TOKEN_ENDPOINT = "https://auth.example.org/token"
INTROSPECTION_ENDPOINT = "https://auth.example.org/introspect"
REVOCATION_ENDPOINT = "https://auth.example.org/revoke"

METADATA: dict[str, Any] = {
    "issuer": ISSUER,
    "authorization_endpoint": AUTHORIZATION_ENDPOINT,
    "token_endpoint": TOKEN_ENDPOINT,
    "introspection_endpoint": INTROSPECTION_ENDPOINT,
    "revocation_endpoint": REVOCATION_ENDPOINT,
    "scopes_supported": ["profile", "create"],
    "code_challenge_methods_supported": ["S256"],
    "authorization_response_iss_parameter_supported": True,
}

PROFILE_HTML = f"""<!doctype html>
<html>
<head>
  <title>User</title>
  <link rel="indieauth-metadata" href="{METADATA_URL}">
</head>
<body><p>Hello</p></body>
</html>
"""

LEGACY_PROFILE_HTML = """<!doctype html>
<html>
<head>
  <link rel="authorization_endpoint" href="/auth">
  <link rel="token_endpoint" href="https://tokens.example.org/token">
</head>
<body></body>
</html>
"""


def _without_query(url: httpx.URL) -> str:
    return str(url).split("?", 1)[0]


class MockServer:
    """Answers requests by method and URL (query ignored) and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, status_code: int = 200, **kwargs: Any) -> None:
        """Register a response; kwargs go to ``httpx.Response``."""
        self.routes[(method, url)] = (status_code, kwargs)

    def fail(self, method: str, url: str, error: type[httpx.TransportError]) -> None:
        """Make requests to ``url`` raise a transport error."""
        self.routes[(method, url)] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = _without_query(request.url)
        route = self.routes.get((request.method, url))
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, type):
            raise route("mock transport failure", request=request)
        status_code, kwargs = route
        return httpx.Response(status_code, **kwargs)

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if _without_query(r.url) == url]


@pytest.fixture
def config() -> IndieAuthConfig:
    """Provide a basic SDK configuration for testing."""
    return IndieAuthConfig(
        client_id=CLIENT_ID,
        redirect_uri=REDIRECT_URI,
        telemetry=TelemetryConfig(enabled=False),
    )


@pytest.fixture
def metadata() -> ServerMetadata:
    """Provide discovered server metadata."""
    return ServerMetadata.model_validate(METADATA)


@pytest.fixture
def server() -> MockServer:
    """Provide a mock server with a modern profile and metadata document."""
    mock = MockServer()
    mock.add("GET", PROFILE_URL, text=PROFILE_HTML, headers={"Content-Type": "text/html"})
    mock.add("GET", METADATA_URL, json=METADATA)
    return mock


@pytest.fixture
def http_client(server: MockServer, config: IndieAuthConfig) -> Iterator[httpx.Client]:
    """Provide an httpx client wired to the mock server."""
    client = httpx.Client(
        transport=httpx.MockTransport(server.handler),
        headers={"User-Agent": config.user_agent},
        follow_redirects=True,
    )
    yield client
    client.close()
