"""URL conformance rules for IndieAuth identifiers.

IndieAuth puts structural limits on profile URLs and client identifiers:
https://indieauth.spec.indieweb.org/#user-profile-url
https://indieauth.spec.indieweb.org/#client-identifier

Each ``URLRule`` is a pure predicate over a URL string. ``validate`` runs
a set of rules and reports the ones that fail.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable
from enum import StrEnum
from urllib.parse import SplitResult, unquote, urlsplit, urlunsplit

from .errors import InvalidURLError

# WHATWG URL parsing treats a host whose last label is numeric as IPv4,
# which covers shorthand forms such as 127.1, 0x7f.1 and 2130706433.
_NUMERIC_LABEL = re.compile(r"(?:[0-9]+|0[xX][0-9a-fA-F]*)")

# Port digits left in the path when a bare host:port is split
_HOST_PORT = re.compile(r"[0-9]+(?:[/?#]|$)")


class URLRule(StrEnum):
    """A single IndieAuth URL conformance rule."""

    SCHEME_REQUIRED = "scheme_required"
    SCHEME_HTTP_OR_HTTPS_ONLY = "scheme_http_or_https_only"
    PATH_REQUIRED = "path_required"
    PATH_DOT_SEGMENTS_NOT_ALLOWED = "path_dot_segments_not_allowed"
    FRAGMENT_NOT_ALLOWED = "fragment_not_allowed"
    USERNAME_PASSWORD_NOT_ALLOWED = "username_password_not_allowed"
    PORT_NOT_ALLOWED = "port_not_allowed"
    HOSTNAME_REQUIRED = "hostname_required"
    HOSTNAME_DOMAIN_ONLY = "hostname_domain_only"
    HOSTNAME_DOMAIN_OR_LOOPBACK_ONLY = "hostname_domain_or_loopback_only"

    @property
    def description(self) -> str:
        """Human-readable statement of the rule."""
        return _DESCRIPTIONS[self]

    def conformed_by(self, url: str) -> bool:
        """Return whether ``url`` satisfies this rule."""
        return _PREDICATES[self](_split(url))


class URLType(StrEnum):
    """The role a URL plays in the protocol, used in error messages."""

    USER_PROFILE_URL = "user_profile_url"
    CLIENT_ID = "client_id"
    AUTHORIZATION_ENDPOINT = "authorization_endpoint"
    TOKEN_ENDPOINT = "token_endpoint"
    INTROSPECTION_ENDPOINT = "introspection_endpoint"
    REVOCATION_ENDPOINT = "revocation_endpoint"
    USERINFO_ENDPOINT = "userinfo_endpoint"
    ISSUER = "issuer"
    SERVICE_DOCUMENTATION = "service_documentation"

    @property
    def description(self) -> str:
        return _TYPE_DESCRIPTIONS[self]


_TYPE_DESCRIPTIONS: dict[URLType, str] = {
    URLType.USER_PROFILE_URL: "User Profile",
    URLType.CLIENT_ID: "Client ID",
    URLType.AUTHORIZATION_ENDPOINT: "Authorization Endpoint",
    URLType.TOKEN_ENDPOINT: "Token Endpoint",
    URLType.INTROSPECTION_ENDPOINT: "Introspection Endpoint",
    URLType.REVOCATION_ENDPOINT: "Revocation Endpoint",
    URLType.USERINFO_ENDPOINT: "User Info Endpoint",
    URLType.ISSUER: "Issuer",
    URLType.SERVICE_DOCUMENTATION: "Service Documentation",
}


def _has_port(parts: SplitResult) -> bool:
    try:
        return parts.port is not None
    except ValueError:
        # Port present but not a valid number
        return True


def _path_segments(parts: SplitResult) -> list[str]:
    return [unquote(segment) for segment in parts.path.split("/")]


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        pass
    else:
        return True
    if ":" in host:
        return True
    labels = host.rstrip(".").split(".")
    return bool(_NUMERIC_LABEL.fullmatch(labels[-1]))


def _is_loopback(host: str) -> bool:
    try:
        return ipaddress.ip_address(host) in (
            ipaddress.ip_address("127.0.0.1"),
            ipaddress.ip_address("::1"),
        )
    except ValueError:
        return False


def _domain_only(parts: SplitResult) -> bool:
    host = parts.hostname
    return bool(host) and not _is_ip_literal(host)


def _domain_or_loopback(parts: SplitResult) -> bool:
    host = parts.hostname
    return bool(host) and (not _is_ip_literal(host) or _is_loopback(host))


_DESCRIPTIONS: dict[URLRule, str] = {
    URLRule.SCHEME_REQUIRED: "MUST HAVE a scheme.",
    URLRule.SCHEME_HTTP_OR_HTTPS_ONLY: "Scheme MUST BE HTTP/HTTPS.",
    URLRule.PATH_REQUIRED: "MUST HAVE a path component.",
    URLRule.PATH_DOT_SEGMENTS_NOT_ALLOWED: (
        "MUST NOT CONTAIN single-dot or double-dot path segments."
    ),
    URLRule.FRAGMENT_NOT_ALLOWED: "MUST NOT CONTAIN a fragment component.",
    URLRule.USERNAME_PASSWORD_NOT_ALLOWED: (
        "MUST NOT CONTAIN a username or password component."
    ),
    URLRule.PORT_NOT_ALLOWED: "MUST NOT CONTAIN a port.",
    URLRule.HOSTNAME_REQUIRED: "MUST HAVE a host name.",
    URLRule.HOSTNAME_DOMAIN_ONLY: (
        "Host names MUST BE domain names, MUST NOT BE IPv4 or IPv6 addresses."
    ),
    URLRule.HOSTNAME_DOMAIN_OR_LOOPBACK_ONLY: (
        "Host names MUST BE domain names or a loopback interface address."
    ),
}

_PREDICATES = {
    URLRule.SCHEME_REQUIRED: lambda p: bool(p.scheme),
    URLRule.SCHEME_HTTP_OR_HTTPS_ONLY: lambda p: p.scheme in ("http", "https"),
    URLRule.PATH_REQUIRED: lambda p: bool(p.path),
    URLRule.PATH_DOT_SEGMENTS_NOT_ALLOWED: lambda p: not any(
        segment in (".", "..") for segment in _path_segments(p)
    ),
    URLRule.FRAGMENT_NOT_ALLOWED: lambda p: not p.fragment,
    URLRule.USERNAME_PASSWORD_NOT_ALLOWED: lambda p: not p.username and not p.password,
    URLRule.PORT_NOT_ALLOWED: lambda p: not _has_port(p),
    URLRule.HOSTNAME_REQUIRED: lambda p: bool(p.hostname),
    URLRule.HOSTNAME_DOMAIN_ONLY: _domain_only,
    URLRule.HOSTNAME_DOMAIN_OR_LOOPBACK_ONLY: _domain_or_loopback,
}

PROFILE_URL_RULES: tuple[URLRule, ...] = (
    URLRule.SCHEME_REQUIRED,
    URLRule.SCHEME_HTTP_OR_HTTPS_ONLY,
    URLRule.PATH_REQUIRED,
    URLRule.PATH_DOT_SEGMENTS_NOT_ALLOWED,
    URLRule.FRAGMENT_NOT_ALLOWED,
    URLRule.USERNAME_PASSWORD_NOT_ALLOWED,
    URLRule.PORT_NOT_ALLOWED,
    URLRule.HOSTNAME_REQUIRED,
    URLRule.HOSTNAME_DOMAIN_ONLY,
)

# Client identifiers may carry a port and may point at a loopback address.
CLIENT_ID_RULES: tuple[URLRule, ...] = (
    URLRule.SCHEME_REQUIRED,
    URLRule.SCHEME_HTTP_OR_HTTPS_ONLY,
    URLRule.PATH_REQUIRED,
    URLRule.PATH_DOT_SEGMENTS_NOT_ALLOWED,
    URLRule.FRAGMENT_NOT_ALLOWED,
    URLRule.USERNAME_PASSWORD_NOT_ALLOWED,
    URLRule.HOSTNAME_REQUIRED,
    URLRule.HOSTNAME_DOMAIN_OR_LOOPBACK_ONLY,
)


def _split(url: str, url_type: URLType | None = None) -> SplitResult:
    try:
        return urlsplit(str(url))
    except ValueError as e:
        # e.g. an unterminated IPv6 literal such as https://[::1/
        raise InvalidURLError(str(url), url_type=url_type) from e


def validate(
    url: str,
    rules: Iterable[URLRule],
    url_type: URLType | None = None,
) -> list[URLRule]:
    """Return the rules ``url`` violates, in the order they were given.

    An empty list means the URL conforms to every rule.

    Raises:
        InvalidURLError: If ``url`` cannot be parsed at all.
    """
    parts = _split(url, url_type)
    return [rule for rule in rules if not _PREDICATES[rule](parts)]


def ensure_valid(
    url: str,
    rules: Iterable[URLRule],
    url_type: URLType | None = None,
) -> str:
    """Return ``url`` unchanged, or raise for the first violated rule.

    Raises:
        InvalidURLError: Carrying the first violation and the full list.
    """
    violations = validate(url, rules, url_type)
    if violations:
        raise InvalidURLError(
            str(url),
            rule=violations[0],
            url_type=url_type,
            violations=violations,
        )
    return str(url)


def _has_scheme(parts: SplitResult) -> bool:
    # "localhost:8080/" splits as scheme "localhost" with path "8080/"
    if not parts.scheme:
        return False
    return bool(parts.netloc) or not _HOST_PORT.match(parts.path)


def canonicalize(
    url: str,
    *,
    default_scheme: str = "https",
    url_type: URLType | None = None,
) -> str:
    """Turn user input such as ``Example.com`` into ``https://example.com/``.

    Adds a scheme when none is present, lowercases the scheme and host,
    and supplies the root path when the path is empty. A bare
    ``host:port`` counts as having no scheme.

    Raises:
        InvalidURLError: If ``url`` cannot be parsed at all.
    """
    url = url.strip()
    if not _has_scheme(_split(url, url_type)):
        url = f"{default_scheme}://{url}"
    parts = _split(url, url_type)
    netloc = parts.netloc
    if parts.hostname:
        userinfo, _, hostport = netloc.rpartition("@")
        netloc = f"{userinfo}@{hostport.lower()}" if userinfo else hostport.lower()
    return urlunsplit(
        (parts.scheme.lower(), netloc, parts.path or "/", parts.query, parts.fragment)
    )
