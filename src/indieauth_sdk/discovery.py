"""Endpoint discovery for the IndieAuth SDK.

The network-free half of discovery: locating metadata and legacy
endpoint links in an already-fetched profile document, and decoding the
metadata payload. The clients supply the fetching.
"""

from __future__ import annotations

from .core.codec import build, decode
from .errors import MetadataNotFoundError
from .html import ProfileDocument
from .models import LegacyServerMetadata, ServerMetadata
from .telemetry import get_logger
from .urls import PROFILE_URL_RULES, URLType, canonicalize, ensure_valid

METADATA_REL = "indieauth-metadata"
AUTHORIZATION_ENDPOINT_REL = "authorization_endpoint"
TOKEN_ENDPOINT_REL = "token_endpoint"


def prepare_profile_url(profile_url: str, *, strict: bool = False) -> str:
    """Canonicalize user input and, when strict, enforce profile URL rules.

    Raises:
        InvalidURLError: If the input cannot be parsed, or in strict mode
            if the URL breaks a profile rule.
    """
    url = canonicalize(profile_url, url_type=URLType.USER_PROFILE_URL)
    if strict:
        ensure_valid(url, PROFILE_URL_RULES, URLType.USER_PROFILE_URL)
    return url


def metadata_url(document: ProfileDocument) -> str:
    """Return the first ``indieauth-metadata`` link of the document.

    Raises:
        MetadataNotFoundError: If the document has no metadata link.
    """
    links = document.search(METADATA_REL)
    if not links:
        raise MetadataNotFoundError(url=document.url)
    return links[0]


def decode_metadata(url: str, content: bytes) -> ServerMetadata:
    """Decode a metadata document fetched from ``url``.

    Raises:
        DecodeError: On malformed JSON or missing required fields.
    """
    metadata = decode(ServerMetadata, content, url=url)
    if not url.startswith(metadata.issuer):
        get_logger().warning(
            "Issuer is not a prefix of the metadata URL",
            issuer=metadata.issuer,
            metadata_url=url,
        )
    return metadata


def discover_legacy(document: ProfileDocument) -> LegacyServerMetadata:
    """Read legacy ``authorization_endpoint``/``token_endpoint`` links.

    Raises:
        MetadataNotFoundError: Unless both links are present.
    """
    authorization = document.search(AUTHORIZATION_ENDPOINT_REL)
    token = document.search(TOKEN_ENDPOINT_REL)
    if not authorization or not token:
        raise MetadataNotFoundError(
            "Legacy authorization_endpoint and token_endpoint links not found.",
            url=document.url,
        )
    return build(
        LegacyServerMetadata,
        url=document.url,
        authorization_endpoint=authorization[0],
        token_endpoint=token[0],
    )
