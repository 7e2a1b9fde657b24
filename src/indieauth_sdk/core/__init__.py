"""Core components for the IndieAuth SDK.

Request building, response interpretation and HTTP execution shared
between the sync and async clients.
"""

from __future__ import annotations

from .auth_builder import AuthorizationBuilder, authorize_request_url
from .codec import decode
from .errors import ErrorFactory
from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
from .token_ops import TokenOperations

__all__ = [
    "AuthorizationBuilder",
    "authorize_request_url",
    "decode",
    "ErrorFactory",
    "AsyncHTTPExecutor",
    "SyncHTTPExecutor",
    "TokenOperations",
]
