"""Tracing and structured logging for IndieAuth operations.

Spans come from the OpenTelemetry API and logs from structlog. Bearer
credentials travel through almost every token call, so both channels
scrub them: ``redact_sensitive`` runs in the structlog pipeline and
``trace_operation`` drops credential attributes before they reach a span.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Generator

    from .config import TelemetryConfig

SDK_NAME = "indieauth-sdk"
SDK_VERSION = "0.1.0"

REDACTED = "[REDACTED]"

# Compared case-insensitively; span keys are also matched on their last dotted part
SENSITIVE_KEYS = frozenset(
    {
        "token",
        "access_token",
        "refresh_token",
        "code",
        "code_verifier",
        "authorization",
    }
)

_tracer: trace.Tracer | None = None
_logger: structlog.typing.FilteringBoundLogger | None = None


def is_sensitive(key: str) -> bool:
    """Whether a log field or span attribute name carries a credential."""
    key = key.lower()
    return key in SENSITIVE_KEYS or key.rsplit(".", 1)[-1] in SENSITIVE_KEYS


def _scrub(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: REDACTED if is_sensitive(str(k)) else _scrub(v) for k, v in value.items()}
    return value


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor replacing credential values with ``[REDACTED]``.

    Nested mappings such as ``headers={...}`` are scrubbed too.
    """
    for key, value in event_dict.items():
        if key == "event":
            continue
        event_dict[key] = REDACTED if is_sensitive(key) else _scrub(value)
    return event_dict


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SDK_NAME, SDK_VERSION)
    return _tracer


def get_logger() -> structlog.typing.FilteringBoundLogger:
    """Return the SDK logger.

    SDK call sites never pass credentials as fields. Applications that
    configure structlog themselves can add ``redact_sensitive`` to their
    own pipeline as well.
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(SDK_NAME)
    return _logger


def log_level(name: str) -> int:
    """Map a level name such as ``"warning"`` to its number; INFO if unknown."""
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def configure_telemetry(config: TelemetryConfig) -> None:
    """Install the SDK logging pipeline and tracer.

    With telemetry disabled, spans go to a no-op tracer and structlog is
    left as the application configured it.
    """
    global _tracer, _logger

    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_sensitive,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level(config.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _tracer = trace.get_tracer(config.service_name, SDK_VERSION)
    _logger = structlog.get_logger(config.service_name)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: Mapping[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run the block inside a span named ``name``.

    ``None`` attributes are skipped and credential attributes are dropped.
    A failing block marks the span as errored and re-raises.
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None and not is_sensitive(key):
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
