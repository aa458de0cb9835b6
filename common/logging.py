"""Structlog-based logging helpers with contextual enrichment."""

from __future__ import annotations

import contextlib
import contextvars
import logging
import os
import sys
from typing import Any, Iterator, Mapping, MutableMapping, TextIO

import structlog
from opentelemetry import trace

__all__ = [
    "configure_logging",
    "configure_django_logging",
    "get_logger",
    "bind_log_context",
    "clear_log_context",
    "get_log_context",
    "log_context",
    "RequestContextFilter",
]


_CONTEXT_FIELDS: tuple[str, ...] = ("trace_id", "request_path")
_LOG_CONTEXT: contextvars.ContextVar[dict[str, str] | None] = contextvars.ContextVar(
    "log_context", default=None
)

_SERVICE_CONTEXT: dict[str, str] = {
    "service.name": os.getenv("SERVICE_NAME", "taghelper-workbench"),
    "service.version": os.getenv("SERVICE_VERSION", "unknown"),
    "deployment.environment": os.getenv("DEPLOY_ENV") or "unknown",
}

_TIME_STAMPER = structlog.processors.TimeStamper(fmt="iso", key="timestamp")
_JSON_RENDERER = structlog.processors.JSONRenderer()
_CONFIGURED = False
_CONFIGURED_STREAM: TextIO | None = None


def get_log_context() -> dict[str, str]:
    """Return a copy of the active logging context."""

    current = _LOG_CONTEXT.get()
    return dict(current) if current else {}


def clear_log_context() -> None:
    """Clear all contextual values from the logging context."""

    _LOG_CONTEXT.set({})


def bind_log_context(**kwargs: object) -> contextvars.Token[dict[str, str] | None]:
    """Bind values to the logging context and return the reset token."""

    filtered = {
        key: str(value)
        for key, value in kwargs.items()
        if key in _CONTEXT_FIELDS and value is not None
    }
    return _LOG_CONTEXT.set({**get_log_context(), **filtered})


@contextlib.contextmanager
def log_context(**kwargs: object) -> Iterator[None]:
    """Context manager for temporarily binding logging metadata."""

    token = bind_log_context(**kwargs)
    try:
        yield
    finally:
        try:
            _LOG_CONTEXT.reset(token)
        except ValueError:
            clear_log_context()


def _context_processor(
    _: structlog.typing.WrappedLogger,
    __: str,
    event_dict: MutableMapping[str, object],
) -> MutableMapping[str, object]:
    for key, value in get_log_context().items():
        if event_dict.get(key) in (None, ""):
            event_dict[key] = value
    return event_dict


def _service_processor(
    _: structlog.typing.WrappedLogger,
    __: str,
    event_dict: MutableMapping[str, object],
) -> MutableMapping[str, object]:
    for key, value in _SERVICE_CONTEXT.items():
        event_dict.setdefault(key, value)
    return event_dict


def _otel_trace_processor(
    _: structlog.typing.WrappedLogger,
    __: str,
    event_dict: MutableMapping[str, object],
) -> MutableMapping[str, object]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        event_dict.setdefault("span_id", None)
        return event_dict

    # An explicit X-Trace-ID bound by the middleware wins over the span.
    if event_dict.get("trace_id") in (None, ""):
        event_dict["trace_id"] = f"{span_context.trace_id:032x}"
    event_dict["span_id"] = f"{span_context.span_id:016x}"
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        _service_processor,
        _context_processor,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _TIME_STAMPER,
        _otel_trace_processor,
    ]


def _configure_stdlib_logging(level: int, stream: TextIO) -> None:
    root_logger = logging.getLogger()
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_JSON_RENDERER,
            foreign_pre_chain=_shared_processors(),
        )
    )
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def _log_level_from_env() -> int:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(stream: TextIO | None = None) -> None:
    """Configure structlog and stdlib logging once."""

    global _CONFIGURED, _CONFIGURED_STREAM

    active_stream = stream or sys.stderr
    level = _log_level_from_env()

    if _CONFIGURED:
        if _CONFIGURED_STREAM is not active_stream:
            _configure_stdlib_logging(level, active_stream)
            _CONFIGURED_STREAM = active_stream
        return

    _configure_stdlib_logging(level, active_stream)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
    _CONFIGURED_STREAM = active_stream


def configure_django_logging(logging_settings: Mapping[str, Any] | None) -> None:
    """``LOGGING_CONFIG`` hook: keep structlog in charge, apply logger levels."""

    configure_logging()

    loggers = (logging_settings or {}).get("loggers", {})
    for name, options in loggers.items():
        level = str(options.get("level", "")).upper()
        if level:
            logging.getLogger(name).setLevel(getattr(logging, level, logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to service context.

    The logger stays lazy until first use so module-level loggers pick up
    the configuration installed by :func:`configure_logging`.
    """

    if name:
        return structlog.get_logger(name, **_SERVICE_CONTEXT)
    return structlog.get_logger(**_SERVICE_CONTEXT)


class RequestContextFilter(logging.Filter):
    """Inject request context metadata into stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        context = get_log_context()
        for field in _CONTEXT_FIELDS:
            setattr(record, field, context.get(field) or "-")
        return True
