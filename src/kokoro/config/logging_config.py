"""
Kokoro Logging Configuration

structlog over stdlib logging. Development gets the console renderer,
staging and production get one JSON object per line.

PRIVACY: Mothers write about self-harm and their babies. Raw message
and reply text must never reach a log sink; events carry lengths and
risk levels instead. The redaction processor below enforces that for
any key that slips through, and the Sentry scrubber reuses it.
"""

import logging
import sys
from typing import Any, Mapping

import structlog

from kokoro import __version__
from kokoro.config.settings import Settings

REDACTED = "[REDACTED]"

# Substrings of key names whose values are credentials
SECRET_KEY_FRAGMENTS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "bearer",
    "credential",
    "private_key",
    "dsn",
)

# Exact key names that carry raw user or model text
USER_TEXT_KEYS: frozenset[str] = frozenset({
    "message",
    "user_message",
    "originalmessage",
    "response_text",
    "ai_response",
    "prompt",
    "answers",
})

# Libraries that log request lines or bodies at INFO
QUIET_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore", "openai", "google")


def is_sensitive_key(key: str) -> bool:
    """True if a value stored under this key must not be logged."""
    lowered = key.lower()
    return lowered in USER_TEXT_KEYS or any(f in lowered for f in SECRET_KEY_FRAGMENTS)


def redact(value: Any, key: str = "") -> Any:
    """Recursively replace sensitive values in mappings and sequences."""
    if key and is_sensitive_key(key):
        return REDACTED
    if isinstance(value, Mapping):
        return {k: redact(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item, key) for item in value]
    return value


def _redact_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    # "event" is the log message itself, always a fixed string
    return {k: v if k == "event" else redact(v, k) for k, v in event_dict.items()}


def _add_service_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", "kokoro-backend")
    event_dict.setdefault("version", __version__)
    return event_dict


def get_processors(is_development: bool) -> list[Any]:
    """Processor chain; the renderer differs by environment."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_event,
        _add_service_context,
    ]

    if is_development:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return processors


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the stdlib root logger. Call once at startup."""
    level = getattr(logging, settings.log_level.upper())

    structlog.configure(
        processors=get_processors(settings.env == "development"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Attach the request's correlation id to every event in this context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
