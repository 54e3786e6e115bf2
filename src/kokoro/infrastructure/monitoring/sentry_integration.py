"""
Sentry Error Tracking Integration

Optional: enabled only when KOKORO_SENTRY_DSN is set.

PRIVACY: Events leave the process, so everything a mother typed
(request bodies, chat text, screening answers) is dropped before
sending, using the same key rules as log redaction. Credentials
embedded in free-form strings are masked by pattern.
"""

import re
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from kokoro.config.logging_config import REDACTED, get_logger, redact

logger = get_logger(__name__)

# Credentials that can appear inside breadcrumb messages or header values
INLINE_SECRET = re.compile(
    r"(bearer\s+[\w\-.~+/]+=*)|((?:api[_-]?key|token|secret)[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+)",
    re.IGNORECASE,
)


def _scrub(value: Any, key: str = "") -> Any:
    value = redact(value, key.replace("-", "_"))
    if isinstance(value, str):
        return INLINE_SECRET.sub(REDACTED, value)
    if isinstance(value, dict):
        return {k: _scrub(v, str(k)) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def before_send(event: dict, hint: dict) -> Optional[dict]:
    """Strip user text and credentials from an outgoing event."""
    request = event.get("request")
    if request:
        # Request bodies on this API are chat text or screening answers
        if "data" in request:
            request["data"] = REDACTED
        if "headers" in request:
            request["headers"] = _scrub(request["headers"])
        request.pop("cookies", None)

    for crumb in event.get("breadcrumbs", {}).get("values", []):
        if crumb.get("message"):
            crumb["message"] = _scrub(crumb["message"])
        if isinstance(crumb.get("data"), dict):
            crumb["data"] = _scrub(crumb["data"])

    if "extra" in event:
        event["extra"] = _scrub(event["extra"])

    return event


def init_sentry(
    dsn: str,
    environment: str = "development",
    release: str = "kokoro@0.1.0",
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize Sentry if a DSN is configured.

    Returns:
        True if Sentry was initialized
    """
    if not dsn:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        before_send=before_send,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            AsyncioIntegration(),
            # structlog output is redacted JSON; keep it out of Sentry
            LoggingIntegration(level=None, event_level=None),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )

    logger.info("Sentry initialized", environment=environment, release=release)
    return True


def capture_exception_with_context(
    exception: BaseException,
    correlation_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> Optional[str]:
    """
    Report an exception tagged with the request correlation id.

    Returns:
        Sentry event id, or None when Sentry is disabled
    """
    with sentry_sdk.new_scope() as scope:
        if correlation_id:
            scope.set_tag("correlation_id", correlation_id)
        for key, value in _scrub(extra or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(exception)
