"""Monitoring infrastructure package."""

from kokoro.infrastructure.monitoring.sentry_integration import (
    before_send,
    capture_exception_with_context,
    init_sentry,
)

__all__ = [
    "before_send",
    "capture_exception_with_context",
    "init_sentry",
]
