"""Detached background work."""

from kokoro.infrastructure.tasks.background_runner import BackgroundTaskRunner

__all__ = ["BackgroundTaskRunner"]
