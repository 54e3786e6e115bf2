"""Chat turn orchestration."""

from kokoro.services.orchestration.stream_composer import SAFETY_SEPARATOR, StreamComposer

__all__ = ["SAFETY_SEPARATOR", "StreamComposer"]
