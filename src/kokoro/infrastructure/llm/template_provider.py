"""
Template Response Provider

Local, deterministic last-resort generator. Streams a topic template
line by line with a small pacing delay so the client renders it the
same way as generated text.

SAFETY CRITICAL: This provider must never fail. It does no network
I/O and depends only on in-memory templates.
"""

import asyncio
from typing import AsyncIterator, Optional

from kokoro.infrastructure.llm.provider import StreamingProvider
from kokoro.services.prompt.fallback_templates import Topic, detect_topic, get_template
from kokoro.services.prompt.prompt_builder import BuiltPrompt


class TemplateResponseProvider(StreamingProvider):
    """Streams fallback templates. Always configured, always healthy."""

    def __init__(self, chunk_delay_seconds: float = 0.04) -> None:
        self._chunk_delay = chunk_delay_seconds

    @property
    def provider_name(self) -> str:
        return "template"

    @property
    def default_model(self) -> str:
        return "fallback-templates"

    def is_configured(self) -> bool:
        return True

    async def health_check(self) -> bool:
        return True

    def stream_generate(self, prompt: BuiltPrompt) -> AsyncIterator[str]:
        return self.stream_topic(detect_topic(prompt.user_message))

    async def stream_topic(self, topic: Optional[Topic] = None) -> AsyncIterator[str]:
        """Yield the topic template one line at a time."""
        text = get_template(topic or Topic.GENERAL)
        for line in text.split("\n"):
            yield line + "\n"
            if self._chunk_delay:
                await asyncio.sleep(self._chunk_delay)
