"""Prompt construction and fallback template services."""

from kokoro.services.prompt.prompt_builder import BuiltPrompt, PromptBuilder
from kokoro.services.prompt.fallback_templates import (
    INTERRUPTION_CONTINUATION,
    TEMPLATES,
    Topic,
    detect_topic,
    get_fallback_response,
    get_template,
)

__all__ = [
    "BuiltPrompt",
    "PromptBuilder",
    "INTERRUPTION_CONTINUATION",
    "TEMPLATES",
    "Topic",
    "detect_topic",
    "get_fallback_response",
    "get_template",
]
