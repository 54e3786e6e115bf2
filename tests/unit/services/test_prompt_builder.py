"""
Unit Tests for Prompt Builder and Fallback Templates
"""

import pytest

from kokoro.domain.enums import Phase, RiskLevel
from kokoro.services.prompt.fallback_templates import (
    TEMPLATES,
    Topic,
    detect_topic,
    get_fallback_response,
    get_template,
)
from kokoro.services.prompt.prompt_builder import BuiltPrompt, PromptBuilder


@pytest.fixture
def builder() -> PromptBuilder:
    return PromptBuilder(max_tokens=512, temperature=0.5)


class TestPromptBuilder:
    """Tests for phase personas and crisis directives."""

    def test_postpartum_persona(self, builder: PromptBuilder) -> None:
        prompt = builder.build(RiskLevel.NONE, "hi")
        assert "support mothers experiencing postpartum challenges" in prompt.system_prompt
        assert "- Crisis Level: green" in prompt.system_prompt

    def test_pregnancy_persona_with_details(self, builder: PromptBuilder) -> None:
        prompt = builder.build(
            RiskLevel.NONE,
            "hi",
            phase=Phase.PREGNANT,
            phase_context={"pregnancyWeeks": 24, "dueDate": "2026-12-01"},
        )
        assert "expecting mothers during pregnancy" in prompt.system_prompt
        assert "She is currently 24 weeks pregnant." in prompt.system_prompt
        assert "Her due date is 2026-12-01." in prompt.system_prompt

    def test_pregnancy_without_details(self, builder: PromptBuilder) -> None:
        prompt = builder.build(RiskLevel.NONE, "hi", phase=Phase.PREGNANT)
        assert "weeks pregnant" not in prompt.system_prompt

    def test_critical_directive_includes_hotlines(self, builder: PromptBuilder) -> None:
        prompt = builder.build(RiskLevel.CRITICAL, "I want to end my life")
        assert "- Crisis Level: red" in prompt.system_prompt
        assert "0120-279-338" in prompt.system_prompt
        assert "03-5774-0992" in prompt.system_prompt

    @pytest.mark.parametrize("level,marker", [
        (RiskLevel.ELEVATED, "- HIGH:"),
        (RiskLevel.MODERATE, "- MODERATE:"),
    ])
    def test_level_directives(self, builder: PromptBuilder, level: RiskLevel, marker: str) -> None:
        assert marker in builder.build(level, "hi").system_prompt

    def test_no_directive_at_none(self, builder: PromptBuilder) -> None:
        system_prompt = builder.build(RiskLevel.NONE, "hi").system_prompt
        for directive in PromptBuilder.CRISIS_DIRECTIVES.values():
            assert directive not in system_prompt

    def test_generation_parameters(self, builder: PromptBuilder) -> None:
        prompt = builder.build(RiskLevel.NONE, "hi")
        assert prompt.max_tokens == 512
        assert prompt.temperature == 0.5


class TestBuiltPrompt:
    """Tests for prompt serialization."""

    def test_full_prompt_layout(self) -> None:
        prompt = BuiltPrompt(
            system_prompt="SYSTEM",
            user_context="\n\nCONTEXT\n",
            user_message="How do I sleep?",
        )
        assert prompt.full_prompt == "SYSTEM\n\nCONTEXT\n\n\nUser: How do I sleep?"

    def test_to_messages(self) -> None:
        prompt = BuiltPrompt(system_prompt="SYSTEM", user_context=" ctx", user_message="hello")
        assert prompt.to_messages() == [
            {"role": "system", "content": "SYSTEM ctx"},
            {"role": "user", "content": "hello"},
        ]

    def test_to_messages_without_user_message(self) -> None:
        assert len(BuiltPrompt(system_prompt="SYSTEM").to_messages()) == 1


class TestFallbackTemplates:
    """Tests for topic detection and template lookup."""

    @pytest.mark.parametrize("text,topic", [
        ("Everything is too much", Topic.OVERWHELMED),
        ("I'm so exhausted", Topic.SLEEP),
        ("I keep worrying about SIDS", Topic.ANXIETY),
        ("I don't feel a bond with her", Topic.BONDING),
        ("I've been crying all day", Topic.SADNESS),
        ("What should I pack for the hospital?", Topic.GENERAL),
        ("", Topic.GENERAL),
    ])
    def test_detect_topic(self, text: str, topic: Topic) -> None:
        assert detect_topic(text) == topic

    def test_detection_priority(self) -> None:
        """Test that earlier topics win when several match."""
        assert detect_topic("I'm overwhelmed and can't sleep") == Topic.OVERWHELMED
        assert detect_topic("so tired and sad") == Topic.SLEEP

    def test_every_topic_has_a_template(self) -> None:
        for topic in Topic:
            assert TEMPLATES[topic]
            assert get_template(topic) == TEMPLATES[topic]

    def test_fallback_response(self) -> None:
        assert get_fallback_response("I can't sleep") == TEMPLATES[Topic.SLEEP]
