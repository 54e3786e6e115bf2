"""
Prompt Builder

Constructs the generation prompt for one chat turn: phase-specific
persona, a crisis directive for the assessed risk level, memory
context, and the user's message.

ARCHITECTURE: The crisis directive is derived from the server-side
risk level only. Generated text never replaces the deterministic
safety message; the directive just keeps the model consistent with it.

CLINICAL_REVIEW_REQUIRED: System prompts should be validated by
perinatal mental health professionals.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from kokoro.config.logging_config import get_logger
from kokoro.domain.enums import Phase, RiskLevel

logger = get_logger(__name__)


@dataclass
class BuiltPrompt:
    """
    Complete prompt ready for a generative provider.

    Attributes:
        system_prompt: Persona and safety instructions
        user_context: Memory context block (may be empty)
        user_message: Current user message
        max_tokens: Output token limit
        temperature: Sampling temperature
    """

    system_prompt: str
    user_context: str = ""
    user_message: str = ""
    max_tokens: int = 1000
    temperature: float = 0.7

    @property
    def full_prompt(self) -> str:
        """Single-string form used by providers without a system role."""
        return f"{self.system_prompt}{self.user_context}\n\nUser: {self.user_message}"

    def to_messages(self) -> list[dict]:
        """
        Convert to OpenAI-style message format.

        Returns:
            List of message dictionaries
        """
        messages = [{"role": "system", "content": self.system_prompt + self.user_context}]

        if self.user_message:
            messages.append({"role": "user", "content": self.user_message})

        return messages


class PromptBuilder:
    """
    Builds Kokoro prompts for the pregnancy and postpartum phases.

    CLINICAL_REVIEW_REQUIRED: All prompt templates should be
    reviewed and approved by clinical team.
    """

    CORE_PRINCIPLES: str = """**Your Core Principles:**
1. VALIDATE first, advise second. Always acknowledge the mother's feelings before offering suggestions.
2. Use warm, non-clinical language. You're a supportive friend, not a doctor.
3. NEVER diagnose. {education}
4. Always err on the side of safety. {safety_hint}
5. Be culturally sensitive. Many users are in Japan where mental health stigma is high.
6. Keep responses concise and easy to read.
7. {closing_principle}"""

    RESPONSE_STYLE: str = """**Response Style:**
- Short paragraphs (2-3 sentences max)
- Use bullet points for actionable advice
- Include gentle affirmations: {affirmations}
- End with an open question to continue the conversation
- Use markdown formatting for readability"""

    # CLINICAL_REVIEW_REQUIRED
    CRISIS_DIRECTIVES: dict[RiskLevel, str] = {
        RiskLevel.CRITICAL: (
            "- CRITICAL: Include crisis hotline numbers "
            "(Yorisoi: 0120-279-338, TELL: 03-5774-0992) in EVERY response"
        ),
        RiskLevel.ELEVATED: (
            "- HIGH: Gently encourage professional support. "
            "Mention that speaking to a doctor or counselor can help."
        ),
        RiskLevel.MODERATE: (
            "- MODERATE: Validate feelings, offer coping strategies, "
            "mention that support is available if needed."
        ),
    }

    POSTPARTUM_TOPICS: tuple[str, ...] = (
        "Postpartum emotions (sadness, anxiety, anger, numbness)",
        "Sleep strategies for new mothers",
        "Bonding with baby",
        "Self-care practices",
        "Understanding PPD vs baby blues",
        "Coping with identity changes",
        "Relationship stress after baby",
        "Returning to work anxiety",
        "Breastfeeding challenges (emotional, not medical)",
    )

    PREGNANCY_TOPICS: tuple[str, ...] = (
        "Prenatal anxiety and worries about the baby's health",
        "Fear of labor and delivery",
        "Body changes and body image during pregnancy",
        "Morning sickness and physical discomfort (emotional support, not medical advice)",
        "Relationship changes during pregnancy",
        "Preparing emotionally for motherhood",
        "Nesting instincts and feeling overwhelmed",
        "Sleep difficulties during pregnancy",
        "Identity shifts when becoming a mother",
        "Worries about postpartum depression",
        "Building a support network before baby arrives",
    )

    PREGNANCY_CONTEXT: str = """**Important Context:**
- This mother is building a relationship with you DURING pregnancy
- After she gives birth, you will continue to support her through postpartum
- Everything she shares now helps you understand her better for later
- Proactively ask about her hopes, fears, support network, and birth plans"""

    MUST_NOT: str = """**You Must NOT:**
- Provide medical advice or diagnose conditions
- Prescribe or recommend specific medications
- Replace professional {care} care
- Make promises about outcomes"""

    def __init__(self, max_tokens: int = 1000, temperature: float = 0.7) -> None:
        self._max_tokens = max_tokens
        self._temperature = temperature

    def build(
        self,
        risk_level: RiskLevel,
        user_message: str,
        phase: Phase = Phase.POSTPARTUM,
        phase_context: Optional[Mapping[str, Any]] = None,
        user_context: str = "",
    ) -> BuiltPrompt:
        """
        Build the prompt for one turn.

        Args:
            risk_level: Server-assessed risk level
            user_message: Current user message
            phase: Pregnancy or postpartum
            phase_context: Optional pregnancyWeeks / dueDate
            user_context: Formatted memory context

        Returns:
            BuiltPrompt ready for a provider
        """
        if phase == Phase.PREGNANT:
            system_prompt = self.build_pregnancy_system_prompt(risk_level, phase_context)
        else:
            system_prompt = self.build_postpartum_system_prompt(risk_level)

        prompt = BuiltPrompt(
            system_prompt=system_prompt,
            user_context=user_context,
            user_message=user_message,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        logger.debug(
            "Prompt built",
            phase=phase.value,
            risk_level=risk_level.label,
            has_context=bool(user_context),
            prompt_chars=len(prompt.full_prompt),
        )

        return prompt

    def build_postpartum_system_prompt(self, risk_level: RiskLevel) -> str:
        parts = [
            "You are Kokoro, a warm and gentle AI companion within the MamaKokoro app, "
            "designed to support mothers experiencing postpartum challenges.",
            self.CORE_PRINCIPLES.format(
                education="You can educate about PPD symptoms and encourage professional consultation.",
                safety_hint=(
                    "If there's any hint of self-harm or harm to baby, "
                    "provide crisis resources immediately."
                ),
                closing_principle="Use evidence-based CBT and mindfulness techniques when offering coping strategies.",
            ),
            self.RESPONSE_STYLE.format(
                affirmations='"You\'re doing an amazing job", "This takes real strength"',
            ),
            self._safety_protocol(risk_level),
            self._topics("Topics You Can Help With", self.POSTPARTUM_TOPICS),
            self.MUST_NOT.format(care="mental health"),
        ]
        return "\n\n".join(parts)

    def build_pregnancy_system_prompt(
        self,
        risk_level: RiskLevel,
        phase_context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        parts = [
            "You are Kokoro, a warm and gentle AI companion within the MamaKokoro app, "
            "designed to support expecting mothers during pregnancy.",
        ]

        pregnancy_details = self._pregnancy_details(phase_context or {})
        if pregnancy_details:
            parts.append(pregnancy_details)

        parts.extend([
            self.CORE_PRINCIPLES.format(
                education="You can educate about common pregnancy experiences and encourage professional consultation.",
                safety_hint="If there's any hint of self-harm, provide crisis resources immediately.",
                closing_principle=(
                    "You are building a relationship NOW that will continue after birth. "
                    "Remember details she shares."
                ),
            ),
            self.RESPONSE_STYLE.format(
                affirmations='"You\'re growing a whole human, that\'s incredible", "Your feelings are completely valid"',
            ),
            self._safety_protocol(risk_level),
            self._topics("Pregnancy Topics You Can Help With", self.PREGNANCY_TOPICS),
            self.PREGNANCY_CONTEXT,
            self.MUST_NOT.format(care="prenatal or mental health"),
        ])
        return "\n\n".join(parts)

    def _safety_protocol(self, risk_level: RiskLevel) -> str:
        lines = ["**Safety Protocol:**", f"- Crisis Level: {risk_level.color}"]
        directive = self.CRISIS_DIRECTIVES.get(risk_level)
        if directive:
            lines.append(directive)
        return "\n".join(lines)

    @staticmethod
    def _topics(title: str, topics: tuple[str, ...]) -> str:
        return f"**{title}:**\n" + "\n".join(f"- {t}" for t in topics)

    @staticmethod
    def _pregnancy_details(phase_context: Mapping[str, Any]) -> str:
        details = []
        weeks = phase_context.get("pregnancyWeeks")
        if weeks:
            details.append(f"She is currently {weeks} weeks pregnant.")
        due_date = phase_context.get("dueDate")
        if due_date:
            details.append(f"Her due date is {due_date}.")
        return " ".join(details)
