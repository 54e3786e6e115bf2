"""
Risk Level and Phase Enumerations

Defines the discrete crisis levels shared by the lexical classifier,
the screening classifier and the safety message generator.

CLINICAL_REVIEW_REQUIRED: Level definitions drive which safety
content is forced into a conversation.
"""

from enum import IntEnum, StrEnum
from typing import Optional


class RiskLevel(IntEnum):
    """
    Crisis risk classification.

    Higher values indicate more urgent intervention. The client
    and stored memories use traffic-light colour labels, so each
    level also knows its colour.
    """

    NONE = 0
    """No crisis signal. The generative layer carries the conversation."""

    MODERATE = 1
    """
    Persistent low mood signals (sadness, crying, isolation).
    No forced safety interjection.
    """

    ELEVATED = 2
    """
    Hopelessness or worthlessness signals.
    Supportive text encouraging professional contact is added.
    """

    CRITICAL = 3
    """
    Self-harm, suicidal ideation or intent to harm the infant.

    SAFETY_NOTE: Every response at this level MUST start with
    crisis hotline numbers.
    """

    @property
    def color(self) -> str:
        """Traffic-light label used by the client and memory store."""
        return _LEVEL_TO_COLOR[self]

    @property
    def label(self) -> str:
        """Lower-case level name."""
        return self.name.lower()

    @classmethod
    def parse(cls, value: str) -> "RiskLevel":
        """
        Parse a level from its name or colour label.

        Args:
            value: e.g. "critical", "red", "ELEVATED"

        Returns:
            Matching RiskLevel

        Raises:
            ValueError: If the label is unknown
        """
        key = value.strip().lower()
        for level in cls:
            if key == level.label or key == level.color:
                return level
        raise ValueError(f"Unknown risk level: {value!r}")

    @classmethod
    def parse_optional(cls, value: Optional[str]) -> Optional["RiskLevel"]:
        """Parse a level, returning None for empty or unknown input."""
        if not value:
            return None
        try:
            return cls.parse(value)
        except ValueError:
            return None


_LEVEL_TO_COLOR: dict[RiskLevel, str] = {
    RiskLevel.NONE: "green",
    RiskLevel.MODERATE: "yellow",
    RiskLevel.ELEVATED: "orange",
    RiskLevel.CRITICAL: "red",
}


class Phase(StrEnum):
    """Where the mother is in her journey."""

    PREGNANT = "pregnant"
    POSTPARTUM = "postpartum"
