"""
Lexical Crisis Classifier

Maps free text to a RiskLevel using priority-ordered keyword tiers.

SAFETY-CRITICAL: A single credible self-harm phrase must never be
diluted by benign text. Tiers are checked critical first and the
first matching tier wins. False positives only add supportive
content; false negatives are unacceptable.

LEGAL_REVIEW_REQUIRED: Keyword lists have clinical implications.
They are configuration, not code, and can be overridden from JSON.
"""

import json
import os
from dataclasses import dataclass
from typing import Optional

from kokoro.config.logging_config import get_logger
from kokoro.domain.enums.risk_level import RiskLevel

logger = get_logger(__name__)


def _normalize(text: str) -> str:
    # Phone keyboards often produce typographic apostrophes
    return text.lower().replace("’", "'").replace("‘", "'")


@dataclass(frozen=True)
class CrisisKeywordSet:
    """
    Keyword tiers for lexical crisis detection.

    All phrases are matched case-insensitively as substrings.

    Attributes:
        critical: Self-harm, suicidal ideation, intent to harm the infant
        elevated: Hopelessness, worthlessness, "can't go on"
        moderate: Persistent sadness, crying, not eating/sleeping,
            isolation, maternal inadequacy
    """

    critical: tuple[str, ...]
    elevated: tuple[str, ...]
    moderate: tuple[str, ...]

    def __post_init__(self) -> None:
        for tier in ("critical", "elevated", "moderate"):
            phrases = tuple(
                _normalize(p) for p in getattr(self, tier) if p and p.strip()
            )
            object.__setattr__(self, tier, phrases)

    def tiers(self) -> tuple[tuple[RiskLevel, tuple[str, ...]], ...]:
        """Tiers in strict priority order."""
        return (
            (RiskLevel.CRITICAL, self.critical),
            (RiskLevel.ELEVATED, self.elevated),
            (RiskLevel.MODERATE, self.moderate),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CrisisKeywordSet":
        """Build from a mapping with critical/elevated/moderate lists."""
        return cls(
            critical=tuple(data.get("critical", ())),
            elevated=tuple(data.get("elevated", ())),
            moderate=tuple(data.get("moderate", ())),
        )


# CLINICAL_VALIDATION_REQUIRED
DEFAULT_KEYWORDS = CrisisKeywordSet(
    critical=(
        "suicide",
        "kill myself",
        "end my life",
        "hurt myself",
        "self-harm",
        "don't want to live",
        "want to die",
        "harm my baby",
        "hurt my baby",
    ),
    elevated=(
        "can't go on",
        "hopeless",
        "worthless",
        "no point",
        "everyone would be better",
        "can't do this anymore",
    ),
    moderate=(
        "so sad",
        "can't stop crying",
        "not eating",
        "not sleeping",
        "feel nothing",
        "empty",
        "alone",
        "failing as a mother",
    ),
)


class LexicalCrisisClassifier:
    """
    Priority-ordered keyword crisis classifier.

    Pure: holds only an immutable keyword set, so the same text
    always yields the same level.

    Usage:
        classifier = LexicalCrisisClassifier()
        level = classifier.classify("I want to end my life")
    """

    def __init__(self, keywords: Optional[CrisisKeywordSet] = None) -> None:
        self._keywords = keywords or DEFAULT_KEYWORDS

    @property
    def keywords(self) -> CrisisKeywordSet:
        return self._keywords

    def classify(self, text: str) -> RiskLevel:
        """
        Classify free text.

        Args:
            text: Arbitrary user text. Empty text is NONE.

        Returns:
            First matching tier in priority order, or NONE
        """
        if not text:
            return RiskLevel.NONE

        normalized = _normalize(text)
        for level, phrases in self._keywords.tiers():
            if any(phrase in normalized for phrase in phrases):
                return level
        return RiskLevel.NONE

    def classify_with_hint(self, text: str, hint: Optional[str]) -> RiskLevel:
        """
        Classify text, letting a client hint raise but never lower the level.

        The client computes its own level and sends it along. It is
        advisory: server classification is authoritative, and the
        hint can only make the response more cautious.
        """
        level = self.classify(text)
        if not hint:
            return level

        hinted = RiskLevel.parse_optional(hint)
        if hinted is None:
            logger.warning("Ignoring unparseable crisis level hint", hint=hint)
            return level

        return max(level, hinted)

    @classmethod
    def from_file(cls, path: Optional[str]) -> "LexicalCrisisClassifier":
        """
        Build a classifier from a JSON keyword file.

        Falls back to the default keywords when the path is unset,
        missing or unreadable.
        """
        if not path:
            return cls()
        if not os.path.exists(path):
            logger.error("Crisis keyword file not found, using defaults", path=path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            keywords = CrisisKeywordSet.from_dict(data)
        except (OSError, ValueError, AttributeError, TypeError) as e:
            logger.error(f"Failed to load crisis keywords: {e}", path=path)
            return cls()

        if not keywords.critical:
            logger.error("Crisis keyword file has no critical tier, using defaults", path=path)
            return cls()

        logger.info(
            "Loaded crisis keywords",
            path=path,
            critical=len(keywords.critical),
            elevated=len(keywords.elevated),
            moderate=len(keywords.moderate),
        )
        return cls(keywords)


_default_classifier = LexicalCrisisClassifier()


def classify(text: str) -> RiskLevel:
    """Classify text with the default keyword set."""
    return _default_classifier.classify(text)
