"""
Safety Response Generator

Deterministic safety content keyed by risk level and jurisdiction.

SAFETY-CRITICAL: The critical message is emitted verbatim ahead of
any generated text on every response while risk is critical. It is
never summarised and never depends on a network call.

LEGAL_REVIEW_REQUIRED: Contact numbers must be verified for each
jurisdiction before release.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Optional

from kokoro.config.logging_config import get_logger
from kokoro.domain.enums.risk_level import RiskLevel

logger = get_logger(__name__)


@dataclass(frozen=True)
class CrisisContact:
    """
    A single crisis or counseling contact.

    Attributes:
        name: Display name (e.g., "Yorisoi Hotline")
        phone: Phone number as dialled locally
        notes: Short availability/language note
        available_24_7: Whether the line is staffed around the clock
    """

    name: str
    phone: str
    notes: str = ""
    available_24_7: bool = True

    def format_for_user(self) -> str:
        """Format as a markdown bullet."""
        suffix = f" ({self.notes})" if self.notes else ""
        return f"- **{self.name}:** {self.phone}{suffix}"


@dataclass(frozen=True)
class JurisdictionContacts:
    """
    Safety contacts for one jurisdiction.

    Attributes:
        country_code: ISO country code
        country_name: Human-readable name
        emergency_number: General emergency number
        crisis_lines: Hotlines listed in the critical message
        counseling_line: Confidential line suggested at elevated risk
        local_support: Free local postnatal support to suggest
    """

    country_code: str
    country_name: str
    emergency_number: str
    crisis_lines: tuple[CrisisContact, ...] = field(default_factory=tuple)
    counseling_line: Optional[CrisisContact] = None
    local_support: str = "your local health center"

    @classmethod
    def from_dict(cls, country_code: str, data: dict) -> "JurisdictionContacts":
        counseling = data.get("counseling_line")
        return cls(
            country_code=country_code,
            country_name=data.get("country_name", country_code),
            emergency_number=data.get("emergency_number", ""),
            crisis_lines=tuple(CrisisContact(**c) for c in data.get("crisis_lines", [])),
            counseling_line=CrisisContact(**counseling) if counseling else None,
            local_support=data.get("local_support", "your local health center"),
        )


CRITICAL_HEADLINE = "**I hear you, and I want you to know that you are not alone.**"
CRITICAL_CLOSING = (
    "Your feelings are valid. Having these thoughts does not make you a bad mother. "
    "It means you need and deserve support. "
    "A trained counselor is ready to listen right now."
)

# Shown with a screening result below the critical level
SCREENING_GUIDANCE: dict[RiskLevel, str] = {
    RiskLevel.NONE: (
        "Your score suggests you're coping well. Keep taking care of yourself. "
        "It's still good to maintain your support network and check in regularly."
    ),
    RiskLevel.MODERATE: (
        "Your score indicates some difficulty. This is common and treatable. "
        "Consider talking to your healthcare provider at your next visit. "
        "Self-care strategies like rest, support, and talking to someone you trust can help."
    ),
    RiskLevel.ELEVATED: (
        "Your score suggests you may benefit from professional support. "
        "Please consider scheduling an appointment with your doctor or a mental health "
        "professional soon. You deserve support, and help is available."
    ),
}


class SafetyResponseGenerator:
    """
    Builds fixed safety messages per risk level.

    Contacts are built in and can be extended or overridden from a
    JSON file keyed by country code.

    Usage:
        generator = SafetyResponseGenerator()
        text = generator.build_safety_message(RiskLevel.CRITICAL)
    """

    DEFAULT_LOCALE = "JP"

    # LEGAL_REVIEW_REQUIRED: Verify all numbers before production
    BUILT_IN_CONTACTS: dict[str, JurisdictionContacts] = {
        "JP": JurisdictionContacts(
            country_code="JP",
            country_name="Japan",
            emergency_number="119",
            crisis_lines=(
                CrisisContact(
                    name="Yorisoi Hotline",
                    phone="0120-279-338",
                    notes="24/7, multilingual",
                ),
                CrisisContact(
                    name="TELL Lifeline",
                    phone="03-5774-0992",
                    notes="English",
                    available_24_7=False,
                ),
            ),
            counseling_line=CrisisContact(
                name="TELL Lifeline",
                phone="03-5774-0992",
                notes="English",
                available_24_7=False,
            ),
            local_support="local 保健センター (health center)",
        ),
        "US": JurisdictionContacts(
            country_code="US",
            country_name="United States",
            emergency_number="911",
            crisis_lines=(
                CrisisContact(
                    name="988 Suicide & Crisis Lifeline",
                    phone="988",
                    notes="24/7, call or text",
                ),
                CrisisContact(
                    name="National Maternal Mental Health Hotline",
                    phone="1-833-852-6262",
                    notes="24/7, call or text",
                ),
            ),
            counseling_line=CrisisContact(
                name="Postpartum Support International HelpLine",
                phone="1-800-944-4773",
            ),
            local_support="local community health center",
        ),
    }

    def __init__(
        self,
        default_locale: str = DEFAULT_LOCALE,
        config_path: Optional[str] = None,
    ) -> None:
        """
        Initialize generator.

        Args:
            default_locale: Jurisdiction used when none is given
            config_path: Optional JSON file with extra jurisdictions
        """
        self._contacts = dict(self.BUILT_IN_CONTACTS)

        if config_path and os.path.exists(config_path):
            self._load_config(config_path)

        if default_locale not in self._contacts:
            logger.warning(
                "Unknown default locale, using built-in default",
                locale=default_locale,
            )
            default_locale = self.DEFAULT_LOCALE
        self._default_locale = default_locale

    def _load_config(self, config_path: str) -> None:
        """Load jurisdictions from a JSON config file."""
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            for country_code, country_data in data.items():
                contacts = JurisdictionContacts.from_dict(country_code, country_data)
                if len(contacts.crisis_lines) < 2:
                    logger.error(
                        "Jurisdiction needs at least two crisis lines, skipped",
                        country_code=country_code,
                    )
                    continue
                self._contacts[country_code] = contacts

            logger.info(
                "Loaded crisis contacts config",
                path=config_path,
                jurisdiction_count=len(data),
            )
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load crisis contacts config: {e}")

    def get_contacts(self, locale: Optional[str] = None) -> JurisdictionContacts:
        """Contacts for a jurisdiction, or the default one."""
        key = (locale or self._default_locale).upper()
        if key in self._contacts:
            return self._contacts[key]

        logger.warning("No crisis contacts for locale, using default", locale=locale)
        return self._contacts[self._default_locale]

    def build_safety_message(
        self,
        level: RiskLevel,
        locale: Optional[str] = None,
    ) -> str:
        """
        Build the safety message for a risk level.

        Args:
            level: Classified risk level
            locale: Optional jurisdiction code (e.g., "JP")

        Returns:
            Fixed safety text; empty for MODERATE and NONE
        """
        if level == RiskLevel.CRITICAL:
            return self._critical_message(self.get_contacts(locale))
        if level == RiskLevel.ELEVATED:
            return self._elevated_message(self.get_contacts(locale))
        return ""

    def _critical_message(self, contacts: JurisdictionContacts) -> str:
        lines = [
            CRITICAL_HEADLINE,
            "",
            "Please reach out to someone who can help right now:",
            "",
        ]
        lines.extend(c.format_for_user() for c in contacts.crisis_lines)
        if contacts.emergency_number:
            lines.append(f"- **Emergency:** {contacts.emergency_number}")
        lines.append("")
        lines.append(CRITICAL_CLOSING)
        return "\n".join(lines)

    def _elevated_message(self, contacts: JurisdictionContacts) -> str:
        steps = ["Talk to your doctor or midwife at your next appointment"]
        if contacts.counseling_line:
            steps.append(
                f"Consider calling {contacts.counseling_line.name}: "
                f"{contacts.counseling_line.phone} for a confidential conversation"
            )
        steps.append(
            f"Visit your {contacts.local_support}, they offer free postnatal support"
        )

        lines = [
            "I can hear that you're going through a really difficult time, and I want you "
            "to know that what you're feeling is more common than you might think.",
            "",
            "**You deserve support.** Many mothers experience these feelings, "
            "and there is effective help available.",
            "",
            "I'd gently encourage you to:",
        ]
        lines.extend(f"{i}. {step}" for i, step in enumerate(steps, start=1))
        lines.append("")
        lines.append("Would you like to talk more about what you're experiencing?")
        return "\n".join(lines)

    def build_screening_message(
        self,
        level: RiskLevel,
        locale: Optional[str] = None,
    ) -> str:
        """Support text for a screening result. Never empty."""
        if level == RiskLevel.CRITICAL:
            return self._critical_message(self.get_contacts(locale))
        return SCREENING_GUIDANCE[level]

    def list_supported_locales(self) -> list[str]:
        return list(self._contacts.keys())


_default_generator = SafetyResponseGenerator()


def build_safety_message(level: RiskLevel, locale: Optional[str] = None) -> str:
    """Build the safety message with built-in contacts."""
    return _default_generator.build_safety_message(level, locale)
