"""
Safety Layer

Crisis triage for free text and screening questionnaires, plus
the deterministic safety content emitted ahead of generated text.
"""

from kokoro.services.safety.crisis_classifier import (
    DEFAULT_KEYWORDS,
    CrisisKeywordSet,
    LexicalCrisisClassifier,
    classify,
)
from kokoro.services.safety.safety_messages import (
    CrisisContact,
    JurisdictionContacts,
    SafetyResponseGenerator,
    build_safety_message,
)
from kokoro.services.safety.screening_classifier import (
    Phq2Result,
    classify_phq2,
    classify_screening,
)

__all__ = [
    "DEFAULT_KEYWORDS",
    "CrisisKeywordSet",
    "LexicalCrisisClassifier",
    "classify",
    "CrisisContact",
    "JurisdictionContacts",
    "SafetyResponseGenerator",
    "build_safety_message",
    "Phq2Result",
    "classify_phq2",
    "classify_screening",
]
