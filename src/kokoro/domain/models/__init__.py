"""Domain models package."""

from kokoro.domain.models.conversation import (
    AttemptOutcome,
    ConversationTurn,
    Message,
    ProviderAttempt,
    TurnState,
)
from kokoro.domain.models.screening import (
    EPDS_ITEM_LABELS,
    Phq2Response,
    ScreeningResponse,
    ScreeningValidationError,
)

__all__ = [
    # Conversation
    "AttemptOutcome",
    "ConversationTurn",
    "Message",
    "ProviderAttempt",
    "TurnState",
    # Screening
    "EPDS_ITEM_LABELS",
    "Phq2Response",
    "ScreeningResponse",
    "ScreeningValidationError",
]
