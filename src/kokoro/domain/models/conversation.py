"""
Conversation Models

Per-request entities for a single chat turn. A turn is owned by
the request that created it and is discarded once the response
stream ends (after being handed to the memory archiver).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional
from uuid import UUID, uuid4

from kokoro.domain.enums.risk_level import Phase, RiskLevel


class TurnState(StrEnum):
    """Lifecycle of one streamed chat turn."""

    IDLE = "idle"
    RISK_ASSESSED = "risk_assessed"
    SAFETY_EMITTING = "safety_emitting"
    ENRICHING = "enriching"
    GENERATING = "generating"
    RELAYING = "relaying"
    COMPLETING = "completing"
    ARCHIVING = "archiving"
    DONE = "done"


class AttemptOutcome(StrEnum):
    """Outcome of one provider attempt within the provider chain."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class Message:
    """
    A single user-authored message.

    Attributes:
        text: Raw message text
        user_id: Owning user (from the verified token)
        risk_level: Level assigned by the composer (NONE until classified)
        created_at: Submission time (UTC)
        message_id: Unique identifier
    """

    text: str
    user_id: str
    risk_level: RiskLevel = RiskLevel.NONE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    message_id: UUID = field(default_factory=uuid4)


@dataclass
class ProviderAttempt:
    """Transient record of one provider's attempt for a turn."""

    provider: str
    outcome: AttemptOutcome
    reason: str = ""
    latency_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "latency_ms": self.latency_ms,
        }


@dataclass
class ConversationTurn:
    """
    One request/response exchange.

    Attributes:
        message: The inbound user message
        phase: Pregnancy or postpartum
        phase_context: Optional phase details (pregnancyWeeks, dueDate)
        crisis_level_hint: Client-side advisory level, never trusted alone
        risk_level: Level at time of send (set by the composer)
        prompt: Full prompt sent to the provider chain
        response_text: Generated text relayed after any safety message
        completed: Stream ran to its natural end
        cancelled: Consumer closed the stream early
        state: Current lifecycle state
        attempts: Provider attempts made for this turn
    """

    message: Message
    phase: Phase = Phase.POSTPARTUM
    phase_context: dict[str, Any] = field(default_factory=dict)
    crisis_level_hint: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.NONE
    prompt: str = ""
    response_text: str = ""
    completed: bool = False
    cancelled: bool = False
    state: TurnState = TurnState.IDLE
    attempts: list[ProviderAttempt] = field(default_factory=list)

    @property
    def user_id(self) -> str:
        return self.message.user_id

    def append(self, chunk: str) -> None:
        """Accumulate generated text for archival."""
        self.response_text += chunk

    def audit_data(self) -> dict:
        """Loggable summary. Never includes raw text."""
        return {
            "message_id": str(self.message.message_id),
            "risk_level": self.risk_level.label,
            "phase": self.phase.value,
            "state": self.state.value,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "message_length": len(self.message.text),
            "response_length": len(self.response_text),
            "attempts": [a.to_dict() for a in self.attempts],
        }
