"""
Conversation Archiver

Persists a finished (or cancelled) chat turn to long-term memory.
Runs detached from the response path; failures are logged only.
"""

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kokoro.config.logging_config import get_logger
from kokoro.domain.models.conversation import ConversationTurn
from kokoro.infrastructure.memory.memu_client import MemoryProviderError, MemUClient
from kokoro.infrastructure.metrics import track_archival

logger = get_logger(__name__)


class ConversationArchiver:
    """
    Stores chat exchanges through memU with a short bounded retry.

    Usage:
        archiver = ConversationArchiver(memu_client)
        runner.submit(archiver.archive(turn))
    """

    def __init__(
        self,
        memory_client: MemUClient,
        max_attempts: int = 2,
        retry_wait_seconds: float = 0.5,
    ) -> None:
        self._memory = memory_client
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait_seconds

    async def archive(self, turn: ConversationTurn) -> bool:
        """
        Store the user message and the text actually relayed.

        Returns:
            True if stored
        """
        if not self._memory.is_configured():
            logger.debug("memU not configured, conversation not archived")
            track_archival("skipped")
            return False

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(multiplier=self._retry_wait, max=5),
                retry=retry_if_exception_type(MemoryProviderError),
            ):
                with attempt:
                    await self._memory.store_conversation(
                        turn.user_id,
                        turn.message.text,
                        turn.response_text,
                        turn.risk_level.color,
                    )
        except (RetryError, MemoryProviderError) as e:
            logger.warning(
                "memU conversation storage skipped",
                error=str(e),
                **turn.audit_data(),
            )
            track_archival("failed")
            return False

        logger.info("Conversation archived", **turn.audit_data())
        track_archival("stored")
        return True
