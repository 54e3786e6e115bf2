"""
Stream Composer

Coordinates one chat turn from user message to streamed reply:
Risk assessment → Safety message → Memory context → Prompt →
Provider chain → Relay → Archival

SAFETY-CRITICAL: When the message is assessed as elevated or
critical, the deterministic safety message is the first thing the
caller receives, verbatim and complete, before any generated text.
Nothing below this layer can reorder that.

ARCHITECTURE: The composer cannot fail. Every dependency has a
fallback, and anything unexpected still ends in a template reply.
A consumer that stops reading (client disconnect) ends relay at once;
the partial exchange is archived exactly once on a detached task.
"""

from contextlib import aclosing
from dataclasses import replace
from typing import Any, AsyncIterator, Mapping, Optional

from kokoro.config.logging_config import get_logger
from kokoro.domain.enums import Phase
from kokoro.domain.models.conversation import (
    AttemptOutcome,
    ConversationTurn,
    Message,
    ProviderAttempt,
    TurnState,
)
from kokoro.infrastructure.llm.provider_chain import ProviderChain
from kokoro.infrastructure.llm.template_provider import TemplateResponseProvider
from kokoro.infrastructure.metrics import track_chat_turn, track_safety_message
from kokoro.infrastructure.tasks.background_runner import BackgroundTaskRunner
from kokoro.services.memory.archiver import ConversationArchiver
from kokoro.services.memory.context_gateway import ContextEnrichmentGateway
from kokoro.services.prompt.fallback_templates import INTERRUPTION_CONTINUATION, detect_topic
from kokoro.services.prompt.prompt_builder import PromptBuilder
from kokoro.services.safety.crisis_classifier import LexicalCrisisClassifier
from kokoro.services.safety.safety_messages import SafetyResponseGenerator

logger = get_logger(__name__)

# Written between the safety message and the generated reply
SAFETY_SEPARATOR = "\n---\n\n"


class StreamComposer:
    """
    Composes the streamed reply for a chat turn.

    Usage:
        turn = composer.new_turn(message, user_id)
        async for chunk in composer.stream(turn):
            await send(chunk)
    """

    def __init__(
        self,
        provider_chain: ProviderChain,
        context_gateway: ContextEnrichmentGateway,
        archiver: ConversationArchiver,
        task_runner: BackgroundTaskRunner,
        classifier: Optional[LexicalCrisisClassifier] = None,
        safety_generator: Optional[SafetyResponseGenerator] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        fallback: Optional[TemplateResponseProvider] = None,
        locale: Optional[str] = None,
    ) -> None:
        """
        Initialize composer with services.

        Args:
            provider_chain: Ordered generative providers with template fallback
            context_gateway: Best-effort memory context lookup
            archiver: Conversation archival to memU
            task_runner: Runner for detached archival tasks
            classifier: Lexical crisis classifier
            safety_generator: Safety message builder
            prompt_builder: Prompt builder
            fallback: Template provider for the last-resort guard
            locale: Jurisdiction for crisis contacts
        """
        self._chain = provider_chain
        self._gateway = context_gateway
        self._archiver = archiver
        self._runner = task_runner
        self._classifier = classifier or LexicalCrisisClassifier()
        self._safety = safety_generator or SafetyResponseGenerator()
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._fallback = fallback or TemplateResponseProvider(chunk_delay_seconds=0)
        self._locale = locale

    def new_turn(
        self,
        message: str,
        user_id: str,
        phase: Phase = Phase.POSTPARTUM,
        phase_context: Optional[Mapping[str, Any]] = None,
        crisis_level_hint: Optional[str] = None,
    ) -> ConversationTurn:
        """Create a turn for one inbound message."""
        return ConversationTurn(
            message=Message(text=message, user_id=user_id),
            phase=phase,
            phase_context=dict(phase_context or {}),
            crisis_level_hint=crisis_level_hint,
        )

    async def stream(self, turn: ConversationTurn) -> AsyncIterator[str]:
        """
        Stream the reply for a turn.

        Yields:
            Safety message (if any), separator, then generated chunks

        Raises:
            RuntimeError: If the turn has already been streamed
        """
        if turn.state != TurnState.IDLE:
            raise RuntimeError(f"Turn already processed (state={turn.state.value})")

        try:
            turn.risk_level = self._classifier.classify_with_hint(
                turn.message.text,
                turn.crisis_level_hint,
            )
            turn.message = replace(turn.message, risk_level=turn.risk_level)
            turn.state = TurnState.RISK_ASSESSED

            safety_message = self._safety.build_safety_message(turn.risk_level, self._locale)
            # Safety text is sent but kept out of response_text, which is archived
            if safety_message:
                turn.state = TurnState.SAFETY_EMITTING
                track_safety_message(turn.risk_level.label)
                yield safety_message
                yield SAFETY_SEPARATOR

            generated = False
            try:
                turn.state = TurnState.ENRICHING
                context = await self._gateway.get_context(turn.user_id, turn.message.text)

                turn.state = TurnState.GENERATING
                prompt = self._prompt_builder.build(
                    turn.risk_level,
                    turn.message.text,
                    phase=turn.phase,
                    phase_context=turn.phase_context,
                    user_context=context,
                )
                turn.prompt = prompt.full_prompt
                topic = detect_topic(turn.message.text)

                async with aclosing(
                    self._chain.stream_response(prompt, topic, turn.attempts)
                ) as chunks:
                    async for chunk in chunks:
                        turn.state = TurnState.RELAYING
                        generated = True
                        turn.append(chunk)
                        yield chunk

            except Exception as e:
                logger.exception(
                    "Unexpected error composing reply",
                    error_type=type(e).__name__,
                    generated=generated,
                )
                if generated:
                    turn.append(INTERRUPTION_CONTINUATION)
                    yield INTERRUPTION_CONTINUATION
                else:
                    turn.attempts.append(ProviderAttempt(
                        provider=self._fallback.provider_name,
                        outcome=AttemptOutcome.SUCCESS,
                        reason="composer fallback",
                    ))
                    async for chunk in self._fallback.stream_topic(detect_topic(turn.message.text)):
                        turn.append(chunk)
                        yield chunk

            turn.state = TurnState.COMPLETING
            turn.completed = True

        finally:
            if not turn.completed:
                turn.cancelled = True
                logger.info("Chat stream closed by client", **turn.audit_data())
            self._finish(turn)

    async def respond(self, turn: ConversationTurn) -> str:
        """Run the full pipeline and return the complete reply."""
        parts: list[str] = []
        async with aclosing(self.stream(turn)) as chunks:
            async for chunk in chunks:
                parts.append(chunk)
        return "".join(parts)

    def _finish(self, turn: ConversationTurn) -> None:
        """Hand the exchange to archival without waiting on it."""
        turn.state = TurnState.ARCHIVING
        self._runner.submit(
            self._archiver.archive(turn),
            name=f"archive-{turn.message.message_id}",
        )
        turn.state = TurnState.DONE

        track_chat_turn(turn.risk_level.label, turn.cancelled)
        logger.info("Chat turn finished", **turn.audit_data())
