"""
Chat Endpoints

Streaming and single-response chat for mothers.

SAFETY-CRITICAL: Both endpoints run the same composer pipeline, so
the deterministic safety message always precedes generated text.
"""

from contextlib import aclosing
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from kokoro.api.dependencies import get_composer, get_current_user_id
from kokoro.api.middleware.error_handler import ApiError
from kokoro.config.logging_config import bind_correlation_id, get_logger
from kokoro.domain.enums import Phase
from kokoro.services.orchestration.stream_composer import StreamComposer

logger = get_logger(__name__)
router = APIRouter()


class ChatRequest(BaseModel):
    """Inbound chat message."""

    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = Field(default=None, max_length=8000, description="User message")
    crisis_level_hint: Optional[str] = Field(
        default=None,
        alias="crisisLevelHint",
        description="Client-computed level; can raise but never lower the server level",
    )
    crisis_level: Optional[str] = Field(
        default=None,
        alias="crisisLevel",
        description="Older clients send the hint under this name",
    )
    phase: Optional[str] = Field(default=None, description="pregnant | postpartum")
    phase_context: Optional[dict[str, Any]] = Field(default=None, alias="phaseContext")
    category: Optional[str] = None

    @property
    def hint(self) -> Optional[str]:
        return self.crisis_level_hint or self.crisis_level

    @property
    def resolved_phase(self) -> Phase:
        return Phase.PREGNANT if (self.phase or "").lower() == Phase.PREGNANT else Phase.POSTPARTUM


class ChatMessageBody(BaseModel):
    steps: str
    crisisLevel: str
    originalMessage: str


class ChatMessageResponse(BaseModel):
    response: ChatMessageBody


def _require_message(request: ChatRequest) -> str:
    if not request.message or not request.message.strip():
        raise ApiError(400, "Message is required")
    return request.message


async def with_correlation_id(
    chunks: AsyncIterator[str],
    correlation_id: Optional[str],
) -> AsyncIterator[str]:
    """
    Relay a reply stream with the request's correlation id bound.

    The body is iterated after the middleware has returned and
    cleared its log context.
    """
    if correlation_id:
        bind_correlation_id(correlation_id)
    async with aclosing(chunks) as stream:
        async for chunk in stream:
            yield chunk


@router.post(
    "/stream",
    summary="Stream a reply",
    response_class=StreamingResponse,
)
async def stream_message(
    request: ChatRequest,
    http_request: Request,
    user_id: str = Depends(get_current_user_id),
    composer: StreamComposer = Depends(get_composer),
) -> StreamingResponse:
    """
    Stream Kokoro's reply as chunked plain text.

    Any safety message comes first, followed by a separator
    and then the generated reply.
    """
    message = _require_message(request)
    turn = composer.new_turn(
        message,
        user_id,
        phase=request.resolved_phase,
        phase_context=request.phase_context,
        crisis_level_hint=request.hint,
    )

    logger.info(
        "Chat stream requested",
        message_id=str(turn.message.message_id),
        message_length=len(message),
        phase=turn.phase.value,
        category=request.category,
    )

    return StreamingResponse(
        with_correlation_id(
            composer.stream(turn),
            getattr(http_request.state, "correlation_id", None),
        ),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )


@router.post(
    "/message",
    response_model=ChatMessageResponse,
    summary="Get a complete reply",
)
async def send_message(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    composer: StreamComposer = Depends(get_composer),
) -> ChatMessageResponse:
    """Non-streaming variant; returns the whole reply at once."""
    message = _require_message(request)
    turn = composer.new_turn(
        message,
        user_id,
        phase=request.resolved_phase,
        phase_context=request.phase_context,
        crisis_level_hint=request.hint,
    )

    reply = await composer.respond(turn)

    return ChatMessageResponse(
        response=ChatMessageBody(
            steps=reply,
            crisisLevel=turn.risk_level.color,
            originalMessage=message,
        )
    )
