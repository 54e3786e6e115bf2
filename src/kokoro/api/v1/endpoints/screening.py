"""
Screening Endpoints

EPDS and PHQ-2 submissions plus screening history.

SAFETY-CRITICAL: The risk level is always recomputed from the
answers on the server. Scores and levels sent by the client are
advisory and only compared for logging.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, StrictInt

from kokoro.api.dependencies import (
    get_current_user_id,
    get_memory_client,
    get_safety_generator,
)
from kokoro.api.middleware.error_handler import ApiError
from kokoro.config.logging_config import get_logger
from kokoro.domain.enums import RiskLevel
from kokoro.domain.models.screening import (
    Phq2Response,
    ScreeningResponse,
    ScreeningValidationError,
)
from kokoro.infrastructure.memory.memu_client import MemoryProviderError, MemUClient
from kokoro.infrastructure.metrics import track_screening
from kokoro.services.safety.safety_messages import SafetyResponseGenerator
from kokoro.services.safety.screening_classifier import (
    MODERATE_TOTAL_SCORE,
    classify_phq2,
    classify_screening,
)

logger = get_logger(__name__)
router = APIRouter()

HISTORY_QUERY = "What are the EPDS screening scores and history?"
HISTORY_LIMIT = 10


# Request/Response Models

class EpdsRequest(BaseModel):
    """EPDS submission. Only the answers are authoritative."""

    model_config = ConfigDict(populate_by_name=True)

    answers: list[StrictInt] = Field(..., description="Ten answers, each 0-3")
    total_score: Optional[int] = Field(default=None, alias="totalScore")
    item10_score: Optional[int] = Field(default=None, alias="item10Score")
    crisis_level: Optional[str] = Field(default=None, alias="crisisLevel")


class EpdsResult(BaseModel):
    totalScore: int
    item10Score: int
    crisisLevel: str
    riskLevel: str
    timestamp: str


class EpdsResponse(BaseModel):
    success: bool
    result: EpdsResult
    supportMessage: str
    memoryStored: bool


class Phq2Request(BaseModel):
    answers: list[StrictInt] = Field(..., description="Two answers, each 0-3")
    total: Optional[int] = None


class Phq2ResultResponse(BaseModel):
    success: bool
    total: int
    suggestEPDS: bool
    memoryStored: bool


class ScreeningHistoryResponse(BaseModel):
    success: bool
    history: list[str]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _log_client_mismatch(request: EpdsRequest, response: ScreeningResponse, level: RiskLevel) -> None:
    """Client values are advisory; disagreement is worth knowing about."""
    mismatches = {}
    if request.total_score is not None and request.total_score != response.total_score:
        mismatches["client_total"] = request.total_score
    if request.item10_score is not None and request.item10_score != response.self_harm_score:
        mismatches["client_item10"] = request.item10_score
    if request.crisis_level and RiskLevel.parse_optional(request.crisis_level) != level:
        mismatches["client_level"] = request.crisis_level

    if mismatches:
        logger.warning(
            "Client screening values differ from server computation",
            server_total=response.total_score,
            server_level=level.label,
            **mismatches,
        )


@router.post(
    "/epds",
    response_model=EpdsResponse,
    summary="Submit an EPDS self-check",
)
async def submit_epds(
    request: EpdsRequest,
    user_id: str = Depends(get_current_user_id),
    memory: MemUClient = Depends(get_memory_client),
    safety: SafetyResponseGenerator = Depends(get_safety_generator),
) -> EpdsResponse:
    """
    Score an EPDS submission and store it in long-term memory.

    A total of 9 or more also stores a clinical flag memory.
    Memory failures do not fail the request.
    """
    try:
        response = ScreeningResponse(tuple(request.answers))
    except ScreeningValidationError as e:
        raise ApiError(422, str(e)) from e

    level = classify_screening(response)
    _log_client_mismatch(request, response, level)
    timestamp = _now_iso()

    memory_stored = False
    try:
        await memory.store_screening_result(
            user_id,
            response.total_score,
            response.self_harm_score,
            level.color,
            timestamp,
        )
        memory_stored = True

        if response.total_score >= MODERATE_TOTAL_SCORE:
            await memory.store_clinical_flag(
                user_id,
                response.total_score,
                level.color,
                response.high_concern_areas,
                timestamp,
            )
    except MemoryProviderError as e:
        logger.warning("memU screening storage skipped", error=str(e))

    track_screening("epds", level.label)
    logger.info(
        "EPDS screening scored",
        total_score=response.total_score,
        risk_level=level.label,
        memory_stored=memory_stored,
    )

    return EpdsResponse(
        success=True,
        result=EpdsResult(
            totalScore=response.total_score,
            item10Score=response.self_harm_score,
            crisisLevel=level.color,
            riskLevel=level.label,
            timestamp=timestamp,
        ),
        supportMessage=safety.build_screening_message(level),
        memoryStored=memory_stored,
    )


@router.post(
    "/phq2",
    response_model=Phq2ResultResponse,
    summary="Submit a PHQ-2 quick screen",
)
async def submit_phq2(
    request: Phq2Request,
    user_id: str = Depends(get_current_user_id),
    memory: MemUClient = Depends(get_memory_client),
) -> Phq2ResultResponse:
    """Score a PHQ-2 quick screen; 3 or more suggests taking the EPDS."""
    try:
        response = Phq2Response(tuple(request.answers))
    except ScreeningValidationError as e:
        raise ApiError(422, str(e)) from e

    result = classify_phq2(response)

    memory_stored = False
    try:
        await memory.store_phq2_result(
            user_id,
            list(response.answers),
            result.total,
            result.suggests_epds,
            _now_iso(),
        )
        memory_stored = True
    except MemoryProviderError as e:
        logger.warning("memU PHQ-2 storage skipped", error=str(e))

    track_screening("phq2", "positive" if result.suggests_epds else "negative")

    return Phq2ResultResponse(
        success=True,
        total=result.total,
        suggestEPDS=result.suggests_epds,
        memoryStored=memory_stored,
    )


@router.get(
    "/history",
    response_model=ScreeningHistoryResponse,
    summary="Screening history from memory",
)
async def screening_history(
    user_id: str = Depends(get_current_user_id),
    memory: MemUClient = Depends(get_memory_client),
) -> ScreeningHistoryResponse:
    """Past screening summaries. Empty when memory is unavailable."""
    try:
        results = await memory.retrieve(HISTORY_QUERY, user_id, "rag", HISTORY_LIMIT)
    except MemoryProviderError as e:
        logger.warning("memU screening history unavailable", error=str(e))
        return ScreeningHistoryResponse(success=True, history=[])

    history = [
        item.summary
        for item in results.items
        if "epds" in item.summary.lower() or "screening" in item.summary.lower()
    ]
    return ScreeningHistoryResponse(success=True, history=history)
