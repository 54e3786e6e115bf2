"""
Screening Classifier

Maps questionnaire answers to the shared RiskLevel domain using
clinical thresholds.

CLINICAL_REVIEW_REQUIRED: EPDS cut-offs (9 possible depression,
13 probable depression) and the item-10 override follow common
postnatal practice.
"""

from dataclasses import dataclass
from typing import Sequence, Union

from kokoro.domain.enums.risk_level import RiskLevel
from kokoro.domain.models.screening import Phq2Response, ScreeningResponse

# A clinically endorsed self-harm item overrides the total score
SELF_HARM_CRITICAL_SCORE = 2
ELEVATED_TOTAL_SCORE = 13
MODERATE_TOTAL_SCORE = 9

PHQ2_EPDS_THRESHOLD = 3


def classify_screening(answers: Union[ScreeningResponse, Sequence[int]]) -> RiskLevel:
    """
    Classify an EPDS response.

    Decision order, first match wins:
    1. item 10 >= 2 -> CRITICAL (regardless of total)
    2. total >= 13  -> ELEVATED
    3. total >= 9   -> MODERATE
    4. otherwise    -> NONE

    Args:
        answers: A ScreeningResponse or 10 raw integer answers

    Returns:
        Risk level

    Raises:
        ScreeningValidationError: If raw answers are malformed
    """
    response = answers if isinstance(answers, ScreeningResponse) else ScreeningResponse(answers)

    if response.self_harm_score >= SELF_HARM_CRITICAL_SCORE:
        return RiskLevel.CRITICAL
    if response.total_score >= ELEVATED_TOTAL_SCORE:
        return RiskLevel.ELEVATED
    if response.total_score >= MODERATE_TOTAL_SCORE:
        return RiskLevel.MODERATE
    return RiskLevel.NONE


@dataclass(frozen=True)
class Phq2Result:
    """PHQ-2 outcome. A positive screen suggests taking the full EPDS."""

    total: int
    suggests_epds: bool


def classify_phq2(answers: Union[Phq2Response, Sequence[int]]) -> Phq2Result:
    """
    Score a PHQ-2 quick screen.

    Raises:
        ScreeningValidationError: If raw answers are malformed
    """
    response = answers if isinstance(answers, Phq2Response) else Phq2Response(answers)
    return Phq2Result(
        total=response.total,
        suggests_epds=response.total >= PHQ2_EPDS_THRESHOLD,
    )
