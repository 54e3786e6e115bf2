"""
Screening Models

Immutable questionnaire responses for the EPDS (10 items) and
the PHQ-2 quick screen (2 items).

CLINICAL_REVIEW_REQUIRED: Item labels and thresholds come from
the published instruments.
"""

from dataclasses import dataclass
from typing import Sequence


EPDS_ITEM_COUNT = 10
PHQ2_ITEM_COUNT = 2
MIN_ITEM_SCORE = 0
MAX_ITEM_SCORE = 3

# EPDS item 10: "The thought of harming myself has occurred to me"
SELF_HARM_ITEM_INDEX = 9

EPDS_ITEM_LABELS: tuple[str, ...] = (
    "laughing/humor",
    "enjoyment/anticipation",
    "self-blame",
    "anxiety",
    "panic/fear",
    "things piling up",
    "sleep difficulty",
    "sadness",
    "crying",
    "self-harm thoughts",
)

HIGH_CONCERN_ITEM_SCORE = 2


class ScreeningValidationError(ValueError):
    """Questionnaire answers violate the instrument's shape."""


def _validate_answers(answers: Sequence[int], expected_length: int, instrument: str) -> tuple[int, ...]:
    if isinstance(answers, (str, bytes)):
        raise ScreeningValidationError(f"{instrument} answers must be a sequence of integers")

    try:
        values = tuple(answers)
    except TypeError as e:
        raise ScreeningValidationError(f"{instrument} answers must be a sequence of integers") from e

    if len(values) != expected_length:
        raise ScreeningValidationError(
            f"{instrument} requires exactly {expected_length} answers, got {len(values)}"
        )

    for index, value in enumerate(values):
        # bool is an int subclass but never a valid answer
        if isinstance(value, bool) or not isinstance(value, int):
            raise ScreeningValidationError(
                f"{instrument} answer {index + 1} must be an integer, got {type(value).__name__}"
            )
        if not MIN_ITEM_SCORE <= value <= MAX_ITEM_SCORE:
            raise ScreeningValidationError(
                f"{instrument} answer {index + 1} must be in "
                f"[{MIN_ITEM_SCORE},{MAX_ITEM_SCORE}], got {value}"
            )

    return values


@dataclass(frozen=True)
class ScreeningResponse:
    """
    A completed Edinburgh Postnatal Depression Scale questionnaire.

    Attributes:
        answers: Exactly 10 item scores, each in [0, 3]

    Raises:
        ScreeningValidationError: On construction with malformed answers
    """

    answers: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "answers",
            _validate_answers(self.answers, EPDS_ITEM_COUNT, "EPDS"),
        )

    @property
    def total_score(self) -> int:
        """Sum of all items, 0..30."""
        return sum(self.answers)

    @property
    def self_harm_score(self) -> int:
        """Score of item 10 (self-harm thoughts)."""
        return self.answers[SELF_HARM_ITEM_INDEX]

    @property
    def high_concern_areas(self) -> list[str]:
        """Labels of items scored at or above the concern threshold."""
        return [
            EPDS_ITEM_LABELS[i]
            for i, score in enumerate(self.answers)
            if score >= HIGH_CONCERN_ITEM_SCORE
        ]


@dataclass(frozen=True)
class Phq2Response:
    """A completed PHQ-2 quick depression screen."""

    answers: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "answers",
            _validate_answers(self.answers, PHQ2_ITEM_COUNT, "PHQ-2"),
        )

    @property
    def total(self) -> int:
        """Sum of both items, 0..6."""
        return sum(self.answers)
