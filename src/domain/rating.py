"""Excitement rating value type and its category bands."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

RATING_TYPE_EXCITEMENT = "excitement"
RATING_SOURCE_OPENAI = "openai"

MIN_SCORE = 0
MAX_SCORE = 100


class RatingCategory(str, Enum):
    BORING = "boring"
    OKAY = "okay"
    GOOD = "good"
    GREAT = "great"
    AMAZING = "amazing"
    LEGENDARY = "legendary"


# Inclusive (min, max) bands in ascending order; contiguous over [0, 100].
CATEGORY_BANDS: tuple[tuple[RatingCategory, int, int], ...] = (
    (RatingCategory.BORING, 0, 39),
    (RatingCategory.OKAY, 40, 59),
    (RatingCategory.GOOD, 60, 74),
    (RatingCategory.GREAT, 75, 84),
    (RatingCategory.AMAZING, 85, 94),
    (RatingCategory.LEGENDARY, 95, 100),
)


def rating_category(score: int) -> RatingCategory:
    """Map a score in [0, 100] to its display category."""
    for category, lower, upper in CATEGORY_BANDS:
        if lower <= score <= upper:
            return category
    raise ValueError(f"Rating score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}")


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass(frozen=True)
class Rating:
    """AI-generated excitement score plus its explanations."""

    score: int
    explanation: str
    spoiler_free_explanation: str
    source: str = RATING_SOURCE_OPENAI
    rating_type: str = RATING_TYPE_EXCITEMENT
    generated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if isinstance(self.score, bool) or not isinstance(self.score, int):
            raise ValueError(f"Rating score must be an integer, got {self.score!r}")
        if not MIN_SCORE <= self.score <= MAX_SCORE:
            raise ValueError(
                f"Rating score must be between {MIN_SCORE} and {MAX_SCORE}, got {self.score}"
            )

    @property
    def category(self) -> RatingCategory:
        return rating_category(self.score)


__all__ = [
    "CATEGORY_BANDS",
    "MAX_SCORE",
    "MIN_SCORE",
    "RATING_SOURCE_OPENAI",
    "RATING_TYPE_EXCITEMENT",
    "Rating",
    "RatingCategory",
    "rating_category",
]
