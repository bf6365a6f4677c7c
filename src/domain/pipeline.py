"""Generate-rating use case: load, check, generate, persist."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from domain.errors import (
    CompetitionNotFoundError,
    PermanentJobError,
    RatingGenerationError,
    RatingPersistenceError,
)
from domain.protocol import CompetitionRepository, RatingGenerator
from domain.rating import RATING_TYPE_EXCITEMENT, Rating, RatingCategory
from domain.telemetry import PipelineObserver


class RatingStatus(str, Enum):
    GENERATED = "generated"
    REGENERATED = "regenerated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RatingOutcome:
    """Result of one use-case execution."""

    competition_id: str
    status: RatingStatus
    rating: Rating

    @property
    def category(self) -> RatingCategory:
        return self.rating.category

    @property
    def generator_called(self) -> bool:
        return self.status is not RatingStatus.SKIPPED


class GenerateRatingUseCase:
    """Orchestrates one rating for one competition.

    Performs no retries. Errors carry a ``retryable`` flag and the job queue
    decides what to do with them.
    """

    def __init__(
        self,
        repository: CompetitionRepository,
        generator: RatingGenerator,
        *,
        rating_type: str = RATING_TYPE_EXCITEMENT,
        observer: PipelineObserver | None = None,
    ) -> None:
        self.repository = repository
        self.generator = generator
        self.rating_type = rating_type
        self.observer = observer or PipelineObserver()

    def execute(self, competition_id: str, *, force: bool = False) -> RatingOutcome:
        competition = self.repository.get_competition_by_id(competition_id)
        if competition is None:
            raise CompetitionNotFoundError(competition_id)

        existing = self.repository.get_rating(competition_id, self.rating_type)
        if existing is not None and not force:
            self.observer.rating_skipped(competition_id, existing)
            return RatingOutcome(
                competition_id=competition_id,
                status=RatingStatus.SKIPPED,
                rating=existing,
            )

        try:
            rating = self.generator.produce_rating(competition)
        except (PermanentJobError, RatingGenerationError):
            raise
        except Exception as exc:
            raise RatingGenerationError(
                f"Rating generator failed for competition {competition_id}: {exc}"
            ) from exc
        if not isinstance(rating, Rating):
            raise RatingGenerationError(
                f"Rating generator returned {type(rating).__name__} for competition {competition_id}"
            )
        if rating.rating_type != self.rating_type:
            rating = replace(rating, rating_type=self.rating_type)

        try:
            self.repository.save_rating(competition_id, rating)
        except PermanentJobError:
            raise
        except Exception as exc:
            raise RatingPersistenceError(
                f"Failed to save rating for competition {competition_id}: {exc}"
            ) from exc

        self.observer.rating_saved(competition_id, rating)
        return RatingOutcome(
            competition_id=competition_id,
            status=RatingStatus.REGENERATED if existing is not None else RatingStatus.GENERATED,
            rating=rating,
        )


__all__ = ["GenerateRatingUseCase", "RatingOutcome", "RatingStatus"]
