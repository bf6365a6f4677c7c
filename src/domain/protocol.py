"""Capability protocols the rating pipeline depends on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.common import Competition, CompetitionDetails, Period, PeriodType
from domain.rating import Rating


@runtime_checkable
class CompetitionRepository(Protocol):
    """Persistent store for competitions and their ratings.

    Reads are side-effect free. ``save_rating`` is an upsert keyed by
    (competition id, rating type) and is safe to repeat.
    """

    def get_competition_by_id(self, competition_id: str) -> Competition: ...

    def find_by_period(
        self,
        season: int,
        period: int,
        period_type: PeriodType,
        sport: str,
    ) -> list[Competition]: ...

    def get_available_periods(self, sport: str) -> list[Period]: ...

    def save_rating(self, competition_id: str, rating: Rating) -> None: ...

    def get_rating(
        self,
        competition_id: str,
        rating_type: str | None = None,
    ) -> Rating | None: ...

    def save_competition(self, competition: Competition) -> None: ...

    def competition_exists(self, competition_id: str) -> bool: ...


@runtime_checkable
class RatingGenerator(Protocol):
    """Produces a rating for one competition snapshot. May fail or time out."""

    def produce_rating(self, competition: Competition) -> Rating: ...


@runtime_checkable
class SportsDataService(Protocol):
    """Narrow view of the upstream sports data provider."""

    def get_available_periods(self, sport: str, season: int) -> list[Period]: ...

    def get_latest(self, sport: str) -> Period: ...

    def get_competitions(self, sport: str, period: Period) -> list[Competition]: ...

    def get_competition_details(self, competition_id: str) -> CompetitionDetails: ...


__all__ = [
    "CompetitionRepository",
    "RatingGenerator",
    "SportsDataService",
]
