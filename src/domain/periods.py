"""Most-recent-first competition listing across periods."""

from __future__ import annotations

from dataclasses import dataclass

from domain.common import Competition, Period
from domain.protocol import CompetitionRepository
from domain.telemetry import PipelineObserver

DEFAULT_MAX_PERIODS = 10
DEFAULT_MAX_COMPETITIONS = 50


@dataclass(frozen=True)
class CompetitionPage:
    """Bounded listing plus what it took to build it."""

    competitions: tuple[Competition, ...]
    periods_examined: int
    failed_periods: tuple[Period, ...]
    truncated: bool

    def __len__(self) -> int:
        return len(self.competitions)


def list_recent_competitions(
    repository: CompetitionRepository,
    sport: str,
    *,
    max_periods: int = DEFAULT_MAX_PERIODS,
    max_competitions: int = DEFAULT_MAX_COMPETITIONS,
    observer: PipelineObserver | None = None,
) -> CompetitionPage:
    """Collect competitions from the most recent periods until either cap is hit.

    Periods come from the repository already ordered most-recent-first. A period
    whose fetch fails is skipped and still counts toward ``max_periods``.
    """
    if max_periods <= 0:
        raise ValueError("max_periods must be greater than 0")
    if max_competitions <= 0:
        raise ValueError("max_competitions must be greater than 0")

    observer = observer or PipelineObserver()
    periods = repository.get_available_periods(sport)

    collected: list[Competition] = []
    failed: list[Period] = []
    examined = 0
    truncated = False

    for period in periods[:max_periods]:
        examined += 1
        try:
            competitions = repository.find_by_period(
                period.season,
                period.period,
                period.period_type,
                sport,
            )
        except Exception as exc:
            failed.append(period)
            observer.period_fetch_failed(sport, period, exc)
            continue

        collected.extend(competitions)
        if len(collected) >= max_competitions:
            truncated = len(collected) > max_competitions
            break

    return CompetitionPage(
        competitions=tuple(collected[:max_competitions]),
        periods_examined=examined,
        failed_periods=tuple(failed),
        truncated=truncated,
    )


__all__ = [
    "CompetitionPage",
    "DEFAULT_MAX_COMPETITIONS",
    "DEFAULT_MAX_PERIODS",
    "list_recent_competitions",
]
