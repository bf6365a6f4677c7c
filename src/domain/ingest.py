"""Sync competitions from the sports data service and schedule rating jobs."""

from __future__ import annotations

from dataclasses import dataclass, replace

from domain.common import Competition, Period
from domain.periods import DEFAULT_MAX_COMPETITIONS, DEFAULT_MAX_PERIODS, list_recent_competitions
from domain.protocol import CompetitionRepository, SportsDataService
from domain.telemetry import PipelineObserver
from jobs.kinds import RatingJobPayload
from jobs.queue import JobQueue


@dataclass(frozen=True)
class SyncSummary:
    period: Period
    fetched: int
    already_stored: int
    saved: int
    failed: int
    jobs_enqueued: int


def sync_latest_competitions(
    service: SportsDataService,
    repository: CompetitionRepository,
    sport: str,
    *,
    queue: JobQueue | None = None,
    observer: PipelineObserver | None = None,
) -> SyncSummary:
    """Store the latest period's new competitions and optionally enqueue rating jobs."""
    observer = observer or PipelineObserver()
    period = service.get_latest(sport)
    competitions = service.get_competitions(sport, period)

    already_stored = 0
    saved = 0
    failed = 0
    jobs_enqueued = 0

    for competition in competitions:
        if repository.competition_exists(competition.id):
            already_stored += 1
            continue

        competition = _with_details(service, competition, observer)
        try:
            repository.save_competition(competition)
        except Exception as exc:
            failed += 1
            observer.competition_sync_failed(competition.id, "save", exc)
            continue
        saved += 1

        if queue is not None:
            queue.enqueue(RatingJobPayload(competition_id=competition.id))
            jobs_enqueued += 1

    return SyncSummary(
        period=period,
        fetched=len(competitions),
        already_stored=already_stored,
        saved=saved,
        failed=failed,
        jobs_enqueued=jobs_enqueued,
    )


def _with_details(
    service: SportsDataService,
    competition: Competition,
    observer: PipelineObserver,
) -> Competition:
    if competition.details is not None and not competition.details.is_empty:
        return competition
    try:
        details = service.get_competition_details(competition.event_id or competition.id)
    except Exception as exc:
        observer.competition_sync_failed(competition.id, "details", exc)
        return competition
    return replace(competition, details=details)


def enqueue_unrated(
    repository: CompetitionRepository,
    queue: JobQueue,
    sport: str,
    *,
    max_periods: int = DEFAULT_MAX_PERIODS,
    max_competitions: int = DEFAULT_MAX_COMPETITIONS,
    observer: PipelineObserver | None = None,
) -> list[str]:
    """Enqueue one rating job per unrated competition in the recent periods."""
    page = list_recent_competitions(
        repository,
        sport,
        max_periods=max_periods,
        max_competitions=max_competitions,
        observer=observer,
    )
    enqueued: list[str] = []
    for competition in page.competitions:
        if competition.is_rated:
            continue
        queue.enqueue(RatingJobPayload(competition_id=competition.id))
        enqueued.append(competition.id)
    return enqueued


@dataclass(frozen=True)
class BackfillPeriodResult:
    period: Period
    existing: int = 0
    fetched: int = 0
    added: int = 0
    error: str | None = None

    @property
    def skipped(self) -> bool:
        """Nothing was available upstream for this period."""
        return self.error is None and self.fetched == 0


@dataclass(frozen=True)
class BackfillSummary:
    sport: str
    season: int
    limit: int | None
    limit_reached: bool
    period_results: tuple[BackfillPeriodResult, ...]
    jobs_enqueued: int

    @property
    def periods_processed(self) -> int:
        return len(self.period_results)

    @property
    def competitions_added(self) -> int:
        return sum(result.added for result in self.period_results)

    @property
    def errors(self) -> tuple[BackfillPeriodResult, ...]:
        return tuple(result for result in self.period_results if result.error is not None)


def backfill_season(
    service: SportsDataService,
    repository: CompetitionRepository,
    sport: str,
    season: int,
    *,
    limit: int | None = None,
    queue: JobQueue | None = None,
    observer: PipelineObserver | None = None,
) -> BackfillSummary:
    """Store every missing competition of a season, oldest period first.

    A period that cannot be read or fetched is recorded with its error and the
    walk continues. ``limit`` caps the number of competitions added in total.
    """
    if limit is not None and limit <= 0:
        raise ValueError("limit must be greater than 0")
    observer = observer or PipelineObserver()
    periods = sorted(service.get_available_periods(sport, season), key=lambda period: period.recency_key)

    results: list[BackfillPeriodResult] = []
    added = 0
    jobs_enqueued = 0
    limit_reached = False

    for period in periods:
        remaining = None if limit is None else limit - added
        if remaining is not None and remaining <= 0:
            limit_reached = True
            break

        result, saved_ids = _backfill_period(service, repository, sport, period, remaining, observer)
        results.append(result)
        added += result.added

        if queue is not None:
            for competition_id in saved_ids:
                queue.enqueue(RatingJobPayload(competition_id=competition_id))
                jobs_enqueued += 1

        if limit is not None and added >= limit:
            limit_reached = True
            break

    return BackfillSummary(
        sport=sport,
        season=season,
        limit=limit,
        limit_reached=limit_reached,
        period_results=tuple(results),
        jobs_enqueued=jobs_enqueued,
    )


def _backfill_period(
    service: SportsDataService,
    repository: CompetitionRepository,
    sport: str,
    period: Period,
    remaining: int | None,
    observer: PipelineObserver,
) -> tuple[BackfillPeriodResult, list[str]]:
    try:
        existing = repository.find_by_period(period.season, period.period, period.period_type, sport)
    except Exception as exc:
        observer.period_fetch_failed(sport, period, exc)
        return BackfillPeriodResult(period, error=f"Error checking existing competitions: {exc}"), []

    try:
        fetched = service.get_competitions(sport, period)
    except Exception as exc:
        observer.period_fetch_failed(sport, period, exc)
        return (
            BackfillPeriodResult(period, existing=len(existing), error=f"Error fetching competitions: {exc}"),
            [],
        )

    stored_ids = {competition.id for competition in existing}
    missing = [competition for competition in fetched if competition.id not in stored_ids]
    if remaining is not None:
        missing = missing[:remaining]

    saved_ids: list[str] = []
    error: str | None = None
    for competition in missing:
        competition = _with_details(service, competition, observer)
        try:
            repository.save_competition(competition)
        except Exception as exc:
            observer.competition_sync_failed(competition.id, "save", exc)
            error = error or f"Error saving competition {competition.id}: {exc}"
            continue
        saved_ids.append(competition.id)

    result = BackfillPeriodResult(
        period,
        existing=len(existing),
        fetched=len(fetched),
        added=len(saved_ids),
        error=error,
    )
    return result, saved_ids


__all__ = [
    "BackfillPeriodResult",
    "BackfillSummary",
    "SyncSummary",
    "backfill_season",
    "enqueue_unrated",
    "sync_latest_competitions",
]
