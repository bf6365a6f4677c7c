"""Tests for most-recent-first competition listing."""

from __future__ import annotations

import pytest

from domain.common import Period, PeriodType
from domain.periods import list_recent_competitions
from fakes import InMemoryCompetitionRepository, RecordingObserver, make_competition


def _season_of(periods: int, per_period: int, *, season: int = 2024) -> InMemoryCompetitionRepository:
    competitions = [
        make_competition(f"{season}-{week:02d}-{game:02d}", season=season, period=week)
        for week in range(1, periods + 1)
        for game in range(per_period)
    ]
    return InMemoryCompetitionRepository(competitions)


def test_stops_after_competition_cap() -> None:
    repository = _season_of(periods=15, per_period=10)

    page = list_recent_competitions(repository, "nfl", max_periods=10, max_competitions=50)

    assert len(page.competitions) == 50
    assert page.periods_examined == 5
    assert page.failed_periods == ()
    assert not page.truncated
    assert repository.calls.count("find_by_period") == 5
    assert {competition.period for competition in page.competitions} == {15, 14, 13, 12, 11}


def test_truncates_when_last_period_overshoots_cap() -> None:
    repository = _season_of(periods=3, per_period=7)

    page = list_recent_competitions(repository, "nfl", max_periods=10, max_competitions=10)

    assert len(page) == 10
    assert page.truncated
    assert page.periods_examined == 2


def test_stops_after_period_cap() -> None:
    repository = _season_of(periods=15, per_period=2)

    page = list_recent_competitions(repository, "nfl", max_periods=10, max_competitions=50)

    assert len(page.competitions) == 20
    assert page.periods_examined == 10
    assert repository.calls.count("find_by_period") == 10


def test_failed_period_is_skipped_and_listing_continues() -> None:
    repository = _season_of(periods=5, per_period=3)
    broken = Period(2024, 3, PeriodType.REGULAR)
    repository.failing_periods.add(broken)
    observer = RecordingObserver()

    page = list_recent_competitions(repository, "nfl", observer=observer)

    assert page.failed_periods == (broken,)
    assert page.periods_examined == 5
    assert len(page.competitions) == 12
    assert all(competition.period != 3 for competition in page.competitions)
    assert ("period_fetch_failed", "nfl", broken) in observer.events


def test_competitions_follow_period_recency() -> None:
    repository = InMemoryCompetitionRepository(
        [
            make_competition("old", season=2023, period=18),
            make_competition("playoff", season=2023, period=1, period_type=PeriodType.POST),
            make_competition("new", season=2024, period=1),
        ]
    )

    page = list_recent_competitions(repository, "nfl")

    assert [competition.id for competition in page.competitions] == ["new", "playoff", "old"]


def test_other_sports_are_ignored() -> None:
    repository = InMemoryCompetitionRepository(
        [
            make_competition("nfl-game", sport="nfl"),
            make_competition("cfb-game", sport="college-football"),
        ]
    )

    page = list_recent_competitions(repository, "nfl")

    assert [competition.id for competition in page.competitions] == ["nfl-game"]


def test_empty_repository_returns_empty_page() -> None:
    page = list_recent_competitions(InMemoryCompetitionRepository(), "nfl")

    assert page.competitions == ()
    assert page.periods_examined == 0
    assert not page.truncated


@pytest.mark.parametrize(("max_periods", "max_competitions"), [(0, 50), (10, 0), (-1, 5)])
def test_limits_must_be_positive(max_periods: int, max_competitions: int) -> None:
    with pytest.raises(ValueError, match="must be greater than 0"):
        list_recent_competitions(
            InMemoryCompetitionRepository(),
            "nfl",
            max_periods=max_periods,
            max_competitions=max_competitions,
        )
