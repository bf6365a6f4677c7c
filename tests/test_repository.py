"""Integration tests for the SQLAlchemy competition repository on in-memory SQLite."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from db import create_db_engine, create_session_factory
from domain.common import CompetitionDetails, Period, PeriodType
from domain.errors import CompetitionNotFoundError, RepositoryError
from domain.pipeline import GenerateRatingUseCase, RatingStatus
from domain.protocol import CompetitionRepository
from domain.rating import RatingCategory
from fakes import ScriptedGenerator, make_competition, make_rating
from models import RatingRow
from repositories import SqlCompetitionRepository, ensure_schema
from repositories.records import competition_snapshot


@pytest.fixture
def repository() -> SqlCompetitionRepository:
    engine = create_db_engine("sqlite://")
    ensure_schema(engine)
    return SqlCompetitionRepository(
        create_session_factory(engine),
        clock=lambda: datetime(2024, 1, 2, 3, 4, 5),
    )


def _rating_rows(repository: SqlCompetitionRepository) -> int:
    with repository.session_factory() as session:
        return int(session.scalar(select(func.count()).select_from(RatingRow)) or 0)


def test_satisfies_repository_protocol(repository: SqlCompetitionRepository) -> None:
    assert isinstance(repository, CompetitionRepository)


def test_competition_round_trip(repository: SqlCompetitionRepository) -> None:
    original = make_competition("401547439", home="Chiefs", away="Lions", home_score=20, away_score=21)
    repository.save_competition(original)

    loaded = repository.get_competition_by_id("401547439")

    assert loaded.id == original.id
    assert loaded.event_id == original.event_id
    assert loaded.period_key == Period(2023, 1, PeriodType.REGULAR)
    assert loaded.home.team.name == "Chiefs"
    assert loaded.away.team.name == "Lions"
    assert loaded.scoreline == "21-20"
    assert loaded.home.team.record == original.home.team.record
    assert loaded.start_time == original.start_time
    assert loaded.details == original.details
    assert loaded.rating is None
    assert repository.competition_exists("401547439")
    assert not repository.competition_exists("other")


def test_save_competition_replaces_participants(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("g1", home_score=0, away_score=0))
    repository.save_competition(make_competition("g1", home_score=31, away_score=17))

    loaded = repository.get_competition_by_id("g1")

    assert loaded.scoreline == "17-31"
    assert len(loaded.teams) == 2


def test_missing_competition_raises_not_found(repository: SqlCompetitionRepository) -> None:
    with pytest.raises(CompetitionNotFoundError, match="missing"):
        repository.get_competition_by_id("missing")

    with pytest.raises(CompetitionNotFoundError):
        repository.save_rating("missing", make_rating(50))


def test_rating_round_trip_preserves_fields(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("401547439"))
    rating = make_rating(92)

    repository.save_rating("401547439", rating)
    loaded = repository.get_rating("401547439")

    assert loaded == rating
    assert loaded is not None
    assert loaded.category is RatingCategory.AMAZING
    assert repository.get_competition_by_id("401547439").rating == rating
    assert repository.get_rating("401547439", "quality") is None


def test_save_rating_twice_keeps_one_row(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("g1"))

    repository.save_rating("g1", make_rating(92))
    repository.save_rating("g1", make_rating(92))
    assert _rating_rows(repository) == 1

    repository.save_rating("g1", make_rating(41, explanation="Flat second half."))
    assert _rating_rows(repository) == 1
    loaded = repository.get_rating("g1")
    assert loaded is not None
    assert loaded.score == 41
    assert loaded.explanation == "Flat second half."


def test_rating_snapshot_captures_competition_as_rated(repository: SqlCompetitionRepository) -> None:
    rated = make_competition("g1", home_score=24, away_score=27)
    repository.save_competition(rated)
    repository.save_rating("g1", make_rating(80))
    repository.save_competition(make_competition("g1", home_score=0, away_score=0))

    snapshot = repository.get_rated_snapshot("g1")

    assert snapshot is not None
    assert snapshot.scoreline == "27-24"
    assert snapshot.home.team.record == rated.home.team.record
    assert repository.get_rated_snapshot("unrated") is None


def test_snapshot_is_json_safe() -> None:
    snapshot = competition_snapshot(make_competition("g1"))

    assert snapshot["period_type"] == 2
    assert snapshot["start_time"] == "2023-09-07T20:20:00"
    assert {team["home_away"] for team in snapshot["teams"]} == {"home", "away"}
    assert all(isinstance(team["record"], str) for team in snapshot["teams"])


def test_available_periods_are_most_recent_first(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("a", season=2023, period=18))
    repository.save_competition(make_competition("b", season=2023, period=2, period_type=PeriodType.POST))
    repository.save_competition(make_competition("c", season=2024, period=2, period_type=PeriodType.PRE))
    repository.save_competition(make_competition("d", season=2024, period=1))
    repository.save_competition(make_competition("e", season=2024, period=1))
    repository.save_competition(
        make_competition("x", season=2025, period=1, sport="college-football", home="Alabama", away="Auburn")
    )

    periods = repository.get_available_periods("nfl")

    assert periods == [
        Period(2024, 1, PeriodType.REGULAR),
        Period(2024, 2, PeriodType.PRE),
        Period(2023, 2, PeriodType.POST),
        Period(2023, 18, PeriodType.REGULAR),
    ]


def test_find_by_period_filters_and_attaches_ratings(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("a", season=2024, period=1))
    repository.save_competition(make_competition("b", season=2024, period=1))
    repository.save_competition(make_competition("c", season=2024, period=2))
    repository.save_rating("a", make_rating(97))

    found = repository.find_by_period(2024, 1, PeriodType.REGULAR, "nfl")

    assert [competition.id for competition in found] == ["a", "b"]
    assert found[0].rating is not None
    assert found[0].rating.category is RatingCategory.LEGENDARY
    assert found[1].rating is None
    assert repository.find_by_period(2024, 1, PeriodType.POST, "nfl") == []


def test_details_update_on_resave(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("g1", with_details=False))
    assert repository.get_competition_by_id("g1").details is None

    details = CompetitionDetails(play_by_play=({"text": "Field goal"},), metadata={"venue": "Arrowhead"})
    repository.save_competition(replace(make_competition("g1"), details=details))

    assert repository.get_competition_by_id("g1").details == details


def test_use_case_against_sql_repository_is_idempotent(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("401547439"))
    generator = ScriptedGenerator(make_rating(92))
    use_case = GenerateRatingUseCase(repository, generator)

    first = use_case.execute("401547439")
    second = use_case.execute("401547439")

    assert first.status is RatingStatus.GENERATED
    assert second.status is RatingStatus.SKIPPED
    assert second.rating == first.rating
    assert generator.calls == ["401547439"]
    assert _rating_rows(repository) == 1


def test_use_case_is_idempotent_for_non_default_rating_type() -> None:
    engine = create_db_engine("sqlite://")
    ensure_schema(engine)
    repository = SqlCompetitionRepository(create_session_factory(engine), rating_type="quality")
    repository.save_competition(make_competition("401547439"))
    generator = ScriptedGenerator(make_rating(92, rating_type="quality"))
    use_case = GenerateRatingUseCase(repository, generator, rating_type="quality")

    first = use_case.execute("401547439")
    second = use_case.execute("401547439")

    assert first.status is RatingStatus.GENERATED
    assert second.status is RatingStatus.SKIPPED
    assert generator.calls == ["401547439"]
    assert repository.get_rating("401547439").rating_type == "quality"
    assert repository.get_rating("401547439", "excitement") is None
    assert repository.get_competition_by_id("401547439").rating.score == 92
    assert repository.get_rated_snapshot("401547439").id == "401547439"


def test_generated_rating_is_stored_under_use_case_rating_type(repository: SqlCompetitionRepository) -> None:
    repository.save_competition(make_competition("401547439"))
    generator = ScriptedGenerator(make_rating(92, rating_type="quality"))
    use_case = GenerateRatingUseCase(repository, generator)

    first = use_case.execute("401547439")
    second = use_case.execute("401547439")

    assert first.rating.rating_type == "excitement"
    assert second.status is RatingStatus.SKIPPED
    assert generator.calls == ["401547439"]
    assert repository.get_rating("401547439", "quality") is None
    assert _rating_rows(repository) == 1


def test_driver_errors_become_repository_errors() -> None:
    engine = create_db_engine("sqlite://")
    repository = SqlCompetitionRepository(create_session_factory(engine))

    with pytest.raises(RepositoryError, match="Failed to list periods") as excinfo:
        repository.get_available_periods("nfl")

    assert excinfo.value.retryable
    assert isinstance(excinfo.value.__cause__, OperationalError)
