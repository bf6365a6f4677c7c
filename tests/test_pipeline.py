"""Tests for the generate-rating use case."""

from __future__ import annotations

import pytest

from domain.errors import (
    CompetitionNotFoundError,
    RatingGenerationError,
    RatingPersistenceError,
    RepositoryError,
)
from domain.pipeline import GenerateRatingUseCase, RatingStatus
from domain.rating import RatingCategory
from fakes import (
    InMemoryCompetitionRepository,
    RecordingObserver,
    ScriptedGenerator,
    make_competition,
    make_rating,
)


def test_generates_and_saves_rating_for_unrated_competition() -> None:
    repository = InMemoryCompetitionRepository([make_competition("401547439")])
    generator = ScriptedGenerator(make_rating(92))
    observer = RecordingObserver()
    use_case = GenerateRatingUseCase(repository, generator, observer=observer)

    outcome = use_case.execute("401547439")

    assert outcome.status is RatingStatus.GENERATED
    assert outcome.rating.score == 92
    assert outcome.category is RatingCategory.AMAZING
    assert outcome.generator_called
    assert generator.calls == ["401547439"]
    assert repository.get_rating("401547439") == make_rating(92)
    assert ("rating_saved", "401547439", 92) in observer.events


def test_second_execution_short_circuits_without_generator_call() -> None:
    repository = InMemoryCompetitionRepository([make_competition("401547439")])
    generator = ScriptedGenerator(make_rating(92), make_rating(40))
    observer = RecordingObserver()
    use_case = GenerateRatingUseCase(repository, generator, observer=observer)

    first = use_case.execute("401547439")
    repository.calls.clear()
    second = use_case.execute("401547439")

    assert first.status is RatingStatus.GENERATED
    assert second.status is RatingStatus.SKIPPED
    assert not second.generator_called
    assert second.rating.score == 92
    assert generator.calls == ["401547439"]
    assert "save_rating" not in repository.calls
    assert ("rating_skipped", "401547439", 92) in observer.events


def test_force_regenerates_existing_rating() -> None:
    repository = InMemoryCompetitionRepository([make_competition("401547439")])
    generator = ScriptedGenerator(make_rating(92), make_rating(61))
    use_case = GenerateRatingUseCase(repository, generator)

    use_case.execute("401547439")
    outcome = use_case.execute("401547439", force=True)

    assert outcome.status is RatingStatus.REGENERATED
    assert outcome.category is RatingCategory.GOOD
    assert repository.get_rating("401547439").score == 61
    assert len(repository.ratings) == 1


def test_missing_competition_is_permanent_and_skips_generator() -> None:
    repository = InMemoryCompetitionRepository()
    generator = ScriptedGenerator()
    use_case = GenerateRatingUseCase(repository, generator)

    with pytest.raises(CompetitionNotFoundError, match="missing") as excinfo:
        use_case.execute("missing")

    assert excinfo.value.retryable is False
    assert excinfo.value.failure_class == "permanent"
    assert generator.calls == []


def test_generator_failure_is_wrapped_as_retryable() -> None:
    repository = InMemoryCompetitionRepository([make_competition("g1")])
    use_case = GenerateRatingUseCase(repository, ScriptedGenerator(ConnectionError("upstream 503")))

    with pytest.raises(RatingGenerationError, match="upstream 503") as excinfo:
        use_case.execute("g1")

    assert excinfo.value.retryable is True
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert repository.ratings == {}


def test_generator_error_passes_through_unchanged() -> None:
    error = RatingGenerationError("timed out")
    repository = InMemoryCompetitionRepository([make_competition("g1")])
    use_case = GenerateRatingUseCase(repository, ScriptedGenerator(error))

    with pytest.raises(RatingGenerationError) as excinfo:
        use_case.execute("g1")

    assert excinfo.value is error


def test_generator_returning_non_rating_is_rejected() -> None:
    repository = InMemoryCompetitionRepository([make_competition("g1")])
    generator = ScriptedGenerator(lambda competition: {"score": 80})  # type: ignore[arg-type, return-value]
    use_case = GenerateRatingUseCase(repository, generator)

    with pytest.raises(RatingGenerationError, match="returned dict"):
        use_case.execute("g1")

    assert repository.ratings == {}


def test_save_failure_is_retryable_persistence_error() -> None:
    repository = InMemoryCompetitionRepository([make_competition("g1")])
    repository.save_error = RepositoryError("database is locked")
    use_case = GenerateRatingUseCase(repository, ScriptedGenerator(make_rating(70)))

    with pytest.raises(RatingPersistenceError, match="database is locked") as excinfo:
        use_case.execute("g1")

    assert excinfo.value.retryable is True


def test_idempotency_check_uses_configured_rating_type() -> None:
    repository = InMemoryCompetitionRepository([make_competition("g1")])
    repository.ratings[("g1", "quality")] = make_rating(64, rating_type="quality")
    generator = ScriptedGenerator(make_rating(90))
    use_case = GenerateRatingUseCase(repository, generator, rating_type="quality")

    outcome = use_case.execute("g1")

    assert outcome.status is RatingStatus.SKIPPED
    assert outcome.rating.score == 64
    assert generator.calls == []


def test_generated_rating_takes_configured_rating_type() -> None:
    repository = InMemoryCompetitionRepository([make_competition("g1")])
    use_case = GenerateRatingUseCase(repository, ScriptedGenerator(make_rating(90)), rating_type="quality")

    outcome = use_case.execute("g1")

    assert outcome.rating.rating_type == "quality"
    assert repository.get_rating("g1", "quality") == outcome.rating
    assert repository.get_rating("g1") is None
