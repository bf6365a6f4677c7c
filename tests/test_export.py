"""Tests for evaluation export files."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from domain.export import read_evaluation, write_evaluation
from fakes import make_competition, make_rating

NOW = datetime(2024, 1, 15, 18, 30, 0, tzinfo=UTC)


def test_write_evaluation_uses_expected_name_and_shape(tmp_path: Path) -> None:
    competition = make_competition("401547439", home="Chiefs", away="Lions", home_score=20, away_score=21)

    path = write_evaluation(tmp_path, competition, make_rating(92), "default", now=NOW)

    assert path.name == f"401547439_default_{int(NOW.timestamp())}.json"
    record = read_evaluation(path)
    assert record["game_id"] == "401547439"
    assert record["prompt_name"] == "default"
    assert record["timestamp"] == NOW.isoformat()
    assert record["game_info"] == {
        "away_team": "Lions",
        "home_team": "Chiefs",
        "away_score": 21.0,
        "home_score": 20.0,
        "season": 2023,
        "week": 1,
        "period_type": 2,
    }
    assert record["rating"]["score"] == 92
    assert record["rating"]["category"] == "amazing"
    assert record["rating"]["source"] == "openai"
    assert record["rating"]["type"] == "excitement"
    assert record["rating"]["generated_at"] == "2024-01-01T12:00:00"


def test_write_evaluation_never_overwrites(tmp_path: Path) -> None:
    competition = make_competition("g1")

    first = write_evaluation(tmp_path, competition, make_rating(50), "default", now=NOW)
    second = write_evaluation(tmp_path, competition, make_rating(60), "default", now=NOW)

    assert first != second
    assert second.name.endswith("_1.json")
    assert read_evaluation(first)["rating"]["score"] == 50
    assert read_evaluation(second)["rating"]["score"] == 60


def test_write_evaluation_creates_output_dir_and_sanitizes_names(tmp_path: Path) -> None:
    output_dir = tmp_path / "nested" / "evals"

    path = write_evaluation(output_dir, make_competition("g/1"), make_rating(10), "../sneaky prompt", now=NOW)

    assert path.parent == output_dir
    assert "/" not in path.name
    assert read_evaluation(path)["prompt_name"] == "../sneaky prompt"
