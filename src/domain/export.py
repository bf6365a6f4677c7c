"""Append-only evaluation export: one JSON file per (competition, prompt) evaluation."""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from domain.common import Competition
from domain.rating import Rating

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(value: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", value).strip("._")
    return cleaned or "unnamed"


def evaluation_record(
    competition: Competition,
    rating: Rating,
    prompt_name: str,
    *,
    now: datetime,
) -> dict[str, Any]:
    return {
        "timestamp": now.isoformat(),
        "game_id": competition.id,
        "prompt_name": prompt_name,
        "game_info": {
            "away_team": competition.away.team.name,
            "home_team": competition.home.team.name,
            "away_score": competition.away.score,
            "home_score": competition.home.score,
            "season": competition.season,
            "week": competition.period,
            "period_type": int(competition.period_type),
        },
        "rating": {
            "score": rating.score,
            "category": rating.category.value,
            "explanation": rating.explanation,
            "spoiler_free_explanation": rating.spoiler_free_explanation,
            "source": rating.source,
            "type": rating.rating_type,
            "generated_at": rating.generated_at.isoformat(),
        },
    }


def write_evaluation(
    output_dir: Path,
    competition: Competition,
    rating: Rating,
    prompt_name: str,
    *,
    now: datetime | None = None,
) -> Path:
    """Write one evaluation file and return its path. Existing files are never replaced."""
    now = now or datetime.now(UTC)
    output_dir.mkdir(parents=True, exist_ok=True)

    stem = f"{_safe_name(competition.id)}_{_safe_name(prompt_name)}_{int(now.timestamp())}"
    payload = json.dumps(
        evaluation_record(competition, rating, prompt_name, now=now),
        indent=2,
        ensure_ascii=False,
    )

    suffix = 0
    while True:
        name = f"{stem}.json" if suffix == 0 else f"{stem}_{suffix}.json"
        path = output_dir / name
        try:
            with path.open("x", encoding="utf-8") as file:
                file.write(payload)
                file.write("\n")
        except FileExistsError:
            suffix += 1
            continue
        return path


def read_evaluation(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as file:
        return json.load(file)


__all__ = ["evaluation_record", "read_evaluation", "write_evaluation"]
