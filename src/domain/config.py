"""Load worker settings and prompt variants from TOML files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from db import DEFAULT_DB_URL
from domain.config_base import (
    BaseNamedConfig,
    load_toml_configs,
    optional_str,
    read_toml,
    require_str,
)
from domain.generators import DEFAULT_GENERATOR_TIMEOUT_SECONDS
from domain.periods import DEFAULT_MAX_COMPETITIONS, DEFAULT_MAX_PERIODS


@dataclass(frozen=True)
class GeneratorSettings:
    import_path: str
    timeout_seconds: float = DEFAULT_GENERATOR_TIMEOUT_SECONDS
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SportsDataSettings:
    import_path: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkerConfig:
    """Settings for one rating worker process."""

    file_path: Path
    db_url: str = DEFAULT_DB_URL
    sport: str = "nfl"
    job_kind: str = "sentiment_analysis"
    poll_interval_seconds: float = 1.0
    max_attempts: int = 3
    max_periods: int = DEFAULT_MAX_PERIODS
    max_competitions: int = DEFAULT_MAX_COMPETITIONS
    generator: GeneratorSettings | None = None
    sports_data: SportsDataSettings | None = None


@dataclass(frozen=True)
class PromptVariant(BaseNamedConfig):
    """One prompt template used when evaluating generator output."""

    template: str


def load_worker_config(file_path: Path) -> WorkerConfig:
    """Load and validate a worker TOML file."""
    raw = read_toml(file_path)
    worker_raw = raw.get("worker", {})
    listing_raw = raw.get("listing", {})

    poll_interval_seconds = float(worker_raw.get("poll_interval_seconds", 1.0))
    if poll_interval_seconds <= 0.0:
        raise ValueError(f"{file_path}: [worker].poll_interval_seconds must be > 0")

    max_attempts = int(worker_raw.get("max_attempts", 3))
    if max_attempts < 1:
        raise ValueError(f"{file_path}: [worker].max_attempts must be >= 1")

    max_periods = int(listing_raw.get("max_periods", DEFAULT_MAX_PERIODS))
    if max_periods <= 0:
        raise ValueError(f"{file_path}: [listing].max_periods must be > 0")

    max_competitions = int(listing_raw.get("max_competitions", DEFAULT_MAX_COMPETITIONS))
    if max_competitions <= 0:
        raise ValueError(f"{file_path}: [listing].max_competitions must be > 0")

    return WorkerConfig(
        file_path=file_path,
        db_url=str(worker_raw.get("db_url", DEFAULT_DB_URL)),
        sport=str(worker_raw.get("sport", "nfl")).strip().lower(),
        job_kind=str(worker_raw.get("job_kind", "sentiment_analysis")),
        poll_interval_seconds=poll_interval_seconds,
        max_attempts=max_attempts,
        max_periods=max_periods,
        max_competitions=max_competitions,
        generator=_parse_generator(raw.get("generator"), file_path),
        sports_data=_parse_sports_data(raw.get("sports_data"), file_path),
    )


def _parse_generator(raw: dict[str, Any] | None, file_path: Path) -> GeneratorSettings | None:
    if raw is None:
        return None

    timeout_seconds = float(raw.get("timeout_seconds", DEFAULT_GENERATOR_TIMEOUT_SECONDS))
    if timeout_seconds <= 0.0:
        raise ValueError(f"{file_path}: [generator].timeout_seconds must be > 0")

    return GeneratorSettings(
        import_path=require_str(raw, "import_path", file_path=file_path, section="generator"),
        timeout_seconds=timeout_seconds,
        options=dict(raw.get("options", {})),
    )


def _parse_sports_data(raw: dict[str, Any] | None, file_path: Path) -> SportsDataSettings | None:
    if raw is None:
        return None
    return SportsDataSettings(
        import_path=require_str(raw, "import_path", file_path=file_path, section="sports_data"),
        options=dict(raw.get("options", {})),
    )


def load_prompt_variants(config_dir: Path) -> list[PromptVariant]:
    """Load all prompt variant TOML files in a directory."""
    return load_toml_configs(
        config_dir,
        _parse_prompt_variant,
        duplicate_name_label="prompt",
    )


def load_prompt_variant(file_path: Path) -> PromptVariant:
    return _parse_prompt_variant(read_toml(file_path), file_path)


def _parse_prompt_variant(raw: dict[str, Any], file_path: Path) -> PromptVariant:
    prompt_raw = raw.get("prompt", {})
    template = str(prompt_raw.get("template", ""))
    if not template.strip():
        raise ValueError(f"{file_path}: [prompt].template is required")

    return PromptVariant(
        name=require_str(prompt_raw, "name", file_path=file_path, section="prompt"),
        description=optional_str(prompt_raw, "description"),
        file_path=file_path,
        template=template,
    )


__all__ = [
    "GeneratorSettings",
    "PromptVariant",
    "SportsDataSettings",
    "WorkerConfig",
    "load_prompt_variant",
    "load_prompt_variants",
    "load_worker_config",
]
