#!/usr/bin/env python3
"""Try prompt variants against stored competitions and export the results."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import create_db_engine, create_session_factory
from domain.common import Competition
from domain.config import PromptVariant, WorkerConfig, load_prompt_variants, load_worker_config
from domain.errors import RatingPipelineError
from domain.export import write_evaluation
from domain.generators import BoundedRatingGenerator, load_generator
from domain.periods import list_recent_competitions
from domain.telemetry import LoggingObserver, setup_logging
from repositories import SqlCompetitionRepository, ensure_schema

DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "worker.toml"
DEFAULT_PROMPTS_DIR = ROOT_DIR / "config" / "prompts"
DEFAULT_OUTPUT_DIR = ROOT_DIR / "evaluations"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="List recent games and evaluate rating prompts against them.",
)


def _load_config(config_path: Path) -> WorkerConfig:
    try:
        return load_worker_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _repository(config: WorkerConfig, db_url: str | None) -> SqlCompetitionRepository:
    engine = create_db_engine(db_url or config.db_url)
    ensure_schema(engine)
    return SqlCompetitionRepository(create_session_factory(engine))


def _select_prompt(prompts_dir: Path, prompt_name: str) -> PromptVariant:
    try:
        variants = load_prompt_variants(prompts_dir)
    except (FileNotFoundError, NotADirectoryError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--prompts-dir") from exc

    by_name = {variant.name: variant for variant in variants}
    try:
        return by_name[prompt_name]
    except KeyError as exc:
        available = ", ".join(sorted(by_name))
        raise typer.BadParameter(
            f"Unknown prompt '{prompt_name}'. Choose one of: {available}.",
            param_hint="--prompt",
        ) from exc


def _render_row(index: int, competition: Competition) -> str:
    rating = competition.rating
    rating_text = "unrated" if rating is None else f"{rating.score:3d} {rating.category.value}"
    return (
        f"{index:2d}. {competition.id:<12} {competition.matchup:<40} "
        f"{competition.scoreline:>7} {competition.period_key.label:<24} {rating_text}"
    )


@app.command("list-games")
def list_games(
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Worker TOML config path."),
    ] = DEFAULT_CONFIG_PATH,
    db_url: Annotated[
        str | None,
        typer.Option("--db-url", help="Override [worker].db_url."),
    ] = None,
    max_periods: Annotated[
        int | None,
        typer.Option("--max-periods", help="Override [listing].max_periods."),
    ] = None,
    max_competitions: Annotated[
        int | None,
        typer.Option("--max-competitions", help="Override [listing].max_competitions."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Show the most recent stored games with their current rating."""
    setup_logging(verbose)
    config = _load_config(config_path)
    if max_periods is not None and max_periods <= 0:
        raise typer.BadParameter("--max-periods must be greater than 0")
    if max_competitions is not None and max_competitions <= 0:
        raise typer.BadParameter("--max-competitions must be greater than 0")

    page = list_recent_competitions(
        _repository(config, db_url),
        config.sport,
        max_periods=max_periods or config.max_periods,
        max_competitions=max_competitions or config.max_competitions,
        observer=LoggingObserver(),
    )

    typer.echo(
        f"sport={config.sport} games={len(page)} periods_examined={page.periods_examined} "
        f"failed_periods={len(page.failed_periods)} truncated={page.truncated}"
    )
    for index, competition in enumerate(page.competitions, start=1):
        typer.echo(_render_row(index, competition))


@app.command("list-prompts")
def list_prompts(
    prompts_dir: Annotated[
        Path,
        typer.Option("--prompts-dir", help="Directory of prompt variant TOML files."),
    ] = DEFAULT_PROMPTS_DIR,
) -> None:
    """Show available prompt variants."""
    try:
        variants = load_prompt_variants(prompts_dir)
    except (FileNotFoundError, NotADirectoryError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--prompts-dir") from exc

    for variant in variants:
        typer.echo(f"{variant.name:<20} {variant.description or ''}".rstrip())


@app.command("evaluate")
def evaluate(
    competition_id: Annotated[
        str,
        typer.Argument(help="Competition id to rate."),
    ],
    prompt_name: Annotated[
        str,
        typer.Option("--prompt", help="Prompt variant name."),
    ] = "default",
    prompts_dir: Annotated[
        Path,
        typer.Option("--prompts-dir", help="Directory of prompt variant TOML files."),
    ] = DEFAULT_PROMPTS_DIR,
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", help="Where evaluation JSON files are written."),
    ] = DEFAULT_OUTPUT_DIR,
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Worker TOML config path."),
    ] = DEFAULT_CONFIG_PATH,
    db_url: Annotated[
        str | None,
        typer.Option("--db-url", help="Override [worker].db_url."),
    ] = None,
    persist: Annotated[
        bool,
        typer.Option("--persist", help="Also store the rating, replacing any existing one."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Rate one competition with a prompt variant and export the result."""
    setup_logging(verbose)
    config = _load_config(config_path)
    if config.generator is None:
        raise typer.BadParameter(f"{config.file_path}: [generator] section is required", param_hint="--config")
    variant = _select_prompt(prompts_dir, prompt_name)

    try:
        generator = load_generator(
            config.generator.import_path,
            **{**config.generator.options, "prompt_template": variant.template},
        )
    except (ImportError, TypeError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    bounded = BoundedRatingGenerator(generator, timeout_seconds=config.generator.timeout_seconds)

    repository = _repository(config, db_url)
    try:
        competition = repository.get_competition_by_id(competition_id)
        rating = bounded.produce_rating(competition)
        if persist:
            repository.save_rating(competition.id, rating)
    except RatingPipelineError as exc:
        typer.echo(f"evaluation failed competition_id={competition_id} error={exc}", err=True)
        raise typer.Exit(code=1) from exc

    path = write_evaluation(output_dir, competition, rating, variant.name)
    typer.echo(
        f"competition_id={competition.id} prompt={variant.name} score={rating.score} "
        f"category={rating.category.value} persisted={persist} file={path}"
    )


if __name__ == "__main__":
    app()
