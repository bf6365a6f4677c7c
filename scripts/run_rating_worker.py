#!/usr/bin/env python3
"""Run the excitement-rating job consumer."""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import create_db_engine, create_session_factory
from domain.config import WorkerConfig, load_worker_config
from domain.generators import BoundedRatingGenerator, load_generator, load_sports_data_service
from domain.ingest import backfill_season, enqueue_unrated, sync_latest_competitions
from domain.pipeline import GenerateRatingUseCase
from domain.protocol import SportsDataService
from domain.telemetry import LoggingObserver, setup_logging
from jobs.consumer import ConsumerStats, RatingJobConsumer
from jobs.kinds import RatingJobPayload, registered_kinds
from jobs.queue import InMemoryJobQueue
from repositories import SqlCompetitionRepository, ensure_schema

DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "worker.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Consume sentiment_analysis jobs and persist excitement ratings.",
)


def _load_config(config_path: Path) -> WorkerConfig:
    try:
        return load_worker_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _build_repository(config: WorkerConfig, db_url: str | None) -> SqlCompetitionRepository:
    engine = create_db_engine(db_url or config.db_url)
    ensure_schema(engine)
    return SqlCompetitionRepository(create_session_factory(engine))


def _build_consumer(
    config: WorkerConfig,
    repository: SqlCompetitionRepository,
    queue: InMemoryJobQueue,
    observer: LoggingObserver,
) -> RatingJobConsumer:
    if config.generator is None:
        raise typer.BadParameter(f"{config.file_path}: [generator] section is required", param_hint="--config")
    try:
        generator = load_generator(config.generator.import_path, **config.generator.options)
    except (ImportError, TypeError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    use_case = GenerateRatingUseCase(
        repository,
        BoundedRatingGenerator(generator, timeout_seconds=config.generator.timeout_seconds),
        observer=observer,
    )
    return RatingJobConsumer(
        use_case,
        queue,
        kind=config.job_kind,
        poll_interval=config.poll_interval_seconds,
        observer=observer,
    )


def _build_sports_data_service(config: WorkerConfig) -> SportsDataService:
    if config.sports_data is None:
        raise typer.BadParameter(f"{config.file_path}: [sports_data] section is required", param_hint="--config")
    try:
        return load_sports_data_service(config.sports_data.import_path, **config.sports_data.options)
    except (ImportError, TypeError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _install_stop_handlers(stop_event: threading.Event) -> None:
    def _request_stop(signum: int, _frame: object) -> None:
        typer.echo(f"received signal {signum}; finishing current job", err=True)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)


def _consume(consumer: RatingJobConsumer, queue: InMemoryJobQueue, *, until_idle: bool) -> ConsumerStats:
    stop_event = threading.Event()
    _install_stop_handlers(stop_event)
    stats = consumer.run(stop_event, stop_when_idle=until_idle)

    typer.echo(
        f"processed={stats.processed} acknowledged={stats.acknowledged} "
        f"failed={stats.failed} dead_letters={len(queue.dead_letters)}"
    )
    for dead_letter in queue.dead_letters:
        failure_class = "retryable" if dead_letter.retryable else "permanent"
        typer.echo(
            f"dead_letter job_id={dead_letter.job.id} attempts={dead_letter.job.attempts} "
            f"failure_class={failure_class} error={dead_letter.error}",
            err=True,
        )
    return stats


@app.command("run")
def run_worker(
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Worker TOML config path."),
    ] = DEFAULT_CONFIG_PATH,
    db_url: Annotated[
        str | None,
        typer.Option("--db-url", help="Override [worker].db_url."),
    ] = None,
    competition_ids: Annotated[
        list[str] | None,
        typer.Option("--competition-id", help="Enqueue a rating job for this competition. Repeatable."),
    ] = None,
    rate_missing: Annotated[
        bool,
        typer.Option("--rate-missing", help="Enqueue jobs for unrated competitions in recent periods."),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", help="Regenerate ratings for --competition-id even if one exists."),
    ] = False,
    until_idle: Annotated[
        bool,
        typer.Option("--until-idle", help="Exit once the queue has no more jobs."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Consume rating jobs until interrupted, or until idle with --until-idle."""
    setup_logging(verbose)
    config = _load_config(config_path)
    observer = LoggingObserver()
    repository = _build_repository(config, db_url)
    queue = InMemoryJobQueue(max_attempts=config.max_attempts)
    consumer = _build_consumer(config, repository, queue, observer)

    for competition_id in competition_ids or []:
        queue.enqueue(RatingJobPayload(competition_id=competition_id, force=force))
    if rate_missing:
        enqueued = enqueue_unrated(
            repository,
            queue,
            config.sport,
            max_periods=config.max_periods,
            max_competitions=config.max_competitions,
            observer=observer,
        )
        typer.echo(f"enqueued_unrated={len(enqueued)} sport={config.sport}")

    _consume(consumer, queue, until_idle=until_idle)
    if queue.dead_letters:
        raise typer.Exit(code=1)


@app.command("sync")
def sync_competitions(
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Worker TOML config path."),
    ] = DEFAULT_CONFIG_PATH,
    db_url: Annotated[
        str | None,
        typer.Option("--db-url", help="Override [worker].db_url."),
    ] = None,
    rate: Annotated[
        bool,
        typer.Option("--rate/--no-rate", help="Rate newly stored competitions after syncing."),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Store the latest period's competitions and optionally rate the new ones."""
    setup_logging(verbose)
    config = _load_config(config_path)
    service = _build_sports_data_service(config)

    observer = LoggingObserver()
    repository = _build_repository(config, db_url)
    queue = InMemoryJobQueue(max_attempts=config.max_attempts) if rate else None
    consumer = _build_consumer(config, repository, queue, observer) if queue is not None else None

    summary = sync_latest_competitions(service, repository, config.sport, queue=queue, observer=observer)
    typer.echo(
        f"season={summary.period.season} period_type={int(summary.period.period_type)} "
        f"period={summary.period.period} fetched={summary.fetched} "
        f"already_stored={summary.already_stored} saved={summary.saved} "
        f"failed={summary.failed} jobs_enqueued={summary.jobs_enqueued}"
    )

    if consumer is not None and queue is not None:
        _consume(consumer, queue, until_idle=True)
        if queue.dead_letters:
            raise typer.Exit(code=1)
    if summary.failed:
        raise typer.Exit(code=1)


@app.command("backfill")
def backfill(
    season: Annotated[
        int,
        typer.Option("--season", help="Season to backfill."),
    ],
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Worker TOML config path."),
    ] = DEFAULT_CONFIG_PATH,
    db_url: Annotated[
        str | None,
        typer.Option("--db-url", help="Override [worker].db_url."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", help="Stop after adding this many competitions."),
    ] = None,
    rate: Annotated[
        bool,
        typer.Option("--rate/--no-rate", help="Rate newly stored competitions after backfilling."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Store every missing competition of a season, period by period."""
    setup_logging(verbose)
    config = _load_config(config_path)
    if limit is not None and limit <= 0:
        raise typer.BadParameter("--limit must be greater than 0")
    service = _build_sports_data_service(config)

    observer = LoggingObserver()
    repository = _build_repository(config, db_url)
    queue = InMemoryJobQueue(max_attempts=config.max_attempts) if rate else None
    consumer = _build_consumer(config, repository, queue, observer) if queue is not None else None

    summary = backfill_season(service, repository, config.sport, season, limit=limit, queue=queue, observer=observer)
    typer.echo(
        f"season={summary.season} periods_processed={summary.periods_processed} "
        f"competitions_added={summary.competitions_added} errors={len(summary.errors)} "
        f"limit={summary.limit or '-'} limit_reached={summary.limit_reached} "
        f"jobs_enqueued={summary.jobs_enqueued}"
    )
    for result in summary.period_results:
        status = "error" if result.error else "skipped" if result.skipped else "ok"
        typer.echo(
            f"  {result.period.label:<28} status={status} existing={result.existing} "
            f"fetched={result.fetched} added={result.added}"
        )
    for result in summary.errors:
        typer.echo(f"period_failed period={result.period.label} error={result.error}", err=True)

    if consumer is not None and queue is not None:
        _consume(consumer, queue, until_idle=True)
        if queue.dead_letters:
            raise typer.Exit(code=1)
    if summary.errors:
        raise typer.Exit(code=1)


@app.command("list-kinds")
def list_kinds() -> None:
    """Print the job kinds this worker can decode."""
    for kind in registered_kinds():
        typer.echo(kind.value)


if __name__ == "__main__":
    app()
