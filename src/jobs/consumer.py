"""Blocking job consumer for rating requests."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

from domain.errors import is_retryable
from domain.pipeline import GenerateRatingUseCase, RatingOutcome
from domain.telemetry import PipelineObserver
from jobs.kinds import Job, JobKind, RatingJobPayload, parse_payload_object, payload_decoder
from jobs.queue import JobQueue

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


class JobStatus(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    FAILED = "failed"


@dataclass(frozen=True)
class JobResult:
    job_id: str
    kind: JobKind
    status: JobStatus
    competition_id: str | None = None
    outcome: RatingOutcome | None = None
    error: BaseException | None = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.status is JobStatus.ACKNOWLEDGED


@dataclass(frozen=True)
class ConsumerStats:
    processed: int
    acknowledged: int
    failed: int


class RatingJobConsumer:
    """Dequeues rating jobs, runs the use case and reports back to the queue.

    ``run`` checks the stop event only between jobs, so a job that has started
    always finishes, including its rating write, before the loop exits.
    """

    def __init__(
        self,
        use_case: GenerateRatingUseCase,
        queue: JobQueue,
        *,
        kind: JobKind | str = JobKind.SENTIMENT_ANALYSIS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        observer: PipelineObserver | None = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be greater than 0")
        self.use_case = use_case
        self.queue = queue
        self.decode = payload_decoder(kind)
        self.kind = JobKind(kind)
        self.poll_interval = poll_interval
        self.observer = observer or PipelineObserver()

    def handle(self, job: Job) -> JobResult:
        """Process one job and report the result to the queue."""
        self.observer.job_received(job.id, job.kind.value)
        result = self._process(job)

        if result.outcome is not None:
            self.queue.ack(job)
            self.observer.job_acknowledged(
                job.id,
                job.kind.value,
                result.outcome.competition_id,
                result.outcome.status.value,
            )
        elif result.error is not None:
            self.queue.fail(job, result.error, retryable=result.retryable)
            self.observer.job_failed(
                job.id,
                job.kind.value,
                result.competition_id,
                result.error,
                retryable=result.retryable,
            )
        return result

    def _process(self, job: Job) -> JobResult:
        competition_id: str | None = None
        try:
            payload: RatingJobPayload = self.decode(parse_payload_object(job.payload))
            competition_id = payload.competition_id
            outcome = self.use_case.execute(payload.competition_id, force=payload.force)
        except Exception as exc:
            return JobResult(
                job_id=job.id,
                kind=job.kind,
                status=JobStatus.FAILED,
                competition_id=competition_id,
                error=exc,
                retryable=is_retryable(exc),
            )

        return JobResult(
            job_id=job.id,
            kind=job.kind,
            status=JobStatus.ACKNOWLEDGED,
            competition_id=competition_id,
            outcome=outcome,
        )

    def run(self, stop_event: threading.Event, *, stop_when_idle: bool = False) -> ConsumerStats:
        """Consume jobs until ``stop_event`` is set, or the queue is idle if requested."""
        processed = 0
        acknowledged = 0
        failed = 0

        while not stop_event.is_set():
            job = self.queue.dequeue(self.kind, timeout=self.poll_interval)
            if job is None:
                if stop_when_idle:
                    break
                continue

            result = self.handle(job)
            processed += 1
            if result.ok:
                acknowledged += 1
            else:
                failed += 1

        return ConsumerStats(processed=processed, acknowledged=acknowledged, failed=failed)


__all__ = [
    "ConsumerStats",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "JobResult",
    "JobStatus",
    "RatingJobConsumer",
]
