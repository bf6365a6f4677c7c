"""Consumer-side job queue contract and an in-process development queue."""

from __future__ import annotations

import threading
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from jobs.kinds import Job, JobKind, encode_payload, kind_for_payload


@runtime_checkable
class JobQueue(Protocol):
    """What a consumer needs from a broker: delivery plus ack/fail reporting.

    Retry and backoff policy belongs to the queue, never to the consumer.
    """

    def enqueue(self, payload: object) -> Job: ...

    def dequeue(self, kind: JobKind, timeout: float) -> Job | None: ...

    def ack(self, job: Job) -> None: ...

    def fail(self, job: Job, error: BaseException, *, retryable: bool) -> None: ...


@dataclass(frozen=True)
class DeadLetter:
    job: Job
    error: str
    retryable: bool


class InMemoryJobQueue:
    """Thread-safe FIFO queue per job kind, for development and tests.

    Retryable failures are redelivered until ``max_attempts`` deliveries have
    been made; permanent failures and exhausted jobs move to ``dead_letters``.
    Nothing survives a process restart.
    """

    def __init__(self, *, max_attempts: int = 3) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self._pending: dict[JobKind, deque[Job]] = {}
        self._in_flight: dict[str, Job] = {}
        self._condition = threading.Condition()
        self.acknowledged: list[Job] = []
        self.dead_letters: list[DeadLetter] = []

    def enqueue(self, payload: object) -> Job:
        kind = kind_for_payload(payload)
        job = Job(id=uuid.uuid4().hex, kind=kind, payload=encode_payload(payload))
        self.put(job)
        return job

    def put(self, job: Job) -> None:
        """Enqueue an already-built job, raw payload included."""
        with self._condition:
            self._pending.setdefault(job.kind, deque()).append(job)
            self._condition.notify_all()

    def dequeue(self, kind: JobKind, timeout: float) -> Job | None:
        with self._condition:
            pending = self._pending.setdefault(kind, deque())
            if not pending:
                self._condition.wait_for(lambda: bool(pending), timeout=timeout)
            if not pending:
                return None
            job = pending.popleft()
            job.attempts += 1
            self._in_flight[job.id] = job
            return job

    def ack(self, job: Job) -> None:
        with self._condition:
            self._in_flight.pop(job.id, None)
            self.acknowledged.append(job)

    def fail(self, job: Job, error: BaseException, *, retryable: bool) -> None:
        with self._condition:
            self._in_flight.pop(job.id, None)
            if retryable and job.attempts < self.max_attempts:
                self._pending.setdefault(job.kind, deque()).append(job)
                self._condition.notify_all()
                return
            self.dead_letters.append(DeadLetter(job=job, error=str(error), retryable=retryable))

    def pending_count(self, kind: JobKind | None = None) -> int:
        with self._condition:
            if kind is not None:
                return len(self._pending.get(kind, ()))
            return sum(len(items) for items in self._pending.values())

    def in_flight_count(self) -> int:
        with self._condition:
            return len(self._in_flight)


__all__ = ["DeadLetter", "InMemoryJobQueue", "JobQueue"]
