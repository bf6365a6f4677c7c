"""Error taxonomy for the rating pipeline.

Every error carries a ``retryable`` flag. Permanent errors mean the job can never
succeed as submitted and must not be retried; retryable errors are surfaced to the
queue, which owns the retry and backoff policy.
"""

from __future__ import annotations


class RatingPipelineError(Exception):
    """Base class for pipeline failures."""

    retryable: bool = True

    @property
    def failure_class(self) -> str:
        return "retryable" if self.retryable else "permanent"


class PermanentJobError(RatingPipelineError):
    retryable = False


class RetryableJobError(RatingPipelineError):
    retryable = True


class InvalidPayloadError(PermanentJobError):
    """Job payload is malformed or missing a required field."""


class CompetitionNotFoundError(PermanentJobError):
    def __init__(self, competition_id: str) -> None:
        super().__init__(f"Competition not found: {competition_id}")
        self.competition_id = competition_id


class RepositoryError(RetryableJobError):
    """Storage was unavailable or rejected a read."""


class RatingGenerationError(RetryableJobError):
    """Generator failed, timed out or returned a malformed rating."""


class RatingPersistenceError(RetryableJobError):
    """Rating could not be written."""


def is_retryable(error: BaseException) -> bool:
    """Unknown exceptions are treated as transient."""
    if isinstance(error, RatingPipelineError):
        return error.retryable
    return True


__all__ = [
    "CompetitionNotFoundError",
    "InvalidPayloadError",
    "PermanentJobError",
    "RatingGenerationError",
    "RatingPersistenceError",
    "RatingPipelineError",
    "RepositoryError",
    "RetryableJobError",
    "is_retryable",
]
