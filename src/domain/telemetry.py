"""Observer capability for pipeline events, and its logging implementation."""

from __future__ import annotations

import logging
import sys

from domain.common import Period
from domain.rating import Rating

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PipelineObserver:
    """No-op observer. Business logic reports events here instead of logging."""

    def job_received(self, job_id: str, kind: str) -> None:
        pass

    def job_acknowledged(self, job_id: str, kind: str, competition_id: str, status: str) -> None:
        pass

    def job_failed(
        self,
        job_id: str,
        kind: str,
        competition_id: str | None,
        error: BaseException,
        *,
        retryable: bool,
    ) -> None:
        pass

    def rating_skipped(self, competition_id: str, rating: Rating) -> None:
        pass

    def rating_saved(self, competition_id: str, rating: Rating) -> None:
        pass

    def period_fetch_failed(self, sport: str, period: Period, error: BaseException) -> None:
        pass

    def competition_sync_failed(self, competition_id: str, stage: str, error: BaseException) -> None:
        pass


class LoggingObserver(PipelineObserver):
    """Writes one key=value log line per pipeline event."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def job_received(self, job_id: str, kind: str) -> None:
        self.log.debug("job received job_id=%s kind=%s", job_id, kind)

    def job_acknowledged(self, job_id: str, kind: str, competition_id: str, status: str) -> None:
        self.log.info(
            "job acknowledged job_id=%s kind=%s competition_id=%s status=%s",
            job_id,
            kind,
            competition_id,
            status,
        )

    def job_failed(
        self,
        job_id: str,
        kind: str,
        competition_id: str | None,
        error: BaseException,
        *,
        retryable: bool,
    ) -> None:
        self.log.warning(
            "job failed job_id=%s kind=%s competition_id=%s failure_class=%s retryable=%s error_type=%s error=%s",
            job_id,
            kind,
            competition_id or "-",
            "retryable" if retryable else "permanent",
            retryable,
            type(error).__name__,
            error,
        )

    def rating_skipped(self, competition_id: str, rating: Rating) -> None:
        self.log.info(
            "rating exists, skipping competition_id=%s score=%d source=%s",
            competition_id,
            rating.score,
            rating.source,
        )

    def rating_saved(self, competition_id: str, rating: Rating) -> None:
        self.log.info(
            "rating saved competition_id=%s score=%d category=%s source=%s",
            competition_id,
            rating.score,
            rating.category.value,
            rating.source,
        )

    def period_fetch_failed(self, sport: str, period: Period, error: BaseException) -> None:
        self.log.warning(
            "skipping period sport=%s season=%d period=%d period_type=%s error=%s",
            sport,
            period.season,
            period.period,
            period.period_type.name.lower(),
            error,
        )

    def competition_sync_failed(self, competition_id: str, stage: str, error: BaseException) -> None:
        self.log.warning(
            "competition sync failed competition_id=%s stage=%s error=%s",
            competition_id,
            stage,
            error,
        )


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for the command-line entry points."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


__all__ = ["LOG_FORMAT", "LoggingObserver", "PipelineObserver", "setup_logging"]
