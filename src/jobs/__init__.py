"""Job kinds, queue contract and the rating job consumer."""

from jobs.consumer import ConsumerStats, JobResult, JobStatus, RatingJobConsumer
from jobs.kinds import Job, JobKind, RatingJobPayload, decode_payload, encode_payload
from jobs.queue import DeadLetter, InMemoryJobQueue, JobQueue

__all__ = [
    "ConsumerStats",
    "DeadLetter",
    "InMemoryJobQueue",
    "Job",
    "JobKind",
    "JobQueue",
    "JobResult",
    "JobStatus",
    "RatingJobConsumer",
    "RatingJobPayload",
    "decode_payload",
    "encode_payload",
]
