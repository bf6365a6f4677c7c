"""Closed set of job kinds and their typed payloads."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable

from domain.errors import InvalidPayloadError


class JobKind(str, Enum):
    SENTIMENT_ANALYSIS = "sentiment_analysis"


@dataclass(frozen=True)
class RatingJobPayload:
    """Payload for ``sentiment_analysis`` jobs."""

    competition_id: str
    force: bool = False


@dataclass
class Job:
    """A unit of queued work. The payload stays raw until a consumer decodes it."""

    id: str
    kind: JobKind
    payload: bytes | str
    attempts: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC).replace(tzinfo=None))


PayloadDecoder = Callable[[dict[str, Any]], Any]

_DECODERS: dict[JobKind, PayloadDecoder] = {}
_PAYLOAD_TYPES: dict[type, JobKind] = {}


def register_payload(kind: JobKind, payload_type: type, decoder: PayloadDecoder) -> None:
    """Register the payload type and decoder for one job kind."""
    if kind in _DECODERS:
        raise ValueError(f"Duplicate payload registration for job kind={kind.value}")
    _DECODERS[kind] = decoder
    _PAYLOAD_TYPES[payload_type] = kind


def payload_decoder(kind: JobKind | str) -> PayloadDecoder:
    """Look up the decoder for a kind; unknown kinds fail here, not per job."""
    try:
        return _DECODERS[JobKind(kind)]
    except (KeyError, ValueError) as exc:
        available = ", ".join(sorted(item.value for item in _DECODERS))
        raise KeyError(f"No payload registered for job kind {kind!r}. Available: {available}") from exc


def registered_kinds() -> list[JobKind]:
    return sorted(_DECODERS, key=lambda kind: kind.value)


def kind_for_payload(payload: object) -> JobKind:
    try:
        return _PAYLOAD_TYPES[type(payload)]
    except KeyError as exc:
        raise KeyError(f"No job kind registered for payload type {type(payload).__name__}") from exc


def parse_payload_object(raw: bytes | str) -> dict[str, Any]:
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidPayloadError(f"Job payload is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise InvalidPayloadError(f"Job payload must be a JSON object, got {type(decoded).__name__}")
    return decoded


def decode_payload(kind: JobKind | str, raw: bytes | str) -> Any:
    return payload_decoder(kind)(parse_payload_object(raw))


def encode_payload(payload: object) -> str:
    kind_for_payload(payload)
    return json.dumps(asdict(payload), sort_keys=True)


def _decode_rating_payload(data: dict[str, Any]) -> RatingJobPayload:
    competition_id = data.get("competition_id")
    if not isinstance(competition_id, str):
        raise InvalidPayloadError("competition_id is required in job payload and must be a string")
    competition_id = competition_id.strip()
    if not competition_id:
        raise InvalidPayloadError("competition_id is required in job payload")

    force = data.get("force", False)
    if not isinstance(force, bool):
        raise InvalidPayloadError(f"force must be a boolean, got {force!r}")

    return RatingJobPayload(competition_id=competition_id, force=force)


register_payload(JobKind.SENTIMENT_ANALYSIS, RatingJobPayload, _decode_rating_payload)


__all__ = [
    "Job",
    "JobKind",
    "PayloadDecoder",
    "RatingJobPayload",
    "decode_payload",
    "encode_payload",
    "kind_for_payload",
    "parse_payload_object",
    "payload_decoder",
    "register_payload",
    "registered_kinds",
]
