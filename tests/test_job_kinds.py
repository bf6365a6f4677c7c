"""Tests for job kind registration and payload decoding."""

from __future__ import annotations

import json

import pytest

from domain.errors import InvalidPayloadError
from jobs.kinds import (
    JobKind,
    RatingJobPayload,
    decode_payload,
    encode_payload,
    kind_for_payload,
    payload_decoder,
    register_payload,
    registered_kinds,
)


def test_sentiment_analysis_is_registered() -> None:
    assert JobKind("sentiment_analysis") is JobKind.SENTIMENT_ANALYSIS
    assert registered_kinds() == [JobKind.SENTIMENT_ANALYSIS]
    assert kind_for_payload(RatingJobPayload(competition_id="1")) is JobKind.SENTIMENT_ANALYSIS


def test_decode_strips_competition_id_and_defaults_force() -> None:
    payload = decode_payload("sentiment_analysis", b'{"competition_id": " 401547439 "}')

    assert payload == RatingJobPayload(competition_id="401547439", force=False)


def test_decode_reads_force_flag() -> None:
    payload = decode_payload(JobKind.SENTIMENT_ANALYSIS, '{"competition_id": "1", "force": true}')

    assert payload.force is True


def test_decode_rejects_non_boolean_force() -> None:
    with pytest.raises(InvalidPayloadError, match="force must be a boolean"):
        decode_payload(JobKind.SENTIMENT_ANALYSIS, '{"competition_id": "1", "force": "yes"}')


def test_decode_ignores_unknown_fields() -> None:
    payload = decode_payload(JobKind.SENTIMENT_ANALYSIS, '{"competition_id": "1", "priority": 5}')

    assert payload == RatingJobPayload(competition_id="1")


@pytest.mark.parametrize("raw", ['{"competition_id": ""}', '{"competition_id": null}', "{}"])
def test_decode_requires_competition_id(raw: str) -> None:
    with pytest.raises(InvalidPayloadError, match="competition_id is required"):
        decode_payload(JobKind.SENTIMENT_ANALYSIS, raw)


def test_encode_produces_the_wire_format() -> None:
    encoded = encode_payload(RatingJobPayload(competition_id="401547439"))

    assert json.loads(encoded) == {"competition_id": "401547439", "force": False}


def test_unknown_kind_lookup_lists_available_kinds() -> None:
    with pytest.raises(KeyError, match="sentiment_analysis"):
        payload_decoder("video_highlights")


def test_unregistered_payload_type_cannot_be_encoded() -> None:
    with pytest.raises(KeyError, match="dict"):
        encode_payload({"competition_id": "1"})


def test_duplicate_registration_is_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate payload registration"):
        register_payload(JobKind.SENTIMENT_ANALYSIS, RatingJobPayload, lambda data: data)
