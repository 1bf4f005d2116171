"""Unit tests for the activity event wire codec."""

from __future__ import annotations

import base64
import json

import pytest

from tidings.events import (
    ActivityEvent,
    EventDecodeError,
    decode_delivery,
    decode_event,
    encode_event,
    from_transport,
    to_transport,
)


def _transport(document: object) -> str:
    return base64.b64encode(json.dumps(document).encode()).decode("ascii")


def test_encode_event_uses_camel_case_keys(activity_event: ActivityEvent) -> None:
    """Encoded events carry userId and eventType on the wire."""
    document = json.loads(encode_event(activity_event))

    assert document == {
        "userId": "user_123",
        "eventType": "click",
        "payload": {"page": "home"},
    }, "expected camelCase JSON document"


def test_decode_delivery_reads_publisher_output(
    activity_event: ActivityEvent, encoded_event: str
) -> None:
    """Whatever the publisher sends, the consumer decodes to the same event."""
    assert decode_delivery(encoded_event) == activity_event, (
        "expected decoded event to equal the published one"
    )


def test_decode_delivery_accepts_bytes(encoded_event: str) -> None:
    """Brokers handing over bytes are supported."""
    event = decode_delivery(encoded_event.encode("ascii"))
    assert event.user_id == "user_123", "expected userId from bytes payload"


def test_decode_ignores_unknown_keys() -> None:
    """Additional top-level keys do not break decoding."""
    event = decode_delivery(
        _transport(
            {
                "userId": "u-9",
                "eventType": "view",
                "payload": {"nested": {"depth": [1, 2]}},
                "source": "mobile",
            }
        )
    )

    assert event.payload == {"nested": {"depth": [1, 2]}}, (
        "expected nested payload to survive decoding"
    )


def test_transport_round_trip_is_lossless() -> None:
    """Arbitrary bytes survive base64 wrapping."""
    raw = b'{"weird": "\\u00e9\\n"}'
    assert from_transport(to_transport(raw)) == raw, "expected identical bytes"


def test_invalid_base64_is_rejected() -> None:
    """Text that is not base64 raises EventDecodeError."""
    with pytest.raises(EventDecodeError, match="base64") as excinfo:
        decode_delivery("not base64 at all!")

    assert isinstance(excinfo.value, ValueError), "expected ValueError subclass"


def test_non_json_payload_is_rejected() -> None:
    """Valid base64 wrapping non-JSON text raises EventDecodeError."""
    data = base64.b64encode(b"this-is-not-json").decode("ascii")

    with pytest.raises(EventDecodeError, match="not valid JSON"):
        decode_delivery(data)


@pytest.mark.parametrize(
    "document",
    [
        {"eventType": "click", "payload": {}},
        {"userId": "", "eventType": "click", "payload": {}},
        {"userId": 42, "eventType": "click", "payload": {}},
        {"userId": "u", "eventType": "click"},
        {"userId": "u", "eventType": "click", "payload": "text"},
        {"userId": "u", "eventType": "click", "payload": [1, 2]},
        ["userId", "eventType", "payload"],
    ],
)
def test_wrong_shape_is_rejected(document: object) -> None:
    """JSON without the activity event shape raises EventDecodeError."""
    with pytest.raises(EventDecodeError) as excinfo:
        decode_delivery(_transport(document))

    assert excinfo.value.reason, "expected a non-empty rejection reason"


def test_decode_event_reports_the_offending_field() -> None:
    """Validation errors mention the camelCase field name."""
    with pytest.raises(EventDecodeError, match="userId"):
        decode_event(b'{"eventType": "click", "payload": {}}')
