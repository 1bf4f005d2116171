"""Behavioural coverage for the activity event ingress endpoint."""

from __future__ import annotations

import json
import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from tests.helpers.publishers import RecordingPublisher
from tidings.api.app import AppDependencies, create_app
from tidings.api.errors import PUBLISH_FAILURE_MESSAGE
from tidings.api.events import ACCEPTED_MESSAGE

if typ.TYPE_CHECKING:
    from falcon.testing.client import Result


class IngressContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    publisher: RecordingPublisher
    client: falcon.testing.TestClient
    response: Result


@scenario("../activity_ingress.feature", "A valid click event is accepted")
def test_valid_click_event_accepted() -> None:
    """Wrap the pytest-bdd scenario for a valid event."""


@scenario("../activity_ingress.feature", "An event without a userId is rejected")
def test_missing_user_id_rejected() -> None:
    """Wrap the pytest-bdd scenario for a missing userId."""


@scenario("../activity_ingress.feature", "An event with an array payload is rejected")
def test_array_payload_rejected() -> None:
    """Wrap the pytest-bdd scenario for an array payload."""


@scenario("../activity_ingress.feature", "A body that is not JSON is rejected")
def test_malformed_json_rejected() -> None:
    """Wrap the pytest-bdd scenario for malformed JSON."""


@scenario(
    "../activity_ingress.feature",
    "A failing channel yields a generic server error",
)
def test_failing_channel_returns_500() -> None:
    """Wrap the pytest-bdd scenario for publish failures."""


@pytest.fixture
def ingress_context() -> IngressContext:
    """Provide empty scenario state."""
    return {}


def _install_client(context: IngressContext, publisher: RecordingPublisher) -> None:
    context["publisher"] = publisher
    context["client"] = falcon.testing.TestClient(
        create_app(AppDependencies(publisher=publisher))
    )


@given("an ingress app with a working publisher")
def given_working_publisher(ingress_context: IngressContext) -> None:
    """Build the app around a recording publisher."""
    _install_client(ingress_context, RecordingPublisher())


@given("the publisher fails on every call")
def given_failing_publisher(ingress_context: IngressContext) -> None:
    """Swap in a publisher whose every call raises."""
    _install_client(
        ingress_context,
        RecordingPublisher(error=RuntimeError("Pub/Sub is down")),
    )


@when(
    parsers.parse(
        'I post an activity event for user "{user_id}" of type "{event_type}" '
        'on page "{page}"'
    )
)
def when_post_event(
    ingress_context: IngressContext, user_id: str, event_type: str, page: str
) -> None:
    """Submit a well-formed activity event."""
    body = {"userId": user_id, "eventType": event_type, "payload": {"page": page}}
    ingress_context["response"] = ingress_context["client"].simulate_post(
        "/events/activity", json=body
    )


@when(parsers.parse("I post the raw body '{body}'"))
def when_post_raw_body(ingress_context: IngressContext, body: str) -> None:
    """Submit *body* verbatim as JSON content."""
    ingress_context["response"] = ingress_context["client"].simulate_post(
        "/events/activity",
        body=body,
        headers={"Content-Type": "application/json"},
    )


@then(parsers.parse("the response status is {status:d}"))
def then_response_status(ingress_context: IngressContext, status: int) -> None:
    """Assert the HTTP response status code."""
    response = ingress_context["response"]
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}"
    )


@then("the response body reports the event as accepted")
def then_body_accepted(ingress_context: IngressContext) -> None:
    """Assert the 202 body shape."""
    body = ingress_context["response"].json
    assert body["status"] == "accepted", "expected accepted status"
    assert body["message"] == ACCEPTED_MESSAGE, "expected acceptance message"
    assert body["deliveryId"], "expected a delivery id"


@then(parsers.parse('the publisher received {count:d} event for user "{user_id}"'))
def then_publisher_received(
    ingress_context: IngressContext, count: int, user_id: str
) -> None:
    """Assert how many events were published and for whom."""
    calls = ingress_context["publisher"].calls
    assert len(calls) == count, f"expected {count} publish calls, got {len(calls)}"
    assert all(json.loads(call.data)["userId"] == user_id for call in calls), (
        f"expected every event to belong to {user_id}"
    )


@then("the publisher received no events")
def then_publisher_idle(ingress_context: IngressContext) -> None:
    """Assert the channel was never touched."""
    assert ingress_context["publisher"].calls == [], "expected no publish calls"


@then(parsers.parse('the error names the field "{field}"'))
def then_error_names_field(ingress_context: IngressContext, field: str) -> None:
    """Assert the 400 body identifies the offending field."""
    body = ingress_context["response"].json
    assert body["field"] == field, f"expected field {field!r}, got {body!r}"


@then("the response body is the publish failure message")
def then_body_publish_failure(ingress_context: IngressContext) -> None:
    """Assert the fixed 500 body."""
    assert ingress_context["response"].json == {"error": PUBLISH_FAILURE_MESSAGE}, (
        "expected fixed publish failure body"
    )
