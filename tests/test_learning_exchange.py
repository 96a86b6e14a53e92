"""
Tests for the learning-plan exchange with n8n.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from learnhub.core.learning_exchange import LearningPlanExchange
from learnhub.db.store import MemoryPlanStore
from learnhub.utils.errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamUnavailable,
    ValidationError,
    WorkflowEngineError,
)

PRIMARY_URL = "https://n8n.test/webhook/primary"
EXTRA_URL = "https://n8n.test/webhook/extra"
PROFILE = {"email": "jane@x.com", "learningGoals": "Become a product designer", "currentLevel": "Beginner"}


def http_response(status=200, body=None):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    if body is None:
        response.json.side_effect = ValueError("no json")
        response.text = "Workflow was started"
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def exchange(clock, session):
    return LearningPlanExchange(
        store=MemoryPlanStore(clock=clock),
        webhook_url=PRIMARY_URL,
        extra_webhook_url="",
        session=session,
        timeout=5,
        ttl_seconds=1800,
        clock=clock,
    )


def test_callback_then_poll(exchange, callback_payload):
    ack = exchange.receive(callback_payload)

    assert ack["success"] is True
    assert ack["dataId"] == "jane@x.com"
    assert ack["modulesCount"] == 2

    record = exchange.get_plan("jane@x.com")
    assert record.email == "jane@x.com"
    assert record.learning_path[0].module_title == "Foundations of UX"
    assert record.expires_at is not None


def test_composite_request_id_is_stored_under_bare_email(exchange, callback_payload):
    ack = exchange.receive(callback_payload, {"requestId": "alice@y.org_1700000000123"})

    assert ack["dataId"] == "alice@y.org"
    assert exchange.get_plan("alice@y.org_1700000000999").learning_path


def test_callback_identified_only_by_composite_data_id(exchange):
    payload = {"dataId": "jane@x.com_123", "learningData": {"learning_path": [{"title": "M1", "resources": []}]}}

    ack = exchange.receive(payload)

    assert ack["dataId"] == "jane@x.com"
    record = exchange.get_plan("jane@x.com_123")
    assert record.email == "jane@x.com"
    assert record.learning_path[0].module_title == "M1"
    assert record.learning_path[0].resources == []


def test_second_callback_overwrites_first(exchange, callback_payload):
    exchange.receive(callback_payload)
    callback_payload["learningData"]["learning_path"] = [{"title": "Only module"}]

    ack = exchange.receive(callback_payload)

    assert ack["modulesCount"] == 1
    assert [m.module_title for m in exchange.get_plan("jane@x.com").learning_path] == ["Only module"]


def test_plan_expires_after_ttl(exchange, clock, callback_payload):
    exchange.receive(callback_payload)

    clock.advance(1800)
    assert exchange.get_plan("jane@x.com")

    clock.advance(1)
    with pytest.raises(NotFoundError):
        exchange.get_plan("jane@x.com")


def test_cleanup_expired_removes_stale_plans(exchange, clock, callback_payload):
    exchange.receive(callback_payload)
    clock.advance(1801)

    assert exchange.cleanup_expired() == 1


def test_unknown_plan_is_not_found(exchange):
    with pytest.raises(NotFoundError):
        exchange.get_plan("nobody@x.com")


def test_delete_is_idempotent(exchange, callback_payload):
    exchange.receive(callback_payload)

    assert exchange.delete_plan("jane@x.com") is True
    assert exchange.delete_plan("jane@x.com") is False
    with pytest.raises(NotFoundError):
        exchange.get_plan("jane@x.com")


@pytest.mark.parametrize("identifier", [None, "", "   "])
def test_missing_identifier_is_rejected(exchange, identifier):
    with pytest.raises(ValidationError):
        exchange.get_plan(identifier)


def test_callback_without_modules_is_rejected(exchange, callback_payload):
    callback_payload["learningData"]["learning_path"] = []

    with pytest.raises(ValidationError):
        exchange.receive(callback_payload)


def test_callback_with_bad_email_is_rejected(exchange, callback_payload):
    callback_payload["email"] = "jane at x"

    with pytest.raises(ValidationError):
        exchange.receive(callback_payload)


def test_callback_without_identifier_gets_synthetic_key(exchange, clock, callback_payload):
    del callback_payload["dataId"]
    del callback_payload["email"]

    ack = exchange.receive(callback_payload)

    assert ack["dataId"] == f"learning-{int(clock() * 1000)}"
    assert exchange.get_plan(ack["dataId"]).email is None


def test_submit_returns_engine_answer(exchange, session):
    session.post.return_value = http_response(body={"status": "queued"})

    assert asyncio.run(exchange.submit(PROFILE)) == {"status": "queued"}
    session.post.assert_called_once_with(PRIMARY_URL, json=PROFILE, timeout=5)


def test_submit_wraps_non_json_answer(exchange, session):
    session.post.return_value = http_response(body=None)

    assert asyncio.run(exchange.submit(PROFILE)) == {"message": "Workflow was started"}


@pytest.mark.parametrize(
    "profile",
    [{"learningGoals": "x"}, {"email": "jane@x.com"}, {"email": "nope", "learningGoals": "x"}, ["list"]],
)
def test_submit_validates_profile(exchange, session, profile):
    with pytest.raises(ValidationError):
        asyncio.run(exchange.submit(profile))

    session.post.assert_not_called()


def test_submit_without_webhook_is_configuration_error(clock, session):
    exchange = LearningPlanExchange(
        store=MemoryPlanStore(clock=clock), webhook_url="", extra_webhook_url="", session=session
    )

    with pytest.raises(ConfigurationError):
        asyncio.run(exchange.submit(PROFILE))


def test_engine_failure_status_is_propagated(exchange, session):
    session.post.return_value = http_response(status=502, body={})

    with pytest.raises(WorkflowEngineError) as exc_info:
        asyncio.run(exchange.submit(PROFILE))

    assert exc_info.value.status_code == 502


def test_engine_timeout_is_unavailable(exchange, session):
    session.post.side_effect = requests.Timeout("slow")

    with pytest.raises(UpstreamUnavailable):
        asyncio.run(exchange.submit(PROFILE))


def test_extra_webhook_failure_does_not_affect_caller(exchange, session):
    exchange.extra_webhook_url = EXTRA_URL

    def post(url, **kwargs):
        if url == EXTRA_URL:
            raise requests.ConnectionError("extra webhook down")
        return http_response(body={"status": "queued"})

    session.post.side_effect = post

    async def submit_and_drain():
        result = await exchange.submit(PROFILE)
        await exchange.wait_for_background()
        return result

    assert asyncio.run(submit_and_drain()) == {"status": "queued"}
    called_urls = sorted(call.args[0] for call in session.post.call_args_list)
    assert called_urls == [EXTRA_URL, PRIMARY_URL]
