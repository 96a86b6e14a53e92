"""
Tests for the client-side polling helpers.
"""

import asyncio
from unittest.mock import MagicMock

import requests

from learnhub.client.api_client import ApiClient
from learnhub.client.polling import poll_until_ready


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def sequence_fetch(results):
    remaining = list(results)

    async def fetch():
        return remaining.pop(0)

    return fetch


def test_returns_first_ready_result():
    sleep = RecordingSleep()

    result = asyncio.run(
        poll_until_ready(sequence_fetch([None, None, {"plan": 1}]), max_attempts=5, interval=2, sleep=sleep)
    )

    assert result == {"plan": 1}
    assert sleep.delays == [2, 2]


def test_gives_up_with_default_and_no_trailing_sleep():
    sleep = RecordingSleep()

    result = asyncio.run(
        poll_until_ready(sequence_fetch([None] * 3), max_attempts=3, interval=5, default="fallback", sleep=sleep)
    )

    assert result == "fallback"
    assert sleep.delays == [5, 5]


def response(status, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status}")
    return resp


def test_client_treats_404_as_not_ready():
    session = MagicMock(spec=requests.Session)
    session.get.return_value = response(404, {"error": "Learning data not found."})
    client = ApiClient(base_url="http://localhost:8000", session=session)

    assert client.get_learning_plan("jane@x.com") is None
    assert session.get.call_args.args[0] == "http://localhost:8000/api/learning-callback"
    assert session.get.call_args.kwargs["params"] == {"dataId": "jane@x.com"}


def test_client_waits_for_plan():
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = [response(404), response(200, {"email": "jane@x.com"})]
    client = ApiClient(base_url="http://localhost:8000", session=session)

    plan = asyncio.run(client.wait_for_learning_plan("jane@x.com", max_attempts=3, interval=0))

    assert plan == {"email": "jane@x.com"}
    assert session.get.call_count == 2


def test_summarize_video_uses_metadata_without_captions():
    session = MagicMock(spec=requests.Session)
    metadata = {"title": "Grid", "description": "", "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"}
    session.get.return_value = response(200, {"available": False, "metadata": metadata})
    session.post.return_value = response(200, {"summary": "S"})
    client = ApiClient(base_url="http://localhost:8000", session=session)

    assert client.summarize_video("dQw4w9WgXcQ", "Grid") == {"summary": "S"}
    sent = session.post.call_args.kwargs["json"]
    assert sent["metadata"] == metadata
    assert sent["videoId"] == "dQw4w9WgXcQ"
    assert "transcript" not in sent
