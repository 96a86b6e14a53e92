"""
Tests for the transcript provider.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests
from youtube_transcript_api import TranscriptsDisabled

from learnhub.core.transcript_provider import TranscriptProvider, merge_segments
from learnhub.utils.caching import MemoryCache
from learnhub.utils.errors import ValidationError

VIDEO_ID = "dQw4w9WgXcQ"
SEGMENTS = [
    {"text": "Welcome to the course", "start": 0.0, "duration": 2.5},
    {"text": "Let's talk about layout", "start": 65.2, "duration": 3.0},
]


def json_response(body, status=200):
    response = MagicMock()
    response.json.return_value = body
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


@pytest.fixture
def transcript_api():
    api = MagicMock()
    api.fetch.return_value.to_raw_data.return_value = SEGMENTS
    return api


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def make_provider(transcript_api, session, api_key=""):
    return TranscriptProvider(
        cache=MemoryCache(),
        transcript_api=transcript_api,
        session=session,
        youtube_api_key=api_key,
        timeout=5,
    )


def test_merge_segments_adds_timestamps():
    assert merge_segments(SEGMENTS) == "[0:00] Welcome to the course [1:05] Let's talk about layout"
    assert merge_segments(SEGMENTS, include_timestamps=False) == "Welcome to the course Let's talk about layout"


def test_transcript_is_fetched_then_cached(transcript_api, session):
    provider = make_provider(transcript_api, session)

    first = asyncio.run(provider.get_transcript(VIDEO_ID))
    second = asyncio.run(provider.get_transcript(VIDEO_ID))

    assert first.available is True
    assert first.cached is False
    assert first.transcript.startswith("[0:00] Welcome")
    assert first.raw_segments == SEGMENTS
    assert second.cached is True
    assert second.transcript == first.transcript
    transcript_api.fetch.assert_called_once_with(VIDEO_ID)


@pytest.mark.parametrize("video_id", ["", "short", "has spaces!!", None])
def test_invalid_video_id_is_rejected(transcript_api, session, video_id):
    provider = make_provider(transcript_api, session)

    with pytest.raises(ValidationError):
        asyncio.run(provider.get_transcript(video_id))


def test_disabled_captions_fall_back_to_oembed(transcript_api, session):
    transcript_api.fetch.side_effect = TranscriptsDisabled(VIDEO_ID)
    session.get.return_value = json_response({"title": "Grid layouts", "author_name": "Design Channel"})
    provider = make_provider(transcript_api, session)

    result = asyncio.run(provider.get_transcript(VIDEO_ID))

    assert result.available is False
    assert result.transcript == ""
    assert result.metadata.title == "Grid layouts"
    assert result.metadata.channel_title == "Design Channel"
    assert result.metadata.url == f"https://www.youtube.com/watch?v={VIDEO_ID}"
    assert "Using video information instead" in result.error


def test_empty_captions_fall_back_to_metadata(transcript_api, session):
    transcript_api.fetch.return_value.to_raw_data.return_value = []
    session.get.return_value = json_response({"title": "Silent film"})
    provider = make_provider(transcript_api, session)

    result = asyncio.run(provider.get_transcript(VIDEO_ID))

    assert result.available is False
    assert result.metadata.title == "Silent film"


def test_metadata_from_data_api(transcript_api, session):
    session.get.return_value = json_response({
        "items": [{
            "snippet": {"title": "Typography", "description": "Fonts 101", "channelTitle": "Type Lab"},
            "contentDetails": {"duration": "PT1H30M45S"},
        }]
    })
    provider = make_provider(transcript_api, session, api_key="yt-key")

    metadata = provider.get_metadata(VIDEO_ID)

    assert metadata.title == "Typography"
    assert metadata.description == "Fonts 101"
    assert metadata.channel_title == "Type Lab"
    assert metadata.duration == "1h 30m 45s"
    assert session.get.call_args.kwargs["params"]["key"] == "yt-key"


def test_metadata_placeholder_when_lookups_fail(transcript_api, session):
    session.get.side_effect = requests.ConnectionError("offline")
    provider = make_provider(transcript_api, session, api_key="yt-key")

    metadata = provider.get_metadata(VIDEO_ID)

    assert metadata.title == "Unknown Title"
    assert metadata.url.endswith(VIDEO_ID)
    assert session.get.call_count == 2


def test_metadata_placeholder_on_http_error(transcript_api, session):
    session.get.return_value = json_response({}, status=404)
    provider = make_provider(transcript_api, session)

    assert provider.get_metadata(VIDEO_ID).title == "Unknown Title"
