"""
Tests for filtered YouTube search.
"""

from unittest.mock import MagicMock

import pytest
import requests

from learnhub.core.video_search import VideoSearch, engagement_rate
from learnhub.models.schemas import SearchFilters
from learnhub.utils.caching import MemoryCache
from learnhub.utils.errors import (
    ConfigurationError,
    UpstreamQuotaExceeded,
    UpstreamUnavailable,
    ValidationError,
)

SEARCH_BODY = {
    "pageInfo": {"totalResults": 1200},
    "items": [
        {
            "id": {"videoId": "aaaaaaaaaaa"},
            "snippet": {
                "title": "Figma in 15 minutes",
                "channelTitle": "Design Lab",
                "channelId": "UC1",
                "publishedAt": "2024-01-01T00:00:00Z",
                "thumbnails": {"medium": {"url": "https://i.ytimg.com/a.jpg"}},
            },
        },
        {
            "id": {"videoId": "bbbbbbbbbbb"},
            "snippet": {"title": "Two hour deep dive", "thumbnails": {"default": {"url": "https://i.ytimg.com/b.jpg"}}},
        },
    ],
}
STATS_BODY = {
    "items": [
        {"id": "aaaaaaaaaaa", "statistics": {"viewCount": "50000", "likeCount": "2500"},
         "contentDetails": {"duration": "PT15M10S"}},
        {"id": "bbbbbbbbbbb", "statistics": {"viewCount": "800", "likeCount": "4"},
         "contentDetails": {"duration": "PT2H"}},
    ]
}


def api_response(body, status=200):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = [api_response(SEARCH_BODY), api_response(STATS_BODY)]
    return session


@pytest.fixture
def search(session):
    return VideoSearch(cache=MemoryCache(), api_key="yt-key", session=session, timeout=5)


def test_search_merges_statistics(search, session):
    response = search.search("figma tutorial", max_results=5)

    assert response.count == 2
    assert response.total_results == 1200
    first = response.results[0]
    assert first.video_id == "aaaaaaaaaaa"
    assert first.view_count == 50000
    assert first.duration_minutes == 15
    assert first.engagement_rate == 5.0
    assert first.thumbnail == "https://i.ytimg.com/a.jpg"
    assert response.results[1].thumbnail == "https://i.ytimg.com/b.jpg"
    search_params = session.get.call_args_list[0].kwargs["params"]
    assert search_params["maxResults"] == 15
    assert search_params["key"] == "yt-key"


def test_filters_drop_non_matching_videos(search):
    filters = SearchFilters(min_views=1000, duration_max=20, min_engagement_rate=1.0)

    response = search.search("figma tutorial", filters=filters)

    assert [video.video_id for video in response.results] == ["aaaaaaaaaaa"]


def test_results_are_cached_per_filter_combination(search, session):
    search.search("figma tutorial")
    cached = search.search("  figma tutorial ")

    assert cached.cached is True
    assert session.get.call_count == 2

    session.get.side_effect = [api_response(SEARCH_BODY), api_response(STATS_BODY)]
    fresh = search.search("figma tutorial", filters=SearchFilters(min_likes=10))
    assert fresh.cached is False
    assert session.get.call_count == 4


def test_no_items_returns_empty_response(search, session):
    session.get.side_effect = [api_response({"items": []})]

    response = search.search("nothing matches this")

    assert response.results == []
    assert response.count == 0


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_is_rejected(search, query):
    with pytest.raises(ValidationError):
        search.search(query)


def test_missing_api_key_is_configuration_error(session):
    with pytest.raises(ConfigurationError):
        VideoSearch(cache=MemoryCache(), api_key="", session=session).search("figma")


def test_quota_exhaustion(search, session):
    session.get.side_effect = [api_response({"error": {"message": "quota"}}, status=403)]

    with pytest.raises(UpstreamQuotaExceeded):
        search.search("figma")


def test_rejected_query_reports_api_message(search, session):
    session.get.side_effect = [api_response({"error": {"message": "Invalid filter"}}, status=400)]

    with pytest.raises(ValidationError, match="Invalid filter"):
        search.search("figma")


def test_network_failure_is_unavailable(search, session):
    session.get.side_effect = requests.ConnectionError("offline")

    with pytest.raises(UpstreamUnavailable):
        search.search("figma")


def test_engagement_rate_without_views():
    assert engagement_rate(10, 0) == 0.0
    assert engagement_rate(1, 3) == 33.33
