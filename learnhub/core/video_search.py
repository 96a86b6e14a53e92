"""
YouTube search through the Data API, with statistics-based filtering.
"""

from typing import Any, Dict, List, Optional

import requests

from learnhub.config import config
from learnhub.models.schemas import SearchFilters, SearchResponse, VideoSearchResult
from learnhub.utils.caching import BaseCache
from learnhub.utils.errors import (
    ConfigurationError,
    UpstreamError,
    UpstreamQuotaExceeded,
    UpstreamUnavailable,
    ValidationError,
)
from learnhub.utils.helpers import duration_seconds, search_cache_key
from learnhub.utils.logger import logging

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
MAX_API_RESULTS = 50


def engagement_rate(likes: int, views: int) -> float:
    """Likes as a percentage of views, rounded to two decimals."""
    if views <= 0:
        return 0.0
    return round(likes / views * 100, 2)


def passes_filters(video: VideoSearchResult, filters: SearchFilters) -> bool:
    if filters.min_views and video.view_count < filters.min_views:
        return False
    if filters.min_likes and video.like_count < filters.min_likes:
        return False
    if filters.duration_min and video.duration_minutes < filters.duration_min:
        return False
    if filters.duration_max and video.duration_minutes > filters.duration_max:
        return False
    if filters.min_engagement_rate and video.engagement_rate < filters.min_engagement_rate:
        return False
    return True


class VideoSearch:
    """Searches YouTube and keeps the videos that match the filters."""

    def __init__(
        self,
        cache: BaseCache,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.cache = cache
        self.api_key = api_key if api_key is not None else config.YOUTUBE_API_KEY
        self.session = session or requests.Session()
        self.timeout = timeout or config.SEARCH_TIMEOUT_SEC
        self.cache_ttl = cache_ttl or config.SUMMARY_CACHE_TTL_SEC

    def search(
        self,
        query: Any,
        max_results: int = config.SEARCH_MAX_RESULTS,
        filters: Optional[SearchFilters] = None,
    ) -> SearchResponse:
        """
        Search for videos.

        Asks the API for up to three times ``max_results`` candidates so that
        enough remain after filtering.

        Raises:
            ValidationError: empty query, or the API rejected it
            ConfigurationError: no YOUTUBE_API_KEY
            UpstreamQuotaExceeded: daily API quota used up
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query parameter is required and must be a non-empty string")
        if max_results < 1:
            raise ValidationError("maxResults must be a positive integer")
        if not self.api_key:
            raise ConfigurationError("YOUTUBE_API_KEY is not configured")

        query = query.strip()
        filters = filters or SearchFilters()
        cache_key = search_cache_key(query, filters.model_dump(exclude_none=True))
        cached = self.cache.get(cache_key)
        if cached is not None:
            logging.info(f"Cache hit for search: {query}")
            return SearchResponse.model_validate({**cached, "cached": True})

        logging.info(f"Searching YouTube for: {query}")
        search_data = self._get(SEARCH_URL, {
            "q": query,
            "part": "snippet",
            "type": "video",
            "maxResults": min(max_results * 3, MAX_API_RESULTS),
            "relevanceLanguage": "en",
            "safeSearch": "moderate",
            "order": "relevance",
        })
        items = [item for item in search_data.get("items") or [] if item.get("id", {}).get("videoId")]
        if not items:
            return SearchResponse(query=query, filters=filters)

        stats = self._statistics([item["id"]["videoId"] for item in items])
        videos = [self._to_result(item, stats.get(item["id"]["videoId"], {})) for item in items]
        results = [video for video in videos if passes_filters(video, filters)][:max_results]

        response = SearchResponse(
            results=results,
            query=query,
            count=len(results),
            total_results=(search_data.get("pageInfo") or {}).get("totalResults", 0),
            filters=filters,
        )
        if results:
            self.cache.set(cache_key, response.model_dump(mode="json"), self.cache_ttl)
        return response

    def _statistics(self, video_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        data = self._get(VIDEOS_URL, {"id": ",".join(video_ids), "part": "statistics,contentDetails"})
        return {item["id"]: item for item in data.get("items") or [] if "id" in item}

    @staticmethod
    def _to_result(item: Dict[str, Any], details: Dict[str, Any]) -> VideoSearchResult:
        snippet = item.get("snippet") or {}
        statistics = details.get("statistics") or {}
        thumbnails = snippet.get("thumbnails") or {}
        views = int(statistics.get("viewCount") or 0)
        likes = int(statistics.get("likeCount") or 0)
        duration = (details.get("contentDetails") or {}).get("duration")

        return VideoSearchResult(
            video_id=item["id"]["videoId"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            thumbnail=(thumbnails.get("medium") or thumbnails.get("default") or {}).get("url", ""),
            channel_title=snippet.get("channelTitle", ""),
            channel_id=snippet.get("channelId", ""),
            published_at=snippet.get("publishedAt"),
            view_count=views,
            like_count=likes,
            duration=duration,
            duration_minutes=round(duration_seconds(duration) / 60),
            engagement_rate=engagement_rate(likes, views),
        )

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"YouTube API unreachable: {e}") from e

        if response.status_code == 403:
            raise UpstreamQuotaExceeded("YouTube API quota exceeded")
        if response.status_code == 400:
            raise ValidationError(_api_message(response) or "The search query is invalid")
        if not response.ok:
            logging.error(f"YouTube search error: {response.status_code}")
            raise UpstreamError(f"YouTube API error ({response.status_code})")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("YouTube API returned invalid JSON") from e


def _api_message(response: requests.Response) -> Optional[str]:
    try:
        return response.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        return None
