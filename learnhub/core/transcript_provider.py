"""
Transcript and metadata provider for YouTube videos.

Captions come from youtube-transcript-api; when a video has none, the
provider answers with fallback metadata instead of failing.
"""

import asyncio
from typing import Any, Dict, List, Optional

import requests
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from learnhub.config import config
from learnhub.models.schemas import TranscriptResult, VideoMetadata
from learnhub.utils.caching import BaseCache
from learnhub.utils.errors import ValidationError
from learnhub.utils.helpers import (
    convert_duration,
    format_timestamp,
    is_valid_video_id,
    transcript_cache_key,
)
from learnhub.utils.logger import logging

OEMBED_URL = "https://www.youtube.com/oembed"
DATA_API_URL = "https://www.googleapis.com/youtube/v3/videos"


def merge_segments(segments: List[Dict[str, Any]], include_timestamps: bool = True) -> str:
    """Merge transcript segments into a single string."""
    parts = []
    for segment in segments:
        text = segment.get("text", "")
        if include_timestamps and segment.get("start") is not None:
            parts.append(f"[{format_timestamp(segment['start'])}] {text}")
        else:
            parts.append(text)
    return " ".join(parts)


class TranscriptProvider:
    """Fetches captions or fallback metadata for a video ID."""

    def __init__(
        self,
        cache: BaseCache,
        transcript_api: Optional[YouTubeTranscriptApi] = None,
        session: Optional[requests.Session] = None,
        youtube_api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.cache = cache
        self.transcript_api = transcript_api or YouTubeTranscriptApi()
        self.session = session or requests.Session()
        self.youtube_api_key = youtube_api_key if youtube_api_key is not None else config.YOUTUBE_API_KEY
        self.timeout = timeout or config.TRANSCRIPT_TIMEOUT_SEC
        self.cache_ttl = cache_ttl or config.SUMMARY_CACHE_TTL_SEC

    async def get_transcript(self, video_id: str) -> TranscriptResult:
        """
        Get the transcript for a video.

        Args:
            video_id: 11 character YouTube video ID

        Returns:
            TranscriptResult; ``available`` is False when only metadata exists
        """
        if not video_id or not isinstance(video_id, str):
            raise ValidationError("Missing or invalid videoId parameter")
        if not is_valid_video_id(video_id):
            raise ValidationError("Invalid YouTube video ID format")

        cache_key = transcript_cache_key(video_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return TranscriptResult(
                video_id=video_id,
                available=True,
                transcript=cached["transcript"],
                raw_segments=cached["raw_segments"],
                cached=True,
            )

        try:
            segments = await asyncio.wait_for(
                asyncio.to_thread(self._fetch_segments, video_id), timeout=self.timeout
            )
        except CouldNotRetrieveTranscript as e:
            logging.info(f"No captions for {video_id}: {type(e).__name__}")
            return await self._metadata_fallback(video_id, "No captions available for this video")
        except asyncio.TimeoutError:
            logging.warning(f"Transcript fetch timed out for {video_id}")
            return await self._metadata_fallback(video_id, "Timed out fetching captions")
        except requests.RequestException as e:
            logging.warning(f"Transcript request failed for {video_id}: {e}")
            return await self._metadata_fallback(video_id, "Could not reach YouTube for captions")

        if not segments:
            return await self._metadata_fallback(video_id, "No captions available for this video")

        transcript = merge_segments(segments)
        self.cache.set(cache_key, {"transcript": transcript, "raw_segments": segments}, self.cache_ttl)

        return TranscriptResult(
            video_id=video_id,
            available=True,
            transcript=transcript,
            raw_segments=segments,
        )

    def _fetch_segments(self, video_id: str) -> List[Dict[str, Any]]:
        fetched = self.transcript_api.fetch(video_id)
        return fetched.to_raw_data()

    async def _metadata_fallback(self, video_id: str, reason: str) -> TranscriptResult:
        metadata = await asyncio.to_thread(self.get_metadata, video_id)
        return TranscriptResult(
            video_id=video_id,
            available=False,
            metadata=metadata,
            error=f"{reason}. Using video information instead.",
        )

    def get_metadata(self, video_id: str) -> VideoMetadata:
        """
        Get video metadata, from the Data API when a key is configured,
        otherwise from oEmbed. Never raises for lookup failures.
        """
        if not is_valid_video_id(video_id):
            raise ValidationError("Invalid YouTube video ID format")

        url = f"https://www.youtube.com/watch?v={video_id}"
        metadata = None
        if self.youtube_api_key:
            metadata = self._metadata_from_api(video_id, url)
        if metadata is None:
            metadata = self._metadata_from_oembed(url)
        if metadata is None:
            metadata = VideoMetadata(title="Unknown Title", description="", url=url)
        return metadata

    def _metadata_from_api(self, video_id: str, url: str) -> Optional[VideoMetadata]:
        try:
            response = self.session.get(
                DATA_API_URL,
                params={"id": video_id, "part": "snippet,contentDetails", "key": self.youtube_api_key},
                timeout=config.METADATA_TIMEOUT_SEC,
            )
            response.raise_for_status()
            items = response.json().get("items") or []
        except (requests.RequestException, ValueError) as e:
            logging.error(f"Failed to get metadata from API: {e}")
            return None

        if not items:
            return None

        snippet = items[0].get("snippet", {})
        return VideoMetadata(
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            url=url,
            channel_title=snippet.get("channelTitle"),
            duration=convert_duration(items[0].get("contentDetails", {}).get("duration")),
        )

    def _metadata_from_oembed(self, url: str) -> Optional[VideoMetadata]:
        try:
            response = self.session.get(
                OEMBED_URL,
                params={"url": url, "format": "json"},
                timeout=config.METADATA_TIMEOUT_SEC,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logging.error(f"Failed to get metadata from embed: {e}")
            return None

        author = data.get("author_name") or "Unknown Channel"
        return VideoMetadata(
            title=data.get("title") or "Unknown Title",
            description=f"A video by {author}.",
            url=url,
            channel_title=author,
        )
