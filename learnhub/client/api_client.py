"""
API client for communicating with the LearnHub backend.
"""

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from learnhub.client.polling import poll_until_ready
from learnhub.config import config


class ApiClient:
    """Client for interacting with the LearnHub API."""

    def __init__(self, base_url: str = config.PUBLIC_URL, session: Optional[requests.Session] = None,
                 timeout: float = 30.0):
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the API
            session: HTTP session to reuse
            timeout: Seconds to wait for each request
        """
        self.base_url = base_url
        self.api_base = urljoin(base_url, "/api/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        """Get the full URL for an endpoint."""
        return urljoin(self.api_base, endpoint)

    def submit_profile(self, profile: Dict[str, Any]) -> Any:
        """
        Submit a learner profile for learning-plan generation.

        Args:
            profile: Onboarding answers; must include email and learningGoals

        Returns:
            The workflow engine's immediate answer
        """
        response = self.session.post(self._url("learning"), json=profile, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_learning_plan(self, data_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a generated learning plan.

        Returns:
            The plan, or None while it has not arrived
        """
        response = self.session.get(
            self._url("learning-callback"), params={"dataId": data_id}, timeout=self.timeout
        )

        if response.status_code == 404:
            return None

        response.raise_for_status()
        return response.json()

    async def wait_for_learning_plan(
        self,
        data_id: str,
        max_attempts: int = 60,
        interval: float = 5.0,
        default: Any = None,
    ) -> Any:
        """
        Poll until the learning plan is available.

        Args:
            data_id: Email or composite request identifier
            max_attempts: Maximum number of polls
            interval: Seconds between polls
            default: Returned when the plan never arrives

        Returns:
            The plan dictionary, or ``default`` on timeout
        """
        async def fetch():
            return await asyncio.to_thread(self.get_learning_plan, data_id)

        return await poll_until_ready(fetch, max_attempts=max_attempts, interval=interval, default=default)

    def delete_learning_plan(self, data_id: str) -> Dict[str, Any]:
        response = self.session.delete(
            self._url("learning-callback"), params={"dataId": data_id}, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def get_transcript(self, video_id: str) -> Dict[str, Any]:
        """Get captions, or fallback metadata, for a video."""
        response = self.session.get(self._url("transcript"), params={"videoId": video_id}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def summarize(
        self,
        title: str,
        video_url: str,
        transcript: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        video_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Request a video summary.

        Returns:
            Summary, takeaways, actions and whether it came from the cache
        """
        payload: Dict[str, Any] = {"title": title, "videoUrl": video_url}
        if transcript:
            payload["transcript"] = transcript
        if metadata:
            payload["metadata"] = metadata
        if video_id:
            payload["videoId"] = video_id

        response = self.session.post(self._url("summarize"), json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def summarize_video(self, video_id: str, title: str) -> Dict[str, Any]:
        """Fetch the transcript (or metadata) for a video and summarize it."""
        video_url = f"https://www.youtube.com/watch?v={video_id}"
        transcript_data = self.get_transcript(video_id)
        if transcript_data.get("available"):
            return self.summarize(title, video_url, transcript=transcript_data["transcript"], video_id=video_id)
        return self.summarize(title, video_url, metadata=transcript_data.get("metadata"), video_id=video_id)

    def search_videos(self, query: str, max_results: int = 10,
                      filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Search YouTube through the backend, with optional statistics filters."""
        payload = {"query": query, "maxResults": max_results, "filters": filters or {}}
        response = self.session.post(self._url("youtube/search"), json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
