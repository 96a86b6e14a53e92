"""
Module for summarizing video transcripts (or metadata) with Gemini.
"""

import json
import re
from typing import Any, Dict, Optional, Tuple, Union

from learnhub.config import config
from learnhub.core.llm_client import GeminiClient
from learnhub.core.prompts import PROMPT_TEMPLATES
from learnhub.models.schemas import (
    ContentType,
    SummaryResponse,
    SummaryResult,
    VideoMetadata,
)
from learnhub.utils.caching import BaseCache
from learnhub.utils.errors import ConfigurationError, ParseError, ValidationError
from learnhub.utils.helpers import extract_video_id, summary_cache_key
from learnhub.utils.logger import logging

FALLBACK_SUMMARY = "Unable to generate summary"
JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
SENTENCE_ENDINGS = ".!?"


def truncate_transcript(transcript: str, max_chars: int) -> Tuple[str, bool]:
    """
    Truncate a transcript to a safe length for the API.

    Cuts after the last sentence boundary when one lies past 90% of
    ``max_chars``, otherwise hard-cuts at ``max_chars``.

    Returns:
        (transcript, is_truncated)
    """
    if not transcript or len(transcript) <= max_chars:
        return transcript, False

    truncated = transcript[:max_chars]
    last_boundary = max(truncated.rfind(mark) for mark in SENTENCE_ENDINGS)

    if last_boundary > max_chars * 0.9:
        truncated = truncated[: last_boundary + 1]

    return truncated, True


def build_prompt(title: str, content: str, video_url: str, content_type: ContentType) -> Tuple[str, str]:
    """Build the (system, user) prompt pair for a content kind."""
    system_template, user_template = PROMPT_TEMPLATES[ContentType(content_type).value]
    return system_template, user_template.format(title=title, video_url=video_url, content=content)


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Extract a JSON object from model output.

    Tries the whole text first, then the outermost ``{...}`` block.
    """
    if not text:
        return None

    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    match = JSON_BLOCK.search(text)
    if not match:
        return None

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        logging.warning(f"Failed to parse JSON from response: {text[:200]}")
        return None

    return parsed if isinstance(parsed, dict) else None


def parse_summary(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse and normalize raw model output.

    Raises:
        ParseError: if no JSON object can be recovered
    """
    parsed = extract_json(text)
    if parsed is None:
        raise ParseError("Could not parse JSON from Gemini response")

    summary = parsed.get("summary")
    takeaways = parsed.get("takeaways")
    actions = parsed.get("actions")
    return {
        "summary": summary.strip() if isinstance(summary, str) and summary.strip() else FALLBACK_SUMMARY,
        "takeaways": [str(item) for item in takeaways] if isinstance(takeaways, list) else [],
        "actions": [str(item) for item in actions] if isinstance(actions, list) else [],
    }


def metadata_content(metadata: VideoMetadata) -> str:
    return f"Title: {metadata.title}\nDescription: {metadata.description}\nVideo URL: {metadata.url}"


class VideoSummarizer:
    """Turns a transcript or video metadata into a cached SummaryResult."""

    def __init__(
        self,
        cache: BaseCache,
        llm: Optional[GeminiClient] = None,
        api_key: Optional[str] = None,
        max_transcript_chars: Optional[int] = None,
        cache_ttl: Optional[int] = None,
        debug: Optional[bool] = None,
    ):
        """
        Initialize the summarizer.

        Args:
            cache: Store for finished summaries
            llm: Gemini client; built lazily from ``api_key`` when omitted
            api_key: Gemini API key (if None, taken from config)
            max_transcript_chars: Transcript truncation limit
            cache_ttl: Seconds a summary stays cached
            debug: Attach raw model output to responses
        """
        self.cache = cache
        self._llm = llm
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.max_transcript_chars = max_transcript_chars or config.MAX_TRANSCRIPT_CHARS
        self.cache_ttl = cache_ttl or config.SUMMARY_CACHE_TTL_SEC
        self.debug = config.DEBUG if debug is None else debug

    @property
    def llm(self) -> GeminiClient:
        if self._llm is None:
            if not self.api_key:
                raise ConfigurationError("GEMINI_API_KEY is not set in environment variables")
            self._llm = GeminiClient(api_key=self.api_key)
        return self._llm

    async def summarize(
        self,
        title: Any,
        video_url: Any,
        transcript: Any = None,
        metadata: Union[VideoMetadata, Dict[str, Any], None] = None,
        video_id: Optional[str] = None,
    ) -> SummaryResponse:
        """
        Summarize a video from its transcript, or from metadata when there
        are no captions.

        Returns:
            SummaryResponse with ``cached`` set when served from the cache
        """
        llm = self.llm

        if not title or not isinstance(title, str):
            raise ValidationError("Missing or invalid title")
        if not video_url or not isinstance(video_url, str):
            raise ValidationError("Missing or invalid videoUrl")

        has_transcript = isinstance(transcript, str) and len(transcript.strip()) > 0
        has_metadata = isinstance(metadata, (dict, VideoMetadata))
        if not has_transcript and not has_metadata:
            raise ValidationError("Either transcript or metadata must be provided for summarization")

        is_truncated = False
        if has_transcript:
            content, is_truncated = truncate_transcript(transcript, self.max_transcript_chars)
            content_type = ContentType.TRANSCRIPT
        else:
            if isinstance(metadata, dict):
                metadata = VideoMetadata.model_validate(metadata)
            content = metadata_content(metadata)
            content_type = ContentType.METADATA

        cache_key = summary_cache_key(
            video_id or extract_video_id(video_url), content_type.value, title, content
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            logging.info(f"Serving cached summary for {cache_key}")
            return SummaryResponse(**SummaryResult.model_validate(cached).model_dump(), cached=True)

        system_prompt, user_prompt = build_prompt(title, content, video_url, content_type)
        raw_text = await llm.generate(system_prompt, user_prompt)
        parsed = parse_summary(raw_text)

        result = SummaryResult(
            summary=parsed["summary"],
            takeaways=parsed["takeaways"],
            actions=parsed["actions"],
            is_truncated=is_truncated,
            content_type=content_type,
        )
        self.cache.set(cache_key, result.model_dump(mode="json"), self.cache_ttl)
        logging.info(
            f"Generated {content_type.value} summary for {cache_key} (truncated={is_truncated})"
        )

        return SummaryResponse(
            **result.model_dump(),
            cached=False,
            raw_model_output=raw_text if self.debug else None,
        )
