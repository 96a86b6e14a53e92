"""
Helper utility functions for the LearnHub backend.
"""

import hashlib
import json
import re
from typing import Any, Dict, Optional

VIDEO_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
COMPOSITE_SUFFIX = re.compile(r"_\d+$")
ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the video ID from a YouTube URL.

    Handles youtube.com/watch?v=ID, youtu.be/ID and youtube.com/embed/ID.
    """
    if not url:
        return None

    patterns = [
        r"youtu\.be\/([0-9A-Za-z_-]{11})",
        r"(?:watch\?v=)([0-9A-Za-z_-]{11})",
        r"(?:embed\/)([0-9A-Za-z_-]{11})",
        r"(?:v=|\/)([0-9A-Za-z_-]{11}).*",
    ]

    for pattern in patterns:
        match = re.search(pattern, url)
        if match:
            return match.group(1)

    return None


def is_valid_video_id(video_id: Any) -> bool:
    return isinstance(video_id, str) and bool(VIDEO_ID_PATTERN.match(video_id))


def is_plausible_email(value: Any) -> bool:
    """Loose syntactic email check: something@domain.tld, no spaces."""
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value.strip()))


def normalize_identifier(identifier: str) -> str:
    """
    Reduce a composite ``email_<digits>`` identifier to the bare email.

    The submission side appends a millisecond timestamp to keep requests
    unique; records are always stored under the bare email. Identifiers that
    are not email composites are returned stripped but otherwise untouched.
    """
    identifier = identifier.strip()
    if COMPOSITE_SUFFIX.search(identifier):
        bare = COMPOSITE_SUFFIX.sub("", identifier)
        if is_plausible_email(bare):
            return bare
    return identifier


def transcript_cache_key(video_id: str) -> str:
    """Cache key for transcript data of one video."""
    return f"transcript_{video_id}"


def summary_cache_key(video_id: Optional[str], content_type: str, title: str, content: str) -> str:
    """
    Cache key for a summary: by video ID when known, else a content fingerprint.
    """
    if video_id:
        return f"{transcript_cache_key(video_id)}_summary"

    digest = hashlib.sha256()
    for part in (content_type, title, content):
        digest.update(part.encode("utf-8"))
        digest.update(b"\x00")
    return f"summary_{digest.hexdigest()[:32]}"


def format_timestamp(seconds: float) -> str:
    """Render an offset in seconds as m:ss."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def convert_duration(duration: Optional[str]) -> str:
    """
    Convert an ISO 8601 duration to a readable format.

    Example: PT1H30M45S -> 1h 30m 45s
    """
    if not duration:
        return "N/A"

    match = ISO_DURATION.fullmatch(duration)
    if not match:
        return duration

    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def duration_seconds(duration: Optional[str]) -> int:
    """Total seconds of an ISO 8601 duration; 0 when missing or malformed."""
    match = ISO_DURATION.fullmatch(duration or "")
    if not match:
        return 0
    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def search_cache_key(query: str, filters: Dict[str, Any]) -> str:
    """Cache key for a search; each filter combination is cached separately."""
    fingerprint = json.dumps({"query": query, "filters": filters}, sort_keys=True)
    return f"youtube-search_{hashlib.sha256(fingerprint.encode('utf-8')).hexdigest()[:32]}"
