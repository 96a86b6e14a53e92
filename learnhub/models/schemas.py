"""
Data models for the LearnHub backend.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CacheEntry(BaseModel):
    """A cached value with its absolute expiry (epoch seconds)."""
    value: Any
    expires_at: float

    model_config = ConfigDict(frozen=True)


class ContentType(str, Enum):
    """What the summary was generated from."""
    TRANSCRIPT = "transcript"
    METADATA = "metadata"


class CamelModel(BaseModel):
    """Base for API-facing models exchanged in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoMetadata(CamelModel):
    """Fallback information about a video that has no captions."""
    title: str = ""
    description: str = ""
    url: str = ""
    channel_title: Optional[str] = None
    duration: Optional[str] = None


class SummaryResult(CamelModel):
    """Structured summary parsed from the model output."""
    summary: str
    takeaways: List[str] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)
    is_truncated: bool = False
    content_type: ContentType = ContentType.TRANSCRIPT

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TranscriptResult(CamelModel):
    """Captions for a video, or fallback metadata when there are none."""
    video_id: str
    available: bool
    transcript: str = ""
    raw_segments: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Optional[VideoMetadata] = None
    error: Optional[str] = None
    cached: bool = False


class ResourceType(str, Enum):
    """Kinds of learning resources in a module."""
    YOUTUBE = "YouTube"
    COURSE = "Course"
    PRACTICE = "Practice"
    ARTICLE = "Article"


class LearningResource(BaseModel):
    type: ResourceType = ResourceType.ARTICLE
    name: str
    link: str = "#"
    duration_estimate: str = ""
    rationale: str = ""


class LearningModule(BaseModel):
    module_number: int
    module_title: str
    duration: str
    objective: str = ""
    resources: List[LearningResource] = Field(default_factory=list)


class ActionPlan(BaseModel):
    quick_start: str
    daily_routine: str
    progress_tracking: str


class LearningPlanRecord(BaseModel):
    """A generated learning plan, stored until it expires."""
    email: Optional[str] = None
    profile_summary: Dict[str, Any] = Field(default_factory=dict)
    learning_path: List[LearningModule] = Field(default_factory=list)
    action_plan: ActionPlan
    pro_tips: List[str] = Field(default_factory=list)
    expected_timeline: Optional[Any] = None
    expires_at: Optional[datetime] = None


class SummaryResponse(SummaryResult):
    """Summary as returned to callers."""
    cached: bool = False
    raw_model_output: Optional[str] = None


class SearchFilters(CamelModel):
    """Optional lower/upper bounds applied to search results."""
    min_views: Optional[int] = None
    min_likes: Optional[int] = None
    duration_min: Optional[int] = None
    duration_max: Optional[int] = None
    min_engagement_rate: Optional[float] = None


class VideoSearchResult(CamelModel):
    video_id: str
    title: str = ""
    description: str = ""
    thumbnail: str = ""
    channel_title: str = ""
    channel_id: str = ""
    published_at: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    duration: Optional[str] = None
    duration_minutes: int = 0
    engagement_rate: float = 0.0


class SearchResponse(CamelModel):
    """Filtered search results, cached per query and filter combination."""
    results: List[VideoSearchResult] = Field(default_factory=list)
    query: str
    count: int = 0
    total_results: int = 0
    filters: SearchFilters = Field(default_factory=SearchFilters)
    cached: bool = False
