from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from learnhub.models.schemas import CamelModel, SearchFilters, VideoMetadata


class SummarizeRequest(CamelModel):
    """Model for requesting a video summary."""
    title: Optional[str] = None
    video_url: Optional[str] = None
    transcript: Optional[str] = None
    metadata: Optional[VideoMetadata] = None
    video_id: Optional[str] = None


class CallbackResponse(BaseModel):
    """Acknowledgement returned to n8n."""
    success: bool
    message: str
    dataId: str
    modulesCount: int
    timestamp: str


class DeleteResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    """Model for the diagnostic endpoint."""
    status: str
    timestamp: str
    cache_backend: str
    cache_size: int
    store_backend: str
    settings: Dict[str, Any]
    instructions: Dict[str, Any]
    troubleshooting: Dict[str, str]


class SearchRequest(CamelModel):
    """Model for a filtered YouTube search."""
    query: Optional[str] = None
    max_results: int = 10
    filters: SearchFilters = Field(default_factory=SearchFilters)
