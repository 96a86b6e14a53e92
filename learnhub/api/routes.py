"""
API routes for the LearnHub backend.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from learnhub.api.dependencies import (
    enforce_rate_limit,
    get_cache,
    get_exchange,
    get_plan_store,
    get_summarizer,
    get_transcript_provider,
    get_video_search,
)
from learnhub.api.schemas import (
    CallbackResponse,
    DeleteResponse,
    HealthResponse,
    SearchRequest,
    SummarizeRequest,
)
from learnhub.config import config
from learnhub.core.learning_exchange import LearningPlanExchange
from learnhub.core.summarizer import VideoSummarizer
from learnhub.core.transcript_provider import TranscriptProvider
from learnhub.core.video_search import VideoSearch
from learnhub.db.store import PlanStore
from learnhub.models.schemas import (
    LearningPlanRecord,
    SearchResponse,
    SummaryResponse,
    TranscriptResult,
    VideoMetadata,
)
from learnhub.utils.caching import BaseCache

router = APIRouter(prefix="/api", tags=["learnhub"])


@router.post("/learning")
async def submit_learning_profile(
    payload: Any = Body(None),
    exchange: LearningPlanExchange = Depends(get_exchange),
):
    """
    Send a learner profile to n8n for plan generation.

    Returns whatever n8n answers; the generated plan itself arrives later
    through the callback.
    """
    return await exchange.submit(payload)


@router.post("/learning-callback", response_model=CallbackResponse)
def receive_learning_plan(
    payload: Any = Body(None),
    request_id: Optional[str] = Query(None, alias="requestId"),
    data_id: Optional[str] = Query(None, alias="dataId"),
    exchange: LearningPlanExchange = Depends(get_exchange),
):
    """Webhook n8n POSTs the generated learning plan to."""
    return exchange.receive(payload, {"requestId": request_id, "dataId": data_id})


@router.get("/learning-callback", response_model=LearningPlanRecord)
def get_learning_plan(
    data_id: Optional[str] = Query(None, alias="dataId"),
    exchange: LearningPlanExchange = Depends(get_exchange),
):
    """Poll for a learning plan; 404 until n8n has delivered it."""
    return exchange.get_plan(data_id)


@router.delete("/learning-callback", response_model=DeleteResponse)
def delete_learning_plan(
    data_id: Optional[str] = Query(None, alias="dataId"),
    exchange: LearningPlanExchange = Depends(get_exchange),
):
    """Clear stored learning data."""
    exchange.delete_plan(data_id)
    return DeleteResponse(success=True, message="Learning data cleared")


@router.post(
    "/summarize",
    response_model=SummaryResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_rate_limit)],
)
async def summarize_video(
    request: SummarizeRequest,
    summarizer: VideoSummarizer = Depends(get_summarizer),
):
    """
    Summarize a video from its transcript, or from its metadata when the
    video has no captions.

    - Repeat requests for the same video are served from the cache
    - Rate limited per client
    """
    return await summarizer.summarize(
        title=request.title,
        video_url=request.video_url,
        transcript=request.transcript,
        metadata=request.metadata,
        video_id=request.video_id,
    )


@router.get("/transcript", response_model=TranscriptResult)
async def get_transcript(
    video_id: Optional[str] = Query(None, alias="videoId"),
    provider: TranscriptProvider = Depends(get_transcript_provider),
):
    """Get captions for a video, or fallback metadata when it has none."""
    return await provider.get_transcript(video_id)


@router.get("/youtube/metadata", response_model=VideoMetadata)
def get_video_metadata(
    video_id: Optional[str] = Query(None, alias="videoId"),
    provider: TranscriptProvider = Depends(get_transcript_provider),
):
    """Get title, channel and duration for a video."""
    return provider.get_metadata(video_id)


@router.post("/youtube/search", response_model=SearchResponse)
def search_videos(
    request: SearchRequest,
    search: VideoSearch = Depends(get_video_search),
):
    """
    Search YouTube and keep the videos that pass the statistics filters.
    Each query and filter combination is cached separately.
    """
    return search.search(request.query, max_results=request.max_results, filters=request.filters)


@router.get("/health", response_model=HealthResponse)
def health(
    cache: BaseCache = Depends(get_cache),
    store: PlanStore = Depends(get_plan_store),
):
    """Diagnostic endpoint: API status, cache and webhook usage."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        cache_backend=cache.backend,
        cache_size=cache.size(),
        store_backend=store.backend,
        settings=config.summary(),
        instructions={
            "webhook_url": f"{config.PUBLIC_URL}/api/learning-callback",
            "method": "POST",
            "expected_body": {
                "dataId": "user@example.com_1700000000000",
                "email": "user@example.com",
                "learningData": {
                    "profile_summary": {},
                    "learning_path": [],
                    "action_plan": {},
                    "pro_tips": [],
                },
            },
            "query_params": {"dataId": "user@example.com"},
        },
        troubleshooting={
            "404_on_get": "Data not received from n8n yet. Check if the n8n webhook has been triggered.",
            "400_on_post": "The callback body has no learningData or no learning_path modules.",
            "no_data": "n8n may not have POSTed to the callback URL. Verify the n8n HTTP request node.",
        },
    )
