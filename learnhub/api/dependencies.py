"""
Process-wide service instances, injected into routes with ``Depends``.
"""

from functools import lru_cache

from fastapi import Depends, Request

from learnhub.config import config
from learnhub.core.learning_exchange import LearningPlanExchange
from learnhub.core.summarizer import VideoSummarizer
from learnhub.core.transcript_provider import TranscriptProvider
from learnhub.core.video_search import VideoSearch
from learnhub.db.store import PlanStore, build_plan_store
from learnhub.utils.caching import BaseCache, build_cache
from learnhub.utils.errors import RateLimitExceeded
from learnhub.utils.rate_limiter import RateLimiter, get_client_ip


@lru_cache
def get_cache() -> BaseCache:
    return build_cache(config.REDIS_URL)


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter()


@lru_cache
def get_plan_store() -> PlanStore:
    return build_plan_store(config.DATABASE_URL)


@lru_cache
def get_summarizer() -> VideoSummarizer:
    return VideoSummarizer(cache=get_cache())


@lru_cache
def get_transcript_provider() -> TranscriptProvider:
    return TranscriptProvider(cache=get_cache())


@lru_cache
def get_video_search() -> VideoSearch:
    return VideoSearch(cache=get_cache())


@lru_cache
def get_exchange() -> LearningPlanExchange:
    return LearningPlanExchange(store=get_plan_store())


def enforce_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    """Reject the request when its client exceeded the summarize window."""
    client_ip = get_client_ip(request.headers, request.client.host if request.client else None)
    limit = config.RATE_LIMIT_REQUESTS
    window = config.RATE_LIMIT_WINDOW_SEC
    if not limiter.allow(client_ip, limit, window):
        raise RateLimitExceeded(f"Rate limited. Max {limit} requests per {window}s")
