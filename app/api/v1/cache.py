"""
Cache API: здоровье, метрики, инвалидация.
"""
import logging
from datetime import datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_cache_monitor, get_cache_service, get_client_provider
from app.cache.cache_service import CacheService
from app.cache.client import RedisClientProvider
from app.cache.monitor import CacheMonitor
from app.config import get_settings
from app.schemas.cache import (
    ActionResponse,
    CacheActionRequest,
    CacheHealthReport,
    CacheMetricsSnapshot,
    CacheOverview,
    CachePerformanceSummary,
    CacheStats,
    RedisHealth,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Union[
        CacheOverview,
        CacheHealthReport,
        CacheMetricsSnapshot,
        CacheStats,
        CachePerformanceSummary,
    ],
)
async def get_cache_info(
    action: Optional[str] = Query(None),
    cache: CacheService = Depends(get_cache_service),
    monitor: CacheMonitor = Depends(get_cache_monitor),
    provider: RedisClientProvider = Depends(get_client_provider),
):
    """Сводка по кэшу или отдельный отчёт (action=health|metrics|stats|performance)."""
    if action == "health":
        return await monitor.perform_health_check()
    if action == "metrics":
        return cache.get_metrics()
    if action == "stats":
        return await cache.get_cache_stats()
    if action == "performance":
        return monitor.get_performance_summary()
    if action is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {action}")

    return CacheOverview(
        redis=RedisHealth(**await provider.check_health()),
        performance=cache.get_metrics(),
        cache=await cache.get_cache_stats(),
        timestamp=datetime.utcnow(),
    )


@router.post("", response_model=ActionResponse)
async def cache_action(
    body: CacheActionRequest,
    cache: CacheService = Depends(get_cache_service),
):
    """Управление кэшем: инвалидация, очистка, сброс метрик."""
    if body.action == "invalidate-transcript":
        if not body.video_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="video_id is required")
        await cache.invalidate_transcript(body.video_id)
        return ActionResponse(message=f"Cache invalidated for video {body.video_id}")

    if body.action == "invalidate-search":
        await cache.invalidate_search_results()
        return ActionResponse(message="Search results cache invalidated")

    if body.action == "clear-all":
        if get_settings().ENVIRONMENT != "development":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Clearing all cache is only allowed in development",
            )
        await cache.clear_all()
        logger.warning("All cache entries cleared via API")
        return ActionResponse(message="All cache entries cleared")

    if body.action == "reset-metrics":
        cache.reset_metrics()
        return ActionResponse(message="Cache metrics reset")

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {body.action}")


@router.delete("", response_model=ActionResponse)
async def invalidate_cache(
    video_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    cache: CacheService = Depends(get_cache_service),
):
    """Инвалидация по video_id или всех результатов поиска (type=search)."""
    if video_id:
        await cache.invalidate_transcript(video_id)
        return ActionResponse(message=f"Cache invalidated for video {video_id}")
    if type == "search":
        await cache.invalidate_search_results()
        return ActionResponse(message="Search results cache invalidated")
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Either video_id or type=search is required",
    )
