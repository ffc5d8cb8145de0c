"""
DB monitor API: здоровье БД, статистика запросов, анализ медленных запросов.
"""
from datetime import datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_query_monitor
from app.monitoring.query_monitor import QueryPerformanceMonitor
from app.schemas.monitoring import (
    CleanupResponse,
    DatabaseHealth,
    DatabaseOverview,
    DatabaseStats,
    DbMonitorActionRequest,
    SlowQueryAnalysis,
)

router = APIRouter()

OVERVIEW_SLOW_QUERY_LIMIT = 10


@router.get(
    "",
    response_model=Union[DatabaseOverview, DatabaseHealth, DatabaseStats, SlowQueryAnalysis],
)
async def get_db_monitor_info(
    action: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    monitor: QueryPerformanceMonitor = Depends(get_query_monitor),
):
    """Сводка или отдельный отчёт (action=health|stats|slow-queries)."""
    if action == "health":
        return await monitor.check_database_health()
    if action == "stats":
        return monitor.get_database_stats()
    if action == "slow-queries":
        return await monitor.get_slow_query_analysis(limit)
    if action is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {action}")

    return DatabaseOverview(
        health=await monitor.check_database_health(),
        performance=monitor.get_database_stats(),
        slow_queries=await monitor.get_slow_query_analysis(OVERVIEW_SLOW_QUERY_LIMIT),
        timestamp=datetime.utcnow(),
    )


@router.post("", response_model=CleanupResponse)
async def db_monitor_action(
    body: DbMonitorActionRequest,
    monitor: QueryPerformanceMonitor = Depends(get_query_monitor),
):
    """Очистка журнала медленных запросов или сброс агрегатов."""
    if body.action == "cleanup-logs":
        cleaned = await monitor.cleanup_performance_logs(body.days_to_keep)
        return CleanupResponse(
            message=f"Cleaned up {cleaned} old performance logs",
            cleaned_count=cleaned,
        )
    if body.action == "reset-metrics":
        monitor.reset_metrics()
        return CleanupResponse(message="Query metrics reset", cleaned_count=0)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {body.action}")
