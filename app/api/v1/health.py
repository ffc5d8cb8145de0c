"""
Health check endpoints
"""
from fastapi import APIRouter, Depends

from app.api.dependencies import get_client_provider, get_query_monitor
from app.cache.client import RedisClientProvider
from app.monitoring.query_monitor import QueryPerformanceMonitor

router = APIRouter()


@router.get("/")
async def health_check(
    provider: RedisClientProvider = Depends(get_client_provider),
    monitor: QueryPerformanceMonitor = Depends(get_query_monitor),
):
    """Проверка здоровья приложения и его зависимостей"""
    database = await monitor.check_database_health()
    redis = await provider.check_health()
    # кэш необязателен: без Redis сервис работает в деградированном режиме
    if not database.connected:
        status = "unhealthy"
    elif not redis.get("connected"):
        status = "degraded"
    else:
        status = "healthy"
    return {
        "success": status != "unhealthy",
        "status": status,
        "database": database.model_dump(),
        "redis": redis,
    }
