"""
Celery periodic tasks (Beat): очистка журнала медленных запросов.
"""
import asyncio

from app.queue.celery_app import celery_app


async def _async_cleanup_performance_logs(retention_days: int) -> int:
    """Удаление записей query_performance_log старше retention_days."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from app.config import get_settings
    from app.database.connection import _engine_options
    from app.monitoring.query_monitor import QueryPerformanceMonitor

    settings = get_settings()
    # asyncio.run создаёт новый loop: пул соединений нельзя переиспользовать
    engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))
    try:
        monitor = QueryPerformanceMonitor(async_sessionmaker(engine, expire_on_commit=False))
        return await monitor.cleanup_performance_logs(retention_days)
    finally:
        await engine.dispose()


@celery_app.task(name="app.queue.periodic_tasks.cleanup_performance_logs")
def cleanup_performance_logs(retention_days: int | None = None) -> str:
    """
    Периодическая очистка журнала медленных запросов.
    retention_days: из settings.PERFORMANCE_LOG_RETENTION_DAYS если не передан.
    """
    try:
        from app.config import get_settings
        settings = get_settings()
        days = retention_days if retention_days is not None else settings.PERFORMANCE_LOG_RETENTION_DAYS
        deleted = asyncio.run(_async_cleanup_performance_logs(days))
        return f"Deleted {deleted} performance logs"
    except Exception as e:
        return f"Error: {e}"
