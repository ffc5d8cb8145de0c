"""
Периодическая проверка здоровья кэша: подключение, hit rate, задержка, ошибки.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from app.cache.cache_service import CacheService
from app.cache.client import RedisClientProvider
from app.config import get_settings
from app.schemas.cache import (
    CacheHealthReport,
    CacheHealthStatus,
    CachePerformance,
    CachePerformanceSummary,
    CacheStats,
    PerformanceRating,
    RedisHealth,
)

logger = logging.getLogger(__name__)

LARGE_KEY_COUNT = 10000


class CacheMonitor:
    """Монитор кэша. perform_health_check() никогда не пробрасывает исключения."""

    def __init__(
        self,
        cache_service: CacheService,
        client_provider: RedisClientProvider,
        min_hit_rate: Optional[float] = None,
        max_latency_ms: Optional[float] = None,
        max_error_rate: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.cache_service = cache_service
        self.client_provider = client_provider
        self.min_hit_rate = min_hit_rate if min_hit_rate is not None else settings.CACHE_MIN_HIT_RATE
        self.max_latency_ms = max_latency_ms if max_latency_ms is not None else settings.CACHE_MAX_LATENCY_MS
        self.max_error_rate = max_error_rate if max_error_rate is not None else settings.CACHE_MAX_ERROR_RATE
        self.last_report: Optional[CacheHealthReport] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_monitoring(self, interval: float) -> None:
        """Запуск периодической проверки в фоне."""
        if self.is_running:
            logger.info("Cache monitoring already running")
            return
        logger.info("Starting cache monitoring (interval: %ss)", interval)
        self._task = asyncio.create_task(self._run(interval))

    async def stop_monitoring(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache monitoring stopped")

    async def _run(self, interval: float) -> None:
        while True:
            await self.perform_health_check()
            await asyncio.sleep(interval)

    async def perform_health_check(self) -> CacheHealthReport:
        alerts: List[str] = []
        recommendations: List[str] = []
        timestamp = datetime.utcnow()

        try:
            redis_health = RedisHealth(**await self.client_provider.check_health())
            metrics = self.cache_service.get_metrics()
            error_rate = self._error_rate(metrics.errors, metrics.total_requests)
            memory = await self.cache_service.get_cache_stats()

            status: CacheHealthStatus = "healthy"
            if not redis_health.connected:
                status = "unavailable"
                alerts.append("Redis connection is not available")
                recommendations.append("Check Redis server status and connection configuration")
            else:
                # hit rate is meaningless before the first request
                if metrics.total_requests > 0 and metrics.hit_rate < self.min_hit_rate:
                    status = "degraded"
                    alerts.append(f"Cache hit rate is low: {metrics.hit_rate}%")
                    recommendations.append("Consider increasing cache TTL or reviewing cache strategy")
                if metrics.average_latency > self.max_latency_ms:
                    status = "degraded"
                    alerts.append(f"Cache latency is high: {metrics.average_latency}ms")
                    recommendations.append("Check Redis server performance and network connectivity")
                if error_rate > self.max_error_rate:
                    status = "unhealthy"
                    alerts.append(f"Cache error rate is high: {error_rate:.2f}%")
                    recommendations.append("Investigate cache errors and Redis server logs")
                if memory.key_count > LARGE_KEY_COUNT:
                    recommendations.append(
                        "Consider implementing cache cleanup policies for large key counts"
                    )

            report = CacheHealthReport(
                status=status,
                timestamp=timestamp,
                redis=redis_health,
                performance=CachePerformance(
                    hit_rate=metrics.hit_rate,
                    average_latency=metrics.average_latency,
                    error_rate=round(error_rate, 2),
                    total_requests=metrics.total_requests,
                ),
                memory=memory,
                alerts=alerts,
                recommendations=recommendations,
            )
        except Exception as e:
            logger.error("Cache health check failed: %s", e, exc_info=True)
            report = CacheHealthReport(
                status="unhealthy",
                timestamp=timestamp,
                redis=RedisHealth(connected=False, error=str(e)),
                performance=CachePerformance(
                    hit_rate=0, average_latency=0, error_rate=100, total_requests=0
                ),
                memory=CacheStats(key_count=0, error="Unable to retrieve memory stats"),
                alerts=["Cache monitoring failed"],
                recommendations=["Check cache monitoring service and Redis connectivity"],
            )

        self.last_report = report
        self._log_report(report)
        return report

    def get_performance_summary(self) -> CachePerformanceSummary:
        """Оценка эффективности кэша по hit rate и задержке."""
        metrics = self.cache_service.get_metrics()
        insights: List[str] = []
        overall: PerformanceRating

        if metrics.hit_rate >= 90:
            overall = "excellent"
            insights.append("Excellent cache hit rate - cache is very effective")
        elif metrics.hit_rate >= 70:
            overall = "good"
            insights.append("Good cache hit rate - cache is working well")
        elif metrics.hit_rate >= 50:
            overall = "fair"
            insights.append("Fair cache hit rate - consider optimizing cache strategy")
        else:
            overall = "poor"
            insights.append("Poor cache hit rate - cache strategy needs improvement")

        if metrics.average_latency < 10:
            insights.append("Excellent cache response time")
        elif metrics.average_latency < 50:
            insights.append("Good cache response time")
        elif metrics.average_latency < 100:
            insights.append("Acceptable cache response time")
            if overall == "excellent":
                overall = "good"
        else:
            insights.append("High cache latency - check Redis performance")
            overall = "poor"

        if metrics.total_requests > 1000:
            insights.append(f"High cache usage: {metrics.total_requests} requests processed")
        elif metrics.total_requests > 100:
            insights.append(f"Moderate cache usage: {metrics.total_requests} requests processed")
        else:
            insights.append(f"Low cache usage: {metrics.total_requests} requests processed")

        return CachePerformanceSummary(overall=overall, metrics=metrics, insights=insights)

    @staticmethod
    def _error_rate(errors: int, total_requests: int) -> float:
        if total_requests == 0:
            return 0.0
        return errors / total_requests * 100

    @staticmethod
    def _log_report(report: CacheHealthReport) -> None:
        log = logger.info if report.status == "healthy" else logger.warning
        log(
            "Cache health: %s, hit rate %s%%, avg latency %sms, %s keys, alerts: %s",
            report.status.upper(),
            report.performance.hit_rate,
            report.performance.average_latency,
            report.memory.key_count,
            "; ".join(report.alerts) or "none",
        )
