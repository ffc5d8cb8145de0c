"""
Инструментирование запросов к БД: замер времени, агрегаты по типам,
сохранение медленных запросов и рекомендации по оптимизации.
"""
import asyncio
import hashlib
import inspect
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, TypeVar, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.database.repositories.query_performance_repository import QueryPerformanceRepository
from app.exceptions import QueryTimeoutError
from app.monitoring.metrics import track_query
from app.schemas.monitoring import (
    DatabaseHealth,
    DatabaseStats,
    QueryTypeStats,
    SlowQueryAnalysis,
    SlowQueryGroup,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SENSITIVE_KEYS = ("email", "password", "token", "secret")
MAX_PARAM_LENGTH = 100
ANALYSIS_FAILED = "Unable to analyze slow queries. Check database connection."
ALL_GOOD = "Database performance looks good!"
MANY_SLOW_GROUPS = 20


@dataclass
class _TypeStats:
    count: int = 0
    total_duration: float = 0.0
    slow_count: int = 0
    error_count: int = 0


class QueryPerformanceMonitor:
    """
    Обёртка над запросами к БД.

    Ошибки самого запроса пробрасываются без изменений; ошибки
    инструментирования (запись медленного запроса, анализ) только логируются.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        slow_query_threshold_ms: Optional[float] = None,
        warning_threshold_ms: Optional[float] = None,
        fast_threshold_ms: Optional[float] = None,
        query_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        settings = get_settings()
        self._session_maker = session_maker
        self.slow_query_threshold_ms = (
            slow_query_threshold_ms if slow_query_threshold_ms is not None
            else settings.SLOW_QUERY_THRESHOLD_MS
        )
        self.warning_threshold_ms = (
            warning_threshold_ms if warning_threshold_ms is not None
            else settings.WARNING_QUERY_THRESHOLD_MS
        )
        self.fast_threshold_ms = (
            fast_threshold_ms if fast_threshold_ms is not None
            else settings.FAST_QUERY_THRESHOLD_MS
        )
        self.query_timeout = query_timeout if query_timeout is not None else settings.QUERY_TIMEOUT
        self._clock = clock
        self._pending: Set[asyncio.Task] = set()
        self.reset_metrics()

    async def execute_with_monitoring(
        self,
        operation_type: str,
        operation: Callable[[], Union[T, Awaitable[T]]],
        params: Optional[Dict[str, Any]] = None,
    ) -> T:
        """
        Выполнение операции с замером времени.

        Args:
            operation_type: Тег операции (например, "transcript_fetch")
            operation: Функция без аргументов (sync или возвращающая awaitable)
            params: Параметры для диагностики

        Returns:
            Результат операции без изменений
        """
        start = self._clock()
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await self._await_bounded(operation_type, result)
        except Exception as e:
            failure_params = dict(params or {})
            failure_params["error"] = str(e) or type(e).__name__
            self._record(operation_type, self._elapsed_ms(start), failure_params, success=False)
            raise
        self._record(operation_type, self._elapsed_ms(start), params, success=True)
        return result

    async def _await_bounded(self, operation_type: str, awaitable: Awaitable[T]) -> T:
        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=self.query_timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            task.cancel()
            raise QueryTimeoutError(operation_type, self.query_timeout)
        return task.result()

    def _record(
        self,
        operation_type: str,
        duration: float,
        params: Optional[Dict[str, Any]],
        success: bool,
    ) -> None:
        slow = duration >= self.slow_query_threshold_ms

        stats = self._by_type.setdefault(operation_type, _TypeStats())
        stats.count += 1
        stats.total_duration += duration
        if slow:
            stats.slow_count += 1
        if not success:
            stats.error_count += 1
        self._total_queries += 1
        self._total_duration += duration
        if slow:
            self._slow_queries += 1
        if duration < self.fast_threshold_ms:
            self._fast_queries += 1

        track_query(operation_type, duration, success, slow)

        if slow:
            logger.warning(
                "Slow query detected: %s took %.0fms",
                operation_type,
                duration,
                extra={"operation_type": operation_type},
            )
            self._schedule_persist(operation_type, duration, params)
        elif duration > self.warning_threshold_ms:
            logger.warning(
                "Query performance warning: %s took %.0fms",
                operation_type,
                duration,
                extra={"operation_type": operation_type},
            )

    def _schedule_persist(
        self,
        operation_type: str,
        duration: float,
        params: Optional[Dict[str, Any]],
    ) -> None:
        task = asyncio.create_task(
            self._persist_sample(
                operation_type,
                duration,
                dict(params) if params else None,
                datetime.utcnow(),
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist_sample(
        self,
        operation_type: str,
        duration: float,
        params: Optional[Dict[str, Any]],
        timestamp: datetime,
    ) -> None:
        try:
            query_hash = self.generate_query_hash(operation_type, params)
            await asyncio.wait_for(
                self._write_sample(
                    operation_type,
                    query_hash,
                    duration,
                    self.anonymize_parameters(params),
                    timestamp,
                ),
                timeout=self.query_timeout,
            )
        except Exception as e:
            logger.error("Failed to log slow query %s: %s", operation_type, e)

    async def _write_sample(
        self,
        operation_type: str,
        query_hash: str,
        duration: float,
        params: Optional[Dict[str, Any]],
        timestamp: datetime,
    ) -> None:
        async with self._session_maker() as session:
            repo = QueryPerformanceRepository(session)
            await repo.create_sample(
                query_type=operation_type,
                query_hash=query_hash,
                duration=round(duration, 2),
                parameters=params,
                timestamp=timestamp,
            )
            await session.commit()

    async def wait_for_pending(self) -> None:
        """Дождаться фоновых записей медленных запросов (shutdown, тесты)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def get_database_stats(self) -> DatabaseStats:
        """Агрегаты в памяти с момента последнего reset_metrics()."""
        average = self._total_duration / self._total_queries if self._total_queries else 0.0
        breakdown = {
            operation_type: QueryTypeStats(
                count=stats.count,
                average_time=round(stats.total_duration / stats.count, 2),
                slow_count=stats.slow_count,
                error_count=stats.error_count,
            )
            for operation_type, stats in self._by_type.items()
        }
        return DatabaseStats(
            total_queries=self._total_queries,
            average_query_time=round(average, 2),
            slow_queries=self._slow_queries,
            fast_queries=self._fast_queries,
            query_type_breakdown=breakdown,
        )

    def reset_metrics(self) -> None:
        self._by_type: Dict[str, _TypeStats] = {}
        self._total_queries = 0
        self._total_duration = 0.0
        self._slow_queries = 0
        self._fast_queries = 0

    async def check_database_health(self) -> DatabaseHealth:
        """SELECT 1 с замером времени ответа."""
        start = self._clock()
        try:
            async with self._session_maker() as session:
                await asyncio.wait_for(
                    QueryPerformanceRepository(session).ping(),
                    timeout=self.query_timeout,
                )
        except Exception as e:
            logger.warning("Database health check failed: %r", e)
            return DatabaseHealth(connected=False, error=str(e) or type(e).__name__)
        return DatabaseHealth(connected=True, response_time=round(self._elapsed_ms(start), 2))

    async def get_slow_query_analysis(self, limit: int = 50) -> SlowQueryAnalysis:
        """
        Группы медленных запросов, упорядоченные по impact_score
        (средняя длительность x количество), и рекомендации.
        """
        try:
            async with self._session_maker() as session:
                rows = await asyncio.wait_for(
                    QueryPerformanceRepository(session).get_slow_query_groups(
                        limit=limit,
                        min_duration=self.warning_threshold_ms,
                    ),
                    timeout=self.query_timeout,
                )
        except Exception as e:
            logger.error("Failed to analyze slow queries: %s", e)
            return SlowQueryAnalysis(queries=[], recommendations=[ANALYSIS_FAILED])

        queries = []
        for row in rows:
            average = float(row["average_duration"] or 0)
            count = int(row["count"])
            queries.append(
                SlowQueryGroup(
                    query_type=row["query_type"],
                    query_hash=row["query_hash"],
                    average_duration=round(average, 2),
                    count=count,
                    last_seen=row["last_seen"] or datetime.utcnow(),
                    impact_score=round(average * count, 2),
                )
            )
        queries.sort(key=lambda q: q.impact_score, reverse=True)
        return SlowQueryAnalysis(
            queries=queries,
            recommendations=self.generate_recommendations(queries),
        )

    async def cleanup_performance_logs(self, max_age_days: int = 30) -> int:
        """Удаление сохранённых медленных запросов старше max_age_days."""
        cutoff = datetime.utcnow() - timedelta(days=max_age_days)
        try:
            async with self._session_maker() as session:
                deleted = await QueryPerformanceRepository(session).delete_older_than(cutoff)
                await session.commit()
        except Exception as e:
            logger.error("Failed to cleanup performance logs: %s", e)
            return 0
        logger.info("Cleaned up %s old performance logs", deleted)
        return deleted

    def generate_recommendations(self, queries: List[SlowQueryGroup]) -> List[str]:
        """Эвристические рекомендации по форме данных о медленных запросах."""
        if not queries:
            return [ALL_GOOD]

        recommendations: List[str] = []
        by_type: Dict[str, List[SlowQueryGroup]] = {}
        for query in queries:
            by_type.setdefault(query.query_type, []).append(query)
        total_occurrences = sum(q.count for q in queries)

        for operation_type, groups in by_type.items():
            count = sum(g.count for g in groups)
            average = sum(g.average_duration * g.count for g in groups) / count
            if average > self.slow_query_threshold_ms:
                recommendations.append(
                    f"'{operation_type}' averages {average:.0f}ms "
                    f"(threshold {self.slow_query_threshold_ms:.0f}ms) - review its query plan and indexes"
                )
            share = count / total_occurrences * 100
            if len(by_type) > 1 and share > 50:
                recommendations.append(
                    f"'{operation_type}' accounts for {share:.0f}% of slow query occurrences "
                    "- consider caching its results"
                )

        if len(queries) >= 3:
            mean_count = total_occurrences / len(queries)
            for query in queries:
                if query.count > mean_count * 2:
                    recommendations.append(
                        f"'{query.query_type}' query {query.query_hash[:8]} runs unusually often "
                        f"({query.count} slow executions) - consider caching or batching it"
                    )

        types = " ".join(by_type)
        if "transcript" in types:
            recommendations.append("Consider adding indexes on frequently queried transcript fields")
            recommendations.append("Implement pagination for large transcript result sets")
        if "search" in types:
            recommendations.append("Optimize full-text search indexes for better performance")
            recommendations.append("Consider implementing search result caching")
        if "analytics" in types:
            recommendations.append("Batch analytics inserts to reduce database load")

        mean_average = sum(q.average_duration for q in queries) / len(queries)
        if mean_average > self.slow_query_threshold_ms * 2:
            recommendations.append(
                "Database performance is significantly degraded - consider scaling up resources"
            )
        if len(queries) > MANY_SLOW_GROUPS:
            recommendations.append(
                "High number of slow queries detected - review query patterns and indexing strategy"
            )

        return recommendations or [ALL_GOOD]

    @staticmethod
    def generate_query_hash(operation_type: str, params: Optional[Dict[str, Any]]) -> str:
        """Хэш для группировки: тип операции + параметры."""
        payload = json.dumps(params or {}, sort_keys=True, default=str)
        return hashlib.md5(f"{operation_type}:{payload}".encode()).hexdigest()

    @staticmethod
    def anonymize_parameters(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Скрытие чувствительных полей и обрезка длинных строк."""
        if not params:
            return None
        anonymized: Dict[str, Any] = {}
        for key, value in params.items():
            if any(marker in key.lower() for marker in SENSITIVE_KEYS):
                anonymized[key] = "[REDACTED]"
            elif isinstance(value, str) and len(value) > MAX_PARAM_LENGTH:
                anonymized[key] = f"{value[:MAX_PARAM_LENGTH]}... [TRUNCATED]"
            else:
                anonymized[key] = value
        # JSON column: keep only serializable values
        return json.loads(json.dumps(anonymized, default=str))

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000
