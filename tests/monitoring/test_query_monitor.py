"""
Тесты мониторинга производительности запросов к БД.
"""
import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from app.database.models import QueryPerformanceLog
from app.database.repositories import QueryPerformanceRepository
from app.exceptions import QueryTimeoutError
from app.monitoring.query_monitor import ALL_GOOD, ANALYSIS_FAILED, QueryPerformanceMonitor
from app.schemas.monitoring import SlowQueryGroup


def timed(clock, seconds, result=None):
    """Синхронная операция, «занимающая» seconds по фейковым часам."""
    def operation():
        clock.advance(seconds)
        return result
    return operation


async def stored_samples(session_maker):
    async with session_maker() as session:
        result = await session.execute(select(QueryPerformanceLog))
        return list(result.scalars().all())


class TestExecuteWithMonitoring:
    """execute_with_monitoring"""

    async def test_fast_query_is_counted_but_not_persisted(self, query_monitor, session_maker, clock):
        result = await query_monitor.execute_with_monitoring(
            "transcript_fetch", timed(clock, 0.05, "row"), {"video_id": "abc123"}
        )
        await query_monitor.wait_for_pending()

        stats = query_monitor.get_database_stats()
        assert result == "row"
        assert stats.total_queries == 1
        assert stats.fast_queries == 1
        assert stats.slow_queries == 0
        assert await stored_samples(session_maker) == []

    async def test_slow_query_is_persisted_once(self, query_monitor, session_maker, clock):
        await query_monitor.execute_with_monitoring(
            "transcript_search", timed(clock, 1.5), {"query": "redis"}
        )
        await query_monitor.wait_for_pending()

        samples = await stored_samples(session_maker)
        assert len(samples) == 1
        assert samples[0].query_type == "transcript_search"
        assert samples[0].duration == pytest.approx(1500)
        assert samples[0].parameters == {"query": "redis"}
        assert samples[0].query_hash == QueryPerformanceMonitor.generate_query_hash(
            "transcript_search", {"query": "redis"}
        )
        assert query_monitor.get_database_stats().slow_queries == 1

    async def test_threshold_is_inclusive(self, query_monitor, clock):
        with patch.object(query_monitor, "_write_sample", AsyncMock()) as write:
            await query_monitor.execute_with_monitoring("transcript_fetch", timed(clock, 1.0))
            await query_monitor.wait_for_pending()
        write.assert_awaited_once()

    async def test_persistence_does_not_block_caller(self, query_monitor, clock):
        release = asyncio.Event()

        async def blocked_write(*args, **kwargs):
            await release.wait()

        with patch.object(query_monitor, "_write_sample", blocked_write):
            result = await query_monitor.execute_with_monitoring(
                "transcript_fetch", timed(clock, 2.0, "row")
            )
            assert result == "row"
            release.set()
            await query_monitor.wait_for_pending()

    async def test_persistence_failure_is_swallowed(self, query_monitor, clock):
        with patch.object(query_monitor, "_write_sample", AsyncMock(side_effect=RuntimeError("db down"))):
            result = await query_monitor.execute_with_monitoring(
                "transcript_fetch", timed(clock, 2.0, "row")
            )
            await query_monitor.wait_for_pending()

        assert result == "row"

    async def test_unhashable_params_do_not_fail_caller(self, query_monitor, session_maker, clock):
        """Параметры, которые нельзя сериализовать, ломают только запись образца."""
        with patch("app.monitoring.query_monitor.logger") as log:
            result = await query_monitor.execute_with_monitoring(
                "transcript_fetch", timed(clock, 1.5, "row"), {1: "x", "a": "y"}
            )
            await query_monitor.wait_for_pending()

        assert result == "row"
        assert query_monitor.get_database_stats().slow_queries == 1
        assert await stored_samples(session_maker) == []
        log.error.assert_called_once()

    async def test_error_propagates_unchanged(self, query_monitor, clock):
        error = ValueError("broken query")

        def failing():
            clock.advance(0.01)
            raise error

        with pytest.raises(ValueError) as exc_info:
            await query_monitor.execute_with_monitoring("user_history", failing)

        stats = query_monitor.get_database_stats()
        assert exc_info.value is error
        assert stats.total_queries == 1
        assert stats.query_type_breakdown["user_history"].error_count == 1

    async def test_async_operation(self, query_monitor, clock):
        async def operation():
            clock.advance(0.2)
            return [1, 2]

        result = await query_monitor.execute_with_monitoring("transcript_search", operation)

        stats = query_monitor.get_database_stats()
        assert result == [1, 2]
        assert stats.average_query_time == pytest.approx(200)

    async def test_async_error_propagates_unchanged(self, query_monitor):
        async def operation():
            raise TimeoutError("driver timeout")

        with pytest.raises(TimeoutError) as exc_info:
            await query_monitor.execute_with_monitoring("transcript_fetch", operation)

        assert not isinstance(exc_info.value, QueryTimeoutError)
        assert str(exc_info.value) == "driver timeout"

    async def test_timeout(self, session_maker):
        monitor = QueryPerformanceMonitor(session_maker, query_timeout=0.01)

        with pytest.raises(QueryTimeoutError):
            await monitor.execute_with_monitoring("transcript_fetch", lambda: asyncio.sleep(1))

        assert monitor.get_database_stats().query_type_breakdown["transcript_fetch"].error_count == 1

    async def test_failed_slow_query_stores_error(self, query_monitor, session_maker, clock):
        def failing():
            clock.advance(1.2)
            raise RuntimeError("lock timeout")

        with pytest.raises(RuntimeError):
            await query_monitor.execute_with_monitoring("transcript_create", failing, {"video_id": "abc123"})
        await query_monitor.wait_for_pending()

        samples = await stored_samples(session_maker)
        assert samples[0].parameters == {"video_id": "abc123", "error": "lock timeout"}


class TestStats:
    """get_database_stats / reset_metrics"""

    async def test_breakdown_by_type(self, query_monitor, clock):
        await query_monitor.execute_with_monitoring("transcript_fetch", timed(clock, 0.1))
        await query_monitor.execute_with_monitoring("transcript_fetch", timed(clock, 0.3))
        await query_monitor.execute_with_monitoring("user_history", timed(clock, 0.05))

        stats = query_monitor.get_database_stats()

        assert stats.total_queries == 3
        assert stats.average_query_time == pytest.approx(150)
        assert stats.query_type_breakdown["transcript_fetch"].count == 2
        assert stats.query_type_breakdown["transcript_fetch"].average_time == pytest.approx(200)
        assert stats.query_type_breakdown["user_history"].count == 1

    async def test_reset(self, query_monitor, clock):
        await query_monitor.execute_with_monitoring("transcript_fetch", timed(clock, 0.1))

        query_monitor.reset_metrics()

        stats = query_monitor.get_database_stats()
        assert stats.total_queries == 0
        assert stats.average_query_time == 0
        assert stats.query_type_breakdown == {}


class TestAnonymization:
    """anonymize_parameters"""

    def test_redacts_sensitive_keys(self):
        params = {"user_email": "a@b.c", "Password": "x", "api_token": "t", "video_id": "abc123"}

        result = QueryPerformanceMonitor.anonymize_parameters(params)

        assert result == {
            "user_email": "[REDACTED]",
            "Password": "[REDACTED]",
            "api_token": "[REDACTED]",
            "video_id": "abc123",
        }

    def test_truncates_long_strings(self):
        result = QueryPerformanceMonitor.anonymize_parameters({"query": "x" * 150})
        assert result["query"] == "x" * 100 + "... [TRUNCATED]"

    def test_empty(self):
        assert QueryPerformanceMonitor.anonymize_parameters(None) is None


class TestHealth:
    """check_database_health"""

    async def test_connected(self, query_monitor):
        health = await query_monitor.check_database_health()
        assert health.connected
        assert health.response_time is not None

    async def test_disconnected(self, query_monitor):
        with patch.object(QueryPerformanceRepository, "ping", AsyncMock(side_effect=OSError("refused"))):
            health = await query_monitor.check_database_health()

        assert not health.connected
        assert health.error == "refused"
        assert health.response_time is None


class TestSlowQueryAnalysis:
    """get_slow_query_analysis"""

    async def test_empty_store(self, query_monitor):
        analysis = await query_monitor.get_slow_query_analysis()
        assert analysis.queries == []
        assert analysis.recommendations == [ALL_GOOD]

    async def test_erroring_store(self, query_monitor):
        with patch.object(
            QueryPerformanceRepository,
            "get_slow_query_groups",
            AsyncMock(side_effect=RuntimeError("no such table")),
        ):
            analysis = await query_monitor.get_slow_query_analysis()

        assert analysis.queries == []
        assert analysis.recommendations == [ANALYSIS_FAILED]

    async def test_groups_ranked_by_impact(self, query_monitor, test_db):
        repo = QueryPerformanceRepository(test_db)
        for _ in range(5):
            await repo.create_sample("transcript_search", "frequent", 1200)
        await repo.create_sample("transcript_fetch", "rare", 3000)
        await repo.create_sample("transcript_fetch", "fast", 50)
        await test_db.commit()

        analysis = await query_monitor.get_slow_query_analysis()

        assert [q.query_hash for q in analysis.queries] == ["frequent", "rare"]
        assert analysis.queries[0].impact_score == pytest.approx(6000)
        assert analysis.queries[0].count == 5
        assert any("search" in r for r in analysis.recommendations)
        assert any("'transcript_fetch' averages 3000ms" in r for r in analysis.recommendations)


class TestRecommendations:
    """generate_recommendations"""

    @staticmethod
    def group(query_type, average, count, query_hash="h"):
        return SlowQueryGroup(
            query_type=query_type,
            query_hash=query_hash,
            average_duration=average,
            count=count,
            last_seen=datetime.utcnow(),
            impact_score=average * count,
        )

    def test_degraded(self, query_monitor):
        recs = query_monitor.generate_recommendations([self.group("user_history", 2500, 1)])
        assert any("significantly degraded" in r for r in recs)

    def test_frequent_group(self, query_monitor):
        groups = [
            self.group("user_history", 600, 30, "a"),
            self.group("user_history", 600, 1, "b"),
            self.group("user_history", 600, 1, "c"),
        ]
        recs = query_monitor.generate_recommendations(groups)
        assert any("runs unusually often" in r and "'user_history'" in r for r in recs)

    def test_many_groups(self, query_monitor):
        groups = [self.group("user_history", 600, 1, str(i)) for i in range(21)]
        recs = query_monitor.generate_recommendations(groups)
        assert any("High number of slow queries" in r for r in recs)

    def test_nothing_applies(self, query_monitor):
        recs = query_monitor.generate_recommendations([self.group("user_history", 600, 1)])
        assert recs == [ALL_GOOD]


class TestCleanup:
    """cleanup_performance_logs"""

    async def test_deletes_old_samples(self, query_monitor, test_db, session_maker):
        repo = QueryPerformanceRepository(test_db)
        await repo.create_sample("transcript_fetch", "old", 1500, timestamp=datetime.utcnow() - timedelta(days=40))
        await repo.create_sample("transcript_fetch", "new", 1500)
        await test_db.commit()

        deleted = await query_monitor.cleanup_performance_logs(30)

        assert deleted == 1
        assert [s.query_hash for s in await stored_samples(session_maker)] == ["new"]

    async def test_failure_returns_zero(self, query_monitor):
        with patch.object(
            QueryPerformanceRepository,
            "delete_older_than",
            AsyncMock(side_effect=RuntimeError("db down")),
        ):
            assert await query_monitor.cleanup_performance_logs(30) == 0
