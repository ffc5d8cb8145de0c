"""
Тесты TranscriptService: чтение через кэш, запись с инвалидацией.
"""
import pytest

from app.schemas.transcript import TranscriptCreate
from app.services.transcript_service import TranscriptService


@pytest.fixture
def service(test_db, cache_service, query_monitor):
    return TranscriptService(test_db, cache_service, query_monitor)


class TestTranscriptService:
    """Unit тесты TranscriptService."""

    async def test_get_transcript_reads_through_cache(self, service, cache_service, query_monitor, sample_transcript):
        """Первый запрос идёт в БД и кэширует результат, второй берётся из кэша."""
        first = await service.get_transcript("abc123")
        second = await service.get_transcript("abc123")

        metrics = cache_service.get_metrics()
        assert first.id == sample_transcript.id
        assert second == first
        assert metrics.misses == 1
        assert metrics.hits == 1
        assert query_monitor.get_database_stats().query_type_breakdown["transcript_fetch"].count == 1

    async def test_get_missing_transcript(self, service, fake_redis):
        assert await service.get_transcript("missing") is None
        assert "transcript:missing" not in fake_redis.store

    async def test_works_without_redis(self, test_db, unavailable_provider, query_monitor, sample_transcript):
        from app.cache.cache_service import CacheService

        service = TranscriptService(test_db, CacheService(unavailable_provider), query_monitor)

        result = await service.get_transcript("abc123")

        assert result.video_id == "abc123"

    async def test_search_caches_results(self, service, query_monitor, sample_transcript):
        first = await service.search("redis")
        second = await service.search("  REDIS ")

        assert [r.video_id for r in first] == ["abc123"]
        assert first[0].snippet == sample_transcript.summary
        assert second == first
        assert query_monitor.get_database_stats().query_type_breakdown["transcript_search"].count == 1

    async def test_get_history(self, service, sample_transcript):
        history = await service.get_history("iphash-1")
        assert [t.id for t in history] == [sample_transcript.id]

    async def test_save_invalidates_cache(self, service, cache_service, fake_redis, sample_transcript):
        await service.get_transcript("abc123")
        await service.search("redis")
        assert "transcript:abc123" in fake_redis.store

        saved = await service.save_transcript(
            TranscriptCreate(video_id="abc123", title="Updated", metadata={"source": "whisper"})
        )

        assert saved.metadata == {"source": "whisper"}
        assert not any(key.startswith(("transcript:", "search:")) for key in fake_redis.store)
        latest = await service.get_transcript("abc123")
        assert latest.title == "Updated"
