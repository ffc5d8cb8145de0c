"""
Transcript business logic service
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.cache.cache_service import CacheService
from app.database.repositories.transcript_repository import TranscriptRepository
from app.monitoring.query_monitor import QueryPerformanceMonitor
from app.schemas.transcript import SearchResult, TranscriptCreate, TranscriptRecord

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200


class TranscriptService:
    """Чтение транскриптов через кэш, запросы к БД под мониторингом."""

    def __init__(
        self,
        session: AsyncSession,
        cache: CacheService,
        monitor: QueryPerformanceMonitor,
    ):
        self._session = session
        self._repo = TranscriptRepository(session)
        self._cache = cache
        self._monitor = monitor

    async def get_transcript(self, video_id: str) -> Optional[TranscriptRecord]:
        """Транскрипт из кэша, иначе последний завершённый из БД (с записью в кэш)."""
        cached = await self._cache.get_transcript(video_id)
        if cached is not None:
            return cached

        transcript = await self._monitor.execute_with_monitoring(
            "transcript_fetch",
            lambda: self._repo.get_latest_completed(video_id),
            {"video_id": video_id},
        )
        if transcript is None:
            return None

        record = TranscriptRecord.model_validate(transcript)
        await self._cache.set_transcript(video_id, record)
        return record

    async def get_history(
        self,
        ip_hash: str,
        page: int = 1,
        limit: int = 10,
    ) -> List[TranscriptRecord]:
        """История запросов по хэшу IP (без кэша)."""
        transcripts = await self._monitor.execute_with_monitoring(
            "user_history",
            lambda: self._repo.get_history(ip_hash, page=page, limit=limit),
            {"ip_hash": ip_hash, "page": page, "limit": limit},
        )
        return [TranscriptRecord.model_validate(t) for t in transcripts]

    async def search(self, query: str, limit: int = 20) -> List[SearchResult]:
        """Поиск по транскриптам; результаты кэшируются по нормализованному запросу."""
        cached = await self._cache.get_search_results(query)
        if cached is not None:
            return cached

        transcripts = await self._monitor.execute_with_monitoring(
            "transcript_search",
            lambda: self._repo.search(query, limit=limit),
            {"query": query, "limit": limit},
        )
        results = [
            SearchResult(
                video_id=t.video_id,
                title=t.title,
                snippet=(t.summary or t.description or "")[:SNIPPET_LENGTH] or None,
            )
            for t in transcripts
        ]
        await self._cache.set_search_results(query, results)
        return results

    async def save_transcript(self, data: TranscriptCreate) -> TranscriptRecord:
        """Сохранение транскрипта и сброс связанных записей кэша."""
        fields = data.model_dump(exclude={"metadata"})
        transcript = await self._monitor.execute_with_monitoring(
            "transcript_create",
            lambda: self._repo.create(transcript_metadata=data.metadata, **fields),
            {"video_id": data.video_id},
        )
        await self._session.commit()
        record = TranscriptRecord.model_validate(transcript)

        await self._cache.invalidate_transcript(data.video_id)
        await self._cache.invalidate_search_results()
        logger.info("Transcript saved", extra={"video_id": data.video_id})
        return record
