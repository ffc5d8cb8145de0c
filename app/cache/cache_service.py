"""
Redis-backed cache for transcripts, video metadata and search results.
"""
import asyncio
import hashlib
import logging
import re
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import TypeAdapter

from app.cache.client import RedisClientProvider
from app.cache.metrics import CacheMetrics
from app.config import get_settings
from app.schemas.cache import CacheMetricsSnapshot, CacheStats
from app.schemas.transcript import (
    SearchResult,
    TranscriptRecord,
    VideoData,
    search_results_adapter,
)

logger = logging.getLogger(__name__)

TRANSCRIPT_PREFIX = "transcript:"
VIDEO_PREFIX = "video:"
SEARCH_PREFIX = "search:"

KIND_TRANSCRIPT = "transcript"
KIND_VIDEO = "video_metadata"
KIND_SEARCH = "search_results"

_transcript_adapter = TypeAdapter(TranscriptRecord)
_video_adapter = TypeAdapter(VideoData)

_MEMORY_RE = re.compile(r"used_memory_human:(.+)")


class CacheService:
    """
    Кэш поверх Redis. Ни один метод не пробрасывает исключения:
    недоступный Redis: промах или no-op, ошибка операции: счётчик errors.
    """

    def __init__(
        self,
        client_provider: RedisClientProvider,
        metrics: Optional[CacheMetrics] = None,
        ttls: Optional[Dict[str, int]] = None,
        operation_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        settings = get_settings()
        self._provider = client_provider
        self.metrics = metrics or CacheMetrics()
        self.ttls = {
            KIND_TRANSCRIPT: settings.CACHE_TTL_TRANSCRIPT,
            KIND_VIDEO: settings.CACHE_TTL_VIDEO_METADATA,
            KIND_SEARCH: settings.CACHE_TTL_SEARCH_RESULTS,
        }
        if ttls:
            self.ttls.update(ttls)
        self.operation_timeout = (
            operation_timeout if operation_timeout is not None else settings.CACHE_OPERATION_TIMEOUT
        )
        self._clock = clock

    # Keys

    @staticmethod
    def transcript_key(video_id: str) -> str:
        return f"{TRANSCRIPT_PREFIX}{video_id}"

    @staticmethod
    def video_key(video_id: str) -> str:
        return f"{VIDEO_PREFIX}{video_id}"

    @staticmethod
    def search_key(query: str) -> str:
        """Ключ поиска: md5 от нормализованного запроса."""
        normalized = " ".join(query.lower().split())
        return f"{SEARCH_PREFIX}{hashlib.md5(normalized.encode()).hexdigest()}"

    # Transcripts

    async def get_transcript(self, video_id: str) -> Optional[TranscriptRecord]:
        """Транскрипт из кэша или None."""
        return await self._get(KIND_TRANSCRIPT, self.transcript_key(video_id), _transcript_adapter)

    async def set_transcript(
        self,
        video_id: str,
        transcript: Any,
        ttl: Optional[int] = None,
    ) -> None:
        await self._set(KIND_TRANSCRIPT, self.transcript_key(video_id), transcript, _transcript_adapter, ttl)

    async def invalidate_transcript(self, video_id: str) -> None:
        """Удаляет transcript:<id> и video:<id> одним вызовом."""
        await self._invalidate_video_group(video_id)

    # Video metadata

    async def get_video_metadata(self, video_id: str) -> Optional[VideoData]:
        return await self._get(KIND_VIDEO, self.video_key(video_id), _video_adapter)

    async def set_video_metadata(
        self,
        video_id: str,
        metadata: Any,
        ttl: Optional[int] = None,
    ) -> None:
        await self._set(KIND_VIDEO, self.video_key(video_id), metadata, _video_adapter, ttl)

    async def invalidate_video_metadata(self, video_id: str) -> None:
        await self._invalidate_video_group(video_id)

    # Search results

    async def get_search_results(self, query: str) -> Optional[List[SearchResult]]:
        return await self._get(KIND_SEARCH, self.search_key(query), search_results_adapter)

    async def set_search_results(
        self,
        query: str,
        results: Any,
        ttl: Optional[int] = None,
    ) -> None:
        await self._set(KIND_SEARCH, self.search_key(query), results, search_results_adapter, ttl)

    async def invalidate_search_results(self) -> None:
        """Удаляет все ключи search:*."""
        client = await self._provider.get_client()
        if client is None:
            return
        try:
            keys = await self._call(self._scan_keys(client, f"{SEARCH_PREFIX}*"))
            if keys:
                await self._call(client.delete(*keys))
                logger.info("Invalidated %s search result cache entries", len(keys))
        except Exception as e:
            self._record_error(KIND_SEARCH, "invalidate", f"{SEARCH_PREFIX}*", e)

    # Maintenance

    async def clear_all(self) -> None:
        """Очистка текущей БД Redis."""
        client = await self._provider.get_client()
        if client is None:
            return
        try:
            await self._call(client.flushdb())
            logger.info("Cleared all cache entries")
        except Exception as e:
            self._record_error("all", "clear", "*", e)

    def get_metrics(self) -> CacheMetricsSnapshot:
        return self.metrics.snapshot()

    def reset_metrics(self) -> None:
        self.metrics.reset()

    async def get_cache_stats(self) -> CacheStats:
        """Количество ключей и использование памяти Redis."""
        client = await self._provider.get_client()
        if client is None:
            return CacheStats(key_count=0, error="Redis client not available")
        try:
            keys = await self._call(self._scan_keys(client, "*"))
        except Exception as e:
            self._provider.report_failure(e)
            logger.warning("Cache stats error: %s", e)
            return CacheStats(key_count=0, error=str(e) or type(e).__name__)

        memory_usage = None
        try:
            info = await self._call(client.info("memory"))
            memory_usage = self._extract_memory_usage(info)
        except Exception as e:
            logger.debug("Redis memory info not available: %s", e)
        return CacheStats(key_count=len(keys), memory_usage=memory_usage)

    # Internals

    async def _get(self, kind: str, key: str, adapter: TypeAdapter) -> Optional[Any]:
        start = self._clock()
        client = await self._provider.get_client()
        if client is None:
            self.metrics.record_miss(kind, self._elapsed_ms(start))
            return None
        try:
            raw = await self._call(client.get(key))
            if raw is None:
                self.metrics.record_miss(kind, self._elapsed_ms(start))
                return None
            value = adapter.validate_json(raw)
        except Exception as e:
            self._record_error(kind, "get", key, e)
            return None
        self.metrics.record_hit(kind, self._elapsed_ms(start))
        return value

    async def _set(
        self,
        kind: str,
        key: str,
        value: Any,
        adapter: TypeAdapter,
        ttl: Optional[int],
    ) -> None:
        client = await self._provider.get_client()
        if client is None:
            return
        try:
            entity = adapter.validate_python(value, from_attributes=True)
            serialized = adapter.dump_json(entity).decode()
            await self._call(client.setex(key, ttl or self.ttls[kind], serialized))
            logger.debug("Cached %s", key, extra={"cache_key": key})
        except Exception as e:
            self._record_error(kind, "set", key, e)

    async def _invalidate_video_group(self, video_id: str) -> None:
        client = await self._provider.get_client()
        if client is None:
            return
        keys = (self.transcript_key(video_id), self.video_key(video_id))
        try:
            await self._call(client.delete(*keys))
            logger.info("Invalidated cache for video", extra={"video_id": video_id})
        except Exception as e:
            self._record_error(KIND_TRANSCRIPT, "invalidate", ",".join(keys), e)

    async def _call(self, awaitable: Awaitable[Any]) -> Any:
        return await asyncio.wait_for(awaitable, timeout=self.operation_timeout)

    @staticmethod
    async def _scan_keys(client: Any, pattern: str) -> List[str]:
        return [key async for key in client.scan_iter(match=pattern, count=500)]

    @staticmethod
    def _extract_memory_usage(info: Any) -> Optional[str]:
        if isinstance(info, dict):
            value = info.get("used_memory_human")
            return str(value).strip() if value is not None else None
        if isinstance(info, bytes):
            info = info.decode()
        match = _MEMORY_RE.search(str(info))
        return match.group(1).strip() if match else None

    def _record_error(self, kind: str, operation: str, key: str, error: Exception) -> None:
        self.metrics.record_error(kind)
        self._provider.report_failure(error)
        logger.warning(
            "Cache %s error key=%s: %r",
            operation,
            key,
            error,
            extra={"cache_key": key},
        )

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000
