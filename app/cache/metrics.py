"""
Счётчики попаданий/промахов/ошибок кэша.
"""
from app.monitoring.metrics import track_cache_error, track_cache_hit, track_cache_miss
from app.schemas.cache import CacheMetricsSnapshot


class CacheMetrics:
    """
    Метрики кэша, принадлежащие конкретному CacheService.

    Изменяются только из event loop без await между чтением и записью,
    поэтому инкременты не теряются при конкурентных запросах.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self.average_latency = 0.0
        self._latency_samples = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        total = self.total_requests
        if total == 0:
            return 0.0
        return self.hits / total * 100

    def record_hit(self, kind: str, latency_ms: float) -> None:
        self.hits += 1
        self._observe_latency(latency_ms)
        track_cache_hit(kind, latency_ms)

    def record_miss(self, kind: str, latency_ms: float) -> None:
        self.misses += 1
        self._observe_latency(latency_ms)
        track_cache_miss(kind, latency_ms)

    def record_error(self, kind: str) -> None:
        self.errors += 1
        track_cache_error(kind)

    def _observe_latency(self, latency_ms: float) -> None:
        self._latency_samples += 1
        self.average_latency += (latency_ms - self.average_latency) / self._latency_samples

    def snapshot(self) -> CacheMetricsSnapshot:
        return CacheMetricsSnapshot(
            hits=self.hits,
            misses=self.misses,
            errors=self.errors,
            total_requests=self.total_requests,
            hit_rate=round(self.hit_rate, 2),
            average_latency=round(self.average_latency, 2),
        )
