"""
Cache layer: Redis-backed cache service, metrics and health monitor.
"""
from app.cache.cache_service import CacheService
from app.cache.circuit_breaker import BreakerState, CircuitBreaker
from app.cache.client import RedisClientProvider
from app.cache.metrics import CacheMetrics
from app.cache.monitor import CacheMonitor

__all__ = [
    "CacheService",
    "CacheMetrics",
    "CacheMonitor",
    "CircuitBreaker",
    "BreakerState",
    "RedisClientProvider",
]
