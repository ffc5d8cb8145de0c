"""
Схемы метрик и отчётов кэша.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

CacheHealthStatus = Literal["healthy", "degraded", "unhealthy", "unavailable"]
PerformanceRating = Literal["excellent", "good", "fair", "poor"]


class CacheMetricsSnapshot(BaseModel):
    """Снимок счётчиков кэша"""

    hits: int
    misses: int
    errors: int
    total_requests: int
    hit_rate: float
    average_latency: float


class CacheStats(BaseModel):
    """Размер кэша и использование памяти"""

    key_count: int
    memory_usage: Optional[str] = None
    error: Optional[str] = None


class RedisHealth(BaseModel):
    connected: bool
    latency: Optional[float] = None
    error: Optional[str] = None


class CachePerformance(BaseModel):
    hit_rate: float
    average_latency: float
    error_rate: float
    total_requests: int


class CacheHealthReport(BaseModel):
    """Полный отчёт о здоровье кэша"""

    status: CacheHealthStatus
    timestamp: datetime
    redis: RedisHealth
    performance: CachePerformance
    memory: CacheStats
    alerts: List[str]
    recommendations: List[str]


class CachePerformanceSummary(BaseModel):
    overall: PerformanceRating
    metrics: CacheMetricsSnapshot
    insights: List[str]


class CacheOverview(BaseModel):
    """Сводная информация для GET /cache без action"""

    redis: RedisHealth
    performance: CacheMetricsSnapshot
    cache: CacheStats
    timestamp: datetime


class CacheActionRequest(BaseModel):
    action: str
    video_id: Optional[str] = None


class ActionResponse(BaseModel):
    success: bool = True
    message: str
