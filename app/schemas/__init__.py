"""
Pydantic schemas for API and services
"""
from app.schemas.transcript import (
    TranscriptSegment,
    TranscriptRecord,
    TranscriptCreate,
    VideoChapter,
    VideoMetadataInfo,
    VideoData,
    SearchResult,
    SearchResults,
)
from app.schemas.cache import (
    CacheMetricsSnapshot,
    CacheStats,
    CacheHealthReport,
    CachePerformanceSummary,
    CacheOverview,
    CacheActionRequest,
    ActionResponse,
)
from app.schemas.monitoring import (
    QueryTypeStats,
    DatabaseStats,
    DatabaseHealth,
    SlowQueryGroup,
    SlowQueryAnalysis,
    DatabaseOverview,
    DbMonitorActionRequest,
    CleanupResponse,
)

__all__ = [
    "TranscriptSegment",
    "TranscriptRecord",
    "TranscriptCreate",
    "VideoChapter",
    "VideoMetadataInfo",
    "VideoData",
    "SearchResult",
    "SearchResults",
    "CacheMetricsSnapshot",
    "CacheStats",
    "CacheHealthReport",
    "CachePerformanceSummary",
    "CacheOverview",
    "CacheActionRequest",
    "ActionResponse",
    "QueryTypeStats",
    "DatabaseStats",
    "DatabaseHealth",
    "SlowQueryGroup",
    "SlowQueryAnalysis",
    "DatabaseOverview",
    "DbMonitorActionRequest",
    "CleanupResponse",
]
