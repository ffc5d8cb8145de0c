"""
Схемы статистики и анализа запросов к БД.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class QueryTypeStats(BaseModel):
    """Агрегаты по одному типу операции"""

    count: int
    average_time: float
    slow_count: int = 0
    error_count: int = 0


class DatabaseStats(BaseModel):
    total_queries: int
    average_query_time: float
    slow_queries: int
    fast_queries: int
    query_type_breakdown: Dict[str, QueryTypeStats]


class DatabaseHealth(BaseModel):
    connected: bool
    response_time: Optional[float] = None
    error: Optional[str] = None


class SlowQueryGroup(BaseModel):
    """Группа медленных запросов (query_type + query_hash)"""

    query_type: str
    query_hash: str
    average_duration: float
    count: int
    last_seen: datetime
    impact_score: float


class SlowQueryAnalysis(BaseModel):
    queries: List[SlowQueryGroup]
    recommendations: List[str]


class DatabaseOverview(BaseModel):
    health: DatabaseHealth
    performance: DatabaseStats
    slow_queries: SlowQueryAnalysis
    timestamp: datetime


class DbMonitorActionRequest(BaseModel):
    action: str
    days_to_keep: int = Field(30, ge=1, le=365)


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    cleaned_count: int
