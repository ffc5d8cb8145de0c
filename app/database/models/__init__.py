"""
Database models
"""
from app.database.models.base import Base, TimestampMixin
from app.database.models.transcript import Transcript
from app.database.models.query_performance_log import QueryPerformanceLog

__all__ = [
    "Base",
    "TimestampMixin",
    "Transcript",
    "QueryPerformanceLog",
]
