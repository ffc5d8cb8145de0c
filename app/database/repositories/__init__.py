"""
Database repositories
"""
from app.database.repositories.base import BaseRepository
from app.database.repositories.transcript_repository import TranscriptRepository
from app.database.repositories.query_performance_repository import QueryPerformanceRepository

__all__ = [
    "BaseRepository",
    "TranscriptRepository",
    "QueryPerformanceRepository",
]
