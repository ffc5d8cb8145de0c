"""
Database package
"""
from app.database.connection import engine, async_session_maker, init_db, close_db
from app.database.models import (
    Base,
    Transcript,
    QueryPerformanceLog,
)
from app.database.repositories import (
    BaseRepository,
    TranscriptRepository,
    QueryPerformanceRepository,
)

__all__ = [
    # Connection
    "engine",
    "async_session_maker",
    "init_db",
    "close_db",
    # Models
    "Base",
    "Transcript",
    "QueryPerformanceLog",
    # Repositories
    "BaseRepository",
    "TranscriptRepository",
    "QueryPerformanceRepository",
]
