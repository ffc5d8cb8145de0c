"""
Query performance log model
"""
from datetime import datetime
from typing import Optional, Any, Dict

from sqlalchemy import String, Integer, Float, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database.models.base import Base


class QueryPerformanceLog(Base):
    """
    Slow query sample persisted for later analysis

    Attributes:
        id: Primary key
        query_type: Operation tag (e.g., "transcript_fetch", "user_history")
        query_hash: Hash of query type + parameters, used for grouping
        duration: Query duration in milliseconds
        parameters: Anonymized parameter snapshot (JSON)
        timestamp: When the query was observed
    """

    __tablename__ = "query_performance_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    query_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )
    query_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False
    )
    duration: Mapped[float] = mapped_column(
        Float,
        nullable=False
    )
    parameters: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default="CURRENT_TIMESTAMP",
        nullable=False
    )

    __table_args__ = (
        Index("ix_query_performance_log_query_type_timestamp", "query_type", "timestamp"),
        Index("ix_query_performance_log_query_hash_timestamp", "query_hash", "timestamp"),
        Index("ix_query_performance_log_duration_timestamp", "duration", "timestamp"),
        Index("ix_query_performance_log_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<QueryPerformanceLog(id={self.id}, query_type='{self.query_type}', duration={self.duration})>"
