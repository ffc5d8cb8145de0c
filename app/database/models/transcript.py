"""
Transcript model
"""
from typing import Optional, Any, Dict, List

from sqlalchemy import String, Integer, Float, Text, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database.models.base import Base, TimestampMixin


class Transcript(TimestampMixin, Base):
    """
    Transcript model for storing transcribed videos

    Attributes:
        id: Primary key
        video_id: YouTube video ID
        title: Video title
        description: Video description
        summary: Generated summary
        language: Transcript language code
        duration: Video duration in seconds
        utterances: Transcript utterances (JSON list)
        transcript_metadata: Additional metadata (JSON), stored in "metadata" column
        status: Processing status ("pending", "completed", "failed")
        ip_hash: Hash of the requester IP, used for anonymous history
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    __tablename__ = "transcripts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    video_id: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="en"
    )
    duration: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    utterances: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list
    )
    transcript_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending"
    )
    ip_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True
    )

    __table_args__ = (
        Index("ix_transcripts_video_id_status", "video_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Transcript(id={self.id}, video_id='{self.video_id}', status='{self.status}')>"
