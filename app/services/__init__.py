"""
Business logic services
"""
from app.services.transcript_service import TranscriptService

__all__ = ["TranscriptService"]
