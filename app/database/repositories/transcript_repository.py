"""
Transcript repository
"""
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, select

from app.database.repositories.base import BaseRepository
from app.database.models.transcript import Transcript

COMPLETED = "completed"


class TranscriptRepository(BaseRepository[Transcript]):
    """
    Repository for Transcript model operations
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Transcript, session)

    async def get_latest_completed(self, video_id: str) -> Optional[Transcript]:
        """
        Get the most recent completed transcript for a video

        Args:
            video_id: YouTube video ID

        Returns:
            Transcript instance or None if not found
        """
        stmt = (
            select(Transcript)
            .where(Transcript.video_id == video_id, Transcript.status == COMPLETED)
            .order_by(Transcript.created_at.desc(), Transcript.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_history(
        self,
        ip_hash: str,
        page: int = 1,
        limit: int = 10,
    ) -> List[Transcript]:
        """
        Get completed transcripts requested from one (hashed) IP, newest first

        Args:
            ip_hash: Requester IP hash
            page: 1-based page number
            limit: Page size

        Returns:
            List of transcript instances
        """
        stmt = (
            select(Transcript)
            .where(Transcript.ip_hash == ip_hash, Transcript.status == COMPLETED)
            .order_by(Transcript.created_at.desc(), Transcript.id.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(self, query: str, limit: int = 20) -> List[Transcript]:
        """Case-insensitive search over title, summary and description"""
        pattern = f"%{query.strip()}%"
        stmt = (
            select(Transcript)
            .where(
                Transcript.status == COMPLETED,
                or_(
                    Transcript.title.ilike(pattern),
                    Transcript.summary.ilike(pattern),
                    Transcript.description.ilike(pattern),
                ),
            )
            .order_by(Transcript.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
