"""
Repository for persisted slow query samples
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func, select, text

from app.database.repositories.base import BaseRepository
from app.database.models.query_performance_log import QueryPerformanceLog


class QueryPerformanceRepository(BaseRepository[QueryPerformanceLog]):
    """
    Repository for QueryPerformanceLog operations
    """

    def __init__(self, session: AsyncSession):
        super().__init__(QueryPerformanceLog, session)

    async def ping(self) -> None:
        """Trivial round-trip query used for health checks"""
        await self.session.execute(text("SELECT 1"))

    async def create_sample(
        self,
        query_type: str,
        query_hash: str,
        duration: float,
        parameters: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> QueryPerformanceLog:
        """
        Persist one slow query sample

        Args:
            query_type: Operation tag
            query_hash: Grouping hash
            duration: Duration in milliseconds
            parameters: Anonymized parameters
            timestamp: Observation time (defaults to now)

        Returns:
            Created sample
        """
        return await self.create(
            query_type=query_type,
            query_hash=query_hash,
            duration=duration,
            parameters=parameters,
            timestamp=timestamp or datetime.utcnow(),
        )

    async def get_slow_query_groups(
        self,
        limit: int = 50,
        min_duration: float = 0,
    ) -> List[Dict[str, Any]]:
        """
        Aggregate samples by (query_type, query_hash)

        Groups are ordered by total time consumed (average duration x count),
        so both slower and more frequent groups rank higher.

        Args:
            limit: Maximum number of groups
            min_duration: Ignore samples faster than this (ms)

        Returns:
            List of dicts with query_type, query_hash, average_duration,
            count, last_seen and total_duration
        """
        total_duration = func.sum(QueryPerformanceLog.duration).label("total_duration")
        stmt = (
            select(
                QueryPerformanceLog.query_type,
                QueryPerformanceLog.query_hash,
                func.avg(QueryPerformanceLog.duration).label("average_duration"),
                func.count(QueryPerformanceLog.id).label("count"),
                func.max(QueryPerformanceLog.timestamp).label("last_seen"),
                total_duration,
            )
            .where(QueryPerformanceLog.duration >= min_duration)
            .group_by(QueryPerformanceLog.query_type, QueryPerformanceLog.query_hash)
            .order_by(total_duration.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [dict(row._mapping) for row in result.all()]

    async def delete_older_than(self, cutoff_date: datetime) -> int:
        """
        Delete samples observed before cutoff_date

        Returns:
            Number of deleted samples
        """
        stmt = delete(QueryPerformanceLog).where(QueryPerformanceLog.timestamp < cutoff_date)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
