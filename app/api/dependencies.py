"""
FastAPI dependencies: процессные синглтоны из app.state и сессия БД.
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache.cache_service import CacheService
from app.cache.client import RedisClientProvider
from app.cache.monitor import CacheMonitor
from app.monitoring.query_monitor import QueryPerformanceMonitor
from app.services.transcript_service import TranscriptService


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session

    Returns:
        AsyncSession: Database session
    """
    async with request.app.state.session_maker() as session:
        yield session


def get_client_provider(request: Request) -> RedisClientProvider:
    return request.app.state.client_provider


def get_cache_service(request: Request) -> CacheService:
    return request.app.state.cache_service


def get_cache_monitor(request: Request) -> CacheMonitor:
    return request.app.state.cache_monitor


def get_query_monitor(request: Request) -> QueryPerformanceMonitor:
    return request.app.state.query_monitor


async def get_transcript_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
    monitor: QueryPerformanceMonitor = Depends(get_query_monitor),
) -> TranscriptService:
    return TranscriptService(db, cache, monitor)
