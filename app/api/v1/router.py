"""
API v1 Router
"""
from fastapi import APIRouter

from app.api.v1.cache import router as cache_router
from app.api.v1.db_monitor import router as db_monitor_router
from app.api.v1.health import router as health_router
from app.api.v1.transcripts import router as transcripts_router

api_router = APIRouter()

# Подключение роутеров
api_router.include_router(health_router, prefix="/health", tags=["Health"])
api_router.include_router(cache_router, prefix="/cache", tags=["Cache"])
api_router.include_router(db_monitor_router, prefix="/db-monitor", tags=["DB Monitor"])
api_router.include_router(transcripts_router, prefix="/transcripts", tags=["Transcripts"])
