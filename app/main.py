"""
Главное приложение FastAPI
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.api.v1.router import api_router
from app.cache.cache_service import CacheService
from app.cache.client import RedisClientProvider
from app.cache.monitor import CacheMonitor
from app.logging_config import setup_logging
from app.middleware.logging_middleware import LoggingMiddleware
from app.monitoring.metrics import setup_metrics
from app.monitoring.query_monitor import QueryPerformanceMonitor
from app.database.connection import async_session_maker, init_db, close_db


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan события приложения"""
    # Запуск
    setup_logging(use_json=settings.LOG_JSON, level=settings.LOG_LEVEL)
    logger.info("Starting ScriptFlow Cache Service...")
    await init_db()

    client_provider = RedisClientProvider.from_settings()
    cache_service = CacheService(client_provider)
    cache_monitor = CacheMonitor(cache_service, client_provider)
    query_monitor = QueryPerformanceMonitor(async_session_maker)

    app.state.session_maker = async_session_maker
    app.state.client_provider = client_provider
    app.state.cache_service = cache_service
    app.state.cache_monitor = cache_monitor
    app.state.query_monitor = query_monitor

    if settings.ENABLE_CACHE_MONITORING:
        cache_monitor.start_monitoring(settings.CACHE_MONITOR_INTERVAL)

    yield

    # Остановка
    logger.info("Shutting down ScriptFlow Cache Service...")
    await cache_monitor.stop_monitoring()
    await query_monitor.wait_for_pending()
    await client_provider.close()
    await close_db()


# Создание приложения
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Кэширование транскриптов в Redis и мониторинг производительности запросов к БД",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Gzip Middleware
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Custom Middleware
app.add_middleware(LoggingMiddleware)

# Настройка метрик
if settings.ENABLE_METRICS:
    setup_metrics(app)


# Обработка исключений
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик исключений"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "Internal server error" if not settings.DEBUG else str(exc)
            }
        }
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Проверка здоровья приложения"""
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION
    }


# API Routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Корневой endpoint"""
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs" if settings.DEBUG else "disabled",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else 4
    )
