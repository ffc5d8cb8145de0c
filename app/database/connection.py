"""
Database connection management
"""
from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from app.config import settings
from app.database.models.base import Base
import logging

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Параметры пула (SQLite не поддерживает pool_size/max_overflow)"""
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


# Создание async engine (один пул на процесс)
engine = create_async_engine(
    settings.database_url,
    echo=settings.DEBUG and settings.LOG_LEVEL == "DEBUG",
    **_engine_options(settings.database_url)
)

# Создание session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


async def init_db(create_tables: bool = False):
    """Инициализация базы данных"""
    try:
        # в production схема создаётся миграциями Alembic
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db():
    """Закрытие соединения с базой данных"""
    try:
        await engine.dispose()
        logger.info("Database connection closed")
    except Exception as e:
        logger.error(f"Failed to close database connection: {e}")

