"""
Celery signals: логирование воркера в том же формате, что и API
"""
from celery.signals import setup_logging as celery_setup_logging

from app.config import get_settings
from app.logging_config import setup_logging


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    """Заменяет конфигурацию логирования Celery на JSONFormatter."""
    settings = get_settings()
    setup_logging(use_json=settings.LOG_JSON, level=settings.LOG_LEVEL)
