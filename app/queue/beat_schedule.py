"""
Celery Beat schedule for periodic tasks
"""
from celery.schedules import crontab

beat_schedule = {
    "cleanup-performance-logs-daily": {
        "task": "app.queue.periodic_tasks.cleanup_performance_logs",
        "schedule": crontab(minute=0, hour=3),
    },
}
