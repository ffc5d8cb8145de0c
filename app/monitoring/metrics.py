"""
Prometheus metrics
"""
import time

from fastapi import FastAPI
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

# HTTP запросы
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

# Время обработки запросов
http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Обращения к кэшу
cache_operations_total = Counter(
    'cache_operations_total',
    'Cache operations by resource kind and outcome',
    ['kind', 'result']  # 'hit', 'miss', 'error'
)

# Задержка чтения из кэша
cache_get_duration_seconds = Histogram(
    'cache_get_duration_seconds',
    'Cache get latency in seconds',
    ['kind'],
    buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

# Запросы к БД
db_queries_total = Counter(
    'db_queries_total',
    'Total monitored database queries',
    ['operation_type', 'status']  # 'success' или 'error'
)

# Время выполнения запросов к БД
db_query_duration_seconds = Histogram(
    'db_query_duration_seconds',
    'Monitored database query duration in seconds',
    ['operation_type']
)

# Медленные запросы
db_slow_queries_total = Counter(
    'db_slow_queries_total',
    'Queries slower than the slow query threshold',
    ['operation_type']
)


def setup_metrics(app: FastAPI):
    """Настройка метрик для FastAPI приложения"""

    @app.get("/metrics")
    async def metrics():
        """Endpoint для Prometheus метрик"""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    # Middleware для автоматического сбора метрик
    @app.middleware("http")
    async def metrics_middleware(request, call_next):
        """Middleware для сбора метрик HTTP запросов"""
        method = request.method
        path = request.url.path

        # Игнорирование health check и metrics
        if path in ["/health", "/metrics", "/favicon.ico"]:
            return await call_next(request)

        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        http_requests_total.labels(
            method=method,
            endpoint=path,
            status_code=response.status_code
        ).inc()

        http_request_duration_seconds.labels(
            method=method,
            endpoint=path
        ).observe(duration)

        return response


def track_cache_hit(kind: str, latency_ms: float):
    """Попадание в кэш"""
    cache_operations_total.labels(kind=kind, result='hit').inc()
    cache_get_duration_seconds.labels(kind=kind).observe(latency_ms / 1000)


def track_cache_miss(kind: str, latency_ms: float):
    """Промах кэша"""
    cache_operations_total.labels(kind=kind, result='miss').inc()
    cache_get_duration_seconds.labels(kind=kind).observe(latency_ms / 1000)


def track_cache_error(kind: str):
    """Ошибка операции с кэшем"""
    cache_operations_total.labels(kind=kind, result='error').inc()


def track_query(operation_type: str, duration_ms: float, success: bool, slow: bool):
    """Отслеживание выполненного запроса к БД"""
    db_queries_total.labels(
        operation_type=operation_type,
        status='success' if success else 'error'
    ).inc()
    db_query_duration_seconds.labels(operation_type=operation_type).observe(duration_ms / 1000)
    if slow:
        db_slow_queries_total.labels(operation_type=operation_type).inc()
