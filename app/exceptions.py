"""
Исключения кэш-слоя и мониторинга запросов.
"""


class CacheUnavailableError(Exception):
    """Redis недоступен (нет соединения или circuit breaker открыт)."""


class QueryTimeoutError(TimeoutError):
    """Отслеживаемая операция не уложилась в QUERY_TIMEOUT."""

    def __init__(self, operation_type: str, timeout: float) -> None:
        self.operation_type = operation_type
        self.timeout = timeout
        super().__init__(f"Query '{operation_type}' timed out after {timeout}s")
