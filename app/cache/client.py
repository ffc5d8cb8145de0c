"""
Общее подключение к Redis с circuit breaker.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.cache.circuit_breaker import CircuitBreaker
from app.config import get_settings
from app.exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class RedisClientProvider:
    """
    Долгоживущий клиент Redis, общий для всех запросов процесса.

    get_client() возвращает клиент или None, если Redis недоступен
    (кэш выключен, circuit breaker открыт, ping не прошёл).
    """

    def __init__(
        self,
        url: str,
        enabled: bool = True,
        connect_timeout: float = 3.0,
        operation_timeout: float = 2.0,
        breaker: Optional[CircuitBreaker] = None,
        client_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.url = url
        self.enabled = enabled
        self.connect_timeout = connect_timeout
        self.operation_timeout = operation_timeout
        self.breaker = breaker or CircuitBreaker()
        self._client_factory = client_factory or self._default_factory
        self._client: Optional[Any] = None
        self._connected = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls) -> "RedisClientProvider":
        settings = get_settings()
        breaker = CircuitBreaker(
            failure_threshold=settings.CACHE_BREAKER_FAILURE_THRESHOLD,
            reset_timeout=settings.CACHE_BREAKER_RESET_TIMEOUT,
            max_reset_timeout=settings.CACHE_BREAKER_MAX_RESET_TIMEOUT,
        )
        return cls(
            url=settings.REDIS_URL,
            enabled=settings.CACHE_ENABLED,
            connect_timeout=settings.CACHE_CONNECT_TIMEOUT,
            operation_timeout=settings.CACHE_OPERATION_TIMEOUT,
            breaker=breaker,
        )

    def _default_factory(self) -> Redis:
        return Redis.from_url(
            self.url,
            decode_responses=True,
            socket_connect_timeout=self.connect_timeout,
            socket_timeout=self.operation_timeout,
        )

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def get_client(self) -> Optional[Any]:
        """Получение клиента Redis или None, если кэш недоступен."""
        try:
            return await self._ensure_client()
        except CacheUnavailableError as e:
            logger.debug("Redis unavailable: %s", e)
            return None

    async def _ensure_client(self) -> Any:
        if not self.enabled:
            raise CacheUnavailableError("Cache disabled")
        if self._connected:
            return self._client
        if not self.breaker.allow_request():
            raise CacheUnavailableError("Circuit breaker open")

        async with self._lock:
            if self._connected:
                return self._client
            try:
                if self._client is None:
                    self._client = self._client_factory()
                await asyncio.wait_for(self._client.ping(), timeout=self.connect_timeout)
            except Exception as e:
                self.breaker.record_failure()
                logger.warning("Redis connection failed: %r", e)
                raise CacheUnavailableError(str(e) or type(e).__name__) from e
            except BaseException:
                # отменённая проверка считается неудачной
                self.breaker.record_failure()
                raise
            self._connected = True
            self.breaker.record_success()
            logger.info("Redis client connected url=%s", self.url)
            return self._client

    def report_failure(self, error: BaseException) -> None:
        """Ошибка соединения во время операции: переподключение через breaker."""
        if isinstance(error, CONNECTION_ERRORS):
            self._connected = False
            self.breaker.record_failure()

    async def check_health(self) -> Dict[str, Any]:
        """Ping Redis и замер задержки."""
        client = await self.get_client()
        if client is None:
            return {"connected": False, "error": "Redis client not available"}
        start = time.perf_counter()
        try:
            await asyncio.wait_for(client.ping(), timeout=self.operation_timeout)
        except Exception as e:
            self.report_failure(e)
            return {"connected": False, "error": str(e) or type(e).__name__}
        latency = (time.perf_counter() - start) * 1000
        return {"connected": True, "latency": round(latency, 2)}

    async def close(self) -> None:
        """Закрытие соединения (shutdown)."""
        if self._client is None:
            return
        try:
            await self._client.aclose()
            logger.info("Redis client disconnected")
        except Exception as e:
            logger.error("Error disconnecting Redis client: %s", e)
        finally:
            self._client = None
            self._connected = False
