"""
Per-actor key-value storage.

Values are opaque strings (callers store JSON). Production uses Redis,
tests and local tooling use the in-memory store.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Tuple

import redis
import structlog
from django.conf import settings

from apps.core.exceptions import RemoteServiceError

logger = structlog.get_logger(__name__)

# Receives the current value (None when missing) and returns
# (new value or None to delete, result handed back to the caller).
# May run more than once when a concurrent writer forces a retry.
Updater = Callable[[Optional[str]], Tuple[Optional[str], Any]]


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def update(self, key: str, func: Updater) -> Any:
        """Atomic read-modify-write of one key. Returns the updater's result."""
        pass


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store. Connection errors surface as RemoteServiceError."""

    def __init__(self, url: Optional[str] = None):
        self.client = redis.Redis.from_url(
            url or settings.PHARMACY_QUEUE_REDIS_URL,
            decode_responses=True,
        )

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as exc:
            logger.error("kv_read_failed", key=key, error=str(exc))
            raise RemoteServiceError(detail="Queue storage is unavailable")

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as exc:
            logger.error("kv_write_failed", key=key, error=str(exc))
            raise RemoteServiceError(detail="Queue storage is unavailable")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as exc:
            logger.error("kv_delete_failed", key=key, error=str(exc))
            raise RemoteServiceError(detail="Queue storage is unavailable")

    def update(self, key: str, func: Updater) -> Any:
        def apply(pipe):
            new_value, result = func(pipe.get(key))
            pipe.multi()
            if new_value is None:
                pipe.delete(key)
            else:
                pipe.set(key, new_value)
            return result

        try:
            # WATCH/MULTI/EXEC, retried by redis-py when the key changes underneath
            return self.client.transaction(apply, key, value_from_callable=True)
        except redis.RedisError as exc:
            logger.error("kv_update_failed", key=key, error=str(exc))
            raise RemoteServiceError(detail="Queue storage is unavailable")


class InMemoryKeyValueStore(KeyValueStore):

    def __init__(self):
        self.data = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def update(self, key: str, func: Updater) -> Any:
        with self._lock:
            new_value, result = func(self.get(key))
            if new_value is None:
                self.delete(key)
            else:
                self.set(key, new_value)
            return result
