"""
Shared Store

The Redis primitives the semaphore and throttle are built on. Every call is
scoped to a namespace, which is the Redis database index.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis

from .config import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_SSL
from .errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class AbstractStore(ABC):
    """Atomic key/list primitives shared by every participating process."""

    @abstractmethod
    def get(self, ns: int, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, ns: int, key: str, value) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_and_replace(self, ns: int, key: str, value) -> Optional[str]:
        """Atomically store value and return the previous one (None if absent)."""
        raise NotImplementedError

    @abstractmethod
    def increment(self, ns: int, key: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete(self, ns: int, *keys: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_push_left(self, ns: int, key: str, value) -> None:
        raise NotImplementedError

    @abstractmethod
    def blocking_list_pop_left(self, ns: int, key: str, timeout: float = 0) -> Optional[str]:
        """
        Pop the leftmost element of key, waiting for one if the list is empty.

        A timeout of 0 waits forever. Returns None only when a non-zero
        timeout expires.
        """
        raise NotImplementedError


class RedisStore(AbstractStore):
    """
    Redis implementation of the store.

    Clients are created lazily, one per database, and reused for the
    lifetime of the store.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        password: Optional[str] = None,
        ssl: Optional[bool] = None,
    ) -> None:
        self.host = host or REDIS_HOST
        self.port = port or REDIS_PORT
        self.password = password if password is not None else REDIS_PASSWORD
        self.ssl = REDIS_SSL if ssl is None else ssl
        self._clients: Dict[int, redis.Redis] = {}

    def client(self, ns: int) -> redis.Redis:
        """
        Helper function to get the Redis client for a database.
        """
        if ns not in self._clients:
            logger.debug("Connecting to Redis %s:%s db=%s", self.host, self.port, ns)
            try:
                self._clients[ns] = redis.Redis(
                    host=self.host,
                    port=self.port,
                    db=ns,
                    password=self.password,
                    ssl=self.ssl,
                    decode_responses=True,
                )
            except redis.RedisError as e:
                raise StoreUnavailableError(f"Redis connection failed: {e}") from e
        return self._clients[ns]

    def _call(self, ns: int, command: str, *args, **kwargs):
        client = self.client(ns)
        try:
            return getattr(client, command)(*args, **kwargs)
        except redis.RedisError as e:
            logger.error("Redis %s failed on db %s: %s", command.upper(), ns, e)
            raise StoreUnavailableError(f"Redis {command.upper()} failed: {e}") from e

    def get(self, ns, key):
        return self._call(ns, 'get', key)

    def set(self, ns, key, value):
        return bool(self._call(ns, 'set', key, value))

    def get_and_replace(self, ns, key, value):
        return self._call(ns, 'getset', key, value)

    def increment(self, ns, key):
        return int(self._call(ns, 'incr', key))

    def delete(self, ns, *keys):
        if not keys:
            return
        logger.debug("Deleting keys %s from db %s", list(keys), ns)
        self._call(ns, 'delete', *keys)

    def list_push_left(self, ns, key, value):
        self._call(ns, 'lpush', key, value)

    def blocking_list_pop_left(self, ns, key, timeout=0):
        # BLPOP replies with (key, value), or None once a timeout expires
        reply = self._call(ns, 'blpop', [key], timeout=timeout)
        if reply is None:
            return None
        return reply[1]

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
        self._clients.clear()
