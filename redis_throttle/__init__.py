"""
Redis Throttle

Cross-process throttling: processes share one requests-per-minute budget
through Redis, serialized by a distributed mutex built on BLPOP/LPUSH.
"""

from .config import ThrottleConfig
from .errors import ConfigurationError, StoreUnavailableError, ThrottleError
from .semaphore import Semaphore
from .store import AbstractStore, RedisStore
from .throttle import Throttle

__all__ = [
    'AbstractStore',
    'ConfigurationError',
    'RedisStore',
    'Semaphore',
    'StoreUnavailableError',
    'Throttle',
    'ThrottleConfig',
    'ThrottleError',
]
