"""
Distributed Throttle

Every process that builds a Throttle over the same keys shares one
requests-per-minute budget. throttle() blocks until enough time has passed
since the last call recorded by any of them.

Example:
    t = Throttle(ThrottleConfig(rpm=60))
    for item in items:
        t.throttle()
        call_rate_limited_api(item)
"""

import functools
import logging
import time
from typing import Any, Callable, Mapping, Optional, Union

from .config import ThrottleConfig
from .semaphore import Semaphore
from .store import AbstractStore, RedisStore

logger = logging.getLogger(__name__)


class Throttle:
    """Cross-process rate limiter guarded by a Redis mutex."""

    def __init__(
        self,
        config: Union[ThrottleConfig, Mapping[str, Any]],
        *,
        store: Optional[AbstractStore] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            config: ThrottleConfig, or a mapping of its option names
            store: Shared store; a RedisStore from the environment if omitted
            clock: Time source returning UNIX time in seconds
            sleep: Function used to wait between calls

        Raises:
            ConfigurationError: If "rpm" is missing or an option is invalid
        """
        if not isinstance(config, ThrottleConfig):
            config = ThrottleConfig.from_options(config)

        self.config = config
        self.store = store if store is not None else RedisStore()
        self._clock = clock
        self._sleep = sleep

        self._semaphore = Semaphore(
            permits=1,
            namespace=config.redis_db,
            gate_key=config.mutex_key,
            init_key=config.mutex_key_init,
            store=self.store,
        )

        # Used as the last call time until some process records one
        self._timer = clock()

    @property
    def rpm(self) -> float:
        return self.config.rpm

    @property
    def count_key(self) -> str:
        return self.config.count_key

    @property
    def timer_key(self) -> str:
        return self.config.timer_key

    @property
    def redis_db(self) -> int:
        return self.config.redis_db

    @property
    def reset_threshold(self) -> int:
        return self.config.reset_threshold

    @property
    def mutex_key(self) -> str:
        return self.config.mutex_key

    @property
    def mutex_key_init(self) -> str:
        return self.config.mutex_key_init

    @property
    def timer(self) -> float:
        return self._timer

    @property
    def semaphore(self) -> Semaphore:
        return self._semaphore

    @property
    def interval(self) -> float:
        """Minimum number of seconds between two calls."""
        return 60 / self.config.rpm

    def throttle(self) -> None:
        """
        Call before the operation you want throttled.

        Sleeps, while holding the mutex, until at least one interval has
        passed since the last call recorded in Redis.
        """
        db = self.config.redis_db
        count_key = self.config.count_key
        timer_key = self.config.timer_key

        self._semaphore.acquire()
        try:
            count = int(self.store.get(db, count_key) or 0)
            last_call = self.store.get(db, timer_key)
            last_call = float(last_call) if last_call else self._timer
            interval = self.interval
            window = self._clock() - last_call

            if count >= self.config.reset_threshold * self.config.rpm:
                self.store.set(db, count_key, 0)
                logger.debug('Resetting counter')

            logger.debug("Calls made: %s", count)
            logger.debug("Window since last operation: %s", window)

            if window < interval:
                sleep_time = interval - window
                logger.debug("Throttling for %s seconds", sleep_time)
                self._sleep(sleep_time)

            self.store.increment(db, count_key)
            self.store.set(db, timer_key, self._clock())
        finally:
            self._semaphore.release()

    def throttled(self, func: Callable) -> Callable:
        """
        Decorator calling throttle() before every call to func.
        """
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            self.throttle()
            return func(*args, **kwargs)
        return wrapper

    def cleanup(self) -> None:
        """
        Delete the mutex, counter and timer keys from a previous run.

        Resets throttling for every participant; only call it when no other
        process is throttling.
        """
        self._semaphore.cleanup()
        self.store.delete(self.config.redis_db, self.config.count_key, self.config.timer_key)
