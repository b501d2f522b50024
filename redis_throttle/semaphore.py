"""
Distributed Semaphore

A permit is acquired with BLPOP, which blocks until there is a token to pop
from the gate list, and released with LPUSH, which puts a token back.
"""

import logging
from typing import Optional

from .errors import ConfigurationError
from .store import AbstractStore, RedisStore

logger = logging.getLogger(__name__)


class Semaphore:
    """
    Semaphore shared through a Redis list.

    The gate is seeded lazily by whichever instance first swaps the init
    key to 1. Seeding pushes a single token, so only permits=1 (a mutex)
    behaves as a true semaphore.

    A holder that dies between acquire() and release() never returns its
    token, and every other participant waits forever.
    """

    def __init__(
        self,
        permits: Optional[int] = None,
        namespace: Optional[int] = None,
        gate_key: Optional[str] = None,
        init_key: Optional[str] = None,
        *,
        store: Optional[AbstractStore] = None,
    ) -> None:
        """
        Args:
            permits: Number of processes that may hold the semaphore at once
            namespace: Redis database where the keys are stored
            gate_key: Redis list holding the available tokens
            init_key: Redis key flagging that the gate has been seeded
            store: Shared store; a RedisStore from the environment if omitted

        Raises:
            ConfigurationError: If any of the above is missing
        """
        if permits is None:
            logger.warning('No permits given for Semaphore')
            raise ConfigurationError('No permits given for Semaphore')
        try:
            permits = int(permits)
        except (TypeError, ValueError) as e:
            logger.warning('Invalid permits for Semaphore: %r', permits)
            raise ConfigurationError(f'Invalid permits for Semaphore: {permits!r}') from e
        if permits < 1:
            logger.warning('Semaphore permits must be >= 1, got %s', permits)
            raise ConfigurationError(f'Semaphore permits must be >= 1, got {permits}')
        if namespace is None:
            logger.warning('No database set for Semaphore keys')
            raise ConfigurationError('No database set for Semaphore keys')
        try:
            namespace = int(namespace)
        except (TypeError, ValueError) as e:
            logger.warning('Invalid database for Semaphore keys: %r', namespace)
            raise ConfigurationError(f'Invalid database for Semaphore keys: {namespace!r}') from e
        if not gate_key:
            logger.warning('No Semaphore key defined')
            raise ConfigurationError('No Semaphore key defined')
        if not init_key:
            logger.warning('No Semaphore init key defined')
            raise ConfigurationError('No Semaphore init key defined')

        self._permits = permits
        self._namespace = namespace
        self._gate_key = gate_key
        self._init_key = init_key
        self.store = store if store is not None else RedisStore()

        # Number of releases this instance may still make
        self.outstanding_releases = permits
        self.initialized = False

    @property
    def permits(self) -> int:
        return self._permits

    @property
    def namespace(self) -> int:
        return self._namespace

    @property
    def gate_key(self) -> str:
        return self._gate_key

    @property
    def init_key(self) -> str:
        return self._init_key

    def initialize(self) -> None:
        """
        Seed the gate unless another instance already has.

        Runs once per instance; later calls return immediately.
        """
        if self.initialized:
            return

        previous = self.store.get_and_replace(self._namespace, self._init_key, 1)
        if previous is None or str(previous) != '1':
            logger.debug("Initializing Semaphore key '%s'", self._gate_key)
            self.store.list_push_left(self._namespace, self._gate_key, self._permits)

        self.initialized = True

    def acquire(self) -> str:
        """
        Block until a token can be popped from the gate.

        Returns:
            The popped token
        """
        self.initialize()

        logger.debug("Acquiring lock on key '%s'", self._gate_key)
        token = self.store.blocking_list_pop_left(self._namespace, self._gate_key, 0)
        logger.debug("Lock acquired (token=%r)", token)

        self.outstanding_releases -= 1
        return token

    def release(self) -> bool:
        """
        Push a token back onto the gate.

        Returns:
            False without pushing anything if this instance holds nothing,
            True otherwise
        """
        if self.outstanding_releases == self._permits:
            logger.warning(
                "Cannot release lock on key '%s'. Already released %s times",
                self._gate_key, self.outstanding_releases,
            )
            return False

        logger.debug("Releasing lock on key '%s'", self._gate_key)
        self.store.list_push_left(self._namespace, self._gate_key, 1)
        logger.debug('Semaphore released')

        self.outstanding_releases += 1
        return True

    def cleanup(self) -> None:
        """
        Delete the gate and init keys.

        Invalidates the semaphore for every holder; only call it when no
        process is using it. Any permit this instance held is forgotten, so a
        later release() does not push a stray token onto the new gate.
        """
        self.store.delete(self._namespace, self._gate_key, self._init_key)
        self.initialized = False
        self.outstanding_releases = self._permits

    def __enter__(self) -> 'Semaphore':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
