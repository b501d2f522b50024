"""
Shared fixtures: an in-memory store with a real blocking pop, and a fake clock.
"""

import threading
from collections import defaultdict, deque

import pytest

from redis_throttle.store import AbstractStore


class InMemoryStore(AbstractStore):
    """Thread-safe stand-in for Redis with the same string semantics."""

    def __init__(self):
        self.data = defaultdict(dict)
        self.cond = threading.Condition()

    def get(self, ns, key):
        with self.cond:
            value = self.data[ns].get(key)
            return value if not isinstance(value, deque) else None

    def set(self, ns, key, value):
        with self.cond:
            self.data[ns][key] = str(value)
            return True

    def get_and_replace(self, ns, key, value):
        with self.cond:
            previous = self.data[ns].get(key)
            self.data[ns][key] = str(value)
            return previous

    def increment(self, ns, key):
        with self.cond:
            value = int(self.data[ns].get(key) or 0) + 1
            self.data[ns][key] = str(value)
            return value

    def delete(self, ns, *keys):
        with self.cond:
            for key in keys:
                self.data[ns].pop(key, None)

    def list_push_left(self, ns, key, value):
        with self.cond:
            self.data[ns].setdefault(key, deque()).appendleft(str(value))
            self.cond.notify_all()

    def blocking_list_pop_left(self, ns, key, timeout=0):
        with self.cond:
            ready = self.cond.wait_for(
                lambda: bool(self.data[ns].get(key)),
                timeout=None if timeout == 0 else timeout,
            )
            if not ready:
                return None
            items = self.data[ns][key]
            value = items.popleft()
            if not items:
                del self.data[ns][key]
            return value

    def list_length(self, ns, key):
        with self.cond:
            return len(self.data[ns].get(key) or ())

    def snapshot(self):
        with self.cond:
            return {
                ns: {k: list(v) if isinstance(v, deque) else v for k, v in keys.items()}
                for ns, keys in self.data.items() if keys
            }


class FakeClock:
    """Clock whose sleep() advances time instead of waiting."""

    def __init__(self, now=1000.0):
        self.now = now
        self.slept = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.slept.append(seconds)
        self.now += seconds


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock()
