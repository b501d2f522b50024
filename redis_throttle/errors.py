"""
Throttle Errors
"""


class ThrottleError(Exception):
    """Base class for every error raised by redis_throttle."""


class ConfigurationError(ThrottleError, ValueError):
    """A required option is missing or invalid. No instance is created."""


class StoreUnavailableError(ThrottleError):
    """
    A Redis command failed.

    Chained to the redis.RedisError that caused it. Nothing is retried: the
    call that hit it fails.
    """
