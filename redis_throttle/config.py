import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
load_dotenv()

from .errors import ConfigurationError

"""
Throttle Configuration

Redis connection settings come from the environment (or a .env file).
Throttle options carry the documented defaults below.
"""

REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
REDIS_PASSWORD = os.getenv('REDIS_PASSWORD')
REDIS_SSL = os.getenv('REDIS_SSL', 'false').lower() in ('1', 'true', 'yes')

# Throttle defaults: {option: default}
DEFAULT_COUNT_KEY = 't:count'
DEFAULT_TIMER_KEY = 't:timer'
DEFAULT_REDIS_DB = 0
DEFAULT_RESET_THRESHOLD = 1000000
DEFAULT_MUTEX_KEY = 's:mutex'
DEFAULT_MUTEX_KEY_INIT = 's:mutex_init'

# Environment variable for each ThrottleConfig field
THROTTLE_ENV = {
    'rpm': 'THROTTLE_RPM',
    'count_key': 'THROTTLE_COUNT_KEY',
    'timer_key': 'THROTTLE_TIMER_KEY',
    'redis_db': 'THROTTLE_REDIS_DB',
    'reset_threshold': 'THROTTLE_RESET_THRESHOLD',
    'mutex_key': 'THROTTLE_MUTEX_KEY',
    'mutex_key_init': 'THROTTLE_MUTEX_KEY_INIT',
}


@dataclass(frozen=True)
class ThrottleConfig:
    """
    Options for a Throttle.

    Attributes:
        rpm: Requests per minute shared by every participant (required)
        count_key: Redis key holding the total number of calls made
        timer_key: Redis key holding the time of the last call
        redis_db: Redis database where all keys are stored
        reset_threshold: Counter resets to 0 once it reaches reset_threshold * rpm
        mutex_key: Redis list used as the mutex gate
        mutex_key_init: Redis key flagging that the mutex has been seeded
    """

    rpm: Optional[float] = None
    count_key: str = DEFAULT_COUNT_KEY
    timer_key: str = DEFAULT_TIMER_KEY
    redis_db: int = DEFAULT_REDIS_DB
    reset_threshold: int = DEFAULT_RESET_THRESHOLD
    mutex_key: str = DEFAULT_MUTEX_KEY
    mutex_key_init: str = DEFAULT_MUTEX_KEY_INIT

    def __post_init__(self) -> None:
        if self.rpm is None or self.rpm == '':
            raise ConfigurationError('"rpm" not defined')
        for name, cast in (('rpm', float), ('redis_db', int), ('reset_threshold', int)):
            value = getattr(self, name)
            try:
                # Frozen, so the coerced value is stored with object.__setattr__
                object.__setattr__(self, name, cast(value))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f'Invalid value for "{name}": {value!r}') from e
        if not self.rpm:
            raise ConfigurationError('"rpm" not defined')
        if self.rpm < 0:
            raise ConfigurationError(f'"rpm" must be positive, got {self.rpm}')
        if self.redis_db < 0:
            raise ConfigurationError(f'"redis_db" must be >= 0, got {self.redis_db}')
        if self.reset_threshold < 1:
            raise ConfigurationError('"reset_threshold" must be >= 1')
        for name in ('count_key', 'timer_key', 'mutex_key', 'mutex_key_init'):
            if not getattr(self, name):
                raise ConfigurationError(f'"{name}" must not be empty')

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> 'ThrottleConfig':
        """
        Build a config from a plain mapping of option names.

        Unknown options raise ConfigurationError instead of being ignored.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError(f"Unknown throttle options: {', '.join(sorted(unknown))}")
        return cls(**options)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ThrottleConfig':
        """
        Build a config from THROTTLE_* environment variables.
        """
        environ = os.environ if environ is None else environ
        options: dict = {}
        for name, variable in THROTTLE_ENV.items():
            raw = environ.get(variable)
            if raw is None or raw == '':
                continue
            try:
                if name == 'rpm':
                    options[name] = float(raw)
                elif name in ('redis_db', 'reset_threshold'):
                    options[name] = int(raw)
                else:
                    options[name] = raw
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {variable}: {raw!r}") from e
        return cls(**options)
