"""
Example Usage of Redis Throttle

This file shows how worker processes would share one API budget.
Run it from several terminals at once: together they never exceed
THROTTLE_RPM calls per minute.
"""

import logging

from redis_throttle import Throttle, ThrottleConfig


def fetch_page(page: int):
    """
    Example: the operation every worker must keep under the shared rate
    """
    # ... your actual API call here ...
    return {'page': page}


def run_worker(pages: int = 10):
    """
    Example: How a worker loop would use the throttle
    """
    throttle = Throttle(ThrottleConfig(rpm=120))

    for page in range(pages):
        # Blocks until the shared budget allows another call
        throttle.throttle()
        print(fetch_page(page))


def reset_shared_state():
    """
    Example: How a supervisor resets throttling between independent runs.
    Only call this while no worker is running.
    """
    Throttle(ThrottleConfig.from_env()).cleanup()


# Example usage scenarios:

# Scenario 1: One worker at rpm=120
# run_worker() → one call every 0.5 seconds

# Scenario 2: Three workers with the same keys at rpm=120
# → one call every 0.5 seconds across all three, not each

# Scenario 3: Decorating the operation instead of calling throttle()
# throttle = Throttle({'rpm': 60})
# fetch = throttle.throttled(fetch_page)

if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    run_worker()
