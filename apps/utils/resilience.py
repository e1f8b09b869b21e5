import functools
import logging

from django.core.cache import cache

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """
    Cache-backed circuit breaker shared by all workers.

    After `failure_threshold` failures of the listed exception types inside
    `window` seconds the circuit opens for `recovery_timeout` seconds and every
    call fails fast with `open_exception`.
    """

    def __init__(self, service_name, open_exception, failure_threshold=5,
                 recovery_timeout=60, window=120, failure_types=(Exception,)):
        self.service_name = service_name
        self.open_exception = open_exception
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.window = window
        self.failure_types = failure_types
        self.cache_key_failures = f"cb_failures:{service_name}"
        self.cache_key_open = f"cb_open:{service_name}"

    def is_open(self):
        return bool(cache.get(self.cache_key_open))

    def record_failure(self):
        # add() is a no-op when the counter already exists, so the window
        # starts at the first failure.
        cache.add(self.cache_key_failures, 0, timeout=self.window)
        try:
            failures = cache.incr(self.cache_key_failures)
        except ValueError:
            # Counter expired between add() and incr()
            cache.set(self.cache_key_failures, 1, timeout=self.window)
            failures = 1

        if failures >= self.failure_threshold:
            logger.warning(
                "Circuit for %s opened after %s failures", self.service_name, failures
            )
            cache.set(self.cache_key_open, "OPEN", timeout=self.recovery_timeout)
            cache.delete(self.cache_key_failures)

    def reset(self):
        cache.delete_many([self.cache_key_failures, self.cache_key_open])

    def __call__(self, func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if self.is_open():
                raise self.open_exception(
                    f"{self.service_name} is temporarily unavailable. Please try again later."
                )

            try:
                return func(*args, **kwargs)
            except self.failure_types:
                self.record_failure()
                raise

        return wrapper
