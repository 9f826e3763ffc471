# app/lib/retry.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Type, TypeVar

from app.config import config
from app.logger import get_logger

log = get_logger(__name__)
T = TypeVar("T")


class RetryExhausted(Exception):
    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    delay(n) = min(initial_delay * multiplier ** (n - 1), max_delay) is slept
    after failed attempt n, except after the last one. Exceptions listed in
    ``non_retryable`` are re-raised immediately.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 10.0
    non_retryable: Tuple[Type[BaseException], ...] = ()
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def delay_for(self, attempt: int) -> float:
        return min(self.initial_delay * (self.multiplier ** (attempt - 1)), self.max_delay)

    def schedule(self) -> List[float]:
        """Sleeps between attempts, e.g. [1.0, 2.0] for three attempts."""
        return [self.delay_for(a) for a in range(1, self.max_attempts)]

    def run(self, fn: Callable[[], T], *, label: str = "operation",
            on_retry: Optional[Callable[[int, BaseException], None]] = None) -> T:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn()
            except self.non_retryable:
                raise
            except Exception as e:
                last_error = e
                log.warning(f"{label} failed attempt {attempt}/{self.max_attempts}: {e}")
                if attempt < self.max_attempts:
                    if on_retry:
                        on_retry(attempt, e)
                    self.sleep(self.delay_for(attempt))
        raise RetryExhausted(self.max_attempts, last_error)


def persistence_policy(**overrides) -> RetryPolicy:
    """Policy for story record writes, from config."""
    params = dict(
        max_attempts=config.persist_max_attempts,
        initial_delay=config.persist_initial_delay,
        multiplier=config.persist_backoff_multiplier,
        max_delay=config.persist_max_delay,
        non_retryable=(KeyError, ValueError),
    )
    params.update(overrides)
    return RetryPolicy(**params)
