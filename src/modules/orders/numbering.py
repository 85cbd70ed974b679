"""Human-readable order number generation.

Numbers look like ``ORD202601150042``: prefix, UTC date and a random
4-digit suffix.  Each candidate is checked with the caller-supplied
``is_taken`` predicate, which runs inside the same unit of work as the
order insert.  When every attempt collides the generator falls back to a
timestamp down to the microsecond plus a process-wide monotonic counter,
so two fallbacks minted by one process can never be equal.  The unique
constraint on ``orders.order_number`` remains the final arbiter across
processes.
"""

from __future__ import annotations

import itertools
import random
import threading
from datetime import datetime
from typing import Callable, Optional

import structlog
from django.utils import timezone

from modules.orders.constants import ORDER_NUMBER_MAX_LENGTH

logger = structlog.get_logger(__name__)

_fallback_counter = itertools.count()
_fallback_lock = threading.Lock()

# YYYYmmddHHMMSS + microseconds + 3-digit sequence + 2 random digits
FALLBACK_BODY_LENGTH = 25


def _next_fallback_sequence() -> int:
    with _fallback_lock:
        return next(_fallback_counter) % 1000


class OrderNumberGenerator:
    def __init__(
        self,
        prefix: str = "ORD",
        max_attempts: int = 10,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if len(prefix) + FALLBACK_BODY_LENGTH > ORDER_NUMBER_MAX_LENGTH:
            raise ValueError(
                f"prefix must be at most "
                f"{ORDER_NUMBER_MAX_LENGTH - FALLBACK_BODY_LENGTH} characters."
            )
        self.prefix = prefix
        self.max_attempts = max_attempts
        self._clock = clock or timezone.now
        self._rng = rng or random.SystemRandom()

    def generate(self, is_taken: Callable[[str], bool]) -> str:
        """Return an order number for which ``is_taken`` answered ``False``.

        Falls back to a timestamp-based number after ``max_attempts``
        collisions.
        """
        now = self._clock()
        date_part = now.strftime("%Y%m%d")
        for _ in range(self.max_attempts):
            candidate = f"{self.prefix}{date_part}{self._rng.randint(1, 9999):04d}"
            if not is_taken(candidate):
                return candidate

        fallback = self.fallback(now)
        logger.warning(
            "order.number_fallback",
            attempts=self.max_attempts,
            order_number=fallback,
        )
        return fallback

    def fallback(self, now: Optional[datetime] = None) -> str:
        now = now or self._clock()
        return (
            f"{self.prefix}{now:%Y%m%d%H%M%S%f}"
            f"{_next_fallback_sequence():03d}{self._rng.randint(10, 99)}"
        )
