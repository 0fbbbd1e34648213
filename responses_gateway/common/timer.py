"""
Timer Module

Measures wall-clock time of gateway loops and provider calls.
"""

import time
from typing import Optional


class Timer:
    """
    Monotonic Timer

    Used by the gateway loops to check elapsed time once per iteration and by
    the provider client to report call latency.

    Example:
        timer = Timer().start()
        # ... run one iteration ...
        if timer.exceeded(60000):
            ...
    """

    def __init__(self):
        self._start_time: Optional[float] = None
        self._first_byte_time: Optional[float] = None

    def start(self) -> "Timer":
        """
        Start timing

        Returns:
            Timer: Returns self for chaining
        """
        self._start_time = time.perf_counter()
        self._first_byte_time = None
        return self

    def mark_first_byte(self) -> "Timer":
        """Record the first response byte; later calls are ignored."""
        if self._first_byte_time is None:
            self._first_byte_time = time.perf_counter()
        return self

    @property
    def elapsed_ms(self) -> int:
        """Milliseconds since start(), 0 if not started."""
        if self._start_time is None:
            return 0
        return int((time.perf_counter() - self._start_time) * 1000)

    @property
    def first_byte_delay_ms(self) -> Optional[int]:
        if self._start_time is None or self._first_byte_time is None:
            return None
        return int((self._first_byte_time - self._start_time) * 1000)

    def exceeded(self, limit_ms: int) -> bool:
        """
        Check whether more than limit_ms has elapsed

        Args:
            limit_ms: Allowed duration in milliseconds, 0 or less allows none

        Returns:
            bool: True once the elapsed time is strictly greater than the limit
        """
        if limit_ms <= 0:
            return True
        return self.elapsed_ms > limit_ms
