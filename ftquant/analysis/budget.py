"""Cooperative cancellation and wall-clock limits for long computations.

Hot loops call `WorkBudget.tick()` once per unit of work. Every
``check_interval`` ticks the budget looks at the cancellation token and the
deadline and raises `Cancelled` or `AnalysisLimitExceeded`. Callers that hold
a partial result catch the exception, attach the partial, and re-raise.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from ftquant.errors import AnalysisLimitExceeded, Cancelled


class CancellationToken:
    """Thread-safe flag the caller sets to stop an analysis run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class WorkBudget:
    """Counts work steps and enforces cancellation and the time limit.

    Args:
        token: Optional cancellation token shared with the caller.
        time_limit: Seconds allowed from construction (None for no limit).
        check_interval: Ticks between checks.
        clock: Monotonic clock; injectable for tests.
    """

    def __init__(
        self,
        token: Optional[CancellationToken] = None,
        time_limit: Optional[float] = None,
        check_interval: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.token = token
        self.time_limit = time_limit
        self.check_interval = check_interval
        self._clock = clock
        self._start = clock()
        self._steps = 0
        self._lock = threading.Lock()

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def elapsed(self) -> float:
        return self._clock() - self._start

    def tick(self, amount: int = 1) -> None:
        """Record work and check limits at bounded intervals."""
        with self._lock:
            before = self._steps
            self._steps += amount
            crossed = before // self.check_interval != self._steps // self.check_interval
        if crossed:
            self.check()

    def check(self) -> None:
        """Raise if cancelled or past the deadline.

        Raises:
            Cancelled: If the token was cancelled.
            AnalysisLimitExceeded: If the time limit has passed.
        """
        if self.token is not None and self.token.cancelled:
            raise Cancelled("Analysis cancelled by caller.")
        if self.time_limit is not None and self.elapsed > self.time_limit:
            raise AnalysisLimitExceeded(
                f"Time limit of {self.time_limit:g} s exceeded after {self._steps} steps.",
                limit="time_limit",
            )
