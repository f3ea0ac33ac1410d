"""Deadline-bound polling used by every matcher.

The evaluator is the only place in the package that sleeps. Callers hand it
a step that performs one fresh resolution and returns an :class:`Outcome`.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Protocol, Tuple, Type

from .errors import ElementNotReady
from .results import Outcome

log = logging.getLogger(__name__)

Step = Callable[[], Outcome]


class RetryEvaluator(Protocol):
    def clock(self) -> float: ...

    def retry(self, deadline: float, step: Step) -> Outcome: ...


class PollingRetryEvaluator:
    """Re-run ``step`` until it is satisfied or ``deadline`` seconds pass."""

    def __init__(
        self,
        interval: float = 0.05,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        transient: Tuple[Type[BaseException], ...] = (ElementNotReady,),
    ) -> None:
        self.interval = interval
        self.transient = transient
        self._clock = clock
        self._sleep = sleep

    def clock(self) -> float:
        return self._clock()

    def retry(self, deadline: float, step: Step) -> Outcome:
        start = self._clock()
        attempt = 0
        while True:
            attempt += 1
            try:
                outcome = step()
            except self.transient as exc:
                elapsed = self._clock() - start
                if elapsed >= deadline:
                    log.warning("Giving up after %d attempt(s) in %.2fs: %s", attempt, elapsed, exc)
                    raise
                log.debug("Attempt %d hit a transient error, retrying: %s", attempt, exc)
            else:
                if outcome.attempt != attempt:
                    outcome = dataclasses.replace(outcome, attempt=attempt)
                if outcome.satisfied:
                    log.debug("Satisfied on attempt %d", attempt)
                    return outcome
                elapsed = self._clock() - start
                if elapsed >= deadline:
                    log.debug("Not satisfied after %d attempt(s) in %.2fs", attempt, elapsed)
                    return outcome
            self._sleep(min(self.interval, deadline - elapsed))


class Budget:
    """Remaining time shared by the sub-checks of one aggregate call."""

    def __init__(self, total: float, clock: Callable[[], float]) -> None:
        self.total = total
        self._clock = clock
        self._started = clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        return max(0.0, self.total - self.elapsed())
