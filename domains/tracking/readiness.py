"""
Readiness gate for host subsystems.

The host initializes its account client and inventory manager on its own
schedule. The gate polls each condition, runs its setup action the first
time the condition holds, and sleeps between passes until everything is
ready or the stop event is set.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from loguru import logger


@dataclass
class ReadinessCondition:
    """Named precondition plus the one-time action it unlocks."""

    name: str
    predicate: Callable[[], bool]
    action: Callable[[], None]


class ReadinessGate:
    """Polls readiness conditions with sleep-based retry."""

    def __init__(self, interval: float = 5.0, stop_event: Optional[threading.Event] = None):
        """
        Initialize readiness gate.

        Args:
            interval: Seconds to wait between unsatisfied passes
            stop_event: Event that cancels the wait when set
        """
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self._satisfied: set[str] = set()
        # bumped by reset(); actions that straddle a reset do not count
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def satisfied(self) -> list[str]:
        """Names of conditions satisfied in the current session."""
        with self._lock:
            return sorted(self._satisfied)

    def is_satisfied(self, name: str) -> bool:
        with self._lock:
            return name in self._satisfied

    def reset(self):
        """Forget every satisfied condition so the next pass re-runs all actions."""
        with self._lock:
            self._satisfied.clear()
            self._generation += 1
        logger.info("Readiness flags cleared")

    def run_pass(self, conditions: Iterable[ReadinessCondition]) -> bool:
        """
        Evaluate every unsatisfied condition once.

        Returns:
            True if all conditions are satisfied after the pass
        """
        all_ready = True

        for condition in conditions:
            with self._lock:
                if condition.name in self._satisfied:
                    continue
                generation = self._generation

            try:
                ready = bool(condition.predicate())
            except Exception as e:
                logger.debug(f"Readiness check '{condition.name}' raised: {e}")
                ready = False

            if not ready:
                all_ready = False
                continue

            try:
                condition.action()
            except Exception as e:
                logger.error(f"Readiness action '{condition.name}' failed: {e}")
                all_ready = False
                continue

            with self._lock:
                stale = generation != self._generation
                if not stale:
                    self._satisfied.add(condition.name)

            if stale:
                logger.info(f"Readiness reset while '{condition.name}' ran, retrying")
                all_ready = False
                continue
            logger.success(f"Condition ready: {condition.name}")

        return all_ready

    def await_all(self, conditions: Iterable[ReadinessCondition]) -> bool:
        """
        Block until every condition is satisfied.

        Returns:
            True once all conditions hold, False if cancelled by the stop event
        """
        conditions = list(conditions)

        while not self.stop_event.is_set():
            if self.run_pass(conditions):
                logger.success("All readiness conditions satisfied")
                return True

            pending = [c.name for c in conditions if not self.is_satisfied(c.name)]
            logger.info(f"Waiting for host to load: {', '.join(pending)}")

            if self.stop_event.wait(self.interval):
                break

        logger.info("Readiness wait cancelled")
        return False
