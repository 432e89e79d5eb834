"""
Base classes for Genrarr scheduled tasks.
Provides the task contract, triggers, and cooperative cancellation.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, List, Optional

from genrarr.config import DEFAULT_INTERVAL_HOURS

# Progress sink: receives completion percentages in [0, 100]
ProgressCallback = Callable[[float], None]


class TaskCancelledError(Exception):
    """Raised when a running task observes a cancellation request."""
    pass


class CancellationToken:
    """
    Cooperative cancellation flag shared between a task and its caller.

    The task checks the token at its own safe points; nothing is interrupted.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TaskCancelledError("Task was cancelled")


@dataclass(frozen=True)
class IntervalTrigger:
    """Run a task repeatedly with a fixed delay between runs."""

    interval: timedelta = timedelta(hours=DEFAULT_INTERVAL_HOURS)

    @classmethod
    def every(cls, hours: float) -> 'IntervalTrigger':
        if hours <= 0:
            raise ValueError(f"Interval must be positive, got {hours} hours")
        return cls(interval=timedelta(hours=hours))

    @property
    def seconds(self) -> float:
        return self.interval.total_seconds()


def _ignore_progress(_value: float) -> None:
    pass


class ScheduledTask(ABC):
    """
    Abstract base class for tasks the host schedules.

    Subclasses must define the identity attributes and implement execute().
    """

    name: str = None         # Display name
    key: str = None          # Stable identifier
    description: str = None
    category: str = None

    def get_default_triggers(self) -> List[IntervalTrigger]:
        """Triggers used when the host has no saved schedule for this task."""
        return [IntervalTrigger()]

    def run(self, progress: Optional[ProgressCallback] = None,
            cancellation_token: Optional[CancellationToken] = None) -> Any:
        """Execute with no-op defaults for the progress sink and token."""
        return self.execute(progress or _ignore_progress, cancellation_token or CancellationToken())

    @abstractmethod
    def execute(self, progress: ProgressCallback, cancellation_token: CancellationToken) -> Any:
        """
        Run the task once.

        Args:
            progress: Called with completion percentages in [0, 100]
            cancellation_token: Checked at the task's safe points

        Raises:
            TaskCancelledError: If cancellation was requested
        """
