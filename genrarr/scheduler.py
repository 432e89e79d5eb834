"""
Background scheduler for Genrarr tasks.

Runs one task on a fixed interval in a daemon thread. At most one run of the
task is in flight at a time: overlapping requests are refused and logged.
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from tasks.base import CancellationToken, IntervalTrigger, ScheduledTask, TaskCancelledError

logger = logging.getLogger('genrarr')


def _ignore_progress(_value: float) -> None:
    pass


class TaskScheduler:
    def __init__(
        self,
        task: ScheduledTask,
        trigger: Optional[IntervalTrigger] = None,
        progress: Optional[Callable[[float], None]] = None,
        on_result: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self.task = task
        self.trigger = trigger or task.get_default_triggers()[0]
        self.progress = progress or _ignore_progress
        self.on_result = on_result

        self._run_lock = threading.Lock()
        self._token: Optional[CancellationToken] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.next_run_at: Optional[datetime] = None
        self.last_run_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def run_now(self) -> Any:
        """
        Run the task in the calling thread unless a run is already in flight.

        Returns:
            The task result, or None if the run was refused or cancelled.

        Raises:
            Any exception the task propagates other than cancellation.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning(f"'{self.task.name}' is already running; skipping this trigger.")
            return None

        token = CancellationToken()
        self._token = token
        started = time.monotonic()
        try:
            self.last_run_at = datetime.now()
            result = self.task.execute(self.progress, token)
        except TaskCancelledError:
            logger.info(f"'{self.task.name}' was cancelled.")
            return None
        finally:
            self._token = None
            self._run_lock.release()
            logger.debug(f"'{self.task.name}' ran for {time.monotonic() - started:.1f}s")

        if self.on_result:
            self.on_result(result)
        return result

    def cancel(self) -> None:
        """Ask the running task, if any, to stop at its next safe point."""
        token = self._token
        if token is not None:
            token.cancel()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_now()
            except Exception as e:  # noqa: BLE001
                logger.error(f"'{self.task.name}' failed: {e}")

            self.next_run_at = datetime.now() + timedelta(seconds=self.trigger.seconds)
            logger.info(f"Next run of '{self.task.name}' at {self.next_run_at:%Y-%m-%d %H:%M:%S}")
            if self._stop.wait(self.trigger.seconds):
                break

    def start(self) -> None:
        """Start the interval loop; the first run happens immediately."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=f"task-{self.task.key}", daemon=True)
        self._thread.start()
        logger.info(f"Scheduled '{self.task.name}' every {self.trigger.interval}.")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the loop and cancel a run in progress."""
        self._stop.set()
        self.cancel()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def wait(self) -> None:
        """Block until the loop stops."""
        while self._thread and self._thread.is_alive():
            self._thread.join(0.5)
