import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicTask(threading.Thread):
    """
    Daemon thread that calls ``func`` every ``interval`` seconds until stopped.
    With ``run_immediately`` the first call happens as soon as the thread starts.
    """

    def __init__(self, name: str, func: Callable[[], object], interval: float, run_immediately: bool = False):
        super().__init__(name=name, daemon=True)
        self.func = func
        self.interval = interval
        self.run_immediately = run_immediately
        self._stopped = threading.Event()

    def run(self):
        if self.run_immediately:
            self._tick()
        while not self._stopped.wait(self.interval):
            self._tick()

    def _tick(self):
        try:
            self.func()
        except Exception:
            # A failed pass must not kill the loop; the next tick retries.
            logger.exception("Periodic task %s failed", self.name)

    def stop(self, timeout: float = 5.0):
        self._stopped.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()
