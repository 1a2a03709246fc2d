# core/debounce.py
import threading
from typing import Any, Callable, Optional

DEFAULT_WAIT = 0.3


class Debouncer:
    """
    Coalesce rapid calls into one: each call replaces the pending one and
    `func` runs with the most recent arguments once `wait` seconds pass
    without another call.
    """

    def __init__(self, func: Callable[..., Any], wait: float = DEFAULT_WAIT):
        self.func = func
        self.wait = wait
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple] = None

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            timer = threading.Timer(self.wait, self._fire)
            timer.args = (timer,)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self, timer: Optional[threading.Timer] = None) -> None:
        with self._lock:
            # a timer re-armed while this one waited on the lock is not ours to run
            if timer is not None and timer is not self._timer:
                return
            pending, self._pending = self._pending, None
            self._timer = None
        if pending is not None:
            args, kwargs = pending
            self.func(*args, **kwargs)

    def flush(self) -> None:
        """Run the pending call now, if there is one."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None
