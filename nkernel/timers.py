"""Monotonic kernel clock and the service that wakes threads at programmed times."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable

from .fifo import TimeQueue

WakeFun = Callable[[Any], None]


class Clock:
    """Nanoseconds elapsed since the clock was created, never going backwards."""

    def __init__(self, source: Callable[[], int] | None = None) -> None:
        self._source = source if source is not None else time.time_ns
        self._lock = threading.Lock()
        self._start = self._source()
        self._last = 0

    def now_nanos(self) -> int:
        """Current time in nanoseconds; strictly increases if the source steps back."""
        with self._lock:
            now = self._source() - self._start
            if now < self._last:
                now = self._last + 1
            self._last = now
            return now

    def now_millis(self) -> int:
        """Current time in milliseconds."""
        return self.now_nanos() // 1_000_000


class TimerService:
    """Keeps threads ordered by wake time and releases them once they are due.

    Threads need the attributes ``time_queue``, ``wake_time`` and ``wake_up_fun``.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock if clock is not None else Clock()
        self._queue = TimeQueue()

    def program(self, th: Any, nanos: int, wake_fun: WakeFun | None = None) -> bool:
        """Program th to wake after nanos.

        Return False without programming anything when nanos <= 0: the caller
        must then make the thread ready at once.
        """
        if nanos <= 0:
            return False
        wake_time = self.clock.now_nanos() + nanos
        th.wake_up_fun = wake_fun
        self._queue.put(th, wake_time)
        return True

    def cancel(self, th: Any) -> bool:
        """Remove th from the timer; return False if it was not programmed.

        Callers should then collect :meth:`due` threads, as cancelling is a
        point where expired timers are serviced.
        """
        return self._queue.remove(th)

    def due(self) -> list[Any]:
        """Remove and return every thread whose wake time has come, in wake order.

        Each thread's wake-up function is called before it is returned.
        """
        now = self.clock.now_nanos()
        woken: list[Any] = []
        while not self._queue.empty() and self._queue.next_time() - now <= 0:
            th = self._queue.get()
            wake_fun = th.wake_up_fun
            if wake_fun is not None:
                wake_fun(th)
            woken.append(th)
        return woken

    def next_delay(self) -> int | None:
        """Nanoseconds until the next wake time, or None when nothing is programmed."""
        if self._queue.empty():
            return None
        return max(0, self._queue.next_time() - self.clock.now_nanos())

    def pending(self) -> int:
        """Number of threads still waiting on a timer."""
        return len(self._queue)