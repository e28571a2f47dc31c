"""Counting semaphores for kernel threads."""

from __future__ import annotations

from typing import Any

from .fifo import FatalError, ThreadQueue
from .schedulers import State


class Semaphore:
    """Counting semaphore. Waiting threads are released in arrival order."""

    def __init__(self, kernel: Any, tickets: int = 0) -> None:
        if tickets < 0:
            raise ValueError("a semaphore cannot start with a negative count")
        self._kernel = kernel
        self.count = tickets
        self._queue = ThreadQueue()

    def wait(self) -> None:
        """Take a ticket, blocking the calling thread until one is available."""
        kernel = self._kernel
        with kernel.critical():
            if self.count > 0:
                self.count -= 1
            elif self.count == 0:
                self._queue.put_back(kernel.current())
                kernel.suspend(State.WAIT_SEM)
                kernel.schedule()
            else:
                raise FatalError("The semaphore has a negative count")

    def post(self) -> None:
        """Return a ticket, or hand it straight to the first waiting thread."""
        kernel = self._kernel
        with kernel.critical():
            if self._queue.empty():
                self.count += 1
            else:
                waiter = self._queue.get_front()
                kernel.set_ready(waiter)
                kernel.schedule()

    @property
    def waiting(self) -> int:
        """Number of threads blocked on the semaphore."""
        return len(self._queue)

    def destroy(self) -> None:
        """Release the semaphore; threads still waiting are a fatal error."""
        if not self._queue.empty():
            raise FatalError("Destroying a queue with pending threads")