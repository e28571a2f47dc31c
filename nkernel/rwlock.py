"""Readers/writer lock for kernel threads, with optional writer timeouts."""

from __future__ import annotations

from typing import Any

from .fifo import FatalError, ThreadQueue
from .schedulers import State

_NANOS_PER_MILLI = 1_000_000


class RWLock:
    """Many readers or one writer.

    A waiting writer holds back readers that arrive after it. When a writer
    leaves, every pending reader is admitted before any pending writer.
    """

    def __init__(self, kernel: Any) -> None:
        self._kernel = kernel
        self.readers = 0
        self.writing = False
        self._pending_readers = ThreadQueue()
        self._pending_writers = ThreadQueue()

    @staticmethod
    def _drop_waiter(th: Any) -> None:
        """Timer expiry: take the writer out of the queue it waits in."""
        th.ptr.remove(th)
        th.ptr = None

    def enter_read(self, timeout: int = 0) -> bool:
        """Enter as a reader. Readers wait without limit; timeout is not used."""
        kernel = self._kernel
        with kernel.critical():
            if not self.writing and self._pending_writers.empty():
                self.readers += 1
            else:
                self._pending_readers.put_back(kernel.current())
                kernel.suspend(State.WAIT_RWLOCK)
                kernel.schedule()
        return True

    def enter_write(self, timeout: int = 0) -> bool:
        """Enter as the writer.

        With timeout > 0 (milliseconds) give up after that time and return
        False; otherwise wait without limit. Return True once inside.
        """
        kernel = self._kernel
        with kernel.critical():
            if self.readers == 0 and not self.writing:
                self.writing = True
                return True
            this = kernel.current()
            self._pending_writers.put_back(this)
            if timeout <= 0:
                kernel.suspend(State.WAIT_RWLOCK)
                kernel.schedule()
                return True
            kernel.suspend(State.WAIT_RWLOCK_TIMEOUT)
            this.ptr = self._pending_writers
            kernel.program_timer(timeout * _NANOS_PER_MILLI, self._drop_waiter)
            kernel.schedule()
            if this.ptr is None:
                return False
            this.ptr = None
            return True

    def _admit_writer(self) -> None:
        kernel = self._kernel
        th = self._pending_writers.get_front()
        if th.status is State.WAIT_RWLOCK_TIMEOUT:
            kernel.cancel_timer(th)
        self.writing = True
        kernel.set_ready(th)
        kernel.schedule()

    def exit_read(self) -> None:
        """Leave as a reader; the last reader out admits the next writer."""
        with self._kernel.critical():
            self.readers -= 1
            if self.readers == 0 and not self._pending_writers.empty():
                self._admit_writer()

    def exit_write(self) -> None:
        """Leave as the writer, admitting all pending readers or else one writer."""
        kernel = self._kernel
        with kernel.critical():
            self.writing = False
            if not self._pending_readers.empty():
                while not self._pending_readers.empty():
                    th = self._pending_readers.get_front()
                    self.readers += 1
                    kernel.set_ready(th)
                    kernel.schedule()
            elif not self._pending_writers.empty():
                self._admit_writer()

    def destroy(self) -> None:
        """Release the lock; threads still waiting are a fatal error."""
        if not self._pending_readers.empty() or not self._pending_writers.empty():
            raise FatalError("Destroying a queue with pending threads")