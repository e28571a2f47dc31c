"""Thread states and the ready-queue policies: FCFS, priorities and round robin."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Any, Iterable

from .fifo import FatalError, ThreadQueue

DEFAULT_MAX_PRI = 10


class State(enum.Enum):
    """Life-cycle states of a thread."""

    CREATED = "CREATED"
    READY = "READY"
    RUN = "RUN"
    ZOMBIE = "ZOMBIE"
    BURIED = "BURIED"
    WAIT_JOIN = "WAIT_JOIN"
    WAIT_SEM = "WAIT_SEM"
    WAIT_RWLOCK = "WAIT_RWLOCK"
    WAIT_RWLOCK_TIMEOUT = "WAIT_RWLOCK_TIMEOUT"
    WAIT_SLEEP = "WAIT_SLEEP"


_RUNNABLE = (State.READY, State.RUN)


class Scheduler(ABC):
    """Policy deciding which ready thread gets the processor.

    Threads need the attributes ``status`` and ``queue``.
    """

    def adopt(self, threads: Iterable[Any]) -> None:
        """Take over the threads already READY when this policy is installed."""
        for th in threads:
            if th.status is State.READY:
                self._enqueue(th)

    def set_ready(self, th: Any) -> None:
        """Make th ready to run."""
        if th.status in _RUNNABLE:
            raise FatalError("The thread was already in READY status")
        th.status = State.READY
        self._enqueue(th)

    def suspend(self, th: Any, state: State) -> None:
        """Move the running thread th to a wait state."""
        if th.status is not State.RUN:
            raise FatalError("Thread was not running")
        th.status = state

    @abstractmethod
    def next_thread(self, current: Any | None) -> Any | None:
        """Choose the thread to run; it is returned with status RUN.

        Return None when no thread can run.
        """

    @abstractmethod
    def stop(self) -> None:
        """Release the policy; pending ready threads are a fatal error."""

    @abstractmethod
    def _enqueue(self, th: Any) -> None:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class Fcfs1Scheduler(Scheduler):
    """Single-core first-come first-served scheduling."""

    def __init__(self) -> None:
        self._ready = ThreadQueue()

    def _enqueue(self, th: Any) -> None:
        self._ready.put_back(th)

    def next_thread(self, current: Any | None) -> Any | None:
        if current is not None:
            if current.status is State.RUN:
                return current
            if current.status is State.READY:
                self._ready.remove(current)
                current.status = State.RUN
                return current
        nxt = self._ready.get_front()
        if nxt is not None:
            nxt.status = State.RUN
        return nxt

    def stop(self) -> None:
        if not self._ready.empty():
            raise FatalError("Destroying a queue with pending threads")

    def __len__(self) -> int:
        return len(self._ready)


class Pri1Scheduler(Scheduler):
    """Single-core priority scheduling; a lower ``pri`` value runs first."""

    def __init__(self, max_pri: int = DEFAULT_MAX_PRI) -> None:
        if max_pri <= 0:
            raise ValueError("max_pri must be positive")
        self.max_pri = max_pri
        self._ready = [ThreadQueue() for _ in range(max_pri)]

    def _queue_for(self, th: Any) -> ThreadQueue:
        if not 0 <= th.pri < self.max_pri:
            raise ValueError(f"priority {th.pri} out of range 0..{self.max_pri - 1}")
        return self._ready[th.pri]

    def _enqueue(self, th: Any) -> None:
        self._queue_for(th).put_back(th)

    def suspend(self, th: Any, state: State) -> None:
        if th.status not in _RUNNABLE:
            raise FatalError("Thread was not ready or run")
        th.status = state

    def next_thread(self, current: Any | None) -> Any | None:
        if current is not None and current.status in _RUNNABLE:
            current.status = State.READY
            if current.queue is None:
                self._queue_for(current).put_back(current)
        for queue in self._ready:
            if not queue.empty():
                nxt = queue.get_front()
                nxt.status = State.RUN
                return nxt
        return None

    def stop(self) -> None:
        if any(not queue.empty() for queue in self._ready):
            raise FatalError("Destroying a queue with pending threads")

    def __len__(self) -> int:
        return sum(len(queue) for queue in self._ready)


class RoundRobinScheduler(Scheduler):
    """Round robin: each thread runs for at most one time slice before yielding.

    Threads additionally need the attribute ``slice_nanos``.
    """

    def __init__(self, slice_nanos: int) -> None:
        self.slice_nanos = slice_nanos
        self._ready = ThreadQueue()

    def adopt(self, threads: Iterable[Any]) -> None:
        for th in threads:
            if th.status is State.READY:
                th.slice_nanos = self.slice_nanos
                self._ready.put_back(th)
            elif th.status is State.RUN:
                th.slice_nanos = self.slice_nanos

    def set_slice(self, slice_nanos: int, threads: Iterable[Any]) -> None:
        """Change the slice and give every runnable thread a fresh one."""
        self.slice_nanos = slice_nanos
        for th in threads:
            if th.status in _RUNNABLE:
                th.slice_nanos = slice_nanos

    def charge(self, th: Any, elapsed_nanos: int) -> None:
        """Deduct processor time used by th from its remaining slice."""
        th.slice_nanos -= elapsed_nanos

    def _enqueue(self, th: Any) -> None:
        if getattr(th, "time_queue", None) is not None:
            raise FatalError("A thread waiting on a timer cannot be made ready")
        if th.slice_nanos > 0:
            self._ready.put_front(th)
        else:
            th.slice_nanos = self.slice_nanos
            self._ready.put_back(th)

    def next_thread(self, current: Any | None) -> Any | None:
        if current is not None and current.status in _RUNNABLE:
            if self._ready.contains(current):
                raise FatalError("Thread should not be in ready queue")
            if current.slice_nanos > 0:
                current.status = State.RUN
                return current
            current.slice_nanos = self.slice_nanos
            if self._ready.empty():
                current.status = State.RUN
                return current
            current.status = State.READY
            self._ready.put_back(current)
        nxt = self._ready.get_front()
        if nxt is not None:
            nxt.status = State.RUN
        return nxt

    def stop(self) -> None:
        if not self._ready.empty():
            raise FatalError("Destroying a queue with pending threads")

    def __len__(self) -> int:
        return len(self._ready)