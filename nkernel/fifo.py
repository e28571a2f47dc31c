"""Thread FIFO queues, time-ordered queues and the circular kernel log."""

from __future__ import annotations

import threading
from collections import deque
from pathlib import Path
from typing import Any, Iterator


class FatalError(RuntimeError):
    """An unrecoverable inconsistency detected by the kernel."""


class ThreadQueue:
    """FIFO of threads. A thread records the queue it is in via its ``queue`` attribute."""

    def __init__(self) -> None:
        self._items: deque[Any] = deque()

    def put_back(self, th: Any) -> None:
        if th.queue is not None:
            raise FatalError("The thread was already in a queue")
        th.queue = self
        self._items.append(th)

    def put_front(self, th: Any) -> None:
        if th.queue is not None:
            raise FatalError("The thread was already in a queue")
        th.queue = self
        self._items.appendleft(th)

    def peek_front(self) -> Any | None:
        return self._items[0] if self._items else None

    def get_front(self) -> Any | None:
        if not self._items:
            return None
        th = self._items[0]
        if th.queue is not self:
            raise FatalError("Thread not in queue")
        self._items.popleft()
        th.queue = None
        return th

    def contains(self, th: Any) -> bool:
        return th.queue is self

    def remove(self, th: Any) -> bool:
        """Remove th; return False if it was not in this queue."""
        for pos, item in enumerate(self._items):
            if item is th:
                del self._items[pos]
                th.queue = None
                return True
        return False

    def empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))


class TimeQueue:
    """Threads ordered by ``wake_time``; ties keep arrival order."""

    def __init__(self) -> None:
        self._items: list[Any] = []

    def put(self, th: Any, wake_time: int) -> None:
        if th.time_queue is not None:
            raise FatalError("Thread already in a queue")
        th.time_queue = self
        pos = 0
        while pos < len(self._items) and self._items[pos].wake_time - wake_time < 0:
            pos += 1
        th.wake_time = wake_time
        self._items.insert(pos, th)

    def get(self) -> Any | None:
        if not self._items:
            return None
        th = self._items.pop(0)
        th.time_queue = None
        return th

    def next_time(self) -> int:
        """Wake time of the first thread, or 0 when empty."""
        return self._items[0].wake_time if self._items else 0

    def empty(self) -> bool:
        return not self._items

    def remove(self, th: Any) -> bool:
        """Remove th; return False if it was not found."""
        for pos, item in enumerate(self._items):
            if item is th:
                del self._items[pos]
                th.time_queue = None
                return True
            if item.wake_time - th.wake_time > 0:
                break
        return False

    def __len__(self) -> int:
        return len(self._items)


class KernelLog:
    """Circular text log that wraps when less than ``min_free`` bytes remain."""

    def __init__(self, size: int = 128 * 1024 * 1024, min_free: int = 8192) -> None:
        if size <= 0 or min_free < 0:
            raise ValueError("invalid log dimensions")
        self._size = size
        self._min_free = min_free
        self._buf = bytearray()
        self._idx = 0
        self._log_size = 0
        self._lock = threading.Lock()

    def write(self, text: str) -> None:
        data = text.encode("utf-8")
        if not data:
            raise ValueError("empty log entry")
        with self._lock:
            if self._size - self._idx < self._min_free:
                self._log_size = self._idx
                self._idx = 0
            data = data[: self._size - self._idx]
            end = self._idx + len(data)
            self._buf[self._idx:end] = data
            self._idx = end

    def contents(self) -> str:
        """Log text, oldest entries first."""
        with self._lock:
            older = bytes(self._buf[self._idx:self._log_size])
            newer = bytes(self._buf[: self._idx])
        return (older + newer).decode("utf-8", errors="replace")

    def dump(self, path: str | Path) -> None:
        Path(path).write_text(self.contents(), encoding="utf-8")