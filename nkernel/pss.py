"""General purpose containers: hash map, FIFO queue, priority queues and sort."""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Generic, Iterator, MutableSequence, TypeVar

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")

_U32 = 0xFFFFFFFF


# ---------------------------------------------------------------------------
# Hashing helpers
# ---------------------------------------------------------------------------


def hash_ptr(obj: Any) -> int:
    """Hash an object by identity."""
    return (id(obj) // 16) & _U32


def pointer_equals(a: Any, b: Any) -> bool:
    """Identity comparison."""
    return a is b


def hash_string(text: str) -> int:
    """Hash a string with the multiply-by-5 scheme, as a 32-bit unsigned value."""
    total = 2
    for byte in text.encode("utf-8"):
        signed = byte - 256 if byte >= 128 else byte
        total = (total + signed) & _U32
        total = (total * 5) & _U32
    return total


def equals_strings(a: str, b: str) -> bool:
    """String equality."""
    return a == b


# ---------------------------------------------------------------------------
# Hash map with separate chaining
# ---------------------------------------------------------------------------


class HashMap(Generic[K, V]):
    """Fixed-capacity hash map with caller-supplied hash and equality."""

    def __init__(
        self,
        capacity: int,
        hash_fun: Callable[[K], int],
        equals: Callable[[K, K], bool],
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._hash = hash_fun
        self._equals = equals
        self._buckets: list[list[list[Any]]] = [[] for _ in range(capacity)]

    def _bucket(self, key: K) -> list[list[Any]]:
        return self._buckets[self._hash(key) % self._capacity]

    def _find(self, key: K) -> tuple[list[list[Any]], int]:
        bucket = self._bucket(key)
        for pos, entry in enumerate(bucket):
            if self._equals(key, entry[0]):
                return bucket, pos
        return bucket, -1

    def contains(self, key: K) -> bool:
        """Whether the key is present."""
        return self._find(key)[1] >= 0

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def query(self, key: K) -> V | None:
        """Value stored under key, or None."""
        bucket, pos = self._find(key)
        return bucket[pos][1] if pos >= 0 else None

    def define(self, key: K, val: V) -> bool:
        """Store val under key; return True if an existing entry was replaced."""
        bucket, pos = self._find(key)
        if pos >= 0:
            bucket[pos][1] = val
            return True
        bucket.insert(0, [key, val])
        return False

    def delete(self, key: K) -> V | None:
        """Remove key and return its value, or None when absent."""
        bucket, pos = self._find(key)
        if pos < 0:
            return None
        return bucket.pop(pos)[1]

    def __iter__(self) -> Iterator[tuple[K, V]]:
        for bucket in self._buckets:
            for key, val in list(bucket):
                yield key, val

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets)


# ---------------------------------------------------------------------------
# FIFO queue
# ---------------------------------------------------------------------------


class Queue(Generic[T]):
    """Unbounded FIFO queue; get and peek return None when empty."""

    def __init__(self) -> None:
        self._items: deque[T] = deque()

    def put(self, item: T) -> None:
        self._items.append(item)

    def get(self) -> T | None:
        return self._items.popleft() if self._items else None

    def peek(self) -> T | None:
        return self._items[0] if self._items else None

    def empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Priority queues
# ---------------------------------------------------------------------------


class FullPriQueue(Generic[T]):
    """Binary heap whose top is the element that compares greatest."""

    def __init__(self, compare: Callable[[T, T], int], initial_size: int = 16) -> None:
        if initial_size <= 0:
            raise ValueError("initial_size must be positive")
        self._compare = compare
        self._items: list[T] = []

    def _shift_up(self, i: int) -> None:
        items, compare = self._items, self._compare
        while i > 0:
            parent = (i - 1) // 2
            if compare(items[parent], items[i]) >= 0:
                break
            items[parent], items[i] = items[i], items[parent]
            i = parent

    def _shift_down(self, i: int) -> None:
        items, compare = self._items, self._compare
        last = len(items) - 1
        while True:
            best = i
            left, right = 2 * i + 1, 2 * i + 2
            if left <= last and compare(items[left], items[best]) > 0:
                best = left
            if right <= last and compare(items[right], items[best]) > 0:
                best = right
            if best == i:
                return
            items[i], items[best] = items[best], items[i]
            i = best

    def put(self, elem: T) -> None:
        self._items.append(elem)
        self._shift_up(len(self._items) - 1)

    def get(self) -> T:
        """Remove and return the top element; IndexError when empty."""
        if not self._items:
            raise IndexError("get from an empty priority queue")
        items = self._items
        result = items[0]
        tail = items.pop()
        if items:
            items[0] = tail
            self._shift_down(0)
        return result

    def peek(self) -> T | None:
        return self._items[0] if self._items else None

    def empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)


def _lower_priority_first(a: tuple[float, Any], b: tuple[float, Any]) -> int:
    cmp = b[0] - a[0]
    return 1 if cmp > 0 else (-1 if cmp < 0 else 0)


class PriQueue(Generic[T]):
    """Priority queue that yields the element with the smallest priority first."""

    def __init__(self) -> None:
        self._heap: FullPriQueue[tuple[float, T]] = FullPriQueue(
            _lower_priority_first, 16
        )

    def put(self, elem: T, pri: float) -> None:
        self._heap.put((pri, elem))

    def get(self) -> T | None:
        if self._heap.empty():
            return None
        return self._heap.get()[1]

    def peek(self) -> T | None:
        top = self._heap.peek()
        return None if top is None else top[1]

    def best(self) -> float:
        """Smallest priority in the queue, or 0 when empty."""
        top = self._heap.peek()
        return 0 if top is None else top[0]

    def empty(self) -> bool:
        return self._heap.empty()

    def __len__(self) -> int:
        return len(self._heap)


# ---------------------------------------------------------------------------
# Generic quicksort
# ---------------------------------------------------------------------------


def sort(
    seq: MutableSequence[Any] | Any,
    left: int,
    right: int,
    compare: Callable[[Any, int, int], int],
    swap: Callable[[Any, int, int], None],
) -> None:
    """Sort positions left..right of seq in place using index-based callbacks."""
    while left < right:
        swap(seq, left, (left + right) // 2)
        last = left
        for i in range(left + 1, right + 1):
            if compare(seq, i, left) < 0:
                last += 1
                swap(seq, last, i)
        swap(seq, left, last)
        # Recurse on the smaller side, loop on the larger one.
        if last - left < right - last:
            sort(seq, left, last - 1, compare, swap)
            left = last + 1
        else:
            sort(seq, last + 1, right, compare, swap)
            right = last - 1