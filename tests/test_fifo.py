from dataclasses import dataclass
from typing import Any

import pytest

from nkernel.fifo import FatalError, KernelLog, ThreadQueue, TimeQueue


@dataclass(eq=False)
class Th:
    name: str
    queue: Any = None
    time_queue: Any = None
    wake_time: int = 0


def _threads(*names):
    return [Th(n) for n in names]


def test_thread_queue_fifo_order():
    q = ThreadQueue()
    a, b, c = _threads("a", "b", "c")
    for th in (a, b, c):
        q.put_back(th)
    assert len(q) == 3
    assert q.peek_front() is a
    assert [q.get_front(), q.get_front(), q.get_front()] == [a, b, c]
    assert q.get_front() is None
    assert q.empty()
    assert a.queue is None


def test_put_front_goes_first():
    q = ThreadQueue()
    a, b = _threads("a", "b")
    q.put_back(a)
    q.put_front(b)
    assert list(q) == [b, a]


def test_double_insert_is_fatal():
    q1, q2 = ThreadQueue(), ThreadQueue()
    a = Th("a")
    q1.put_back(a)
    with pytest.raises(FatalError):
        q2.put_back(a)
    with pytest.raises(FatalError):
        q1.put_front(a)


def test_get_front_inconsistent_thread_is_fatal():
    q = ThreadQueue()
    a = Th("a")
    q.put_back(a)
    a.queue = None
    with pytest.raises(FatalError):
        q.get_front()


def test_contains_and_remove():
    q = ThreadQueue()
    a, b, c = _threads("a", "b", "c")
    for th in (a, b, c):
        q.put_back(th)
    assert q.contains(b)
    assert q.remove(b) is True
    assert not q.contains(b)
    assert b.queue is None
    assert q.remove(b) is False
    assert list(q) == [a, c]
    q.put_back(b)
    assert list(q) == [a, c, b]


def test_time_queue_double_insert_is_fatal():
    tq = TimeQueue()
    a = Th("a")
    tq.put(a, 5)
    with pytest.raises(FatalError):
        tq.put(a, 7)


def test_time_queue_remove():
    tq = TimeQueue()
    a, b, c = _threads("a", "b", "c")
    tq.put(a, 1)
    tq.put(b, 2)
    tq.put(c, 3)
    assert tq.remove(b) is True
    assert b.time_queue is None
    assert tq.remove(b) is False
    assert [tq.get(), tq.get()] == [a, c]


def test_kernel_log_keeps_entries_in_order():
    log = KernelLog(1024, 16)
    log.write("first\n")
    log.write("second\n")
    assert log.contents() == "first\nsecond\n"


def test_kernel_log_wraps_and_keeps_oldest_first():
    log = KernelLog(32, 8)
    log.write("a" * 20)
    log.write("b" * 10)
    log.write("c" * 5)
    assert log.contents() == "a" * 15 + "b" * 10 + "c" * 5


def test_kernel_log_rejects_empty_entry():
    log = KernelLog(64, 8)
    with pytest.raises(ValueError):
        log.write("")


def test_kernel_log_dump(tmp_path):
    log = KernelLog(256, 8)
    log.write("bootstrap\n")
    path = tmp_path / "log.txt"
    log.dump(path)
    assert path.read_text(encoding="utf-8") == log.contents()