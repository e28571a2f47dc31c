from dataclasses import dataclass, field
from typing import Any

import pytest

from nkernel.fifo import FatalError
from nkernel.timers import Clock, TimerService


class FakeSource:
    def __init__(self, start=1000):
        self.value = start

    def __call__(self):
        return self.value


@dataclass(eq=False)
class FakeThread:
    name: str = "t"
    time_queue: Any = None
    wake_time: int = 0
    wake_up_fun: Any = None
    woken: list = field(default_factory=list)


def make_service():
    source = FakeSource()
    return source, TimerService(Clock(source))


def test_clock_starts_at_zero():
    source = FakeSource(5000)
    clock = Clock(source)
    assert clock.now_nanos() == 0


def test_clock_advances_with_source():
    source = FakeSource(0)
    clock = Clock(source)
    source.value = 3_000_000
    assert clock.now_nanos() == 3_000_000
    assert clock.now_millis() == 3


def test_clock_never_goes_backwards():
    source = FakeSource(0)
    clock = Clock(source)
    source.value = 500
    first = clock.now_nanos()
    source.value = 100
    second = clock.now_nanos()
    assert second > first


def test_default_clock_is_monotonic():
    clock = Clock()
    readings = [clock.now_nanos() for _ in range(50)]
    assert readings == sorted(readings)


def test_program_non_positive_does_not_queue():
    _, service = make_service()
    th = FakeThread()
    assert service.program(th, 0) is False
    assert service.program(th, -10) is False
    assert service.pending() == 0
    assert service.next_delay() is None


def test_program_and_wake():
    source, service = make_service()
    th = FakeThread()
    assert service.program(th, 100, lambda t: t.woken.append("x")) is True
    assert service.pending() == 1
    assert service.next_delay() == 100
    assert service.due() == []
    source.value += 100
    assert service.due() == [th]
    assert th.woken == ["x"]
    assert service.pending() == 0
    assert th.time_queue is None


def test_due_returns_in_wake_order():
    source, service = make_service()
    late, early = FakeThread("late"), FakeThread("early")
    service.program(late, 300)
    service.program(early, 100)
    source.value += 1000
    assert service.due() == [early, late]


def test_due_only_releases_expired():
    source, service = make_service()
    a, b = FakeThread("a"), FakeThread("b")
    service.program(a, 100)
    service.program(b, 500)
    source.value += 200
    assert service.due() == [a]
    assert service.pending() == 1


def test_cancel():
    _, service = make_service()
    th = FakeThread()
    service.program(th, 100)
    assert service.cancel(th) is True
    assert service.pending() == 0
    assert service.cancel(th) is False


def test_program_twice_is_fatal():
    _, service = make_service()
    th = FakeThread()
    service.program(th, 100)
    with pytest.raises(FatalError):
        service.program(th, 200)