from dataclasses import dataclass
from typing import Any

import pytest

from nkernel.fifo import FatalError
from nkernel.schedulers import (
    Fcfs1Scheduler,
    Pri1Scheduler,
    RoundRobinScheduler,
    State,
)


@dataclass(eq=False)
class FakeThread:
    name: str = "t"
    status: State = State.CREATED
    queue: Any = None
    time_queue: Any = None
    pri: int = 0
    slice_nanos: int = 0


def test_fcfs_runs_in_arrival_order():
    sched = Fcfs1Scheduler()
    a, b, c = FakeThread("a"), FakeThread("b"), FakeThread("c")
    for th in (a, b, c):
        sched.set_ready(th)
    assert len(sched) == 3
    order = []
    current = None
    while (nxt := sched.next_thread(None)) is not None:
        order.append(nxt)
        assert nxt.status is State.RUN
        current = nxt
    assert order == [a, b, c]
    assert current is c


def test_fcfs_running_thread_keeps_processor():
    sched = Fcfs1Scheduler()
    running = FakeThread("r", status=State.RUN)
    other = FakeThread("o")
    sched.set_ready(other)
    assert sched.next_thread(running) is running
    assert len(sched) == 1


def test_fcfs_ready_current_leaves_queue():
    sched = Fcfs1Scheduler()
    th = FakeThread(status=State.WAIT_SEM)
    sched.set_ready(th)
    assert sched.next_thread(th) is th
    assert th.status is State.RUN
    assert len(sched) == 0


def test_fcfs_waiting_current_yields():
    sched = Fcfs1Scheduler()
    cur = FakeThread("cur", status=State.RUN)
    other = FakeThread("other")
    sched.set_ready(other)
    sched.suspend(cur, State.WAIT_JOIN)
    assert cur.status is State.WAIT_JOIN
    assert sched.next_thread(cur) is other


def test_set_ready_twice_is_fatal():
    sched = Fcfs1Scheduler()
    th = FakeThread()
    sched.set_ready(th)
    with pytest.raises(FatalError):
        sched.set_ready(th)


def test_suspend_requires_run():
    sched = Fcfs1Scheduler()
    with pytest.raises(FatalError):
        sched.suspend(FakeThread(status=State.WAIT_SLEEP), State.WAIT_SEM)


def test_empty_scheduler_returns_none():
    assert Fcfs1Scheduler().next_thread(None) is None


def test_adopt_takes_ready_threads():
    sched = Fcfs1Scheduler()
    ready = FakeThread("ready", status=State.READY)
    waiting = FakeThread("waiting", status=State.WAIT_SEM)
    sched.adopt([waiting, ready])
    assert len(sched) == 1
    assert sched.next_thread(None) is ready


def test_stop_with_pending_is_fatal():
    sched = Fcfs1Scheduler()
    sched.set_ready(FakeThread())
    with pytest.raises(FatalError):
        sched.stop()


def test_pri_lowest_value_first():
    sched = Pri1Scheduler(4)
    low = FakeThread("low", pri=3)
    high = FakeThread("high", pri=0)
    mid = FakeThread("mid", pri=1)
    for th in (low, high, mid):
        sched.set_ready(th)
    assert [sched.next_thread(None) for _ in range(3)] == [high, mid, low]


def test_pri_current_competes():
    sched = Pri1Scheduler(4)
    cur = FakeThread("cur", status=State.RUN, pri=2)
    better = FakeThread("better", pri=1)
    sched.set_ready(better)
    assert sched.next_thread(cur) is better
    assert cur.status is State.READY
    assert sched.next_thread(None) is cur


def test_pri_out_of_range():
    sched = Pri1Scheduler(4)
    with pytest.raises(ValueError):
        sched.set_ready(FakeThread(pri=4))


def test_pri_suspend_accepts_ready():
    sched = Pri1Scheduler(4)
    th = FakeThread(status=State.READY)
    sched.suspend(th, State.WAIT_SLEEP)
    assert th.status is State.WAIT_SLEEP


def test_rr_remaining_slice_goes_front():
    sched = RoundRobinScheduler(1000)
    spent = FakeThread("spent", slice_nanos=0)
    partial = FakeThread("partial", slice_nanos=5)
    sched.set_ready(spent)
    sched.set_ready(partial)
    assert spent.slice_nanos == 1000
    assert sched.next_thread(None) is partial
    assert sched.next_thread(None) is spent


def test_rr_keeps_current_with_slice_left():
    sched = RoundRobinScheduler(1000)
    cur = FakeThread("cur", status=State.RUN, slice_nanos=1000)
    sched.set_ready(FakeThread("other"))
    sched.charge(cur, 400)
    assert cur.slice_nanos == 600
    assert sched.next_thread(cur) is cur


def test_rr_exhausted_slice_rotates():
    sched = RoundRobinScheduler(1000)
    cur = FakeThread("cur", status=State.RUN, slice_nanos=1000)
    other = FakeThread("other")
    sched.set_ready(other)
    sched.charge(cur, 1000)
    assert sched.next_thread(cur) is other
    assert cur.status is State.READY
    assert cur.slice_nanos == 1000
    assert sched.next_thread(None) is cur


def test_rr_exhausted_alone_continues():
    sched = RoundRobinScheduler(1000)
    cur = FakeThread("cur", status=State.RUN, slice_nanos=10)
    sched.charge(cur, 50)
    assert sched.next_thread(cur) is cur
    assert cur.slice_nanos == 1000


def test_rr_set_slice_refreshes_runnable():
    sched = RoundRobinScheduler(1000)
    ready = FakeThread("ready", status=State.READY, slice_nanos=3)
    waiting = FakeThread("waiting", status=State.WAIT_SEM, slice_nanos=3)
    sched.set_slice(2000, [ready, waiting])
    assert sched.slice_nanos == 2000
    assert ready.slice_nanos == 2000
    assert waiting.slice_nanos == 3


def test_rr_adopt():
    sched = RoundRobinScheduler(1000)
    ready = FakeThread("ready", status=State.READY)
    running = FakeThread("running", status=State.RUN)
    sched.adopt([ready, running])
    assert ready.slice_nanos == 1000
    assert running.slice_nanos == 1000
    assert len(sched) == 1


def test_rr_timed_thread_cannot_be_ready():
    sched = RoundRobinScheduler(1000)
    th = FakeThread(time_queue=object())
    with pytest.raises(FatalError):
        sched.set_ready(th)