import pytest

from nkernel.fifo import FatalError
from nkernel.kernel import Kernel
from nkernel.sync import Semaphore


def test_wait_takes_available_tickets():
    kernel = Kernel()

    def main():
        sem = Semaphore(kernel, 2)
        sem.wait()
        sem.wait()
        return sem.count

    assert kernel.run(main) == 0


def test_post_without_waiters_adds_ticket():
    kernel = Kernel()

    def main():
        sem = Semaphore(kernel, 0)
        sem.post()
        sem.post()
        return sem.count

    assert kernel.run(main) == 2


def test_negative_tickets_rejected():
    with pytest.raises(ValueError):
        Semaphore(Kernel(), -1)


def test_wait_blocks_until_post():
    kernel = Kernel()
    log = []

    def worker(sem):
        sem.wait()
        log.append("after")

    def main():
        sem = Semaphore(kernel, 0)
        th = kernel.spawn(worker, sem)
        kernel.yield_()
        waiting = sem.waiting
        log.append("before")
        sem.post()
        kernel.join(th)
        sem.destroy()
        return waiting, sem.count

    assert kernel.run(main) == (1, 0)
    assert log == ["before", "after"]


def test_waiters_released_in_arrival_order():
    kernel = Kernel()
    log = []

    def waiter(sem, tag):
        sem.wait()
        log.append(tag)

    def main():
        sem = Semaphore(kernel, 0)
        first = kernel.spawn(waiter, sem, "a")
        second = kernel.spawn(waiter, sem, "b")
        kernel.yield_()
        sem.post()
        sem.post()
        kernel.join(first)
        kernel.join(second)
        return sem.count

    assert kernel.run(main) == 0
    assert log == ["a", "b"]


def test_destroy_with_waiter_is_fatal():
    kernel = Kernel()

    def waiter(sem):
        sem.wait()

    def main():
        sem = Semaphore(kernel, 0)
        th = kernel.spawn(waiter, sem)
        kernel.yield_()
        with pytest.raises(FatalError):
            sem.destroy()
        sem.post()
        kernel.join(th)
        sem.destroy()
        return sem.waiting

    assert kernel.run(main) == 0


def test_waiting_alone_is_a_deadlock():
    kernel = Kernel()

    def main():
        Semaphore(kernel, 0).wait()

    with pytest.raises(FatalError):
        kernel.run(main)


def test_semaphore_as_mutex_protects_counter():
    kernel = Kernel()
    shared = {"value": 0}

    def worker(sem, rounds):
        for _ in range(rounds):
            sem.wait()
            current = shared["value"]
            kernel.yield_()
            shared["value"] = current + 1
            sem.post()

    def main():
        sem = Semaphore(kernel, 1)
        threads = [kernel.spawn(worker, sem, 5) for _ in range(3)]
        for th in threads:
            kernel.join(th)
        return shared["value"], sem.count

    assert kernel.run(main) == (15, 1)