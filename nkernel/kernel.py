"""Cooperative thread kernel: one thread runs at a time under a pluggable scheduler.

Every kernel thread is backed by an operating-system thread, but only the
thread holding the processor executes; the others wait for the kernel to hand
it to them.  Context changes happen only inside kernel calls (``schedule``,
``join``, ``sleep_nanos``, ``yield_`` and the synchronisation objects built on
them), so a round-robin time slice is checked at those points.
"""

from __future__ import annotations

import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator

from .fifo import FatalError
from .pss import HashMap, hash_ptr, pointer_equals
from .schedulers import (
    DEFAULT_MAX_PRI,
    Fcfs1Scheduler,
    Pri1Scheduler,
    RoundRobinScheduler,
    Scheduler,
    State,
)
from .timers import TimerService

_MAX_NAME = 80
_THREAD_SET_CAPACITY = 100
_NANOS_PER_MILLI = 1_000_000

USAGE = (
    "{prog}  [-h] | [-silent] ( [-pri1c | -slice millis ] |  -ncores n [ -slice millis ] ) ...\n"
    "The default scheduling is FCFS for single-core\n"
    "Choose -pri1c for single core priority scheduling\n"
    "Choose -slice <time> for single core round robin scheduling\n"
    "Choose -ncores <n>, with n>=2 for multi-core FCFS scheduling\n"
    "Choose -ncores <n> -slice <time>, for round robin scheduling\n"
)


class _Shutdown(BaseException):
    """Unwinds threads still waiting when the kernel shuts down."""


class _ThreadExit(BaseException):
    """Carries the value given to Kernel.exit up to the thread's start."""

    def __init__(self, value: Any) -> None:
        super().__init__(value)
        self.value = value


@dataclass(eq=False)
class NThread:
    """Descriptor of a kernel thread."""

    name: str | None = None
    status: State = State.CREATED
    pri: int = DEFAULT_MAX_PRI // 2
    queue: Any = None
    time_queue: Any = None
    wake_time: int = 0
    wake_up_fun: Callable[[Any], None] | None = None
    slice_nanos: int = 0
    join_th: NThread | None = None
    ptr: Any = None
    retval: Any = None
    exception: BaseException | None = None
    _fun: Callable[..., Any] | None = field(default=None, repr=False)
    _args: tuple[Any, ...] = field(default=(), repr=False)
    _cpu_start: int = field(default=0, repr=False)


@dataclass
class Options:
    """Kernel options taken from the command line."""

    slice_nanos: int = 0
    ncores: int = 1
    verbose: bool = True
    pri1: bool = False
    show_help: bool = False
    args: list[str] = field(default_factory=list)


def _number(text: str | None) -> int:
    if text is None:
        raise ValueError("main: Missing numeric parameter")
    if any(c not in "0123456789" for c in text):
        raise ValueError(f"main: Invalid non numeric option {text}")
    return int(text) if text else 0


def parse_options(argv: list[str] | None = None) -> Options:
    """Extract the kernel options from argv; the remaining arguments are kept in order."""
    args = list(sys.argv if argv is None else argv)
    opts = Options(args=args[:1])
    rest = iter(args[1:])
    for arg in rest:
        if arg == "-slice":
            opts.slice_nanos = _number(next(rest, None)) * _NANOS_PER_MILLI
        elif arg == "-ncores":
            opts.ncores = _number(next(rest, None))
        elif arg == "-verbose":
            opts.verbose = True
        elif arg == "-silent":
            opts.verbose = False
        elif arg == "-pri1c":
            opts.pri1 = True
        elif arg == "-h":
            opts.show_help = True
        else:
            opts.args.append(arg)
    return opts


class Kernel:
    """Runs kernel threads one at a time, choosing them with a scheduler."""

    def __init__(self, scheduler: Scheduler | None = None, verbose: bool = False) -> None:
        self._lock = threading.RLock()
        self._cond = threading.Condition(self._lock)
        self._local = threading.local()
        self._scheduler: Scheduler = scheduler if scheduler is not None else Fcfs1Scheduler()
        self.verbose = verbose
        self.timers = TimerService()
        self._threads: HashMap[NThread, NThread] = HashMap(
            _THREAD_SET_CAPACITY, hash_ptr, pointer_equals
        )
        self._running: NThread | None = None
        self._started = False
        self._shutdown = False
        self._fatal: FatalError | None = None
        self._next_id = 1
        self.thread_count = 0
        self.zombie_count = 0
        self.context_changes = 0
        self.implicit_context_changes = 0
        self._announce(self._scheduler)

    # -- helpers -----------------------------------------------------------

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def _announce(self, scheduler: Scheduler) -> None:
        if not self.verbose:
            return
        if isinstance(scheduler, Fcfs1Scheduler):
            print("Info: setting single-core FCFS scheduling", flush=True)
        elif isinstance(scheduler, Pri1Scheduler):
            print("Info: setting single-core priority scheduling", flush=True)
        elif isinstance(scheduler, RoundRobinScheduler):
            print("Info: setting 1-core round robin scheduling", flush=True)

    def _self(self) -> NThread:
        th = getattr(self._local, "th", None)
        if th is None:
            raise RuntimeError("not called from a thread of this kernel")
        return th

    def _all_threads(self) -> list[NThread]:
        return [th for th, _ in self._threads]

    def _abort(self, exc: FatalError) -> None:
        if self._fatal is None:
            self._fatal = exc
        self._shutdown = True
        self._cond.notify_all()
        raise exc

    def _await_turn(self, th: NThread) -> None:
        while self._running is not th:
            if self._shutdown:
                raise _Shutdown()
            self._cond.wait()

    def _wake_due(self) -> None:
        for th in self.timers.due():
            self.set_ready(th)

    def _charge(self, th: NThread) -> None:
        sched = self._scheduler
        if isinstance(sched, RoundRobinScheduler):
            now = time.thread_time_ns()
            sched.charge(th, now - th._cpu_start)
            th._cpu_start = now
            if th.slice_nanos <= 0 and len(sched) > 0:
                self.implicit_context_changes += 1

    def _pick_next(self, this: NThread | None) -> NThread:
        """Choose the next thread, parking until a timer fires when none is ready."""
        while True:
            if self._shutdown:
                raise _Shutdown()
            self._wake_due()
            nxt = self._scheduler.next_thread(this)
            if nxt is not None:
                return nxt
            delay = self.timers.next_delay()
            if delay is None:
                self._abort(FatalError("Deadlock"))
            self._cond.wait(delay / 1e9)

    def _switch(self, this: NThread, nxt: NThread) -> None:
        self._running = nxt
        self.context_changes += 1
        self._cond.notify_all()
        self._await_turn(this)

    # -- thread life cycle ---------------------------------------------------

    def _bootstrap(self, th: NThread) -> None:
        self._local.th = th
        try:
            with self._lock:
                self._await_turn(th)
                th.name = str(self._next_id)
                self._next_id += 1
                th._cpu_start = time.thread_time_ns()
        except _Shutdown:
            return
        value: Any = None
        try:
            value = th._fun(*th._args)  # type: ignore[misc]
        except _ThreadExit as exc:
            value = exc.value
        except _Shutdown:
            return
        except BaseException as exc:  # noqa: BLE001 - handed to the joiner
            th.exception = exc
        if self._shutdown:
            return
        try:
            self._finish(th, value)
        except BaseException:  # noqa: BLE001 - the fatal error is kept by the kernel
            return

    def _finish(self, th: NThread, value: Any) -> None:
        with self._lock:
            th.retval = value
            th.status = State.ZOMBIE
            self.zombie_count += 1
            if th.join_th is not None:
                self.set_ready(th.join_th)
            self.thread_count -= 1
            nxt = self._pick_next(th)
            self._running = nxt
            self.context_changes += 1
            self._cond.notify_all()

    def _end(self) -> None:
        with self._lock:
            if self.timers.pending():
                print("*** There are pending threads in the time queue", file=sys.stderr)
            if self.verbose:
                print("Info: Number of cores = 1")
                print(f"Info: total context changes = {self.context_changes}")
                print(f"Info: Implicit context changes = {self.implicit_context_changes}")
                sys.stdout.flush()
            threads = self._all_threads()
            if len(threads) > 1:
                run = sum(th.status is State.RUN for th in threads)
                ready = sum(th.status is State.READY for th in threads)
                zombie = sum(th.status is State.ZOMBIE for th in threads)
                print(
                    f"The system exited with {len(threads)} nthreads unfinished "
                    f"({run} run {ready} ready {zombie} zombie)",
                    file=sys.stderr,
                )
            self._shutdown = True
            self._running = None
            self._cond.notify_all()
        self._local.th = None

    # -- public interface ----------------------------------------------------

    @contextmanager
    def critical(self) -> Iterator[None]:
        """Critical section: the kernel state cannot change while it is held."""
        with self._lock:
            yield

    def current(self) -> NThread:
        """The calling thread."""
        return self._self()

    def run(self, main: Callable[..., Any], *args: Any) -> Any:
        """Run main as the kernel's first thread and return its result.

        When main ends the kernel shuts down; threads still alive are abandoned.
        """
        with self._lock:
            if self._started:
                raise RuntimeError("the kernel has already run")
            self._started = True
            main_th = NThread(name="main", status=State.RUN)
            main_th._cpu_start = time.thread_time_ns()
            self._threads.define(main_th, main_th)
            self.thread_count = 1
            self._running = main_th
            self._local.th = main_th
            self._scheduler.adopt([main_th])
        try:
            try:
                return main(*args)
            except _ThreadExit as exc:
                return exc.value
            except _Shutdown:
                raise (self._fatal or FatalError("The kernel was shut down")) from None
        finally:
            self._end()

    def spawn(self, fun: Callable[..., Any], *args: Any) -> NThread:
        """Create a thread running fun(*args) and make it ready."""
        with self._lock:
            self._self()
            th = NThread(_fun=fun, _args=args)
            self.thread_count += 1
            self._threads.define(th, th)
            threading.Thread(target=self._bootstrap, args=(th,), daemon=True).start()
            self.set_ready(th)
            self.schedule()
            return th

    def join(self, th: NThread) -> Any:
        """Wait for th to finish and return its result, re-raising its exception."""
        with self._lock:
            if th.join_th is not None:
                raise FatalError("Thread joined twice")
            this = self._self()
            th.join_th = this
            if th.status is not State.ZOMBIE:
                self._scheduler.suspend(this, State.WAIT_JOIN)
                self.schedule()
            self.zombie_count -= 1
            self._threads.delete(th)
            th.status = State.BURIED
        if th.exception is not None:
            raise th.exception
        return th.retval

    def exit(self, value: Any = None) -> None:
        """End the calling thread with value as its result."""
        raise _ThreadExit(value)

    def set_scheduler(self, scheduler: Scheduler) -> None:
        """Install a scheduling policy; ready threads left in the old one are fatal.

        Installing round robin over round robin only changes the time slice.
        """
        with self._lock:
            old = self._scheduler
            if scheduler is old:
                return
            self._announce(scheduler)
            if isinstance(old, RoundRobinScheduler) and isinstance(
                scheduler, RoundRobinScheduler
            ):
                old.set_slice(scheduler.slice_nanos, self._all_threads())
                return
            old.stop()
            scheduler.adopt(self._all_threads())
            self._scheduler = scheduler

    def set_priority(self, th: NThread, pri: int) -> None:
        """Change th's priority; the caller may lose the processor."""
        with self._lock:
            th.pri = pri
            self.schedule()

    def set_thread_name(self, name: str) -> None:
        """Rename the calling thread."""
        with self._lock:
            self._self().name = name[: _MAX_NAME - 1]

    def thread_name(self) -> str | None:
        """Name of the calling thread."""
        return self._self().name

    def dump_threads(self, path: str | Path | None = None) -> str:
        """Describe every thread, to path or to standard output; return the text."""
        with self._lock:
            lines = []
            for th in self._all_threads():
                core = 0 if th is self._running else -1
                join = "-" if th.join_th is None else (th.join_th.name or "?")
                lines.append(
                    f"thread={id(th):#x} {th.name or '?'} {th.status.value} "
                    f"core={core} join={join}\n"
                )
        text = "".join(lines)
        if path is None:
            sys.stdout.write(text)
            sys.stdout.flush()
        else:
            Path(path).write_text(text, encoding="utf-8")
        return text

    def set_ready(self, th: NThread) -> None:
        """Make th ready to run."""
        with self._lock:
            if th is self._running:
                if th.status in (State.READY, State.RUN):
                    raise FatalError("The thread was already in READY status")
                th.status = State.READY
            else:
                self._scheduler.set_ready(th)

    def suspend(self, state: State) -> None:
        """Put the calling thread in a wait state; it keeps running until schedule."""
        with self._lock:
            self._scheduler.suspend(self._self(), state)

    def schedule(self) -> None:
        """Give the processor to the thread the scheduler chooses."""
        with self._lock:
            this = self._self()
            self._charge(this)
            nxt = self._pick_next(this)
            if nxt is not this:
                self._switch(this, nxt)
            this._cpu_start = time.thread_time_ns()

    def yield_(self) -> None:
        """Move the calling thread behind the other ready threads."""
        with self._lock:
            this = self._self()
            self._charge(this)
            this.slice_nanos = 0
            self._scheduler.suspend(this, State.WAIT_SLEEP)
            self._scheduler.set_ready(this)
            self._wake_due()
            nxt = self._scheduler.next_thread(None)
            if nxt is not this:
                self._switch(this, nxt)
            this._cpu_start = time.thread_time_ns()

    def program_timer(self, nanos: int, wake_fun: Callable[[Any], None] | None = None) -> None:
        """Make the calling thread ready after nanos, calling wake_fun(thread) first."""
        with self._lock:
            this = self._self()
            if not self.timers.program(this, nanos, wake_fun):
                self.set_ready(this)

    def cancel_timer(self, th: NThread) -> bool:
        """Remove th from the timer; return False if it was not programmed."""
        with self._lock:
            removed = self.timers.cancel(th)
            self._wake_due()
            return removed

    def sleep_nanos(self, nanos: int) -> None:
        """Suspend the calling thread for nanos nanoseconds."""
        with self._lock:
            self.suspend(State.WAIT_SLEEP)
            self.program_timer(nanos, None)
            self.schedule()

    def sleep_millis(self, millis: int) -> None:
        """Suspend the calling thread for millis milliseconds."""
        self.sleep_nanos(millis * _NANOS_PER_MILLI)

    def time_millis(self) -> int:
        """Milliseconds since the kernel was created."""
        return self.timers.clock.now_millis()