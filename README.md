# nkernel

`nkernel` is a small thread kernel for studying how a scheduler works. Many
kernel threads exist at once, but only one of them holds the processor at a
time. A pluggable scheduler decides which thread runs next:

- **first come, first served**: `Fcfs1Scheduler`
- **priority scheduling**: `Pri1Scheduler`. A lower `pri` value runs first.
- **round robin with a time slice**: `RoundRobinScheduler(slice_nanos)`

All three live in `nkernel.schedulers`, together with the `State` enum of
thread states.

On top of the kernel the package provides:

- timers and sleeping
- a counting `Semaphore` (`nkernel.sync`)
- a reader/writer lock `RWLock` (`nkernel.rwlock`), where writers may wait
  with a timeout

It also ships some plain data structures that are useful by themselves:

- `nkernel.pss`: `HashMap` (chained, with caller-supplied hash and equality
  functions), a FIFO `Queue`, the binary-heap priority queues `FullPriQueue`
  and `PriQueue`, and a generic index-based quicksort `sort`
- `nkernel.fifo`: `ThreadQueue`, `TimeQueue`, the circular `KernelLog` and
  the `FatalError` exception
- `nkernel.timers`: a monotonic `Clock` and the `TimerService`
- `nkernel.maleta`: `fill_suitcase`, a randomised knapsack filler, driven by
  `RandGen`, a multiply-with-carry generator

The package has no runtime dependencies. The `test` extra adds pytest.

## Running threads

```python
from nkernel.kernel import Kernel
from nkernel.schedulers import Fcfs1Scheduler
from nkernel.sync import Semaphore

kernel = Kernel(Fcfs1Scheduler(), False)

def worker(sem, results, n):
    sem.wait()
    results.append(n)
    sem.post()
    return n * n

def main():
    sem = Semaphore(kernel, 1)
    results = []
    threads = [kernel.spawn(worker, sem, results, n) for n in range(4)]
    squares = [kernel.join(th) for th in threads]
    sem.destroy()
    return results, squares

print(kernel.run(main))
```

`Kernel.run(main, *args)` runs `main` as the first thread and returns its
result. When `main` returns, the kernel shuts down. A kernel can run only
once; a second call raises `RuntimeError`.

`spawn(fun, *args)` creates an `NThread` and makes it ready.

`join(th)` waits for the thread and returns its result. If the thread raised
an exception, `join` raises it again. Joining the same thread twice raises
`FatalError`.

`kernel.exit(value)` ends the calling thread early, with `value` as its
result.

Inside a thread you can also call:

| Call | Effect |
| --- | --- |
| `kernel.current()` | the running `NThread` |
| `kernel.yield_()` | moves the caller behind the other ready threads |
| `kernel.sleep_millis(ms)`, `kernel.sleep_nanos(ns)` | suspend the caller for a time |
| `kernel.time_millis()` | milliseconds since the kernel was created |
| `kernel.set_thread_name(name)`, `kernel.thread_name()` | label threads; names are cut to 79 characters |
| `kernel.dump_threads(path)` | describes every thread, to a file or, with `None`, to standard output, and returns the text |

If no thread can run and no timer is pending, the kernel raises
`FatalError("Deadlock")`.

## Reader/writer lock

```python
from nkernel.rwlock import RWLock

lock = RWLock(kernel)

def reader():
    lock.enter_read(0)
    ...
    lock.exit_read()

def writer():
    if lock.enter_write(100):  # wait at most 100 ms
        ...
        lock.exit_write()
```

A reader gets in only when no writer is writing or waiting. Readers always
wait without limit.

When the last reader leaves, it lets in the next writer. When a writer
leaves, it lets in every waiting reader together; only if there are none does
it let in one waiting writer.

`enter_write` takes a timeout in milliseconds. A timeout of zero or less
waits forever. If a positive timeout runs out, `enter_write` returns
`False`.

`Semaphore.destroy()` and `RWLock.destroy()` raise `FatalError` when threads
are still waiting.

## Choosing a scheduler

Pass a scheduler to `Kernel`, or install another one later with
`kernel.set_scheduler(...)`. When the old scheduler is replaced, its ready
threads pass to the new one. If both the old and the new scheduler are round
robin, only the time slice changes.

With `Pri1Scheduler`, `kernel.set_priority(th, pri)` changes a thread's
priority. The calling thread may lose the processor as a result.

`nkernel.kernel.parse_options(argv)` reads the usual kernel command-line
options into an `Options` value:

| Option | Sets |
| --- | --- |
| `-slice millis` | `slice_nanos` |
| `-ncores n` | `ncores` |
| `-pri1c` | `pri1` |
| `-verbose` / `-silent` | `verbose` |
| `-h` | `show_help` |

Other arguments are kept in `args`. A missing or non-numeric number raises
`ValueError`. The text for `-h` is the module constant `USAGE`.

## Data structures

```python
from nkernel.pss import HashMap, PriQueue, hash_string, equals_strings

table = HashMap(100, hash_string, equals_strings)
table.define("one", 1)
assert table.query("one") == 1

q = PriQueue()
q.put("low", 5.0)
q.put("high", 1.0)
assert q.get() == "high"  # smallest priority value comes out first
```

## Filling a suitcase

```python
from nkernel.maleta import RandGen, fill_suitcase, count_items

best, selection = fill_suitcase(
    [5, 4, 2, 4, 5], [100, 110, 200, 150, 180], 10, 100_000, RandGen(1)
)
print(best, count_items(selection))
```

`fill_suitcase` tries `k` random selections and returns the best value
together with the chosen 0/1 flags. When `k` is 0 the value is `-1`.

## What it does not do

- **No command.** The package installs no command-line program.
- **One thread at a time.** The kernel runs on a single virtual core.
  `Options.ncores` is read by `parse_options`, but `Kernel` does not use it.
- **No preemption.** Threads change only inside kernel calls. A round-robin
  time slice is therefore checked at those calls, not interrupted by a timer
  signal.
- **No parallel knapsack.** `fill_suitcase` is sequential; there is no
  parallel version.