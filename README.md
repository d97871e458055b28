# taskworks

Building blocks for a task runtime:

- **`taskworks.errors`** provides the `ErrorCode` enumeration and the
  `TaskworksError` exception, which carries `code` and `detail` attributes.
  `error_message(code)` returns readable text for a code, or
  `"Unknown error"` for a number that is not a known code.
- **`taskworks.types`** provides the shared enumerations `Backend`,
  `EventBackend`, `TaskStatus`, `TaskPriority`, `EventStatus`, `FileEvents`,
  `SocketEvents`, `PollResponse` and `EventType`. It also provides the frozen
  event argument records `FileArgs`, `SocketArgs`, `TimerArgs` and `PollArgs`.
  Each record's `type` property names its `EventType`.
- **`taskworks.threads`** provides threads (`create_thread`, `Thread.join`),
  `Mutex`, `RWLock`, a counting `Semaphore` and `ThreadLocal` storage.
- **`taskworks.eventloop`** provides `EventLoop`, which watches file, socket,
  timer and user-polled events, and `Event`, with its `EventState`. It also
  provides `EventDriver`, which keeps track of the loops and events it creates
  so that finalizing it releases all of them.

Failures raise `TaskworksError`. Check its `code` attribute to see which
`ErrorCode` caused the failure.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Threads and locks

```python
from taskworks.threads import Mutex, RWLock, Semaphore, ThreadLocal, create_thread

sem = Semaphore()          # starts at zero
lock = Mutex()

def work(data):
    with lock:
        data.append(1)
    sem.inc()
    return len(data)

items = []
thread = create_thread(work, items)
sem.dec()                  # blocks until the worker calls inc()
assert thread.join() == 1  # join() returns what main returned

rw = RWLock()
with rw.reading():
    pass
with rw.writing():
    pass

slot = ThreadLocal()
slot.store("mine")
assert slot.load() == "mine"
```

Some operations have a non-blocking form: `Mutex.try_lock`,
`RWLock.try_read_lock`, `RWLock.try_write_lock` and `Semaphore.try_dec`.
Each returns whether it succeeded.

If the thread's main function raises, `Thread.join` raises the same exception.
Joining the same thread twice raises `TaskworksError`. So does releasing a lock
that is not held.

## Events

An `Event` pairs a set of arguments with a handler that is called as
`handler(args, data)`. `EventLoop` does not run on its own thread. To process
events, call `check_single_event()` or `check_events(timeout=None, once=False)`;
the timeout is given in seconds.

Each argument record defines when its event fires:

- **`FileArgs(fd, events)` and `SocketArgs(socket, events)`** are watched for
  `READY_FOR_READ` and/or `READY_FOR_WRITE`. The handler receives a new record
  that holds the conditions that were actually ready.
- **`TimerArgs(micro_sec, repeat_count=1)`** fires once, after the delay.
- **`PollArgs(poll, data)`** calls `poll(data)` on every check. The event fires
  when this call returns `PollResponse.TRIGGER`. If it returns
  `PollResponse.ERR`, the check raises with `ErrorCode.POLL_CHECK`.

All events are one-shot. After an event fires it returns to
`EventState.PENDING`, and it keeps watching only if it is committed again. A
handler may do this itself. While an event is committed or running, one more
commit is accepted and held back until the handler returns. Any commit beyond
that raises `TaskworksError` with `ErrorCode.STATUS`. `retract()` stops
watching an event, and `free()` releases it.

```python
from taskworks.eventloop import EventDriver
from taskworks.types import PollArgs, PollResponse

flag = {"ready": False}

def check(state):
    if state["ready"]:
        state["ready"] = False
        return PollResponse.TRIGGER
    return PollResponse.PENDING

fired = []

def handler(args, data):
    fired.append(data)
    return 0

driver = EventDriver()
driver.init()
loop = driver.create_loop()
event = driver.create_event(handler, "hello", PollArgs(check, flag))
event.commit(loop)

flag["ready"] = True
loop.check_single_event()
assert fired == ["hello"]

driver.finalize()   # frees every event and closes every loop
```

## What this package does not do

This package has no task engine. `TaskStatus`, `TaskPriority`, `Backend` and
`EventBackend` are defined as values only. There is nothing that creates
tasks, tracks dependencies between them, runs worker pools or schedules by
priority. There are also no MPI-based events. The event loop handles only
file, socket, timer and polled events, and only when the caller drives it.