"""Threads and synchronisation primitives used by the task engine."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from taskworks.errors import ErrorCode, TaskworksError

__all__ = [
    "Thread",
    "create_thread",
    "Mutex",
    "RWLock",
    "Semaphore",
    "ThreadLocal",
]


class Thread:
    """A running thread whose return value is collected by join()."""

    def __init__(self, main: Callable[[Any], Any], data: Any = None) -> None:
        self._main = main
        self._data = data
        self._result: Any = None
        self._error: BaseException | None = None
        self._joined = False
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self._result = self._main(self._data)
        except BaseException as exc:  # handed back to the joining thread
            self._error = exc

    def _start(self) -> None:
        try:
            self._thread.start()
        except RuntimeError as exc:
            raise TaskworksError(ErrorCode.THREAD_CREATE, str(exc)) from exc

    @property
    def is_alive(self) -> bool:
        """True while the thread's main function is still running."""
        return self._thread.is_alive()

    def join(self) -> Any:
        """Wait for the thread to finish and return what its main function returned.

        An exception raised by the main function is raised again here.
        """
        if self._joined:
            raise TaskworksError(ErrorCode.INVAL_HANDLE, "thread already joined")
        if self._thread is threading.current_thread():
            raise TaskworksError(ErrorCode.INVAL, "a thread cannot join itself")
        self._thread.join()
        self._joined = True
        if self._error is not None:
            raise self._error
        return self._result


def create_thread(main: Callable[[Any], Any], data: Any = None) -> Thread:
    """Start a new thread running main(data)."""
    if not callable(main):
        raise TaskworksError(ErrorCode.INVAL, "thread main function must be callable")
    thread = Thread(main, data)
    thread._start()
    return thread


class Mutex:
    """A non-recursive mutual exclusion lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def lock(self) -> None:
        """Block until the mutex is acquired."""
        self._lock.acquire()

    def try_lock(self) -> bool:
        """Acquire the mutex if it is free; return whether it was acquired."""
        return self._lock.acquire(blocking=False)

    def unlock(self) -> None:
        """Release the mutex."""
        try:
            self._lock.release()
        except RuntimeError as exc:
            raise TaskworksError(ErrorCode.STATUS, "mutex is not locked") from exc

    @property
    def locked(self) -> bool:
        """True while some thread holds the mutex."""
        return self._lock.locked()

    def __enter__(self) -> Mutex:
        self.lock()
        return self

    def __exit__(self, *args: Any) -> None:
        self.unlock()


class RWLock:
    """A lock that admits many readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def read_lock(self) -> None:
        """Block until a shared read lock is held."""
        with self._cond:
            self._cond.wait_for(lambda: not self._writer)
            self._readers += 1

    def try_read_lock(self) -> bool:
        """Take a read lock if no writer holds the lock; return whether it was taken."""
        with self._cond:
            if self._writer:
                return False
            self._readers += 1
            return True

    def read_unlock(self) -> None:
        """Release a read lock."""
        with self._cond:
            if self._readers == 0:
                raise TaskworksError(ErrorCode.STATUS, "read lock is not held")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def write_lock(self) -> None:
        """Block until the exclusive write lock is held."""
        with self._cond:
            self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True

    def try_write_lock(self) -> bool:
        """Take the write lock if the lock is free; return whether it was taken."""
        with self._cond:
            if self._writer or self._readers:
                return False
            self._writer = True
            return True

    def write_unlock(self) -> None:
        """Release the write lock."""
        with self._cond:
            if not self._writer:
                raise TaskworksError(ErrorCode.STATUS, "write lock is not held")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def reading(self) -> Iterator[RWLock]:
        """Hold a read lock for the duration of a with block."""
        self.read_lock()
        try:
            yield self
        finally:
            self.read_unlock()

    @contextmanager
    def writing(self) -> Iterator[RWLock]:
        """Hold the write lock for the duration of a with block."""
        self.write_lock()
        try:
            yield self
        finally:
            self.write_unlock()


class Semaphore:
    """A counting semaphore, starting at zero unless told otherwise."""

    def __init__(self, value: int = 0) -> None:
        if value < 0:
            raise TaskworksError(ErrorCode.INVAL, "semaphore value must not be negative")
        self._sem = threading.Semaphore(value)

    def dec(self) -> None:
        """Block until the count is positive, then decrement it."""
        self._sem.acquire()

    def try_dec(self) -> bool:
        """Decrement the count if it is positive; return whether it was decremented."""
        return self._sem.acquire(blocking=False)

    def inc(self) -> None:
        """Increment the count, waking one waiter if any."""
        self._sem.release()


class ThreadLocal:
    """A slot holding one value per thread; unset slots read as None."""

    def __init__(self) -> None:
        self._local = threading.local()

    def store(self, data: Any) -> None:
        """Set the calling thread's value."""
        self._local.value = data

    def load(self) -> Any:
        """Return the calling thread's value, or None if it has none."""
        return getattr(self._local, "value", None)