"""Event loop driver: file, socket, timer and user-polled events."""

from __future__ import annotations

import selectors
import threading
import time
from enum import Enum
from typing import Any, Callable, Union

from taskworks.errors import ErrorCode, TaskworksError
from taskworks.types import (
    FileArgs,
    FileEvents,
    PollArgs,
    PollResponse,
    SocketArgs,
    SocketEvents,
    TimerArgs,
)

__all__ = ["EventState", "EventLoop", "Event", "EventDriver"]

EventArgs = Union[FileArgs, SocketArgs, TimerArgs, PollArgs]
EventHandler = Callable[[EventArgs, Any], Any]


class EventState(Enum):
    """Life cycle of an event inside the driver."""

    PENDING = 0
    COMMITTED = 1
    RUNNING = 2


class EventLoop:
    """Watches committed events and runs their handlers when they trigger."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._selector: selectors.BaseSelector | None = selectors.DefaultSelector()
        self._timers: dict[Event, float] = {}
        # Events not managed by the selector; they are polled on every check.
        self._poll_events: list[Event] = []

    @property
    def closed(self) -> bool:
        """True once the loop has been closed."""
        return self._selector is None

    def _check_open(self) -> selectors.BaseSelector:
        if self._selector is None:
            raise TaskworksError(ErrorCode.INVAL_HANDLE, "event loop is closed")
        return self._selector

    def _watch(self, event: Event, args: EventArgs) -> None:
        with self._lock:
            selector = self._check_open()
            if isinstance(args, (FileArgs, SocketArgs)):
                if isinstance(args, FileArgs):
                    fd, flags = args.fd, FileEvents
                else:
                    fd, flags = args.socket, SocketEvents
                mask = 0
                if args.events & flags.READY_FOR_READ:
                    mask |= selectors.EVENT_READ
                if args.events & flags.READY_FOR_WRITE:
                    mask |= selectors.EVENT_WRITE
                if not mask:
                    raise TaskworksError(ErrorCode.INVAL, "no readiness condition to watch")
                try:
                    selector.register(fd, mask, event)
                except (KeyError, ValueError, OSError) as exc:
                    raise TaskworksError(ErrorCode.INVAL, str(exc)) from exc
            elif isinstance(args, TimerArgs):
                self._timers[event] = time.monotonic() + args.micro_sec / 1_000_000
            elif isinstance(args, PollArgs):
                self._poll_events.append(event)
            else:
                raise TaskworksError(ErrorCode.INVAL, "unknown event type")

    def _discard(self, event: Event) -> None:
        with self._lock:
            selector = self._selector
            if selector is None:
                return
            for key in list(selector.get_map().values()):
                if key.data is event:
                    selector.unregister(key.fileobj)
            self._timers.pop(event, None)
            if event in self._poll_events:
                self._poll_events.remove(event)

    def _check_polls(self) -> bool:
        with self._lock:
            self._check_open()
            candidates = list(self._poll_events)
        for event in candidates:
            args = event._args
            response = args.poll(args.data)
            if response is PollResponse.ERR:
                raise TaskworksError(ErrorCode.POLL_CHECK, "poll function reported an error")
            if response is PollResponse.TRIGGER:
                with self._lock:
                    if event not in self._poll_events:
                        continue
                    self._poll_events.remove(event)
                event._fire(args)
                return True
        return False

    @staticmethod
    def _fired_args(args: EventArgs, mask: int) -> EventArgs:
        if isinstance(args, FileArgs):
            events = FileEvents.NONE
            if mask & selectors.EVENT_READ:
                events |= FileEvents.READY_FOR_READ
            if mask & selectors.EVENT_WRITE:
                events |= FileEvents.READY_FOR_WRITE
            return FileArgs(args.fd, events)
        if isinstance(args, SocketArgs):
            sevents = SocketEvents.NONE
            if mask & selectors.EVENT_READ:
                sevents |= SocketEvents.READY_FOR_READ
            if mask & selectors.EVENT_WRITE:
                sevents |= SocketEvents.READY_FOR_WRITE
            return SocketArgs(args.socket, sevents)
        return args

    def check_single_event(self) -> bool:
        """Run one round of event checks.

        A triggered poll event is handled alone. Otherwise every ready file,
        socket and timer event is handled once. Returns False only when no
        poll event triggered and nothing else was being watched.
        """
        if self._check_polls():
            return True
        fired: list[tuple[Event, EventArgs]] = []
        with self._lock:
            selector = self._check_open()
            watching_io = bool(selector.get_map())
            if not watching_io and not self._timers:
                return False
            if watching_io:
                for key, mask in selector.select(timeout=0):
                    # Events are one-shot: a handler recommits to keep watching.
                    selector.unregister(key.fileobj)
                    fired.append((key.data, self._fired_args(key.data._args, mask)))
            now = time.monotonic()
            for event, deadline in list(self._timers.items()):
                if deadline <= now:
                    del self._timers[event]
                    fired.append((event, event._args))
        for event, args in fired:
            event._fire(args)
        return True

    def check_events(self, timeout: float | None = None, once: bool = False) -> bool:
        """Check events repeatedly until nothing is watched or the time runs out.

        timeout is in seconds, None meaning no limit; once performs a single
        check. Returns what the last check reported.
        """
        stop = None if timeout is None else time.monotonic() + timeout
        while True:
            have_event = self.check_single_event()
            if once or not have_event:
                return have_event
            if stop is not None and time.monotonic() >= stop:
                return have_event

    def close(self) -> None:
        """Stop watching everything and release the loop."""
        with self._lock:
            selector = self._check_open()
            selector.close()
            self._selector = None
            self._timers.clear()
            self._poll_events.clear()


class Event:
    """An event source paired with the handler run when it triggers."""

    def __init__(self, handler: EventHandler, data: Any, args: EventArgs) -> None:
        if not callable(handler):
            raise TaskworksError(ErrorCode.INVAL, "event handler must be callable")
        self._handler = handler
        self._data = data
        self._args = args
        self._lock = threading.Lock()
        self._state = EventState.PENDING
        self._loop: EventLoop | None = None
        # One extra commit is accepted while the event is committed or running,
        # so that a handler can recommit its own event.
        self._next_loop: EventLoop | None = None
        self._freed = False

    @property
    def state(self) -> EventState:
        """Current life-cycle state."""
        return self._state

    @property
    def args(self) -> EventArgs:
        """The arguments the event was created with."""
        return self._args

    @property
    def data(self) -> Any:
        """The user data handed to the handler."""
        return self._data

    @property
    def freed(self) -> bool:
        """True once the event has been freed."""
        return self._freed

    def _check_alive(self) -> None:
        if self._freed:
            raise TaskworksError(ErrorCode.INVAL_HANDLE, "event has been freed")

    def commit(self, loop: EventLoop) -> None:
        """Start watching in loop; while busy, queue one commit for later."""
        self._check_alive()
        with self._lock:
            if self._state is EventState.PENDING:
                self._state = EventState.COMMITTED
            elif self._next_loop is None:
                self._next_loop = loop
                return
            else:
                raise TaskworksError(ErrorCode.STATUS, "event already committed")
        try:
            loop._watch(self, self._args)
        except BaseException:
            with self._lock:
                self._state = EventState.PENDING
            raise
        self._loop = loop

    def retract(self) -> None:
        """Stop watching the event."""
        self._check_alive()
        loop = self._loop
        if loop is None:
            raise TaskworksError(ErrorCode.STATUS, "event is not committed")
        loop._discard(self)
        with self._lock:
            self._state = EventState.PENDING
        self._loop = None

    def free(self) -> None:
        """Stop watching and release the event."""
        self._check_alive()
        if self._loop is not None:
            self._loop._discard(self)
            self._loop = None
        self._freed = True

    def _fire(self, args: EventArgs) -> None:
        with self._lock:
            if self._state is not EventState.COMMITTED:
                return
            self._state = EventState.RUNNING
        try:
            self._handler(args, self._data)
        finally:
            with self._lock:
                self._state = EventState.PENDING
                next_loop, self._next_loop = self._next_loop, None
            if next_loop is not None and not self._freed:
                self.commit(next_loop)


class EventDriver:
    """Owns the loops and events it creates and releases them at finalize()."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._loops: list[EventLoop] | None = None
        self._events: list[Event] | None = None

    def _require_init(self) -> tuple[list[EventLoop], list[Event]]:
        if self._loops is None or self._events is None:
            raise TaskworksError(ErrorCode.STATUS, "event driver is not initialised")
        return self._loops, self._events

    def init(self) -> None:
        """Prepare the driver for use."""
        with self._lock:
            if self._loops is not None:
                raise TaskworksError(ErrorCode.STATUS, "event driver already initialised")
            self._loops = []
            self._events = []

    def finalize(self) -> None:
        """Free every event and close every loop still alive."""
        with self._lock:
            loops, events = self._require_init()
            for event in events:
                if not event.freed:
                    event.free()
            for loop in loops:
                if not loop.closed:
                    loop.close()
            self._loops = None
            self._events = None

    def create_loop(self) -> EventLoop:
        """Create a new event loop."""
        with self._lock:
            loops, _ = self._require_init()
            loop = EventLoop()
            loops.append(loop)
            return loop

    def create_event(self, handler: EventHandler, data: Any, args: EventArgs) -> Event:
        """Create a new event."""
        with self._lock:
            _, events = self._require_init()
            event = Event(handler, data, args)
            events.append(event)
            return event