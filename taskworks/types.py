"""Backend selections, status values and event arguments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag
from typing import Any, Callable

from taskworks.errors import ErrorCode, TaskworksError

TASK_TAG_ANY = -1
EVENT_STATUS_ANY = 0x1FF


class Backend(IntEnum):
    """Task engine backend chosen at initialisation."""

    DEFAULT = 0
    ARGOBOTS = 1
    NATIVE = 2


class EventBackend(IntEnum):
    """Event loop backend chosen at initialisation."""

    DEFAULT = 0
    LIBEVENT = 1
    NONE = 2


class TaskStatus(IntFlag):
    """Task status; within one commit session a status only increases."""

    INVAL = 0x0
    IDLE = 0x1
    DEPHOLD = 0x2
    READY = 0x4
    QUEUE = 0x8
    RUNNING = 0x10
    FINAL = 0x20
    COMPLETED = 0x40
    ABORTED = 0x80
    FAILED = 0x100
    TRANS = 0x200


class TaskPriority(IntEnum):
    """Scheduling priority of a task; lower values run first."""

    URGENT = 1
    STANDARD = 2
    LAZY = 3


class EventStatus(IntFlag):
    """Status of an event."""

    INVAL = 0x0
    IDLE = 0x1
    WATCHING = 0x2
    TRIGGER = 0x4
    RUNNING = 0x10
    FAILED = 0x80
    TRANS = 0x100


class FileEvents(IntFlag):
    """Conditions watched on a file descriptor."""

    NONE = 0x0
    READ = 0x1
    WRITE = 0x2
    READY_FOR_READ = 0x4
    READY_FOR_WRITE = 0x8
    ALL = 0xF


class SocketEvents(IntFlag):
    """Conditions watched on a socket."""

    NONE = 0x0
    READ = 0x1
    WRITE = 0x2
    READY_FOR_READ = 0x4
    READY_FOR_WRITE = 0x8
    ALL = 0xF


class PollResponse(Enum):
    """Answer of a user poll function."""

    PENDING = 0
    TRIGGER = 1
    ERR = 2


class EventType(Enum):
    """Kind of source an event watches."""

    FILE = "file"
    SOCKET = "socket"
    TIMER = "timer"
    POLL = "poll"


def _check_mask(events: int, flag_type: type[IntFlag]) -> IntFlag:
    value = int(events)
    if value < 0 or value & ~int(flag_type.ALL):
        raise TaskworksError(ErrorCode.INVAL, f"unknown event bits {value:#x}")
    return flag_type(value)


@dataclass(frozen=True)
class FileArgs:
    """Watch a file descriptor for the given conditions."""

    fd: int
    events: FileEvents = FileEvents.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "events", _check_mask(self.events, FileEvents))

    @property
    def type(self) -> EventType:
        return EventType.FILE


@dataclass(frozen=True)
class SocketArgs:
    """Watch a socket for the given conditions."""

    socket: int
    events: SocketEvents = SocketEvents.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "events", _check_mask(self.events, SocketEvents))

    @property
    def type(self) -> EventType:
        return EventType.SOCKET


@dataclass(frozen=True)
class TimerArgs:
    """Fire after a delay in microseconds, repeat_count times."""

    micro_sec: int
    repeat_count: int = 1

    def __post_init__(self) -> None:
        if self.micro_sec < 0:
            raise TaskworksError(ErrorCode.INVAL, "timer delay must not be negative")

    @property
    def type(self) -> EventType:
        return EventType.TIMER


@dataclass(frozen=True)
class PollArgs:
    """Fire when a user poll function answers PollResponse.TRIGGER."""

    poll: Callable[[Any], PollResponse]
    data: Any = None

    def __post_init__(self) -> None:
        if not callable(self.poll):
            raise TaskworksError(ErrorCode.INVAL, "poll function must be callable")

    @property
    def type(self) -> EventType:
        return EventType.POLL