import dataclasses

import pytest

from taskworks.errors import ErrorCode, TaskworksError
from taskworks.types import (
    EVENT_STATUS_ANY,
    Backend,
    EventBackend,
    EventStatus,
    EventType,
    FileArgs,
    FileEvents,
    PollArgs,
    PollResponse,
    SocketArgs,
    SocketEvents,
    TaskPriority,
    TaskStatus,
    TimerArgs,
)


@pytest.mark.parametrize(
    "value, member",
    [
        (0x1, "IDLE"),
        (0x2, "DEPHOLD"),
        (0x4, "READY"),
        (0x40, "COMPLETED"),
        (0x100, "FAILED"),
    ],
)
def test_task_status_values_match_header(value, member):
    assert TaskStatus(value).name == member


def test_task_status_values_increase_along_lifecycle():
    order = [TaskStatus(v) for v in (0x1, 0x2, 0x4, 0x8, 0x10, 0x20, 0x40)]
    assert [s.name for s in order] == [
        "IDLE",
        "DEPHOLD",
        "READY",
        "QUEUE",
        "RUNNING",
        "FINAL",
        "COMPLETED",
    ]
    assert order == sorted(order)


def test_task_status_mask_combination():
    mask = TaskStatus(0x41)
    assert TaskStatus.COMPLETED in mask
    assert TaskStatus.IDLE in mask
    assert TaskStatus.FAILED not in mask


@pytest.mark.parametrize(
    "value, member", [(1, "URGENT"), (2, "STANDARD"), (3, "LAZY")]
)
def test_priority_order(value, member):
    assert TaskPriority(value).name == member


def test_backend_order():
    assert [Backend(b.value).name for b in Backend] == ["DEFAULT", "ARGOBOTS", "NATIVE"]
    assert [EventBackend(b.value).name for b in EventBackend] == [
        "DEFAULT",
        "LIBEVENT",
        "NONE",
    ]


def test_event_status_any_covers_every_status():
    for status in EventStatus:
        assert EventStatus(int(status) & EVENT_STATUS_ANY) is status


def test_file_events_all_is_union():
    union = (
        FileEvents.READY_FOR_READ
        | FileEvents.READY_FOR_WRITE
        | FileEvents.READ
        | FileEvents.WRITE
    )
    assert FileEvents(0xF) == union
    assert FileArgs(1, 0xF).events == FileEvents.ALL
    assert int(SocketArgs(1, 0xF).events) == int(SocketEvents.ALL)


def test_file_args_round_trip():
    args = FileArgs(7, FileEvents.READY_FOR_READ)
    assert args.fd == 7
    assert args.events is FileEvents.READY_FOR_READ
    assert args.type is EventType.FILE


def test_file_args_converts_int_events():
    args = FileArgs(3, 0x4)
    assert args.events == FileEvents.READY_FOR_READ
    assert isinstance(args.events, FileEvents)


def test_file_args_rejects_unknown_bits():
    with pytest.raises(TaskworksError) as info:
        FileArgs(3, 0x10)
    assert info.value.code is ErrorCode.INVAL


def test_socket_args_round_trip():
    args = SocketArgs(5, SocketEvents.READY_FOR_READ | SocketEvents.READY_FOR_WRITE)
    assert args.socket == 5
    assert SocketEvents.READY_FOR_WRITE in args.events
    assert args.type is EventType.SOCKET


def test_socket_args_rejects_negative_bits():
    with pytest.raises(TaskworksError):
        SocketArgs(5, -1)


def test_timer_args_from_source_test():
    args = TimerArgs(1000, 2)
    assert args.micro_sec == 1000
    assert args.repeat_count == 2
    assert args.type is EventType.TIMER


def test_timer_args_rejects_negative_delay():
    with pytest.raises(TaskworksError) as info:
        TimerArgs(-1, 1)
    assert info.value.code is ErrorCode.INVAL


def test_poll_args_calls_through():
    state = {"flag": 1}

    def poll_check(data):
        if data["flag"]:
            data["flag"] = 0
            return PollResponse.TRIGGER
        return PollResponse.PENDING

    args = PollArgs(poll_check, state)
    assert args.type is EventType.POLL
    assert args.poll(args.data) is PollResponse.TRIGGER
    assert args.poll(args.data) is PollResponse.PENDING


def test_poll_args_rejects_non_callable():
    with pytest.raises(TaskworksError):
        PollArgs(42)


def test_args_are_immutable():
    args = TimerArgs(1000, 2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        args.micro_sec = 5
    assert args.micro_sec == 1000