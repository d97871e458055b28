"""Error codes and the exception raised for them."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Numeric error codes reported by the library."""

    SUCCESS = 0x0

    # Common
    MEM = 0x10
    OS = 0x11

    # User API related
    INVAL = 0x100
    INVAL_BACKEND = 0x101
    INVAL_EVT_BACKEND = 0x102
    INVAL_HANDLE = 0x103
    INCOMPATIBLE_OBJECT = 0x104
    NOT_FOUND = 0x105
    STATUS = 0x106
    TIMEOUT = 0x107
    DEP_INIT = 0x108
    POLL_CHECK = 0x109
    POLL_INIT = 0x110
    POLL_RESET = 0x111
    POLL_FIN = 0x112

    # Engine driver related
    THREAD_CREATE = 0x200
    THREAD_SIG = 0x201
    NOT_SUPPORTED = 0x202


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.SUCCESS: "No error",
    ErrorCode.MEM: "Out of memory",
    ErrorCode.OS: "OS error",
    ErrorCode.INVAL: "Invalid argument",
    ErrorCode.INVAL_BACKEND: "Invalid backend selection",
    ErrorCode.INVAL_EVT_BACKEND: "Invalid event backend selection",
    ErrorCode.INVAL_HANDLE: "Invalid handle",
    ErrorCode.INCOMPATIBLE_OBJECT: "Object created by a different backend",
    ErrorCode.NOT_FOUND: "Object not found",
    ErrorCode.STATUS: "Wrong status",
    ErrorCode.TIMEOUT: "Timeout",
    ErrorCode.DEP_INIT: "Dependency state initializer returns non-zero",
    ErrorCode.POLL_CHECK: "Event poll function returns negative",
    ErrorCode.POLL_INIT: "Event poll function initializer returns non-zero",
    ErrorCode.POLL_RESET: "Event poll reset function returns non-zero",
    ErrorCode.POLL_FIN: "Event poll function finalizer returns non-zero",
    ErrorCode.THREAD_CREATE: "Cannot create thread",
    ErrorCode.THREAD_SIG: "Cannot signal thread",
    ErrorCode.NOT_SUPPORTED: "The backend does not support such function",
}

_UNKNOWN = "Unknown error"


def error_message(code: int) -> str:
    """Return the human readable description of an error code."""
    try:
        return _MESSAGES[ErrorCode(code)]
    except ValueError:
        return _UNKNOWN


class TaskworksError(Exception):
    """Raised whenever an operation fails with one of the library's error codes."""

    def __init__(self, code: int, detail: str | None = None) -> None:
        try:
            resolved: int = ErrorCode(code)
        except ValueError:
            resolved = int(code)
        if resolved == ErrorCode.SUCCESS:
            raise ValueError("an error cannot carry the success code")
        self.code = resolved
        self.detail = detail
        message = f"{error_message(resolved)} ({int(resolved):#x})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)