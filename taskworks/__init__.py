"""Thread primitives, error codes, shared status values and an event loop for task runtimes."""

__version__ = "0.1.0"
__all__ = ["errors", "types", "threads", "eventloop"]