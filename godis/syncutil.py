"""Thread-safe boolean flag and a wait group that can time out."""

from __future__ import annotations

import threading

__all__ = ["AtomicBool", "Wait"]


class AtomicBool:
    """A boolean whose reads and writes are atomic."""

    __slots__ = ("_value", "_lock")

    def __init__(self, value: bool = False) -> None:
        self._value = bool(value)
        self._lock = threading.Lock()

    def get(self) -> bool:
        """Read the value."""
        with self._lock:
            return self._value

    def set(self, value: bool) -> None:
        """Write the value."""
        with self._lock:
            self._value = bool(value)

    def __bool__(self) -> bool:
        return self.get()


class Wait:
    """A counter of unfinished work that can be waited on, with or without a timeout."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int) -> None:
        """Add delta, which may be negative, to the counter."""
        with self._cond:
            count = self._count + delta
            if count < 0:
                raise ValueError("negative wait counter")
            self._count = count
            if count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        """Decrement the counter by one."""
        self.add(-1)

    def wait(self) -> None:
        """Block until the counter is zero."""
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)

    def wait_with_timeout(self, timeout: float) -> bool:
        """Block until the counter is zero or timeout seconds pass.

        Returns True if the wait timed out.
        """
        with self._cond:
            return not self._cond.wait_for(lambda: self._count == 0, timeout)