"""A pool of reusable objects such as client connections."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

__all__ = ["PoolClosedError", "PoolExhaustedError", "PoolConfig", "Pool"]


class PoolClosedError(Exception):
    """Raised when taking an object from a closed pool."""

    def __init__(self) -> None:
        super().__init__("pool closed")


class PoolExhaustedError(Exception):
    """Raised to a waiter that can no longer be served."""

    def __init__(self) -> None:
        super().__init__("reach max connection limit")


@dataclass(frozen=True)
class PoolConfig:
    """Limits of a pool: idle objects kept, and objects alive at once."""

    max_idle: int = 0
    max_active: int = 0


class _Request:
    """A caller waiting for an object to be returned to the pool."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._item: Any = None
        self._cancelled = False

    def fulfil(self, item: Any) -> None:
        self._item = item
        self._event.set()

    def cancel(self) -> None:
        self._cancelled = True
        self._event.set()

    def wait(self) -> Any:
        self._event.wait()
        if self._cancelled:
            raise PoolExhaustedError()
        return self._item


class Pool:
    """Hands out pooled objects, creating them on demand up to a limit."""

    def __init__(
        self,
        factory: Callable[[], Any],
        finalizer: Callable[[Any], None],
        config: PoolConfig,
    ) -> None:
        self.config = config
        self._factory = factory
        self._finalizer = finalizer
        self._idles: deque[Any] = deque()
        self._waiting: deque[_Request] = deque()
        self._active_count = 0
        self._closed = False
        self._lock = threading.Lock()

    def get(self) -> Any:
        """Take an idle object, create one, or wait for one to be returned."""
        request: Optional[_Request] = None
        with self._lock:
            if self._closed:
                raise PoolClosedError()
            if self._idles:
                return self._idles.popleft()
            if self._active_count >= self.config.max_active:
                request = _Request()
                self._waiting.append(request)
            else:
                # hold a place for the object about to be created
                self._active_count += 1
        if request is not None:
            return request.wait()
        try:
            return self._factory()
        except BaseException:
            with self._lock:
                self._active_count -= 1
            raise

    def put(self, item: Any) -> None:
        """Return an object to the pool; surplus objects are finalized."""
        with self._lock:
            if not self._closed:
                if self._waiting:
                    self._waiting.popleft().fulfil(item)
                    return
                if len(self._idles) < self.config.max_idle:
                    self._idles.append(item)
                    return
                self._active_count -= 1
        self._finalizer(item)

    def close(self) -> None:
        """Close the pool and finalize its idle objects; closing twice is harmless."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idles = list(self._idles)
            self._idles.clear()
            waiting = list(self._waiting)
            self._waiting.clear()
        for request in waiting:
            request.cancel()
        for item in idles:
            self._finalizer(item)