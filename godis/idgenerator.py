"""Snowflake-style generator of unique 64-bit ids."""

from __future__ import annotations

import threading
import time

__all__ = ["IDGenerator"]

_EPOCH_MS = 1288834974657
_TIME_LEFT = 22
_NODE_LEFT = 10
_MAX_SEQUENCE = (1 << _NODE_LEFT) - 1
_NODE_MASK = (1 << (_TIME_LEFT - _NODE_LEFT)) - 1

_FNV64_OFFSET = 14695981039346656037
_FNV64_PRIME = 1099511628211
_UINT64_MASK = (1 << 64) - 1


def _fnv1_64(data: bytes) -> int:
    value = _FNV64_OFFSET
    for byte in data:
        value = (value * _FNV64_PRIME) & _UINT64_MASK
        value ^= byte
    return value


class IDGenerator:
    """Builds ids from a millisecond timestamp, a node id and a sequence."""

    def __init__(self, node: str) -> None:
        self.node_id = _fnv1_64(node.encode()) & _NODE_MASK
        self._lock = threading.Lock()
        self._last_stamp = -1
        self._sequence = 1
        self._wall_ns = time.time_ns() - _EPOCH_MS * 1_000_000
        self._mono_ns = time.monotonic_ns()

    def _now_ms(self) -> int:
        return (self._wall_ns + time.monotonic_ns() - self._mono_ns) // 1_000_000

    def next_id(self) -> int:
        """Return the next unique id."""
        with self._lock:
            timestamp = self._now_ms()
            if timestamp < self._last_stamp:
                raise RuntimeError("can not generate id")
            if timestamp == self._last_stamp:
                self._sequence = (self._sequence + 1) & _MAX_SEQUENCE
                if self._sequence == 0:
                    while timestamp <= self._last_stamp:
                        timestamp = self._now_ms()
            else:
                self._sequence = 0
            self._last_stamp = timestamp
            return (timestamp << _TIME_LEFT) | (self.node_id << _NODE_LEFT) | self._sequence