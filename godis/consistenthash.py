"""Consistent hash ring for spreading keys over nodes."""

from __future__ import annotations

import bisect
import zlib
from typing import Callable, Optional

__all__ = ["HashRing"]

HashFunc = Callable[[bytes], int]


def _partition_key(key: str) -> str:
    """Return the hash tag inside braces, or the whole key."""
    beg = key.find("{")
    if beg == -1:
        return key
    end = key.find("}")
    if end == -1 or end == beg + 1:
        return key
    return key[beg + 1 : end]


class HashRing:
    """Nodes placed on a hash circle; keys go to the next node clockwise."""

    def __init__(self, replicas: int, hash_func: Optional[HashFunc] = None) -> None:
        self.replicas = replicas
        self.hash_func: HashFunc = hash_func if hash_func is not None else zlib.crc32
        self._keys: list[int] = []
        self._nodes: dict[int, str] = {}

    def is_empty(self) -> bool:
        """Return whether the ring holds no node."""
        return not self._keys

    def add_node(self, *args: str) -> None:
        """Add nodes to the ring; empty names are skipped."""
        for node in args:
            if not node:
                continue
            for i in range(self.replicas):
                hash_code = self.hash_func(f"{i}{node}".encode())
                self._keys.append(hash_code)
                self._nodes[hash_code] = node
        self._keys.sort()

    def pick_node(self, key: str) -> str:
        """Return the node responsible for key, or "" if the ring is empty."""
        if self.is_empty():
            return ""
        hash_code = self.hash_func(_partition_key(key).encode())
        idx = bisect.bisect_left(self._keys, hash_code)
        if idx == len(self._keys):
            idx = 0
        return self._nodes[self._keys[idx]]