"""Small helpers for command lines, byte comparison and index ranges."""

from __future__ import annotations

from typing import Any

__all__ = ["to_cmd_line", "to_cmd_line2", "to_cmd_line3", "equals", "bytes_equals", "convert_range"]


def to_cmd_line(*args: str) -> list[bytes]:
    """Turn strings into a command line of byte strings."""
    return [arg.encode() for arg in args]


def to_cmd_line2(command_name: str, *args: str) -> list[bytes]:
    """Turn a command name and string arguments into a command line."""
    return [command_name.encode(), *(arg.encode() for arg in args)]


def to_cmd_line3(command_name: str, *args: bytes) -> list[bytes]:
    """Turn a command name and byte-string arguments into a command line."""
    return [command_name.encode(), *args]


def equals(a: Any, b: Any) -> bool:
    """Compare two values, comparing byte strings by content."""
    bytes_types = (bytes, bytearray, memoryview)
    if isinstance(a, bytes_types) and isinstance(b, bytes_types):
        return bytes_equals(a, b)
    return a == b


def bytes_equals(a: Any, b: Any) -> bool:
    """Compare two byte strings; None only equals None."""
    if (a is None) != (b is None):
        return False
    if a is None:
        return True
    return bytes(a) == bytes(b)


def convert_range(start: int, end: int, size: int) -> tuple[int, int]:
    """Convert an inclusive, possibly negative index pair into a slice range.

    Returns (-1, -1) when the range lies out of bounds.
    """
    if start < -size:
        return -1, -1
    if start < 0:
        start = size + start
    elif start >= size:
        return -1, -1
    if end < -size:
        return -1, -1
    if end < 0:
        end = size + end + 1
    elif end < size:
        end = end + 1
    else:
        end = size
    if start > end:
        return -1, -1
    return start, end