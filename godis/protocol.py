"""Replies of the Redis serialization protocol and their wire encoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

__all__ = [
    "CRLF",
    "Reply",
    "PongReply",
    "OkReply",
    "NullBulkReply",
    "EmptyMultiBulkReply",
    "NoReply",
    "QueuedReply",
    "BulkReply",
    "MultiBulkReply",
    "MultiRawReply",
    "StatusReply",
    "IntReply",
    "ErrorReply",
    "StandardErrReply",
    "UnknownErrReply",
    "ArgNumErrReply",
    "SyntaxErrReply",
    "WrongTypeErrReply",
    "ProtocolErrReply",
    "is_ok_reply",
    "is_error_reply",
]

CRLF = "\r\n"
_CRLF = b"\r\n"

_PONG_BYTES = b"+PONG\r\n"
_OK_BYTES = b"+OK\r\n"
_NULL_BULK_BYTES = b"$-1\r\n"
_EMPTY_MULTI_BULK_BYTES = b"*0\r\n"
_QUEUED_BYTES = b"+QUEUED\r\n"


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _bulk(arg: Optional[bytes]) -> bytes:
    if arg is None:
        return _NULL_BULK_BYTES
    return b"$%d\r\n" % len(arg) + bytes(arg) + _CRLF


class Reply(ABC):
    """Something that can be sent to a client as protocol bytes."""

    __slots__ = ()

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Return the wire encoding of the reply."""


@dataclass(frozen=True)
class PongReply(Reply):
    """The +PONG status."""

    def to_bytes(self) -> bytes:
        return _PONG_BYTES


@dataclass(frozen=True)
class OkReply(Reply):
    """The +OK status."""

    def to_bytes(self) -> bytes:
        return _OK_BYTES


@dataclass(frozen=True)
class NullBulkReply(Reply):
    """A missing bulk string."""

    def to_bytes(self) -> bytes:
        return _NULL_BULK_BYTES


@dataclass(frozen=True)
class EmptyMultiBulkReply(Reply):
    """An empty array."""

    def to_bytes(self) -> bytes:
        return _EMPTY_MULTI_BULK_BYTES


@dataclass(frozen=True)
class NoReply(Reply):
    """Nothing at all, for commands such as SUBSCRIBE that write on their own."""

    def to_bytes(self) -> bytes:
        return b""


@dataclass(frozen=True)
class QueuedReply(Reply):
    """The +QUEUED status of a command inside MULTI."""

    def to_bytes(self) -> bytes:
        return _QUEUED_BYTES


@dataclass
class BulkReply(Reply):
    """A binary-safe string; None encodes as a null bulk string."""

    arg: Optional[bytes]

    def to_bytes(self) -> bytes:
        return _bulk(self.arg)


@dataclass
class MultiBulkReply(Reply):
    """An array of binary-safe strings; None items encode as null."""

    args: list[Optional[bytes]] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        parts = [b"*%d\r\n" % len(self.args)]
        parts.extend(_bulk(arg) for arg in self.args)
        return b"".join(parts)


@dataclass
class MultiRawReply(Reply):
    """An array of arbitrary replies, e.g. nested lists."""

    replies: list[Reply] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        parts = [b"*%d\r\n" % len(self.replies)]
        parts.extend(reply.to_bytes() for reply in self.replies)
        return b"".join(parts)


@dataclass
class StatusReply(Reply):
    """A simple status string."""

    status: str

    def to_bytes(self) -> bytes:
        return b"+" + _encode(self.status) + _CRLF


@dataclass
class IntReply(Reply):
    """A 64-bit integer."""

    code: int

    def to_bytes(self) -> bytes:
        return b":%d\r\n" % self.code


class ErrorReply(Reply, Exception):
    """A reply that reports an error; it can also be raised."""

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.to_bytes()))


class StandardErrReply(ErrorReply):
    """A server error with a free-form message."""

    def __init__(self, status: str) -> None:
        super().__init__(status)
        self.status = status

    def to_bytes(self) -> bytes:
        return b"-" + _encode(self.status) + _CRLF


class UnknownErrReply(ErrorReply):
    """An unspecified error."""

    def __init__(self) -> None:
        super().__init__("Err unknown")

    def to_bytes(self) -> bytes:
        return b"-Err unknown\r\n"


class ArgNumErrReply(ErrorReply):
    """A command called with the wrong number of arguments."""

    def __init__(self, cmd: str) -> None:
        super().__init__(f"ERR wrong number of arguments for '{cmd}' command")
        self.cmd = cmd

    def to_bytes(self) -> bytes:
        return b"-" + _encode(str(self)) + _CRLF


class SyntaxErrReply(ErrorReply):
    """Unexpected arguments."""

    def __init__(self) -> None:
        super().__init__("Err syntax error")

    def to_bytes(self) -> bytes:
        return b"-Err syntax error\r\n"


class WrongTypeErrReply(ErrorReply):
    """An operation against a key holding the wrong kind of value."""

    def __init__(self) -> None:
        super().__init__("WRONGTYPE Operation against a key holding the wrong kind of value")

    def to_bytes(self) -> bytes:
        return b"-WRONGTYPE Operation against a key holding the wrong kind of value\r\n"


class ProtocolErrReply(ErrorReply):
    """An unexpected byte met while parsing a request."""

    def __init__(self, msg: str) -> None:
        super().__init__(f"ERR Protocol error '{msg}' command")
        self.msg = msg

    def to_bytes(self) -> bytes:
        return b"-ERR Protocol error: '" + _encode(self.msg) + b"'\r\n"


def is_ok_reply(reply: Reply) -> bool:
    """Return whether the reply encodes as +OK."""
    return reply.to_bytes() == _OK_BYTES


def is_error_reply(reply: Reply) -> bool:
    """Return whether the reply encodes as an error."""
    return reply.to_bytes()[:1] == b"-"