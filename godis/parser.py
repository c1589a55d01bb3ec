"""Streaming parser for the Redis serialization protocol."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol

from godis.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    NullBulkReply,
    Reply,
    StandardErrReply,
    StatusReply,
)

__all__ = ["ProtocolError", "Payload", "parse_stream", "parse_bytes", "parse_one"]

_INT_RE = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_CHUNK_SIZE = 4096


class ProtocolError(Exception):
    """Raised or reported when the input does not follow the protocol."""

    def __init__(self, msg: str) -> None:
        super().__init__(f"protocol error: {msg}")


@dataclass
class Payload:
    """One parsed reply, or the error met while parsing."""

    data: Optional[Reply] = None
    error: Optional[BaseException] = None


class _Readable(Protocol):
    def read(self, size: int = ...) -> bytes: ...


class _ChunkReader:
    """Line and exact reads on top of a source that only offers read(size)."""

    def __init__(self, source: _Readable) -> None:
        self._source = source
        self._buf = bytearray()

    def _fill(self) -> bool:
        chunk = self._source.read(_CHUNK_SIZE)
        if not chunk:
            return False
        self._buf += chunk
        return True

    def readline(self) -> bytes:
        while True:
            idx = self._buf.find(b"\n")
            if idx >= 0:
                line = bytes(self._buf[: idx + 1])
                del self._buf[: idx + 1]
                return line
            if not self._fill():
                line = bytes(self._buf)
                self._buf.clear()
                return line

    def read(self, size: int) -> bytes:
        while len(self._buf) < size:
            if not self._fill():
                break
        data = bytes(self._buf[:size])
        del self._buf[:size]
        return data


def _text(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _parse_int(data: bytes) -> Optional[int]:
    if not _INT_RE.fullmatch(data):
        return None
    value = int(data)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _read_exact(reader, size: int) -> bytes:
    parts = []
    remaining = size
    while remaining > 0:
        chunk = reader.read(remaining)
        if not chunk:
            raise EOFError("unexpected EOF")
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def _parse_bulk(header: bytes, reader) -> Iterator[Payload]:
    length = _parse_int(header[1:])
    if length is None or length < -1:
        yield Payload(error=ProtocolError("illegal bulk string header: " + _text(header)))
        return
    if length == -1:
        yield Payload(data=NullBulkReply())
        return
    body = _read_exact(reader, length + 2)
    yield Payload(data=BulkReply(body[:-2]))


def _parse_rdb_bulk(reader) -> Payload:
    """Read an RDB transfer, which has no CRLF after its body."""
    header = reader.readline()
    if header.endswith(b"\r\n"):
        header = header[:-2]
    if not header:
        raise ProtocolError("empty header")
    length = _parse_int(header[1:])
    if length is None or length <= 0:
        raise ProtocolError("illegal bulk header: " + _text(header))
    return Payload(data=BulkReply(_read_exact(reader, length)))


def _parse_array(header: bytes, reader) -> Iterator[Payload]:
    count = _parse_int(header[1:])
    if count is None or count < 0:
        yield Payload(error=ProtocolError("illegal array header " + _text(header[1:])))
        return
    if count == 0:
        yield Payload(data=EmptyMultiBulkReply())
        return
    items: list[Optional[bytes]] = []
    for _ in range(count):
        line = reader.readline()
        if not line.endswith(b"\n"):
            raise EOFError("unexpected EOF")
        if len(line) < 4 or line[-2:-1] != b"\r" or line[:1] != b"$":
            yield Payload(error=ProtocolError("illegal bulk string header " + _text(line)))
            break
        length = _parse_int(line[1:-2])
        if length is None or length < -1:
            yield Payload(error=ProtocolError("illegal bulk string length " + _text(line)))
            break
        if length == -1:
            items.append(b"")
        else:
            items.append(_read_exact(reader, length + 2)[:-2])
    yield Payload(data=MultiBulkReply(items))


def _parse(reader) -> Iterator[Payload]:
    try:
        while True:
            line = reader.readline()
            if not line.endswith(b"\n"):
                return
            if len(line) <= 2 or line[-2:-1] != b"\r":
                # replication traffic may hold empty lines
                continue
            line = line[:-2]
            kind = line[:1]
            if kind == b"+":
                content = _text(line[1:])
                yield Payload(data=StatusReply(content))
                if content.startswith("FULLRESYNC"):
                    yield _parse_rdb_bulk(reader)
            elif kind == b"-":
                yield Payload(data=StandardErrReply(_text(line[1:])))
            elif kind == b":":
                value = _parse_int(line[1:])
                if value is None:
                    yield Payload(error=ProtocolError("illegal number " + _text(line[1:])))
                else:
                    yield Payload(data=IntReply(value))
            elif kind == b"$":
                yield from _parse_bulk(line, reader)
            elif kind == b"*":
                yield from _parse_array(line, reader)
            else:
                yield Payload(data=MultiBulkReply(line.split(b" ")))
    except (OSError, EOFError, ProtocolError) as exc:
        yield Payload(error=exc)


def parse_stream(reader) -> Iterator[Payload]:
    """Parse payloads from a binary reader until it is exhausted.

    Recoverable protocol errors arrive as payloads with ``error`` set and
    parsing goes on; a truncated message or I/O failure arrives as a final
    error payload. A clean end of input ends the iteration.
    """
    source = reader if hasattr(reader, "readline") else _ChunkReader(reader)
    return _parse(source)


def parse_bytes(data: bytes) -> list[Reply]:
    """Parse every reply in data, raising the first error met."""
    replies: list[Reply] = []
    for payload in parse_stream(io.BytesIO(data)):
        if payload.error is not None:
            raise payload.error
        if payload.data is not None:
            replies.append(payload.data)
    return replies


def parse_one(data: bytes) -> Reply:
    """Parse the first reply in data."""
    payload = next(parse_stream(io.BytesIO(data)), None)
    if payload is None:
        raise EOFError("no protocol")
    if payload.error is not None:
        raise payload.error
    assert payload.data is not None
    return payload.data