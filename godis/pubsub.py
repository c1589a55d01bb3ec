"""Publish/subscribe: channels, their subscribers and message delivery."""

from __future__ import annotations

import threading
from typing import Sequence

from godis.connection import Connection
from godis.protocol import ArgNumErrReply, IntReply, MultiBulkReply, NoReply, Reply

__all__ = ["Hub", "subscribe", "unsubscribe_all", "unsubscribe", "publish"]

_SUBSCRIBE = "subscribe"
_UNSUBSCRIBE = "unsubscribe"
_MESSAGE = b"message"
_UNSUBSCRIBE_NOTHING = b"*3\r\n$11\r\nunsubscribe\r\n$-1\n:0\r\n"


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(data: bytes) -> str:
    return bytes(data).decode("utf-8", "surrogateescape")


def _make_msg(kind: str, channel: str, code: int) -> bytes:
    kind_bytes = _encode(kind)
    channel_bytes = _encode(channel)
    return b"*3\r\n$%d\r\n%s\r\n$%d\r\n%s\r\n:%d\r\n" % (
        len(kind_bytes),
        kind_bytes,
        len(channel_bytes),
        channel_bytes,
        code,
    )


def _send(conn: Connection, data: bytes) -> None:
    try:
        conn.write(data)
    except OSError:
        pass


class Hub:
    """All subscribe relations: channel name to its subscribing connections."""

    def __init__(self) -> None:
        self._subs: dict[str, list[Connection]] = {}
        self._lock = threading.RLock()

    def _add(self, channel: str, conn: Connection) -> bool:
        """Return whether conn is newly subscribed to channel."""
        conn.subscribe(channel)
        subscribers = self._subs.setdefault(channel, [])
        if any(existing is conn for existing in subscribers):
            return False
        subscribers.append(conn)
        return True

    def _remove(self, channel: str, conn: Connection) -> bool:
        """Return whether the channel had subscribers to remove conn from."""
        conn.unsubscribe(channel)
        subscribers = self._subs.get(channel)
        if subscribers is None:
            return False
        subscribers[:] = [existing for existing in subscribers if existing is not conn]
        if not subscribers:
            del self._subs[channel]
        return True


def subscribe(hub: Hub, conn: Connection, args: Sequence[bytes]) -> Reply:
    """Subscribe conn to every channel in args, confirming each new one."""
    channels = [_decode(arg) for arg in args]
    with hub._lock:
        for channel in channels:
            if hub._add(channel, conn):
                _send(conn, _make_msg(_SUBSCRIBE, channel, conn.subs_count()))
    return NoReply()


def unsubscribe_all(hub: Hub, conn: Connection) -> None:
    """Remove conn from every channel it subscribes to."""
    with hub._lock:
        for channel in conn.get_channels():
            hub._remove(channel, conn)


def unsubscribe(hub: Hub, conn: Connection, args: Sequence[bytes]) -> Reply:
    """Unsubscribe conn from the given channels, or from all of them if none given."""
    with hub._lock:
        channels = [_decode(arg) for arg in args] if args else conn.get_channels()
        if not channels:
            _send(conn, _UNSUBSCRIBE_NOTHING)
            return NoReply()
        for channel in channels:
            if hub._remove(channel, conn):
                _send(conn, _make_msg(_UNSUBSCRIBE, channel, conn.subs_count()))
    return NoReply()


def publish(hub: Hub, args: Sequence[bytes]) -> Reply:
    """Send a message to every subscriber of a channel; reply with their number."""
    if len(args) != 2:
        return ArgNumErrReply("publish")
    channel_bytes = bytes(args[0])
    message = bytes(args[1])
    channel = _decode(channel_bytes)
    with hub._lock:
        subscribers = list(hub._subs.get(channel, ()))
        if not subscribers:
            return IntReply(0)
        data = MultiBulkReply([_MESSAGE, channel_bytes, message]).to_bytes()
        for conn in subscribers:
            _send(conn, data)
    return IntReply(len(subscribers))