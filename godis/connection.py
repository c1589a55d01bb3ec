"""Client connection state, and an in-memory connection for tests."""

from __future__ import annotations

import enum
import socket
import threading
from typing import Any, Optional

from godis.syncutil import Wait

__all__ = ["Connection", "FakeConn"]

_CLOSE_WAIT_SECONDS = 10.0


class _Flag(enum.IntFlag):
    NONE = 0
    SLAVE = 1
    MASTER = 2
    MULTI = 4


def _format_addr(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host, port = addr[0], addr[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(addr)


class Connection:
    """A client connected to the server, with its subscriptions and transaction state."""

    def __init__(self, sock: Optional[socket.socket]) -> None:
        self._sock = sock
        self._sending = Wait()
        self._lock = threading.Lock()
        self._flags = _Flag.NONE
        self._subs: dict[str, None] = {}
        self.password = ""
        self.queue: list[list[bytes]] = []
        self.watching: dict[str, int] = {}
        self.tx_errors: list[BaseException] = []
        self.db_index = 0

    def remote_addr(self) -> Any:
        """Return the peer address of the socket, or None without one."""
        if self._sock is None:
            return None
        return self._sock.getpeername()

    def close(self) -> None:
        """Wait for pending writes, close the socket and reset the state."""
        self._sending.wait_with_timeout(_CLOSE_WAIT_SECONDS)
        if self._sock is not None:
            self._sock.close()
        with self._lock:
            self._subs = {}
        self.password = ""
        self.queue = []
        self.watching = {}
        self.tx_errors = []
        self.db_index = 0

    def write(self, data: bytes) -> int:
        """Send data to the client and return the number of bytes sent."""
        if not data:
            return 0
        if self._sock is None:
            raise BrokenPipeError("connection closed")
        self._sending.add(1)
        try:
            self._sock.sendall(data)
        finally:
            self._sending.done()
        return len(data)

    def name(self) -> str:
        """Return the peer address as text, or "" if unknown."""
        if self._sock is None:
            return ""
        try:
            return _format_addr(self._sock.getpeername())
        except OSError:
            return ""

    def subscribe(self, channel: str) -> None:
        """Record that this client listens on channel."""
        with self._lock:
            self._subs[channel] = None

    def unsubscribe(self, channel: str) -> None:
        """Forget that this client listens on channel."""
        with self._lock:
            self._subs.pop(channel, None)

    def subs_count(self) -> int:
        """Return the number of subscribed channels."""
        return len(self._subs)

    def get_channels(self) -> list[str]:
        """Return the subscribed channels."""
        with self._lock:
            return list(self._subs)

    def in_multi_state(self) -> bool:
        """Return whether a transaction is open."""
        return bool(self._flags & _Flag.MULTI)

    def set_multi_state(self, state: bool) -> None:
        """Open a transaction, or close it and drop its queued commands and watches."""
        if state:
            self._flags |= _Flag.MULTI
            return
        self.watching = {}
        self.queue = []
        self._flags &= ~_Flag.MULTI

    def enqueue_cmd(self, cmd_line: list[bytes]) -> None:
        """Queue a command of the open transaction."""
        self.queue.append(cmd_line)

    def add_tx_error(self, err: BaseException) -> None:
        """Record a syntax error met inside the transaction."""
        self.tx_errors.append(err)

    def clear_queued_cmds(self) -> None:
        """Drop the queued commands of the transaction."""
        self.queue = []

    def select_db(self, db_num: int) -> None:
        """Select a database by index."""
        self.db_index = db_num

    def set_slave(self) -> None:
        """Mark this as a connection with a replica."""
        self._flags |= _Flag.SLAVE

    def is_slave(self) -> bool:
        """Return whether this is a connection with a replica."""
        return bool(self._flags & _Flag.SLAVE)

    def set_master(self) -> None:
        """Mark this as a connection with a master."""
        self._flags |= _Flag.MASTER

    def is_master(self) -> bool:
        """Return whether this is a connection with a master."""
        return bool(self._flags & _Flag.MASTER)


class FakeConn(Connection):
    """A connection whose written bytes are kept in memory and can be read back."""

    def __init__(self) -> None:
        super().__init__(None)
        self._buf = bytearray()
        self._offset = 0
        self.closed = False
        self._cond = threading.Condition()

    def write(self, data: bytes) -> int:
        """Append data to the buffer."""
        with self._cond:
            if self.closed:
                raise BrokenPipeError("connection closed")
            self._buf += data
            self._cond.notify_all()
        return len(data)

    def read(self, size: int = -1) -> bytes:
        """Read unread bytes, blocking until some arrive; b"" once closed and drained."""
        with self._cond:
            self._cond.wait_for(lambda: self.closed or self._offset < len(self._buf))
            end = len(self._buf) if size < 0 else min(len(self._buf), self._offset + size)
            data = bytes(self._buf[self._offset : end])
            self._offset = end
            return data

    def clean(self) -> None:
        """Discard everything written so far."""
        with self._cond:
            self._buf = bytearray()
            self._offset = 0

    def getvalue(self) -> bytes:
        """Return everything written since the last clean."""
        with self._cond:
            return bytes(self._buf)

    def close(self) -> None:
        """Mark the connection closed and wake blocked readers."""
        with self._cond:
            self.closed = True
            self._cond.notify_all()