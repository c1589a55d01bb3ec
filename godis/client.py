"""Pipelining client for a server speaking the Redis protocol."""

from __future__ import annotations

import enum
import queue
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from godis import logger
from godis.parser import parse_stream
from godis.protocol import MultiBulkReply, Reply, StandardErrReply
from godis.syncutil import Wait

__all__ = ["Client"]

_CHAN_SIZE = 256
_MAX_WAIT = 3.0
_HEARTBEAT_INTERVAL = 10.0
_RECONNECT_TRIES = 3
_WRITE_TRIES = 3


class _Status(enum.Enum):
    CREATED = enum.auto()
    RUNNING = enum.auto()
    CLOSED = enum.auto()


@dataclass(eq=False)
class _Request:
    args: list[bytes]
    heartbeat: bool = False
    reply: Optional[Reply] = None
    error: Optional[BaseException] = None
    finished: threading.Event = field(default_factory=threading.Event)


def _dial(addr: str) -> socket.socket:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {addr}")
    return socket.create_connection((host.strip("[]"), int(port)))


def _shutdown_and_close(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


def _is_timeout(exc: OSError) -> bool:
    text = str(exc)
    return isinstance(exc, TimeoutError) or "timeout" in text or "deadline exceeded" in text


class Client:
    """Sends requests in pipeline mode, matching replies to requests in order."""

    def __init__(self, addr: str) -> None:
        self.addr = addr
        self._sock = _dial(addr)
        self._sock_lock = threading.Lock()
        self._pending: queue.Queue[Optional[_Request]] = queue.Queue(_CHAN_SIZE)
        self._waiting: queue.Queue[Optional[_Request]] = queue.Queue(_CHAN_SIZE)
        self._working = Wait()
        self._status = _Status.CREATED
        self._stop_heartbeat = threading.Event()
        self._writer: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the writer, reader and heartbeat threads."""
        self._status = _Status.RUNNING
        self._writer = threading.Thread(target=self._write_loop, name="client-write", daemon=True)
        self._writer.start()
        threading.Thread(target=self._read_loop, name="client-read", daemon=True).start()
        threading.Thread(target=self._heartbeat_loop, name="client-heartbeat", daemon=True).start()

    def close(self) -> None:
        """Finish the requests in progress, stop the threads and close the connection."""
        if self._status is _Status.CLOSED:
            return
        started = self._status is _Status.RUNNING
        self._status = _Status.CLOSED
        self._stop_heartbeat.set()
        if started:
            self._working.wait()
            self._pending.put(None)
        with self._sock_lock:
            _shutdown_and_close(self._sock)
        try:
            self._waiting.put_nowait(None)
        except queue.Full:
            pass
        writer = self._writer
        if writer is not None and writer is not threading.current_thread():
            writer.join()

    def send(self, args: Sequence[bytes]) -> Reply:
        """Send a command and return its reply, or an error reply on failure."""
        if self._status is not _Status.RUNNING:
            return StandardErrReply("client closed")
        request = _Request(args=list(args))
        self._working.add(1)
        try:
            self._pending.put(request)
            if not request.finished.wait(_MAX_WAIT):
                return StandardErrReply("server time out")
        finally:
            self._working.done()
        if request.error is not None:
            return StandardErrReply("request failed")
        assert request.reply is not None
        return request.reply

    def _do_heartbeat(self) -> None:
        if self._status is not _Status.RUNNING:
            return
        request = _Request(args=[b"PING"], heartbeat=True)
        self._working.add(1)
        try:
            self._pending.put(request)
            request.finished.wait(_MAX_WAIT)
        finally:
            self._working.done()

    def _heartbeat_loop(self) -> None:
        while not self._stop_heartbeat.wait(_HEARTBEAT_INTERVAL):
            self._do_heartbeat()

    def _write_loop(self) -> None:
        while (request := self._pending.get()) is not None:
            self._do_request(request)

    def _do_request(self, request: _Request) -> None:
        if not request.args:
            return
        data = MultiBulkReply(list(request.args)).to_bytes()
        error: Optional[OSError] = None
        for _ in range(_WRITE_TRIES):
            try:
                with self._sock_lock:
                    sock = self._sock
                sock.sendall(data)
                error = None
                break
            except OSError as exc:
                error = exc
                if not _is_timeout(exc):
                    break
        if error is None:
            self._waiting.put(request)
        else:
            request.error = error
            request.finished.set()

    def _finish_request(self, reply: Optional[Reply]) -> None:
        request = self._waiting.get()
        if request is None:
            return
        request.reply = reply
        request.finished.set()

    def _read_loop(self) -> None:
        while True:
            with self._sock_lock:
                sock = self._sock
            try:
                with sock.makefile("rb") as reader:
                    for payload in parse_stream(reader):
                        if payload.error is not None:
                            break
                        self._finish_request(payload.data)
            except OSError:
                pass
            if self._status is _Status.CLOSED:
                return
            if not self._reconnect():
                return

    def _reconnect(self) -> bool:
        logger.info("reconnect with: " + self.addr)
        with self._sock_lock:
            _shutdown_and_close(self._sock)
        sock: Optional[socket.socket] = None
        for _ in range(_RECONNECT_TRIES):
            try:
                sock = _dial(self.addr)
                break
            except OSError as exc:
                logger.error(f"reconnect error: {exc}")
                time.sleep(1)
        if sock is None:
            self.close()
            return False
        with self._sock_lock:
            self._sock = sock
        while True:
            try:
                request = self._waiting.get_nowait()
            except queue.Empty:
                break
            if request is None:
                continue
            request.error = ConnectionError("connection closed")
            request.finished.set()
        return True