"""TCP server loop, and an echo handler for checking that it works."""

from __future__ import annotations

import signal
import socket
import threading
from dataclasses import dataclass
from typing import Protocol

from godis import logger
from godis.syncutil import AtomicBool, Wait

__all__ = [
    "ServerConfig",
    "EchoClient",
    "EchoHandler",
    "listen_and_serve",
    "listen_and_serve_with_signal",
]

_ACCEPT_POLL_SECONDS = 0.1
_CLOSE_WAIT_SECONDS = 10.0
_SIGNAL_NAMES = ("SIGHUP", "SIGQUIT", "SIGTERM", "SIGINT")


class Handler(Protocol):
    def handle(self, conn: socket.socket) -> None: ...

    def close(self) -> None: ...


@dataclass
class ServerConfig:
    """Properties of the TCP server."""

    address: str
    max_connect: int = 0
    timeout: float = 0.0


class _Counter:
    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def add(self, delta: int) -> None:
        with self._lock:
            self._value += delta

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


_active_clients = _Counter()


def _shutdown_and_close(conn: socket.socket) -> None:
    try:
        conn.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    conn.close()


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {address}")
    return host.strip("[]"), int(port)


class EchoClient:
    """A connection served by the echo handler."""

    def __init__(self, conn: socket.socket) -> None:
        self.conn = conn
        self.waiting = Wait()

    def close(self) -> None:
        """Wait for an echo in progress, then close the connection."""
        self.waiting.wait_with_timeout(_CLOSE_WAIT_SECONDS)
        _shutdown_and_close(self.conn)


class EchoHandler:
    """Sends every received line back to the client."""

    def __init__(self) -> None:
        self._active: dict[EchoClient, None] = {}
        self._lock = threading.Lock()
        self._closing = AtomicBool()

    def handle(self, conn: socket.socket) -> None:
        """Echo lines until the client goes away."""
        if self._closing.get():
            conn.close()
            return
        client = EchoClient(conn)
        with self._lock:
            self._active[client] = None
        if self._closing.get():
            client.close()
            return
        reader = conn.makefile("rb")
        try:
            while True:
                line = reader.readline()
                if not line.endswith(b"\n"):
                    logger.info("connection close")
                    with self._lock:
                        self._active.pop(client, None)
                    return
                client.waiting.add(1)
                try:
                    conn.sendall(line)
                finally:
                    client.waiting.done()
        except OSError as exc:
            logger.warn(exc)
        finally:
            reader.close()

    def close(self) -> None:
        """Refuse new connections and close the open ones."""
        logger.info("handler shutting down...")
        self._closing.set(True)
        with self._lock:
            clients = list(self._active)
        for client in clients:
            client.close()


def listen_and_serve(listener: socket.socket, handler: Handler, close_event: threading.Event) -> None:
    """Accept connections and serve each in a thread until close_event is set.

    Blocks until every connection has been served.
    """
    listener.settimeout(_ACCEPT_POLL_SECONDS)
    workers: list[threading.Thread] = []

    def serve(conn: socket.socket) -> None:
        try:
            handler.handle(conn)
        finally:
            _active_clients.add(-1)

    try:
        while True:
            if close_event.is_set():
                logger.info("get exit signal")
                break
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                logger.info(f"accept error: {exc}")
                break
            conn.setblocking(True)
            logger.info("accept link")
            _active_clients.add(1)
            worker = threading.Thread(target=serve, args=(conn,), daemon=True)
            workers.append(worker)
            worker.start()
    finally:
        logger.info("shutting down...")
        listener.close()
        handler.close()
    for worker in workers:
        worker.join()


def listen_and_serve_with_signal(config: ServerConfig, handler: Handler) -> None:
    """Bind the configured address and serve until a stop signal arrives."""
    host, port = _split_address(config.address)
    listener = socket.create_server((host, port))
    close_event = threading.Event()

    def on_signal(signum, frame) -> None:
        close_event.set()

    previous = {}
    for name in _SIGNAL_NAMES:
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            previous[sig] = signal.signal(sig, on_signal)
        except ValueError:
            # signal handlers can only be installed from the main thread
            break
    logger.info(f"bind: {config.address}, start listening...")
    try:
        listen_and_serve(listener, handler, close_event)
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)