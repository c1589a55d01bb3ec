import random
import socket
import threading
import time

import pytest

from godis.tcp import (
    EchoClient,
    EchoHandler,
    ServerConfig,
    listen_and_serve,
    listen_and_serve_with_signal,
)


def _start_server(handler):
    listener = socket.create_server(("127.0.0.1", 0))
    close_event = threading.Event()
    thread = threading.Thread(
        target=listen_and_serve, args=(listener, handler, close_event), daemon=True
    )
    thread.start()
    return listener, close_event, thread


def test_listen_and_serve_echoes_and_stops():
    listener, close_event, thread = _start_server(EchoHandler())
    addr = listener.getsockname()
    conn = socket.create_connection(addr, timeout=5)
    reader = conn.makefile("rb")
    for _ in range(10):
        val = str(random.randint(0, 1 << 62))
        conn.sendall((val + "\n").encode())
        assert reader.readline() == (val + "\n").encode()
    reader.close()
    conn.close()
    idle = [socket.create_connection(addr, timeout=5) for _ in range(5)]
    time.sleep(0.3)
    close_event.set()
    thread.join(10)
    assert not thread.is_alive()
    assert listener.fileno() == -1
    for sock in idle:
        sock.close()


def test_echo_handler_echoes_complete_lines_only():
    client_side, server_side = socket.socketpair()
    handler = EchoHandler()
    thread = threading.Thread(target=handler.handle, args=(server_side,), daemon=True)
    thread.start()
    client_side.sendall(b"hello\nworld\ntail")
    client_side.shutdown(socket.SHUT_WR)
    thread.join(5)
    assert not thread.is_alive()
    server_side.close()
    client_side.settimeout(5)
    received = b""
    while chunk := client_side.recv(1024):
        received += chunk
    client_side.close()
    assert received == b"hello\nworld\n"


def test_closing_handler_refuses_connections():
    client_side, server_side = socket.socketpair()
    handler = EchoHandler()
    handler.close()
    result = handler.handle(server_side)
    assert result is None
    assert server_side.fileno() == -1
    client_side.settimeout(5)
    assert client_side.recv(1) == b""
    client_side.close()


def test_handler_close_disconnects_clients():
    client_side, server_side = socket.socketpair()
    handler = EchoHandler()
    thread = threading.Thread(target=handler.handle, args=(server_side,), daemon=True)
    thread.start()
    client_side.sendall(b"ping\n")
    client_side.settimeout(5)
    assert client_side.recv(5) == b"ping\n"
    handler.close()
    thread.join(5)
    assert not thread.is_alive()
    assert client_side.recv(1) == b""
    client_side.close()


def test_echo_client_close():
    client_side, server_side = socket.socketpair()
    EchoClient(server_side).close()
    client_side.settimeout(5)
    assert client_side.recv(1) == b""
    assert server_side.fileno() == -1
    client_side.close()


def test_invalid_address_is_rejected():
    with pytest.raises(ValueError):
        listen_and_serve_with_signal(ServerConfig(address="no-port-here"), EchoHandler())