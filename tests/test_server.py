import os
import socket
import threading
import time

import pytest

from featherweb.response import Response
from featherweb.server import Server, ServerConfig
from featherweb.service import Consumed, Service


class EchoService(Service):
    def handle(self, request, stream):
        response = Response()
        response.set_status(200)
        response.send_text(f"Echo: {request.body.decode('utf-8', errors='replace')}")
        return response


class FailingService(Service):
    def handle(self, request, stream):
        raise RuntimeError("boom")


class ConsumingService(Service):
    def __init__(self):
        self.calls = 0

    def handle(self, request, stream):
        self.calls += 1
        return Consumed()


class ClosingService(Service):
    def handle(self, request, stream):
        response = Response()
        response.send_text("bye")
        response.add_header("Connection", "close")
        return response


def _request(method, path, body=b"", headers=(), version="HTTP/1.1"):
    lines = [f"{method} {path} {version}", "Host: localhost", *headers]
    if body:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("ascii") + body


def _read_all(sock):
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def _read_until(sock, marker):
    data = b""
    while marker not in data:
        chunk = sock.recv(65536)
        if not chunk:
            break
        data += chunk
    return data


def _exchange(server, payload, half_close=True):
    client, conn = socket.socketpair()
    with client:
        client.settimeout(5)
        client.sendall(payload)
        if half_close:
            client.shutdown(socket.SHUT_WR)
        try:
            server.handle_connection(conn)
        finally:
            conn.close()
        return _read_all(client)


def test_config_defaults_match_documented_values():
    config = ServerConfig()
    assert config.max_body_size == 8192
    assert config.read_timeout_secs == 30
    assert config.stack_size == 65536
    assert config.workers == (os.cpu_count() or 1)


def test_new_server_sets_max_body_size_only():
    server = Server(EchoService(), 1024)
    assert server.config.max_body_size == 1024
    assert server.config.read_timeout_secs == ServerConfig().read_timeout_secs


def test_with_config_keeps_the_given_config():
    config = ServerConfig(max_body_size=100, read_timeout_secs=7, workers=2, stack_size=4096)
    server = Server.with_config(EchoService(), config)
    assert server.config == config


def test_echo_request_is_answered():
    raw = _exchange(Server(EchoService()), _request("POST", "/echo", b"hi"))
    assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
    assert raw.endswith(b"\r\n\r\nEcho: hi")


def test_silent_client_gets_nothing():
    assert _exchange(Server(EchoService()), b"") == b""


def test_invalid_request_gets_400_with_security_headers():
    raw = _exchange(Server(EchoService()), b"garbage\r\n\r\n")
    lowered = raw.lower()
    assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")
    assert b"Invalid request: Failed to parse request" in raw
    assert b"connection: close" in lowered
    assert b"x-frame-options: deny" in lowered
    assert b"x-content-type-options: nosniff" in lowered


def test_service_error_gets_500():
    raw = _exchange(Server(FailingService()), _request("GET", "/"))
    assert raw.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")
    assert raw.endswith(b"Internal error: boom")


def test_consumed_result_writes_nothing():
    service = ConsumingService()
    raw = _exchange(Server(service), _request("GET", "/upgrade"), half_close=False)
    assert raw == b""
    assert service.calls == 1


def test_response_connection_close_ends_the_connection():
    server = Server.with_config(ClosingService(), ServerConfig(read_timeout_secs=2))
    raw = _exchange(server, _request("GET", "/"), half_close=False)
    assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
    assert raw.endswith(b"bye")


def test_http10_request_is_not_kept_alive():
    server = Server.with_config(EchoService(), ServerConfig(read_timeout_secs=2))
    raw = _exchange(server, _request("POST", "/", b"old", version="HTTP/1.0"), half_close=False)
    assert raw.endswith(b"Echo: old")


def test_request_connection_close_is_not_kept_alive():
    server = Server.with_config(EchoService(), ServerConfig(read_timeout_secs=2))
    payload = _request("POST", "/", b"done", headers=("Connection: close",))
    raw = _exchange(server, payload, half_close=False)
    assert raw.endswith(b"Echo: done")


def test_keep_alive_serves_several_requests():
    server = Server.with_config(EchoService(), ServerConfig(read_timeout_secs=5))
    client, conn = socket.socketpair()
    worker = threading.Thread(target=server.handle_connection, args=(conn,))
    worker.start()
    with client:
        client.settimeout(5)
        client.sendall(_request("POST", "/a", b"one"))
        first = _read_until(client, b"Echo: one")
        client.sendall(_request("POST", "/b", b"two"))
        second = _read_until(client, b"Echo: two")
        client.shutdown(socket.SHUT_WR)
        worker.join(timeout=5)
    conn.close()
    assert not worker.is_alive()
    assert first.startswith(b"HTTP/1.1 200 OK\r\n")
    assert first.endswith(b"Echo: one")
    assert second.endswith(b"Echo: two")


def test_read_timeout_sends_408_and_raises():
    server = Server.with_config(EchoService(), ServerConfig(read_timeout_secs=0.2))
    client, conn = socket.socketpair()
    with client:
        client.settimeout(5)
        with conn, pytest.raises(TimeoutError):
            server.handle_connection(conn)
        raw = _read_all(client)
    assert raw.startswith(b"HTTP/1.1 408 Request Timeout\r\n")
    assert raw.endswith(b"Request timed out")


def test_run_serves_over_tcp_until_shutdown():
    server = Server.with_config(EchoService(), ServerConfig(read_timeout_secs=5))
    runner = threading.Thread(target=server.run, args=(("127.0.0.1", 0),), daemon=True)
    runner.start()
    deadline = time.monotonic() + 5
    while server.local_address is None and time.monotonic() < deadline:
        time.sleep(0.01)
    assert server.local_address is not None

    with socket.create_connection(server.local_address, timeout=5) as client:
        client.sendall(_request("GET", "/ping", headers=("Connection: close",)))
        raw = _read_all(client)

    server.shutdown()
    runner.join(timeout=5)
    assert not runner.is_alive()
    assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
    assert raw.endswith(b"Echo: ")


@pytest.mark.parametrize("address", ["no-port", "localhost:http", "localhost:99999"])
def test_run_rejects_bad_addresses(address):
    with pytest.raises(ValueError):
        Server(EchoService()).run(address)