import io
import socket
import threading
from unittest.mock import MagicMock, patch

import pytest

from beanline.adapters.stream.tcp import SocketStream
from beanline.core.connection import Connection
from beanline.domain.errors import ServerOfflineError
from beanline.ports.stream import StreamPort

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fake_socket(incoming: bytes = b"") -> MagicMock:
    sock = MagicMock()
    sock.makefile.return_value = io.BytesIO(incoming)
    return sock


def _opened(sock: MagicMock) -> SocketStream:
    stream = SocketStream()
    with patch("socket.create_connection", return_value=sock):
        assert stream.open("localhost", 11300, 250)
    return stream


# ---------------------------------------------------------------------------
# open / close
# ---------------------------------------------------------------------------


def test_satisfies_stream_port():
    assert isinstance(SocketStream(), StreamPort)


def test_open_passes_timeout_in_seconds():
    sock = _fake_socket()
    stream = SocketStream()
    with patch("socket.create_connection", return_value=sock) as create:
        assert stream.open("queue.local", 11301, 250)
    create.assert_called_once_with(("queue.local", 11301), timeout=0.25)
    sock.makefile.assert_called_once_with("rb")
    assert not stream.is_timed_out()


def test_open_failure_returns_false():
    stream = SocketStream()
    with patch("socket.create_connection", side_effect=ConnectionRefusedError()):
        assert stream.open("localhost", 11300, 250) is False


def test_close_is_idempotent():
    sock = _fake_socket()
    stream = _opened(sock)
    stream.close()
    stream.close()
    sock.close.assert_called_once()


def test_unopened_stream_refuses_io():
    stream = SocketStream()
    assert stream.write(b"stats\r\n") is False
    assert stream.read_line() is None
    assert stream.read(1) is None


# ---------------------------------------------------------------------------
# write
# ---------------------------------------------------------------------------


def test_write_sends_all_bytes():
    sock = _fake_socket()
    stream = _opened(sock)
    assert stream.write(b"delete 1\r\n")
    sock.sendall.assert_called_once_with(b"delete 1\r\n")


def test_write_timeout_flags_stream():
    sock = _fake_socket()
    sock.sendall.side_effect = TimeoutError()
    stream = _opened(sock)
    assert stream.write(b"delete 1\r\n") is False
    assert stream.is_timed_out()


def test_write_broken_pipe_returns_false():
    sock = _fake_socket()
    sock.sendall.side_effect = BrokenPipeError()
    stream = _opened(sock)
    assert stream.write(b"delete 1\r\n") is False


# ---------------------------------------------------------------------------
# read
# ---------------------------------------------------------------------------


def test_read_line_strips_crlf():
    stream = _opened(_fake_socket(b"RESERVED 1 5\r\nhello\r\n"))
    assert stream.read_line() == b"RESERVED 1 5"
    assert stream.read(5) == b"hello"
    assert stream.read(2) == b"\r\n"


def test_read_line_at_eof_flags_stream():
    stream = _opened(_fake_socket(b"PARTI"))
    assert stream.read_line() is None
    assert stream.is_timed_out()


def test_read_line_timeout_flags_stream():
    sock = MagicMock()
    reader = MagicMock()
    reader.readline.side_effect = TimeoutError()
    sock.makefile.return_value = reader
    stream = _opened(sock)
    assert stream.read_line() is None
    assert stream.is_timed_out()


def test_short_read_flags_stream():
    stream = _opened(_fake_socket(b"abc"))
    assert stream.read(5) is None
    assert stream.is_timed_out()


def test_reopen_clears_timeout():
    stream = _opened(_fake_socket(b""))
    assert stream.read_line() is None
    with patch("socket.create_connection", return_value=_fake_socket()):
        assert stream.open("localhost", 11300, 250)
    assert not stream.is_timed_out()


# ---------------------------------------------------------------------------
# Loopback
# ---------------------------------------------------------------------------


def _serve_once(server: socket.socket, reply: bytes, received: list[bytes]) -> None:
    client, _ = server.accept()
    with client:
        data = b""
        while not data.endswith(b"\r\n"):
            chunk = client.recv(1024)
            if not chunk:
                break
            data += chunk
        received.append(data)
        client.sendall(reply)


def test_connection_over_loopback():
    server = socket.create_server(("127.0.0.1", 0))
    port = server.getsockname()[1]
    received: list[bytes] = []
    thread = threading.Thread(
        target=_serve_once, args=(server, b"FOUND 3 4\r\nb\x00dy\r\n", received)
    )
    thread.start()
    try:
        with Connection(f"127.0.0.1:{port}", timeout_ms=2000) as conn:
            job = conn.peek(3)
    finally:
        thread.join(timeout=5)
        server.close()
    assert received == [b"peek 3\r\n"]
    assert job.id == 3
    assert job.body == b"b\x00dy"


def test_connection_to_closed_port_is_offline():
    server = socket.create_server(("127.0.0.1", 0))
    port = server.getsockname()[1]
    server.close()

    with pytest.raises(ServerOfflineError):
        Connection(f"127.0.0.1:{port}", timeout_ms=500)
