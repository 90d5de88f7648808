"""
InMemoryStream: scripted stream for testing and development.

Plays the server side of a conversation from a byte buffer. Replies are
queued up front (or between commands) with feed(); every message the
client writes is recorded in ``sent``.

Like a socket, close() discards server output the client never read.
Replies meant for the next connection are queued with feed_on_open() and
move into the buffer when open() succeeds.

A read that finds no complete data in the buffer behaves like a socket
timeout: it returns None and flags the stream timed out until the next
open().

Zero external dependencies. Not thread-safe.
"""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass
class InMemoryStream:
    """
    In-process stream backed by a bytearray.

    Parameters
    ----------
    incoming           : bytes the fake server has already "sent"
    accept_connections : open() returns this value
    accept_writes      : write() returns this value
    """

    incoming: bytes = b""
    accept_connections: bool = True
    accept_writes: bool = True

    def __post_init__(self) -> None:
        self._buffer = bytearray(self.incoming)
        self._on_open = bytearray()
        self._timed_out = False
        self._open = False
        self.sent: list[bytes] = []
        self.open_calls: int = 0
        self.close_calls: int = 0

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def unread(self) -> bytes:
        """Server output not consumed by the client yet."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> None:
        """Append server output to be served by later reads."""
        self._buffer += data

    def feed_on_open(self, data: bytes) -> None:
        """Queue server output for the connection opened by the next open()."""
        self._on_open += data

    def expire(self) -> None:
        """Flag the stream timed out, as if the last read had run out of time."""
        self._timed_out = True

    def open(self, host: str, port: int, timeout_ms: float) -> bool:
        self.open_calls += 1
        if not self.accept_connections:
            return False
        self._open = True
        self._timed_out = False
        self._buffer += self._on_open
        self._on_open.clear()
        return True

    def write(self, data: bytes) -> bool:
        if not self._open or not self.accept_writes:
            return False
        self.sent.append(bytes(data))
        return True

    def read_line(self) -> bytes | None:
        if not self._open:
            return None
        end = self._buffer.find(b"\r\n")
        if end < 0:
            self._timed_out = True
            return None
        line = bytes(self._buffer[:end])
        del self._buffer[: end + 2]
        return line

    def read(self, n: int) -> bytes | None:
        if not self._open:
            return None
        if len(self._buffer) < n:
            self._timed_out = True
            return None
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data

    def is_timed_out(self) -> bool:
        return self._timed_out

    def close(self) -> None:
        self.close_calls += 1
        self._open = False
        self._buffer.clear()
