"""
SocketStream: TCP transport built on the standard socket module.

Reads go through a buffered binary file object (socket.makefile("rb")) so
that status lines and exact-length data blocks can be read without
re-assembling packets by hand.

Timeout handling
----------------
The timeout given to open() is applied to the connect and to every later
send/recv. When an operation times out, or the server closes the
connection, the stream flags itself timed out and reports the failure
through its return value. The buffered reader may hold half a reply at
that point, so the stream must be re-opened before it is used again; the
Connection does that on the next dispatch.
"""

from __future__ import annotations

import dataclasses
import logging
import socket
from typing import BinaryIO

_logger = logging.getLogger(__name__)


@dataclasses.dataclass
class SocketStream:
    """Blocking TCP stream. Not thread-safe."""

    _sock: socket.socket | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    _reader: BinaryIO | None = dataclasses.field(default=None, init=False, repr=False)
    _timed_out: bool = dataclasses.field(default=False, init=False, repr=False)

    def open(self, host: str, port: int, timeout_ms: float) -> bool:
        self.close()
        try:
            sock = socket.create_connection((host, port), timeout=timeout_ms / 1000)
        except OSError as exc:
            _logger.debug("connect to %s:%s failed: %s", host, port, exc)
            return False
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._timed_out = False
        return True

    def write(self, data: bytes) -> bool:
        if self._sock is None:
            return False
        try:
            self._sock.sendall(data)
        except TimeoutError:
            self._timed_out = True
            return False
        except OSError as exc:
            _logger.debug("send failed: %s", exc)
            self._timed_out = True
            return False
        return True

    def read_line(self) -> bytes | None:
        if self._reader is None:
            return None
        try:
            line = self._reader.readline()
        except TimeoutError:
            self._timed_out = True
            return None
        except OSError as exc:
            _logger.debug("recv failed: %s", exc)
            self._timed_out = True
            return None
        if not line.endswith(b"\r\n"):
            # EOF before a full line
            self._timed_out = True
            return None
        return line[:-2]

    def read(self, n: int) -> bytes | None:
        if self._reader is None:
            return None
        try:
            data = self._reader.read(n)
        except TimeoutError:
            self._timed_out = True
            return None
        except OSError as exc:
            _logger.debug("recv failed: %s", exc)
            self._timed_out = True
            return None
        if len(data) != n:
            self._timed_out = True
            return None
        return data

    def is_timed_out(self) -> bool:
        return self._timed_out

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None
