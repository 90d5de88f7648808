"""
StreamPort: the single port in beanline.

Any object satisfying this structural Protocol can carry the connection's
bytes. No base class or registration is required; Python's structural
subtyping (duck typing + Protocol) is sufficient.

Failure contract
----------------
The stream never raises for ordinary I/O failures. It reports them through
return values and lets the Connection turn them into typed errors:

  open()      → False when the server cannot be reached
  write()     → False when the bytes could not be sent
  read_line() → None on timeout, end of stream, or socket error
  read(n)     → None unless exactly n bytes were read

is_timed_out() must keep returning True after a timeout until the stream
is re-opened; the Connection uses it to decide whether to reconnect before
the next command.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class StreamPort(Protocol):
    """
    Minimal byte-stream interface required by beanline core.

    Implementing adapters (built-in):
      - SocketStream    TCP via the socket module
      - InMemoryStream  scripted replies, for tests
    """

    def open(self, host: str, port: int, timeout_ms: float) -> bool:
        """
        Connect to host:port, giving up after timeout_ms milliseconds.

        The same timeout applies to later reads and writes. Opening an
        already-open stream replaces the old connection.
        """
        ...

    def write(self, data: bytes) -> bool:
        """Send all of data. Returns False if it could not be sent."""
        ...

    def read_line(self) -> bytes | None:
        """Read one CRLF-terminated line and return it without the CRLF."""
        ...

    def read(self, n: int) -> bytes | None:
        """Read exactly n bytes."""
        ...

    def is_timed_out(self) -> bool:
        """Whether the last operation timed out (or the peer went away)."""
        ...

    def close(self) -> None:
        """Close the stream. Safe to call on a closed stream."""
        ...
