"""
beanline: a synchronous client for the beanstalkd work queue protocol.

beanstalkd speaks a line-oriented protocol over TCP: a command line, an
optional data block, and a reply that mirrors the same shape. beanline
turns each protocol verb into a small immutable command object, sends it
through a Connection, and decodes the reply into a typed result or a
typed exception.

Quick start
-----------
    from beanline import Connection, TimedOutError

    # The stream timeout (timeout_ms) must outlast the reserve wait, or the
    # client gives up first with ReadError and reconnects, which resets the
    # used tube and watch list on the server.
    with Connection("127.0.0.1:11300", timeout_ms=10_000) as conn:
        # Produce
        conn.use_tube("emails")
        conn.put(b'{"to": "user@example.com"}', priority=10, ttr=60)

        # Consume
        conn.watch_tube("emails")
        try:
            job = conn.reserve(timeout=5)
        except TimedOutError:
            pass
        else:
            print(f"Processing job {job.id}")
            conn.delete(job.id)

Streams
-------
Built-in adapters (no extra deps):
  - SocketStream    TCP, used by default
  - InMemoryStream  scripted replies, for tests and examples

Custom adapters only need to implement the six-method StreamPort:
  open(host, port, timeout_ms) -> bool
  write(data) -> bool
  read_line() -> bytes | None
  read(n) -> bytes | None
  is_timed_out() -> bool
  close() -> None

Architecture
------------
Follows the Ports & Adapters pattern:
  domain/   pure value types (Job, Stats) and the exception hierarchy
  ports/    Protocol interfaces (StreamPort)
  core/     status-line parsing, payload codec, commands, Connection
  adapters/ concrete stream implementations
"""

from __future__ import annotations

from beanline.adapters.stream.memory import InMemoryStream
from beanline.adapters.stream.tcp import SocketStream
from beanline.core.connection import Connection
from beanline.domain.errors import (
    BadFormatError,
    BeanlineError,
    BuriedError,
    CommandError,
    DeadlineSoonError,
    DrainingError,
    ExpectedCrlfError,
    InternalError,
    JobTooBigError,
    NotFoundError,
    NotIgnoredError,
    OutOfMemoryError,
    PayloadDecodeError,
    ProtocolError,
    ReadError,
    ServerOfflineError,
    StreamError,
    TimedOutError,
    UnexpectedResponseError,
    UnknownCommandError,
    WriteError,
)
from beanline.domain.models import DEFAULT_TUBE, Job, Stats
from beanline.ports.stream import StreamPort

__all__ = [
    # Domain models
    "Job",
    "Stats",
    "DEFAULT_TUBE",
    # Errors
    "BeanlineError",
    "ServerOfflineError",
    "StreamError",
    "ReadError",
    "WriteError",
    "ProtocolError",
    "BadFormatError",
    "OutOfMemoryError",
    "UnknownCommandError",
    "InternalError",
    "UnexpectedResponseError",
    "PayloadDecodeError",
    "CommandError",
    "NotFoundError",
    "BuriedError",
    "TimedOutError",
    "DeadlineSoonError",
    "JobTooBigError",
    "DrainingError",
    "ExpectedCrlfError",
    "NotIgnoredError",
    # Port (for typing custom adapters)
    "StreamPort",
    # Client
    "Connection",
    # Built-in stream adapters
    "InMemoryStream",
    "SocketStream",
]
