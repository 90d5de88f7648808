"""
Connection: the synchronous command dispatcher.

Every command goes through dispatch():

  1. reconnect if the stream reports it timed out (pre-flight only)
  2. write "<line>\r\n" plus "<payload>\r\n" in one write
  3. read one status line
  4. raise for generic protocol errors (BAD_FORMAT, OUT_OF_MEMORY, ...)
  5. read exactly <bytes> of data plus CRLF when the reply carries data
  6. hand status + data to command.decode()

A reply that cannot be framed or decoded (UnexpectedResponseError,
PayloadDecodeError) may leave unread bytes on the stream, so the stream is
closed before the error propagates and the next dispatch reconnects.

Only one command is ever in flight: dispatch() blocks until the reply is
decoded. A Connection is not thread-safe. Create one per consumer.

Usage
-----
    from beanline import Connection

    # timeout_ms must outlast the reserve wait
    with Connection("127.0.0.1:11300", timeout_ms=10_000) as conn:
        conn.use_tube("emails")
        job_id = conn.put(b'{"to": "user@example.com"}', ttr=30)

        conn.watch_tube("emails")
        job = conn.reserve(timeout=5)
        conn.delete(job.id)
"""

from __future__ import annotations

import dataclasses
import logging
from types import TracebackType
from typing import Any

from beanline.adapters.stream.tcp import SocketStream
from beanline.core.commands import (
    Bury,
    Command,
    Delete,
    IgnoreTube,
    Kick,
    KickJob,
    ListTubes,
    PauseTube,
    Peek,
    Put,
    Release,
    Reserve,
    ServerStats,
    StatsJob,
    StatsTube,
    Touch,
    UseTube,
    WatchTube,
)
from beanline.core.status import StatusLine, raise_for_status
from beanline.domain.errors import (
    PayloadDecodeError,
    ReadError,
    ServerOfflineError,
    UnexpectedResponseError,
    WriteError,
)
from beanline.domain.models import (
    DEFAULT_DELAY,
    DEFAULT_PORT,
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
    Job,
    Stats,
)
from beanline.ports.stream import StreamPort

_logger = logging.getLogger(__name__)

_CRLF = b"\r\n"


def parse_address(address: str) -> tuple[str, int]:
    """Split "host:port" (port optional, defaults to 11300)."""
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, DEFAULT_PORT
    if not host or not port.isdigit():
        raise ValueError(f"Invalid server address {address!r}, expected host:port")
    return host, int(port)


@dataclasses.dataclass
class Connection:
    """
    A single connection to a beanstalkd server.

    Parameters
    ----------
    address    : "host:port" of the server
    stream     : any StreamPort implementation (default: a new SocketStream)
    timeout_ms : connect/read/write timeout for the stream, in milliseconds
    connect_on_init : open the stream immediately (default); with False the
                      stream is opened by connect() or the first dispatch

    Raises ServerOfflineError on construction if connect_on_init is True
    and the server cannot be reached.
    """

    address: str = f"127.0.0.1:{DEFAULT_PORT}"
    stream: StreamPort = dataclasses.field(default_factory=SocketStream)
    timeout_ms: float = 500.0
    connect_on_init: dataclasses.InitVar[bool] = True

    _connected: bool = dataclasses.field(default=False, init=False, repr=False)

    def __post_init__(self, connect_on_init: bool) -> None:
        self.timeout_ms = float(self.timeout_ms)
        parse_address(self.address)
        if connect_on_init:
            self.connect()

    def __enter__(self) -> Connection:
        if not self._connected:
            self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Stream lifecycle                                                     #
    # ------------------------------------------------------------------ #

    def connect(self) -> None:
        """Open the stream. Raises ServerOfflineError on failure."""
        host, port = parse_address(self.address)
        if not self.stream.open(host, port, self.timeout_ms):
            _logger.warning("Cannot connect to %s", self.address)
            raise ServerOfflineError(self.address)
        self._connected = True
        _logger.info("Connected to %s", self.address)

    def close(self) -> None:
        """Close the stream. The connection can be re-opened with connect()."""
        self.stream.close()
        self._connected = False

    def set_timeout(self, timeout_ms: float) -> None:
        """Change the stream timeout. Takes effect on the next (re)connect."""
        self.timeout_ms = float(timeout_ms)

    def is_timed_out(self) -> bool:
        return self.stream.is_timed_out()

    # ------------------------------------------------------------------ #
    # Dispatch                                                             #
    # ------------------------------------------------------------------ #

    def dispatch(self, command: Command) -> Any:
        """
        Send one command and return its decoded result.

        Raises
        ------
        ServerOfflineError  if a needed (re)connect fails
        WriteError          if the command could not be written
        ReadError           if the reply could not be read
        ProtocolError       for generic server errors and undecodable replies
        CommandError        for command-specific non-success replies
        """
        if not self._connected:
            self.connect()
        elif self.stream.is_timed_out():
            _logger.info("Stream to %s timed out, reconnecting", self.address)
            self.close()
            self.connect()

        line = command.line()
        message = line.encode("utf-8") + _CRLF
        payload = command.payload()
        if payload is not None:
            message += payload + _CRLF

        _logger.debug("> %s", line)
        if not self.stream.write(message):
            _logger.warning("Write of %r to %s failed", command.verb, self.address)
            raise WriteError()

        try:
            return self._receive(command)
        except (UnexpectedResponseError, PayloadDecodeError):
            # unread reply bytes may still be queued on the stream
            _logger.warning(
                "Reply to %r from %s out of sync, dropping the connection",
                command.verb,
                self.address,
            )
            self.close()
            raise

    def _receive(self, command: Command) -> Any:
        raw = self.stream.read_line()
        if raw is None:
            _logger.warning("No reply to %r from %s", command.verb, self.address)
            raise ReadError()

        status = StatusLine.parse(command.verb, raw)
        _logger.debug("< %s", status.raw)
        raise_for_status(status)

        data: bytes | None = None
        if command.returns_data and status.token == command.data_token:
            data = self._read_data(status.payload_size())

        return command.decode(status, data)

    def _read_data(self, size: int) -> bytes:
        data = self.stream.read(size)
        if data is None:
            raise ReadError(f"Error reading {size} bytes of data from the server")
        terminator = self.stream.read(len(_CRLF))
        if terminator is None:
            raise ReadError()
        if terminator != _CRLF:
            raise PayloadDecodeError(f"Data block of {size} bytes not followed by CRLF")
        return data

    # ------------------------------------------------------------------ #
    # Producer commands                                                    #
    # ------------------------------------------------------------------ #

    def put(
        self,
        body: bytes | str,
        priority: int = DEFAULT_PRIORITY,
        delay: int = DEFAULT_DELAY,
        ttr: int = DEFAULT_TTR,
    ) -> int:
        """
        Insert a job into the used tube and return its id.

        priority : 0 (most urgent) .. 4294967295
        delay    : seconds the job stays delayed before it becomes ready
        ttr      : seconds a worker may hold the job once reserved; values
                   below 1 are raised to 1 by the server
        """
        return self.dispatch(Put(body, priority, delay, ttr))

    def use_tube(self, tube: str) -> str:
        """Put subsequent jobs into tube (created on demand). Returns the tube name."""
        return self.dispatch(UseTube(tube))

    # ------------------------------------------------------------------ #
    # Consumer commands                                                    #
    # ------------------------------------------------------------------ #

    def watch_tube(self, tube: str) -> int:
        """Add tube to the watch list. Returns the number of watched tubes."""
        return self.dispatch(WatchTube(tube))

    def ignore_tube(self, tube: str) -> int:
        """Remove tube from the watch list. Returns the number of watched tubes."""
        return self.dispatch(IgnoreTube(tube))

    def reserve(self, timeout: int | None = None) -> Job:
        """
        Reserve the next ready job from the watched tubes.

        With timeout=None the server waits for a job; note the stream
        timeout still bounds the wait on this side and surfaces as ReadError.
        With a timeout the server answers TIMED_OUT (TimedOutError) once it
        expires; timeout=0 answers immediately.
        """
        return self.dispatch(Reserve(timeout))

    def delete(self, job_id: int) -> None:
        self.dispatch(Delete(job_id))

    def touch(self, job_id: int) -> None:
        """Restart the TTR of a job reserved by this connection."""
        self.dispatch(Touch(job_id))

    def release(
        self,
        job_id: int,
        priority: int = DEFAULT_PRIORITY,
        delay: int = DEFAULT_DELAY,
    ) -> None:
        """Return a reserved job to the ready queue (or delayed, with delay)."""
        self.dispatch(Release(job_id, priority, delay))

    def bury(self, job_id: int, priority: int = DEFAULT_PRIORITY) -> None:
        self.dispatch(Bury(job_id, priority))

    def kick(self, bound: int) -> int:
        """Kick at most bound buried (else delayed) jobs. Returns how many moved."""
        return self.dispatch(Kick(bound))

    def kick_job(self, job_id: int) -> None:
        self.dispatch(KickJob(job_id))

    # ------------------------------------------------------------------ #
    # Inspection commands                                                  #
    # ------------------------------------------------------------------ #

    def peek(self, job_id: int) -> Job:
        return self.dispatch(Peek(job_id))

    def peek_ready(self) -> Job:
        """Next ready job in the used tube. Raises NotFoundError if none."""
        return self.dispatch(Peek("ready"))

    def peek_delayed(self) -> Job:
        """Delayed job with the shortest delay left in the used tube."""
        return self.dispatch(Peek("delayed"))

    def peek_buried(self) -> Job:
        """Next buried job in the used tube."""
        return self.dispatch(Peek("buried"))

    def stats(self) -> Stats:
        return self.dispatch(ServerStats())

    def stats_job(self, job_id: int) -> Stats:
        return self.dispatch(StatsJob(job_id))

    def stats_tube(self, tube: str) -> Stats:
        return self.dispatch(StatsTube(tube))

    def list_tubes(self) -> tuple[str, ...]:
        return self.dispatch(ListTubes())

    def pause_tube(self, tube: str, delay: int) -> None:
        """Delay new reservations from tube for delay seconds."""
        self.dispatch(PauseTube(tube, delay))
