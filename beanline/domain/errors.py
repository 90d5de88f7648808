"""
Exception hierarchy for beanline.

BeanlineError
├── ServerOfflineError      connection could not be (re)established
├── StreamError             I/O failure on an established stream
│   ├── ReadError
│   └── WriteError
├── ProtocolError           generic faults reported by the server
│   ├── BadFormatError
│   ├── OutOfMemoryError
│   ├── UnknownCommandError
│   ├── InternalError
│   │   └── UnexpectedResponseError
│   └── PayloadDecodeError
└── CommandError            command-specific non-success replies
    ├── NotFoundError
    ├── BuriedError
    ├── TimedOutError
    ├── DeadlineSoonError
    ├── JobTooBigError
    ├── DrainingError
    ├── ExpectedCrlfError
    └── NotIgnoredError
"""

from __future__ import annotations


class BeanlineError(Exception):
    """
    Base class for all beanline exceptions.

    Attributes
    ----------
    status : str | None
        The status token received from the server, or None when the failure
        happened before a status line was read.
    """

    def __init__(self, message: str, status: str | None = None) -> None:
        self.status = status
        super().__init__(message)


class ServerOfflineError(BeanlineError):
    """Raised when the stream to the server cannot be opened."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Cannot connect to server {address}")


class StreamError(BeanlineError):
    """Raised when reading from or writing to an open stream fails."""


class ReadError(StreamError):
    """No data (or too little data) could be read from the server."""

    def __init__(self, message: str = "Error reading data from the server") -> None:
        super().__init__(message)


class WriteError(StreamError):
    """The stream rejected an outgoing command."""

    def __init__(self, message: str = "Error writing data to the server") -> None:
        super().__init__(message)


class ProtocolError(BeanlineError):
    """
    A generic, command-independent failure reported by the server, or a
    response the client could not make sense of.
    """


class BadFormatError(ProtocolError):
    """
    The server rejected the command line as malformed.

    This happens when the line does not end with CRLF, when non-numeric
    characters occur where an integer is expected, when the argument count
    is wrong, or when a tube name is invalid or too long.
    """


class OutOfMemoryError(ProtocolError):
    """The server cannot allocate enough memory for the job. Try again later."""


class UnknownCommandError(ProtocolError):
    """The server does not know the command verb."""


class InternalError(ProtocolError):
    """A bug in the server, or a reply that no known command produces."""


class UnexpectedResponseError(InternalError):
    """The status line is not a valid reply to the command that was sent."""

    def __init__(self, verb: str, line: str) -> None:
        self.verb = verb
        self.line = line
        token = line.split(" ", 1)[0] if line else None
        super().__init__(f"Unexpected response to {verb!r}: {line!r}", status=token)


class PayloadDecodeError(ProtocolError):
    """A structured payload or its framing could not be decoded."""


class CommandError(BeanlineError):
    """
    A reply that is meaningful only for the command that produced it and
    is not a success (e.g. NOT_FOUND for delete).

    Attributes
    ----------
    verb : str
        The protocol verb of the command, e.g. "delete".
    """

    def __init__(self, verb: str, status: str, message: str | None = None) -> None:
        self.verb = verb
        super().__init__(message or f"{verb}: {status}", status=status)


class NotFoundError(CommandError):
    """The job or tube does not exist, or is not in a state the command accepts."""


class BuriedError(CommandError):
    """
    The job was buried instead of being inserted or released.

    job_id is set when the server reports it (``put``), else None.
    """

    def __init__(self, verb: str, job_id: int | None = None) -> None:
        self.job_id = job_id
        suffix = f" (job {job_id})" if job_id is not None else ""
        super().__init__(verb, "BURIED", f"{verb}: BURIED{suffix}")


class TimedOutError(CommandError):
    """reserve-with-timeout expired before a job became available."""


class DeadlineSoonError(CommandError):
    """A job reserved by this connection is about to exceed its TTR."""


class JobTooBigError(CommandError):
    """The job body is larger than the server's max-job-size."""


class DrainingError(CommandError):
    """The server is in drain mode and accepts no new jobs."""


class ExpectedCrlfError(CommandError):
    """The job body was not followed by CRLF."""


class NotIgnoredError(CommandError):
    """The tube is the last one in the watch list and cannot be ignored."""
