"""
Command set: one frozen dataclass per protocol verb.

Every command satisfies the Command Protocol:

  line()              → the command line, without CRLF
  payload()           → bytes sent on a second line, or None
  returns_data        → whether a success reply is followed by a data block
  data_token          → the status token that introduces that data block
  decode(status, data) → typed result, or raises a typed failure

A command is built for exactly one dispatch and never changes afterwards.
decode() only ever sees replies that passed the generic error check in
beanline.core.status; it recognises the reply shapes of its own verb and
treats every other line as UnexpectedResponseError.

Reply table
-----------
  put            INSERTED <id>          | BURIED <id>, EXPECTED_CRLF, JOB_TOO_BIG, DRAINING
  use            USING <tube>           |
  watch          WATCHING <count>       |
  ignore         WATCHING <count>       | NOT_IGNORED
  reserve        RESERVED <id> <bytes>  | DEADLINE_SOON, TIMED_OUT
  delete         DELETED                | NOT_FOUND
  touch          TOUCHED                | NOT_FOUND
  release        RELEASED               | BURIED, NOT_FOUND
  bury           BURIED                 | NOT_FOUND
  kick           KICKED <count>         |
  kick-job       KICKED                 | NOT_FOUND
  peek*          FOUND <id> <bytes>     | NOT_FOUND
  stats*         OK <bytes>             | NOT_FOUND (stats-job, stats-tube)
  list-tubes     OK <bytes>             |
  pause-tube     PAUSED                 | NOT_FOUND
"""

from __future__ import annotations

import dataclasses
from typing import Any, ClassVar, Protocol

from beanline.core import codec
from beanline.core.status import StatusLine
from beanline.domain.errors import (
    BuriedError,
    CommandError,
    DeadlineSoonError,
    DrainingError,
    ExpectedCrlfError,
    JobTooBigError,
    NotFoundError,
    NotIgnoredError,
    TimedOutError,
)
from beanline.domain.models import (
    DEFAULT_DELAY,
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
    Job,
    Stats,
)

_FAILURES: dict[str, type[CommandError]] = {
    "NOT_FOUND": NotFoundError,
    "TIMED_OUT": TimedOutError,
    "DEADLINE_SOON": DeadlineSoonError,
    "JOB_TOO_BIG": JobTooBigError,
    "DRAINING": DrainingError,
    "EXPECTED_CRLF": ExpectedCrlfError,
    "NOT_IGNORED": NotIgnoredError,
}

PEEK_STATES = ("ready", "delayed", "buried")


class Command(Protocol):
    """Structural Protocol shared by every command in this module."""

    returns_data: ClassVar[bool]
    data_token: ClassVar[str | None]

    @property
    def verb(self) -> str: ...

    def line(self) -> str: ...

    def payload(self) -> bytes | None: ...

    def decode(self, status: StatusLine, data: bytes | None) -> Any: ...


def _failure(verb: str, failures: frozenset[str], status: StatusLine) -> Exception:
    """Map a non-success reply to its CommandError, or to UnexpectedResponseError."""
    if status.token not in failures or status.args:
        return status.unexpected()
    if status.token == "BURIED":
        return BuriedError(verb)
    return _FAILURES[status.token](verb, status.token)


def _tube(name: str) -> str:
    # Length and charset are left to the server; only line breaks are refused
    # because they would end the command line early.
    if "\r" in name or "\n" in name:
        raise ValueError(f"Tube name must not contain line breaks: {name!r}")
    return name


class _Simple:
    """
    Mixin for commands whose success reply is a bare token.

    Subclasses set verb, success and failures; line() is their own.
    """

    verb: ClassVar[str]
    success: ClassVar[str]
    failures: ClassVar[frozenset[str]] = frozenset({"NOT_FOUND"})
    returns_data: ClassVar[bool] = False
    data_token: ClassVar[str | None] = None

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> None:
        if status.token == self.success and not status.args:
            return None
        raise _failure(self.verb, self.failures, status)


def _decode_job(status: StatusLine, data: bytes | None) -> Job:
    match status.args:
        case (job_id, size) if data is not None and len(data) == status.integer(size):
            return Job(id=status.integer(job_id), body=data)
    raise status.unexpected()


# ---------------------------------------------------------------------- #
# Producer commands                                                       #
# ---------------------------------------------------------------------- #


@dataclasses.dataclass(frozen=True)
class Put:
    """
    Insert a job into the currently used tube.

    A ttr below 1 is sent unchanged; the server raises it to 1.
    """

    body: bytes | str
    priority: int = DEFAULT_PRIORITY
    delay: int = DEFAULT_DELAY
    ttr: int = DEFAULT_TTR

    verb: ClassVar[str] = "put"
    returns_data: ClassVar[bool] = False
    data_token: ClassVar[str | None] = None
    failures: ClassVar[frozenset[str]] = frozenset(
        {"EXPECTED_CRLF", "JOB_TOO_BIG", "DRAINING"}
    )

    def payload(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    def line(self) -> str:
        size = len(self.payload())
        return f"put {self.priority} {self.delay} {self.ttr} {size}"

    def decode(self, status: StatusLine, data: bytes | None) -> int:
        match status.token, status.args:
            case "INSERTED", (job_id,):
                return status.integer(job_id)
            case "BURIED", (job_id,):
                raise BuriedError(self.verb, status.integer(job_id))
        raise _failure(self.verb, self.failures, status)


@dataclasses.dataclass(frozen=True)
class UseTube:
    """Select the tube that subsequent puts go to."""

    tube: str

    verb: ClassVar[str] = "use"
    returns_data: ClassVar[bool] = False
    data_token: ClassVar[str | None] = None

    def line(self) -> str:
        return f"use {_tube(self.tube)}"

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> str:
        match status.token, status.args:
            case "USING", (tube,):
                return tube
        raise status.unexpected()


# ---------------------------------------------------------------------- #
# Consumer commands                                                       #
# ---------------------------------------------------------------------- #


@dataclasses.dataclass(frozen=True)
class WatchTube:
    """Add a tube to the watch list. Returns the number of watched tubes."""

    tube: str

    verb: ClassVar[str] = "watch"
    returns_data: ClassVar[bool] = False
    data_token: ClassVar[str | None] = None

    def line(self) -> str:
        return f"watch {_tube(self.tube)}"

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> int:
        match status.token, status.args:
            case "WATCHING", (count,):
                return status.integer(count)
        raise status.unexpected()


@dataclasses.dataclass(frozen=True)
class IgnoreTube:
    """Remove a tube from the watch list. Returns the number of watched tubes."""

    tube: str

    verb: ClassVar[str] = "ignore"
    returns_data: ClassVar[bool] = False
    data_token: ClassVar[str | None] = None
    failures: ClassVar[frozenset[str]] = frozenset({"NOT_IGNORED"})

    def line(self) -> str:
        return f"ignore {_tube(self.tube)}"

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> int:
        match status.token, status.args:
            case "WATCHING", (count,):
                return status.integer(count)
        raise _failure(self.verb, self.failures, status)


@dataclasses.dataclass(frozen=True)
class Reserve:
    """
    Reserve a job from the watched tubes.

    timeout=None waits until a job is ready; timeout=0 answers immediately
    with a job or TIMED_OUT.
    """

    timeout: int | None = None

    returns_data: ClassVar[bool] = True
    data_token: ClassVar[str | None] = "RESERVED"
    failures: ClassVar[frozenset[str]] = frozenset({"DEADLINE_SOON", "TIMED_OUT"})

    @property
    def verb(self) -> str:
        return "reserve" if self.timeout is None else "reserve-with-timeout"

    def line(self) -> str:
        if self.timeout is None:
            return "reserve"
        return f"reserve-with-timeout {self.timeout}"

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> Job:
        if status.token == self.data_token:
            return _decode_job(status, data)
        raise _failure(self.verb, self.failures, status)


@dataclasses.dataclass(frozen=True)
class Delete(_Simple):
    """Remove a job from the server entirely."""

    job_id: int

    verb: ClassVar[str] = "delete"
    success: ClassVar[str] = "DELETED"

    def line(self) -> str:
        return f"delete {self.job_id}"


@dataclasses.dataclass(frozen=True)
class Touch(_Simple):
    """Ask for more time on a reserved job (restarts its TTR)."""

    job_id: int

    verb: ClassVar[str] = "touch"
    success: ClassVar[str] = "TOUCHED"

    def line(self) -> str:
        return f"touch {self.job_id}"


@dataclasses.dataclass(frozen=True)
class Release(_Simple):
    """Put a reserved job back into the ready (or delayed) queue."""

    job_id: int
    priority: int = DEFAULT_PRIORITY
    delay: int = DEFAULT_DELAY

    verb: ClassVar[str] = "release"
    success: ClassVar[str] = "RELEASED"
    failures: ClassVar[frozenset[str]] = frozenset({"BURIED", "NOT_FOUND"})

    def line(self) -> str:
        return f"release {self.job_id} {self.priority} {self.delay}"


@dataclasses.dataclass(frozen=True)
class Bury(_Simple):
    """Move a reserved job to the buried list."""

    job_id: int
    priority: int = DEFAULT_PRIORITY

    verb: ClassVar[str] = "bury"
    success: ClassVar[str] = "BURIED"

    def line(self) -> str:
        return f"bury {self.job_id} {self.priority}"


@dataclasses.dataclass(frozen=True)
class Kick:
    """
    Move up to bound jobs in the used tube back to ready.

    Buried jobs are kicked if there are any, else delayed jobs.
    """

    bound: int

    verb: ClassVar[str] = "kick"
    returns_data: ClassVar[bool] = False
    data_token: ClassVar[str | None] = None

    def line(self) -> str:
        return f"kick {self.bound}"

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> int:
        match status.token, status.args:
            case "KICKED", (count,):
                return status.integer(count)
        raise status.unexpected()


@dataclasses.dataclass(frozen=True)
class KickJob(_Simple):
    """Kick a single buried or delayed job back to ready."""

    job_id: int

    verb: ClassVar[str] = "kick-job"
    success: ClassVar[str] = "KICKED"

    def line(self) -> str:
        return f"kick-job {self.job_id}"


# ---------------------------------------------------------------------- #
# Inspection commands                                                     #
# ---------------------------------------------------------------------- #


@dataclasses.dataclass(frozen=True)
class Peek:
    """
    Look at a job without reserving it.

    target is a job id, or one of "ready", "delayed", "buried" to peek at
    the next job in that state in the used tube.
    """

    target: int | str

    returns_data: ClassVar[bool] = True
    data_token: ClassVar[str | None] = "FOUND"
    failures: ClassVar[frozenset[str]] = frozenset({"NOT_FOUND"})

    def __post_init__(self) -> None:
        if isinstance(self.target, str) and self.target not in PEEK_STATES:
            raise ValueError(
                f"peek target must be a job id or one of {PEEK_STATES}, got {self.target!r}"
            )

    @property
    def verb(self) -> str:
        if isinstance(self.target, str):
            return f"peek-{self.target}"
        return "peek"

    def line(self) -> str:
        if isinstance(self.target, str):
            return self.verb
        return f"peek {self.target}"

    def payload(self) -> bytes | None:
        return None

    def decode(self, status: StatusLine, data: bytes | None) -> Job:
        if status.token == self.data_token:
            return _decode_job(status, data)
        raise _failure(self.verb, self.failures, status)


class _StatsDocument:
    """Mixin for the commands answered by "OK <bytes>" + a YAML document."""

    verb: ClassVar[str]
    failures: ClassVar[frozenset[str]] = frozenset({"NOT_FOUND"})
    returns_data: ClassVar[bool] = True
    data_token: ClassVar[str | None] = "OK"

    def payload(self) -> bytes | None:
        return None

    def _document(self, status: StatusLine, data: bytes | None) -> bytes:
        match status.token, status.args:
            case "OK", (size,) if data is not None:
                if len(data) != status.integer(size):
                    raise status.unexpected()
                return data
        raise _failure(self.verb, self.failures, status)


@dataclasses.dataclass(frozen=True)
class ServerStats(_StatsDocument):
    """Statistics about the server as a whole."""

    verb: ClassVar[str] = "stats"
    failures: ClassVar[frozenset[str]] = frozenset()

    def line(self) -> str:
        return "stats"

    def decode(self, status: StatusLine, data: bytes | None) -> Stats:
        return codec.decode_stats(self._document(status, data))


@dataclasses.dataclass(frozen=True)
class StatsJob(_StatsDocument):
    """Statistics about one job."""

    job_id: int

    verb: ClassVar[str] = "stats-job"

    def line(self) -> str:
        return f"stats-job {self.job_id}"

    def decode(self, status: StatusLine, data: bytes | None) -> Stats:
        return codec.decode_stats(self._document(status, data))


@dataclasses.dataclass(frozen=True)
class StatsTube(_StatsDocument):
    """Statistics about one tube."""

    tube: str

    verb: ClassVar[str] = "stats-tube"

    def line(self) -> str:
        return f"stats-tube {_tube(self.tube)}"

    def decode(self, status: StatusLine, data: bytes | None) -> Stats:
        return codec.decode_stats(self._document(status, data))


@dataclasses.dataclass(frozen=True)
class ListTubes(_StatsDocument):
    """Names of all existing tubes, in server order."""

    verb: ClassVar[str] = "list-tubes"
    failures: ClassVar[frozenset[str]] = frozenset()

    def line(self) -> str:
        return "list-tubes"

    def decode(self, status: StatusLine, data: bytes | None) -> tuple[str, ...]:
        return codec.decode_list(self._document(status, data))


@dataclasses.dataclass(frozen=True)
class PauseTube(_Simple):
    """Hold back reservations from a tube for delay seconds."""

    tube: str
    delay: int

    verb: ClassVar[str] = "pause-tube"
    success: ClassVar[str] = "PAUSED"

    def line(self) -> str:
        return f"pause-tube {_tube(self.tube)} {self.delay}"
