"""
Status lines: tokenizer and generic error classifier.

Every reply from the server starts with one status line:

    <TOKEN> [<arg> ...]\r\n

The tokenizer splits it into a fixed token plus positional arguments and
leaves typing of the arguments to the command that knows the reply shape.
That keeps e.g. the job id and the byte count of "RESERVED 12 5" apart.

Before a command sees its reply, raise_for_status() checks for the four
tokens any command can receive and raises the matching ProtocolError.
"""

from __future__ import annotations

import dataclasses

from beanline.domain.errors import (
    BadFormatError,
    InternalError,
    OutOfMemoryError,
    ProtocolError,
    UnexpectedResponseError,
    UnknownCommandError,
)

_GENERIC_ERRORS: dict[str, tuple[type[ProtocolError], str]] = {
    "BAD_FORMAT": (
        BadFormatError,
        "The client sent a command line that was not well-formed",
    ),
    "OUT_OF_MEMORY": (
        OutOfMemoryError,
        "The server cannot allocate enough memory for the job; try again later",
    ),
    "UNKNOWN_COMMAND": (
        UnknownCommandError,
        "The client sent a command that the server does not know",
    ),
    "INTERNAL_ERROR": (
        InternalError,
        "The server reported an internal error",
    ),
}


@dataclasses.dataclass(frozen=True)
class StatusLine:
    """
    A tokenized status line.

    verb  : protocol verb of the command this line answers (for error messages)
    token : first word, e.g. "INSERTED"
    args  : remaining words, untyped
    """

    verb: str
    token: str
    args: tuple[str, ...] = ()

    @classmethod
    def parse(cls, verb: str, line: bytes) -> StatusLine:
        """Split a raw status line (without CRLF). Raises UnexpectedResponseError."""
        try:
            text = line.decode("ascii")
        except UnicodeDecodeError:
            raise UnexpectedResponseError(verb, line.decode("ascii", "replace")) from None
        words = text.split()
        if not words or words[0] != words[0].upper():
            raise UnexpectedResponseError(verb, text)
        return cls(verb=verb, token=words[0], args=tuple(words[1:]))

    @property
    def raw(self) -> str:
        return " ".join((self.token, *self.args))

    def integer(self, value: str) -> int:
        """Parse a non-negative integer argument of this line."""
        if not value.isascii() or not value.isdigit():
            raise self.unexpected()
        return int(value)

    def payload_size(self) -> int:
        """The trailing byte count of a data-carrying reply."""
        if not self.args:
            raise self.unexpected()
        return self.integer(self.args[-1])

    def unexpected(self) -> UnexpectedResponseError:
        """Build the error for a reply that does not fit the command."""
        return UnexpectedResponseError(self.verb, self.raw)


def raise_for_status(status: StatusLine) -> None:
    """Raise the ProtocolError for a generic error token, if status carries one."""
    entry = _GENERIC_ERRORS.get(status.token)
    if entry is None:
        return
    error_cls, message = entry
    raise error_cls(f"{message} ({status.verb})", status=status.token)
