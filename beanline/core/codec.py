"""
Codec: decode the structured payloads of stats and list-tubes replies.

The server emits a small YAML subset. Mapping (stats, stats-job, stats-tube):

    ---
    current-jobs-ready: 3
    rusage-utime: 0.012000
    version: "1.13"
    name: default

List (list-tubes):

    ---
    - default
    - emails

Scalars are coerced int → float → str; double-quoted values stay str.
Anything that does not fit the shape raises PayloadDecodeError: a caller
either gets the whole document or an error, never a partial result.
"""

from __future__ import annotations

from beanline.domain.errors import PayloadDecodeError
from beanline.domain.models import Stats, StatValue

_DOCUMENT_START = "---"


def decode_stats(data: bytes) -> Stats:
    """Decode a key: value document into Stats."""
    values: dict[str, StatValue] = {}
    for line in _lines(data):
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key or key.startswith("- "):
            raise PayloadDecodeError(f"Malformed stats line: {line!r}")
        if key in values:
            raise PayloadDecodeError(f"Duplicate stats key: {key!r}")
        values[key] = _scalar(value.strip())
    return Stats(values)


def decode_list(data: bytes) -> tuple[str, ...]:
    """Decode a "- item" document into a tuple, preserving order."""
    items: list[str] = []
    for line in _lines(data):
        if not line.startswith("- ") or not line[2:].strip():
            raise PayloadDecodeError(f"Malformed list line: {line!r}")
        items.append(_unquote(line[2:].strip()))
    return tuple(items)


def _lines(data: bytes) -> list[str]:
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as exc:
        raise PayloadDecodeError(f"Payload is not ASCII: {exc}") from exc
    lines = [line.rstrip("\r") for line in text.split("\n")]
    lines = [line for line in lines if line.strip()]
    if lines and lines[0] == _DOCUMENT_START:
        lines = lines[1:]
    return lines


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _scalar(value: str) -> StatValue:
    if value.startswith('"'):
        return _unquote(value)
    digits = value.removeprefix("-")
    if digits.isascii() and digits.isdigit():
        return int(value)
    whole, dot, fraction = digits.partition(".")
    if dot and (whole + fraction).isascii() and (whole + fraction).isdigit():
        return float(value)
    return value
