"""
Domain models for beanline, backed by Pydantic v2.

Pydantic handles:
  - field validation (non-negative job ids, scalar stat values)
  - immutability (all models are frozen)

Jobs and stats are values received from the server. The client never
mutates them and never mirrors server-side session state (used tube,
watch list) in them.
"""

from __future__ import annotations

from collections.abc import ItemsView, Iterator, KeysView, Mapping
from types import MappingProxyType

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_serializer,
    field_validator,
)

DEFAULT_PORT = 11300
DEFAULT_TUBE = "default"

# Smaller value = more urgent. 0 is the most urgent priority.
DEFAULT_PRIORITY = 2**16
MAX_PRIORITY = 2**32 - 1

DEFAULT_DELAY = 0
# The server raises any ttr below 1 to 1.
DEFAULT_TTR = 120

MAX_TUBE_NAME_LENGTH = 200

StatValue = int | float | str


class Job(BaseModel):
    """
    A job as handed out by reserve or peek.

    id   : server-assigned, non-negative integer
    body : the opaque bytes given to put, returned byte-for-byte
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    body: bytes


class Stats(RootModel[dict[str, StatValue]]):
    """
    Read-only mapping of statistic names to scalar values.

    Produced by the stats, stats-job and stats-tube commands. Keys use the
    server's spelling (e.g. "current-jobs-ready").

    The validated dict is wrapped in a MappingProxyType, so ``root`` cannot
    be mutated either.
    """

    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def _read_only(cls, v: dict[str, StatValue]) -> Mapping[str, StatValue]:
        return MappingProxyType(v)

    @field_serializer("root")
    def _plain_dict(self, v: Mapping[str, StatValue]) -> dict[str, StatValue]:
        return dict(v)

    def __getitem__(self, key: str) -> StatValue:
        return self.root[key]

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __contains__(self, key: object) -> bool:
        return key in self.root

    def get(self, key: str, default: StatValue | None = None) -> StatValue | None:
        return self.root.get(key, default)

    def keys(self) -> KeysView[str]:
        return self.root.keys()

    def items(self) -> ItemsView[str, StatValue]:
        return self.root.items()
