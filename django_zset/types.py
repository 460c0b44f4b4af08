"""Type aliases and value types for django-zset.

Key types match redis-py / valkey-py, defined locally to avoid a runtime
dependency on either library for type annotations.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NamedTuple, Protocol, runtime_checkable

# Key types - matches redis.typing.KeyT and valkey.typing.KeyT
type KeyT = bytes | str | memoryview

# Anything the serializer can turn into bytes
type EncodableT = Any

# Token types handed to the transport
type EncodedT = bytes | str

# Untyped reply as produced by the RESP2 parser: nil, integer, bulk, array, error
type RawReply = None | int | bytes | list[RawReply] | Exception


class Aggregate(StrEnum):
    """Combination rule for members present in several source sets."""

    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"


class SortOrder(StrEnum):
    """Ascending or descending command variant."""

    ASC = "ASC"
    DESC = "DESC"


class ScoreBoundary(NamedTuple):
    """One end of a score range.

    Infinite values are always inclusive, whatever ``inclusive`` says.
    """

    value: float
    inclusive: bool = True


class Limit(NamedTuple):
    """``LIMIT offset count`` clause of a range query."""

    offset: int
    count: int


class WeightedKey(NamedTuple):
    """Source key of a weighted union or intersection."""

    key: KeyT
    weight: float


class Cursor(NamedTuple):
    """Continuation token of an incremental scan. Position 0 means done."""

    position: int

    @property
    def done(self) -> bool:
        return self.position == 0


class ScanPage(NamedTuple):
    """One ``ZSCAN`` round trip: the next cursor plus the items returned."""

    cursor: Cursor
    items: list[Any] | None


NEG_INF = ScoreBoundary(float("-inf"))
POS_INF = ScoreBoundary(float("inf"))


@runtime_checkable
class SerializerProtocol(Protocol):
    """Value codec capability: any object with ``dumps`` and ``loads``."""

    def dumps(self, obj: Any) -> bytes | int: ...

    def loads(self, data: bytes | int) -> Any: ...
