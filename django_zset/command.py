"""Command encoder.

Operations describe their arguments with small wrappers so the encoder knows
how to render each one:

- :class:`Key` is a store address and is passed through as text or bytes.
- :class:`Member` is an application value and goes through the serializer.
- :class:`Score` is rendered as a full-precision decimal.

Plain ``str``/``bytes`` literals (``WITHSCORES``, ``AGGREGATE``...) pass
through unchanged and plain ``int`` arguments (ranks, counts) are rendered as
decimals. Argument order is never changed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

from django_zset.boundaries import format_score

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from django_zset.types import EncodableT, EncodedT, KeyT

# Commands that never modify data and may be routed to a replica
READ_ONLY_COMMANDS = frozenset(
    {
        "ZCARD",
        "ZCOUNT",
        "ZMSCORE",
        "ZRANGE",
        "ZRANGEBYLEX",
        "ZRANGEBYSCORE",
        "ZRANK",
        "ZREVRANGE",
        "ZREVRANGEBYSCORE",
        "ZREVRANK",
        "ZSCAN",
        "ZSCORE",
    },
)


class Key(NamedTuple):
    value: KeyT


class Member(NamedTuple):
    value: EncodableT


class Score(NamedTuple):
    value: float


type Arg = Key | Member | Score | str | bytes | int


class Command(NamedTuple):
    """An encoded command ready for the transport."""

    name: str
    args: tuple[EncodedT, ...]

    @property
    def is_read_only(self) -> bool:
        return self.name in READ_ONLY_COMMANDS


def encode_key(key: KeyT) -> EncodedT:
    if isinstance(key, memoryview):
        return key.tobytes()
    if isinstance(key, (str, bytes)):
        return key
    msg = f"Invalid key type {type(key).__name__}"
    raise TypeError(msg)


def _encode_arg(arg: Arg, format_member: Callable[[EncodableT], bytes | int]) -> EncodedT:
    if isinstance(arg, Key):
        return encode_key(arg.value)
    if isinstance(arg, Member):
        value = format_member(arg.value)
        return str(value) if isinstance(value, int) else value
    if isinstance(arg, Score):
        return format_score(arg.value)
    if isinstance(arg, (str, bytes)):
        return arg
    if isinstance(arg, int) and not isinstance(arg, bool):
        return str(arg)
    msg = f"Cannot encode argument of type {type(arg).__name__}"
    raise TypeError(msg)


def encode_command(
    name: str,
    args: Iterable[Arg],
    format_member: Callable[[EncodableT], bytes | int],
) -> Command:
    """Encode ``args`` in order using ``format_member`` for members."""
    return Command(name, tuple(_encode_arg(arg, format_member) for arg in args))


def wrap_members(values: Iterable[Any]) -> list[Member]:
    """Wrap each value as a :class:`Member`."""
    return [Member(value) for value in values]


def wrap_keys(values: Iterable[KeyT]) -> list[Key]:
    """Wrap each value as a :class:`Key`."""
    return [Key(value) for value in values]
