"""Reply decoder combinators.

Each combinator interprets one raw reply shape and hands the payload bytes
to caller-supplied parsers. Replies come from a RESP2 parser, so the only
shapes are ``None`` (nil), ``int``, ``bytes``, ``list`` and an exception
instance standing for an error reply.

Absence is produced only by an explicit nil. Any other mismatch raises
:class:`~django_zset.exceptions.MalformedReplyError`.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from django_zset.exceptions import MalformedReplyError, ServerError, ValueParseError
from django_zset.types import Cursor, ScanPage

if TYPE_CHECKING:
    from collections.abc import Callable

    from django_zset.types import RawReply

    type Parser = Callable[[bytes], Any]


def _check_error(reply: RawReply) -> None:
    if isinstance(reply, Exception):
        raise ServerError(str(reply))


def parse_score(data: bytes) -> float:
    """Parse a score payload. The store spells infinities ``inf``/``-inf``."""
    try:
        value = float(data)
    except (TypeError, ValueError) as e:
        raise ValueParseError(f"Invalid score {data!r}") from e
    if math.isnan(value):
        raise ValueParseError(f"Invalid score {data!r}")
    return value


def decode_key(data: bytes) -> str | bytes:
    """Parse a key payload as text.

    Keys that are not valid UTF-8 come back as the raw bytes; a blocking pop
    has already removed its member by the time the key is decoded.
    """
    try:
        return data.decode()
    except UnicodeDecodeError:
        return data


def as_integer(reply: RawReply) -> int | None:
    _check_error(reply)
    if reply is None:
        return None
    if isinstance(reply, int) and not isinstance(reply, bool):
        return reply
    raise MalformedReplyError(reply, "integer")


def as_scalar(reply: RawReply, parse: Parser) -> Any:
    """Decode a bulk reply.

    Integers are accepted too: some commands answer with either, so they are
    rendered to their decimal form before parsing.
    """
    _check_error(reply)
    if reply is None:
        return None
    if isinstance(reply, int) and not isinstance(reply, bool):
        reply = str(reply).encode()
    if isinstance(reply, bytes):
        return parse(reply)
    raise MalformedReplyError(reply, "bulk")


def as_sequence(reply: RawReply, parse: Parser) -> list[Any] | None:
    """Decode an array of bulks. Nil elements stay in place as ``None``."""
    _check_error(reply)
    if reply is None:
        return None
    if not isinstance(reply, list):
        raise MalformedReplyError(reply, "array")
    return [as_scalar(item, parse) for item in reply]


def as_pair_sequence(reply: RawReply, parse_a: Parser, parse_b: Parser) -> list[tuple[Any, Any]] | None:
    """Decode a flat ``[a1, b1, a2, b2, ...]`` array into ordered pairs."""
    _check_error(reply)
    if reply is None:
        return None
    if not isinstance(reply, list) or len(reply) % 2:
        raise MalformedReplyError(reply, "array of even length")
    it = iter(reply)
    return [(as_scalar(a, parse_a), as_scalar(b, parse_b)) for a, b in zip(it, it, strict=True)]


def as_triple(reply: RawReply, parse_k: Parser, parse_v: Parser) -> tuple[Any, Any, float] | None:
    """Decode a blocking-pop ``[key, member, score]`` reply."""
    _check_error(reply)
    if reply is None:
        return None
    if not isinstance(reply, list) or len(reply) != 3:
        raise MalformedReplyError(reply, "array of 3")
    key, member, score = reply
    return as_scalar(key, parse_k), as_scalar(member, parse_v), as_scalar(score, parse_score)


def as_cursor_page(
    reply: RawReply,
    parse: Parser,
    items: Callable[[RawReply, Parser], list[Any] | None] = as_sequence,
) -> ScanPage | None:
    """Decode a ``[cursor, [item, ...]]`` scan reply.

    ``items`` decodes the inner array; it defaults to :func:`as_sequence`.
    """
    _check_error(reply)
    if reply is None:
        return None
    if not isinstance(reply, list) or len(reply) != 2:
        raise MalformedReplyError(reply, "array of 2")
    position = as_scalar(reply[0], _parse_cursor)
    if position is None:
        raise MalformedReplyError(reply, "cursor")
    page = items(reply[1], parse)
    return ScanPage(Cursor(position), page)


def _parse_cursor(data: bytes) -> int:
    try:
        return int(data)
    except ValueError as e:
        raise ValueParseError(f"Invalid cursor {data!r}") from e
