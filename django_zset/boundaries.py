"""Encoding of score boundaries, lexicographic boundaries and LIMIT clauses.

Score boundaries follow the ZRANGEBYSCORE grammar: a plain number is
inclusive, a ``(`` prefix makes it exclusive and ``-inf`` / ``+inf`` mean
"no limit". Lexicographic boundaries follow ZRANGEBYLEX: ``[`` inclusive,
``(`` exclusive, ``-`` / ``+`` unbounded.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from django_zset.types import Limit, ScoreBoundary

if TYPE_CHECKING:
    from django_zset.types import EncodedT

EXCLUSIVE_PREFIX = "("
INCLUSIVE_LEX_PREFIX = "["

# Unbounded ends of a lexicographic range
LEX_MIN = "-"
LEX_MAX = "+"


def format_score(value: float) -> str:
    """Render a score with full precision.

    ``repr`` of a float is the shortest string that parses back to the same
    double, which is what the store needs for exact-match score arguments.
    """
    value = float(value)
    if math.isnan(value):
        raise ValueError("NaN is not a valid score")
    if math.isinf(value):
        return "+inf" if value > 0 else "-inf"
    return repr(value)


def encode_boundary(boundary: ScoreBoundary) -> str:
    """Encode a score boundary as a ZRANGEBYSCORE range token."""
    token = format_score(boundary.value)
    if boundary.inclusive or math.isinf(boundary.value):
        return token
    return EXCLUSIVE_PREFIX + token


def parse_boundary(token: EncodedT) -> ScoreBoundary:
    """Decode a range token produced by :func:`encode_boundary`."""
    if isinstance(token, bytes):
        token = token.decode()
    inclusive = not token.startswith(EXCLUSIVE_PREFIX)
    value = float(token if inclusive else token[len(EXCLUSIVE_PREFIX) :])
    if math.isnan(value):
        raise ValueError(f"Invalid score boundary {token!r}")
    if math.isinf(value):
        inclusive = True
    return ScoreBoundary(value, inclusive)


def to_boundary(value: float | ScoreBoundary, inclusive: bool = True) -> ScoreBoundary:
    """Accept either a bare score or a ready-made boundary."""
    if isinstance(value, ScoreBoundary):
        return value
    return ScoreBoundary(float(value), inclusive)


def encode_limit(limit: Limit | tuple[int, int] | None) -> list[str]:
    """Encode an optional LIMIT clause; absent limits encode to nothing."""
    if limit is None:
        return []
    offset, count = limit
    return ["LIMIT", str(int(offset)), str(int(count))]


def lex_boundary(value: str | bytes | None, inclusive: bool = True, *, upper: bool = False) -> EncodedT:
    """Build a ZRANGEBYLEX range token.

    ``None`` is the open end of the range: ``-`` for a lower bound and ``+``
    when ``upper`` is set.
    """
    if value is None:
        return LEX_MAX if upper else LEX_MIN
    prefix = INCLUSIVE_LEX_PREFIX if inclusive else EXCLUSIVE_PREFIX
    if isinstance(value, bytes):
        return prefix.encode() + value
    return prefix + value
