"""Sorted set operation catalog.

:class:`SortedSetMixin` turns each operation into a command of typed
arguments, sends it through the host client and decodes the raw reply with
the combinators of :mod:`django_zset.replies`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import partial
from typing import TYPE_CHECKING, Any

from django_zset.boundaries import encode_boundary, encode_limit, to_boundary
from django_zset.command import Key, Member, Score, wrap_keys, wrap_members
from django_zset.replies import (
    as_cursor_page,
    as_integer,
    as_pair_sequence,
    as_scalar,
    as_sequence,
    as_triple,
    decode_key,
    parse_score,
)
from django_zset.types import Aggregate, Cursor, Limit, ScoreBoundary, SortOrder, WeightedKey

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from django_zset.command import Arg
    from django_zset.types import EncodableT, KeyT

logger = logging.getLogger(__name__)

# Store-side default page size of ZSCAN; sending it explicitly is redundant
DEFAULT_SCAN_COUNT = 10

# Wire command per sort order. Reverse variants take their range ends swapped.
_RANGE = {SortOrder.ASC: "ZRANGE", SortOrder.DESC: "ZREVRANGE"}
_RANGE_BY_SCORE = {
    SortOrder.ASC: ("ZRANGEBYSCORE", False),
    SortOrder.DESC: ("ZREVRANGEBYSCORE", True),
}
_RANK = {False: "ZRANK", True: "ZREVRANK"}

type ScoreT = float | ScoreBoundary


class SortedSetMixin:
    """Sorted set (ZSET) operations.

    Every operation encodes its arguments, hands the command to the host's
    ``_execute`` and decodes the raw reply. The host decides whether that is
    a blocking call or a coroutine.
    """

    # Provided by the host client
    _execute: Any
    decode: Callable[[bytes], Any]

    # =========================================================================
    # Add / remove / increment
    # =========================================================================

    def zadd(
        self,
        key: KeyT,
        members: Mapping[EncodableT, float] | Iterable[tuple[float, EncodableT]],
        *,
        nx: bool = False,
        xx: bool = False,
        gt: bool = False,
        lt: bool = False,
        ch: bool = False,
    ) -> Any:
        """Add members to a sorted set, or update their scores.

        ``members`` is either a ``{member: score}`` mapping or an iterable of
        ``(score, member)`` pairs; the latter keeps unhashable members usable.

        Returns the number of members added (or changed, with ``ch``).
        """
        if isinstance(members, Mapping):
            pairs = [(score, member) for member, score in members.items()]
        else:
            pairs = list(members)
        if not pairs:
            raise ValueError("zadd requires at least one (score, member) pair")

        args: list[Arg] = [Key(key)]
        args.extend(flag for flag, on in (("NX", nx), ("XX", xx), ("GT", gt), ("LT", lt), ("CH", ch)) if on)
        for score, member in pairs:
            args.extend((Score(score), Member(member)))
        return self._execute("ZADD", args, as_integer)

    def zrem(self, key: KeyT, member: EncodableT, *members: EncodableT) -> Any:
        """Remove members. Returns the number actually removed."""
        return self._execute("ZREM", [Key(key), *wrap_members((member, *members))], as_integer)

    def zincrby(self, key: KeyT, amount: float, member: EncodableT) -> Any:
        """Increment the score of a member and return the new score."""
        return self._execute(
            "ZINCRBY",
            [Key(key), Score(amount), Member(member)],
            partial(as_scalar, parse=parse_score),
        )

    # =========================================================================
    # Cardinality and lookups
    # =========================================================================

    def zcard(self, key: KeyT) -> Any:
        return self._execute("ZCARD", [Key(key)], as_integer)

    def zscore(self, key: KeyT, member: EncodableT) -> Any:
        """Get the score of a member, or ``None`` if it is not in the set."""
        return self._execute("ZSCORE", [Key(key), Member(member)], partial(as_scalar, parse=parse_score))

    def zmscore(self, key: KeyT, member: EncodableT, *members: EncodableT) -> Any:
        """Get the scores of several members; missing members give ``None``."""
        return self._execute(
            "ZMSCORE",
            [Key(key), *wrap_members((member, *members))],
            partial(as_sequence, parse=parse_score),
        )

    def zcount(
        self,
        key: KeyT,
        min: ScoreT = float("-inf"),  # noqa: A002
        max: ScoreT = float("inf"),  # noqa: A002
        *,
        min_inclusive: bool = True,
        max_inclusive: bool = True,
    ) -> Any:
        """Count members with a score between ``min`` and ``max``."""
        return self._execute(
            "ZCOUNT",
            [
                Key(key),
                encode_boundary(to_boundary(min, min_inclusive)),
                encode_boundary(to_boundary(max, max_inclusive)),
            ],
            as_integer,
        )

    def zrank(self, key: KeyT, member: EncodableT, *, reverse: bool = False) -> Any:
        """Get the 0-based rank of a member, lowest score first unless ``reverse``."""
        return self._execute(_RANK[reverse], [Key(key), Member(member)], as_integer)

    # =========================================================================
    # Range queries
    # =========================================================================

    def zrange(self, key: KeyT, start: int = 0, end: int = -1, *, order: SortOrder = SortOrder.ASC) -> Any:
        """Get members by rank range."""
        return self._execute(
            _RANGE[SortOrder(order)],
            [Key(key), start, end],
            partial(as_sequence, parse=self.decode),
        )

    def zrange_withscores(
        self,
        key: KeyT,
        start: int = 0,
        end: int = -1,
        *,
        order: SortOrder = SortOrder.ASC,
    ) -> Any:
        """Get ``(member, score)`` pairs by rank range."""
        return self._execute(
            _RANGE[SortOrder(order)],
            [Key(key), start, end, "WITHSCORES"],
            self._pairs_decoder(),
        )

    def zrangebylex(
        self,
        key: KeyT,
        min: str | bytes,  # noqa: A002
        max: str | bytes,  # noqa: A002
        *,
        limit: Limit | tuple[int, int] | None = None,
    ) -> Any:
        """Get members between two lexicographic range tokens.

        Build the tokens with :func:`django_zset.boundaries.lex_boundary`.
        """
        return self._execute(
            "ZRANGEBYLEX",
            [Key(key), min, max, *encode_limit(limit)],
            partial(as_sequence, parse=self.decode),
        )

    def zrangebyscore(
        self,
        key: KeyT,
        min: ScoreT = float("-inf"),  # noqa: A002
        max: ScoreT = float("inf"),  # noqa: A002
        *,
        min_inclusive: bool = True,
        max_inclusive: bool = True,
        limit: Limit | tuple[int, int] | None = None,
        order: SortOrder = SortOrder.ASC,
    ) -> Any:
        """Get members with a score between ``min`` and ``max``.

        ``min`` is always the low end, whatever the order; descending order
        only changes the wire command and the order of the results.
        """
        name, args = self._score_range(
            key,
            to_boundary(min, min_inclusive),
            to_boundary(max, max_inclusive),
            order,
            withscores=False,
            limit=limit,
        )
        return self._execute(name, args, partial(as_sequence, parse=self.decode))

    def zrangebyscore_withscores(
        self,
        key: KeyT,
        min: ScoreT = float("-inf"),  # noqa: A002
        max: ScoreT = float("inf"),  # noqa: A002
        *,
        min_inclusive: bool = True,
        max_inclusive: bool = True,
        limit: Limit | tuple[int, int] | None = None,
        order: SortOrder = SortOrder.ASC,
    ) -> Any:
        """Get ``(member, score)`` pairs with a score between ``min`` and ``max``."""
        name, args = self._score_range(
            key,
            to_boundary(min, min_inclusive),
            to_boundary(max, max_inclusive),
            order,
            withscores=True,
            limit=limit,
        )
        return self._execute(name, args, self._pairs_decoder())

    def _score_range(
        self,
        key: KeyT,
        low: ScoreBoundary,
        high: ScoreBoundary,
        order: SortOrder,
        *,
        withscores: bool,
        limit: Limit | tuple[int, int] | None,
    ) -> tuple[str, list[Arg]]:
        name, swapped = _RANGE_BY_SCORE[SortOrder(order)]
        if swapped:
            low, high = high, low
        args: list[Arg] = [Key(key), encode_boundary(low), encode_boundary(high)]
        if withscores:
            args.append("WITHSCORES")
        args.extend(encode_limit(limit))
        return name, args

    # =========================================================================
    # Range removal
    # =========================================================================

    def zremrangebyrank(self, key: KeyT, start: int = 0, end: int = -1) -> Any:
        return self._execute("ZREMRANGEBYRANK", [Key(key), start, end], as_integer)

    def zremrangebyscore(
        self,
        key: KeyT,
        min: ScoreT = float("-inf"),  # noqa: A002
        max: ScoreT = float("inf"),  # noqa: A002
        *,
        min_inclusive: bool = True,
        max_inclusive: bool = True,
    ) -> Any:
        """Remove members with a score between ``min`` and ``max``."""
        return self._execute(
            "ZREMRANGEBYSCORE",
            [
                Key(key),
                encode_boundary(to_boundary(min, min_inclusive)),
                encode_boundary(to_boundary(max, max_inclusive)),
            ],
            as_integer,
        )

    # =========================================================================
    # Union / intersection
    # =========================================================================

    def zunionstore(self, dest: KeyT, keys: Iterable[KeyT], aggregate: Aggregate = Aggregate.SUM) -> Any:
        """Store the union of ``keys`` in ``dest``; returns its cardinality."""
        return self._store("ZUNIONSTORE", dest, list(keys), None, aggregate)

    def zunionstore_weighted(
        self,
        dest: KeyT,
        weighted_keys: Iterable[WeightedKey | tuple[KeyT, float]],
        aggregate: Aggregate = Aggregate.SUM,
    ) -> Any:
        """Like :meth:`zunionstore`, multiplying each source's scores by its weight."""
        pairs = [WeightedKey(*kw) for kw in weighted_keys]
        return self._store("ZUNIONSTORE", dest, [kw.key for kw in pairs], [kw.weight for kw in pairs], aggregate)

    def zinterstore(self, dest: KeyT, keys: Iterable[KeyT], aggregate: Aggregate = Aggregate.SUM) -> Any:
        """Store the intersection of ``keys`` in ``dest``; returns its cardinality."""
        return self._store("ZINTERSTORE", dest, list(keys), None, aggregate)

    def zinterstore_weighted(
        self,
        dest: KeyT,
        weighted_keys: Iterable[WeightedKey | tuple[KeyT, float]],
        aggregate: Aggregate = Aggregate.SUM,
    ) -> Any:
        pairs = [WeightedKey(*kw) for kw in weighted_keys]
        return self._store("ZINTERSTORE", dest, [kw.key for kw in pairs], [kw.weight for kw in pairs], aggregate)

    def _store(
        self,
        name: str,
        dest: KeyT,
        keys: list[KeyT],
        weights: list[float] | None,
        aggregate: Aggregate,
    ) -> Any:
        if not keys:
            msg = f"{name.lower()} requires at least one source key"
            raise ValueError(msg)
        args: list[Arg] = [Key(dest), len(keys), *wrap_keys(keys)]
        if weights is not None:
            args.append("WEIGHTS")
            args.extend(Score(weight) for weight in weights)
        args.extend(("AGGREGATE", Aggregate(aggregate).value))
        return self._execute(name, args, as_integer)

    # =========================================================================
    # Pops
    # =========================================================================

    def zpopmax(self, key: KeyT, count: int = 1) -> Any:
        """Remove and return up to ``count`` highest scoring ``(member, score)`` pairs."""
        return self._execute("ZPOPMAX", [Key(key), count], self._pairs_decoder())

    def zpopmin(self, key: KeyT, count: int = 1) -> Any:
        """Remove and return up to ``count`` lowest scoring ``(member, score)`` pairs."""
        return self._execute("ZPOPMIN", [Key(key), count], self._pairs_decoder())

    def bzpopmax(self, timeout: int, key: KeyT, *keys: KeyT) -> Any:
        """Blocking :meth:`zpopmax` over one or more keys.

        Waits up to ``timeout`` seconds (0 waits forever) and returns a
        ``(key, member, score)`` triple, or ``None`` if every key stayed empty.
        """
        return self._blocking_pop("BZPOPMAX", timeout, (key, *keys))

    def bzpopmin(self, timeout: int, key: KeyT, *keys: KeyT) -> Any:
        """Blocking :meth:`zpopmin`; see :meth:`bzpopmax`."""
        return self._blocking_pop("BZPOPMIN", timeout, (key, *keys))

    def _blocking_pop(self, name: str, timeout: int, keys: tuple[KeyT, ...]) -> Any:
        if timeout < 0:
            raise ValueError("timeout must be a non-negative number of seconds")
        # Timeout goes last on the wire
        return self._execute(name, [*wrap_keys(keys), timeout], partial(self._decode_blocking_pop, name))

    def _decode_blocking_pop(self, name: str, reply: Any) -> Any:
        result = as_triple(reply, decode_key, self.decode)
        if result is None:
            logger.debug("%s timed out with every key empty", name)
        return result

    # =========================================================================
    # Incremental scan
    # =========================================================================

    def zscan(
        self,
        key: KeyT,
        cursor: Cursor | int = 0,
        *,
        match: str | None = "*",
        count: int | None = None,
    ) -> Any:
        """Fetch one page of an incremental scan.

        Returns a :class:`~django_zset.types.ScanPage` whose items are the
        reply elements in order, members and their scores interleaved, each
        decoded by the serializer. Feed ``page.cursor`` back in until it is
        done.
        """
        return self._execute(
            "ZSCAN",
            self._scan_args(key, cursor, match, count),
            partial(as_cursor_page, parse=self.decode),
        )

    def zscan_pairs(
        self,
        key: KeyT,
        cursor: Cursor | int = 0,
        *,
        match: str | None = "*",
        count: int | None = None,
    ) -> Any:
        """Like :meth:`zscan`, with items grouped into ``(member, score)`` pairs."""
        return self._execute(
            "ZSCAN",
            self._scan_args(key, cursor, match, count),
            partial(as_cursor_page, parse=self.decode, items=self._scan_items),
        )

    def _scan_args(self, key: KeyT, cursor: Cursor | int, match: str | None, count: int | None) -> list[Arg]:
        position = cursor.position if isinstance(cursor, Cursor) else int(cursor)
        args: list[Arg] = [Key(key), position]
        if match is not None and match != "*":
            args.extend(("MATCH", match))
        if count is not None and count != DEFAULT_SCAN_COUNT:
            args.extend(("COUNT", count))
        return args

    # =========================================================================
    # Decoders
    # =========================================================================

    def _pairs_decoder(self) -> Callable[[Any], Any]:
        return partial(as_pair_sequence, parse_a=self.decode, parse_b=parse_score)

    def _scan_items(self, reply: Any, parse: Callable[[bytes], Any]) -> Any:
        # ZSCAN interleaves members with their scores
        return as_pair_sequence(reply, parse, parse_score)
