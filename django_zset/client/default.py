"""Sorted set client classes for Redis-compatible backends.

Architecture:
- KeyValueZSetClient: Sync base class, library-agnostic
- AsyncKeyValueZSetClient: asyncio twin of the above
- RedisZSetClient / AsyncRedisZSetClient: class attributes for redis-py
- ValkeyZSetClient / AsyncValkeyZSetClient: class attributes for valkey-py

All of them expose the same operations through SortedSetMixin. The mixin
encodes a command and calls ``_execute``; the sync client returns the decoded
reply, the async client returns a coroutine resolving to it.

The transport is a redis-py/valkey-py client whose response callbacks are
removed, so ``execute_command`` hands back the raw RESP2 reply and all
decoding happens in django_zset.replies. Retries are disabled; failures
surface immediately.

Internal attributes:
- _lib: The library module (redis or valkey)
- _servers: List of server URLs (first one takes writes)
- _pools: Dict of connection pools by server index
- _client_class / _pool_class: Library classes
- _pool_options: Options passed to the connection pool
- _serializers: List of serializer instances (first one encodes, all decode)
"""

from __future__ import annotations

import asyncio
import copy
import logging
import random
import weakref
from typing import TYPE_CHECKING, Any, Self

from django.utils.module_loading import import_string

from django_zset.client.sorted_sets import SortedSetMixin
from django_zset.command import encode_command
from django_zset.compat import DEFAULT_SERIALIZER, create_serializer
from django_zset.exceptions import (
    SerializerError,
    ServerError,
    TransportError,
    _ResponseError,
    _transport_exceptions,
)
from django_zset.types import Cursor

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator

    from django_zset.command import Arg
    from django_zset.types import EncodableT, KeyT

# Try to import redis-py and/or valkey-py
_REDIS_AVAILABLE = False
_VALKEY_AVAILABLE = False

try:
    import redis
    import redis.asyncio
    import redis.asyncio.retry
    import redis.backoff
    import redis.retry

    _REDIS_AVAILABLE = True
except ImportError:
    redis = None  # type: ignore[assignment]

try:
    import valkey
    import valkey.asyncio
    import valkey.asyncio.retry
    import valkey.backoff
    import valkey.retry

    _VALKEY_AVAILABLE = True
except ImportError:
    valkey = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


# =============================================================================
# Shared configuration
# =============================================================================


class _BaseZSetClient(SortedSetMixin):
    """Configuration shared by the sync and async clients.

    Subclasses must set:
    - _lib: The library module (e.g., valkey or redis)
    - _client_class: The client class (e.g., valkey.Valkey)
    - _pool_class: The connection pool class
    - _retry_class: The Retry class matching the pool flavour (sync/async)
    """

    # Class attributes - subclasses override these
    _lib: Any = None
    _client_class: type | None = None
    _pool_class: type | None = None
    _retry_class: type | None = None

    # Options that shouldn't be passed to the connection pool
    _CLIENT_ONLY_OPTIONS = frozenset({"serializer"})

    def __init__(
        self,
        servers: list[str],
        serializer: str | list | type | Any | None = None,
        pool_class: str | type | None = None,
        parser_class: str | type | None = None,
        **options: Any,
    ) -> None:
        """Initialize the client.

        Args:
            servers: List of server URLs; the first one receives writes
            serializer: Serializer instance, class or import path, or a list of them
            pool_class: Connection pool class or import path
            parser_class: Parser class or import path
            **options: Additional options passed to connection pool
        """
        if not servers:
            raise ValueError("At least one server URL is required")
        self._servers = list(servers)

        if isinstance(pool_class, str):
            pool_class = import_string(pool_class)
        self._pool_class = pool_class or self.__class__._pool_class  # type: ignore[assignment]

        if isinstance(parser_class, str):
            parser_class = import_string(parser_class)

        self._pool_options: dict[str, Any] = {}
        if parser_class is not None:
            self._pool_options["parser_class"] = parser_class
        for key, value in options.items():
            if key not in self._CLIENT_ONLY_OPTIONS:
                self._pool_options[key] = value

        # Decoding happens in django_zset.replies, on raw RESP2 replies
        self._pool_options["decode_responses"] = False
        self._pool_options.setdefault("protocol", 2)
        if self._retry_class is not None and self._lib is not None:
            self._pool_options["retry"] = self._no_retry()

        self._options = options
        self._serializers = self._create_serializers(serializer)

    def _no_retry(self) -> Any:
        return self._retry_class(self._lib.backoff.NoBackoff(), 0)  # type: ignore[misc]

    # =========================================================================
    # Serializer Setup
    # =========================================================================

    def _create_serializers(self, config: str | list | type | Any | None) -> list:
        """Create serializer instance(s) from config."""
        if config is None:
            config = DEFAULT_SERIALIZER
        if isinstance(config, list):
            return [create_serializer(item) for item in config]
        return [create_serializer(config)]

    def with_serializer(self, serializer: str | list | type | Any) -> Self:
        """Return a client bound to another serializer.

        The copy shares connection pools with this client.
        """
        clone = copy.copy(self)
        clone._serializers = self._create_serializers(serializer)
        return clone

    # =========================================================================
    # Encoding/Decoding
    # =========================================================================

    def encode(self, value: EncodableT) -> bytes | int:
        """Encode a member for the wire with the primary serializer."""
        return self._serializers[0].dumps(value)

    def decode(self, value: bytes) -> Any:
        """Decode a member, trying each configured serializer in turn."""
        last_error: SerializerError | None = None
        for serializer in self._serializers:
            try:
                return serializer.loads(value)
            except SerializerError as e:
                last_error = e
                continue

        if last_error is not None:
            raise last_error
        raise SerializerError("No serializers configured")

    # =========================================================================
    # Server selection
    # =========================================================================

    def _get_connection_pool_index(self, *, write: bool) -> int:
        """Get the pool index for read/write operations."""
        # Write to first server, read from any replica
        if write or len(self._servers) == 1:
            return 0
        return random.randint(1, len(self._servers) - 1)  # noqa: S311

    def _new_client(self, pool: Any) -> Any:
        assert self._client_class is not None, "Subclasses must set _client_class"  # noqa: S101
        kwargs: dict[str, Any] = {"connection_pool": pool}
        if self._retry_class is not None and self._lib is not None:
            kwargs["retry"] = self._no_retry()
        client = self._client_class(**kwargs)
        # Hand back raw replies
        client.response_callbacks.clear()
        return client

    def _log_command(self, name: str, args: tuple) -> None:
        logger.debug("Sending %s with %d arguments", name, len(args))


# =============================================================================
# KeyValueZSetClient - sync base class (library-agnostic)
# =============================================================================


class KeyValueZSetClient(_BaseZSetClient):
    """Blocking sorted set client."""

    def __init__(self, servers: list[str], **options: Any) -> None:
        super().__init__(servers, **options)
        self._pools: dict[int, Any] = {}

    def _get_connection_pool(self, *, write: bool) -> Any:
        """Get a connection pool for the given operation type."""
        index = self._get_connection_pool_index(write=write)
        if index not in self._pools:
            assert self._pool_class is not None, "Subclasses must set _pool_class"  # noqa: S101
            logger.debug("Creating connection pool for server %d", index)
            self._pools[index] = self._pool_class.from_url(  # type: ignore[attr-defined]
                self._servers[index],
                **self._pool_options,
            )
        return self._pools[index]

    def get_client(self, *, write: bool = False) -> Any:
        """Get a raw library client.

        Args:
            write: Whether this is a write operation
        """
        return self._new_client(self._get_connection_pool(write=write))

    def _execute(self, name: str, args: list[Arg], decoder: Callable[[Any], Any]) -> Any:
        command = encode_command(name, args, self.encode)
        client = self.get_client(write=not command.is_read_only)
        self._log_command(command.name, command.args)

        try:
            reply = client.execute_command(command.name, *command.args)
        except _ResponseError as e:
            raise ServerError(str(e)) from e
        except _transport_exceptions as e:
            raise TransportError(connection=client) from e

        return decoder(reply)

    def zscan_iter(
        self,
        key: KeyT,
        *,
        match: str | None = "*",
        count: int | None = None,
    ) -> Iterator[tuple[Any, float]]:
        """Iterate over ``(member, score)`` pairs using ZSCAN."""
        cursor = Cursor(0)
        while True:
            page = self.zscan_pairs(key, cursor, match=match, count=count)
            if page is None:
                return
            yield from page.items or ()
            cursor = page.cursor
            if cursor.done:
                return

    def close(self) -> None:
        """Disconnect all pools."""
        for pool in self._pools.values():
            pool.disconnect()
        self._pools.clear()


# =============================================================================
# AsyncKeyValueZSetClient - asyncio base class (library-agnostic)
# =============================================================================


class AsyncKeyValueZSetClient(_BaseZSetClient):
    """asyncio sorted set client. Every operation returns a coroutine."""

    def __init__(self, servers: list[str], **options: Any) -> None:
        super().__init__(servers, **options)
        # Async pools: WeakKeyDictionary keyed by event loop -> {server_index: pool}
        # Using WeakKeyDictionary ensures automatic cleanup when the event loop is GC'd
        self._async_pools: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[int, Any]] = (
            weakref.WeakKeyDictionary()
        )
        # Async pools don't take a sync parser class
        self._pool_options.pop("parser_class", None)

    def _get_connection_pool(self, *, write: bool) -> Any:
        """Get an async connection pool for the current event loop.

        Raises:
            RuntimeError: If no event loop is running
        """
        loop = asyncio.get_running_loop()
        index = self._get_connection_pool_index(write=write)

        pools = self._async_pools.setdefault(loop, {})
        if index not in pools:
            assert self._pool_class is not None, "Subclasses must set _pool_class"  # noqa: S101
            logger.debug("Creating async connection pool for server %d", index)
            pools[index] = self._pool_class.from_url(  # type: ignore[attr-defined]
                self._servers[index],
                **self._pool_options,
            )
        return pools[index]

    def get_client(self, *, write: bool = False) -> Any:
        """Get a raw async library client for the running event loop."""
        return self._new_client(self._get_connection_pool(write=write))

    async def _execute(self, name: str, args: list[Arg], decoder: Callable[[Any], Any]) -> Any:
        command = encode_command(name, args, self.encode)
        client = self.get_client(write=not command.is_read_only)
        self._log_command(command.name, command.args)

        try:
            reply = await client.execute_command(command.name, *command.args)
        except _ResponseError as e:
            raise ServerError(str(e)) from e
        except _transport_exceptions as e:
            raise TransportError(connection=client) from e

        return decoder(reply)

    async def zscan_iter(
        self,
        key: KeyT,
        *,
        match: str | None = "*",
        count: int | None = None,
    ) -> AsyncIterator[tuple[Any, float]]:
        """Iterate over ``(member, score)`` pairs using ZSCAN."""
        cursor = Cursor(0)
        while True:
            page = await self.zscan_pairs(key, cursor, match=match, count=count)
            if page is None:
                return
            for item in page.items or ():
                yield item
            cursor = page.cursor
            if cursor.done:
                return

    async def aclose(self) -> None:
        """Disconnect the pools of the running event loop."""
        loop = asyncio.get_running_loop()
        for pool in self._async_pools.pop(loop, {}).values():
            await pool.disconnect()


# =============================================================================
# redis-py implementations
# =============================================================================

if _REDIS_AVAILABLE:

    class RedisZSetClient(KeyValueZSetClient):
        """Sorted set client using redis-py."""

        _lib = redis
        _client_class = redis.Redis
        _pool_class = redis.ConnectionPool
        _retry_class = redis.retry.Retry

    class AsyncRedisZSetClient(AsyncKeyValueZSetClient):
        """asyncio sorted set client using redis-py."""

        _lib = redis
        _client_class = redis.asyncio.Redis
        _pool_class = redis.asyncio.ConnectionPool
        _retry_class = redis.asyncio.retry.Retry

else:

    class RedisZSetClient(KeyValueZSetClient):  # type: ignore[no-redef]
        """Sorted set client (requires redis-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            msg = "RedisZSetClient requires redis-py. Install with: pip install redis"
            raise ImportError(msg)

    class AsyncRedisZSetClient(AsyncKeyValueZSetClient):  # type: ignore[no-redef]
        """asyncio sorted set client (requires redis-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            msg = "AsyncRedisZSetClient requires redis-py. Install with: pip install redis"
            raise ImportError(msg)


# =============================================================================
# valkey-py implementations
# =============================================================================

if _VALKEY_AVAILABLE:

    class ValkeyZSetClient(KeyValueZSetClient):
        """Sorted set client using valkey-py."""

        _lib = valkey
        _client_class = valkey.Valkey
        _pool_class = valkey.ConnectionPool
        _retry_class = valkey.retry.Retry

    class AsyncValkeyZSetClient(AsyncKeyValueZSetClient):
        """asyncio sorted set client using valkey-py."""

        _lib = valkey
        _client_class = valkey.asyncio.Valkey
        _pool_class = valkey.asyncio.ConnectionPool
        _retry_class = valkey.asyncio.retry.Retry

else:

    class ValkeyZSetClient(KeyValueZSetClient):  # type: ignore[no-redef]
        """Sorted set client (requires valkey-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError("ValkeyZSetClient requires valkey-py. Install with: pip install valkey")

    class AsyncValkeyZSetClient(AsyncKeyValueZSetClient):  # type: ignore[no-redef]
        """asyncio sorted set client (requires valkey-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError("AsyncValkeyZSetClient requires valkey-py. Install with: pip install valkey")


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "_REDIS_AVAILABLE",
    "_VALKEY_AVAILABLE",
    "AsyncKeyValueZSetClient",
    "AsyncRedisZSetClient",
    "AsyncValkeyZSetClient",
    "KeyValueZSetClient",
    "RedisZSetClient",
    "ValkeyZSetClient",
]
