"""Exceptions for django-zset.

This module defines exceptions that may be raised while encoding sorted set
commands or decoding their replies. Users can catch these to handle specific
error conditions.
"""

import socket
from typing import Any

from django.core.exceptions import ImproperlyConfigured

# Build exception tuples from available libraries (redis-py / valkey-py).
# These are used by the client layer to classify transport failures.
_transport_list: list[type[Exception]] = [socket.timeout]
_response_list: list[type[Exception]] = []

try:
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import ResponseError as RedisResponseError
    from redis.exceptions import TimeoutError as RedisTimeoutError

    _transport_list.extend([RedisConnectionError, RedisTimeoutError])
    _response_list.append(RedisResponseError)
except ImportError:
    pass

try:
    from valkey.exceptions import ConnectionError as ValkeyConnectionError
    from valkey.exceptions import ResponseError as ValkeyResponseError
    from valkey.exceptions import TimeoutError as ValkeyTimeoutError

    _transport_list.extend([ValkeyConnectionError, ValkeyTimeoutError])
    _response_list.append(ValkeyResponseError)
except ImportError:
    pass

_transport_exceptions = tuple(_transport_list)
_ResponseError = tuple(_response_list) if _response_list else (Exception,)


class ZSetError(Exception):
    """Base class for all django-zset errors."""


class MalformedReplyError(ZSetError):
    """Raised when a reply does not have the shape a decoder expects.

    Absence is only ever produced by an explicit nil reply from the store,
    so a shape mismatch is never turned into ``None`` or an empty list.

    Attributes:
        reply: The raw reply that could not be decoded.
        expected: Description of the shape the decoder wanted.
    """

    def __init__(self, reply: Any, expected: str) -> None:
        self.reply = reply
        self.expected = expected
        super().__init__(f"Expected {expected}, got {_describe(reply)}")


class ValueParseError(ZSetError):
    """Raised when a value parser rejects the bytes of a bulk reply.

    This is distinct from an absent value: the store answered with a payload,
    but the payload could not be turned into the requested type.
    """


class SerializerError(ValueParseError):
    """Raised when serialization or deserialization fails.

    This can occur when:
    - The data format doesn't match the expected serializer format
    - The data is corrupted
    - The serializer encounters an incompatible type

    When several serializers are configured, this error triggers fallback to
    the next serializer in the list, enabling safe migrations between formats.
    """


class ServerError(ZSetError):
    """Raised when the store answers a command with an error reply.

    The message is forwarded unchanged; server error text depends on the
    store version and is not interpreted here.

    Example:
        Handling a wrong-type operation::

            from django_zset import get_zset_client
            from django_zset.exceptions import ServerError

            try:
                get_zset_client().zadd("a-string-key", {"member": 1.0})
            except ServerError as e:
                logger.warning("ZADD rejected: %s", e.message)
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransportError(ZSetError):
    """Raised when the connection below this layer fails.

    The original library exception is chained as ``__cause__``. Nothing is
    retried.
    """

    def __init__(self, connection: Any = None) -> None:
        self.connection = connection
        super().__init__(f"Error communicating with {connection!r}")


class InvalidZSetClientError(ImproperlyConfigured):
    """Raised when an alias is missing from the ``ZSET_CLIENTS`` setting."""


def _describe(reply: Any) -> str:
    if reply is None:
        return "nil"
    if isinstance(reply, list):
        return f"array of {len(reply)}"
    return type(reply).__name__
