from typing import Any


class BaseSerializer:
    """Base class for sorted set member serializers.

    A serializer is the value codec of a client: ``dumps`` formats a member
    into the bytes sent on the wire and ``loads`` parses member bytes from a
    reply. Any object with ``dumps`` and ``loads`` methods works; this class
    only documents the interface.

    ``dumps`` may return an ``int``; integers are sent as their decimal form
    and ``loads`` may receive them back as ``int``.

    ``loads`` must raise :class:`~django_zset.exceptions.SerializerError` on
    bytes it cannot parse, which lets the client try the next configured
    serializer and otherwise surfaces as a value parse error.

    Serializers accept ``**kwargs`` for configuration (e.g., ``protocol`` for
    pickle version).
    """

    def __init__(self, **kwargs: Any) -> None:
        pass

    def dumps(self, obj: Any) -> bytes | int:
        raise NotImplementedError

    def loads(self, data: bytes | int) -> Any:
        raise NotImplementedError
