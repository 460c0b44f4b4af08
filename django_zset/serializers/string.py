from typing import Any

from django_zset.exceptions import SerializerError
from django_zset.serializers.base import BaseSerializer


class StringSerializer(BaseSerializer):
    """Plain text members, the default.

    Members are stored as their text encoded with ``encoding``, so they stay
    readable from other clients and sort meaningfully under ZRANGEBYLEX.
    ``bytes`` are sent unchanged; replies always decode to ``str``.
    """

    def __init__(self, encoding: str = "utf-8", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.encoding = encoding

    def dumps(self, obj: Any) -> bytes | int:
        if isinstance(obj, bytes):
            return obj
        if isinstance(obj, memoryview):
            return obj.tobytes()
        return str(obj).encode(self.encoding)

    def loads(self, data: bytes | int) -> Any:
        if isinstance(data, int):
            return str(data)
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise SerializerError from e
