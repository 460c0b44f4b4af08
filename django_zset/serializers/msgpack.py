from typing import Any

import msgpack

from django_zset.exceptions import SerializerError
from django_zset.serializers.base import BaseSerializer


class MessagePackSerializer(BaseSerializer):
    """MessagePack-based serializer for compact binary members.

    Requires the ``msgpack`` package to be installed::

        pip install django-zset[msgpack]

    Note:
        MessagePack supports None, bool, int, float, str, bytes, list and dict.
        Binary members do not sort meaningfully under ZRANGEBYLEX.
    """

    def dumps(self, obj: Any) -> bytes | int:
        return msgpack.packb(obj, use_bin_type=True)

    def loads(self, data: bytes | int) -> Any:
        if isinstance(data, int):
            return data
        try:
            return msgpack.unpackb(data, raw=False)
        except (ValueError, msgpack.ExtraData, msgpack.FormatError, msgpack.StackError) as e:
            raise SerializerError from e
