import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

from django_zset.exceptions import SerializerError
from django_zset.serializers.base import BaseSerializer


class JSONSerializer(BaseSerializer):
    """JSON-based serializer using Django's DjangoJSONEncoder.

    Serializes members to JSON, which is human-readable and interoperable
    but limited to JSON-compatible types (strings, numbers, lists, dicts, bools, None).

    By default uses Django's DjangoJSONEncoder which adds support for:
    - datetime, date, time objects
    - timedelta (as total seconds)
    - Decimal (as string)
    - UUID (as string)
    - Promise (lazy strings)

    Keys are sorted so that equal dicts always produce the same member bytes;
    the store identifies members by their bytes.

    Example:
        Configure in Django settings::

            ZSET_CLIENTS = {
                "default": {
                    "BACKEND": "django_zset.client.RedisZSetClient",
                    "LOCATION": "redis://localhost:6379/1",
                    "OPTIONS": {
                        "serializer": "django_zset.serializers.json.JSONSerializer",
                    }
                }
            }
    """

    encoder_class = DjangoJSONEncoder

    def dumps(self, obj: Any) -> bytes | int:
        return json.dumps(obj, cls=self.encoder_class, sort_keys=True, separators=(",", ":")).encode()

    def loads(self, data: bytes | int) -> Any:
        try:
            if isinstance(data, int):
                return data
            return json.loads(data.decode())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializerError from e
