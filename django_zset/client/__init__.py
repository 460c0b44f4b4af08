# Sorted set clients - use these as BACKEND in ZSET_CLIENTS
from django_zset.client.default import (
    AsyncKeyValueZSetClient,
    AsyncRedisZSetClient,
    AsyncValkeyZSetClient,
    KeyValueZSetClient,
    RedisZSetClient,
    ValkeyZSetClient,
)

# Operation catalog shared by every client
from django_zset.client.sorted_sets import SortedSetMixin

__all__ = [
    # Sync clients
    "KeyValueZSetClient",
    "RedisZSetClient",
    "ValkeyZSetClient",
    # Async clients
    "AsyncKeyValueZSetClient",
    "AsyncRedisZSetClient",
    "AsyncValkeyZSetClient",
    # Operations
    "SortedSetMixin",
]
