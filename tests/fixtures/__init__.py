"""Test fixtures for django-zset."""

from tests.fixtures.client import async_transport, async_wire, azset, transport, wire, zset
from tests.fixtures.containers import (
    ContainerInfo,
    redis_container,
    redis_container_factory,
    redis_images,
)

__all__ = [
    "ContainerInfo",
    "async_transport",
    "async_wire",
    "azset",
    "redis_container",
    "redis_container_factory",
    "redis_images",
    "transport",
    "wire",
    "zset",
]
