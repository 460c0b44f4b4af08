"""Pytest configuration for django-zset tests."""

from tests.fixtures import (
    async_transport,
    async_wire,
    azset,
    redis_container,
    redis_container_factory,
    redis_images,
    transport,
    wire,
    zset,
)

# Re-export fixtures so pytest can discover them
__all__ = [
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
