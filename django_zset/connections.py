"""Configured clients, looked up by alias.

Clients are declared in the ``ZSET_CLIENTS`` setting, shaped like
Django's ``CACHES``::

    ZSET_CLIENTS = {
        "default": {
            "BACKEND": "django_zset.client.RedisZSetClient",
            "LOCATION": "redis://127.0.0.1:6379/0,redis://replica:6379/0",
            "OPTIONS": {
                "serializer": "django_zset.serializers.json.JSONSerializer",
            },
        },
    }

``LOCATION`` may be a string (``,`` or ``;`` separated) or a list; the first
server takes writes and the others serve reads.
"""

from __future__ import annotations

import re
from typing import Any

from django.conf import settings as django_settings
from django.utils.connection import BaseConnectionHandler
from django.utils.module_loading import import_string

from django_zset.exceptions import InvalidZSetClientError

DEFAULT_ALIAS = "default"
DEFAULT_BACKEND = "django_zset.client.RedisZSetClient"


def parse_location(location: str | list[str]) -> list[str]:
    """Split a LOCATION setting into server URLs."""
    if isinstance(location, str):
        return [server.strip() for server in re.split("[;,]", location) if server.strip()]
    return list(location)


class ZSetClientHandler(BaseConnectionHandler):
    """Lazily creates one client per alias and thread."""

    settings_name = "ZSET_CLIENTS"
    exception_class = InvalidZSetClientError

    def configure_settings(self, settings: dict | None) -> dict:
        if settings is None:
            settings = getattr(django_settings, self.settings_name, {})
        return settings

    def create_connection(self, alias: str) -> Any:
        params = self.settings[alias].copy()
        backend = params.pop("BACKEND", DEFAULT_BACKEND)
        location = params.pop("LOCATION", "")
        options = params.pop("OPTIONS", {})

        try:
            backend_cls = import_string(backend)
        except ImportError as e:
            msg = f"Could not find backend '{backend}': {e}"
            raise InvalidZSetClientError(msg) from e

        servers = parse_location(location)
        if not servers:
            msg = f"ZSET_CLIENTS['{alias}'] has no LOCATION"
            raise InvalidZSetClientError(msg)
        return backend_cls(servers, **options)


clients = ZSetClientHandler()
