import pytest

from django_zset import get_zset_client
from django_zset.client import RedisZSetClient
from django_zset.connections import ZSetClientHandler, clients, parse_location
from django_zset.exceptions import InvalidZSetClientError
from django_zset.serializers.json import JSONSerializer
from django_zset.serializers.string import StringSerializer


class TestParseLocation:
    def test_single(self):
        assert parse_location("redis://a:6379/0") == ["redis://a:6379/0"]

    @pytest.mark.parametrize("separator", [",", ";"])
    def test_separators(self, separator):
        location = f"redis://a:6379/0{separator} redis://b:6379/0"
        assert parse_location(location) == ["redis://a:6379/0", "redis://b:6379/0"]

    def test_list(self):
        servers = ["redis://a:6379/0", "redis://b:6379/0"]
        result = parse_location(servers)
        assert result == servers
        assert result is not servers

    def test_empty(self):
        assert parse_location("") == []


class TestZSetClientHandler:
    def test_builds_configured_backend(self):
        handler = ZSetClientHandler(
            {
                "leaderboard": {
                    "BACKEND": "django_zset.client.RedisZSetClient",
                    "LOCATION": ["redis://primary:6379/0", "redis://replica:6379/0"],
                    "OPTIONS": {"socket_timeout": 2},
                },
            },
        )
        client = handler["leaderboard"]
        assert isinstance(client, RedisZSetClient)
        assert client._servers == ["redis://primary:6379/0", "redis://replica:6379/0"]
        assert client._pool_options["socket_timeout"] == 2

    def test_client_is_cached_per_alias(self):
        handler = ZSetClientHandler({"default": {"LOCATION": "redis://localhost:6379/0"}})
        assert handler["default"] is handler["default"]

    def test_default_backend(self):
        handler = ZSetClientHandler({"default": {"LOCATION": "redis://localhost:6379/0"}})
        assert type(handler["default"]) is RedisZSetClient

    def test_unknown_alias(self):
        handler = ZSetClientHandler({"default": {"LOCATION": "redis://localhost:6379/0"}})
        with pytest.raises(InvalidZSetClientError, match="missing"):
            handler["missing"]

    def test_bad_backend(self):
        handler = ZSetClientHandler({"default": {"BACKEND": "nope.Client", "LOCATION": "redis://localhost/0"}})
        with pytest.raises(InvalidZSetClientError, match="Could not find backend"):
            handler["default"]

    def test_missing_location(self):
        handler = ZSetClientHandler({"default": {"BACKEND": "django_zset.client.RedisZSetClient"}})
        with pytest.raises(InvalidZSetClientError, match="LOCATION"):
            handler["default"]


class TestFromSettings:
    def test_default_alias(self):
        client = get_zset_client()
        assert client is clients["default"]
        assert isinstance(client._serializers[0], StringSerializer)

    def test_options_reach_the_client(self):
        client = get_zset_client("json")
        assert client._servers == ["redis://127.0.0.1:6379/1", "redis://127.0.0.1:6380/1"]
        assert isinstance(client._serializers[0], JSONSerializer)

    def test_settings_override(self, settings):
        settings.ZSET_CLIENTS = {"other": {"LOCATION": "redis://other:6379/0"}}
        handler = ZSetClientHandler()
        assert handler["other"]._servers == ["redis://other:6379/0"]
