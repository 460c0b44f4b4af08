import pytest
import redis.exceptions

from django_zset.client import AsyncRedisZSetClient, KeyValueZSetClient, RedisZSetClient
from django_zset.exceptions import MalformedReplyError, SerializerError, ServerError, TransportError, ValueParseError
from django_zset.serializers.json import JSONSerializer
from django_zset.serializers.string import StringSerializer


class TestErrors:
    def test_error_reply_becomes_server_error(self, wire, transport):
        message = "WRONGTYPE Operation against a key holding the wrong kind of value"
        transport.execute_command.side_effect = redis.exceptions.ResponseError(message)
        with pytest.raises(ServerError) as exc_info:
            wire.zadd("a-string", {"a": 1.0})
        assert exc_info.value.message == message
        assert isinstance(exc_info.value.__cause__, redis.exceptions.ResponseError)

    @pytest.mark.parametrize("error", [redis.exceptions.ConnectionError, redis.exceptions.TimeoutError])
    def test_connection_failure_becomes_transport_error(self, wire, transport, error):
        transport.execute_command.side_effect = error("boom")
        with pytest.raises(TransportError) as exc_info:
            wire.zcard("zs")
        assert isinstance(exc_info.value.__cause__, error)
        transport.execute_command.assert_called_once()

    def test_wrong_shape_is_malformed(self, wire, transport):
        transport.execute_command.return_value = [b"a"]
        with pytest.raises(MalformedReplyError):
            wire.zcard("zs")

    def test_odd_withscores_reply_is_malformed(self, wire, transport):
        transport.execute_command.return_value = [b"a", b"1", b"b"]
        with pytest.raises(MalformedReplyError):
            wire.zrange_withscores("zs")

    def test_unparseable_score(self, wire, transport):
        transport.execute_command.return_value = b"not-a-score"
        with pytest.raises(ValueParseError):
            wire.zscore("zs", "a")


class TestRouting:
    def test_reads_may_use_replicas(self, wire, transport):
        transport.execute_command.return_value = 0
        wire.zcard("zs")
        wire.get_client.assert_called_once_with(write=False)

    def test_writes_go_to_primary(self, wire, transport):
        transport.execute_command.return_value = 1
        wire.zadd("zs", {"a": 1})
        wire.get_client.assert_called_once_with(write=True)

    def test_pool_index(self):
        client = RedisZSetClient(["redis://primary:6379/0", "redis://replica:6379/0"])
        assert client._get_connection_pool_index(write=True) == 0
        assert client._get_connection_pool_index(write=False) == 1

    def test_single_server_reads_from_primary(self):
        client = RedisZSetClient(["redis://primary:6379/0"])
        assert client._get_connection_pool_index(write=False) == 0


class TestConfiguration:
    def test_requires_a_server(self):
        with pytest.raises(ValueError, match="server"):
            RedisZSetClient([])

    def test_pool_options(self):
        client = RedisZSetClient(["redis://localhost:6379/0"], socket_timeout=5, decode_responses=True)
        assert client._pool_options["socket_timeout"] == 5
        assert client._pool_options["decode_responses"] is False
        assert client._pool_options["protocol"] == 2
        assert client._pool_options["retry"]._retries == 0
        assert "serializer" not in client._pool_options

    def test_pool_class_from_string(self):
        client = RedisZSetClient(["redis://localhost:6379/0"], pool_class="redis.connection.BlockingConnectionPool")
        assert client._pool_class is redis.connection.BlockingConnectionPool

    def test_raw_client_has_no_response_callbacks(self):
        client = RedisZSetClient(["redis://localhost:6379/0"])
        raw = client.get_client(write=True)
        assert len(raw.response_callbacks) == 0

    def test_library_agnostic_base_has_no_retry(self):
        client = KeyValueZSetClient(["redis://localhost:6379/0"])
        assert "retry" not in client._pool_options


class TestSerializers:
    def test_default_is_string(self):
        client = RedisZSetClient(["redis://localhost:6379/0"])
        assert isinstance(client._serializers[0], StringSerializer)

    def test_serializer_option(self):
        client = RedisZSetClient(
            ["redis://localhost:6379/0"],
            serializer="django_zset.serializers.json.JSONSerializer",
        )
        assert client.encode({"b": 1, "a": 2}) == b'{"a":2,"b":1}'

    def test_with_serializer_shares_pools(self, wire, transport):
        json_client = wire.with_serializer(JSONSerializer)
        assert json_client._pools is wire._pools
        assert isinstance(json_client._serializers[0], JSONSerializer)
        assert isinstance(wire._serializers[0], StringSerializer)

    def test_with_serializer_encodes_members(self, wire, transport):
        transport.execute_command.return_value = [b'{"id":1}', b"2"]
        json_client = wire.with_serializer(JSONSerializer())
        assert json_client.zpopmax("zs") == [({"id": 1}, 2.0)]
        transport.execute_command.return_value = 1
        json_client.zrem("zs", {"id": 1})
        assert transport.execute_command.call_args.args == ("ZREM", "zs", b'{"id":1}')

    def test_fallback_chain(self):
        client = RedisZSetClient(
            ["redis://localhost:6379/0"],
            serializer=[
                "django_zset.serializers.json.JSONSerializer",
                "django_zset.serializers.string.StringSerializer",
            ],
        )
        assert client.decode(b"[1, 2]") == [1, 2]
        assert client.decode(b"plain text") == "plain text"

    def test_fallback_exhausted(self):
        client = RedisZSetClient(["redis://localhost:6379/0"], serializer=JSONSerializer)
        with pytest.raises(SerializerError):
            client.decode(b"plain text")

    def test_serializer_error_is_a_parse_error(self, wire, transport):
        transport.execute_command.return_value = [b"\xff"]
        with pytest.raises(ValueParseError):
            wire.zrange("zs")


class TestAsyncClient:
    @pytest.mark.asyncio
    async def test_operations_are_awaitable(self, async_wire, async_transport):
        async_transport.execute_command.return_value = [b"a", b"b"]
        assert await async_wire.zrange("zs") == ["a", "b"]
        async_transport.execute_command.assert_awaited_once_with("ZRANGE", "zs", "0", "-1")

    @pytest.mark.asyncio
    async def test_blocking_pop_timeout(self, async_wire, async_transport):
        async_transport.execute_command.return_value = None
        assert await async_wire.bzpopmin(1, "empty") is None

    @pytest.mark.asyncio
    async def test_error_reply(self, async_wire, async_transport):
        async_transport.execute_command.side_effect = redis.exceptions.ResponseError("ERR syntax error")
        with pytest.raises(ServerError, match="syntax error"):
            await async_wire.zcard("zs")

    @pytest.mark.asyncio
    async def test_zscan_iter(self, async_wire, async_transport):
        async_transport.execute_command.side_effect = [[b"3", [b"a", b"1"]], [b"0", []]]
        assert [item async for item in async_wire.zscan_iter("zs")] == [("a", 1.0)]

    def test_async_pool_options_drop_parser_class(self):
        client = AsyncRedisZSetClient(
            ["redis://localhost:6379/0"],
            parser_class="redis._parsers.resp2._RESP2Parser",
        )
        assert "parser_class" not in client._pool_options
