"""
Unit Tests for the Cacher Facade

Tests the chainable configuration surface, precondition checks, retrieval
methods and invalidation through the facade.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from query_cacher import Cacher, Op
from query_cacher.core.config.constants import RETRIEVAL_METHODS
from query_cacher.core.exceptions import ConfigurationError, InvalidMethodError, ModelNotSetError

from tests.test_fixtures import POSTS, USERS


@pytest.fixture
def cacher(data_source, in_memory_redis_client, test_settings):
    return Cacher(data_source, in_memory_redis_client, settings=test_settings)


@pytest.mark.unit
class TestConfiguration:
    """Setters chain and expose their values."""

    def test_defaults(self, cacher):
        assert cacher.cache_prefix == "cacher"
        assert cacher.ttl_seconds == 30
        assert cacher.method_name == "find"
        assert cacher.collection_name is None

    def test_defaults_from_settings(self, data_source, in_memory_redis_client, test_settings):
        settings = test_settings.model_copy(update={"CACHE_PREFIX": "app", "CACHE_TTL": 90})

        cacher = Cacher(data_source, in_memory_redis_client, settings=settings)

        assert cacher.cache_prefix == "app"
        assert cacher.ttl_seconds == 90

    def test_setters_chain(self, cacher):
        assert cacher.model("users").prefix("app").ttl(60).method("count") is cacher

        assert cacher.collection_name == "users"
        assert cacher.cache_prefix == "app"
        assert cacher.ttl_seconds == 60
        assert cacher.method_name == "count"

    def test_ttl_none_means_no_expiry(self, cacher):
        assert cacher.ttl(None).ttl_seconds is None

    @pytest.mark.parametrize("value", [0, -1, True, 1.5, "30"])
    def test_invalid_ttl_rejected(self, cacher, value):
        with pytest.raises(ConfigurationError):
            cacher.ttl(value)

    @pytest.mark.parametrize("value", ["", None])
    def test_invalid_prefix_rejected(self, cacher, value):
        with pytest.raises(ConfigurationError):
            cacher.prefix(value)

    def test_rejects_objects_that_are_not_stores(self, data_source, test_settings):
        with pytest.raises(ConfigurationError):
            Cacher(data_source, object(), settings=test_settings)

    def test_rejects_objects_that_are_not_sources(self, in_memory_redis_client, test_settings):
        with pytest.raises(ConfigurationError):
            Cacher(object(), in_memory_redis_client, settings=test_settings)

    def test_invalid_model_rejected(self, cacher):
        with pytest.raises(ConfigurationError):
            cacher.model("")

    @pytest.mark.parametrize("name", RETRIEVAL_METHODS)
    def test_supported_methods(self, cacher, name):
        assert cacher.method(name).method_name == name

    @pytest.mark.parametrize("name", ["findAll", "destroy", "update", ""])
    def test_unsupported_method_rejected(self, cacher, name):
        with pytest.raises(InvalidMethodError) as exc_info:
            cacher.method(name)

        assert exc_info.value.message == f"Invalid method - {name}"
        assert cacher.method_name == "find"


@pytest.mark.unit
class TestPreconditions:
    """Precondition errors perform no I/O."""

    @pytest.mark.asyncio
    async def test_run_without_model(self, cacher, in_memory_redis_client, data_source):
        with pytest.raises(ModelNotSetError):
            await cacher.find_all()

        assert in_memory_redis_client.calls["get"] == 0
        assert data_source.collections["users"].calls == []

    def test_describe_without_model(self, cacher):
        with pytest.raises(ModelNotSetError):
            cacher.describe()

    @pytest.mark.asyncio
    async def test_method_not_on_collection(self, cacher, in_memory_redis_client):
        with pytest.raises(InvalidMethodError):
            await cacher.model("users").max({"field": "age"})

        assert in_memory_redis_client.calls["get"] == 0


@pytest.mark.unit
class TestRetrieval:
    """Retrieval methods go through the cache."""

    @pytest.mark.asyncio
    async def test_find_all_miss_then_hit(self, cacher, users):
        options = {"where": {"age": {Op.gte: 18}}}

        first = await cacher.model("users").find_all(options)
        second = await cacher.find_all(options)

        assert first.value == USERS
        assert (first.cache_hit, second.cache_hit) == (False, True)
        assert len(users.calls) == 1
        assert cacher.method_name == "find_all"

    @pytest.mark.asyncio
    async def test_key_layout(self, cacher):
        result = await cacher.model("users").find_all(keys=["tenant-1"])

        prefix, collection, method, digest, extra = result.key.split(":")
        assert (prefix, collection, method, extra) == ("cacher", "users", "find_all", "tenant-1")
        assert len(digest) == 40
        assert cacher.derive_key(keys=["tenant-1"]) == result.key

    @pytest.mark.asyncio
    async def test_ttl_and_prefix_reach_the_store(self, cacher, in_memory_redis_client):
        result = await cacher.model("users").prefix("app").ttl(120).count()

        assert result.key.startswith("app:users:count:")
        assert in_memory_redis_client.ttl_args[result.key] == 120

    @pytest.mark.asyncio
    async def test_run_uses_active_method(self, cacher, users):
        result = await cacher.model("users").method("find_one").run()

        assert result.value == {"id": 1, "name": "ada", "age": 36}
        assert users.calls == [("find_one", None)]

    @pytest.mark.asyncio
    async def test_methods_share_no_entries(self, cacher):
        find = await cacher.model("users").find()
        find_all = await cacher.find_all()

        assert find.key != find_all.key
        assert find_all.cache_hit is False

    @pytest.mark.asyncio
    async def test_find_and_count_all(self, cacher):
        result = await cacher.model("users").find_and_count_all()
        assert result.value == {"count": 3, "rows": USERS}

    @pytest.mark.asyncio
    async def test_gathered_calls_keep_their_own_configuration(self, cacher, in_memory_redis_client):
        users_call = cacher.model("users").ttl(10).find_all({"page": 1})
        posts_call = cacher.model("posts").ttl(20).find_all({"page": 1})

        users_result, posts_result = await asyncio.gather(users_call, posts_call)

        assert users_result.key.startswith("cacher:users:find_all:")
        assert posts_result.key.startswith("cacher:posts:find_all:")
        assert users_result.value == USERS
        assert posts_result.value == POSTS
        assert in_memory_redis_client.ttl_args[users_result.key] == 10
        assert in_memory_redis_client.ttl_args[posts_result.key] == 20

    @pytest.mark.asyncio
    async def test_gathered_raw_queries_keep_their_own_prefix(self, cacher):
        first = cacher.prefix("tenant_a").query("SELECT 1")
        second = cacher.prefix("tenant_b").query("SELECT 1")

        first_result, second_result = await asyncio.gather(first, second)

        assert first_result.key.startswith("tenant_a:__raw__:query:")
        assert second_result.key.startswith("tenant_b:__raw__:query:")

    def test_precondition_raises_at_call_time(self, cacher):
        with pytest.raises(ModelNotSetError):
            cacher.find_all()


@pytest.mark.unit
class TestRawQuery:
    @pytest.mark.asyncio
    async def test_default_options(self, cacher, data_source):
        result = await cacher.query("SELECT id FROM users")

        assert data_source.queries == [("SELECT id FROM users", {"type": "SELECT"})]
        assert result.key.startswith("cacher:__raw__:query:")

    @pytest.mark.asyncio
    async def test_raw_query_hit(self, cacher, data_source):
        await cacher.query("SELECT :id", {"replacements": {"id": 1}})
        second = await cacher.query("SELECT :id", {"replacements": {"id": 1}})

        assert second.cache_hit is True
        assert len(data_source.queries) == 1

    @pytest.mark.asyncio
    async def test_raw_query_does_not_need_model(self, cacher):
        result = await cacher.query("SELECT 1")
        assert result.value == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_clear_query(self, cacher, in_memory_redis_client):
        result = await cacher.query("SELECT 1")

        assert await cacher.clear_query("SELECT 1") == 1
        assert result.key not in in_memory_redis_client.data


@pytest.mark.unit
class TestInvalidation:
    @pytest.mark.asyncio
    async def test_invalidate_removes_collection_entries(self, cacher, in_memory_redis_client, users):
        await cacher.model("users").find_all()
        await cacher.count()

        task = cacher.invalidate("users")
        assert await task == 2

        result = await cacher.find_all()
        assert result.cache_hit is False
        assert in_memory_redis_client.data != {}

    @pytest.mark.asyncio
    async def test_duplicate_invalidate_returns_none(self, cacher):
        first = cacher.invalidate("users")
        second = cacher.invalidate("users")

        assert first is not None
        assert second is None
        await cacher.drain()

    @pytest.mark.asyncio
    async def test_invalidate_uses_current_prefix(self, cacher, in_memory_redis_client):
        in_memory_redis_client.data.update({"app:users:x": "1", "cacher:users:y": "1"})

        await cacher.prefix("app").invalidate("users")

        assert list(in_memory_redis_client.data) == ["cacher:users:y"]

    @pytest.mark.asyncio
    async def test_clear_single_entry(self, cacher, in_memory_redis_client):
        kept = await cacher.model("users").count()
        dropped = await cacher.find_all({"where": {"id": 1}})

        assert await cacher.clear({"where": {"id": 1}}) == 1
        assert dropped.key not in in_memory_redis_client.data
        assert kept.key in in_memory_redis_client.data


@pytest.mark.unit
class TestMonitoring:
    @pytest.mark.asyncio
    async def test_stats(self, cacher):
        await cacher.model("users").find_all()
        await cacher.find_all()

        stats = cacher.stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["pending_invalidations"] == 0

    @pytest.mark.asyncio
    async def test_health_check(self, cacher):
        health = await cacher.health_check()

        assert health["status"] == "healthy"
        assert health["store"]["type"] == "in_memory"
        assert "hits" in health["stats"]

    @pytest.mark.asyncio
    async def test_health_check_degraded(self, data_source, test_settings):
        store = AsyncMock()
        store.health_check = AsyncMock(return_value={"status": "unhealthy", "error": "down"})

        health = await Cacher(data_source, store, settings=test_settings).health_check()

        assert health["status"] == "degraded"
