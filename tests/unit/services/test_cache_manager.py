"""
Unit tests for CacheManager, decorators and lifecycle integration.
"""

import pytest

import cacheable
from cacheable import (
    CacheConfigurationException,
    ResolverState,
    cache_evict,
    cache_lifespan,
    cacheable as cacheable_decorator,
)
from cacheable.domain.cache.value_objects import StoreOptions
from cacheable.infrastructure.store.memory_store import MemoryStore
from cacheable.services.cache.cache_manager import CacheManager


def _refusing_manager():
    def refuse(options):
        raise ConnectionRefusedError("cache host down")

    return CacheManager(store_options=StoreOptions(type="memory"), store_factory=refuse)


class TestDecorators:
    """Test @cacheable and @cache_evict on class methods."""

    @pytest.mark.asyncio
    async def test_service_methods_share_keys(self, manager, memory_store):
        class UserService:
            def __init__(self):
                self.fetches = 0
                self.names = {1: "Ada"}

            @cacheable_decorator("user", params=["user_id"], timeout=60, manager=manager)
            async def get_user(self, user_id):
                self.fetches += 1
                return {"id": user_id, "name": self.names[user_id]}

            @cache_evict("user", params=["user_id"], delayed_double_deletion=False, manager=manager)
            async def rename(self, user_id, name):
                self.names[user_id] = name

        service = UserService()

        assert (await service.get_user(1))["name"] == "Ada"
        assert (await service.get_user(1))["name"] == "Ada"
        assert service.fetches == 1
        assert ("get", "user:user_id:1") in memory_store.calls

        await service.rename(1, "Grace")
        assert (await service.get_user(1))["name"] == "Grace"
        assert service.fetches == 2

    @pytest.mark.asyncio
    async def test_self_is_not_part_of_key(self, manager):
        class Repo:
            @cacheable_decorator("count", manager=manager)
            async def count(self):
                return 3

        await Repo().count()

        store = manager.resolver.store
        assert await store.get("count") == "3"

    @pytest.mark.asyncio
    async def test_unknown_param_is_ignored(self, manager, memory_store):
        @cacheable_decorator("report", params=["missing"], manager=manager)
        async def report(period):
            return period

        await report("2024-Q1")

        assert memory_store.calls[-1][:2] == ("set", "report")


class TestRegistration:
    """Test registration-time validation."""

    def test_empty_cache_name(self, manager):
        async def op():
            pass

        with pytest.raises(CacheConfigurationException):
            manager.wrap_read_through(op, "")

    def test_non_positive_timeout(self, manager):
        async def op():
            pass

        with pytest.raises(CacheConfigurationException):
            manager.wrap_read_through(op, "op", timeout_seconds=0)

    def test_duplicate_params(self, manager):
        async def op(a):
            pass

        with pytest.raises(CacheConfigurationException):
            manager.wrap_invalidation(op, "op", ["a", "a"])

    def test_negative_delay(self, manager):
        async def op():
            pass

        with pytest.raises(CacheConfigurationException):
            manager.wrap_invalidation(op, "op", delay_ms=-5)

    def test_operation_must_be_callable(self, manager):
        with pytest.raises(CacheConfigurationException, match="not callable"):
            manager.wrap_read_through("not a function", "op")

    @pytest.mark.asyncio
    async def test_explicit_signature_params(self, manager, memory_store):
        async def add(*numbers):
            return sum(numbers)

        wrapped = manager.wrap_read_through(
            add, "sum", ["b"], signature_params=["a", "b"]
        )

        assert await wrapped(1, 2) == 3
        assert memory_store.calls[-1][:2] == ("set", "sum:b:2")


class TestDefaultConfig:
    """Test CacheManager.set_default_config."""

    def test_updates_only_given_values(self, manager):
        before = manager.defaults.as_dict()

        manager.set_default_config(timeout=120)

        after = manager.defaults.as_dict()
        assert after["timeout"] == 120
        assert after["delay_ms"] == before["delay_ms"]
        assert after["delayed_double_deletion"] == before["delayed_double_deletion"]

    def test_rejects_invalid_values(self, manager):
        with pytest.raises(CacheConfigurationException):
            manager.set_default_config(timeout=0)
        with pytest.raises(CacheConfigurationException):
            manager.set_default_config(delay_ms=-1)
        with pytest.raises(CacheConfigurationException):
            manager.set_default_config(penetration_ttl=-3)

    @pytest.mark.asyncio
    async def test_new_default_timeout_used_by_existing_wrappers(self, manager, memory_store):
        async def stats():
            return {"users": 10}

        wrapped = manager.wrap_read_through(stats, "stats")
        manager.set_default_config(timeout=45)

        await wrapped()

        assert memory_store.calls[-1][3] == 45


class TestLifecycle:
    """Test on_ready, on_shutdown, health_check and cache_lifespan."""

    @pytest.mark.asyncio
    async def test_on_ready_resolves_store(self, manager, memory_store):
        assert await manager.on_ready() is True
        assert manager.resolver.state == ResolverState.READY
        assert memory_store.connect_count == 1

    @pytest.mark.asyncio
    async def test_on_ready_with_final_options(self):
        seen = []

        def factory(options):
            seen.append(options)
            return MemoryStore(key_prefix=options.key_prefix)

        manager = CacheManager(store_options=StoreOptions(type="memory"), store_factory=factory)

        assert await manager.on_ready(StoreOptions(type="memory", key_prefix="svc:")) is True
        assert seen[0].key_prefix == "svc:"
        await manager.on_shutdown()

    @pytest.mark.asyncio
    async def test_on_ready_reports_unavailable_store(self):
        manager = _refusing_manager()

        assert await manager.on_ready() is False
        assert manager.resolver.state == ResolverState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_on_shutdown_drops_pending_work_and_closes(self, manager, memory_store):
        async def save(user_id):
            return user_id

        evict = manager.wrap_invalidation(save, "user", ["user_id"], delay_ms=60_000)
        await evict(1)
        assert manager.scheduler.pending == 1

        await manager.on_shutdown()

        assert manager.scheduler.pending == 0
        assert manager.resolver.state == ResolverState.UNINITIALIZED
        assert memory_store.is_connected() is False
        assert memory_store.count("delete") == 1

    @pytest.mark.asyncio
    async def test_health_check_states(self, manager):
        idle = await manager.health_check()
        assert idle["status"] == "idle"
        assert idle["pending_deferred_tasks"] == 0

        await manager.on_ready()
        healthy = await manager.health_check()
        assert healthy["status"] == "healthy"
        assert healthy["service"] == "py-cacheable"
        assert healthy["resolver"]["store_type"] == "memory"
        assert healthy["defaults"]["timeout"] == manager.defaults.timeout

    @pytest.mark.asyncio
    async def test_health_check_after_failed_startup(self):
        manager = _refusing_manager()
        await manager.on_ready()

        health = await manager.health_check()

        assert health["status"] == "unhealthy"
        assert "cache host down" in health["resolver"]["last_error"]

    @pytest.mark.asyncio
    async def test_cache_lifespan(self, manager, memory_store):
        async with cache_lifespan(manager=manager) as active:
            assert active is manager
            assert manager.resolver.state == ResolverState.READY

        assert manager.resolver.state == ResolverState.UNINITIALIZED
        assert memory_store.is_connected() is False

    @pytest.mark.asyncio
    async def test_cache_lifespan_closes_on_error(self, manager):
        with pytest.raises(RuntimeError):
            async with cache_lifespan(object(), manager=manager):
                raise RuntimeError("app crashed")

        assert manager.resolver.state == ResolverState.UNINITIALIZED


class TestModuleLevelApi:
    """Test package-level wrap functions bound to the default manager."""

    @pytest.mark.asyncio
    async def test_wrap_functions_use_default_manager(self):
        calls = []

        async def lookup(code):
            calls.append(code)
            return code.upper()

        async def rename(code):
            return code

        read = cacheable.wrap_read_through(lookup, "country", ["code"], 30)
        write = cacheable.wrap_invalidation(
            rename, "country", ["code"], delayed_double_deletion=False
        )

        try:
            assert await read("nl") == "NL"
            assert await read("nl") == "NL"
            assert calls == ["nl"]

            await write("nl")
            assert await read("nl") == "NL"
            assert calls == ["nl", "nl"]
        finally:
            await cacheable.cache_manager.on_shutdown()
