"""Tests for caching functionality."""

from datetime import date

import pytest

from app.tenancy import _tenant_ctx
from app.utils.cache import build_key, cache_key, cached, get_redis, invalidate_cache


@pytest.mark.unit
class TestCacheKeys:
    """Key construction needs no Redis."""

    def test_cache_key_generation(self):
        """Same args give the same key, different args a different one."""
        key1 = cache_key(limit=50, offset=0)
        key2 = cache_key(offset=0, limit=50)
        key3 = cache_key(limit=100, offset=0)

        assert key1 == key2
        assert key1 != key3
        assert cache_key() == "default"

    def test_build_key_ignores_dependencies(self):
        """Sessions and contexts do not take part in the key."""
        plain = build_key("skus", "list_skus", {"search": "ctn"})
        with_deps = build_key(
            "skus", "list_skus", {"search": "ctn", "db": object(), "_internal": 1}
        )
        assert plain == with_deps
        assert plain.startswith("skus:list_skus:")

    def test_build_key_dates(self):
        key1 = build_key("inv", "f", {"since": date(2026, 3, 1)})
        key2 = build_key("inv", "f", {"since": "2026-03-01"})
        assert key1 == key2

    def test_build_key_is_tenant_namespaced(self):
        token = _tenant_ctx.set("tenant_aaa111")
        try:
            key = build_key("skus", "list_skus", {})
        finally:
            _tenant_ctx.reset(token)
        assert key == "t:tenant_aaa111:skus:list_skus:default"


@pytest.mark.unit
@pytest.mark.asyncio
class TestCacheDisabled:

    async def test_passthrough_when_disabled(self):
        """With caching off the function runs every time."""
        call_count = 0

        @cached(ttl=10, prefix="test_off")
        async def counted():
            nonlocal call_count
            call_count += 1
            return call_count

        assert await counted() == 1
        assert await counted() == 2

    async def test_invalidate_is_a_noop(self):
        await invalidate_cache("anything:*")


@pytest.mark.cache
@pytest.mark.asyncio
class TestCacheUtility:
    """Test cache utility functions."""

    async def test_get_redis(self, redis_client):
        """Test Redis connection."""
        client = await get_redis()
        assert client is not None

        pong = await client.ping()
        assert pong is True

    async def test_cached_decorator(self, redis_client):
        """Test cached decorator."""
        call_count = 0

        @cached(ttl=10, prefix="test")
        async def expensive_function(arg1: int, arg2: str):
            nonlocal call_count
            call_count += 1
            return {"result": arg1 + len(arg2)}

        # First call - cache MISS
        result1 = await expensive_function(arg1=10, arg2="hello")
        assert result1 == {"result": 15}
        assert call_count == 1

        # Second call - cache HIT (function not called again)
        result2 = await expensive_function(arg1=10, arg2="hello")
        assert result2 == {"result": 15}
        assert call_count == 1

        # Different args - cache MISS
        result3 = await expensive_function(arg1=20, arg2="world")
        assert result3 == {"result": 25}
        assert call_count == 2

    async def test_cache_invalidation(self, redis_client):
        """Test cache invalidation."""
        await redis_client.set("test:func1:abc123", "value1")
        await redis_client.set("test:func2:def456", "value2")
        await redis_client.set("other:func:xyz789", "value3")

        keys = [key async for key in redis_client.scan_iter(match="test:*")]
        assert len(keys) == 2

        await invalidate_cache("test:*")

        keys = [key async for key in redis_client.scan_iter(match="test:*")]
        assert len(keys) == 0

        # Other prefixes are untouched
        value = await redis_client.get("other:func:xyz789")
        assert value == "value3"

    async def test_cache_ttl(self, redis_client):
        """Test cache expiration (TTL)."""
        @cached(ttl=1, prefix="test_ttl")
        async def fast_expiring():
            return {"value": "expires soon"}

        result = await fast_expiring()
        assert result == {"value": "expires soon"}

        keys = [key async for key in redis_client.scan_iter(match="test_ttl:*")]
        assert len(keys) == 1

        ttl = await redis_client.ttl(keys[0])
        assert 0 < ttl <= 1

    async def test_cache_with_pydantic_models(self, redis_client):
        """Test caching Pydantic models."""
        from pydantic import BaseModel

        class StorageUnitStub(BaseModel):
            id: str
            name: str
            length_mm: int

        @cached(ttl=10, prefix="test_pydantic")
        async def get_model():
            return StorageUnitStub(id="123", name="PALLET", length_mm=1200)

        # First call
        result1 = await get_model()
        assert isinstance(result1, StorageUnitStub)
        assert result1.id == "123"

        # Second call (from cache)
        result2 = await get_model()
        assert isinstance(result2, dict)  # Deserialized from JSON
        assert result2["id"] == "123"
        assert result2["name"] == "PALLET"


@pytest.mark.integration
@pytest.mark.cache
@pytest.mark.asyncio
class TestEndpointCaching:
    """Test caching on actual endpoints."""

    async def test_storage_units_endpoint_caching(
        self, client, auth_headers, tenant_a, redis_client
    ):
        """Listing is cached per tenant and dropped on create."""
        response1 = await client.get("/api/storage-units", headers=auth_headers)
        assert response1.status_code == 200
        assert response1.json() == []

        keys = [key async for key in redis_client.scan_iter(match=f"t:{tenant_a.id}:storage_units:*")]
        assert len(keys) == 1

        # Second request (cache HIT)
        response2 = await client.get("/api/storage-units", headers=auth_headers)
        assert response1.json() == response2.json()

        response = await client.post(
            "/api/storage-units",
            json={"name": "PALLET", "length_per_su_mm": 1200, "width_per_su_mm": 1000},
            headers=auth_headers,
        )
        assert response.status_code == 201

        keys = [key async for key in redis_client.scan_iter(match=f"t:{tenant_a.id}:storage_units:*")]
        assert keys == []

        response3 = await client.get("/api/storage-units", headers=auth_headers)
        assert [su["name"] for su in response3.json()] == ["PALLET"]
