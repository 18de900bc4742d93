"""Tests for caching functionality."""

import json

import pytest
import redis.asyncio as redis
from pydantic import BaseModel

from findesk.utils.cache import cache_key, cached, get_redis, invalidate_cache


@pytest.mark.cache
@pytest.mark.asyncio
class TestCacheUtility:
    """Test cache utility functions."""

    async def test_get_redis(self, redis_client):
        client = await get_redis()
        assert client is redis_client
        assert await client.ping() is True

    async def test_cache_key_generation(self):
        key1 = cache_key(limit=50, offset=0)
        key2 = cache_key(offset=0, limit=50)
        key3 = cache_key(limit=100, offset=0)

        # Same args = same key, regardless of order
        assert key1 == key2
        assert key1 != key3
        assert cache_key() == "default"

    async def test_cached_decorator(self, redis_client):
        call_count = 0

        @cached(ttl=10, prefix="test")
        async def expensive_function(*, arg1: int, arg2: str):
            nonlocal call_count
            call_count += 1
            return {"result": arg1 + len(arg2)}

        # First call - cache MISS
        assert await expensive_function(arg1=10, arg2="hello") == {"result": 15}
        assert call_count == 1

        # Second call - cache HIT
        assert await expensive_function(arg1=10, arg2="hello") == {"result": 15}
        assert call_count == 1

        # Different args - cache MISS
        assert await expensive_function(arg1=20, arg2="world") == {"result": 25}
        assert call_count == 2

    async def test_positional_args_not_part_of_key(self, redis_client):
        """Sessions are passed positionally and must not split the cache."""
        calls = []

        @cached(ttl=10, prefix="test_pos")
        async def stats(db, *, day: str):
            calls.append(db)
            return {"day": day}

        await stats(object(), day="2025-12-10")
        await stats(object(), day="2025-12-10")
        assert len(calls) == 1

    async def test_cache_invalidation(self, redis_client):
        await redis_client.set("test:func1:abc123", "value1")
        await redis_client.set("test:func2:def456", "value2")
        await redis_client.set("other:func:xyz789", "value3")

        await invalidate_cache("test:*")

        assert await redis_client.keys("test:*") == []
        assert await redis_client.get("other:func:xyz789") == "value3"

    async def test_cache_ttl(self, redis_client):
        @cached(ttl=30, prefix="test_ttl")
        async def fast_expiring():
            return {"value": "expires soon"}

        assert await fast_expiring() == {"value": "expires soon"}

        keys = await redis_client.keys("test_ttl:*")
        assert len(keys) == 1
        assert 0 < await redis_client.ttl(keys[0]) <= 30
        assert json.loads(await redis_client.get(keys[0])) == {"value": "expires soon"}

    async def test_cache_with_pydantic_models(self, redis_client):
        class TestModel(BaseModel):
            id: str
            name: str
            count: int

        @cached(ttl=10, prefix="test_pydantic")
        async def get_model():
            return TestModel(id="123", name="Test", count=42)

        result1 = await get_model()
        assert isinstance(result1, TestModel)

        # Second call (from cache)
        result2 = await get_model()
        assert isinstance(result2, dict)
        assert result2 == {"id": "123", "name": "Test", "count": 42}


@pytest.mark.cache
@pytest.mark.asyncio
class TestCacheFallback:
    """Redis outages degrade to uncached calls."""

    @pytest.fixture
    def broken_redis(self, redis_server):
        redis_server.connected = False

    async def test_cached_call_still_runs(self, broken_redis):
        calls = 0

        @cached(ttl=10, prefix="test_down")
        async def compute():
            nonlocal calls
            calls += 1
            return {"ok": True}

        assert await compute() == {"ok": True}
        assert await compute() == {"ok": True}
        assert calls == 2

    async def test_outage_surfaces_as_redis_error(self, broken_redis, redis_client):
        with pytest.raises(redis.ConnectionError):
            await redis_client.get("dashboard:any")

    async def test_invalidation_does_not_raise(self, broken_redis):
        await invalidate_cache("dashboard:*")


@pytest.mark.cache
@pytest.mark.asyncio
class TestDashboardCaching:
    """The dashboard is cached and invalidated by writes."""

    async def test_dashboard_cached_then_invalidated(
        self, client, redis_client, invoice_payload, employee
    ):
        first = await client.get("/api/dashboard/")
        assert first.status_code == 200
        assert first.json()["unpaid_invoice_count"] == 0
        assert first.json()["active_employees"] == 1
        assert first.json()["monthly_payroll"] == 1000.0
        assert await redis_client.keys("dashboard:*")

        # Creating an invoice drops the cached stats
        await client.post("/api/invoices/", json=invoice_payload)
        assert await redis_client.keys("dashboard:*") == []

        second = await client.get("/api/dashboard/")
        assert second.json()["unpaid_invoice_count"] == 1
        assert second.json()["unpaid_invoice_amount"] == 350.0

    async def test_billing_aggregates(self, client, redis_client):
        await client.post("/api/billing-records/", json={
            "client_name": "Acme Corp",
            "contract_type": "fixed",
            "billing_cycle": "monthly",
            "contract_start_date": "2020-01-01",
            "contract_end_date": "2099-12-31",
            "contract_value": 10000,
            "billed_to_date": 2500,
        })

        stats = (await client.get("/api/dashboard/")).json()
        assert stats["active_clients"] == 1
        assert stats["unpaid_billing_amount"] == 7500.0
