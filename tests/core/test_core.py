"""
Tests for the core infrastructure.

============================================================
PURPOSE
============================================================
Cache, memoize, timeouts, tolerant join and configuration.

TEST PRINCIPLES:
- Time only moves through MockClock
- A fresh TtlCache per test
- Failures are values, never escapes, in gather_settled

============================================================
"""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from core.cache import TtlCache, hash_key, make_cache_key, memoize
from core.clock import ClockFactory, MockClock, to_iso8601
from core.concurrency import gather_settled, with_timeout
from core.config import AppConfig, CacheTTLs, get_config, set_config
from core.exceptions import (
    ConfigurationError,
    IncentiveSystemError,
    OperationTimeoutError,
    ValidationError,
)


# ============================================================
# TTL CACHE
# ============================================================

class TestTtlCache:

    def test_get_returns_live_value(self, cache):
        cache.set("k", 1, ttl=10)
        assert cache.get("k") == 1

    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("k", 1, ttl=10)
        clock.advance(seconds=10)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_default_ttl_used_when_none_given(self, clock):
        cache = TtlCache(clock=clock, default_ttl=5)
        cache.set("k", "v")
        clock.advance(seconds=4)
        assert cache.has("k")
        clock.advance(seconds=1)
        assert not cache.has("k")

    def test_invalidate_glob(self, cache):
        cache.set("tokenPrice:1:0xa", 1.0)
        cache.set("tokenPrice:8453:0xb", 2.0)
        cache.set("provider:aci", [])

        removed = cache.invalidate("tokenPrice:*")

        assert removed == 2
        assert cache.keys() == ["provider:aci"]

    def test_clean_expired_sweeps_only_expired(self, cache, clock):
        cache.set("short", 1, ttl=1)
        cache.set("long", 2, ttl=100)
        clock.advance(seconds=2)

        assert cache.clean_expired() == 1
        assert cache.keys() == ["long"]

    def test_set_sweeps_expired_entries_once_per_check_period(self, clock):
        cache = TtlCache(clock=clock, check_period=60)
        for i in range(5):
            cache.set(f"/incentives?x={i}", i, ttl=10)
        clock.advance(seconds=30)
        cache.set("fresh", 1, ttl=100)
        assert len(cache) == 6

        clock.advance(seconds=30)
        cache.set("another", 2, ttl=100)

        assert sorted(cache.keys()) == ["another", "fresh"]
        assert cache.get_stats()["misses"] == 0

    def test_stats_count_hits_and_misses(self, cache):
        cache.set("k", 1)
        cache.get("k")
        cache.get("missing")

        stats = cache.get_stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["size"] == 1

    def test_delete_and_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.clear()
        assert len(cache) == 0


# ============================================================
# MEMOIZE
# ============================================================

class TestMemoize:

    @pytest.mark.asyncio
    async def test_second_call_within_ttl_hits_cache(self, cache):
        source = AsyncMock(return_value=42)
        cached = memoize(source, lambda x: f"key:{x}", 60, cache)

        assert await cached(1) == 42
        assert await cached(1) == 42
        source.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_expired_entry_calls_source_again(self, cache, clock):
        source = AsyncMock(side_effect=[1, 2])
        cached = memoize(source, lambda: "key", 60, cache)

        assert await cached() == 1
        clock.advance(seconds=61)
        assert await cached() == 2

    @pytest.mark.asyncio
    async def test_distinct_keys_are_independent(self, cache):
        source = AsyncMock(side_effect=lambda x: x * 2)
        cached = memoize(source, lambda x: f"key:{x}", 60, cache)

        assert await cached(1) == 2
        assert await cached(2) == 4
        assert source.await_count == 2

    @pytest.mark.asyncio
    async def test_exception_is_not_cached(self, cache):
        source = AsyncMock(side_effect=[RuntimeError("boom"), 7])
        cached = memoize(source, lambda: "key", 60, cache)

        with pytest.raises(RuntimeError):
            await cached()
        assert await cached() == 7
        assert source.await_count == 2

    @pytest.mark.asyncio
    async def test_none_is_stored(self, cache, clock):
        source = AsyncMock(side_effect=[None, 3])
        cached = memoize(source, lambda: "key", 60, cache)

        assert await cached() is None
        assert await cached() is None
        source.assert_awaited_once()

        clock.advance(seconds=60)
        assert await cached() == 3

    @pytest.mark.asyncio
    async def test_falsy_values_are_stored(self, cache):
        source = AsyncMock(return_value=[])
        cached = memoize(source, lambda: "key", 60, cache)

        await cached()
        await cached()
        source.assert_awaited_once()


class TestKeyHelpers:

    def test_make_cache_key_joins_parts(self):
        assert make_cache_key("tokenPrice", 1, "0xabc") == "tokenPrice:1:0xabc"

    def test_hash_key_ignores_dict_order(self):
        assert hash_key({"a": 1, "b": [1, 2]}) == hash_key({"b": [1, 2], "a": 1})

    def test_hash_key_differs_on_content(self):
        assert hash_key({"a": 1}) != hash_key({"a": 2})


# ============================================================
# CONCURRENCY
# ============================================================

class TestWithTimeout:

    @pytest.mark.asyncio
    async def test_returns_result_within_budget(self):
        async def quick():
            return "done"

        assert await with_timeout(quick(), 1.0) == "done"

    @pytest.mark.asyncio
    async def test_raises_operation_timeout(self):
        started = time.monotonic()

        with pytest.raises(OperationTimeoutError) as exc_info:
            await with_timeout(asyncio.sleep(0.2), 0.05, "slow op")

        assert time.monotonic() - started < 0.15
        assert exc_info.value.timeout_seconds == 0.05
        assert "slow op" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_none_budget_is_unbounded(self):
        async def quick():
            return 1

        assert await with_timeout(quick(), None) == 1

    @pytest.mark.asyncio
    async def test_timed_out_work_is_cancelled(self):
        finished = []

        async def slow():
            await asyncio.sleep(0.1)
            finished.append(True)

        with pytest.raises(OperationTimeoutError):
            await with_timeout(slow(), 0.01)
        await asyncio.sleep(0.15)

        assert finished == []


class TestGatherSettled:

    @pytest.mark.asyncio
    async def test_failing_branch_does_not_affect_siblings(self):
        async def ok(value):
            return value

        async def fail():
            raise RuntimeError("down")

        results = await gather_settled([("a", ok(1)), ("b", fail()), ("c", ok(3))])

        assert [r.label for r in results] == ["a", "b", "c"]
        assert [r.ok for r in results] == [True, False, True]
        assert results[0].value == 1
        assert results[2].value == 3
        assert isinstance(results[1].error, RuntimeError)

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await gather_settled([]) == []

    @pytest.mark.asyncio
    async def test_timeouts_are_collected(self):
        results = await gather_settled([("slow", with_timeout(asyncio.sleep(1), 0.01))])
        assert isinstance(results[0].error, OperationTimeoutError)


# ============================================================
# CLOCK
# ============================================================

class TestClock:

    def test_mock_clock_advance(self):
        clock = MockClock.at_timestamp(1000)
        clock.advance(seconds=5)
        assert clock.unix_seconds() == 1005

    def test_mock_clock_advance_by_days(self):
        clock = MockClock.at_timestamp(0)
        clock.advance(days=1, hours=1)
        assert clock.unix_seconds() == 90_000
        clock.set_timestamp(42.9)
        assert clock.unix_seconds() == 42

    def test_factory_falls_back_to_installed_clock(self):
        pinned = MockClock.at_timestamp(7)
        ClockFactory.set_clock(pinned)
        try:
            assert ClockFactory.get_clock() is pinned
        finally:
            ClockFactory.reset()
        assert ClockFactory.get_clock() is not pinned

    def test_iso8601_has_millisecond_precision(self):
        clock = MockClock.at_timestamp(0)
        assert to_iso8601(clock.now()) == "1970-01-01T00:00:00.000Z"


# ============================================================
# CONFIG
# ============================================================

class TestAppConfig:

    def test_defaults(self):
        config = AppConfig()
        assert config.port == 8000
        assert config.disable_cache is False
        assert config.cache_ttls.request == 300
        assert config.get_rpc_url(1)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("DISABLE_CACHE", "true")
        monkeypatch.setenv("CACHE_TTL_TOKEN_PRICE", "60")
        monkeypatch.setenv("RPC_URL_1", "https://rpc.example.org")
        monkeypatch.setenv("MERKL_WHITELISTED_CREATORS", "0xABC, 0xdef")

        config = AppConfig.from_env(dotenv=False)

        assert config.port == 9000
        assert config.disable_cache is True
        assert config.cache_ttls.token_price == 60
        assert config.get_rpc_url(1) == "https://rpc.example.org"
        assert config.merkl_whitelisted_creators == ["0xabc", "0xdef"]

    def test_from_env_rejects_bad_integer(self, monkeypatch):
        monkeypatch.setenv("PORT", "eighty")
        with pytest.raises(ConfigurationError):
            AppConfig.from_env(dotenv=False)

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "port: 8100\n"
            "cache_ttls:\n"
            "  request: 30\n"
            "rpc_urls:\n"
            "  8453: https://base.example.org\n"
        )

        config = AppConfig.from_yaml(path)

        assert config.port == 8100
        assert config.cache_ttls.request == 30
        assert config.get_rpc_url(8453) == "https://base.example.org"

    def test_from_yaml_missing_file_falls_back_to_defaults(self, tmp_path):
        config = AppConfig.from_yaml(tmp_path / "missing.yaml")
        assert config.port == 8000

    def test_invalid_port(self):
        with pytest.raises(ConfigurationError):
            AppConfig(port=0)

    def test_negative_ttl(self):
        with pytest.raises(ConfigurationError):
            CacheTTLs(request=-1)

    def test_set_and_get_config(self):
        config = AppConfig(port=8123)
        set_config(config)
        assert get_config() is config


# ============================================================
# EXCEPTIONS
# ============================================================

class TestExceptions:

    def test_str_includes_source_and_cause(self):
        error = IncentiveSystemError("failed", source_name="aci", original_error=ValueError("bad"))
        assert str(error) == "IncentiveSystemError: failed [source=aci] (caused by: bad)"

    def test_validation_error_details(self):
        error = ValidationError("Invalid query parameters", details=[{"field": "chainId", "message": "x"}])
        assert error.to_dict()["details"] == [{"field": "chainId", "message": "x"}]
