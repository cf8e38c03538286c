"""Unit tests for the CoinGecko client (httpx.MockTransport) and the Redis price cache."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.pm_price.infrastructure.cache import CachedPriceProvider
from src.pm_price.infrastructure.coingecko import CoinGeckoPriceProvider

BASE_URL = "https://feed.test/api/v3"


def _provider(handler) -> CoinGeckoPriceProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return CoinGeckoPriceProvider(base_url=BASE_URL, client=client)


class TestCoinGeckoHistory:
    @pytest.mark.asyncio
    async def test_parses_price_as_decimal(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, text='{"market_data": {"current_price": {"usd": 64123.45678901}}}'
            )

        price = await _provider(handler).get_price_at("btc", datetime(2026, 3, 5, 18, 0, tzinfo=UTC))

        assert price == Decimal("64123.45678901")
        assert seen[0].url.path == "/api/v3/coins/bitcoin/history"
        assert seen[0].url.params["date"] == "05-03-2026"

    @pytest.mark.asyncio
    async def test_integer_price(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"market_data": {"current_price": {"usd": 1}}})

        price = await _provider(handler).get_price_at("USDC", datetime(2026, 1, 1, tzinfo=UTC))

        assert price == Decimal(1)

    @pytest.mark.asyncio
    async def test_unknown_symbol_makes_no_request(self):
        handler = MagicMock()
        assert await _provider(handler).get_price_at("NOPE", datetime.now(UTC)) is None
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"status": {"error_code": 429}})

        assert await _provider(handler).get_price_at("ETH", datetime.now(UTC)) is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        assert await _provider(handler).get_price_at("ETH", datetime.now(UTC)) is None

    @pytest.mark.asyncio
    async def test_missing_market_data_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "ethereum"})

        assert await _provider(handler).get_price_at("ETH", datetime.now(UTC)) is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        assert await _provider(handler).get_price_at("ETH", datetime.now(UTC)) is None

    @pytest.mark.asyncio
    async def test_later_today_has_no_price(self):
        handler = MagicMock(
            return_value=httpx.Response(200, json={"market_data": {"current_price": {"usd": 100.5}}})
        )

        price = await _provider(handler).get_price_at("BTC", datetime.now(UTC) + timedelta(minutes=30))

        assert price is None
        handler.assert_not_called()


class TestCoinGeckoCurrent:
    @pytest.mark.asyncio
    async def test_simple_price(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["ids"] == "worldcoin-wld"
            return httpx.Response(200, text='{"worldcoin-wld": {"usd": 2.31}}')

        assert await _provider(handler).get_current_price("WLD") == Decimal("2.31")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        provider = _provider(lambda request: httpx.Response(200, json={}))
        await provider.close()
        await provider.close()


def _redis(get_value=None) -> MagicMock:
    redis = MagicMock()
    redis.get = AsyncMock(return_value=get_value)
    redis.set = AsyncMock()
    return redis


class TestCachedPriceProvider:
    @pytest.mark.asyncio
    async def test_hit_skips_feed(self):
        inner = MagicMock()
        inner.get_price_at = AsyncMock()
        redis = _redis("101.5")
        cached = CachedPriceProvider(inner, AsyncMock(return_value=redis), ttl_seconds=60)

        price = await cached.get_price_at("BTC", datetime(2026, 1, 1, tzinfo=UTC))

        assert price == Decimal("101.5")
        inner.get_price_at.assert_not_called()
        redis.get.assert_awaited_once_with("price:BTC:2026-01-01T00:00:00+00:00")

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self):
        inner = MagicMock()
        inner.get_price_at = AsyncMock(return_value=Decimal("99.9"))
        redis = _redis(None)
        cached = CachedPriceProvider(inner, AsyncMock(return_value=redis), ttl_seconds=60)

        price = await cached.get_price_at("btc", datetime(2026, 1, 1, tzinfo=UTC))

        assert price == Decimal("99.9")
        redis.set.assert_awaited_once_with(
            "price:BTC:2026-01-01T00:00:00+00:00", "99.9", ex=60
        )

    @pytest.mark.asyncio
    async def test_none_not_cached(self):
        inner = MagicMock()
        inner.get_price_at = AsyncMock(return_value=None)
        redis = _redis(None)
        cached = CachedPriceProvider(inner, AsyncMock(return_value=redis), ttl_seconds=60)

        assert await cached.get_price_at("BTC", datetime(2026, 1, 1, tzinfo=UTC)) is None
        redis.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_future_timestamp_bypasses_cache(self):
        inner = MagicMock()
        inner.get_price_at = AsyncMock(return_value=None)
        getter = AsyncMock()
        cached = CachedPriceProvider(inner, getter, ttl_seconds=60)

        await cached.get_price_at("BTC", datetime.now(UTC) + timedelta(hours=1))

        getter.assert_not_called()
        inner.get_price_at.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_down_falls_through(self):
        inner = MagicMock()
        inner.get_price_at = AsyncMock(return_value=Decimal("5"))
        getter = AsyncMock(side_effect=RedisConnectionError("refused"))
        cached = CachedPriceProvider(inner, getter, ttl_seconds=60)

        assert await cached.get_price_at("ETH", datetime(2026, 1, 1, tzinfo=UTC)) == Decimal("5")

    @pytest.mark.asyncio
    async def test_corrupt_entry_refetched(self):
        inner = MagicMock()
        inner.get_price_at = AsyncMock(return_value=Decimal("7"))
        cached = CachedPriceProvider(inner, AsyncMock(return_value=_redis("garbage")), ttl_seconds=60)

        assert await cached.get_price_at("ETH", datetime(2026, 1, 1, tzinfo=UTC)) == Decimal("7")

    @pytest.mark.asyncio
    async def test_current_price_passthrough(self):
        inner = MagicMock()
        inner.get_current_price = AsyncMock(return_value=Decimal("3"))
        getter = AsyncMock()
        cached = CachedPriceProvider(inner, getter, ttl_seconds=60)

        assert await cached.get_current_price("WLD") == Decimal("3")
        getter.assert_not_called()
