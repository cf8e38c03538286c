"""Redis cache in front of any price provider.

Only historical prices (timestamps already in the past) are cached: they
never change, and the free feed is rate limited. Misses (None) and current
prices always go to the wrapped provider. A Redis failure degrades to an
uncached lookup.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.pm_common.datetime_utils import ensure_utc, utc_now
from src.pm_common.redis_client import get_redis
from src.pm_price.domain.provider import PriceProviderProtocol

logger = logging.getLogger(__name__)


def _cache_key(symbol: str, at: datetime) -> str:
    return f"price:{symbol.upper()}:{ensure_utc(at).isoformat()}"


class CachedPriceProvider:
    def __init__(
        self,
        inner: PriceProviderProtocol,
        redis_getter: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        ttl_seconds: int | None = None,
    ) -> None:
        self._inner = inner
        self._redis_getter = redis_getter
        self._ttl = ttl_seconds or settings.PRICE_CACHE_TTL_SECONDS

    async def get_price_at(self, symbol: str, at: datetime) -> Decimal | None:
        if ensure_utc(at) >= utc_now():
            return await self._inner.get_price_at(symbol, at)

        key = _cache_key(symbol, at)
        cached = await self._read(key)
        if cached is not None:
            return cached

        price = await self._inner.get_price_at(symbol, at)
        if price is not None:
            await self._write(key, price)
        return price

    async def get_current_price(self, symbol: str) -> Decimal | None:
        return await self._inner.get_current_price(symbol)

    async def close(self) -> None:
        close = getattr(self._inner, "close", None)
        if close is not None:
            await close()

    async def _read(self, key: str) -> Decimal | None:
        try:
            redis = await self._redis_getter()
            raw = await redis.get(key)
        except RedisError as exc:
            logger.warning("Price cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return Decimal(raw)
        except InvalidOperation:
            logger.warning("Discarding corrupt price cache entry %s=%r", key, raw)
            return None

    async def _write(self, key: str, price: Decimal) -> None:
        try:
            redis = await self._redis_getter()
            await redis.set(key, str(price), ex=self._ttl)
        except RedisError as exc:
            logger.warning("Price cache write failed for %s: %s", key, exc)
