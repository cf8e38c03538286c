"""Process-wide price provider: CoinGecko behind the Redis cache.

Swap the feed by changing what get_price_provider builds; the settlement
engine only depends on PriceProviderProtocol.
"""

from src.pm_price.infrastructure.cache import CachedPriceProvider
from src.pm_price.infrastructure.coingecko import CoinGeckoPriceProvider

_provider: CachedPriceProvider | None = None


def get_price_provider() -> CachedPriceProvider:
    global _provider  # noqa: PLW0603
    if _provider is None:
        _provider = CachedPriceProvider(CoinGeckoPriceProvider())
    return _provider


async def close_price_provider() -> None:
    global _provider  # noqa: PLW0603
    if _provider is not None:
        await _provider.close()
        _provider = None
