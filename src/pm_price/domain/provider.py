"""Price Resolver Protocol. The settlement engine only sees this interface.

Both methods return a USD price as Decimal, or None when the price cannot be
produced (unknown symbol, feed error, no data for that time). Providers do
not raise for feed failures; the engine maps None to PriceUnavailableError.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol


class PriceProviderProtocol(Protocol):
    async def get_price_at(self, symbol: str, at: datetime) -> Decimal | None: ...

    async def get_current_price(self, symbol: str) -> Decimal | None: ...
