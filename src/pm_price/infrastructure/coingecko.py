"""CoinGecko price feed client.

Free public API: 10-50 calls/min, daily granularity for history
(/coins/{id}/history?date=DD-MM-YYYY, UTC). JSON floats are parsed straight
into Decimal so prices never pass through binary floating point. Timestamps
that have not happened yet have no price.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

from config.settings import settings
from src.pm_common.datetime_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# Common symbols -> CoinGecko coin ids
SYMBOL_TO_COIN_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "WLD": "worldcoin-wld",
    "USDC": "usd-coin",
    "USDT": "tether",
    "SOL": "solana",
    "MATIC": "matic-network",
}


def _as_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return None


class CoinGeckoPriceProvider:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url or settings.PRICE_FEED_BASE_URL
        self._api_key = api_key if api_key is not None else settings.PRICE_FEED_API_KEY
        self._timeout = timeout or settings.PRICE_FEED_TIMEOUT_SECONDS
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["x-cg-demo-api-key"] = self._api_key
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def get_price_at(self, symbol: str, at: datetime) -> Decimal | None:
        # Daily history would answer with today's snapshot for a later moment today
        if ensure_utc(at) > utc_now():
            logger.info("Price for %s at %s not available yet", symbol, ensure_utc(at).isoformat())
            return None
        coin_id = SYMBOL_TO_COIN_ID.get(symbol.upper())
        if coin_id is None:
            logger.warning("Unknown symbol for price feed: %s", symbol)
            return None

        date = ensure_utc(at).strftime("%d-%m-%Y")
        data = await self._get_json(
            f"/coins/{coin_id}/history", {"date": date, "localization": "false"}
        )
        if data is None:
            return None
        price = _as_decimal(
            ((data.get("market_data") or {}).get("current_price") or {}).get("usd")
        )
        if price is None:
            logger.warning("No price data for %s on %s", symbol, date)
        return price

    async def get_current_price(self, symbol: str) -> Decimal | None:
        coin_id = SYMBOL_TO_COIN_ID.get(symbol.upper())
        if coin_id is None:
            logger.warning("Unknown symbol for price feed: %s", symbol)
            return None

        data = await self._get_json(
            "/simple/price", {"ids": coin_id, "vs_currencies": "usd"}
        )
        if data is None:
            return None
        price = _as_decimal((data.get(coin_id) or {}).get("usd"))
        if price is None:
            logger.warning("No current price data for %s", symbol)
        return price

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any] | None:
        client = await self._get_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            data = response.json(parse_float=Decimal)
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Price feed error: %s %s", exc.response.status_code, exc.request.url
            )
            return None
        except httpx.HTTPError as exc:
            logger.warning("Price feed request failed: %s (%s)", path, exc)
            return None
        except ValueError:
            logger.warning("Price feed returned invalid JSON for %s", path)
            return None
        return data if isinstance(data, dict) else None
