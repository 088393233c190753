"""Pyth Network price oracle — Hermes REST endpoint."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import ExternalReadFailure
from ..models import Price

logger = logging.getLogger(__name__)


def parse_price(item: dict[str, Any]) -> Price:
    """Convert one Hermes ``parsed`` entry into an integer Price.

    Hermes reports ``price`` as a string mantissa and ``expo`` as a negative
    exponent, e.g. ``{"price": "350012345678", "expo": -8}`` → 3500.12345678.
    """
    price_data = item.get("price", {})
    try:
        mantissa = int(price_data["price"])
        expo = int(price_data["expo"])
    except (KeyError, TypeError, ValueError) as e:
        raise ExternalReadFailure(f"Malformed Pyth price entry: {item!r}") from e

    if mantissa <= 0:
        raise ExternalReadFailure(f"Non-positive Pyth price for feed {item.get('id')}")
    if expo > 0:
        return Price(value=mantissa * 10**expo, decimals=0)
    return Price(value=mantissa, decimals=-expo)


class PythOracle:
    """Fetch spot prices from Pyth Network."""

    def __init__(self, config: PythConfig, timeout: int = 10) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self.timeout = timeout

    async def _fetch_parsed(self, feeds: dict[str, str]) -> dict[str, Price]:
        """Fetch the latest update for ``feeds`` and map each symbol to its Price."""
        feed_ids = sorted(set(feeds.values()))
        if not feed_ids:
            return {}

        query_params = "&".join(f"ids[]={fid}" for fid in feed_ids)
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        raise ExternalReadFailure(
                            f"Pyth Hermes returned HTTP {response.status}"
                        )
                    data = await response.json()
        except ExternalReadFailure:
            raise
        except Exception as e:
            raise ExternalReadFailure(f"Error fetching prices from Pyth: {e}") from e

        # Hermes ids are unprefixed hex; configured ids may carry 0x
        id_to_assets: dict[str, list[str]] = {}
        for asset, feed_id in feeds.items():
            id_to_assets.setdefault(feed_id.lower().removeprefix("0x"), []).append(asset)

        prices: dict[str, Price] = {}
        for item in data.get("parsed", []):
            feed_id = str(item.get("id", "")).lower().removeprefix("0x")
            for asset in id_to_assets.get(feed_id, []):
                prices[asset] = parse_price(item)
        return prices

    async def price(self, asset: str) -> Price:
        """Current price of ``asset``; raises if the feed is unknown or missing."""
        if asset not in self.price_feeds:
            raise ExternalReadFailure(f"No Pyth feed configured for {asset}")
        prices = await self._fetch_parsed({asset: self.price_feeds[asset]})
        if asset not in prices:
            raise ExternalReadFailure(f"Pyth response missing {asset}")
        price = prices[asset]
        logger.debug("Pyth %s: %d e-%d", asset, price.value, price.decimals)
        return price

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, float]:
        """Fetch current prices as floats for reports.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.
        """
        feeds = self.price_feeds
        if symbols is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in symbols}

        prices = {
            asset: p.value / 10**p.decimals
            for asset, p in (await self._fetch_parsed(feeds)).items()
        }
        logger.info("Fetched prices from Pyth Network:")
        for asset, value in sorted(prices.items()):
            logger.info("  %s: $%.4f", asset, value)
        return prices
