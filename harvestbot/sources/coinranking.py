"""CoinRanking source — ranked coin prices and market stats."""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .base import SourceClient, SourceError


@dataclass(frozen=True)
class CoinQuote:
    name: str
    symbol: str
    price: float
    change: float


@dataclass(frozen=True)
class MarketStats:
    total_coins: int
    total_market_cap: float
    total_24h_volume: float


@dataclass(frozen=True)
class PriceBoard:
    """Parsed `/v2/coins` response."""

    coins: tuple[CoinQuote, ...]
    stats: Optional[MarketStats] = None
    time_period: str = "3h"


def _to_float(value: Any) -> float:
    # CoinRanking sends numbers as strings and uses null for unknown change
    if value is None or value == "":
        return 0.0
    return float(value)


class CoinRankingSource(SourceClient):
    """Fetch the top coins from the CoinRanking API.

    The API key is optional; without it the public rate limit applies.
    """

    name = "coinranking"

    def __init__(
        self,
        url: str = "https://api.coinranking.com/v2/coins",
        api_key: Optional[str] = None,
        limit: int = 10,
        time_period: str = "3h",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(url, api_key=api_key, timeout=timeout, transport=transport)
        self.limit = limit
        self.time_period = time_period

    def build_request(self) -> tuple[dict, dict]:
        params = {"limit": self.limit, "timePeriod": self.time_period}
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-access-token"] = self.api_key
        return params, headers

    def parse(self, body: Any) -> PriceBoard:
        status = body.get("status")
        if status != "success":
            raise SourceError(f"CoinRanking returned status: {status}")

        data = body.get("data") or {}
        coins = tuple(
            CoinQuote(
                name=str(coin.get("name") or "?"),
                symbol=str(coin.get("symbol") or "?"),
                price=_to_float(coin.get("price")),
                change=_to_float(coin.get("change")),
            )
            for coin in data.get("coins") or []
        )

        stats = None
        raw_stats = data.get("stats")
        if raw_stats:
            stats = MarketStats(
                total_coins=int(raw_stats.get("totalCoins") or 0),
                total_market_cap=_to_float(raw_stats.get("totalMarketCap")),
                total_24h_volume=_to_float(raw_stats.get("total24hVolume")),
            )

        return PriceBoard(coins=coins, stats=stats, time_period=self.time_period)
