from __future__ import annotations

from typing import List, Protocol

from market_ctx.data.cache import TTLCache
from market_ctx.data.models import Candle
from market_ctx.exchange.base import ExchangeClient


class CandleSource(Protocol):
    def get_candles(self, symbol: str, interval: str, limit: int = 200) -> List[Candle]: ...


class MarketFetcher:
    def __init__(self, client: ExchangeClient, cache: TTLCache, ttl_sec: float = 20) -> None:
        self.client = client
        self.cache = cache
        self.ttl_sec = ttl_sec

    def get_candles(self, symbol: str, interval: str, limit: int = 200) -> List[Candle]:
        key = ("ohlcv", self.client.name, symbol, interval, str(limit))
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        candles = self.client.fetch_ohlcv(symbol=symbol, interval=interval, limit=limit)
        # Cache an immutable copy; every caller gets its own list back.
        self.cache.set(key, tuple(candles), ttl_sec=self.ttl_sec)
        return list(candles)
