from __future__ import annotations

import logging
import math
from typing import List, Protocol

import requests

from market_ctx.data.cache import TTLCache
from market_ctx.data.models import OpenInterest
from market_ctx.exchange.base import ExchangeClient

logger = logging.getLogger("market_ctx")


class MarketContextSource(Protocol):
    def get_open_interest(self, symbol: str) -> OpenInterest: ...

    def get_funding_rate(self, symbol: str) -> float: ...


class DerivativesFetcher:
    """
    Open interest + funding rate for one exchange.

    OI average policy:
    - mean of the exchange's open interest history (`hist_period` x `hist_limit`);
    - if that history is unavailable, mean of the latest-OI samples observed by this
      process (rolling window of `hist_limit`, current sample included).
    """
    def __init__(
        self,
        client: ExchangeClient,
        cache: TTLCache,
        hist_period: str = "5m",
        hist_limit: int = 30,
        ttl_sec: float = 30,
    ) -> None:
        self.client = client
        self.cache = cache
        self.hist_period = hist_period
        self.hist_limit = hist_limit
        self.ttl_sec = ttl_sec

    def _observe(self, symbol: str, latest: float) -> List[float]:
        series_key = f"oi_samples:{self.client.name}:{symbol}"
        samples = self.cache.get_or_create_deque(series_key, maxlen=self.hist_limit)
        samples.append(latest)
        return list(samples)

    def get_open_interest(self, symbol: str) -> OpenInterest:
        key = ("oi", self.client.name, symbol)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        latest = self.client.fetch_open_interest(symbol)
        samples = self._observe(symbol, latest)

        try:
            hist = self.client.fetch_open_interest_hist(symbol, period=self.hist_period, limit=self.hist_limit)
        except (requests.RequestException, ValueError) as e:
            logger.warning("OI history unavailable for %s, using %d rolling samples: %s", symbol, len(samples), e)
            hist = []

        if hist:
            average = math.fsum(hist) / len(hist)
        else:
            average = math.fsum(samples) / len(samples)

        oi = OpenInterest(latest=latest, average=average)
        self.cache.set(key, oi, ttl_sec=self.ttl_sec)
        return oi

    def get_funding_rate(self, symbol: str) -> float:
        key = ("funding", self.client.name, symbol)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        rate = self.client.fetch_funding_rate(symbol)
        self.cache.set(key, rate, ttl_sec=self.ttl_sec)
        return rate
