from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from market_ctx.data.models import Candle


class ExchangeClient(ABC):
    name: str

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the exchange is reachable."""
        raise NotImplementedError

    @abstractmethod
    def fetch_ohlcv(self, symbol: str, interval: str, limit: int = 200) -> List[Candle]:
        """Most recent `limit` candles, oldest first. Raises on transport/payload errors."""
        raise NotImplementedError

    @abstractmethod
    def fetch_open_interest(self, symbol: str) -> float:
        raise NotImplementedError

    @abstractmethod
    def fetch_open_interest_hist(self, symbol: str, period: str, limit: int) -> List[float]:
        """Historical open interest values (oldest first) at `period` granularity."""
        raise NotImplementedError

    @abstractmethod
    def fetch_funding_rate(self, symbol: str) -> float:
        raise NotImplementedError
