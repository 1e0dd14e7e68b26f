from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

import pytest

from market_ctx.config import AppConfig
from market_ctx.data.models import Candle, OpenInterest
from market_ctx.exchange.base import ExchangeClient


def make_candles(closes: Sequence[float], spread: float = 1.0, volume: float = 10.0, start_ts: int = 1_700_000_000) -> List[Candle]:
    out: List[Candle] = []
    prev = closes[0] if closes else 0.0
    for i, c in enumerate(closes):
        o = prev
        out.append(Candle(ts=start_ts + i * 300, o=o, h=max(o, c) + spread, l=min(o, c) - spread, c=c, v=volume + i))
        prev = c
    return out


def wave(n: int, base: float = 100.0, amp: float = 5.0) -> List[float]:
    return [base + amp * math.sin(i / 3.0) + 0.1 * i for i in range(n)]


class FakeCandleSource:
    def __init__(self, by_tf: Dict[str, List[Candle]], fail: Optional[Dict[str, Exception]] = None) -> None:
        self.by_tf = by_tf
        self.fail = fail or {}
        self.calls: List[tuple] = []

    def get_candles(self, symbol: str, interval: str, limit: int = 200) -> List[Candle]:
        self.calls.append((symbol, interval, limit))
        if interval in self.fail:
            raise self.fail[interval]
        return list(self.by_tf.get(interval, []))


class FakeContextSource:
    def __init__(self, oi: Optional[OpenInterest] = None, funding: Optional[float] = None, fail: bool = False) -> None:
        self.oi = oi
        self.funding = funding
        self.fail = fail

    def get_open_interest(self, symbol: str) -> OpenInterest:
        if self.fail:
            raise ConnectionError("oi endpoint down")
        return self.oi

    def get_funding_rate(self, symbol: str) -> float:
        if self.fail:
            raise ValueError("malformed funding payload")
        return self.funding


class FakeExchange(ExchangeClient):
    name = "fake"

    def __init__(self, oi: float = 100.0, hist: Optional[List[float]] = None, hist_error: Optional[Exception] = None, funding: float = 0.0001) -> None:
        self.oi = oi
        self.hist = hist if hist is not None else []
        self.hist_error = hist_error
        self.funding = funding
        self.ohlcv_calls = 0

    def ping(self) -> bool:
        return True

    def fetch_ohlcv(self, symbol: str, interval: str, limit: int = 200) -> List[Candle]:
        self.ohlcv_calls += 1
        return make_candles(wave(limit))

    def fetch_open_interest(self, symbol: str) -> float:
        return self.oi

    def fetch_open_interest_hist(self, symbol: str, period: str, limit: int) -> List[float]:
        if self.hist_error is not None:
            raise self.hist_error
        return list(self.hist)

    def fetch_funding_rate(self, symbol: str) -> float:
        return self.funding


@pytest.fixture
def cfg(monkeypatch) -> AppConfig:
    for k in ("SYMBOLS", "QUOTE_ASSET", "TF_SHORT", "TF_MEDIUM", "TF_LONG", "CANDLE_LIMIT", "BINANCE_API_KEY"):
        monkeypatch.delenv(k, raising=False)
    return AppConfig.load()
