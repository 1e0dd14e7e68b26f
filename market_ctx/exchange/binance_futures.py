from __future__ import annotations

import math
from typing import Any, Dict, List

import requests

from market_ctx.config import AppConfig
from market_ctx.data.models import Candle
from market_ctx.exchange.base import ExchangeClient


def _num(payload: Any, key: Any) -> float:
    """
    Pull a finite float out of a Binance payload (numbers usually arrive as strings).
    Raises ValueError on missing / non-numeric / non-finite values.
    """
    try:
        x = float(payload[key])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise ValueError(f"malformed field {key!r}: {e}") from e
    if not math.isfinite(x):
        raise ValueError(f"non-finite field {key!r}: {x}")
    return x


class BinanceFuturesClient(ExchangeClient):
    """USD-M futures public REST endpoints."""

    name = "binance"

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg
        self.base = "https://fapi.binance.com"
        self.timeout = cfg.http_timeout_sec

    def _headers(self) -> Dict[str, str]:
        # Market data endpoints are public; send the key only when one is configured.
        if self.cfg.binance_api_key:
            return {"X-MBX-APIKEY": self.cfg.binance_api_key}
        return {}

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        r = requests.get(f"{self.base}{path}", params=params, headers=self._headers(), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def ping(self) -> bool:
        try:
            r = requests.get(f"{self.base}/fapi/v1/ping", timeout=5)
            return r.status_code == 200
        except requests.RequestException:
            return False

    def fetch_ohlcv(self, symbol: str, interval: str, limit: int = 200) -> List[Candle]:
        data = self._get("/fapi/v1/klines", {"symbol": symbol, "interval": interval, "limit": min(limit, 1500)})
        if not isinstance(data, list):
            raise ValueError(f"unexpected klines payload for {symbol}@{interval}: {type(data).__name__}")

        out: List[Candle] = []
        for row in data:
            # row: [open_time_ms, o, h, l, c, v, close_time_ms, ...]
            out.append(
                Candle(
                    ts=int(_num(row, 0)) // 1000,
                    o=_num(row, 1),
                    h=_num(row, 2),
                    l=_num(row, 3),
                    c=_num(row, 4),
                    v=_num(row, 5),
                )
            )
        return out

    def fetch_open_interest(self, symbol: str) -> float:
        return _num(self._get("/fapi/v1/openInterest", {"symbol": symbol}), "openInterest")

    def fetch_open_interest_hist(self, symbol: str, period: str, limit: int) -> List[float]:
        data = self._get("/futures/data/openInterestHist", {"symbol": symbol, "period": period, "limit": limit})
        if not isinstance(data, list):
            raise ValueError(f"unexpected openInterestHist payload for {symbol}: {type(data).__name__}")
        # Binance returns these oldest first
        return [_num(row, "sumOpenInterest") for row in data]

    def fetch_funding_rate(self, symbol: str) -> float:
        return _num(self._get("/fapi/v1/premiumIndex", {"symbol": symbol}), "lastFundingRate")
