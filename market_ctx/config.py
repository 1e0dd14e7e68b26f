from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from market_ctx.utils.timeframes import TF_4H, TF_5M, TF_30M, parse_tf


def _getenv(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None:
        raise RuntimeError(f"Missing required env var: {name}")
    return val


def _split_csv(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]


@dataclass(frozen=True)
class AppConfig:
    app_env: str
    symbols: List[str]
    quote_asset: str
    scan_interval_sec: int

    # Timeframes: short (intraday), medium, long
    tf_short: str
    tf_medium: str
    tf_long: str
    candle_limit: int

    # Open interest history window used for the average
    oi_hist_period: str
    oi_hist_limit: int

    http_timeout_sec: float
    aggregate_workers: int

    # Binance (public endpoints work without keys)
    binance_api_key: str
    binance_api_secret: str

    @staticmethod
    def load() -> "AppConfig":
        tf_short = parse_tf(_getenv("TF_SHORT", TF_5M.name)).name
        tf_medium = parse_tf(_getenv("TF_MEDIUM", TF_30M.name)).name
        tf_long = parse_tf(_getenv("TF_LONG", TF_4H.name)).name

        candle_limit = int(_getenv("CANDLE_LIMIT", "200"))
        if candle_limit <= 0:
            raise RuntimeError(f"CANDLE_LIMIT must be positive, got {candle_limit}")

        return AppConfig(
            app_env=_getenv("APP_ENV", "dev"),
            symbols=_split_csv(_getenv("SYMBOLS", "BTCUSDT,ETHUSDT")),
            quote_asset=_getenv("QUOTE_ASSET", "USDT").upper(),
            scan_interval_sec=int(_getenv("SCAN_INTERVAL_SEC", "300")),
            tf_short=tf_short,
            tf_medium=tf_medium,
            tf_long=tf_long,
            candle_limit=candle_limit,
            oi_hist_period=parse_tf(_getenv("OI_HIST_PERIOD", "5m")).name,
            oi_hist_limit=max(1, int(_getenv("OI_HIST_LIMIT", "30"))),
            http_timeout_sec=float(_getenv("HTTP_TIMEOUT_SEC", "10")),
            aggregate_workers=max(1, int(_getenv("AGGREGATE_WORKERS", "3"))),
            binance_api_key=_getenv("BINANCE_API_KEY", ""),
            binance_api_secret=_getenv("BINANCE_API_SECRET", ""),
        )
