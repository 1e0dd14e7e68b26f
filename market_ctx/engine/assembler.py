from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from market_ctx.config import AppConfig
from market_ctx.data.derivatives_fetcher import MarketContextSource
from market_ctx.data.market_fetcher import CandleSource
from market_ctx.data.models import Candle, MarketContext, MarketSnapshot, OpenInterest
from market_ctx.engine.aggregator import TAIL_POINTS, aggregate
from market_ctx.indicators.core import pct_change
from market_ctx.utils.symbols import normalize

logger = logging.getLogger("market_ctx")

# 20 short bars back for the "1h" change, 1 long bar back for the "4h" change
LOOKBACK_1H_BARS = 20
LOOKBACK_4H_BARS = 1


class CandleFetchError(RuntimeError):
    def __init__(self, symbol: str, timeframe: str, reason: str) -> None:
        super().__init__(f"failed to fetch {timeframe} candles for {symbol}: {reason}")
        self.symbol = symbol
        self.timeframe = timeframe


def _change_over(candles: Sequence[Candle], bars_back: int, current: float) -> float:
    if len(candles) < bars_back + 1:
        return 0.0
    return pct_change(current, candles[-(bars_back + 1)].c)


def build_snapshot(
    symbol: str,
    short: Sequence[Candle],
    medium: Sequence[Candle],
    long: Sequence[Candle],
    context: Optional[MarketContext] = None,
    *,
    timeframes: Tuple[str, str, str] = ("5m", "30m", "4h"),
    max_workers: int = 3,
    tail: int = TAIL_POINTS,
    now_ts: Optional[int] = None,
) -> MarketSnapshot:
    """
    Assemble one snapshot from already-fetched candles.
    The three timeframes are aggregated on worker threads, each over its own tuple copy.
    Missing market context degrades to OI {0, 0} / funding 0.
    """
    context = context or MarketContext()
    short_t, medium_t, long_t = tuple(short), tuple(medium), tuple(long)

    current_price = float(short_t[-1].c) if short_t else 0.0
    change_1h = _change_over(short_t, LOOKBACK_1H_BARS, current_price)
    change_4h = _change_over(long_t, LOOKBACK_4H_BARS, current_price)

    tf_short, tf_medium, tf_long = timeframes
    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="aggregate") as pool:
        f_short = pool.submit(aggregate, short_t, tf_short, True, tail)
        f_medium = pool.submit(aggregate, medium_t, tf_medium, False, tail)
        f_long = pool.submit(aggregate, long_t, tf_long, False, tail)
        intraday, medium_term, long_term = f_short.result(), f_medium.result(), f_long.result()

    oi = context.open_interest or OpenInterest(latest=0.0, average=0.0)
    funding = context.funding_rate if context.funding_rate is not None else 0.0

    return MarketSnapshot(
        symbol=symbol,
        current_price=current_price,
        price_change_1h=change_1h,
        price_change_4h=change_4h,
        current_ema20=intraday.ema20,
        current_macd=intraday.macd,
        current_rsi7=intraday.rsi7,
        intraday=intraday,
        medium_term=medium_term,
        long_term=long_term,
        open_interest=oi,
        funding_rate=float(funding),
        last_updated_ts=int(time.time()) if now_ts is None else now_ts,
    )


class SnapshotAssembler:
    """
    Request-level orchestration: normalize -> fetch 3 timeframes -> fetch context -> build.
    Candle failures are fatal (CandleFetchError); market-context failures are logged and defaulted.
    No retries here; those belong to the sources.
    """
    def __init__(self, candles: CandleSource, context: MarketContextSource, cfg: AppConfig) -> None:
        self.candles = candles
        self.context = context
        self.cfg = cfg

    @property
    def timeframes(self) -> Tuple[str, str, str]:
        return (self.cfg.tf_short, self.cfg.tf_medium, self.cfg.tf_long)

    def _fetch_candles(self, symbol: str, timeframe: str) -> List[Candle]:
        try:
            candles = self.candles.get_candles(symbol, timeframe, limit=self.cfg.candle_limit)
        except Exception as e:
            raise CandleFetchError(symbol, timeframe, str(e)) from e
        if not candles:
            raise CandleFetchError(symbol, timeframe, "no candles returned")
        return list(candles)

    def _fetch_context(self, symbol: str) -> MarketContext:
        oi: Optional[OpenInterest] = None
        funding: Optional[float] = None

        try:
            oi = self.context.get_open_interest(symbol)
        except Exception as e:
            logger.warning("Open interest unavailable for %s, using defaults: %s", symbol, e)

        try:
            funding = self.context.get_funding_rate(symbol)
        except Exception as e:
            logger.warning("Funding rate unavailable for %s, using default: %s", symbol, e)

        return MarketContext(open_interest=oi, funding_rate=funding)

    def build(self, symbol: str) -> MarketSnapshot:
        symbol = normalize(symbol, self.cfg.quote_asset)
        tf_short, tf_medium, tf_long = self.timeframes

        short = self._fetch_candles(symbol, tf_short)
        medium = self._fetch_candles(symbol, tf_medium)
        long = self._fetch_candles(symbol, tf_long)
        logger.debug(
            "CANDLES %s | %s=%d | %s=%d | %s=%d",
            symbol, tf_short, len(short), tf_medium, len(medium), tf_long, len(long),
        )

        context = self._fetch_context(symbol)

        return build_snapshot(
            symbol,
            short,
            medium,
            long,
            context,
            timeframes=self.timeframes,
            max_workers=self.cfg.aggregate_workers,
        )
