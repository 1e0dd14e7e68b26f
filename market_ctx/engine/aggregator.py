from __future__ import annotations

import math
from typing import Sequence

from market_ctx.data.models import Candle, IndicatorSeries, TimeframeContext
from market_ctx.indicators.core import (
    adx_series,
    atr,
    atr_series,
    closes_of,
    ema,
    ema_series,
    macd,
    macd_series,
    rsi,
    rsi_series,
)

TAIL_POINTS = 10


def compute_series(candles: Sequence[Candle], intraday: bool = False) -> IndicatorSeries:
    """
    Full aligned indicator series for one timeframe.
    Every timeframe gets MACD(+signal/hist), RSI-14 and ATR-3/14;
    the intraday timeframe additionally gets EMA-5/20/50, RSI-7 and ADX-7/14.
    """
    closes = closes_of(candles)
    line, signal, hist = macd_series(closes)

    base = dict(
        closes=tuple(closes),
        macd=tuple(line),
        macd_signal=tuple(signal),
        macd_hist=tuple(hist),
        rsi14=tuple(rsi_series(closes, 14)),
        atr3=tuple(atr_series(candles, 3)),
        atr14=tuple(atr_series(candles, 14)),
    )
    if not intraday:
        return IndicatorSeries(**base)

    return IndicatorSeries(
        ema5=tuple(ema_series(closes, 5)),
        ema20=tuple(ema_series(closes, 20)),
        ema50=tuple(ema_series(closes, 50)),
        rsi7=tuple(rsi_series(closes, 7)),
        adx7=tuple(adx_series(candles, 7)),
        adx14=tuple(adx_series(candles, 14)),
        **base,
    )


def aggregate(
    candles: Sequence[Candle],
    timeframe: str = "",
    intraday: bool = False,
    tail: int = TAIL_POINTS,
) -> TimeframeContext:
    """Scalar "current" indicators + the last `tail` points of each series + volume stats."""
    closes = closes_of(candles)

    current_volume = 0.0
    average_volume = 0.0
    if candles:
        current_volume = float(candles[-1].v)
        average_volume = math.fsum(c.v for c in candles) / len(candles)

    return TimeframeContext(
        timeframe=timeframe,
        candle_count=len(candles),
        ema5=ema(closes, 5),
        ema20=ema(closes, 20),
        ema50=ema(closes, 50),
        macd=macd(closes),
        rsi7=rsi(closes, 7),
        rsi14=rsi(closes, 14),
        atr3=atr(candles, 3),
        atr14=atr(candles, 14),
        current_volume=current_volume,
        average_volume=average_volume,
        series=compute_series(candles, intraday=intraday).tail(tail),
    )
