from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from market_ctx.data.models import Candle
from market_ctx.indicators.core import closes_of, ema_series, macd_series, rsi_series


@dataclass(frozen=True)
class AnnotatedCandle:
    candle: Candle
    ema5: float
    ema20: float
    ema60: float
    macd: float
    macd_signal: float
    macd_hist: float
    rsi7: float
    rsi14: float


def _at(values: List[float], i: int) -> float:
    # Empty series means the indicator never left warm-up
    return values[i] if values else 0.0


def annotate_candles(candles: Sequence[Candle]) -> Tuple[AnnotatedCandle, ...]:
    """
    Attach the standard per-bar indicator set to every candle (oldest first).
    Bars inside an indicator's warm-up carry 0.0 for it.
    """
    closes = closes_of(candles)
    ema5 = ema_series(closes, 5)
    ema20 = ema_series(closes, 20)
    ema60 = ema_series(closes, 60)
    line, signal, hist = macd_series(closes)
    rsi7 = rsi_series(closes, 7)
    rsi14 = rsi_series(closes, 14)

    return tuple(
        AnnotatedCandle(
            candle=c,
            ema5=_at(ema5, i),
            ema20=_at(ema20, i),
            ema60=_at(ema60, i),
            macd=_at(line, i),
            macd_signal=_at(signal, i),
            macd_hist=_at(hist, i),
            rsi7=_at(rsi7, i),
            rsi14=_at(rsi14, i),
        )
        for i, c in enumerate(candles)
    )
