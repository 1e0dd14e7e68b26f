from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Candle:
    ts: int          # epoch seconds (open time)
    o: float
    h: float
    l: float
    c: float
    v: float


@dataclass(frozen=True)
class OpenInterest:
    latest: float
    average: float


@dataclass(frozen=True)
class MarketContext:
    """
    Whatever the market-context collaborator managed to supply.
    None on a field means that call failed; the assembler substitutes defaults.
    """
    open_interest: Optional[OpenInterest] = None
    funding_rate: Optional[float] = None


# Display names used by reports / downstream consumers.
SERIES_LABELS: Dict[str, str] = {
    "closes": "close",
    "ema5": "EMA-5",
    "ema20": "EMA-20",
    "ema50": "EMA-50",
    "macd": "MACD",
    "macd_signal": "MACD-signal",
    "macd_hist": "MACD-hist",
    "rsi7": "RSI-7",
    "rsi14": "RSI-14",
    "adx7": "ADX-7",
    "adx14": "ADX-14",
    "atr3": "ATR-3",
    "atr14": "ATR-14",
}


@dataclass(frozen=True)
class IndicatorSeries:
    """
    Aligned indicator sequences for one timeframe.
    Non-empty fields line up index-for-index with the source candles (warm-up slots are 0.0).
    Empty fields were either not computed for this timeframe or had too little data.
    """
    closes: Tuple[float, ...] = ()
    ema5: Tuple[float, ...] = ()
    ema20: Tuple[float, ...] = ()
    ema50: Tuple[float, ...] = ()
    macd: Tuple[float, ...] = ()
    macd_signal: Tuple[float, ...] = ()
    macd_hist: Tuple[float, ...] = ()
    rsi7: Tuple[float, ...] = ()
    rsi14: Tuple[float, ...] = ()
    adx7: Tuple[float, ...] = ()
    adx14: Tuple[float, ...] = ()
    atr3: Tuple[float, ...] = ()
    atr14: Tuple[float, ...] = ()

    def tail(self, k: int) -> "IndicatorSeries":
        if k <= 0:
            return IndicatorSeries()
        return IndicatorSeries(**{f.name: tuple(getattr(self, f.name)[-k:]) for f in fields(self)})

    def as_dict(self) -> Dict[str, Tuple[float, ...]]:
        return {SERIES_LABELS[f.name]: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class TimeframeContext:
    timeframe: str
    candle_count: int
    ema5: float
    ema20: float
    ema50: float
    macd: float
    rsi7: float
    rsi14: float
    atr3: float
    atr14: float
    current_volume: float
    average_volume: float
    series: IndicatorSeries = field(default_factory=IndicatorSeries)


@dataclass(frozen=True)
class MarketSnapshot:
    symbol: str
    current_price: float
    price_change_1h: float
    price_change_4h: float

    # Headline values of the intraday timeframe
    current_ema20: float
    current_macd: float
    current_rsi7: float

    intraday: TimeframeContext
    medium_term: TimeframeContext
    long_term: TimeframeContext

    open_interest: OpenInterest
    funding_rate: float

    last_updated_ts: Optional[int] = None
