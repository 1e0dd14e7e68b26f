"""
Technical indicators over plain price lists / candle lists.

Scalar forms return 0.0 when the series is too short for the period.
Vector forms return a list aligned with the input (warm-up slots are 0.0),
or an empty list when the series never leaves warm-up.
RSI / ATR / ADX use Wilder smoothing: avg = (prev_avg * (n - 1) + x) / n.
"""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from market_ctx.data.models import Candle


def closes_of(candles: Sequence[Candle]) -> List[float]:
    return [float(c.c) for c in candles]


# --- EMA / MACD -------------------------------------------------------------

def ema_series(values: Sequence[float], period: int) -> List[float]:
    n = len(values)
    if period <= 0 or n < period:
        return []

    out = [0.0] * n
    # SMA of the first window seeds the EMA
    ema = math.fsum(values[:period]) / period
    out[period - 1] = ema

    k = 2.0 / (period + 1)
    for i in range(period, n):
        ema = (values[i] - ema) * k + ema
        out[i] = ema
    return out


def ema(values: Sequence[float], period: int) -> float:
    series = ema_series(values, period)
    return series[-1] if series else 0.0


def macd(values: Sequence[float]) -> float:
    if len(values) < 26:
        return 0.0
    return ema(values, 12) - ema(values, 26)


def macd_series(
    values: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> Tuple[List[float], List[float], List[float]]:
    """
    Returns (macd, signal, hist), each aligned with `values`.
    The MACD line starts at index slow-1, signal/hist at slow+signal-2.
    """
    n = len(values)
    if n < slow:
        return [], [], []

    fast_ema = ema_series(values, fast)
    slow_ema = ema_series(values, slow)
    start = slow - 1

    line = [0.0] * n
    for i in range(start, n):
        line[i] = fast_ema[i] - slow_ema[i]

    sig_tail = ema_series(line[start:], signal)
    if not sig_tail:
        return line, [], []

    sig = [0.0] * start + sig_tail
    hist = [0.0] * n
    for i in range(start + signal - 1, n):
        hist[i] = line[i] - sig[i]
    return line, sig, hist


# --- RSI --------------------------------------------------------------------

def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def rsi_series(values: Sequence[float], period: int) -> List[float]:
    n = len(values)
    if period <= 0 or n <= period:
        return []

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = values[i] - values[i - 1]
        if change > 0:
            gains += change
        else:
            losses += -change

    avg_gain = gains / period
    avg_loss = losses / period

    out = [0.0] * n
    out[period] = _rsi_value(avg_gain, avg_loss)
    for i in range(period + 1, n):
        change = values[i] - values[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        out[i] = _rsi_value(avg_gain, avg_loss)
    return out


def rsi(values: Sequence[float], period: int) -> float:
    series = rsi_series(values, period)
    return series[-1] if series else 0.0


# --- ATR / ADX --------------------------------------------------------------

def true_ranges(candles: Sequence[Candle]) -> List[float]:
    """TR per bar; index 0 has no previous close and stays 0.0."""
    out = [0.0] * len(candles)
    for i in range(1, len(candles)):
        high = candles[i].h
        low = candles[i].l
        prev_close = candles[i - 1].c
        out[i] = max(high - low, abs(high - prev_close), abs(low - prev_close))
    return out


def atr_series(candles: Sequence[Candle], period: int) -> List[float]:
    n = len(candles)
    if period <= 0 or n <= period:
        return []

    trs = true_ranges(candles)
    atr_v = math.fsum(trs[1:period + 1]) / period

    out = [0.0] * n
    out[period] = atr_v
    for i in range(period + 1, n):
        atr_v = (atr_v * (period - 1) + trs[i]) / period
        out[i] = atr_v
    return out


def atr(candles: Sequence[Candle], period: int) -> float:
    series = atr_series(candles, period)
    return series[-1] if series else 0.0


def _dx(plus_dm: float, minus_dm: float) -> float:
    # +DI / -DI share the smoothed TR denominator, so it cancels out of DX
    total = plus_dm + minus_dm
    if total <= 0:
        return 0.0
    return 100.0 * abs(plus_dm - minus_dm) / total


def adx_series(candles: Sequence[Candle], period: int) -> List[float]:
    """
    Wilder ADX from high/low/close.
    First DX at index `period`, first ADX at index 2*period-1.
    """
    n = len(candles)
    if period <= 0 or n < 2 * period:
        return []

    plus_dm = [0.0] * n
    minus_dm = [0.0] * n
    for i in range(1, n):
        up = candles[i].h - candles[i - 1].h
        down = candles[i - 1].l - candles[i].l
        if up > down and up > 0:
            plus_dm[i] = up
        if down > up and down > 0:
            minus_dm[i] = down

    # Wilder running sums seeded with the first full window
    s_plus = math.fsum(plus_dm[1:period + 1])
    s_minus = math.fsum(minus_dm[1:period + 1])

    dx = [0.0] * n
    dx[period] = _dx(s_plus, s_minus)
    for i in range(period + 1, n):
        s_plus = s_plus - s_plus / period + plus_dm[i]
        s_minus = s_minus - s_minus / period + minus_dm[i]
        dx[i] = _dx(s_plus, s_minus)

    first = 2 * period - 1
    adx_v = math.fsum(dx[period:first + 1]) / period

    out = [0.0] * n
    out[first] = adx_v
    for i in range(first + 1, n):
        adx_v = (adx_v * (period - 1) + dx[i]) / period
        out[i] = adx_v
    return out


def adx(candles: Sequence[Candle], period: int) -> float:
    series = adx_series(candles, period)
    return series[-1] if series else 0.0


# --- helpers ----------------------------------------------------------------

def pct_change(current: float, past: float) -> float:
    if past == 0:
        return 0.0
    return (current - past) / past * 100.0
