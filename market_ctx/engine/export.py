from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Dict

from market_ctx.data.models import IndicatorSeries, MarketSnapshot, TimeframeContext


def dataclass_to_json_safe(obj: Any) -> Any:
    """
    Convert dataclasses (including nested) into JSON-safe structures.
    - str/int/float/bool/None unchanged
    - dict/list/tuple recursively
    - IndicatorSeries keyed by display name ("EMA-20", "RSI-14", ...)
    - anything else -> str()
    """
    if obj is None:
        return None
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [dataclass_to_json_safe(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): dataclass_to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, IndicatorSeries):
        return {k: list(v) for k, v in obj.as_dict().items()}
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: dataclass_to_json_safe(getattr(obj, f.name)) for f in fields(obj)}
    return str(obj)


def snapshot_to_dict(snapshot: MarketSnapshot) -> Dict[str, Any]:
    return dataclass_to_json_safe(snapshot)


def _tf_brief(ctx: TimeframeContext) -> str:
    return f"{ctx.timeframe}:n={ctx.candle_count},ema20={ctx.ema20:.4f},rsi14={ctx.rsi14:.2f},atr14={ctx.atr14:.4f}"


def summary(snapshot: MarketSnapshot) -> Dict[str, Any]:
    """Compact, log-friendly summary."""
    return {
        "symbol": snapshot.symbol,
        "price": snapshot.current_price,
        "chg_1h_pct": round(snapshot.price_change_1h, 4),
        "chg_4h_pct": round(snapshot.price_change_4h, 4),
        "ema20": snapshot.current_ema20,
        "macd": snapshot.current_macd,
        "rsi7": snapshot.current_rsi7,
        "oi_latest": snapshot.open_interest.latest,
        "oi_avg": snapshot.open_interest.average,
        "funding": snapshot.funding_rate,
        "intraday": _tf_brief(snapshot.intraday),
        "medium": _tf_brief(snapshot.medium_term),
        "long": _tf_brief(snapshot.long_term),
    }
