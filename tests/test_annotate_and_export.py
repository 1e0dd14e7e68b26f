import json

from conftest import make_candles, wave

from market_ctx.engine.assembler import build_snapshot
from market_ctx.engine.export import dataclass_to_json_safe, snapshot_to_dict, summary
from market_ctx.indicators.annotate import annotate_candles
from market_ctx.indicators.core import closes_of, ema_series, rsi_series


def test_annotate_candles_fills_named_fields():
    candles = make_candles(wave(80))
    annotated = annotate_candles(candles)
    closes = closes_of(candles)

    assert len(annotated) == 80
    assert annotated[-1].candle == candles[-1]
    assert annotated[-1].ema20 == ema_series(closes, 20)[-1]
    assert annotated[-1].ema60 == ema_series(closes, 60)[-1]
    assert annotated[-1].rsi14 == rsi_series(closes, 14)[-1]
    # warm-up
    assert annotated[10].ema20 == 0.0
    assert annotated[58].ema60 == 0.0
    assert annotated[59].ema60 != 0.0


def test_annotate_short_series():
    annotated = annotate_candles(make_candles([1.0, 2.0, 3.0]))
    assert len(annotated) == 3
    assert all(a.macd == 0.0 and a.rsi7 == 0.0 and a.ema5 == 0.0 for a in annotated)


def test_snapshot_to_dict_is_json_serializable():
    short = make_candles(wave(120))
    snap = build_snapshot("BTCUSDT", short, short, short, now_ts=1)
    d = snapshot_to_dict(snap)

    json.dumps(d)
    assert d["symbol"] == "BTCUSDT"
    assert d["open_interest"] == {"latest": 0.0, "average": 0.0}
    assert len(d["intraday"]["series"]["EMA-20"]) == 10
    assert d["long_term"]["series"]["EMA-20"] == []
    assert d["intraday"]["series"]["close"][-1] == short[-1].c


def test_summary_fields():
    short = make_candles(wave(60))
    s = summary(build_snapshot("ETHUSDT", short, short, short))
    assert s["symbol"] == "ETHUSDT"
    assert s["intraday"].startswith("5m:n=60")
    assert s["funding"] == 0.0


def test_json_safe_handles_nested_containers():
    out = dataclass_to_json_safe({"a": (1, 2), 3: [None, {"b": 1.5}]})
    assert out == {"a": [1, 2], "3": [None, {"b": 1.5}]}
