import logging

import pytest

from conftest import FakeCandleSource, FakeContextSource, make_candles, wave

from market_ctx.data.models import MarketContext, OpenInterest
from market_ctx.engine.assembler import CandleFetchError, SnapshotAssembler, build_snapshot


def _series():
    short = make_candles(wave(120))
    medium = make_candles(wave(100, base=200.0))
    long = make_candles(wave(60, base=300.0))
    return short, medium, long


def test_build_snapshot_price_changes():
    short, medium, long = _series()
    snap = build_snapshot("BTCUSDT", short, medium, long, now_ts=123)

    current = short[-1].c
    assert snap.current_price == current
    assert snap.price_change_1h == pytest.approx((current - short[-21].c) / short[-21].c * 100)
    assert snap.price_change_4h == pytest.approx((current - long[-2].c) / long[-2].c * 100)
    assert snap.last_updated_ts == 123


def test_build_snapshot_short_windows_give_zero_change():
    short = make_candles(wave(20))
    long = make_candles([300.0])
    snap = build_snapshot("BTCUSDT", short, short, long)
    assert snap.price_change_1h == 0.0
    assert snap.price_change_4h == 0.0


def test_build_snapshot_zero_reference_price():
    short = make_candles([0.0] + [10.0] * 20)
    long = make_candles([0.0, 10.0])
    snap = build_snapshot("BTCUSDT", short, short, long)
    assert snap.price_change_1h == 0.0
    assert snap.price_change_4h == 0.0


def test_build_snapshot_timeframe_contexts():
    short, medium, long = _series()
    snap = build_snapshot("BTCUSDT", short, medium, long, timeframes=("5m", "30m", "4h"))

    assert snap.intraday.timeframe == "5m"
    assert snap.medium_term.timeframe == "30m"
    assert snap.long_term.timeframe == "4h"
    assert len(snap.intraday.series.ema20) == 10
    assert snap.medium_term.series.ema20 == ()
    assert snap.current_ema20 == snap.intraday.ema20
    assert snap.current_macd == snap.intraday.macd
    assert snap.current_rsi7 == snap.intraday.rsi7


def test_build_snapshot_defaults_missing_context():
    short, medium, long = _series()
    snap = build_snapshot("BTCUSDT", short, medium, long, MarketContext())
    assert snap.open_interest == OpenInterest(latest=0.0, average=0.0)
    assert snap.funding_rate == 0.0


def test_build_snapshot_merges_context():
    short, medium, long = _series()
    ctx = MarketContext(open_interest=OpenInterest(latest=5.0, average=4.0), funding_rate=0.0001)
    snap = build_snapshot("BTCUSDT", short, medium, long, ctx, max_workers=1)
    assert snap.open_interest.latest == 5.0
    assert snap.open_interest.average == 4.0
    assert snap.funding_rate == 0.0001


def test_build_snapshot_leaves_inputs_untouched():
    short, medium, long = _series()
    before = list(short)
    build_snapshot("BTCUSDT", short, short, short)
    assert short == before


def _assembler(cfg, candles=None, context=None):
    short, medium, long = _series()
    candles = candles or FakeCandleSource({"5m": short, "30m": medium, "4h": long})
    context = context or FakeContextSource(OpenInterest(latest=10.0, average=9.5), 0.0002)
    return SnapshotAssembler(candles, context, cfg)


def test_assembler_normalizes_and_fetches_each_timeframe(cfg):
    source = FakeCandleSource({"5m": make_candles(wave(60)), "30m": make_candles(wave(60)), "4h": make_candles(wave(60))})
    snap = _assembler(cfg, candles=source).build("btc")
    assert snap.symbol == "BTCUSDT"
    assert [c[:2] for c in source.calls] == [("BTCUSDT", "5m"), ("BTCUSDT", "30m"), ("BTCUSDT", "4h")]
    assert all(c[2] == cfg.candle_limit for c in source.calls)
    assert snap.open_interest == OpenInterest(latest=10.0, average=9.5)
    assert snap.funding_rate == 0.0002


def test_assembler_tolerates_context_failures(cfg, caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("market_ctx"), "propagate", True)
    caplog.set_level(logging.WARNING, logger="market_ctx")
    snap = _assembler(cfg, context=FakeContextSource(fail=True)).build("ETH")

    assert snap is not None
    assert snap.open_interest == OpenInterest(latest=0.0, average=0.0)
    assert snap.funding_rate == 0.0
    assert "Open interest unavailable for ETHUSDT" in caplog.text
    assert "Funding rate unavailable for ETHUSDT" in caplog.text


def test_assembler_candle_failure_names_timeframe(cfg):
    source = FakeCandleSource(
        {"5m": make_candles(wave(60)), "4h": make_candles(wave(60))},
        fail={"30m": ConnectionError("timeout")},
    )
    with pytest.raises(CandleFetchError) as ei:
        _assembler(cfg, candles=source).build("sol")
    assert ei.value.timeframe == "30m"
    assert ei.value.symbol == "SOLUSDT"
    assert "30m" in str(ei.value)
    assert isinstance(ei.value.__cause__, ConnectionError)


def test_assembler_empty_candles_is_fatal(cfg):
    source = FakeCandleSource({"5m": make_candles(wave(60)), "30m": make_candles(wave(60)), "4h": []})
    with pytest.raises(CandleFetchError) as ei:
        _assembler(cfg, candles=source).build("BTCUSDT")
    assert ei.value.timeframe == "4h"
