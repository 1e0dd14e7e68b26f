from __future__ import annotations

import argparse
import json
import time
from typing import List, Optional

from market_ctx.config import AppConfig
from market_ctx.data.cache import TTLCache
from market_ctx.data.derivatives_fetcher import DerivativesFetcher
from market_ctx.data.market_fetcher import MarketFetcher
from market_ctx.engine.assembler import CandleFetchError, SnapshotAssembler
from market_ctx.engine.export import dataclass_to_json_safe, snapshot_to_dict, summary
from market_ctx.exchange.binance_futures import BinanceFuturesClient
from market_ctx.indicators.annotate import annotate_candles
from market_ctx.utils.logger import setup_logger
from market_ctx.utils.symbols import normalize


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="market-ctx", description="Multi-timeframe indicator snapshots for perp futures.")
    p.add_argument("--symbol", action="append", dest="symbols", help="symbol to scan (repeatable); defaults to $SYMBOLS")
    p.add_argument("--once", action="store_true", help="build one round of snapshots and exit")
    p.add_argument("--json", action="store_true", help="print each snapshot as JSON")
    p.add_argument("--annotate", metavar="INTERVAL", help="print per-candle indicators for INTERVAL and exit")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    log = setup_logger()
    cfg = AppConfig.load()
    symbols = [normalize(s, cfg.quote_asset) for s in (args.symbols or cfg.symbols)]

    client = BinanceFuturesClient(cfg)
    if not client.ping():
        log.warning("Exchange %s did not answer ping; continuing anyway", client.name)

    cache = TTLCache()
    market = MarketFetcher(client, cache)
    deriv = DerivativesFetcher(client, cache, hist_period=cfg.oi_hist_period, hist_limit=cfg.oi_hist_limit)
    assembler = SnapshotAssembler(market, deriv, cfg)

    if args.annotate:
        for sym in symbols:
            candles = market.get_candles(sym, args.annotate, limit=cfg.candle_limit)
            print(json.dumps(dataclass_to_json_safe(annotate_candles(candles))))
        return

    while True:
        for sym in symbols:
            try:
                snap = assembler.build(sym)
            except CandleFetchError as e:
                log.error("SKIP %s | tf=%s | %s", e.symbol, e.timeframe, e)
                continue
            except Exception as e:
                log.exception("Snapshot error for %s: %s", sym, e)
                continue

            log.info("SNAPSHOT %s", " | ".join(f"{k}={v}" for k, v in summary(snap).items()))
            if args.json:
                print(json.dumps(snapshot_to_dict(snap)))

        if args.once:
            return
        time.sleep(cfg.scan_interval_sec)


if __name__ == "__main__":
    main()
