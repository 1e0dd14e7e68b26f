from __future__ import annotations

DEFAULT_QUOTE = "USDT"


def normalize(symbol: str, quote: str = DEFAULT_QUOTE) -> str:
    """Uppercase the symbol and make sure it is quoted in `quote` (e.g. "btc" -> "BTCUSDT")."""
    symbol = symbol.upper()
    quote = quote.upper()
    if symbol.endswith(quote):
        return symbol
    return symbol + quote
