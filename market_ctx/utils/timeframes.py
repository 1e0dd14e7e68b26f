from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class TF:
    name: str
    seconds: int


TF_5M = TF("5m", 5 * 60)
TF_30M = TF("30m", 30 * 60)
TF_4H = TF("4h", 4 * 60 * 60)

_UNIT_SECONDS: Dict[str, int] = {"m": 60, "h": 60 * 60, "d": 24 * 60 * 60, "w": 7 * 24 * 60 * 60}


def parse_tf(name: str) -> TF:
    """Parse an exchange interval string like "5m" / "4h" / "1d"."""
    name = name.strip()
    if len(name) < 2 or name[-1] not in _UNIT_SECONDS:
        raise ValueError(f"Unsupported timeframe: {name!r}")
    try:
        n = int(name[:-1])
    except ValueError:
        raise ValueError(f"Unsupported timeframe: {name!r}") from None
    if n <= 0:
        raise ValueError(f"Unsupported timeframe: {name!r}")
    return TF(name, n * _UNIT_SECONDS[name[-1]])
