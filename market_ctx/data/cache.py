from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Hashable, Optional, Tuple


@dataclass
class CacheItem:
    value: Any
    expires_at: float


class TTLCache:
    """
    In-memory TTL cache for fetched candles / market context.
    Also keeps a small non-expiring store for rolling samples (e.g. open interest observations).
    Nothing here survives a process restart.
    """
    def __init__(self) -> None:
        self._store: Dict[Tuple[str, ...], CacheItem] = {}
        self._persist: Dict[Hashable, Any] = {}

    def get(self, key: Tuple[str, ...]) -> Optional[Any]:
        item = self._store.get(key)
        if not item:
            return None
        if time.time() >= item.expires_at:
            self._store.pop(key, None)
            return None
        return item.value

    def set(self, key: Tuple[str, ...], value: Any, ttl_sec: float) -> None:
        if ttl_sec <= 0:
            return
        self._store[key] = CacheItem(value=value, expires_at=time.time() + ttl_sec)

    def get_or_create_deque(self, key: Hashable, maxlen: int) -> Deque[Any]:
        d = self._persist.get(key)
        if d is None or d.maxlen != maxlen:
            d = deque(d or (), maxlen=maxlen)
            self._persist[key] = d
        return d

    def clear(self) -> None:
        self._store.clear()
        self._persist.clear()
