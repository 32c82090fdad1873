"""Cache service: structured keys, the CacheStore protocol and an in-memory store.

The in-memory store lives exactly as long as the process that built it. When it
backs the proxy in a short-lived serverless context it is a best-effort
optimization with no durability across invocations.
"""

from __future__ import annotations

import json
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Protocol

from trendboard.models import CacheEntry


@dataclass(frozen=True)
class CacheKey:
    """(source, normalized params). Serialized deterministically so sources never collide."""

    source: str
    params: tuple[tuple[str, str], ...] = ()

    @classmethod
    def build(cls, source: str, params: dict[str, Any] | None = None) -> CacheKey:
        items = sorted(
            (str(k), _param_value(v)) for k, v in (params or {}).items() if v is not None
        )
        return cls(source=source, params=tuple(items))

    def serialize(self) -> str:
        return json.dumps([self.source, dict(self.params)], sort_keys=True, separators=(",", ":"))

    def __str__(self) -> str:
        return self.serialize()


def _param_value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (list, tuple)):
        return ",".join(str(x) for x in v)
    return str(v)


class CacheStore(Protocol):
    """Pluggable cache backend. Entries carry their own fetch time; freshness is the reader's call."""

    def get(self, key: CacheKey) -> CacheEntry | None: ...
    def set(self, key: CacheKey, entry: CacheEntry) -> None: ...
    def clear(self, source: str | None = None) -> int: ...


class MemoryCache:
    """Bounded in-process cache. Oldest written entry is evicted past max_entries."""

    def __init__(self, max_entries: int = 256) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()

    def get(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(key)

    def set(self, key: CacheKey, entry: CacheEntry) -> None:
        self._entries.pop(key, None)
        self._entries[key] = entry
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self, source: str | None = None) -> int:
        if source is None:
            n = len(self._entries)
            self._entries.clear()
            return n
        doomed = [k for k in self._entries if k.source == source]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)
