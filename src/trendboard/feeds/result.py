"""FeedResult - the data-shaped outcome of every adapter call."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class FeedStatus(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"
    STALE = "stale"
    EMPTY = "empty"
    NEEDS_CONFIGURATION = "needs_configuration"
    RATE_LIMITED = "rate_limited"


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"
    BYPASS = "BYPASS"


@dataclass
class FeedResult(Generic[T]):
    """Items plus how they were obtained. An empty OK/EMPTY list is ambiguous on purpose."""

    items: list[T] = field(default_factory=list)
    status: FeedStatus = FeedStatus.OK
    cache: CacheStatus = CacheStatus.MISS
    fetched_at_millis: int | None = None
    message: str | None = None

    @property
    def needs_configuration(self) -> bool:
        return self.status is FeedStatus.NEEDS_CONFIGURATION

    @property
    def rate_limited(self) -> bool:
        return self.status is FeedStatus.RATE_LIMITED

    def __len__(self) -> int:
        return len(self.items)

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "cache": self.cache.value,
            "fetched_at": self.fetched_at_millis,
            "message": self.message,
            "items": [_dump(i) for i in self.items],
        }


def _dump(item: Any) -> Any:
    dump = getattr(item, "model_dump", None)
    return dump(mode="json") if dump is not None else item
