"""CacheEntry - one cached normalized payload."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """Normalized payload plus the wall-clock ms it was fetched at."""

    payload: list[Any] = Field(default_factory=list)
    fetched_at_millis: int
