"""MarketEvent, MarketOutcome, PricePoint, MarketTag - prediction market entities."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field

MAX_OPTIONS = 6


def to_percent(price: float) -> int:
    """Probability -> whole percent, halves rounded up (0.125 -> 13)."""
    return int(math.floor(price * 100 + 0.5))


class MarketOutcome(BaseModel):
    """One outcome; each price is an independent order-book quote."""

    label: str
    price_probability: float = Field(0.0, ge=0, le=1)
    token_id: str = ""


class PricePoint(BaseModel):
    timestamp: int  # unix seconds
    probability: float = Field(..., ge=0, le=1)


class MarketTag(BaseModel):
    """Category used to scope the events query."""

    id: str
    label: str
    slug: str
    is_special: bool = False
    group_id: str | None = None
    group_label: str | None = None


class MarketEvent(BaseModel):
    """Event grouping one or more markets.

    outcomes are the primary market's outcomes (Yes/No for a binary market).
    options holds one entry per sub-market for multi-outcome events, labelled by
    the sub-market's group title and priced at its first outcome.
    """

    id: str
    title: str
    slug: str = ""
    image_url: str | None = None
    volume_total: float = 0.0
    volume_24h: float = 0.0
    outcomes: list[MarketOutcome] = Field(default_factory=list)
    options: list[MarketOutcome] = Field(default_factory=list)

    @property
    def is_binary(self) -> bool:
        return len(self.options) <= 1 and len(self.outcomes) == 2

    @property
    def yes_percent(self) -> int:
        return to_percent(self.outcomes[0].price_probability) if self.outcomes else 0

    @property
    def no_percent(self) -> int:
        return to_percent(self.outcomes[1].price_probability) if len(self.outcomes) > 1 else 0

    @property
    def primary_token_id(self) -> str:
        return self.outcomes[0].token_id if self.outcomes else ""

    def get_all_options(self) -> list[MarketOutcome]:
        """Options by descending probability, at most MAX_OPTIONS; first is the leader."""
        pool = self.options if len(self.options) > 1 else self.outcomes
        ranked = sorted(pool, key=lambda o: o.price_probability, reverse=True)
        return ranked[:MAX_OPTIONS]

    @property
    def leading_option(self) -> MarketOutcome | None:
        options = self.get_all_options()
        return options[0] if options else None
