"""OddsGame, ScoreboardGame, StandingEntry - sportsbook and league entities."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class MarketType(str, Enum):
    MONEYLINE = "moneyline"
    SPREAD = "spread"
    TOTAL = "total"


class GameState(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINAL = "final"


class OddsOutcome(BaseModel):
    label: str
    decimal_price: float = Field(..., gt=1.0)
    handicap: float | None = None  # spread points or total line


class OddsMarket(BaseModel):
    market_type: MarketType
    outcomes: list[OddsOutcome] = Field(default_factory=list)


class OddsGame(BaseModel):
    """Upcoming game with one market per bookmaker key."""

    id: str
    start_time: str
    home_team: str
    away_team: str
    sport_label: str = ""
    markets: dict[str, OddsMarket] = Field(default_factory=dict)


class TeamLine(BaseModel):
    name: str = ""
    abbreviation: str = ""
    logo_url: str = ""
    score: int = 0
    record: str | None = None


class ScoreboardGame(BaseModel):
    id: str
    start_time: str = ""
    state: GameState = GameState.SCHEDULED
    home_team: TeamLine = Field(default_factory=TeamLine)
    away_team: TeamLine = Field(default_factory=TeamLine)
    clock_display: str | None = None  # only set while live
    league: str = ""
    venue: str | None = None


class StandingEntry(BaseModel):
    """Rank is order of appearance in the source response, never recomputed."""

    rank: int = Field(..., ge=1)
    team: str
    abbreviation: str = ""
    logo_url: str = ""
    wins: int = 0
    losses: int = 0
    ties: int | None = None
    win_percent: float = 0.0

    @property
    def win_percent_display(self) -> str:
        return f"{self.win_percent:.3f}"
