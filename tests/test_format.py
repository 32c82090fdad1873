"""Display formatting."""

from trendboard.display.format import (
    format_compact,
    format_countdown,
    format_decimal_odds,
    format_handicap,
    format_percent,
    format_time,
    format_volume,
    format_win_percent,
    game_odds,
)
from trendboard.models import MarketType, OddsGame, OddsMarket, OddsOutcome


def test_decimal_odds_two_places():
    assert format_decimal_odds(1.8734) == "1.87"
    assert format_decimal_odds(2.0) == "2.00"
    assert format_decimal_odds(1.876) == "1.88"


def test_decimal_odds_ties_follow_exact_binary_value():
    # 1.125 is exact in binary, so the half rounds away from zero
    assert format_decimal_odds(1.125) == "1.13"
    # 1.005 is stored just below the half
    assert format_decimal_odds(1.005) == "1.00"


def test_countdown():
    assert format_countdown(300) == "5:00"
    assert format_countdown(61) == "1:01"
    assert format_countdown(1) == "0:01"
    assert format_countdown(-3) == "0:00"


def test_compact_and_volume():
    assert format_compact(999) == "999"
    assert format_compact(1234) == "1.2K"
    assert format_compact(3_400_000) == "3.4M"
    assert format_volume(1_500) == "$1.5K"


def test_percent_and_win_percent():
    assert format_percent(73) == "73%"
    assert format_win_percent(0.6) == "0.600"


def test_handicap():
    assert format_handicap(3.5) == "+3.5"
    assert format_handicap(-3.5) == "-3.5"
    assert format_handicap(None) == ""


def test_game_odds_per_bookmaker():
    game = OddsGame(
        id="g1",
        start_time="2025-10-18T19:30:00Z",
        home_team="Chiefs",
        away_team="Ravens",
        markets={
            "fanduel": OddsMarket(
                market_type=MarketType.MONEYLINE,
                outcomes=[OddsOutcome(label="Chiefs", decimal_price=1.8734), OddsOutcome(label="Ravens", decimal_price=2.1)],
            )
        },
    )
    assert game_odds(game, "fanduel") == ("1.87", "2.10")
    assert game_odds(game, "draftkings") == ("-", "-")


def test_format_time():
    assert format_time("2025-10-18T19:30:00Z") == "Sat Oct 18 7:30 PM"
    assert format_time("not a date") == "not a date"
    assert format_time("") == ""
