"""Display formatting for panels and CLI output."""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from trendboard.models import OddsGame


def format_decimal_odds(price: float) -> str:
    """Two decimals, fixed point on the exact binary value, halves away from zero.

    1.8734 -> "1.87"; 1.125 (exactly representable) -> "1.13".
    """
    return str(Decimal(price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_handicap(point: float | None) -> str:
    if point is None:
        return ""
    return f"+{point:g}" if point > 0 else f"{point:g}"


def game_odds(game: OddsGame, bookmaker: str) -> tuple[str, str]:
    """(first, second) outcome prices for a bookmaker, '-' when unavailable."""
    market = game.markets.get(bookmaker)
    if market is None or len(market.outcomes) < 2:
        return "-", "-"
    first, second = market.outcomes[0], market.outcomes[1]
    return format_decimal_odds(first.decimal_price), format_decimal_odds(second.decimal_price)


def format_countdown(seconds: int) -> str:
    """Seconds -> M:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_compact(n: float) -> str:
    """1234 -> 1.2K, 3400000 -> 3.4M."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:.0f}"


def format_volume(n: float) -> str:
    return f"${format_compact(n)}"


def format_percent(p: int) -> str:
    return f"{p}%"


def format_win_percent(p: float) -> str:
    return f"{p:.3f}"


def format_time(iso: str) -> str:
    """ISO timestamp -> 'Sat Oct 18 7:30 PM'; unparseable input is returned as-is."""
    if not iso:
        return ""
    try:
        dt = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    except ValueError:
        return iso
    hour = dt.hour % 12 or 12
    return f"{dt:%a %b} {dt.day} {hour}:{dt:%M} {'AM' if dt.hour < 12 else 'PM'}"
