from __future__ import annotations

import logging
from collections import Counter
from typing import List, Sequence

from .models import Trade
from .schemas import RiskProfile, TraderProfile
from .trades import UNKNOWN_SYMBOL, UNKNOWN_VENUE

logger = logging.getLogger(__name__)

WEEK_MS = 7 * 24 * 60 * 60 * 1000
_SYMBOL_SENTINELS = {"", UNKNOWN_SYMBOL, "undefined"}


def _known_venues(trades: Sequence[Trade]) -> List[str]:
    return [t.dex for t in trades if t.dex and t.dex != UNKNOWN_VENUE]


def most_frequent(values: Sequence[str]) -> str:
    """Most common value; ties go to the value seen first."""
    if not values:
        return ""
    counts = Counter(values)
    return max(counts, key=lambda value: counts[value])


def trade_intervals(trades: Sequence[Trade]) -> List[int]:
    """Positive deltas (ms) between chronologically adjacent trades."""
    timed = sorted(
        (t.timestamp for t in trades if t.timestamp is not None),
    )
    deltas = [later - earlier for earlier, later in zip(timed, timed[1:])]
    return [delta for delta in deltas if delta > 0]


def classify_risk_profile(unique_token_count: int) -> RiskProfile:
    if unique_token_count > 10:
        return "high_risk"
    if unique_token_count > 5:
        return "medium_risk"
    return "conservative"


def analyze_trader_profile(trades: Sequence[Trade]) -> TraderProfile:
    symbols = {
        symbol
        for t in trades
        for symbol in (t.token_in.symbol, t.token_out.symbol)
        if symbol not in _SYMBOL_SENTINELS
    }
    venues = _known_venues(trades)
    intervals = trade_intervals(trades)
    avg_interval = sum(intervals) / len(intervals) if intervals else 0.0

    profile = TraderProfile(
        total_trades=len(trades),
        unique_dex_count=len(set(venues)),
        unique_token_count=len(symbols),
        preferred_dex=most_frequent(venues),
        avg_time_between_trades=avg_interval,
        trading_frequency=len(trades) / WEEK_MS,
        risk_profile=classify_risk_profile(len(symbols)),
    )
    logger.debug(
        "Trader profile computed",
        extra={
            "extra": {
                "total_trades": profile.total_trades,
                "unique_tokens": sorted(symbols),
                "unique_dexes": sorted(set(venues)),
                "intervals": len(intervals),
            }
        },
    )
    return profile
