"""Trade journal analytics: R-multiple stats, drawdowns, ratios and projections."""

from tradejournal.models import (
    Account,
    Direction,
    FilterCriteria,
    JournalParams,
    JournalReport,
    Outcome,
    Session,
    StrategyType,
    Trade,
)
from tradejournal.runner import JournalRunner

__all__ = [
    "Account",
    "Direction",
    "FilterCriteria",
    "JournalParams",
    "JournalReport",
    "JournalRunner",
    "Outcome",
    "Session",
    "StrategyType",
    "Trade",
]
