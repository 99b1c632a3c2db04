"""
normalizer.py
-------------
TradeNormalizer guarantees that every trade entering the analytics layer has
a well-formed ``direction``, ``r_multiple``, ``session`` and UTC-aware
timestamps.  It also owns the win / break-even / loss classification.

Win rule
--------
Price comparison is ground truth for *whether* a trade won:

    long   win  iff  exit_price > entry_price
    short  win  iff  exit_price < entry_price

Only when the direction (or a price) is unavailable does it fall back to
``r_multiple > 0``.  A partially-closed trade can therefore be R-positive and
still count as a loss.  ``r_multiple`` stays ground truth for magnitude.

Break-even is ``r_multiple == 0`` exactly; there is no tolerance band.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

import pytz

from tradejournal.models import Direction, Outcome, Session, Trade
from tradejournal.session import SessionClassifier

_DIRECTION_ALIASES = {
    "long": Direction.LONG,
    "buy": Direction.LONG,
    "short": Direction.SHORT,
    "sell": Direction.SHORT,
}


class TradeNormalizer:
    """Stateless normalisation + classification helpers."""

    # ---------------------------------------------------------------------------
    # R-multiple
    # ---------------------------------------------------------------------------

    @staticmethod
    def compute_r_multiple(
        entry: Optional[float],
        exit_: Optional[float],
        sl: Optional[float],
        direction: Optional[Direction],
    ) -> float:
        """Reward over risk, where risk is the entry-to-stop distance.

        Returns 0 when the risk is undefined (no stop, stop at entry, or a
        missing price).  No clamping: values may be negative or very large.
        """
        if entry is None or exit_ is None or sl is None or direction is None:
            return 0.0
        risk = abs(entry - sl)
        if risk <= 0:
            return 0.0
        reward = exit_ - entry if direction is Direction.LONG else entry - exit_
        return reward / risk

    @staticmethod
    def risk_reward_label(trade: Trade) -> str:
        """``"1:X.XX"`` reward-to-risk label, ``"1:0"`` when undefined."""
        if None in (trade.entry_price, trade.exit_price, trade.sl_price):
            return "1:0"
        risk = abs(trade.entry_price - trade.sl_price)
        if risk <= 0:
            return "1:0"
        reward = abs(trade.exit_price - trade.entry_price)
        return f"1:{reward / risk:.2f}"

    @staticmethod
    def trade_profit(trade: Trade) -> float:
        """Currency P&L: explicit ``profit`` first, else risk amount × R."""
        if trade.profit is not None:
            return trade.profit
        if trade.risk_amount is not None:
            return trade.risk_amount * trade.r_multiple
        return 0.0

    # ---------------------------------------------------------------------------
    # Classification
    # ---------------------------------------------------------------------------

    @staticmethod
    def is_win(trade: Trade) -> bool:
        if (
            trade.direction is not None
            and trade.entry_price is not None
            and trade.exit_price is not None
        ):
            if trade.direction is Direction.LONG:
                return trade.exit_price > trade.entry_price
            return trade.exit_price < trade.entry_price
        return trade.r_multiple > 0

    @staticmethod
    def is_break_even(trade: Trade) -> bool:
        return trade.r_multiple == 0

    @staticmethod
    def classify(trade: Trade) -> Outcome:
        """WIN, else BREAK_EVEN, else LOSS.  Partitions any trade set."""
        if TradeNormalizer.is_win(trade):
            return Outcome.WIN
        if TradeNormalizer.is_break_even(trade):
            return Outcome.BREAK_EVEN
        return Outcome.LOSS

    # ---------------------------------------------------------------------------
    # Normalisation
    # ---------------------------------------------------------------------------

    @staticmethod
    def normalize_direction(value: Any) -> Optional[Direction]:
        """Accept a Direction or a case-insensitive long/short/buy/sell string."""
        if isinstance(value, Direction):
            return value
        if isinstance(value, str):
            return _DIRECTION_ALIASES.get(value.strip().lower())
        return None

    @staticmethod
    def to_utc(value: Optional[datetime]) -> Optional[datetime]:
        """Make *value* timezone-aware UTC.  Naive timestamps are assumed UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            return pytz.utc.localize(value)
        return value.astimezone(pytz.utc)

    @staticmethod
    def normalize(trade: Trade, session_override: Optional[Session] = None) -> Trade:
        """Return a normalised copy of *trade*.  The input is never modified.

        * ``direction`` is coerced to :class:`Direction` (or None).
        * Dates become UTC-aware.
        * ``r_multiple`` is recomputed when entry, exit and stop are all
          present.  A priced trade with no stop, or a stop equal to the
          entry, gets 0.  A trade with no prices at all keeps its stored
          value (journals imported as R only).
        * ``session`` is re-derived from entry time + timezone on every
          pass.  It is kept only when *session_override* is given (which
          marks the trade ``session_overridden``) or the trade was already
          marked that way.
        """
        direction = TradeNormalizer.normalize_direction(trade.direction)

        prices = (trade.entry_price, trade.exit_price, trade.sl_price)
        if None not in prices and direction is not None:
            r_multiple = TradeNormalizer.compute_r_multiple(
                trade.entry_price, trade.exit_price, trade.sl_price, direction
            )
        elif trade.entry_price is not None and (
            trade.sl_price is None or trade.sl_price == trade.entry_price
        ):
            r_multiple = 0.0
        else:
            r_multiple = float(trade.r_multiple or 0.0)

        if session_override is not None:
            session, overridden = session_override, True
        elif trade.session_overridden and isinstance(trade.session, Session):
            session, overridden = trade.session, True
        else:
            session = SessionClassifier.classify(
                trade.entry_time, trade.entry_timezone or "UTC"
            )
            overridden = False

        return replace(
            trade,
            direction=direction,
            r_multiple=r_multiple,
            session=session,
            session_overridden=overridden,
            entry_date=TradeNormalizer.to_utc(trade.entry_date),
            exit_date=TradeNormalizer.to_utc(trade.exit_date),
            tags=frozenset(trade.tags or ()),
            behavioral_tags=frozenset(trade.behavioral_tags or ()),
        )

    @staticmethod
    def normalize_all(trades: list[Trade]) -> list[Trade]:
        return [TradeNormalizer.normalize(t) for t in trades]

    @staticmethod
    def active(trades: list[Trade]) -> list[Trade]:
        """Drop placeholder trades, which never count toward any statistic."""
        return [t for t in trades if not t.is_placeholder]
