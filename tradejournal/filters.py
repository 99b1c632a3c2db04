"""
filters.py
----------
TradeFilter reduces a trade collection to the subset matching a
FilterCriteria.

Contract
--------
* Every active criterion is an independent predicate; they are AND-ed.
* ``None`` (or an empty date range) is a no-op for that dimension.
* Output keeps input order and is always a new list.
* Unrecognised values (e.g. ``strategy_type="paper"``) are no-ops, not errors.

Strategy type
-------------
There is no dedicated field.  Mode is carried by tags:

    live      ⇒ trade.tags contains "account"
    backtest  ⇒ trade.tags contains "backtest"

A trade tagged with both matches both modes; a trade with neither matches
neither.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

from tradejournal.models import (
    BACKTEST_TAG,
    LIVE_TAG,
    FilterCriteria,
    Session,
    StrategyType,
    Trade,
)
from tradejournal.normalizer import TradeNormalizer

Predicate = Callable[[Trade], bool]


class TradeFilter:
    """Stateless filter pipeline."""

    @staticmethod
    def apply(trades: list[Trade], criteria: Optional[FilterCriteria] = None) -> list[Trade]:
        """Return the trades matching every active criterion, in input order."""
        if criteria is None:
            return list(trades)
        predicates = TradeFilter.predicates(criteria)
        return [t for t in trades if all(p(t) for p in predicates)]

    @staticmethod
    def clear(criteria: FilterCriteria) -> FilterCriteria:
        """Reset every criterion except the strategy scope."""
        return FilterCriteria(strategy=criteria.strategy, strategy_type=criteria.strategy_type)

    @staticmethod
    def with_filter(criteria: FilterCriteria, **changes) -> FilterCriteria:
        return replace(criteria, **changes)

    # ---------------------------------------------------------------------------
    # Predicate construction
    # ---------------------------------------------------------------------------

    @staticmethod
    def predicates(criteria: FilterCriteria) -> list[Predicate]:
        """Build the list of active predicates for *criteria*."""
        c = criteria
        preds: list[Predicate] = []

        mode = TradeFilter._strategy_type(c.strategy_type)
        if mode is StrategyType.LIVE:
            preds.append(lambda t: LIVE_TAG in t.tags)
        elif mode is StrategyType.BACKTEST:
            preds.append(lambda t: BACKTEST_TAG in t.tags)

        if c.strategy:
            preds.append(lambda t: t.strategy_id == c.strategy)

        session = TradeFilter._session(c.session)
        if session is not None:
            preds.append(lambda t: t.session is session)

        if c.entry_type:
            preds.append(lambda t: t.entry_type == c.entry_type)

        if c.ob_type:
            preds.append(lambda t: t.ob_type == c.ob_type)

        if c.timeframe:
            preds.append(
                lambda t: c.timeframe in (t.entry_timeframe, t.htf_timeframe, t.timeframe)
            )

        if c.direction:
            wanted = TradeNormalizer.normalize_direction(c.direction)
            if wanted is not None:
                preds.append(lambda t: t.direction is wanted)

        start, end = TradeFilter._date_bounds(c.date_range)
        if start is not None or end is not None:
            preds.append(lambda t: TradeFilter._in_range(t, start, end))

        if c.pair:
            preds.append(lambda t: t.symbol == c.pair)

        if c.account_id:
            preds.append(lambda t: t.account_id == c.account_id)

        if c.tag:
            preds.append(lambda t: c.tag in t.tags)

        return preds

    # ---------------------------------------------------------------------------
    # Private helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _strategy_type(value) -> Optional[StrategyType]:
        if isinstance(value, StrategyType):
            return value
        if isinstance(value, str):
            try:
                return StrategyType(value.strip().lower())
            except ValueError:
                return None
        return None

    @staticmethod
    def _session(value) -> Optional[Session]:
        if isinstance(value, Session):
            return value
        if isinstance(value, str):
            for session in Session:
                if value == session.value or value.upper() == session.name:
                    return session
        return None

    @staticmethod
    def _date_bounds(date_range):
        if not date_range:
            return None, None
        start, end = (tuple(date_range) + (None, None))[:2]
        return TradeNormalizer.to_utc(start), TradeNormalizer.to_utc(end)

    @staticmethod
    def _in_range(trade: Trade, start, end) -> bool:
        entry = TradeNormalizer.to_utc(trade.entry_date)
        if entry is None:
            return False
        if start is not None and entry < start:
            return False
        if end is not None and entry > end:
            return False
        return True
