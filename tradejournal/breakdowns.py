"""
breakdowns.py
-------------
BreakdownEngine slices a trade set along time, session, strategy and
instrument, and summarises trade-management outcomes (break-even and
take-profit behaviour).

Every bucket uses the same three-way classification as the aggregator
(win by price, else break-even by R == 0, else loss), so
``won + break_even + lost == total`` in every bucket.  Time-bucket rates are
rounded to whole percent; empty buckets are omitted.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime
from typing import Callable, Optional

import pandas as pd

from tradejournal.models import (
    BreakEvenOutcome,
    BucketStats,
    Outcome,
    Session,
    StrategyPerformance,
    TakeProfitHit,
    TakeProfitStats,
    Trade,
)
from tradejournal.normalizer import TradeNormalizer
from tradejournal.session import SessionClassifier

logger = logging.getLogger(__name__)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class BreakdownEngine:
    """Stateless breakdown calculator."""

    # ---------------------------------------------------------------------------
    # Time / session buckets
    # ---------------------------------------------------------------------------

    @staticmethod
    def by_hour(trades: list[Trade]) -> list[BucketStats]:
        """Win rates by entry hour (local ``entry_time`` first, else entry date)."""
        return BreakdownEngine._bucketise(
            trades, BreakdownEngine._entry_hour, [f"{h}:00" for h in range(24)]
        )

    @staticmethod
    def by_weekday(trades: list[Trade]) -> list[BucketStats]:
        return BreakdownEngine._bucketise(
            trades,
            lambda t: t.entry_date.weekday() if t.entry_date else None,
            WEEKDAYS,
        )

    @staticmethod
    def by_month(trades: list[Trade]) -> list[BucketStats]:
        """Win rates by calendar month, all years pooled."""
        return BreakdownEngine._bucketise(
            trades,
            lambda t: t.entry_date.month - 1 if t.entry_date else None,
            MONTHS,
        )

    @staticmethod
    def by_session(trades: list[Trade]) -> list[BucketStats]:
        """Counts and unrounded rates per session, in session order."""
        sessions = list(Session)
        return BreakdownEngine._bucketise(
            trades,
            lambda t: sessions.index(t.session) if isinstance(t.session, Session) else None,
            [s.value for s in sessions],
            round_rates=False,
        )

    # ---------------------------------------------------------------------------
    # Strategy / instrument
    # ---------------------------------------------------------------------------

    @staticmethod
    def strategy_performance(trades: list[Trade]) -> list[StrategyPerformance]:
        """One row per strategy, sorted by currency profit (highest first).

        Strategies seen only on placeholder trades still get a row with zero
        trades.  Trades without a strategy are not reported.
        """
        names = list(dict.fromkeys(t.strategy_id for t in trades if t.strategy_id))
        active = TradeNormalizer.active(trades)

        rows = []
        for name in names:
            group = [t for t in active if t.strategy_id == name]
            wins = sum(1 for t in group if TradeNormalizer.is_win(t))
            dates = [TradeNormalizer.to_utc(t.entry_date) for t in group if t.entry_date]
            rows.append(
                StrategyPerformance(
                    name=name,
                    win_rate=wins / len(group) * 100 if group else 0.0,
                    total_r=sum(t.r_multiple for t in group),
                    profit=sum(TradeNormalizer.trade_profit(t) for t in group),
                    trades_count=len(group),
                    last_trade_date=max(dates) if dates else None,
                )
            )
        return sorted(rows, key=lambda r: r.profit, reverse=True)

    @staticmethod
    def most_traded_pairs(trades: list[Trade], top: int = 3) -> list[tuple[str, int]]:
        counts = Counter(t.symbol for t in TradeNormalizer.active(trades) if t.symbol)
        return counts.most_common(top)

    @staticmethod
    def direction_split(trades: list[Trade]) -> pd.DataFrame:
        """Outcome counts per direction as a small DataFrame (for tables)."""
        rows = [
            {
                "direction": t.direction.value if t.direction else "unknown",
                "outcome": TradeNormalizer.classify(t).value,
                "r_multiple": t.r_multiple,
            }
            for t in TradeNormalizer.active(trades)
        ]
        if not rows:
            return pd.DataFrame(columns=["direction", "trades", "wins", "total_r"])
        df = pd.DataFrame(rows)
        df["win"] = df["outcome"] == Outcome.WIN.value
        return (
            df.groupby("direction", sort=True)
            .agg(
                trades=("r_multiple", "size"),
                wins=("win", "sum"),
                total_r=("r_multiple", "sum"),
            )
            .reset_index()
        )

    # ---------------------------------------------------------------------------
    # Trade management
    # ---------------------------------------------------------------------------

    @staticmethod
    def break_even_outcome(trades: list[Trade]) -> BreakEvenOutcome:
        """Of the trades that reached break-even, how many went on to TP or SL."""
        be = [t for t in TradeNormalizer.active(trades) if t.did_hit_be]
        if not be:
            return BreakEvenOutcome()
        to_tp = sum(1 for t in be if t.tp_hit_after_be)
        to_sl = sum(1 for t in be if not t.tp_hit_after_be and t.r_multiple < 0)
        return BreakEvenOutcome(
            be_trades=len(be),
            hit_tp_after_be=to_tp,
            hit_sl_after_be=to_sl,
            percent_to_tp=round(to_tp / len(be) * 100, 2),
            percent_to_sl=round(to_sl / len(be) * 100, 2),
        )

    @staticmethod
    def take_profit_stats(trades: list[Trade]) -> TakeProfitStats:
        hit = [
            t.r_multiple
            for t in TradeNormalizer.active(trades)
            if t.tp_hit is not TakeProfitHit.NONE
        ]
        if not hit:
            return TakeProfitStats()
        return TakeProfitStats(
            trades_hit_tp=len(hit),
            avg_r=round(sum(hit) / len(hit), 2),
            min_r=round(min(hit), 2),
            max_r=round(max(hit), 2),
        )

    # ---------------------------------------------------------------------------
    # Private helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _entry_hour(trade: Trade) -> Optional[int]:
        if trade.entry_time:
            hour = SessionClassifier.parse_hour(trade.entry_time)
            if hour is None:
                logger.debug("Trade %s: bad entry_time %r", trade.trade_id, trade.entry_time)
            return hour
        if isinstance(trade.entry_date, datetime):
            return trade.entry_date.hour
        return None

    @staticmethod
    def _bucketise(
        trades: list[Trade],
        key: Callable[[Trade], Optional[int]],
        labels: list[str],
        round_rates: bool = True,
    ) -> list[BucketStats]:
        counts = [[0, 0, 0] for _ in labels]  # won, break-even, lost
        for t in TradeNormalizer.active(trades):
            idx = key(t)
            if idx is None:
                continue
            outcome = TradeNormalizer.classify(t)
            if outcome is Outcome.WIN:
                counts[idx][0] += 1
            elif outcome is Outcome.BREAK_EVEN:
                counts[idx][1] += 1
            else:
                counts[idx][2] += 1

        buckets = []
        for label, (won, be, lost) in zip(labels, counts):
            total = won + be + lost
            if total == 0:
                continue
            rates = [won / total * 100, be / total * 100, lost / total * 100]
            if round_rates:
                rates = [float(math.floor(r + 0.5)) for r in rates]
            buckets.append(BucketStats(label, total, won, be, lost, *rates))
        return buckets
