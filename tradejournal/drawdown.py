"""
drawdown.py
-----------
DrawdownAnalyzer characterises equity deterioration over the trade sequence
ordered by entry date.  All figures are in R, never percent.

Definitions
-----------
* Cumulative R curve: running sum of ``r_multiple``, with an explicit start
  point at 0 before the first trade.
* Peak: running maximum of the curve (the start point counts, so a first
  trade at -2 is already 2R in drawdown).
* Drawdown at i: ``peak - cumulative_r[i]`` (>= 0).
* Consecutive losses: longest run of adjacent trades with ``r_multiple < 0``.
* Recovery episode: starts at the first trade that leaves the curve below
  its peak, ends at the first trade that sets a *new* peak.  Its length is
  the entry-date difference in days.  An episode still open at the end of
  the series is not counted.

Trades without an entry date cannot be placed on the timeline and are
skipped here.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional

from tradejournal.models import CurvePoint, DrawdownSeries, RecoveryEpisode, Trade
from tradejournal.normalizer import TradeNormalizer

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class DrawdownAnalyzer:
    """Stateless drawdown + recovery calculator."""

    @staticmethod
    def chronological(trades: list[Trade]) -> list[Trade]:
        """Active trades with an entry date, sorted by entry date (stable)."""
        active = TradeNormalizer.active(trades)
        dated = [t for t in active if t.entry_date is not None]
        skipped = len(active) - len(dated)
        if skipped:
            logger.debug("Skipping %d trade(s) without entry_date from timeline", skipped)
        return sorted(dated, key=DrawdownAnalyzer._sort_key)

    @staticmethod
    def analyse(trades: list[Trade]) -> DrawdownSeries:
        """Build the full drawdown series for *trades*.

        Returns
        -------
        DrawdownSeries
            Start point plus one point per dated trade, max drawdown, loss
            streak and recovery statistics.  Empty input yields only the
            start point and zeros.
        """
        ordered = DrawdownAnalyzer.chronological(trades)

        points = [CurvePoint(0, None, None, 0.0, 0.0, 0.0, 0.0)]
        episodes: list[RecoveryEpisode] = []

        cumulative = 0.0
        peak = 0.0
        max_dd = 0.0
        drawdown_start: Optional[datetime] = None
        trough = 0.0

        for i, t in enumerate(ordered, start=1):
            entry = TradeNormalizer.to_utc(t.entry_date)
            cumulative += t.r_multiple

            if cumulative > peak:
                if drawdown_start is not None:
                    episodes.append(
                        RecoveryEpisode(
                            start_date=drawdown_start,
                            end_date=entry,
                            peak_before=peak,
                            recovered_at=cumulative,
                            trough=trough,
                            days=(entry - drawdown_start).total_seconds() / 86400,
                        )
                    )
                    drawdown_start = None
                peak = cumulative
            elif cumulative < peak:
                if drawdown_start is None:
                    drawdown_start = entry
                    trough = cumulative
                trough = min(trough, cumulative)

            drawdown = peak - cumulative
            max_dd = max(max_dd, drawdown)
            points.append(
                CurvePoint(i, t.trade_id, entry, t.r_multiple, cumulative, peak, drawdown)
            )

        if episodes:
            durations = [e.days for e in episodes]
            avg_days = _round_half_up(sum(durations) / len(durations))
            max_days = _round_half_up(max(durations))
        else:
            avg_days = max_days = 0

        return DrawdownSeries(
            points=points,
            max_drawdown=max_dd,
            max_consecutive_losses=DrawdownAnalyzer.max_consecutive_losses(ordered),
            episodes=episodes,
            avg_recovery_days=avg_days,
            max_recovery_days=max_days,
        )

    @staticmethod
    def max_consecutive_losses(ordered: list[Trade]) -> int:
        """Longest run of ``r_multiple < 0`` in the given order."""
        longest = current = 0
        for t in ordered:
            if t.r_multiple < 0:
                current += 1
                longest = max(longest, current)
            else:
                current = 0
        return longest

    @staticmethod
    def max_drawdown(equity: list[float]) -> float:
        """Classic peak-to-trough drawdown on a running equity series.

        The implicit starting equity is 0 (before any trades).  This means a
        series like [-2, -4, -6] has a drawdown of 6 (from the 0 peak to -6).

        Returns a non-negative number.  If equity is empty, returns 0.
        """
        peak = 0.0
        max_dd = 0.0
        for val in equity:
            if val > peak:
                peak = val
            max_dd = max(max_dd, peak - val)
        return max_dd

    @staticmethod
    def span_days(ordered: list[Trade]) -> float:
        """Days between the first and last entry of a chronological list."""
        if len(ordered) < 2:
            return 0.0
        first = TradeNormalizer.to_utc(ordered[0].entry_date)
        last = TradeNormalizer.to_utc(ordered[-1].entry_date)
        return (last - first).total_seconds() / 86400

    # ---------------------------------------------------------------------------
    # Private helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _sort_key(trade: Trade) -> datetime:
        # Mixed naive/aware dates would not compare; normalise on the fly.
        return TradeNormalizer.to_utc(trade.entry_date)
