"""
engine.py  (analytics)
----------------------
AnalyticsEngine is a pure-function namespace.  It takes a list of trades and
returns the scalar KPIs plus the equity curve.  No IO, no side effects.

Metrics computed
----------------
* Total trades / wins / losses / break-evens
* Win rate and break-even rate (%)
* Average R, total R, expectancy (R per trade)
* Profit factor (gross winning R / gross losing R)
* Maximum drawdown (R): largest peak-to-trough on the cumulative R curve
* Equity curve (start point + one point per trade)

Placeholder trades are excluded from every figure.  The empty set maps to
all-zero stats; ratios are never NaN.
"""

from __future__ import annotations

import math

from tradejournal.drawdown import DrawdownAnalyzer
from tradejournal.models import EquityPoint, Outcome, Trade, TradeStats
from tradejournal.normalizer import TradeNormalizer

# Profit factor when there are winning trades and no losing trades.
UNBOUNDED = math.inf


class AnalyticsEngine:
    """Stateless statistics aggregator."""

    @staticmethod
    def summarise(trades: list[Trade]) -> TradeStats:
        """Reduce *trades* to a TradeStats record.

        Parameters
        ----------
        trades : list[Trade]
            Normalised trades.  Placeholders are ignored here.

        Returns
        -------
        TradeStats
            All-zero record when nothing is left after dropping placeholders.
        """
        active = TradeNormalizer.active(trades)
        total = len(active)
        if total == 0:
            return TradeStats()

        # ------------------------------------------------------------------
        # Counts
        # ------------------------------------------------------------------
        outcomes = [TradeNormalizer.classify(t) for t in active]
        wins = outcomes.count(Outcome.WIN)
        break_evens = outcomes.count(Outcome.BREAK_EVEN)
        losses = total - wins - break_evens

        # ------------------------------------------------------------------
        # R sums
        # ------------------------------------------------------------------
        r_values = [t.r_multiple for t in active]
        total_r = sum(r_values)
        gross_win = sum(r for r in r_values if r > 0)
        gross_loss = abs(sum(r for r in r_values if r < 0))
        average_r = total_r / total

        # ------------------------------------------------------------------
        # Max drawdown (entry-date order)
        # ------------------------------------------------------------------
        max_dd = DrawdownAnalyzer.max_drawdown(
            AnalyticsEngine.cumulative_r(DrawdownAnalyzer.chronological(active))
        )

        return TradeStats(
            total_trades=total,
            winning_trades=wins,
            losing_trades=losses,
            break_even_trades=break_evens,
            win_rate=wins / total * 100,
            break_even_rate=break_evens / total * 100,
            average_r_multiple=average_r,
            total_profit=total_r,
            profit_factor=AnalyticsEngine.profit_factor(gross_win, gross_loss),
            expectancy=average_r,
            max_drawdown=max_dd,
        )

    @staticmethod
    def profit_factor(gross_win: float, gross_loss: float) -> float:
        """Gross winning R over gross losing R.

        0 when there are no wins; ``UNBOUNDED`` when there are wins but no
        losses.
        """
        if gross_loss == 0:
            return UNBOUNDED if gross_win > 0 else 0.0
        return gross_win / gross_loss

    @staticmethod
    def cumulative_r(ordered: list[Trade]) -> list[float]:
        """Running R total after each trade, in the given order."""
        equity: list[float] = []
        running = 0.0
        for t in ordered:
            running += t.r_multiple
            equity.append(running)
        return equity

    # ---------------------------------------------------------------------------
    # Equity curve
    # ---------------------------------------------------------------------------

    @staticmethod
    def equity_curve(trades: list[Trade], fixed_r_value: float = 1.0) -> list[EquityPoint]:
        """Chart-ready equity curve, always starting with an index-0 point at 0.

        ``fixed_r`` replays the sequence as if every win paid exactly
        *fixed_r_value* and every loss cost exactly 1R; break-evens add 0.
        ``by_instrument`` carries the running R of every instrument seen so
        far at that point.
        """
        curve = [
            EquityPoint(
                index=0,
                trade_id=None,
                entry_date=None,
                instrument=None,
                r_multiple=0.0,
                cumulative_r=0.0,
                fixed_r=0.0,
                is_profit=False,
                is_break_even=False,
            )
        ]

        cumulative = 0.0
        fixed = 0.0
        per_instrument: dict[str, float] = {}

        for i, t in enumerate(DrawdownAnalyzer.chronological(trades), start=1):
            cumulative += t.r_multiple
            symbol = t.symbol or "Unknown"
            per_instrument[symbol] = per_instrument.get(symbol, 0.0) + t.r_multiple

            if t.r_multiple > 0:
                fixed += fixed_r_value
            elif t.r_multiple < 0:
                fixed -= 1

            curve.append(
                EquityPoint(
                    index=i,
                    trade_id=t.trade_id,
                    entry_date=t.entry_date,
                    instrument=symbol,
                    r_multiple=t.r_multiple,
                    cumulative_r=cumulative,
                    fixed_r=fixed,
                    is_profit=t.r_multiple > 0,
                    is_break_even=t.r_multiple == 0,
                    by_instrument=dict(per_instrument),
                )
            )

        return curve
