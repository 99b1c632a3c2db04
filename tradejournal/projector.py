"""
projector.py
------------
EquityProjector draws an illustrative best-case / worst-case forward path
from the journal's own win rate and average win / loss R.  It is a bounded
simulation for display, not a forecast.

Scenario adjustments (defaults, see JournalParams)
--------------------------------------------------
    best   win rate min(wr * 1.15, 0.95)   avg win * 1.1   avg loss * 0.9
    worst  win rate max(wr * 0.85, 0.05)   avg win * 0.9   avg loss * 1.1

Each step draws one uniform number for the best path, then one for the worst
path; ``draw < win_rate`` is a win.  The random source is a parameter so a
seeded ``numpy.random.Generator`` (or any object with ``random()``) makes the
paths reproducible.
"""

from __future__ import annotations

from typing import Optional, Protocol

import numpy as np

from tradejournal.drawdown import DrawdownAnalyzer
from tradejournal.engine import AnalyticsEngine
from tradejournal.models import JournalParams, ProjectionBands, ScenarioParams, Trade
from tradejournal.normalizer import TradeNormalizer


class RandomSource(Protocol):
    def random(self) -> float: ...


class EquityProjector:
    """Bounded stochastic equity projection."""

    @staticmethod
    def base_params(trades: list[Trade], params: Optional[JournalParams] = None) -> ScenarioParams:
        """Historical win rate (0-1) and average win / loss R of *trades*."""
        p = params or JournalParams()
        active = TradeNormalizer.active(trades)
        if not active:
            return ScenarioParams(0.0, p.default_avg_win_r, p.default_avg_loss_r)
        wins = [t.r_multiple for t in active if t.r_multiple > 0]
        losses = [t.r_multiple for t in active if t.r_multiple < 0]
        return ScenarioParams(
            win_rate=len(wins) / len(active),
            avg_win_r=sum(wins) / len(wins) if wins else p.default_avg_win_r,
            avg_loss_r=sum(losses) / len(losses) if losses else p.default_avg_loss_r,
        )

    @staticmethod
    def scenarios(
        base: ScenarioParams, params: Optional[JournalParams] = None
    ) -> tuple[ScenarioParams, ScenarioParams]:
        """Return (best, worst) adjusted from *base*."""
        p = params or JournalParams()
        best = ScenarioParams(
            win_rate=min(base.win_rate * p.best_win_rate_multiplier, p.best_win_rate_cap),
            avg_win_r=base.avg_win_r * p.best_avg_win_multiplier,
            avg_loss_r=base.avg_loss_r * p.best_avg_loss_multiplier,
        )
        worst = ScenarioParams(
            win_rate=max(base.win_rate * p.worst_win_rate_multiplier, p.worst_win_rate_floor),
            avg_win_r=base.avg_win_r * p.worst_avg_win_multiplier,
            avg_loss_r=base.avg_loss_r * p.worst_avg_loss_multiplier,
        )
        return best, worst

    @staticmethod
    def project(
        trades: list[Trade],
        horizon: Optional[int] = None,
        rng: Optional[RandomSource] = None,
        params: Optional[JournalParams] = None,
    ) -> ProjectionBands:
        """Simulate *horizon* future trades on both scenarios.

        Parameters
        ----------
        trades : list[Trade]
            Historical trades; placeholders are ignored.
        horizon : int, optional
            Number of future trades.  Defaults to ``params.projection_horizon``.
        rng : RandomSource, optional
            Defaults to a fresh ``numpy.random.default_rng()``.

        Returns
        -------
        ProjectionBands
            Empty bands when there is no history to anchor on.
        """
        p = params or JournalParams()
        steps = p.projection_horizon if horizon is None else max(int(horizon), 0)

        ordered = DrawdownAnalyzer.chronological(trades)
        if not ordered:
            return ProjectionBands()

        anchor_r = AnalyticsEngine.cumulative_r(ordered)[-1]
        best_p, worst_p = EquityProjector.scenarios(EquityProjector.base_params(trades, p), p)
        source = rng if rng is not None else np.random.default_rng()

        best: list[float] = []
        worst: list[float] = []
        best_r = worst_r = anchor_r
        for _ in range(steps):
            best_r += best_p.avg_win_r if source.random() < best_p.win_rate else best_p.avg_loss_r
            worst_r += worst_p.avg_win_r if source.random() < worst_p.win_rate else worst_p.avg_loss_r
            best.append(best_r)
            worst.append(worst_r)

        return ProjectionBands(
            anchor_index=len(ordered),
            anchor_r=anchor_r,
            best=best,
            worst=worst,
            best_params=best_p,
            worst_params=worst_p,
        )
