"""
volatility.py
-------------
VolatilityModel walks a mean-reverting stochastic volatility path over the
closed trades, one step per trade in exit-date order:

    v[0] = initial
    v[i] = max(floor, v[i-1] + kappa * (mean - v[i-1]) + sigma * shock)
    shock = (u - 0.5) * shock_scale,  u ~ U[0, 1)

The path is illustrative: it does not fit kappa or sigma to the data, it
uses the knobs in JournalParams.  One uniform draw is taken per step after
the first, so a seeded ``numpy.random.Generator`` (or any object with
``random()``) reproduces the path.

Summary metrics
---------------
    average            mean of v over all steps
    range              peak - minimum
    current_vs_mean    (current / mean - 1) * 100
    clusters           upward crossings of average * cluster_multiplier
    mean_reversion     kappa * 100
    return_correlation Pearson r between the per-trade R and v (0 if undefined)
    recent_trend       (last / first - 1) * 100 over the last few points
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from tradejournal.models import (
    JournalParams,
    Trade,
    VolatilityMetrics,
    VolatilityPoint,
    VolatilitySeries,
)
from tradejournal.normalizer import TradeNormalizer
from tradejournal.projector import RandomSource

logger = logging.getLogger(__name__)


class VolatilityModel:
    """Stateless stochastic volatility simulation."""

    @staticmethod
    def closed_trades(trades: list[Trade]) -> list[Trade]:
        """Active trades with an exit date, sorted by exit date (stable)."""
        closed = [t for t in TradeNormalizer.active(trades) if t.exit_date is not None]
        return sorted(closed, key=lambda t: TradeNormalizer.to_utc(t.exit_date))

    @staticmethod
    def simulate(
        trades: list[Trade],
        rng: Optional[RandomSource] = None,
        params: Optional[JournalParams] = None,
    ) -> VolatilitySeries:
        """Build the volatility path and its summary for *trades*.

        Parameters
        ----------
        trades : list[Trade]
            Placeholders and open trades (no exit date) are ignored.
        rng : RandomSource, optional
            Defaults to a fresh ``numpy.random.default_rng()``.

        Returns
        -------
        VolatilitySeries
            Empty (no points, no metrics) when no trade is closed.
        """
        p = params or JournalParams()
        ordered = VolatilityModel.closed_trades(trades)
        if not ordered:
            return VolatilitySeries()

        source = rng if rng is not None else np.random.default_rng()
        mean = p.volatility_long_term_mean
        vol = p.volatility_initial
        path: list[float] = []
        points: list[VolatilityPoint] = []
        for i, t in enumerate(ordered):
            if i > 0:
                shock = (source.random() - 0.5) * p.volatility_shock_scale
                vol = max(
                    p.volatility_floor,
                    vol + p.volatility_kappa * (mean - vol) + p.volatility_sigma * shock,
                )
            path.append(vol)
            points.append(
                VolatilityPoint(
                    index=i,
                    trade_id=t.trade_id,
                    date=TradeNormalizer.to_utc(t.exit_date),
                    volatility=round(vol, 4),
                    r_return=round(t.r_multiple or 0.0, 2),
                    long_term_mean=mean,
                )
            )

        logger.debug("Volatility path over %d closed trade(s)", len(points))
        return VolatilitySeries(points=points, metrics=VolatilityModel.metrics(points, path, p))

    @staticmethod
    def metrics(
        points: list[VolatilityPoint], path: list[float], params: JournalParams
    ) -> VolatilityMetrics:
        """Summarise a path.  *path* holds the unrounded values behind *points*."""
        current = path[-1]
        average = sum(path) / len(path)
        peak, minimum = max(path), min(path)

        threshold = average * params.volatility_cluster_multiplier
        clusters = 0
        in_cluster = False
        for point in points:
            if point.volatility > threshold:
                if not in_cluster:
                    clusters += 1
                in_cluster = True
            else:
                in_cluster = False

        recent = points[-params.volatility_recent_window:]
        trend = 0.0
        if len(recent) > 1 and recent[0].volatility > 0:
            trend = (recent[-1].volatility / recent[0].volatility - 1) * 100

        return VolatilityMetrics(
            current=current,
            average=average,
            peak=peak,
            minimum=minimum,
            range=peak - minimum,
            current_vs_mean_pct=(current / params.volatility_long_term_mean - 1) * 100,
            return_correlation=VolatilityModel.correlation(
                [pt.r_return for pt in points], [pt.volatility for pt in points]
            ),
            clusters=clusters,
            mean_reversion_strength=params.volatility_kappa * 100,
            recent_trend_pct=trend,
        )

    @staticmethod
    def correlation(x: list[float], y: list[float]) -> float:
        """Pearson r of *x* and *y*; 0 when either side has no variance."""
        n = len(x)
        if n < 2:
            return 0.0
        sx, sy = sum(x), sum(y)
        sxy = sum(a * b for a, b in zip(x, y))
        sx2 = sum(a * a for a in x)
        sy2 = sum(b * b for b in y)
        var_x = n * sx2 - sx * sx
        var_y = n * sy2 - sy * sy
        if var_x <= 0 or var_y <= 0:
            return 0.0
        r = (n * sxy - sx * sy) / (math.sqrt(var_x) * math.sqrt(var_y))
        return r if math.isfinite(r) else 0.0
