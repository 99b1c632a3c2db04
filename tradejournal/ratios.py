"""
ratios.py
---------
RiskRatioCalculator computes Sharpe, Sortino, MAR and Calmar over the
R-multiple series, with a risk-free rate of 0.

Degenerate inputs resolve to sentinels, never exceptions:

    Sharpe   0 if n < 2 or stdev == 0
    Sortino  0 if n < 2; inf if no losing trades and mean > 0, else 0
    MAR      0 if max drawdown == 0
    Calmar   0 if max drawdown == 0 or n < 2

Standard deviations are population deviations.  Downside deviation squares
the negative R values around 0 (not around the mean) and averages over the
negative trades only.
"""

from __future__ import annotations

import math

import numpy as np

from tradejournal.drawdown import DrawdownAnalyzer
from tradejournal.engine import AnalyticsEngine
from tradejournal.models import JournalParams, RiskRatios, Trade
from tradejournal.normalizer import TradeNormalizer


class RiskRatioCalculator:
    """Stateless risk-adjusted return calculator."""

    @staticmethod
    def compute(trades: list[Trade], params: JournalParams | None = None) -> RiskRatios:
        p = params or JournalParams()
        active = TradeNormalizer.active(trades)
        r = np.array([t.r_multiple for t in active], dtype=float)

        # Calmar is time-based: n, total R, span and drawdown all come from
        # the dated trades only.
        ordered = DrawdownAnalyzer.chronological(active)
        dated_r = np.array([t.r_multiple for t in ordered], dtype=float)
        max_dd = DrawdownAnalyzer.max_drawdown(AnalyticsEngine.cumulative_r(ordered))

        return RiskRatios(
            sharpe=RiskRatioCalculator.sharpe(r),
            sortino=RiskRatioCalculator.sortino(r),
            mar=RiskRatioCalculator.mar(float(r.sum()) if r.size else 0.0, max_dd),
            calmar=RiskRatioCalculator.calmar(
                dated_r, max_dd, DrawdownAnalyzer.span_days(ordered), p.calmar_min_span_days
            ),
        )

    @staticmethod
    def sharpe(r: np.ndarray) -> float:
        if r.size < 2:
            return 0.0
        std = float(r.std())
        if std == 0:
            return 0.0
        return float(r.mean()) / std

    @staticmethod
    def sortino(r: np.ndarray) -> float:
        if r.size < 2:
            return 0.0
        mean = float(r.mean())
        negative = r[r < 0]
        if negative.size == 0:
            return math.inf if mean > 0 else 0.0
        downside = math.sqrt(float(np.mean(negative ** 2)))
        if downside == 0:
            return 0.0
        return mean / downside

    @staticmethod
    def mar(total_r: float, max_drawdown: float) -> float:
        if max_drawdown == 0:
            return 0.0
        return total_r / max_drawdown

    @staticmethod
    def calmar(
        r: np.ndarray,
        max_drawdown: float,
        span_days: float,
        min_span_days: float = 30.0,
    ) -> float:
        """Annualised R return over max drawdown.

        ``annualised = (1 + total/n) ** (n / years) - 1`` where ``years`` is
        the observed span floored at *min_span_days*.  A mean R of -1 or
        worse is a total loss (annualised -1).  Overflow saturates to inf.
        """
        n = int(r.size)
        if max_drawdown == 0 or n < 2:
            return 0.0
        years = max(span_days / 365, min_span_days / 365)
        annualised = RiskRatioCalculator.annualised_return(float(r.sum()), n, years)
        return annualised / max_drawdown

    @staticmethod
    def annualised_return(total_r: float, n: int, years: float) -> float:
        base = 1 + total_r / n
        if base <= 0:
            return -1.0
        try:
            return math.exp((n / years) * math.log(base)) - 1
        except OverflowError:
            return math.inf
