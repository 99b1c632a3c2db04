"""
test_ratios.py
--------------
Unit tests for RiskRatioCalculator: Sharpe, Sortino, MAR, Calmar and their
degenerate-input sentinels.
"""

import math
from datetime import datetime, timedelta

import numpy as np
import pytest

from tradejournal.models import JournalParams, Trade
from tradejournal.ratios import RiskRatioCalculator


def _series(rs, step_days=1):
    return [
        Trade(
            trade_id=f"r{i}",
            entry_date=datetime(2024, 1, 1) + timedelta(days=i * step_days),
            r_multiple=r,
        )
        for i, r in enumerate(rs)
    ]


REFERENCE = [1.0, 1.0, -1.0, -1.0, -1.0, 2.0]


class TestSharpe:
    def test_population_stdev(self):
        r = np.array(REFERENCE)
        expected = r.mean() / r.std(ddof=0)
        assert RiskRatioCalculator.sharpe(r) == pytest.approx(expected)

    def test_single_trade_is_zero(self):
        assert RiskRatioCalculator.sharpe(np.array([2.0])) == 0.0

    def test_constant_series_is_zero(self):
        assert RiskRatioCalculator.sharpe(np.array([1.0, 1.0, 1.0])) == 0.0


class TestSortino:
    def test_downside_over_negatives_only(self):
        # Negatives are all -1, so downside deviation is 1 and Sortino == mean.
        assert RiskRatioCalculator.sortino(np.array(REFERENCE)) == pytest.approx(1 / 6)

    def test_downside_squares_around_zero(self):
        r = np.array([3.0, -1.0, -3.0])
        downside = math.sqrt((1 + 9) / 2)
        assert RiskRatioCalculator.sortino(r) == pytest.approx((-1 / 3) / downside)

    def test_no_losses_positive_mean_is_unbounded(self):
        assert math.isinf(RiskRatioCalculator.sortino(np.array([1.0, 2.0])))

    def test_no_losses_zero_mean_is_zero(self):
        assert RiskRatioCalculator.sortino(np.array([0.0, 0.0])) == 0.0

    def test_single_trade_is_zero(self):
        assert RiskRatioCalculator.sortino(np.array([-1.0])) == 0.0


class TestMar:
    def test_ratio(self):
        assert RiskRatioCalculator.mar(1.0, 3.0) == pytest.approx(1 / 3)

    def test_zero_drawdown(self):
        assert RiskRatioCalculator.mar(5.0, 0.0) == 0.0


class TestCalmar:
    def test_short_span_floored_to_thirty_days(self):
        r = np.array(REFERENCE)
        # Six trades over five days → the 30-day floor applies.
        years = 30 / 365
        expected = ((1 + 1 / 6) ** (6 / years) - 1) / 3.0
        assert RiskRatioCalculator.calmar(r, 3.0, 5.0) == pytest.approx(expected)

    def test_long_span_uses_observed_years(self):
        r = np.array([1.0, -1.0, 0.5, 0.5])
        years = 730 / 365
        expected = ((1 + 1 / 4) ** (4 / years) - 1) / 1.0
        assert RiskRatioCalculator.calmar(r, 1.0, 730.0) == pytest.approx(expected)

    def test_zero_drawdown(self):
        assert RiskRatioCalculator.calmar(np.array([1.0, 1.0]), 0.0, 10.0) == 0.0

    def test_single_trade(self):
        assert RiskRatioCalculator.calmar(np.array([-1.0]), 1.0, 10.0) == 0.0

    def test_total_loss_base(self):
        assert RiskRatioCalculator.annualised_return(-5.0, 2, 1.0) == -1.0

    def test_overflow_saturates(self):
        assert math.isinf(RiskRatioCalculator.annualised_return(1000.0, 2, 1 / 365))


class TestCompute:
    def test_reference_sequence(self):
        ratios = RiskRatioCalculator.compute(_series(REFERENCE))
        assert ratios.sortino == pytest.approx(1 / 6)
        assert ratios.mar == pytest.approx(1 / 3)
        assert ratios.calmar > 0

    def test_empty_is_all_zero(self):
        ratios = RiskRatioCalculator.compute([])
        assert (ratios.sharpe, ratios.sortino, ratios.mar, ratios.calmar) == (0.0, 0.0, 0.0, 0.0)

    def test_single_trade_sentinels(self):
        ratios = RiskRatioCalculator.compute(_series([-2.0]))
        assert ratios.sharpe == 0.0
        assert ratios.sortino == 0.0
        assert ratios.calmar == 0.0
        assert ratios.mar == pytest.approx(-1.0)

    def test_no_nan(self):
        for rs in ([], [0.0], [0.0, 0.0], [1.0, 1.0], [-1.0, -1.0]):
            ratios = RiskRatioCalculator.compute(_series(rs))
            assert not any(math.isnan(v) for v in vars(ratios).values())

    def test_custom_calmar_floor(self):
        trades = _series(REFERENCE)
        default = RiskRatioCalculator.compute(trades).calmar
        longer = RiskRatioCalculator.compute(trades, JournalParams(calmar_min_span_days=365)).calmar
        assert longer < default

    def test_calmar_ignores_undated_trades(self):
        dated = _series(REFERENCE)
        undated = Trade(trade_id="nodate", entry_date=None, r_multiple=5.0)
        expected = RiskRatioCalculator.compute(dated).calmar
        ratios = RiskRatioCalculator.compute(dated + [undated])
        assert ratios.calmar == pytest.approx(expected)
        # the undated trade still counts toward MAR
        assert ratios.mar == pytest.approx((1.0 + 5.0) / 3.0)
