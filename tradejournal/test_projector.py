"""
test_projector.py
-----------------
Unit tests for EquityProjector: scenario adjustment, anchoring, draw order
and reproducibility with a seeded generator.
"""

from datetime import datetime, timedelta

import numpy as np
import pytest

from tradejournal.models import JournalParams, ProjectionBands, ScenarioParams, Trade
from tradejournal.projector import EquityProjector


class ScriptedRandom:
    """Returns a fixed sequence of draws."""

    def __init__(self, draws):
        self._draws = list(draws)

    def random(self):
        return self._draws.pop(0)


def _series(rs):
    return [
        Trade(trade_id=f"p{i}", entry_date=datetime(2024, 5, 1) + timedelta(days=i), r_multiple=r)
        for i, r in enumerate(rs)
    ]


class TestBaseParams:
    def test_history(self):
        base = EquityProjector.base_params(_series([2.0, -1.0, 2.0, -1.0]))
        assert base == ScenarioParams(0.5, 2.0, -1.0)

    def test_break_even_counts_in_denominator(self):
        base = EquityProjector.base_params(_series([1.0, 0.0, -1.0, 0.0]))
        assert base.win_rate == pytest.approx(0.25)

    def test_defaults_without_wins_or_losses(self):
        base = EquityProjector.base_params(_series([0.0, 0.0]))
        assert base.avg_win_r == 1.5
        assert base.avg_loss_r == -1.0

    def test_empty(self):
        assert EquityProjector.base_params([]) == ScenarioParams(0.0, 1.5, -1.0)


class TestScenarios:
    def test_adjustments(self):
        best, worst = EquityProjector.scenarios(ScenarioParams(0.5, 2.0, -1.0))
        assert best.win_rate == pytest.approx(0.575)
        assert best.avg_win_r == pytest.approx(2.2)
        assert best.avg_loss_r == pytest.approx(-0.9)
        assert worst.win_rate == pytest.approx(0.425)
        assert worst.avg_win_r == pytest.approx(1.8)
        assert worst.avg_loss_r == pytest.approx(-1.1)

    def test_cap_and_floor(self):
        best, _ = EquityProjector.scenarios(ScenarioParams(1.0, 1.0, -1.0))
        _, worst = EquityProjector.scenarios(ScenarioParams(0.0, 1.0, -1.0))
        assert best.win_rate == pytest.approx(0.95)
        assert worst.win_rate == pytest.approx(0.05)

    def test_custom_params(self):
        p = JournalParams(best_win_rate_multiplier=2.0, best_win_rate_cap=0.8)
        best, _ = EquityProjector.scenarios(ScenarioParams(0.3, 1.0, -1.0), p)
        assert best.win_rate == pytest.approx(0.6)


class TestProject:
    def test_scripted_paths(self):
        # best: 0.0 < 0.575 win (+2.2), then 0.99 loss (-0.9)
        # worst: 0.99 loss (-1.1), then 0.0 < 0.425 win (+1.8)
        bands = EquityProjector.project(
            _series([2.0, -1.0, 2.0, -1.0]), horizon=2, rng=ScriptedRandom([0.0, 0.99, 0.99, 0.0])
        )
        assert bands.anchor_index == 4
        assert bands.anchor_r == pytest.approx(2.0)
        assert bands.best == [pytest.approx(4.2), pytest.approx(3.3)]
        assert bands.worst == [pytest.approx(0.9), pytest.approx(2.7)]

    def test_anchor_is_last_cumulative(self):
        bands = EquityProjector.project(_series([1.0, 1.0, -0.5]), horizon=1, rng=ScriptedRandom([0.0, 0.0]))
        assert bands.anchor_r == pytest.approx(1.5)

    def test_horizon_zero(self):
        bands = EquityProjector.project(_series([1.0]), horizon=0)
        assert bands.best == []
        assert bands.worst == []
        assert bands.anchor_index == 1

    def test_default_horizon_from_params(self):
        bands = EquityProjector.project(
            _series([1.0, -1.0]), rng=np.random.default_rng(0), params=JournalParams(projection_horizon=7)
        )
        assert len(bands.best) == 7
        assert len(bands.worst) == 7

    def test_no_history_is_empty(self):
        assert EquityProjector.project([]) == ProjectionBands()

    def test_seeded_reproducible(self):
        trades = _series([2.0, -1.0, 0.5, -1.0, 1.5])
        a = EquityProjector.project(trades, horizon=50, rng=np.random.default_rng(42))
        b = EquityProjector.project(trades, horizon=50, rng=np.random.default_rng(42))
        assert a.best == b.best
        assert a.worst == b.worst

    def test_best_outruns_worst_over_long_horizon(self):
        bands = EquityProjector.project(
            _series([2.0, -1.0, 2.0, -1.0]), horizon=1000, rng=np.random.default_rng(7)
        )
        assert bands.best[-1] > bands.worst[-1]

    def test_each_step_moves_by_scenario_amount(self):
        bands = EquityProjector.project(
            _series([2.0, -1.0, 2.0, -1.0]), horizon=20, rng=np.random.default_rng(3)
        )
        prev = bands.anchor_r
        for value in bands.best:
            assert value - prev == pytest.approx(2.2) or value - prev == pytest.approx(-0.9)
            prev = value
