"""
test_export.py
--------------
Unit tests for ExportEngine: params, trade table, KPI row and full report.
"""

import json
from datetime import datetime

import yaml

from tradejournal.engine import AnalyticsEngine
from tradejournal.export import ExportEngine
from tradejournal.loader import DataLoader
from tradejournal.models import Direction, JournalParams, Session, Trade
from tradejournal.normalizer import TradeNormalizer
from tradejournal.runner import JournalRunner


def _trades():
    return TradeNormalizer.normalize_all([
        Trade(
            trade_id="t1",
            entry_date=datetime(2024, 3, 4, 13, 0),
            entry_time="09:00",
            entry_timezone="America/New_York",
            direction=Direction.LONG,
            entry_price=100.0,
            exit_price=110.0,
            sl_price=95.0,
            instrument="EURUSD",
            strategy_id="s1",
            tags=frozenset({"account", "a+"}),
        ),
        Trade(
            trade_id="t2",
            entry_date=datetime(2024, 3, 5, 21, 0),
            r_multiple=-1.0,
            session=Session.LATE_NY,
            session_overridden=True,
        ),
    ])


class TestParamsExport:
    def test_json_has_every_field(self):
        data = json.loads(ExportEngine.params_to_json(JournalParams()))
        assert data["projection_horizon"] == 100
        assert data["best_win_rate_cap"] == 0.95

    def test_yaml_loads_back(self):
        p = JournalParams(projection_horizon=25)
        assert DataLoader.load_params(ExportEngine.params_to_yaml(p)) == p

    def test_yaml_is_flat_mapping(self):
        assert isinstance(yaml.safe_load(ExportEngine.params_to_yaml(JournalParams())), dict)


class TestTradesExport:
    def test_empty_is_header_only(self):
        csv = ExportEngine.trades_to_csv([])
        assert csv.splitlines()[0].startswith("tradeId,strategyId,accountId")
        assert len(csv.strip().splitlines()) == 1
        assert DataLoader.load_trades(csv) == []

    def test_csv_header_and_values(self):
        df = ExportEngine.trades_df(_trades())
        assert list(df.columns)[:3] == ["tradeId", "strategyId", "accountId"]
        assert df.loc[0, "session"] == "Overlap"
        assert df.loc[0, "tags"] == "a+;account"
        assert df.loc[0, "riskReward"] == "1:2.00"
        assert df.loc[1, "session"] == "Late NY"

    def test_csv_reloads(self):
        reloaded = DataLoader.load_trades(ExportEngine.trades_to_csv(_trades()))
        assert [t.trade_id for t in reloaded] == ["t1", "t2"]
        assert reloaded[0].r_multiple == 2.0
        assert reloaded[0].tags == frozenset({"account", "a+"})
        assert reloaded[1].r_multiple == -1.0
        assert reloaded[1].session is Session.LATE_NY

    def test_derived_session_rederived_on_reload(self):
        reloaded = DataLoader.load_trades(ExportEngine.trades_to_csv(_trades()))
        assert reloaded[0].session is Session.OVERLAP
        assert not reloaded[0].session_overridden
        assert reloaded[1].session_overridden

    def test_json(self):
        rows = json.loads(ExportEngine.trades_to_json(_trades()))
        assert rows[0]["tradeId"] == "t1"
        assert rows[0]["direction"] == "long"
        assert rows[0]["tags"] == ["a+", "account"]
        assert rows[0]["entryDate"].startswith("2024-03-04T13:00:00")


class TestStatsExport:
    def test_single_row(self):
        csv = ExportEngine.stats_to_csv(AnalyticsEngine.summarise(_trades()))
        header, row = csv.strip().splitlines()
        assert header.startswith("Total Trades,Wins,Losses")
        assert row.startswith("2,1,1")

    def test_unbounded_profit_factor(self):
        stats = AnalyticsEngine.summarise(_trades()[:1])
        assert "Infinity" in ExportEngine.stats_to_csv(stats)


class TestReportExport:
    def test_full_report_is_valid_json(self):
        report = JournalRunner(_trades(), params=JournalParams(projection_horizon=5)).run()
        data = json.loads(ExportEngine.report_to_json(report))
        assert data["stats"]["total_trades"] == 2
        assert len(data["trades"]) == 2
        assert len(data["projection"]["best"]) == 5
        assert data["criteria"]["date_range"] == [None, None]
        assert data["drawdown"]["points"][0]["trade_id"] is None

    def test_report_carries_directions_and_volatility(self):
        report = JournalRunner(_trades(), params=JournalParams(projection_horizon=5)).run()
        data = json.loads(ExportEngine.report_to_json(report))
        assert data["directions"] == [
            {"direction": "long", "trades": 1, "wins": 1, "total_r": 2.0},
            {"direction": "unknown", "trades": 1, "wins": 0, "total_r": -1.0},
        ]
        # neither trade is closed
        assert data["volatility"] == {"points": [], "metrics": None}
        assert data["account_balances"] == []
        assert data["portfolio"] is None
