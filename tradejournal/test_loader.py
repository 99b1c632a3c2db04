"""
test_loader.py
--------------
Unit tests for DataLoader: header mapping, type coercion, bad rows and
params loading.
"""

import logging
from io import StringIO

import pytest

from tradejournal.loader import DataLoader
from tradejournal.models import Direction, JournalParams, Session, TakeProfitHit

JOURNAL_CSV = """\
tradeId,entryDate,entryTime,entryTimezone,direction,entryPrice,exitPrice,slPrice,instrument,strategyId,tags,didHitBE,tpHit
t1,2024-03-04 09:00,09:00,America/New_York,long,100,110,95,EURUSD,s1,account;a+,true,tp1
t2,2024-03-05T10:00:00+02:00,,,Short,100,90,105,GBPUSD,s1,"[""backtest""]",false,
t3,not-a-date,,,long,100,95,95,EURUSD,s2,,
"""


class TestLoadTrades:
    def test_parses_rows_in_file_order(self):
        trades = DataLoader.load_trades(JOURNAL_CSV)
        assert [t.trade_id for t in trades] == ["t1", "t2", "t3"]

    def test_r_multiple_derived(self):
        t1, t2, t3 = DataLoader.load_trades(JOURNAL_CSV)
        assert t1.r_multiple == pytest.approx(2.0)
        assert t2.r_multiple == pytest.approx(2.0)
        assert t3.r_multiple == pytest.approx(-1.0)
        assert t2.direction is Direction.SHORT

    def test_session_from_local_time(self):
        t1 = DataLoader.load_trades(JOURNAL_CSV)[0]
        assert t1.session is Session.OVERLAP

    def test_dates_are_utc(self):
        _, t2, _ = DataLoader.load_trades(JOURNAL_CSV)
        assert t2.entry_date.utcoffset().total_seconds() == 0
        assert t2.entry_date.hour == 8

    def test_tags_semicolon_and_json(self):
        t1, t2, t3 = DataLoader.load_trades(JOURNAL_CSV)
        assert t1.tags == frozenset({"account", "a+"})
        assert t2.tags == frozenset({"backtest"})
        assert t3.tags == frozenset()

    def test_flags_and_tp(self):
        t1, t2, _ = DataLoader.load_trades(JOURNAL_CSV)
        assert t1.did_hit_be is True
        assert t1.tp_hit is TakeProfitHit.TP1
        assert t2.did_hit_be is False
        assert t2.tp_hit is TakeProfitHit.NONE

    def test_bad_date_kept_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tradejournal.loader"):
            trades = DataLoader.load_trades(JOURNAL_CSV)
        assert trades[2].entry_date is None
        assert "unparseable entry_date" in caplog.text

    def test_accepts_file_like(self):
        assert len(DataLoader.load_trades(StringIO(JOURNAL_CSV))) == 3

    def test_r_only_journal(self):
        trades = DataLoader.load_trades("Entry Date,R\n2024-01-01,1.5\n2024-01-02,-1\n")
        assert [t.r_multiple for t in trades] == [1.5, -1.0]
        assert trades[0].trade_id == "row-1"

    def test_blank_rows_skipped(self):
        trades = DataLoader.load_trades("entry_date,r_multiple\n2024-01-01,1\n,\n2024-01-03,-1\n")
        assert len(trades) == 2

    def test_unknown_columns_ignored(self):
        trades = DataLoader.load_trades("entryDate,rMultiple,screenshotUrl\n2024-01-01,2,http://x\n")
        assert trades[0].r_multiple == 2.0

    def test_session_column_is_manual_label(self):
        csv = "entryDate,entryTime,entryTimezone,rMultiple,session\n2024-01-01,09:00,America/New_York,1,Asia\n"
        t = DataLoader.load_trades(csv)[0]
        assert t.session is Session.ASIA
        assert t.session_overridden

    def test_session_rederived_when_not_overridden(self):
        csv = (
            "entryDate,entryTime,entryTimezone,rMultiple,session,sessionOverridden\n"
            "2024-01-01,09:00,America/New_York,1,Asia,False\n"
        )
        t = DataLoader.load_trades(csv)[0]
        assert t.session is Session.OVERLAP
        assert not t.session_overridden


class TestLoadTradesErrors:
    def test_missing_entry_date(self):
        with pytest.raises(ValueError, match="entry_date"):
            DataLoader.load_trades("tradeId,rMultiple\na,1\n")

    def test_no_prices_and_no_r(self):
        with pytest.raises(ValueError, match="rMultiple"):
            DataLoader.load_trades("entryDate,entryPrice\n2024-01-01,100\n")


class TestLoadParams:
    def test_defaults_file_matches_dataclass(self):
        assert DataLoader.load_params() == JournalParams()

    def test_override(self):
        p = DataLoader.load_params("projection_horizon: 10\ntop_pairs: 5\n")
        assert p.projection_horizon == 10
        assert p.top_pairs == 5
        assert p.best_win_rate_cap == 0.95

    def test_empty_document_gives_defaults(self):
        assert DataLoader.load_params("") == JournalParams()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown params"):
            DataLoader.load_params("bogus: 1\n")

    def test_non_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            DataLoader.load_params("- 1\n- 2\n")

    def test_invalid_value(self):
        with pytest.raises(ValueError, match="best_win_rate_cap"):
            DataLoader.load_params("best_win_rate_cap: 2\n")
