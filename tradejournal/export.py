"""
export.py
---------
ExportEngine produces downloadable artefacts.

Outputs
-------
* ``params.json`` / ``params.yaml``: full JournalParams as a flat object
* ``trades.csv`` / ``trades.json``: the (filtered) trade table
* ``stats.csv``: summary KPIs as a single-row CSV
* ``report.json``: the whole JournalReport

All methods return ``str`` so callers can hand them straight to a download
or a file write.  Non-finite floats (an unbounded profit factor or Sortino)
are written as the string ``"Infinity"`` so the JSON stays standard.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, fields
from datetime import datetime
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
import yaml

from tradejournal.models import JournalParams, JournalReport, Trade, TradeStats
from tradejournal.normalizer import TradeNormalizer

# Column order of the trade export; header names match the journal's CSV.
TRADE_COLUMNS = {
    "trade_id": "tradeId",
    "strategy_id": "strategyId",
    "account_id": "accountId",
    "instrument": "instrument",
    "pair": "pair",
    "direction": "direction",
    "entry_date": "entryDate",
    "exit_date": "exitDate",
    "entry_time": "entryTime",
    "exit_time": "exitTime",
    "entry_timezone": "entryTimezone",
    "exit_timezone": "exitTimezone",
    "entry_price": "entryPrice",
    "exit_price": "exitPrice",
    "sl_price": "slPrice",
    "tp1_price": "tp1Price",
    "r_multiple": "rMultiple",
    "session": "session",
    "session_overridden": "sessionOverridden",
    "timeframe": "timeframe",
    "entry_timeframe": "entryTimeframe",
    "htf_timeframe": "htfTimeframe",
    "entry_type": "entryType",
    "ob_type": "obType",
    "tags": "tags",
    "behavioral_tags": "behavioralTags",
    "is_placeholder": "isPlaceholder",
    "did_hit_be": "didHitBE",
    "tp_hit_after_be": "tpHitAfterBE",
    "tp_hit": "tpHit",
    "risk_amount": "riskAmount",
    "profit": "profit",
}


class ExportEngine:
    """Stateless export utility."""

    # ---------------------------------------------------------------------------
    # Configuration exports
    # ---------------------------------------------------------------------------

    @staticmethod
    def params_to_json(params: JournalParams) -> str:
        """Serialise JournalParams to a pretty-printed JSON string."""
        return json.dumps(asdict(params), indent=2)

    @staticmethod
    def params_to_yaml(params: JournalParams) -> str:
        """Serialise JournalParams to a YAML string."""
        return yaml.dump(asdict(params), default_flow_style=False, sort_keys=False)

    # ---------------------------------------------------------------------------
    # Trade exports
    # ---------------------------------------------------------------------------

    @staticmethod
    def trades_to_csv(trades: list[Trade]) -> str:
        """Convert trades to a CSV string that ``DataLoader.load_trades`` reads back.

        An empty list gives a header-only CSV.
        """
        return ExportEngine.trades_df(trades).to_csv(index=False)

    @staticmethod
    def trades_to_json(trades: list[Trade]) -> str:
        rows = [
            {TRADE_COLUMNS[k]: ExportEngine._plain(v) for k, v in ExportEngine._trade_row(t).items()}
            for t in trades
        ]
        return json.dumps(rows, indent=2)

    @staticmethod
    def stats_to_csv(stats: TradeStats) -> str:
        """Export summary KPIs as a one-row CSV."""
        row: dict[str, Any] = {
            "Total Trades": stats.total_trades,
            "Wins": stats.winning_trades,
            "Losses": stats.losing_trades,
            "Break Even": stats.break_even_trades,
            "Win Rate (%)": round(stats.win_rate, 2),
            "Break Even Rate (%)": round(stats.break_even_rate, 2),
            "Average R": round(stats.average_r_multiple, 4),
            "Total R": round(stats.total_profit, 4),
            "Profit Factor": ExportEngine._plain(stats.profit_factor),
            "Expectancy (R)": round(stats.expectancy, 4),
            "Max Drawdown (R)": round(stats.max_drawdown, 4),
        }
        return pd.DataFrame([row]).to_csv(index=False)

    @staticmethod
    def report_to_json(report: JournalReport) -> str:
        """Serialise every section of *report* (trades included)."""
        payload = {
            f.name: ExportEngine._plain(getattr(report, f.name))
            for f in fields(report)
            if f.name != "trades"
        }
        payload["trades"] = json.loads(ExportEngine.trades_to_json(report.trades))
        return json.dumps(payload, indent=2)

    # ---------------------------------------------------------------------------
    # Internal DataFrame builders
    # ---------------------------------------------------------------------------

    @staticmethod
    def trades_df(trades: list[Trade]) -> pd.DataFrame:
        rows = []
        for t in trades:
            row = ExportEngine._trade_row(t)
            row["entry_date"] = t.entry_date.isoformat() if t.entry_date else None
            row["exit_date"] = t.exit_date.isoformat() if t.exit_date else None
            row["tags"] = ";".join(sorted(t.tags))
            row["behavioral_tags"] = ";".join(sorted(t.behavioral_tags))
            rows.append({TRADE_COLUMNS[k]: ExportEngine._plain(v) for k, v in row.items()})
        df = pd.DataFrame(rows, columns=list(TRADE_COLUMNS.values()))
        df["riskReward"] = [TradeNormalizer.risk_reward_label(t) for t in trades]
        return df

    @staticmethod
    def _trade_row(trade: Trade) -> dict[str, Any]:
        return {k: getattr(trade, k) for k in TRADE_COLUMNS}

    @staticmethod
    def _plain(value: Any) -> Any:
        """Recursively convert dataclasses, enums, dates and sets to JSON types."""
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, pd.DataFrame):
            return [ExportEngine._plain(r) for r in value.to_dict(orient="records")]
        if isinstance(value, np.generic):
            return ExportEngine._plain(value.item())
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, float):
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            if math.isnan(value):
                return None
            return value
        if isinstance(value, (set, frozenset)):
            return sorted(ExportEngine._plain(v) for v in value)
        if isinstance(value, dict):
            return {str(k): ExportEngine._plain(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [ExportEngine._plain(v) for v in value]
        if hasattr(value, "__dataclass_fields__"):
            return {f.name: ExportEngine._plain(getattr(value, f.name)) for f in fields(value)}
        return value
