"""
loader.py
---------
DataLoader handles trade CSV ingestion and parameter loading.

Responsibilities
----------------
1. Parse a trades CSV (as exported by the journal) into a DataFrame.
2. Map camelCase or snake_case headers onto Trade fields, case-insensitively.
3. Coerce prices to floats and timestamps to UTC-aware datetimes.
4. Build normalised Trade objects, preserving file order.
5. Load JournalParams from YAML.

Timezone policy
---------------
Naive timestamps are *assumed* to be UTC and localised; timestamps carrying
an offset are converted to UTC.  Local clock strings (``entryTime``) are kept
verbatim; the session classifier resolves them.

Bad data
--------
A missing required column raises ``ValueError``.  Blank rows are skipped.
Unparseable values become ``None`` and the row is kept, so a bad date only
drops the trade from time-ordered calculations, not from the journal.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
import pytz
import yaml

from tradejournal.models import JournalParams, Session, TakeProfitHit, Trade
from tradejournal.normalizer import TradeNormalizer

logger = logging.getLogger(__name__)

DEFAULTS_PATH = Path(__file__).resolve().parent / "default_params.yaml"
UTC = pytz.utc

REQUIRED_TRADE_COLUMNS = {"entry_date"}
PRICE_COLUMNS = ["entry_price", "exit_price", "sl_price", "tp1_price", "risk_amount", "profit"]
DATE_COLUMNS = ["entry_date", "exit_date"]
BOOL_COLUMNS = ["is_placeholder", "did_hit_be", "tp_hit_after_be"]
TAG_COLUMNS = ["tags", "behavioral_tags"]

# Headers that do not collapse onto a field name
_ALIASES = {
    "id": "trade_id",
    "tradeid": "trade_id",
    "symbol": "instrument",
    "stoploss": "sl_price",
    "sl": "sl_price",
    "r": "r_multiple",
    "strategy": "strategy_id",
    "account": "account_id",
    "didhitbe": "did_hit_be",
    "tphitafterbe": "tp_hit_after_be",
}

_TRUE = {"true", "1", "yes", "y", "t"}


def _collapse(name: str) -> str:
    return name.strip().replace("_", "").replace(" ", "").lower()


class DataLoader:
    """Stateless CSV loader + YAML params loader."""

    # ---------------------------------------------------------------------------
    # Trades
    # ---------------------------------------------------------------------------

    @staticmethod
    def load_trades(raw: Union[str, StringIO]) -> list[Trade]:
        """Read and normalise a trades CSV.

        Parameters
        ----------
        raw : str or file-like
            The CSV content.

        Returns
        -------
        list[Trade]
            Normalised trades in file order.

        Raises
        ------
        ValueError
            If required columns are missing, or neither prices nor an R
            column are present.
        """
        df = DataLoader.read_trades_frame(raw)

        trades: list[Trade] = []
        for n, (_, row) in enumerate(df.iterrows(), start=1):
            if row.isna().all():
                continue
            trade = DataLoader._row_to_trade(row, n)
            if trade.entry_date is None:
                logger.warning("Row %d (%s): unparseable entry_date", n, trade.trade_id)
            trades.append(TradeNormalizer.normalize(trade))
        return trades

    @staticmethod
    def read_trades_frame(raw: Union[str, StringIO]) -> pd.DataFrame:
        """CSV → DataFrame with canonical snake_case columns and coerced types."""
        df = pd.read_csv(raw if isinstance(raw, StringIO) else StringIO(raw), dtype=str)

        # ------------------------------------------------------------------
        # Header normalisation: entryDate, entry_date, "Entry Date" all map
        # to entry_date.  Unknown columns are dropped.
        # ------------------------------------------------------------------
        canonical = {_collapse(f.name): f.name for f in fields(Trade)}
        canonical.update(_ALIASES)
        rename_map = {}
        for col in df.columns:
            key = _collapse(str(col))
            if key in canonical and canonical[key] not in rename_map.values():
                rename_map[col] = canonical[key]
        df = df.rename(columns=rename_map)[list(rename_map.values())]

        missing = REQUIRED_TRADE_COLUMNS - set(df.columns)
        if missing:
            raise ValueError(
                f"Trades CSV is missing required columns: {sorted(missing)}. "
                f"Found: {sorted(df.columns)}"
            )
        has_prices = {"entry_price", "exit_price", "sl_price"} <= set(df.columns)
        if not has_prices and "r_multiple" not in df.columns:
            raise ValueError(
                "Trades CSV needs either entryPrice/exitPrice/slPrice columns "
                "or an rMultiple column."
            )

        # ------------------------------------------------------------------
        # Type coercion
        # ------------------------------------------------------------------
        for col in PRICE_COLUMNS + ["r_multiple"]:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce")

        for col in DATE_COLUMNS:
            if col in df.columns:
                df[col] = df[col].map(DataLoader._to_datetime)

        return df

    # ---------------------------------------------------------------------------
    # Params
    # ---------------------------------------------------------------------------

    @staticmethod
    def load_params(raw: Union[str, StringIO, None] = None) -> JournalParams:
        """Build JournalParams from YAML text (defaults file when *raw* is None).

        Raises
        ------
        ValueError
            Unknown keys, a non-mapping document, or values failing
            JournalParams validation.
        """
        if raw is None:
            with open(DEFAULTS_PATH) as f:
                data = yaml.safe_load(f)
        else:
            data = yaml.safe_load(raw if isinstance(raw, str) else raw.read())

        if data is None:
            return JournalParams()
        if not isinstance(data, dict):
            raise ValueError("Params YAML must be a mapping of name: value")

        known = {f.name for f in fields(JournalParams)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown params: {sorted(unknown)}")
        return JournalParams(**data)

    # ---------------------------------------------------------------------------
    # Private helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _row_to_trade(row: pd.Series, n: int) -> Trade:
        def text(col: str) -> Optional[str]:
            val = row.get(col)
            if val is None or pd.isna(val):
                return None
            val = str(val).strip()
            return val or None

        def number(col: str) -> Optional[float]:
            val = row.get(col)
            if val is None or pd.isna(val):
                return None
            return float(val)

        # A session cell is a manual label unless the file says otherwise
        # (exports carry sessionOverridden for derived sessions).
        session = DataLoader._session(text("session"))
        if "session_overridden" in row.index:
            overridden = (text("session_overridden") or "").lower() in _TRUE
        else:
            overridden = session is not Session.UNKNOWN

        kwargs: dict[str, Any] = {
            "trade_id": text("trade_id") or f"row-{n}",
            "entry_date": DataLoader._none_if_nat(row.get("entry_date")),
            "exit_date": DataLoader._none_if_nat(row.get("exit_date")),
            "direction": TradeNormalizer.normalize_direction(text("direction")),
            "r_multiple": number("r_multiple") or 0.0,
            "session": session if overridden else Session.UNKNOWN,
            "session_overridden": overridden,
            "tp_hit": DataLoader._tp_hit(text("tp_hit")),
        }
        for col in PRICE_COLUMNS:
            kwargs[col] = number(col)
        for col in BOOL_COLUMNS:
            kwargs[col] = (text(col) or "").lower() in _TRUE
        for col in TAG_COLUMNS:
            kwargs[col] = DataLoader._tags(text(col))
        for col in (
            "entry_time", "exit_time", "entry_timezone", "exit_timezone",
            "strategy_id", "account_id", "pair", "instrument", "timeframe",
            "entry_timeframe", "htf_timeframe", "entry_type", "ob_type",
        ):
            kwargs[col] = text(col)
        return Trade(**kwargs)

    @staticmethod
    def _to_datetime(value: Any) -> Optional[datetime]:
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return None
        ts = pd.to_datetime(value, errors="coerce")
        if pd.isna(ts):
            return None
        ts = ts.tz_localize(UTC) if ts.tzinfo is None else ts.tz_convert(UTC)
        return ts.to_pydatetime()

    @staticmethod
    def _none_if_nat(value: Any) -> Optional[datetime]:
        if value is None or pd.isna(value):
            return None
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()
        return value

    @staticmethod
    def _tags(value: Optional[str]) -> frozenset[str]:
        """``a;b`` or a JSON array."""
        if not value:
            return frozenset()
        if value.startswith("[") and value.endswith("]"):
            try:
                return frozenset(str(v).strip() for v in json.loads(value) if str(v).strip())
            except json.JSONDecodeError:
                logger.warning("Malformed tag list %r; splitting on ';'", value)
                value = value[1:-1]
        return frozenset(tag.strip() for tag in value.split(";") if tag.strip())

    @staticmethod
    def _session(value: Optional[str]) -> Session:
        if not value:
            return Session.UNKNOWN
        for session in Session:
            if value == session.value or value.upper().replace(" ", "_") == session.name:
                return session
        return Session.UNKNOWN

    @staticmethod
    def _tp_hit(value: Optional[str]) -> TakeProfitHit:
        try:
            return TakeProfitHit((value or "none").lower())
        except ValueError:
            return TakeProfitHit.NONE
