"""
session.py
----------
SessionClassifier maps a local clock time plus a named timezone to one of the
trading-session buckets.

Offset policy
-------------
Offsets are fixed per zone name and never DST-adjusted; changing the table
relabels existing trades.  Zone names not in the table are treated as UTC.

    America/New_York   UTC-4
    Europe/London      UTC+0
    Asia/Tokyo         UTC+9
    Australia/Sydney   UTC+10

Buckets (UTC hour, half-open)
-----------------------------
    [00, 08) Asia   [08, 12) London   [12, 16) Overlap
    [16, 20) NY     [20, 24) Late NY
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

import pytz

from tradejournal.models import Session

logger = logging.getLogger(__name__)

UTC_OFFSETS: dict[str, int] = {
    "America/New_York": -4,
    "Europe/London": 0,
    "Asia/Tokyo": 9,
    "Australia/Sydney": 10,
    "UTC": 0,
}

# (exclusive upper UTC hour, session), checked in order
SESSION_BOUNDARIES: tuple[tuple[int, Session], ...] = (
    (8, Session.ASIA),
    (12, Session.LONDON),
    (16, Session.OVERLAP),
    (20, Session.NY),
    (24, Session.LATE_NY),
)

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


class SessionClassifier:
    """Stateless, deterministic session lookup."""

    @staticmethod
    def offset_for(timezone_name: Optional[str]) -> int:
        """Fixed UTC offset in hours for *timezone_name* (0 when unknown)."""
        if not timezone_name:
            return 0
        return UTC_OFFSETS.get(timezone_name, 0)

    @staticmethod
    def parse_hour(time_str: Optional[str]) -> Optional[int]:
        """Return the hour of an ``HH:MM`` string, or None if it is not one."""
        if not time_str:
            return None
        match = _TIME_RE.match(time_str)
        if match is None:
            return None
        hour, minute = int(match.group(1)), int(match.group(2))
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return hour

    @staticmethod
    def session_for_utc_hour(utc_hour: int) -> Session:
        hour = utc_hour % 24
        for upper, session in SESSION_BOUNDARIES:
            if hour < upper:
                return session
        return Session.UNKNOWN  # unreachable for ints

    @staticmethod
    def classify(time_str: Optional[str], timezone_name: Optional[str] = "UTC") -> Session:
        """Classify a local ``HH:MM`` time in *timezone_name*.

        Parameters
        ----------
        time_str : str or None
            Local wall-clock time.  Seconds are accepted and ignored.
        timezone_name : str or None
            Zone name looked up in ``UTC_OFFSETS``.

        Returns
        -------
        Session
            ``Session.UNKNOWN`` if the time is missing or malformed.
        """
        hour = SessionClassifier.parse_hour(time_str)
        if hour is None:
            logger.debug("Unparseable entry time %r; session Unknown", time_str)
            return Session.UNKNOWN
        utc_hour = (hour - SessionClassifier.offset_for(timezone_name)) % 24
        return SessionClassifier.session_for_utc_hour(utc_hour)

    @staticmethod
    def classify_datetime(dt: Optional[datetime]) -> Session:
        """Classify an absolute timestamp by its UTC hour (naive ⇒ UTC)."""
        if dt is None:
            return Session.UNKNOWN
        if dt.tzinfo is None:
            dt = pytz.utc.localize(dt)
        return SessionClassifier.session_for_utc_hour(dt.astimezone(pytz.utc).hour)
