"""
accounts.py
-----------
AccountEngine rolls currency P&L up to account and portfolio balances, and
sums profit over a day or a date range.

Profit per trade is ``TradeNormalizer.trade_profit`` (explicit profit, else
risk amount x R, else 0).  Percentages are relative to the initial balance
and are 0 when that balance is not positive.

Days are UTC calendar days.  A daily figure books a trade on its exit date
(entry date when still open); a date-range figure books it on its entry
date, with both ends of the range inclusive whole days.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from tradejournal.models import PORTFOLIO_ID, Account, AccountBalance, Trade
from tradejournal.normalizer import TradeNormalizer

Day = Union[date, datetime]


class AccountEngine:
    """Stateless balance calculator."""

    # ---------------------------------------------------------------------------
    # Balances
    # ---------------------------------------------------------------------------

    @staticmethod
    def account_balance(account: Account, trades: list[Trade]) -> AccountBalance:
        """Balance of *account* given the trades booked to it."""
        initial = account.initial_balance or 0.0
        profit = sum(TradeNormalizer.trade_profit(t) for t in TradeNormalizer.active(trades))
        return AccountBalance(
            account_id=account.account_id,
            initial_balance=initial,
            current_balance=initial + profit,
            total_profit=profit,
            profit_percentage=AccountEngine._percent(profit, initial),
            currency=account.currency,
        )

    @staticmethod
    def all_account_balances(accounts: list[Account], trades: list[Trade]) -> list[AccountBalance]:
        """One balance per account, in account order."""
        return [
            AccountEngine.account_balance(
                account, [t for t in trades if t.account_id == account.account_id]
            )
            for account in accounts
        ]

    @staticmethod
    def portfolio_balance(
        accounts: list[Account], trades: list[Trade], currency: str = "USD"
    ) -> AccountBalance:
        """Sum of every account balance.  Currencies are not converted."""
        balances = AccountEngine.all_account_balances(accounts, trades)
        initial = sum(b.initial_balance for b in balances)
        profit = sum(b.total_profit for b in balances)
        return AccountBalance(
            account_id=PORTFOLIO_ID,
            initial_balance=initial,
            current_balance=sum(b.current_balance for b in balances),
            total_profit=profit,
            profit_percentage=AccountEngine._percent(profit, initial),
            currency=currency,
        )

    @staticmethod
    def trade_profit_percentage(trade: Trade, initial_balance: float) -> float:
        return AccountEngine._percent(TradeNormalizer.trade_profit(trade), initial_balance)

    # ---------------------------------------------------------------------------
    # Profit by date
    # ---------------------------------------------------------------------------

    @staticmethod
    def daily_profit(trades: list[Trade], day: Day) -> float:
        target = AccountEngine._as_date(day)
        total = 0.0
        for t in TradeNormalizer.active(trades):
            booked = AccountEngine._as_date(t.exit_date or t.entry_date)
            if booked is not None and booked == target:
                total += TradeNormalizer.trade_profit(t)
        return total

    @staticmethod
    def date_range_profit(trades: list[Trade], start: Day, end: Day) -> float:
        first, last = AccountEngine._as_date(start), AccountEngine._as_date(end)
        total = 0.0
        for t in TradeNormalizer.active(trades):
            entry = AccountEngine._as_date(t.entry_date)
            if entry is not None and first <= entry <= last:
                total += TradeNormalizer.trade_profit(t)
        return total

    # ---------------------------------------------------------------------------
    # Private helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _percent(profit: float, initial: float) -> float:
        if initial <= 0:
            return 0.0
        return profit / initial * 100

    @staticmethod
    def _as_date(value: Optional[Day]) -> Optional[date]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return TradeNormalizer.to_utc(value).date()
        return value
