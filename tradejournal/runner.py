"""
runner.py
---------
JournalRunner is the orchestrator.  It takes a snapshot of the journal and
the active filters and recomputes every derived result in one pass.

Pipeline
--------
    raw trades ──> normalise ──> filter ──┬──> stats
                                          ├──> drawdown series
                                          ├──> risk ratios
                                          ├──> equity curve
                                          ├──> projection bands
                                          ├──> volatility path
                                          └──> breakdowns
    normalised trades + accounts ──> account / portfolio balances

Balances use the whole journal, not the filtered view: an account balance
does not change with the filters.

Nothing is cached or patched incrementally: the caller owns the trade list
and calls ``run`` again whenever trades or filters change.
"""

from __future__ import annotations

import logging
from typing import Optional

from tradejournal.accounts import AccountEngine
from tradejournal.breakdowns import BreakdownEngine
from tradejournal.drawdown import DrawdownAnalyzer
from tradejournal.engine import AnalyticsEngine
from tradejournal.filters import TradeFilter
from tradejournal.models import Account, FilterCriteria, JournalParams, JournalReport, Trade
from tradejournal.normalizer import TradeNormalizer
from tradejournal.projector import EquityProjector, RandomSource
from tradejournal.ratios import RiskRatioCalculator
from tradejournal.volatility import VolatilityModel

logger = logging.getLogger(__name__)


class JournalRunner:
    """Top-level runner.  Construct once per snapshot, call ``run``.

    Parameters
    ----------
    trades : list[Trade]
        The caller's journal snapshot.  Never modified.
    params : JournalParams, optional
        Frozen analytics configuration.
    rng : RandomSource, optional
        Random source for the projection, then the volatility path; a fresh
        generator when omitted.
    accounts : list[Account], optional
        Accounts to roll balances up for.  Without them the report carries
        no balances and no portfolio.
    """

    def __init__(
        self,
        trades: list[Trade],
        params: Optional[JournalParams] = None,
        rng: Optional[RandomSource] = None,
        accounts: Optional[list[Account]] = None,
    ) -> None:
        self.trades = trades
        self.params = params or JournalParams()
        self.accounts = list(accounts or [])
        self._rng = rng

    # ---------------------------------------------------------------------------
    # Public
    # ---------------------------------------------------------------------------

    def run(self, criteria: Optional[FilterCriteria] = None) -> JournalReport:
        """Normalise, filter and compute the full report."""
        criteria = criteria or FilterCriteria()
        p = self.params

        normalised = TradeNormalizer.normalize_all(self.trades)
        filtered = TradeFilter.apply(normalised, criteria)
        logger.debug("Filtered %d of %d trades", len(filtered), len(normalised))

        portfolio = None
        if self.accounts:
            portfolio = AccountEngine.portfolio_balance(self.accounts, normalised)

        return JournalReport(
            criteria=criteria,
            trades=filtered,
            stats=AnalyticsEngine.summarise(filtered),
            drawdown=DrawdownAnalyzer.analyse(filtered),
            ratios=RiskRatioCalculator.compute(filtered, p),
            equity_curve=AnalyticsEngine.equity_curve(filtered, p.fixed_r_value),
            projection=EquityProjector.project(filtered, rng=self._rng, params=p),
            sessions=BreakdownEngine.by_session(filtered),
            hours=BreakdownEngine.by_hour(filtered),
            weekdays=BreakdownEngine.by_weekday(filtered),
            months=BreakdownEngine.by_month(filtered),
            strategies=BreakdownEngine.strategy_performance(filtered),
            top_pairs=BreakdownEngine.most_traded_pairs(filtered, p.top_pairs),
            directions=BreakdownEngine.direction_split(filtered),
            break_even_outcome=BreakdownEngine.break_even_outcome(filtered),
            take_profit=BreakdownEngine.take_profit_stats(filtered),
            volatility=VolatilityModel.simulate(filtered, rng=self._rng, params=p),
            account_balances=AccountEngine.all_account_balances(self.accounts, normalised),
            portfolio=portfolio,
        )
