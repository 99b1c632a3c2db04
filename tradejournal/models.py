"""
models.py
---------
Immutable domain objects for the trade journal.  Every trade, filter and
derived result the analytics layer produces is represented here.

Trades are frozen.  An "edit" is ``dataclasses.replace`` followed by a fresh
pass through ``TradeNormalizer.normalize``.  Derived results (stats, series,
ratios, projections) are plain value objects with no lifecycle of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

import pandas as pd


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Direction(Enum):
    """Side of the position."""

    LONG = "long"
    SHORT = "short"


class Session(Enum):
    """Coarse trading-hours bucket, keyed by UTC hour of entry."""

    ASIA = "Asia"            # [00, 08) UTC
    LONDON = "London"        # [08, 12) UTC
    OVERLAP = "Overlap"      # [12, 16) UTC
    NY = "NY"                # [16, 20) UTC
    LATE_NY = "Late NY"      # [20, 24) UTC
    UNKNOWN = "Unknown"      # time missing or unparseable


class Outcome(Enum):
    """Three-way classification of a closed trade."""

    WIN = "win"
    LOSS = "loss"
    BREAK_EVEN = "breakeven"


class TakeProfitHit(Enum):
    """Highest take-profit level reached."""

    NONE = "none"
    TP1 = "tp1"
    TP2 = "tp2"
    TP3 = "tp3"


class StrategyType(Enum):
    """Data mode.  Encoded on trades as a tag, not a field."""

    LIVE = "live"            # trades carrying the "account" tag
    BACKTEST = "backtest"    # trades carrying the "backtest" tag


LIVE_TAG = "account"
BACKTEST_TAG = "backtest"


# ---------------------------------------------------------------------------
# JournalParams  (the single source of truth for every tunable knob)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalParams:
    """All configurable analytics parameters.  Loaded from default_params.yaml."""

    # Projection horizon
    projection_horizon: int = 100

    # Best-case scenario adjustments
    best_win_rate_multiplier: float = 1.15
    best_win_rate_cap: float = 0.95
    best_avg_win_multiplier: float = 1.1
    best_avg_loss_multiplier: float = 0.9

    # Worst-case scenario adjustments
    worst_win_rate_multiplier: float = 0.85
    worst_win_rate_floor: float = 0.05
    worst_avg_win_multiplier: float = 0.9
    worst_avg_loss_multiplier: float = 1.1

    # Fallbacks when the sample has no wins / no losses
    default_avg_win_r: float = 1.5
    default_avg_loss_r: float = -1.0

    # Calmar annualisation floor
    calmar_min_span_days: float = 30.0

    # Equity curve / breakdowns
    fixed_r_value: float = 1.0
    top_pairs: int = 3

    # Stochastic volatility model (mean-reverting, per trade)
    volatility_initial: float = 0.02
    volatility_long_term_mean: float = 0.02
    volatility_kappa: float = 0.3            # rate of mean reversion
    volatility_sigma: float = 0.2            # volatility of volatility
    volatility_shock_scale: float = 0.01     # shock = (u - 0.5) * scale
    volatility_floor: float = 0.001
    volatility_cluster_multiplier: float = 1.5
    volatility_recent_window: int = 5

    # ---------------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------------

    def __post_init__(self) -> None:  # noqa: D105
        if self.projection_horizon < 0:
            raise ValueError("projection_horizon must be >= 0")
        if not (0 <= self.best_win_rate_cap <= 1):
            raise ValueError("best_win_rate_cap must be in [0, 1]")
        if not (0 <= self.worst_win_rate_floor <= 1):
            raise ValueError("worst_win_rate_floor must be in [0, 1]")
        if self.worst_win_rate_floor > self.best_win_rate_cap:
            raise ValueError("worst_win_rate_floor must be <= best_win_rate_cap")
        for name in (
            "best_win_rate_multiplier",
            "best_avg_win_multiplier",
            "best_avg_loss_multiplier",
            "worst_win_rate_multiplier",
            "worst_avg_win_multiplier",
            "worst_avg_loss_multiplier",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.default_avg_win_r <= 0:
            raise ValueError("default_avg_win_r must be > 0")
        if self.default_avg_loss_r >= 0:
            raise ValueError("default_avg_loss_r must be < 0")
        if self.calmar_min_span_days <= 0:
            raise ValueError("calmar_min_span_days must be > 0")
        if self.fixed_r_value < 0:
            raise ValueError("fixed_r_value must be >= 0")
        if self.top_pairs < 1:
            raise ValueError("top_pairs must be >= 1")
        for name in ("volatility_initial", "volatility_long_term_mean", "volatility_floor"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if not (0 <= self.volatility_kappa <= 1):
            raise ValueError("volatility_kappa must be in [0, 1]")
        if self.volatility_sigma < 0:
            raise ValueError("volatility_sigma must be >= 0")
        if self.volatility_shock_scale < 0:
            raise ValueError("volatility_shock_scale must be >= 0")
        if self.volatility_cluster_multiplier <= 0:
            raise ValueError("volatility_cluster_multiplier must be > 0")
        if self.volatility_recent_window < 2:
            raise ValueError("volatility_recent_window must be >= 2")


# ---------------------------------------------------------------------------
# Trade  (a single journal entry, frozen once normalised)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Trade:
    """One journal entry.  Read-only to every analytics component."""

    trade_id: str
    entry_date: Optional[datetime] = None
    exit_date: Optional[datetime] = None
    entry_time: Optional[str] = None        # local "HH:MM", independent of entry_date
    exit_time: Optional[str] = None
    entry_timezone: Optional[str] = None    # resolves entry_time to UTC
    exit_timezone: Optional[str] = None

    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    sl_price: Optional[float] = None        # stop-loss
    tp1_price: Optional[float] = None

    direction: Optional[Direction] = None
    r_multiple: float = 0.0                 # derived by the normaliser
    session: Session = Session.UNKNOWN      # derived from entry time unless overridden
    session_overridden: bool = False        # True when session was set by hand

    # Associative keys
    strategy_id: Optional[str] = None
    account_id: Optional[str] = None
    pair: Optional[str] = None
    instrument: Optional[str] = None

    # Descriptive fields used by the filter pipeline
    timeframe: Optional[str] = None
    entry_timeframe: Optional[str] = None
    htf_timeframe: Optional[str] = None
    entry_type: Optional[str] = None
    ob_type: Optional[str] = None

    tags: frozenset[str] = field(default_factory=frozenset)
    behavioral_tags: frozenset[str] = field(default_factory=frozenset)
    is_placeholder: bool = False

    # Trade management outcome
    did_hit_be: bool = False
    tp_hit_after_be: bool = False
    tp_hit: TakeProfitHit = TakeProfitHit.NONE

    # Currency figures (optional; R is the primary unit)
    risk_amount: Optional[float] = None
    profit: Optional[float] = None

    @property
    def symbol(self) -> Optional[str]:
        """Instrument name, falling back to the legacy ``pair`` field."""
        return self.instrument or self.pair


# ---------------------------------------------------------------------------
# FilterCriteria  (every field optional; None means "no constraint")
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilterCriteria:
    """Active filter state, owned by the caller."""

    session: Optional[Session] = None
    strategy: Optional[str] = None
    direction: Optional[str] = None
    pair: Optional[str] = None
    account_id: Optional[str] = None
    date_range: tuple[Optional[datetime], Optional[datetime]] = (None, None)
    timeframe: Optional[str] = None
    tag: Optional[str] = None
    strategy_type: Optional[str] = None
    entry_type: Optional[str] = None
    ob_type: Optional[str] = None


# ---------------------------------------------------------------------------
# Derived value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TradeStats:
    """Scalar KPIs for a trade set.  All zeros for the empty set."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    break_even_trades: int = 0
    win_rate: float = 0.0            # %
    break_even_rate: float = 0.0     # %
    average_r_multiple: float = 0.0
    total_profit: float = 0.0        # R
    profit_factor: float = 0.0       # inf when there are wins and no losses
    expectancy: float = 0.0          # R per trade
    max_drawdown: float = 0.0        # R


@dataclass(frozen=True)
class CurvePoint:
    """One point of the cumulative-R curve.  Index 0 is the synthetic start."""

    index: int
    trade_id: Optional[str]          # None for the start point
    entry_date: Optional[datetime]
    r_multiple: float
    cumulative_r: float
    peak: float
    drawdown: float                  # peak - cumulative_r, always >= 0


@dataclass(frozen=True)
class RecoveryEpisode:
    """A completed drawdown: first drop below the peak until a new peak."""

    start_date: datetime
    end_date: datetime
    peak_before: float
    recovered_at: float              # cumulative R at the new peak
    trough: float
    days: float


@dataclass(frozen=True)
class DrawdownSeries:
    """Everything the drawdown panel needs."""

    points: list[CurvePoint] = field(default_factory=list)
    max_drawdown: float = 0.0
    max_consecutive_losses: int = 0
    episodes: list[RecoveryEpisode] = field(default_factory=list)
    avg_recovery_days: int = 0
    max_recovery_days: int = 0

    @property
    def cumulative_r(self) -> list[float]:
        """Cumulative R after each trade (start point excluded)."""
        return [p.cumulative_r for p in self.points[1:]]


@dataclass(frozen=True)
class RiskRatios:
    """Risk-adjusted return ratios over R-multiples (risk-free rate 0)."""

    sharpe: float = 0.0
    sortino: float = 0.0             # inf when no losing trades and mean > 0
    mar: float = 0.0
    calmar: float = 0.0


@dataclass(frozen=True)
class EquityPoint:
    """One point of the equity curve chart."""

    index: int
    trade_id: Optional[str]
    entry_date: Optional[datetime]
    instrument: Optional[str]
    r_multiple: float
    cumulative_r: float
    fixed_r: float                   # +fixed_r_value per win, -1 per loss
    is_profit: bool
    is_break_even: bool
    by_instrument: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ScenarioParams:
    """Inputs of one projected path."""

    win_rate: float
    avg_win_r: float
    avg_loss_r: float


@dataclass(frozen=True)
class ProjectionBands:
    """Best/worst forward paths anchored at the last real cumulative R."""

    anchor_index: int = 0
    anchor_r: float = 0.0
    best: list[float] = field(default_factory=list)
    worst: list[float] = field(default_factory=list)
    best_params: Optional[ScenarioParams] = None
    worst_params: Optional[ScenarioParams] = None


@dataclass(frozen=True)
class BucketStats:
    """Win / break-even / loss counts for one bucket (hour, day, session...)."""

    label: str
    total: int = 0
    won: int = 0
    break_even: int = 0
    lost: int = 0
    win_rate: float = 0.0
    break_even_rate: float = 0.0
    loss_rate: float = 0.0


@dataclass(frozen=True)
class StrategyPerformance:
    """Per-strategy summary row."""

    name: str
    win_rate: float
    total_r: float
    profit: float                    # currency
    trades_count: int
    last_trade_date: Optional[datetime]


@dataclass(frozen=True)
class BreakEvenOutcome:
    """What happened after price reached break-even."""

    be_trades: int = 0
    hit_tp_after_be: int = 0
    hit_sl_after_be: int = 0
    percent_to_tp: float = 0.0
    percent_to_sl: float = 0.0


@dataclass(frozen=True)
class TakeProfitStats:
    """R distribution of trades that reached at least TP1."""

    trades_hit_tp: int = 0
    avg_r: float = 0.0
    min_r: float = 0.0
    max_r: float = 0.0


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


PORTFOLIO_ID = "portfolio"


@dataclass(frozen=True)
class Account:
    """A trading account that trades point at through ``account_id``."""

    account_id: str
    name: Optional[str] = None
    currency: str = "USD"
    initial_balance: float = 0.0


@dataclass(frozen=True)
class AccountBalance:
    """Balance roll-up for one account (or the whole portfolio)."""

    account_id: str
    initial_balance: float = 0.0
    current_balance: float = 0.0
    total_profit: float = 0.0
    profit_percentage: float = 0.0   # 0 when the initial balance is not > 0
    currency: str = "USD"


# ---------------------------------------------------------------------------
# Stochastic volatility
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VolatilityPoint:
    """Volatility state after one closed trade."""

    index: int
    trade_id: str
    date: datetime                   # exit date
    volatility: float                # 4 dp
    r_return: float                  # 2 dp
    long_term_mean: float


@dataclass(frozen=True)
class VolatilityMetrics:
    """Summary of a simulated volatility path.  Percent fields are x100."""

    current: float = 0.0
    average: float = 0.0
    peak: float = 0.0
    minimum: float = 0.0
    range: float = 0.0
    current_vs_mean_pct: float = 0.0
    return_correlation: float = 0.0
    clusters: int = 0
    mean_reversion_strength: float = 0.0
    recent_trend_pct: float = 0.0


@dataclass(frozen=True)
class VolatilitySeries:
    points: list[VolatilityPoint] = field(default_factory=list)
    metrics: Optional[VolatilityMetrics] = None


# ---------------------------------------------------------------------------
# JournalReport  (top-level output bag)
# ---------------------------------------------------------------------------


@dataclass
class JournalReport:
    """Everything the presentation layer needs after one recomputation."""

    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    trades: list[Trade] = field(default_factory=list)
    stats: TradeStats = field(default_factory=TradeStats)
    drawdown: DrawdownSeries = field(default_factory=DrawdownSeries)
    ratios: RiskRatios = field(default_factory=RiskRatios)
    equity_curve: list[EquityPoint] = field(default_factory=list)
    projection: ProjectionBands = field(default_factory=ProjectionBands)
    sessions: list[BucketStats] = field(default_factory=list)
    hours: list[BucketStats] = field(default_factory=list)
    weekdays: list[BucketStats] = field(default_factory=list)
    months: list[BucketStats] = field(default_factory=list)
    strategies: list[StrategyPerformance] = field(default_factory=list)
    top_pairs: list[tuple[str, int]] = field(default_factory=list)
    directions: pd.DataFrame = field(default_factory=pd.DataFrame)
    break_even_outcome: BreakEvenOutcome = field(default_factory=BreakEvenOutcome)
    take_profit: TakeProfitStats = field(default_factory=TakeProfitStats)
    volatility: VolatilitySeries = field(default_factory=VolatilitySeries)
    account_balances: list[AccountBalance] = field(default_factory=list)
    portfolio: Optional[AccountBalance] = None
