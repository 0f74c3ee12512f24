"""
Analytics service: read-only financial summaries over the ledger.

Provides functionality for:
- Monthly income/expense aggregation and trends
- Savings rate (cash-flow and net-worth-change definitions)
- Category spending ranking
- Daily chart series with a reconstructed running balance
- Multi-period comparison and a financial health score

Windows in months are calendar-aligned and include the month of
``for_date``; windows in days end on ``for_date``. Only successful
transactions are counted. Storage failures never propagate: each public
method logs the error and returns an empty or zeroed result.
"""

import functools
import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional

import pandas as pd

from financaar.config import (
    ANALYTICS_PERIODS,
    BALANCE_TIERS,
    CHART_MAX_AMPLITUDE,
    DEFAULT_CATEGORY_WINDOW,
    DEFAULT_CHART_DAYS,
    DEFAULT_MONTHLY_WINDOW,
    EMERGENCY_FUND_MONTHS,
    IMPROVING_TREND_POINTS,
    LONG_TREND_PERIOD,
    POSITIVE_NET_SAVINGS_POINTS,
    SAVINGS_RATE_BANDS,
    SAVINGS_TARGET_RATE,
    SHORT_TREND_PERIOD,
    STABILITY_WINDOW,
    STEADY_TREND_POINTS,
    ZERO_NET_SAVINGS_POINTS,
)
from financaar.db import FinanceRepository
from financaar.models import BALANCE_EFFECT, TransactionStatus, TransactionType

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["id", "type", "amount", "date", "category_id", "category_name"]
INCOME = TransactionType.INCOME.value
EXPENSE = TransactionType.EXPENSE.value
EFFECT_BY_TYPE = {t.value: sign for t, sign in BALANCE_EFFECT.items()}
RATE_EPSILON = 0.01


class InvalidWindowError(ValueError):
    """Raised for a non-positive month or day window."""


@dataclass
class MonthlySummary:
    """Income and expense totals for one calendar month."""

    month: str  # YYYY-MM
    income: float = 0.0
    expense: float = 0.0
    net: float = 0.0
    transaction_count: int = 0
    savings_rate: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SavingsRate:
    """
    Savings over a window under both definitions.

    ``savings_rate`` is the net-worth-change rate clamped at 0 for display;
    ``raw_savings_rate`` keeps the sign.
    """

    months: int = 0
    total_income: float = 0.0
    total_expense: float = 0.0
    cash_flow: float = 0.0  # income - expense
    cash_flow_savings_rate: float = 0.0
    net_savings: float = 0.0  # change in total balance over the window
    raw_savings_rate: float = 0.0
    savings_rate: float = 0.0
    start_balance: float = 0.0
    current_balance: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CategorySpending:
    id: int
    name: str
    color: Optional[str]
    total_spent: float
    transaction_count: int
    percentage: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DailyChartData:
    """Per-day series for the analytics chart, oldest day first."""

    labels: list[str] = field(default_factory=list)
    dates: list[date] = field(default_factory=list)
    datasets: dict[str, list[float]] = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "labels": self.labels,
            "dates": [d.isoformat() for d in self.dates],
            "datasets": self.datasets,
            "metadata": self.metadata,
        }


@dataclass
class HealthScore:
    """Composite 0-100 score and the points each part contributed."""

    savings_rate_points: int = 0
    net_savings_points: int = 0
    trend_points: int = 0
    balance_points: int = 0

    @property
    def total(self) -> int:
        return (
            self.savings_rate_points
            + self.net_savings_points
            + self.trend_points
            + self.balance_points
        )

    def to_dict(self) -> dict:
        return {**asdict(self), "total": self.total}


@dataclass
class AdvancedAnalytics:
    periods: dict[int, SavingsRate] = field(default_factory=dict)
    monthly_trend: list[MonthlySummary] = field(default_factory=list)
    monthly_income_average: float = 0.0
    monthly_expense_average: float = 0.0
    income_stability: float = 0.0
    expense_stability: float = 0.0
    total_balance: float = 0.0
    total_debts: float = 0.0
    total_owed_to_user: float = 0.0
    net_worth: float = 0.0
    debt_to_asset_ratio: float = 0.0
    liquidity_ratio: float = 0.0
    emergency_fund_needed: float = 0.0
    emergency_fund_coverage: float = 0.0
    trend: str = "steady"  # improving | steady | declining
    health: HealthScore = field(default_factory=HealthScore)

    @property
    def financial_health_score(self) -> int:
        return self.health.total

    def to_dict(self) -> dict:
        data = asdict(self)
        data["periods"] = {m: stats.to_dict() for m, stats in self.periods.items()}
        data["monthly_trend"] = [m.to_dict() for m in self.monthly_trend]
        data["health"] = self.health.to_dict()
        data["financial_health_score"] = self.financial_health_score
        return data


def degrade_to(default_factory: Callable[[], object]):
    """Return ``default_factory()`` instead of raising when a query fails."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except InvalidWindowError:
                raise
            except Exception as e:
                logger.error(
                    f"{func.__name__} failed, returning empty result: {e}",
                    exc_info=True,
                )
                return default_factory()

        return wrapper

    return decorator


def _check_window(value: int, unit: str):
    if not isinstance(value, int) or value < 1:
        raise InvalidWindowError(f"Window must be at least 1 {unit}, got {value!r}")


def _rate(numerator: float, income: float) -> float:
    """Percentage of income; 0 when there was no income."""
    return (numerator / income) * 100 if income > 0 else 0.0


def calculate_stability(values: list[float]) -> float:
    """
    Coefficient of variation as a percentage (lower is more stable).

    Uses the population standard deviation; returns 0 for fewer than two
    values or a non-positive mean.
    """
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    if mean <= 0:
        return 0.0
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance) / mean * 100


def score_financial_health(
    savings_rate: float,
    net_savings: float,
    short_rate: float,
    long_rate: float,
    total_balance: float,
) -> HealthScore:
    """Apply the fixed health rubric."""
    score = HealthScore()

    for threshold, points in SAVINGS_RATE_BANDS:
        if savings_rate >= threshold:
            score.savings_rate_points = points
            break

    if net_savings > 0:
        score.net_savings_points = POSITIVE_NET_SAVINGS_POINTS
    elif net_savings >= 0:
        score.net_savings_points = ZERO_NET_SAVINGS_POINTS

    if short_rate - long_rate > RATE_EPSILON:
        score.trend_points = IMPROVING_TREND_POINTS
    elif abs(short_rate - long_rate) <= RATE_EPSILON:
        score.trend_points = STEADY_TREND_POINTS

    for threshold, points in BALANCE_TIERS:
        if total_balance > threshold:
            score.balance_points = points
            break

    return score


def _month_period(day: date) -> pd.Period:
    return pd.Period(year=day.year, month=day.month, freq="M")


def month_window_start(for_date: date, months: int) -> date:
    """First day of the calendar month ``months - 1`` months before ``for_date``."""
    return (_month_period(for_date) - (months - 1)).start_time.date()


class AnalyticsService:
    """
    Derives summaries from the entity store. Never writes.

    Args:
        repository: The store handle, constructed at application startup
    """

    def __init__(self, repository: Optional[FinanceRepository]):
        if repository is None:
            raise RuntimeError("Database is not initialized")
        self.repo = repository

    # =========================================================================
    # Data loading
    # =========================================================================

    def _load_frame(self, start: date, end: date) -> pd.DataFrame:
        """Successful transactions dated within [start, end] as a DataFrame."""
        transactions = self.repo.transactions.list_transactions(
            start_date=start, end_date=end, status=TransactionStatus.SUCCESS
        )
        df = pd.DataFrame([t.to_dict() for t in transactions], columns=FRAME_COLUMNS)
        df["date"] = pd.to_datetime(df["date"], format="ISO8601")
        df["amount"] = df["amount"].astype(float)
        df["effect"] = df["type"].map(EFFECT_BY_TYPE).fillna(0).astype(float) * df["amount"]
        logger.debug(f"Loaded {len(df)} transactions between {start} and {end}")
        return df

    def _balance_at(self, for_date: date) -> float:
        """Total balance at the end of ``for_date``, undoing later transactions."""
        total = self.repo.accounts.get_total_balance().total
        later = self.repo.transactions.list_transactions(
            start_date=for_date + timedelta(days=1), status=TransactionStatus.SUCCESS
        )
        return total - sum(BALANCE_EFFECT[t.type] * t.amount for t in later)

    @staticmethod
    def _totals_by(df: pd.DataFrame, key: pd.Series) -> pd.DataFrame:
        """Income, expense, net effect and count per key value."""
        grouped = df.assign(
            key=key,
            income=df["amount"].where(df["type"] == INCOME, 0.0),
            expense=df["amount"].where(df["type"] == EXPENSE, 0.0),
        ).groupby("key")
        totals = grouped[["income", "expense", "effect"]].sum()
        totals["count"] = grouped.size()
        return totals

    def _summaries(self, totals: pd.DataFrame) -> list[MonthlySummary]:
        summaries = []
        for period, row in totals.iterrows():
            income = float(row["income"])
            expense = float(row["expense"])
            summaries.append(
                MonthlySummary(
                    month=str(period),
                    income=income,
                    expense=expense,
                    net=income - expense,
                    transaction_count=int(row["count"]),
                    savings_rate=_rate(income - expense, income),
                )
            )
        return summaries

    def _monthly_totals(self, months: int, for_date: date) -> pd.DataFrame:
        start = month_window_start(for_date, months)
        df = self._load_frame(start, for_date)
        totals = self._totals_by(df, df["date"].dt.to_period("M"))
        end = _month_period(for_date)
        index = pd.period_range(end=end, periods=months, freq="M")
        return totals.reindex(index, fill_value=0)

    # =========================================================================
    # Monthly aggregation
    # =========================================================================

    @degrade_to(list)
    def get_monthly_data(
        self, months: int = DEFAULT_MONTHLY_WINDOW, for_date: Optional[date] = None
    ) -> list[MonthlySummary]:
        """
        Per-month income, expense and net for months that have transactions.

        Returns:
            MonthlySummary list, newest month first
        """
        _check_window(months, "month")
        for_date = for_date or date.today()
        totals = self._monthly_totals(months, for_date)
        totals = totals[totals["count"] > 0].iloc[::-1]
        return self._summaries(totals)

    @degrade_to(list)
    def get_monthly_trend(
        self, months: int = DEFAULT_MONTHLY_WINDOW, for_date: Optional[date] = None
    ) -> list[MonthlySummary]:
        """Every month of the window, oldest first, zero-filled."""
        _check_window(months, "month")
        for_date = for_date or date.today()
        return self._summaries(self._monthly_totals(months, for_date))

    @degrade_to(lambda: MonthlySummary(month=date.today().strftime("%Y-%m")))
    def get_current_month_data(self, for_date: Optional[date] = None) -> MonthlySummary:
        """Summary of the calendar month containing ``for_date``."""
        for_date = for_date or date.today()
        return self.get_monthly_trend(1, for_date=for_date)[0]

    # =========================================================================
    # Savings rate
    # =========================================================================

    @degrade_to(SavingsRate)
    def calculate_savings_rate(
        self, months: int = DEFAULT_MONTHLY_WINDOW, for_date: Optional[date] = None
    ) -> SavingsRate:
        """
        Savings over the window under both definitions.

        Cash-flow rate: (income - expense) / income.
        Net-worth-change rate: the balance total at the window start is the
        total at the end of ``for_date`` minus the window's net balance effect; the rate is the
        change since then over income, clamped at 0 for display.
        """
        _check_window(months, "month")
        for_date = for_date or date.today()
        df = self._load_frame(month_window_start(for_date, months), for_date)

        total_income = float(df.loc[df["type"] == INCOME, "amount"].sum())
        total_expense = float(df.loc[df["type"] == EXPENSE, "amount"].sum())
        net_flow = float(df["effect"].sum())

        current_balance = self._balance_at(for_date)
        start_balance = current_balance - net_flow
        net_savings = current_balance - start_balance
        raw_rate = _rate(net_savings, total_income)

        result = SavingsRate(
            months=months,
            total_income=total_income,
            total_expense=total_expense,
            cash_flow=total_income - total_expense,
            cash_flow_savings_rate=_rate(total_income - total_expense, total_income),
            net_savings=net_savings,
            raw_savings_rate=raw_rate,
            savings_rate=max(0.0, raw_rate),
            start_balance=start_balance,
            current_balance=current_balance,
        )
        logger.debug(
            f"Savings over {months} months: cash flow "
            f"{result.cash_flow_savings_rate:.1f}%, net worth {raw_rate:.1f}%"
        )
        return result

    # =========================================================================
    # Categories
    # =========================================================================

    @degrade_to(list)
    def get_category_spending(
        self, months: int = DEFAULT_CATEGORY_WINDOW, for_date: Optional[date] = None
    ) -> list[CategorySpending]:
        """
        Expense totals per category, largest first.

        Categories with equal totals keep their creation order.
        """
        _check_window(months, "month")
        for_date = for_date or date.today()
        df = self._load_frame(month_window_start(for_date, months), for_date)
        expenses = df[(df["type"] == EXPENSE) & df["category_id"].notna()]
        if expenses.empty:
            return []

        grouped = expenses.groupby(expenses["category_id"].astype(int))["amount"]
        totals = pd.DataFrame({"total": grouped.sum(), "count": grouped.size()})
        totals = totals.sort_values("total", ascending=False, kind="stable")
        grand_total = float(totals["total"].sum())

        categories = {c.id: c for c in self.repo.categories.list_categories()}
        ranking = []
        for category_id, row in totals.iterrows():
            category = categories.get(category_id)
            ranking.append(
                CategorySpending(
                    id=int(category_id),
                    name=category.name if category else "Unknown Category",
                    color=category.color if category else None,
                    total_spent=float(row["total"]),
                    transaction_count=int(row["count"]),
                    percentage=_rate(float(row["total"]), grand_total),
                )
            )
        return ranking

    def get_category_stats(
        self, category_id: int, months: int = 1, for_date: Optional[date] = None
    ) -> dict[str, float]:
        """Transaction count and total for one category over the window."""
        _check_window(months, "month")
        for_date = for_date or date.today()
        try:
            return self.repo.categories.get_stats(
                category_id, month_window_start(for_date, months)
            )
        except Exception as e:
            logger.error(f"Error getting stats for category {category_id}: {e}", exc_info=True)
            return {"transaction_count": 0, "total_amount": 0.0}

    # =========================================================================
    # Daily chart
    # =========================================================================

    @degrade_to(DailyChartData)
    def get_daily_chart_data(
        self, days: int = DEFAULT_CHART_DAYS, for_date: Optional[date] = None
    ) -> DailyChartData:
        """
        Per-day series for the trailing ``days`` days, oldest first.

        The end-of-day balance is reconstructed from the total at the end of
        ``for_date`` by walking backward and undoing each day's net balance
        effect. Progress series are scaled so the larger cumulative series
        peaks at CHART_MAX_AMPLITUDE; the savings rate is clipped to +/- that value.
        """
        _check_window(days, "day")
        for_date = for_date or date.today()
        start = for_date - timedelta(days=days - 1)
        df = self._load_frame(start, for_date)

        index = pd.date_range(start=start, end=for_date, freq="D")
        daily = self._totals_by(df, df["date"].dt.normalize()).reindex(
            index, fill_value=0
        )

        current_balance = self._balance_at(for_date)
        # Balance effect of everything after each day
        later_effect = daily["effect"][::-1].cumsum()[::-1] - daily["effect"]
        balances = current_balance - later_effect

        cum_income = daily["income"].cumsum()
        cum_expense = daily["expense"].cumsum()
        cum_net = cum_income - cum_expense
        savings_rates = (
            (cum_net / cum_income.where(cum_income > 0)) * 100
        ).fillna(0.0).clip(-CHART_MAX_AMPLITUDE, CHART_MAX_AMPLITUDE)

        peak = max(float(cum_income.max()), float(cum_expense.max()), 0.0)
        scale = CHART_MAX_AMPLITUDE / peak if peak > 0 else 0.0

        def series(values: pd.Series) -> list[float]:
            return [round(float(v), 2) for v in values]

        return DailyChartData(
            labels=[d.strftime("%b %d") for d in index],
            dates=[d.date() for d in index],
            datasets={
                "income": series(daily["income"]),
                "expense": series(daily["expense"]),
                "balances": series(balances),
                "cumulative_income": series(cum_income),
                "cumulative_expense": series(cum_expense),
                "savings_rates": series(savings_rates),
                "net_savings_scaled": series(cum_net * scale),
                "income_progress": series(cum_income * scale),
                "expense_progress": series(cum_expense * scale),
                "target_line": [SAVINGS_TARGET_RATE] * len(index),
            },
            metadata={
                "days": days,
                "start_date": start.isoformat(),
                "end_date": for_date.isoformat(),
                "total_income": float(cum_income.iloc[-1]),
                "total_expense": float(cum_expense.iloc[-1]),
                "net_savings": float(cum_net.iloc[-1]),
                "start_balance": float(balances.iloc[0] - daily["effect"].iloc[0]),
                "end_balance": float(balances.iloc[-1]),
                "final_savings_rate": float(savings_rates.iloc[-1]),
                "scale": scale,
                "target_rate": SAVINGS_TARGET_RATE,
            },
        )

    def get_stability(self, values: list[float]) -> float:
        """Coefficient of variation of a series, in percent."""
        return calculate_stability([float(v) for v in values])

    # =========================================================================
    # Advanced analytics
    # =========================================================================

    @degrade_to(AdvancedAnalytics)
    def get_advanced_analytics(self, for_date: Optional[date] = None) -> AdvancedAnalytics:
        """
        Multi-period comparison, stability metrics, debt ratios and health score.

        The health score rates the short-period savings (rate band and net
        savings sign), the short-vs-long trend and the current balance tier.
        """
        for_date = for_date or date.today()
        periods = {
            months: self.calculate_savings_rate(months, for_date=for_date)
            for months in sorted(set(ANALYTICS_PERIODS) | {SHORT_TREND_PERIOD, LONG_TREND_PERIOD})
        }
        trend_months = self.get_monthly_trend(STABILITY_WINDOW, for_date=for_date)
        incomes = [m.income for m in trend_months]
        expenses = [m.expense for m in trend_months]
        income_avg = sum(incomes) / len(incomes) if incomes else 0.0
        expense_avg = sum(expenses) / len(expenses) if expenses else 0.0

        total_balance = self._balance_at(for_date)
        debts = self.repo.debts.get_totals()

        short = periods[SHORT_TREND_PERIOD]
        long = periods[LONG_TREND_PERIOD]
        diff = short.raw_savings_rate - long.raw_savings_rate
        if diff > RATE_EPSILON:
            trend = "improving"
        elif diff < -RATE_EPSILON:
            trend = "declining"
        else:
            trend = "steady"

        emergency_fund = expense_avg * EMERGENCY_FUND_MONTHS
        analytics = AdvancedAnalytics(
            periods={m: periods[m] for m in ANALYTICS_PERIODS},
            monthly_trend=trend_months,
            monthly_income_average=income_avg,
            monthly_expense_average=expense_avg,
            income_stability=calculate_stability(incomes),
            expense_stability=calculate_stability(expenses),
            total_balance=total_balance,
            total_debts=debts.owed_by_user,
            total_owed_to_user=debts.owed_to_user,
            net_worth=total_balance - debts.owed_by_user + debts.owed_to_user,
            debt_to_asset_ratio=(
                debts.owed_by_user / total_balance * 100 if total_balance > 0 else 0.0
            ),
            liquidity_ratio=total_balance / expense_avg if expense_avg > 0 else 0.0,
            emergency_fund_needed=emergency_fund,
            emergency_fund_coverage=(
                total_balance / emergency_fund
                if emergency_fund > 0 and total_balance > 0
                else 0.0
            ),
            trend=trend,
            health=score_financial_health(
                savings_rate=short.savings_rate,
                net_savings=short.net_savings,
                short_rate=short.raw_savings_rate,
                long_rate=long.raw_savings_rate,
                total_balance=total_balance,
            ),
        )
        logger.debug(
            f"Advanced analytics: health score {analytics.financial_health_score}, "
            f"trend {trend}"
        )
        return analytics
