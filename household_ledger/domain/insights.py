"""Spending insights engine - category breakdown, monthly trend and next-month forecast"""

from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from household_ledger.domain.models import (
    CategorySpending,
    ExpenseCategory,
    ExpenseRecord,
    InsightsResult,
    MonthlyPoint,
    Prediction,
    TrendDirection,
)
from household_ledger.utils.date_utils import ensure_utc, month_key, trailing_month_starts
from household_ledger.utils.money import round_currency

WINDOW_MONTHS = 6
FORECAST_POINTS = 3
TREND_THRESHOLD_RATIO = 0.1


def filter_window(expenses: Sequence[ExpenseRecord], now: datetime) -> List[ExpenseRecord]:
    """Expenses dated (not created) within the trailing window ending at now"""
    window_start = trailing_month_starts(now, WINDOW_MONTHS)[0]
    return [e for e in expenses if window_start <= ensure_utc(e.date) <= now]


def aggregate_by_category(expenses: Sequence[ExpenseRecord]) -> List[CategorySpending]:
    """
    Sum and count per category, largest first.

    Uncategorized expenses fall under "other". Equal amounts keep the order in
    which their categories first appeared.
    """
    totals: Dict[str, Tuple[float, int]] = {}
    for expense in expenses:
        category = expense.category or ExpenseCategory.OTHER.value
        amount, count = totals.get(category, (0.0, 0))
        totals[category] = (amount + expense.total_amount, count + 1)

    total_spent = sum(amount for amount, _ in totals.values())

    spending = [
        CategorySpending(
            category=category,
            amount=amount,
            percentage=(amount / total_spent * 100) if total_spent > 0 else 0.0,
            count=count,
        )
        for category, (amount, count) in totals.items()
    ]
    # sorted() is stable with reverse=True
    return sorted(spending, key=lambda c: c.amount, reverse=True)


def build_monthly_trend(expenses: Sequence[ExpenseRecord], now: datetime) -> List[MonthlyPoint]:
    """One point per month in the window, oldest first, zero-filled"""
    amounts = {month_key(start): 0.0 for start in trailing_month_starts(now, WINDOW_MONTHS)}
    for expense in expenses:
        key = month_key(ensure_utc(expense.date))
        if key in amounts:
            amounts[key] += expense.total_amount
    return [MonthlyPoint(month=key, amount=amount) for key, amount in amounts.items()]


def average_of_active_months(trend: Sequence[MonthlyPoint]) -> float:
    """Mean over months with spend; empty months do not dilute the average"""
    active = [point.amount for point in trend if point.amount > 0]
    return sum(active) / len(active) if active else 0.0


def fit_linear_trend(values: Sequence[float]) -> Tuple[float, float]:
    """
    Ordinary least squares over x = 1..n via the normal equations.

    Returns: (slope, intercept). Requires n >= 2.
    """
    n = len(values)
    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for index, y in enumerate(values):
        x = index + 1
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def forecast_next_month(trend: Sequence[MonthlyPoint], average_monthly: float) -> Prediction:
    """
    Extrapolate the non-zero months among the last three.

    With fewer than two such months the forecast is the monthly average and the
    trend is stable. A negative extrapolation falls back to the average.
    """
    recent = [point.amount for point in trend[-FORECAST_POINTS:] if point.amount != 0]
    if len(recent) < 2:
        return Prediction(next_month=average_monthly, trend=TrendDirection.STABLE)

    slope, intercept = fit_linear_trend(recent)
    next_month = slope * (len(recent) + 1) + intercept
    if next_month < 0:
        next_month = average_monthly

    threshold = average_monthly * TREND_THRESHOLD_RATIO
    if slope > threshold:
        direction = TrendDirection.INCREASING
    elif slope < -threshold:
        direction = TrendDirection.DECREASING
    else:
        direction = TrendDirection.STABLE

    return Prediction(next_month=next_month, trend=direction)


def calculate_insights(expenses: Sequence[ExpenseRecord], now: datetime) -> InsightsResult:
    """
    Main entry point: spending insights for the six months ending at `now`.

    `now` is explicit so results are reproducible. Never raises for empty input;
    an empty list yields six zero months and a stable zero forecast. Currency
    values are rounded to cents only here, after all accumulation.
    """
    now = ensure_utc(now)
    recent = filter_window(expenses, now)

    by_category = aggregate_by_category(recent)
    monthly_trend = build_monthly_trend(recent, now)
    total_spent = sum(point.amount for point in monthly_trend)
    average_monthly = average_of_active_months(monthly_trend)
    prediction = forecast_next_month(monthly_trend, average_monthly)

    return InsightsResult(
        by_category=[
            CategorySpending(
                category=c.category,
                amount=round_currency(c.amount),
                percentage=round_currency(c.percentage),
                count=c.count,
            )
            for c in by_category
        ],
        monthly_trend=[
            MonthlyPoint(month=p.month, amount=round_currency(p.amount)) for p in monthly_trend
        ],
        predictions=Prediction(
            next_month=round_currency(prediction.next_month),
            trend=prediction.trend,
        ),
        total_spent=round_currency(total_spent),
        average_monthly=round_currency(average_monthly),
    )
