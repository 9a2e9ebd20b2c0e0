"""Unit tests for spending insights and forecasting"""

import pytest
from datetime import datetime, timezone
from household_ledger.domain.insights import (
    aggregate_by_category,
    calculate_insights,
    fit_linear_trend,
    forecast_next_month,
)
from household_ledger.domain.models import MonthlyPoint, TrendDirection

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def at(year: int, month: int, day: int = 10) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def test_empty_expenses_yield_six_zero_months():
    """Empty input never raises and still reports the full window"""
    insights = calculate_insights([], NOW)

    assert [p.month for p in insights.monthly_trend] == [
        "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06",
    ]
    assert all(p.amount == 0 for p in insights.monthly_trend)
    assert insights.by_category == []
    assert insights.total_spent == 0
    assert insights.average_monthly == 0
    assert insights.predictions.next_month == 0
    assert insights.predictions.trend == TrendDirection.STABLE


def test_window_crosses_year_boundary():
    insights = calculate_insights([], datetime(2024, 2, 1, tzinfo=timezone.utc))

    assert [p.month for p in insights.monthly_trend] == [
        "2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02",
    ]


def test_window_filters_by_expense_date(make_expense):
    """Only expenses dated inside [first of month - 5 months, now] count"""
    expenses = [
        make_expense("A", [("A", 100)], date=at(2023, 12, 31)),  # before window
        make_expense("A", [("A", 40)], date=at(2024, 1, 1)),  # first instant of window
        make_expense("A", [("A", 60)], date=at(2024, 6, 20)),  # after now
        make_expense("A", [("A", 25)], date=at(2024, 6, 1), created_at=at(2023, 1, 1)),
    ]

    insights = calculate_insights(expenses, NOW)

    assert insights.total_spent == 65
    assert insights.monthly_trend[0].amount == 40
    assert insights.monthly_trend[-1].amount == 25


def test_average_excludes_empty_months(make_expense):
    """Two active months of 100 and 200 average to 150, not 50"""
    expenses = [
        make_expense("A", [("A", 100)], date=at(2024, 2)),
        make_expense("A", [("A", 200)], date=at(2024, 4)),
    ]

    insights = calculate_insights(expenses, NOW)

    assert insights.total_spent == 300
    assert insights.average_monthly == 150


def test_category_breakdown_sorted_with_other_fallback(make_expense):
    expenses = [
        make_expense("A", [("A", 30)], date=at(2024, 5), category="dining"),
        make_expense("A", [("A", 50)], date=at(2024, 5)),
        make_expense("A", [("A", 120)], date=at(2024, 6, 1), category="rent"),
        make_expense("A", [("A", 20)], date=at(2024, 6, 2), category="dining"),
    ]

    insights = calculate_insights(expenses, NOW)

    assert [(c.category, c.amount, c.count) for c in insights.by_category] == [
        ("rent", 120, 1),
        ("dining", 50, 2),
        ("other", 50, 1),
    ]
    assert insights.by_category[0].percentage == 54.55
    assert sum(c.percentage for c in insights.by_category) == pytest.approx(100, abs=0.05)


def test_category_ties_keep_first_seen_order(make_expense):
    expenses = [
        make_expense("A", [("A", 10)], category="shopping"),
        make_expense("A", [("A", 10)], category="bills"),
        make_expense("A", [("A", 10)], category="groceries"),
    ]

    by_category = aggregate_by_category(expenses)

    assert [c.category for c in by_category] == ["shopping", "bills", "groceries"]


def test_fit_linear_trend_exact_line():
    slope, intercept = fit_linear_trend([100, 200, 300])

    assert slope == pytest.approx(100)
    assert intercept == pytest.approx(0)


def test_forecast_increasing_trend(make_expense):
    expenses = [
        make_expense("A", [("A", 100)], date=at(2024, 4)),
        make_expense("A", [("A", 200)], date=at(2024, 5)),
        make_expense("A", [("A", 300)], date=at(2024, 6, 1)),
    ]

    insights = calculate_insights(expenses, NOW)

    assert insights.predictions.next_month == 400
    assert insights.predictions.trend == TrendDirection.INCREASING


def test_forecast_negative_is_clamped_to_average(make_expense):
    """A steep decline that would extrapolate below zero falls back to the average"""
    expenses = [
        make_expense("A", [("A", 300)], date=at(2024, 4)),
        make_expense("A", [("A", 150)], date=at(2024, 5)),
        make_expense("A", [("A", 10)], date=at(2024, 6, 1)),
    ]

    insights = calculate_insights(expenses, NOW)

    assert insights.average_monthly == pytest.approx(153.33)
    assert insights.predictions.next_month == insights.average_monthly
    assert insights.predictions.trend == TrendDirection.DECREASING


def test_forecast_skips_zero_months_in_last_three():
    """Zero months are dropped before fitting; x runs over the remaining points"""
    trend = [
        MonthlyPoint("2024-01", 0),
        MonthlyPoint("2024-02", 0),
        MonthlyPoint("2024-03", 0),
        MonthlyPoint("2024-04", 100),
        MonthlyPoint("2024-05", 0),
        MonthlyPoint("2024-06", 102),
    ]

    prediction = forecast_next_month(trend, average_monthly=101)

    assert prediction.next_month == pytest.approx(104)
    assert prediction.trend == TrendDirection.STABLE


def test_forecast_single_point_uses_average(make_expense):
    """Fewer than two active months in the last three: no regression"""
    expenses = [
        make_expense("A", [("A", 500)], date=at(2024, 1)),
        make_expense("A", [("A", 90)], date=at(2024, 6, 1)),
    ]

    insights = calculate_insights(expenses, NOW)

    assert insights.average_monthly == 295
    assert insights.predictions.next_month == 295
    assert insights.predictions.trend == TrendDirection.STABLE


def test_outputs_rounded_to_cents(make_expense):
    expenses = [
        make_expense("A", [("A", 10.004)], date=at(2024, 5)),
        make_expense("A", [("A", 10.004)], date=at(2024, 5)),
    ]

    insights = calculate_insights(expenses, NOW)

    # Summed first (20.008), rounded once
    assert insights.total_spent == 20.01
    assert insights.monthly_trend[4].amount == 20.01


def test_naive_now_is_treated_as_utc(make_expense):
    expenses = [make_expense("A", [("A", 42)], date=at(2024, 6, 1))]

    aware = calculate_insights(expenses, NOW)
    naive = calculate_insights(expenses, NOW.replace(tzinfo=None))

    assert aware == naive


def test_half_cent_outputs_round_up(make_expense):
    expenses = [make_expense("A", [("A", 10.125)], date=at(2024, 6, 1))]

    insights = calculate_insights(expenses, NOW)

    assert insights.total_spent == 10.13
    assert insights.average_monthly == 10.13
    assert insights.predictions.next_month == 10.13
    assert insights.monthly_trend[-1].amount == 10.13
