"""Prometheus metrics for ledger activity, engine timings and reminder delivery"""

from prometheus_client import Counter, Histogram

from household_ledger.domain.models import ExpenseCategory

KNOWN_CATEGORIES = {c.value for c in ExpenseCategory}

# Ledger activity
expense_counter = Counter(
    "household_expense_created_total",
    "Expenses recorded",
    ["category"],
)

settlement_counter = Counter(
    "household_settlement_created_total",
    "Settlements recorded",
    ["method"],  # manual | net_balance
)

# Engine timings
balance_computation_histogram = Histogram(
    "ledger_balance_computation_seconds",
    "Time spent netting balances for a household",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

insights_computation_histogram = Histogram(
    "ledger_insights_computation_seconds",
    "Time spent computing spending insights for a household",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Reminder / push metrics
debt_reminder_counter = Counter(
    "debt_reminders_sent_total",
    "Debt reminder notifications delivered",
    ["side"],  # debtor | creditor
)

push_latency_histogram = Histogram(
    "push_latency_seconds",
    "Push service response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

push_failure_counter = Counter(
    "push_failures_total",
    "Failed push notification attempts",
)

scheduler_failure_counter = Counter(
    "reminder_scheduler_failures_total",
    "Households skipped by the reminder scheduler due to errors",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_expense(category: str | None) -> None:
    """Count an expense; free-text categories share one label to bound cardinality"""
    if not category:
        label = ExpenseCategory.OTHER.value
    elif category in KNOWN_CATEGORIES:
        label = category
    else:
        label = "custom"
    expense_counter.labels(category=label).inc()


def record_settlement(method: str | None) -> None:
    """Count a settlement; automated netting is tracked separately from manual payments"""
    label = "net_balance" if method == "Net Balance" else "manual"
    settlement_counter.labels(method=label).inc()
