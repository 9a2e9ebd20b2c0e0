"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ExpenseCategory(str, Enum):
    """Fixed expense categories; free-text labels are also accepted on expenses"""

    GROCERIES = "groceries"
    UTILITIES = "utilities"
    RENT = "rent"
    TRANSPORTATION = "transportation"
    DINING = "dining"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    BILLS = "bills"
    OTHER = "other"


class SplitMethod(str, Enum):
    EVEN = "even"
    MANUAL = "manual"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass
class ExpenseShare:
    """A participant's portion of an expense"""

    member_id: str
    amount: float


@dataclass
class ExpenseRecord:
    """Expense as loaded from storage"""

    id: str
    household_id: str
    total_amount: float
    paid_by: str
    participants: List[str]
    shares: List[ExpenseShare]
    date: datetime
    created_at: datetime
    category: Optional[str] = None
    description: str = ""


@dataclass
class SettlementRecord:
    """Payment from one member to another"""

    id: str
    household_id: str
    from_user_id: str
    to_user_id: str
    amount: float
    date: datetime


@dataclass
class PairwiseBalance:
    """from_user_id owes to_user_id `amount` (always > tolerance)"""

    from_user_id: str
    to_user_id: str
    amount: float


@dataclass
class AnnotatedBalance:
    """Balance plus the earliest contributing expense date (approximate)"""

    balance: PairwiseBalance
    since_date: Optional[datetime] = None


@dataclass
class MutualDebts:
    """Raw directed debts between two members before netting"""

    user_id: str
    other_user_id: str
    user_owes_other: float
    other_owes_user: float


@dataclass
class NettingPlan:
    """Offsetting settlement pair that cancels the smaller of two mutual debts"""

    debtor_id: str  # owes more; still owes remaining_balance afterwards
    creditor_id: str
    amount: float
    remaining_balance: float


@dataclass
class CategorySpending:
    category: str
    amount: float
    percentage: float
    count: int


@dataclass
class MonthlyPoint:
    month: str  # YYYY-MM
    amount: float


@dataclass
class Prediction:
    next_month: float
    trend: TrendDirection


@dataclass
class InsightsResult:
    """Output of the spending insights engine"""

    by_category: List[CategorySpending]
    monthly_trend: List[MonthlyPoint]
    predictions: Prediction
    total_spent: float
    average_monthly: float


@dataclass
class CategorizationResult:
    category: ExpenseCategory
    confidence: int
    reason: str = ""


@dataclass
class DebtReminder:
    """A single reminder to one side of a pairwise balance"""

    recipient_id: str
    counterparty_id: str
    household_id: str
    amount: float
    is_owed: bool  # True when the recipient is the creditor
