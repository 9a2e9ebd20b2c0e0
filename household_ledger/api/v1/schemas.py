"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from household_ledger.domain.models import ExpenseCategory, SplitMethod, TrendDirection


class HouseholdCreateRequest(BaseModel):
    """Request body for POST /v1/households"""

    name: str = Field(..., min_length=1, description="Household name")
    address: Optional[str] = None
    display_name: str = Field(..., min_length=1, description="Owner's name shown to other members")
    push_token: Optional[str] = None


class HouseholdJoinRequest(BaseModel):
    """Request body for POST /v1/households/join"""

    join_code: str = Field(..., min_length=6, max_length=6)
    display_name: str = Field(..., min_length=1)
    push_token: Optional[str] = None


class MemberSchema(BaseModel):
    user_id: str
    display_name: str


class HouseholdResponse(BaseModel):
    household_id: str
    name: str
    address: Optional[str] = None
    owner_id: str
    join_code: str
    members: List[MemberSchema]
    created_at: str


class ShareSchema(BaseModel):
    user_id: str
    amount: float = Field(..., ge=0)


class ExpenseCreateRequest(BaseModel):
    """Request body for POST /v1/expenses"""

    household_id: str
    description: str = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0.01, description="Total amount paid")
    paid_by: str
    participants: List[str] = Field(..., min_length=1)
    split_method: SplitMethod
    shares: Optional[List[ShareSchema]] = Field(None, description="Required for manual splits")
    date: datetime
    category: Optional[str] = None


class ExpenseResponse(BaseModel):
    expense_id: str
    household_id: str
    description: str
    total_amount: float
    paid_by: str
    participants: List[str]
    split_method: str
    shares: List[ShareSchema]
    date: str
    category: Optional[str] = None
    created_at: str


class SettlementCreateRequest(BaseModel):
    """Request body for POST /v1/settlements"""

    household_id: str
    from_user_id: str
    to_user_id: str
    amount: float = Field(..., ge=0.01)
    method: Optional[str] = None
    note: Optional[str] = None
    date: datetime


class SettlementResponse(BaseModel):
    settlement_id: str
    household_id: str
    from_user_id: str
    to_user_id: str
    amount: float
    method: Optional[str] = None
    note: Optional[str] = None
    date: str
    created_at: str


class NetBalanceRequest(BaseModel):
    """Request body for POST /v1/settlements/net-balance"""

    household_id: str
    other_user_id: str


class NetBalanceResponse(BaseModel):
    settlements: List[SettlementResponse]
    new_net_balance: float


class BalanceItem(BaseModel):
    """from_user_id owes to_user_id `amount`"""

    from_user_id: str
    to_user_id: str
    amount: float
    since_date: Optional[str] = None


class CategorySpendingSchema(BaseModel):
    category: str
    amount: float
    percentage: float
    count: int


class MonthlyPointSchema(BaseModel):
    month: str
    amount: float


class PredictionSchema(BaseModel):
    next_month: float
    trend: TrendDirection


class InsightsResponse(BaseModel):
    """Response for GET /v1/expenses/household/{household_id}/insights"""

    by_category: List[CategorySpendingSchema]
    monthly_trend: List[MonthlyPointSchema]
    predictions: PredictionSchema
    total_spent: float
    average_monthly: float


class CategorizeRequest(BaseModel):
    description: str = Field(..., min_length=1)


class CategorizeResponse(BaseModel):
    category: ExpenseCategory
    confidence: int
    reason: str
