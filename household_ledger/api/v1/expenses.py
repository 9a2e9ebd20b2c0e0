"""Expense endpoints plus the derived balance and insights views"""

import time
import logging
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from household_ledger.api.v1.schemas import (
    BalanceItem,
    CategorizeRequest,
    CategorizeResponse,
    CategorySpendingSchema,
    ExpenseCreateRequest,
    ExpenseResponse,
    InsightsResponse,
    MonthlyPointSchema,
    PredictionSchema,
    ShareSchema,
)
from household_ledger.api.dependencies import (
    get_current_user_id,
    get_now,
    get_request_id,
    parse_uuid,
    require_household_member,
)
from household_ledger.domain.balances import annotate_since_dates, compute_balances
from household_ledger.domain.categorization import categorize_by_rules
from household_ledger.domain.exceptions import InvalidExpenseError
from household_ledger.domain.insights import calculate_insights
from household_ledger.domain.models import ExpenseShare, SplitMethod
from household_ledger.domain.validation import split_evenly, validate_expense
from household_ledger.infrastructure.database.models import Expense
from household_ledger.infrastructure.database.session import get_db
from household_ledger.infrastructure.database.repositories import ExpenseRepository, SettlementRepository
from household_ledger.infrastructure.observability.logging import log_balances_computed, log_insights_computed
from household_ledger.infrastructure.observability.metrics import (
    balance_computation_histogram,
    insights_computation_histogram,
    record_expense,
)
from household_ledger.utils.date_utils import ensure_utc
from household_ledger.utils.money import round_currency

router = APIRouter()


def expense_to_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        expense_id=str(expense.id),
        household_id=str(expense.household_id),
        description=expense.description,
        total_amount=expense.total_amount,
        paid_by=expense.paid_by,
        participants=list(expense.participants),
        split_method=expense.split_method,
        shares=[ShareSchema(user_id=s.user_id, amount=s.amount) for s in expense.shares],
        date=expense.date.isoformat(),
        category=expense.category,
        created_at=expense.created_at.isoformat(),
    )


@router.get("/expenses/household/{household_id}", response_model=List[ExpenseResponse])
def list_expenses(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """All household expenses, most recent first"""
    household = require_household_member(db, household_id, user_id)
    return [expense_to_response(e) for e in ExpenseRepository(db).list_by_household(household.id)]


@router.get("/expenses/household/{household_id}/balances", response_model=List[BalanceItem])
def get_balances(
    household_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Net pairwise balances for the household.

    Each balance carries `since_date`, the earliest expense that contributed to
    it. Settlements are not considered for that date, so it is approximate.
    """
    start_time = time.time()
    household = require_household_member(db, household_id, user_id)

    expenses = ExpenseRepository(db).list_records(household.id)
    settlements = SettlementRepository(db).list_records(household.id)

    with balance_computation_histogram.time():
        balances = compute_balances(expenses, settlements)
    annotated = annotate_since_dates(balances, expenses)

    duration_ms = (time.time() - start_time) * 1000
    log_balances_computed(get_request_id(request), household_id, len(balances), duration_ms)

    return [
        BalanceItem(
            from_user_id=a.balance.from_user_id,
            to_user_id=a.balance.to_user_id,
            amount=round_currency(a.balance.amount),
            since_date=a.since_date.isoformat() if a.since_date else None,
        )
        for a in annotated
    ]


@router.get("/expenses/household/{household_id}/insights", response_model=InsightsResponse)
def get_insights(
    household_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Category breakdown, six-month trend and next-month forecast"""
    start_time = time.time()
    household = require_household_member(db, household_id, user_id)
    expenses = ExpenseRepository(db).list_records(household.id)

    with insights_computation_histogram.time():
        insights = calculate_insights(expenses, now)

    duration_ms = (time.time() - start_time) * 1000
    log_insights_computed(
        get_request_id(request),
        household_id,
        insights.total_spent,
        insights.predictions.trend.value,
        duration_ms,
    )

    return InsightsResponse(
        by_category=[
            CategorySpendingSchema(category=c.category, amount=c.amount, percentage=c.percentage, count=c.count)
            for c in insights.by_category
        ],
        monthly_trend=[MonthlyPointSchema(month=p.month, amount=p.amount) for p in insights.monthly_trend],
        predictions=PredictionSchema(next_month=insights.predictions.next_month, trend=insights.predictions.trend),
        total_spent=insights.total_spent,
        average_monthly=insights.average_monthly,
    )


@router.post("/expenses/categorize", response_model=CategorizeResponse)
def categorize_expense(
    request_body: CategorizeRequest,
    user_id: str = Depends(get_current_user_id),
):
    """Suggest a category for a free-text description"""
    result = categorize_by_rules(request_body.description)
    return CategorizeResponse(category=result.category, confidence=result.confidence, reason=result.reason)


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
def create_expense(
    request_body: ExpenseCreateRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Record an expense.

    Even splits may omit `shares`; they are computed in cents so they always
    add up to the total. Manual splits must supply one share per participant.
    """
    request_id = get_request_id(request)
    household = require_household_member(db, request_body.household_id, user_id)
    member_ids = {m.user_id for m in household.members}

    if request_body.shares is not None:
        shares = [ExpenseShare(member_id=s.user_id, amount=s.amount) for s in request_body.shares]
    elif request_body.split_method == SplitMethod.EVEN:
        shares = split_evenly(request_body.total_amount, request_body.participants)
    else:
        raise HTTPException(status_code=400, detail="Manual splits require shares")

    try:
        validate_expense(
            total_amount=request_body.total_amount,
            paid_by=request_body.paid_by,
            participants=request_body.participants,
            shares=shares,
            member_ids=member_ids,
        )

        expense = ExpenseRepository(db).create_expense(
            household_id=household.id,
            description=request_body.description,
            total_amount=request_body.total_amount,
            paid_by=request_body.paid_by,
            participants=request_body.participants,
            split_method=request_body.split_method.value,
            shares=shares,
            date=ensure_utc(request_body.date),
            category=request_body.category,
        )
        db.commit()
        db.refresh(expense)

    except InvalidExpenseError as e:
        db.rollback()
        logging.warning(f"Invalid expense: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_expense(expense.category)
    logging.info(
        "Expense created",
        extra={"request_id": request_id, "household_id": str(household.id), "expense_id": str(expense.id)},
    )
    return expense_to_response(expense)


@router.delete("/expenses/{expense_id}")
def delete_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete an expense; any member of its household may do so"""
    expense_repo = ExpenseRepository(db)
    expense = expense_repo.get_expense(parse_uuid(expense_id, "expense ID"))
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")

    require_household_member(db, str(expense.household_id), user_id)

    expense_repo.delete_expense(expense)
    db.commit()
    return {"success": True}
