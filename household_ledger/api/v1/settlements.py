"""Settlement endpoints, including automated netting of mutual debts"""

import logging
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from household_ledger.api.v1.schemas import (
    NetBalanceRequest,
    NetBalanceResponse,
    SettlementCreateRequest,
    SettlementResponse,
)
from household_ledger.api.dependencies import (
    get_current_user_id,
    get_now,
    get_request_id,
    require_household_member,
)
from household_ledger.domain.balances import compute_mutual_debts, plan_netting_settlement
from household_ledger.domain.exceptions import InvalidSettlementError, NoMutualDebtsError
from household_ledger.domain.validation import validate_settlement
from household_ledger.infrastructure.database.models import Settlement
from household_ledger.infrastructure.database.session import get_db
from household_ledger.infrastructure.database.repositories import ExpenseRepository, SettlementRepository
from household_ledger.infrastructure.observability.metrics import record_settlement
from household_ledger.utils.date_utils import ensure_utc
from household_ledger.utils.money import round_currency

router = APIRouter()

NET_BALANCE_METHOD = "Net Balance"


def settlement_to_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        settlement_id=str(settlement.id),
        household_id=str(settlement.household_id),
        from_user_id=settlement.from_user_id,
        to_user_id=settlement.to_user_id,
        amount=settlement.amount,
        method=settlement.method,
        note=settlement.note,
        date=settlement.date.isoformat(),
        created_at=settlement.created_at.isoformat(),
    )


@router.get("/settlements/household/{household_id}", response_model=List[SettlementResponse])
def list_settlements(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """All household settlements, most recent first"""
    household = require_household_member(db, household_id, user_id)
    return [settlement_to_response(s) for s in SettlementRepository(db).list_by_household(household.id)]


@router.post("/settlements", response_model=SettlementResponse, status_code=201)
def create_settlement(
    request_body: SettlementCreateRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record a payment between two members"""
    request_id = get_request_id(request)
    household = require_household_member(db, request_body.household_id, user_id)

    try:
        validate_settlement(
            request_body.from_user_id,
            request_body.to_user_id,
            {m.user_id for m in household.members},
        )
    except InvalidSettlementError as e:
        logging.warning(f"Invalid settlement: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    settlement = SettlementRepository(db).create_settlement(
        household_id=household.id,
        from_user_id=request_body.from_user_id,
        to_user_id=request_body.to_user_id,
        amount=request_body.amount,
        date=ensure_utc(request_body.date),
        method=request_body.method,
        note=request_body.note,
    )
    db.commit()
    db.refresh(settlement)

    record_settlement(settlement.method)
    logging.info(
        "Settlement created",
        extra={"request_id": request_id, "household_id": str(household.id), "settlement_id": str(settlement.id)},
    )
    return settlement_to_response(settlement)


@router.post("/settlements/net-balance", response_model=NetBalanceResponse, status_code=201)
def net_balance(
    request_body: NetBalanceRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """
    Cancel mutual debts between the caller and another member.

    Flow:
    1. Compute raw debts in both directions (shares minus same-direction settlements)
    2. Require both directions to be outstanding
    3. Record a pair of offsetting settlements for the smaller debt
    4. Return the settlements and the residual balance

    The pairwise net reported by the balances endpoint is unchanged; only the
    raw per-direction debts are cleared.
    """
    request_id = get_request_id(request)
    household = require_household_member(db, request_body.household_id, user_id)

    if request_body.other_user_id == user_id:
        raise HTTPException(status_code=400, detail="Cannot net balance with yourself")
    if not any(m.user_id == request_body.other_user_id for m in household.members):
        raise HTTPException(status_code=400, detail="other_user_id must be a member of the household")

    expenses = ExpenseRepository(db).list_records(household.id)
    settlement_repo = SettlementRepository(db)
    mutual = compute_mutual_debts(
        expenses,
        settlement_repo.list_records(household.id),
        user_id,
        request_body.other_user_id,
    )

    try:
        plan = plan_netting_settlement(mutual)
    except NoMutualDebtsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        settlements = [
            settlement_repo.create_settlement(
                household_id=household.id,
                from_user_id=from_id,
                to_user_id=to_id,
                amount=plan.amount,
                date=now,
                method=NET_BALANCE_METHOD,
                note="Automated net balance settlement",
            )
            for from_id, to_id in ((plan.debtor_id, plan.creditor_id), (plan.creditor_id, plan.debtor_id))
        ]
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    for settlement in settlements:
        db.refresh(settlement)
        record_settlement(settlement.method)

    logging.info(
        "Mutual debts netted",
        extra={
            "request_id": request_id,
            "household_id": str(household.id),
            "amount": plan.amount,
            "remaining_balance": plan.remaining_balance,
        },
    )
    return NetBalanceResponse(
        settlements=[settlement_to_response(s) for s in settlements],
        new_net_balance=round_currency(plan.remaining_balance),
    )
