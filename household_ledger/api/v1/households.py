"""Household creation, membership and lookup"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from household_ledger.api.v1.schemas import (
    HouseholdCreateRequest,
    HouseholdJoinRequest,
    HouseholdResponse,
    MemberSchema,
)
from household_ledger.api.dependencies import get_current_user_id, require_household_member
from household_ledger.infrastructure.database.models import Household
from household_ledger.infrastructure.database.session import get_db
from household_ledger.infrastructure.database.repositories import HouseholdRepository

router = APIRouter()


def household_to_response(household: Household) -> HouseholdResponse:
    return HouseholdResponse(
        household_id=str(household.id),
        name=household.name,
        address=household.address,
        owner_id=household.owner_id,
        join_code=household.join_code,
        members=[MemberSchema(user_id=m.user_id, display_name=m.display_name) for m in household.members],
        created_at=household.created_at.isoformat(),
    )


@router.get("/households", response_model=List[HouseholdResponse])
def list_households(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Households the caller is a member of"""
    return [household_to_response(h) for h in HouseholdRepository(db).list_for_member(user_id)]


@router.post("/households", response_model=HouseholdResponse, status_code=201)
def create_household(
    request_body: HouseholdCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a household with the caller as owner and first member"""
    household_repo = HouseholdRepository(db)
    household = household_repo.create_household(
        name=request_body.name,
        owner_id=user_id,
        owner_name=request_body.display_name,
        address=request_body.address,
        owner_push_token=request_body.push_token,
    )
    db.commit()
    db.refresh(household)

    logging.info("Household created", extra={"household_id": str(household.id), "user_id": user_id})
    return household_to_response(household)


@router.post("/households/join", response_model=HouseholdResponse)
def join_household(
    request_body: HouseholdJoinRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Join a household by its six-character code"""
    household_repo = HouseholdRepository(db)
    household = household_repo.get_by_join_code(request_body.join_code)
    if household is None:
        raise HTTPException(status_code=404, detail="Invalid join code")

    if household_repo.get_member(household.id, user_id) is not None:
        raise HTTPException(status_code=409, detail="Already a member of this household")

    household_repo.add_member(household.id, user_id, request_body.display_name, request_body.push_token)
    db.commit()
    db.refresh(household)

    logging.info("Member joined household", extra={"household_id": str(household.id), "user_id": user_id})
    return household_to_response(household)


@router.get("/households/{household_id}", response_model=HouseholdResponse)
def get_household(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Household details, visible to members only"""
    household = require_household_member(db, household_id, user_id)
    return household_to_response(household)


@router.post("/households/{household_id}/leave")
def leave_household(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Leave a household.

    The owner cannot leave. Past expenses and settlements stay in the ledger,
    so balances with the departed member are still reported.
    """
    household = require_household_member(db, household_id, user_id)
    if household.owner_id == user_id:
        raise HTTPException(status_code=400, detail="Owner cannot leave the household")

    household_repo = HouseholdRepository(db)
    household_repo.remove_member(household_repo.get_member(household.id, user_id))
    db.commit()

    logging.info("Member left household", extra={"household_id": household_id, "user_id": user_id})
    return {"success": True}
