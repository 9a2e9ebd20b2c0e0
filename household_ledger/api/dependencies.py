"""Dependency injection for FastAPI endpoints"""

import uuid
import logging
from datetime import datetime, timezone
from fastapi import Header, HTTPException, Request
from sqlalchemy.orm import Session

from household_ledger.domain.exceptions import AccessDeniedError, HouseholdNotFoundError
from household_ledger.infrastructure.database.models import Household
from household_ledger.infrastructure.database.repositories import HouseholdRepository


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Caller identity; authentication happens upstream and forwards X-User-ID"""
    return x_user_id


def get_now() -> datetime:
    """Clock for time-dependent endpoints, overridable in tests"""
    return datetime.now(timezone.utc)


def parse_uuid(value: str, label: str = "ID") -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")


def find_household_for_member(db: Session, household_id: uuid.UUID, user_id: str) -> Household:
    """
    Load a household the caller belongs to.

    Raises:
        HouseholdNotFoundError: Household does not exist
        AccessDeniedError: Caller is not a member
    """
    household = HouseholdRepository(db).get_household(household_id)
    if household is None:
        raise HouseholdNotFoundError(f"Household {household_id} not found")
    if not any(m.user_id == user_id for m in household.members):
        raise AccessDeniedError(f"User {user_id} is not a member of household {household_id}")
    return household


def require_household_member(db: Session, household_id: str, user_id: str) -> Household:
    """find_household_for_member with errors translated to HTTP responses"""
    household_uuid = parse_uuid(household_id, "household ID")
    try:
        return find_household_for_member(db, household_uuid, user_id)
    except HouseholdNotFoundError:
        raise HTTPException(status_code=404, detail="Household not found")
    except AccessDeniedError as e:
        logging.warning(f"Access denied: {e}")
        raise HTTPException(status_code=403, detail="Access denied")
