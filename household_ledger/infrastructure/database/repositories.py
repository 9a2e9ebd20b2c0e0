"""Data access layer for households, expenses and settlements"""

import secrets
import string
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from household_ledger.infrastructure.database.models import (
    Expense,
    ExpenseShare,
    Household,
    HouseholdMember,
    Settlement,
)
from household_ledger.domain.models import (
    ExpenseRecord,
    ExpenseShare as DomainExpenseShare,
    SettlementRecord,
)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_LENGTH = 6


def generate_join_code() -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def to_expense_record(expense: Expense) -> ExpenseRecord:
    """Map an ORM expense to the record the ledger engines consume"""
    return ExpenseRecord(
        id=str(expense.id),
        household_id=str(expense.household_id),
        total_amount=expense.total_amount,
        paid_by=expense.paid_by,
        participants=list(expense.participants),
        shares=[DomainExpenseShare(member_id=s.user_id, amount=s.amount) for s in expense.shares],
        date=expense.date,
        created_at=expense.created_at,
        category=expense.category,
        description=expense.description,
    )


def to_settlement_record(settlement: Settlement) -> SettlementRecord:
    return SettlementRecord(
        id=str(settlement.id),
        household_id=str(settlement.household_id),
        from_user_id=settlement.from_user_id,
        to_user_id=settlement.to_user_id,
        amount=settlement.amount,
        date=settlement.date,
    )


class HouseholdRepository:
    """Repository for households and their members"""

    def __init__(self, db: Session):
        self.db = db

    def create_household(
        self,
        name: str,
        owner_id: str,
        owner_name: str,
        address: Optional[str] = None,
        owner_push_token: Optional[str] = None,
    ) -> Household:
        """Create household with the owner as its first member"""
        join_code = generate_join_code()
        while self.get_by_join_code(join_code) is not None:
            join_code = generate_join_code()

        db_household = Household(name=name, address=address, owner_id=owner_id, join_code=join_code)
        self.db.add(db_household)
        self.db.flush()

        self.add_member(db_household.id, owner_id, owner_name, owner_push_token)
        return db_household

    def add_member(
        self,
        household_id: uuid.UUID,
        user_id: str,
        display_name: str,
        push_token: Optional[str] = None,
    ) -> HouseholdMember:
        db_member = HouseholdMember(
            household_id=household_id,
            user_id=user_id,
            display_name=display_name,
            push_token=push_token,
        )
        self.db.add(db_member)
        self.db.flush()
        return db_member

    def get_household(self, household_id: uuid.UUID) -> Optional[Household]:
        return (
            self.db.query(Household)
            .filter(Household.id == household_id)
            .first()
        )

    def get_by_join_code(self, join_code: str) -> Optional[Household]:
        return (
            self.db.query(Household)
            .filter(Household.join_code == join_code.upper())
            .first()
        )

    def list_households(self) -> List[Household]:
        return self.db.query(Household).order_by(Household.created_at).all()

    def list_for_member(self, user_id: str) -> List[Household]:
        """Households the user belongs to, oldest first"""
        return (
            self.db.query(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .filter(HouseholdMember.user_id == user_id)
            .order_by(Household.created_at)
            .all()
        )

    def get_member(self, household_id: uuid.UUID, user_id: str) -> Optional[HouseholdMember]:
        return (
            self.db.query(HouseholdMember)
            .filter(HouseholdMember.household_id == household_id, HouseholdMember.user_id == user_id)
            .first()
        )

    def remove_member(self, member: HouseholdMember) -> None:
        self.db.delete(member)
        self.db.flush()


class ExpenseRepository:
    """Repository for expenses and their shares"""

    def __init__(self, db: Session):
        self.db = db

    def create_expense(
        self,
        household_id: uuid.UUID,
        description: str,
        total_amount: float,
        paid_by: str,
        participants: List[str],
        split_method: str,
        shares: List[DomainExpenseShare],
        date: datetime,
        category: Optional[str] = None,
    ) -> Expense:
        """Persist expense with one share row per participant"""
        db_expense = Expense(
            household_id=household_id,
            description=description,
            total_amount=total_amount,
            paid_by=paid_by,
            participants=list(participants),
            split_method=split_method,
            category=category,
            date=date,
        )
        self.db.add(db_expense)
        self.db.flush()

        for position, share in enumerate(shares):
            self.db.add(
                ExpenseShare(
                    expense_id=db_expense.id,
                    user_id=share.member_id,
                    amount=share.amount,
                    position=position,
                )
            )
        self.db.flush()

        return db_expense

    def get_expense(self, expense_id: uuid.UUID) -> Optional[Expense]:
        return (
            self.db.query(Expense)
            .filter(Expense.id == expense_id)
            .first()
        )

    def list_by_household(self, household_id: uuid.UUID) -> List[Expense]:
        """Most recent first"""
        return (
            self.db.query(Expense)
            .filter(Expense.household_id == household_id)
            .order_by(Expense.date.desc())
            .all()
        )

    def list_records(self, household_id: uuid.UUID) -> List[ExpenseRecord]:
        """Household expenses in insertion order, mapped for the ledger engines"""
        expenses = (
            self.db.query(Expense)
            .filter(Expense.household_id == household_id)
            .order_by(Expense.created_at)
            .all()
        )
        return [to_expense_record(e) for e in expenses]

    def delete_expense(self, expense: Expense) -> None:
        self.db.delete(expense)
        self.db.flush()


class SettlementRepository:
    """Repository for settlements"""

    def __init__(self, db: Session):
        self.db = db

    def create_settlement(
        self,
        household_id: uuid.UUID,
        from_user_id: str,
        to_user_id: str,
        amount: float,
        date: datetime,
        method: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Settlement:
        db_settlement = Settlement(
            household_id=household_id,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            method=method,
            note=note,
            date=date,
        )
        self.db.add(db_settlement)
        self.db.flush()
        return db_settlement

    def list_by_household(self, household_id: uuid.UUID) -> List[Settlement]:
        """Most recent first"""
        return (
            self.db.query(Settlement)
            .filter(Settlement.household_id == household_id)
            .order_by(Settlement.date.desc())
            .all()
        )

    def list_records(self, household_id: uuid.UUID) -> List[SettlementRecord]:
        settlements = (
            self.db.query(Settlement)
            .filter(Settlement.household_id == household_id)
            .order_by(Settlement.created_at)
            .all()
        )
        return [to_settlement_record(s) for s in settlements]
