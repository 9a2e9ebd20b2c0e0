"""SQLAlchemy ORM models for households, expenses and settlements"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, Text, JSON, Uuid, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Household(Base):
    """Shared household whose members split expenses"""

    __tablename__ = "household"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    owner_id = Column(Text, nullable=False)
    join_code = Column(String(6), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    members = relationship(
        "HouseholdMember",
        back_populates="household",
        cascade="all, delete-orphan",
        order_by="HouseholdMember.joined_at",
    )


class HouseholdMember(Base):
    """Membership of a user in a household, with display name and push token"""

    __tablename__ = "household_member"
    __table_args__ = (UniqueConstraint("household_id", "user_id", name="uq_household_member"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    household_id = Column(Uuid(as_uuid=True), ForeignKey("household.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, nullable=False, index=True)
    display_name = Column(Text, nullable=False)
    push_token = Column(Text, nullable=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    household = relationship("Household", back_populates="members")


class Expense(Base):
    """Expense paid by one member and split among participants"""

    __tablename__ = "expense"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    household_id = Column(Uuid(as_uuid=True), ForeignKey("household.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    total_amount = Column(Float, nullable=False)
    paid_by = Column(Text, nullable=False)
    participants = Column(JSON, nullable=False)
    split_method = Column(Text, nullable=False)
    category = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Shares keep the order they were submitted in
    shares = relationship(
        "ExpenseShare",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseShare.position",
    )


class ExpenseShare(Base):
    """One participant's portion of an expense"""

    __tablename__ = "expense_share"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    expense_id = Column(Uuid(as_uuid=True), ForeignKey("expense.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    expense = relationship("Expense", back_populates="shares")


class Settlement(Base):
    """Payment from one member to another"""

    __tablename__ = "settlement"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    household_id = Column(Uuid(as_uuid=True), ForeignKey("household.id", ondelete="CASCADE"), nullable=False, index=True)
    from_user_id = Column(Text, nullable=False)
    to_user_id = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    method = Column(Text, nullable=True)
    note = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
