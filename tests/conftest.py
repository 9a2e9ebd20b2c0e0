"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Callable, Generator, List, Optional, Tuple
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from household_ledger.api.main import create_app
from household_ledger.api.dependencies import get_now
from household_ledger.infrastructure.database.models import Base
from household_ledger.infrastructure.database.session import get_db
from household_ledger.domain.models import ExpenseRecord, ExpenseShare, SettlementRecord


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a frozen clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    return TestClient(app)


@pytest.fixture
def make_expense() -> Callable[..., ExpenseRecord]:
    """Factory for expense records; shares given as (member_id, amount) pairs"""
    counter = {"n": 0}

    def _make(
        paid_by: str,
        shares: List[Tuple[str, float]],
        date: datetime = FIXED_NOW,
        category: Optional[str] = None,
        created_at: Optional[datetime] = None,
        total_amount: Optional[float] = None,
    ) -> ExpenseRecord:
        counter["n"] += 1
        return ExpenseRecord(
            id=f"exp_{counter['n']}",
            household_id="house_1",
            total_amount=total_amount if total_amount is not None else sum(a for _, a in shares),
            paid_by=paid_by,
            participants=[member for member, _ in shares],
            shares=[ExpenseShare(member_id=member, amount=amount) for member, amount in shares],
            date=date,
            created_at=created_at or date,
            category=category,
        )

    return _make


@pytest.fixture
def make_settlement() -> Callable[..., SettlementRecord]:
    """Factory for settlement records"""
    counter = {"n": 0}

    def _make(from_user_id: str, to_user_id: str, amount: float, date: datetime = FIXED_NOW) -> SettlementRecord:
        counter["n"] += 1
        return SettlementRecord(
            id=f"set_{counter['n']}",
            household_id="house_1",
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            date=date,
        )

    return _make
