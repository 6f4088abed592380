"""Pytest fixtures for testing"""

import os

# Must be set before finance_api.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import uuid
import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_api.api.main import create_app
from finance_api.infrastructure.database.models import Base, Category, CreditCard, CreditCardBill, Transaction
from finance_api.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user_ana"
OTHER_USER_ID = "user_bruno"


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
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    return {"X-User-ID": USER_ID}


@pytest.fixture
def category(db: Session) -> Category:
    """Expense category owned by the default test user"""
    cat = Category(user_id=USER_ID, name="Rent", type="expense", color="#EF4444")
    db.add(cat)
    db.commit()
    return cat


@pytest.fixture
def card(db: Session) -> CreditCard:
    """Credit card due on the 10th"""
    cc = CreditCard(
        user_id=USER_ID,
        name="Nubank",
        last_four_digits="1234",
        brand="mastercard",
        limit_cents=500000,
        closing_day=3,
        due_day=10,
        color="#8B5CF6",
    )
    db.add(cc)
    db.commit()
    return cc


@pytest.fixture
def make_transaction(db: Session, category: Category):
    """Factory committing a transaction for the default test user"""

    def _make(
        description: str = "Rent",
        amount_cents: int = 150000,
        on: date = date(2024, 1, 5),
        type: str = "expense",
        is_fixed: bool = True,
        is_paid: bool = False,
        day_of_month: int | None = None,
        credit_card_id: uuid.UUID | None = None,
        installment_info: dict | None = None,
        user_id: str = USER_ID,
        category_id: uuid.UUID | None = None,
    ) -> Transaction:
        txn = Transaction(
            user_id=user_id,
            category_id=category_id or category.id,
            description=description,
            amount_cents=amount_cents,
            date=on,
            period=f"{on.year:04d}-{on.month:02d}",
            type=type,
            is_fixed=is_fixed,
            is_paid=is_paid,
            day_of_month=day_of_month,
            credit_card_id=credit_card_id,
            installment_info=installment_info,
        )
        db.add(txn)
        db.commit()
        return txn

    return _make


@pytest.fixture
def make_bill(db: Session):
    """Factory committing a credit card bill"""

    def _make(card_id: uuid.UUID, period: str = "2024-01", total_cents: int = 0, user_id: str = USER_ID) -> CreditCardBill:
        year, month = int(period[:4]), int(period[5:])
        bill = CreditCardBill(
            user_id=user_id,
            card_id=card_id,
            period=period,
            total_cents=total_cents,
            paid_cents=0,
            due_date=date(year, month, 10),
            status="pending",
            transaction_ids=[],
        )
        db.add(bill)
        db.commit()
        return bill

    return _make
