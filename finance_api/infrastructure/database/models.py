"""SQLAlchemy ORM models for categories, cards, transactions, bills, analyses and budget goals"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Integer,
    Text,
    JSON,
    Uuid,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# NULL keys (manual entries) never collide
transaction_duplication_uq = UniqueConstraint(
    "user_id", "period", "duplication_key", name="uq_transaction_duplication"
)
bill_period_uq = UniqueConstraint("user_id", "card_id", "period", name="uq_bill_user_card_period")


class Category(Base):
    """User-defined transaction category"""

    __tablename__ = "category"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(String(30), nullable=False)
    type = Column(String(16), nullable=False)  # income | expense | investment
    color = Column(String(7), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class CreditCard(Base):
    """Credit card with its statement closing and due days"""

    __tablename__ = "credit_card"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(String(30), nullable=False)
    last_four_digits = Column(String(4), nullable=False)
    brand = Column(String(16), nullable=False)
    limit_cents = Column(BigInteger, nullable=False, default=0)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    color = Column(String(7), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Transaction(Base):
    """Income, expense or investment entry bucketed by period"""

    __tablename__ = "finance_transaction"
    __table_args__ = (
        transaction_duplication_uq,
        Index("ix_transaction_user_period", "user_id", "period"),
        Index("ix_transaction_user_card", "user_id", "credit_card_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    category_id = Column(Uuid, nullable=False)
    description = Column(String(100), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False)
    period = Column(String(7), nullable=False)
    type = Column(String(16), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    is_fixed = Column(Boolean, nullable=False, default=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_rule = Column(JSON, nullable=True)
    day_of_month = Column(Integer, nullable=True)
    credit_card_id = Column(Uuid, nullable=True)
    installment_info = Column(JSON, nullable=True)
    duplication_key = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class CreditCardBill(Base):
    """Monthly statement of one card; one per user, card and period"""

    __tablename__ = "credit_card_bill"
    __table_args__ = (
        bill_period_uq,
        Index("ix_bill_user_period", "user_id", "period"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    card_id = Column(Uuid, nullable=False)
    period = Column(String(7), nullable=False)
    total_cents = Column(BigInteger, nullable=False, default=0)
    paid_cents = Column(BigInteger, nullable=False, default=0)
    due_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    transaction_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class AIAnalysis(Base):
    """Client-generated financial analysis of one month, stored as-is"""

    __tablename__ = "ai_analysis"
    __table_args__ = (UniqueConstraint("user_id", "month", name="uq_ai_analysis_user_month"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    month = Column(String(7), nullable=False)
    analysis = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class BudgetGoals(Base):
    """The single budget goals document of a user"""

    __tablename__ = "budget_goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, unique=True)
    goals = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
