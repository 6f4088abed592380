"""Data access layer for finance records, always scoped to the owning user"""

import uuid
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from finance_api.infrastructure.database.models import (
    AIAnalysis,
    BudgetGoals,
    Category,
    CreditCard,
    CreditCardBill,
    Transaction,
)
from finance_api.domain.models import CardScope


class CategoryRepository:
    """Repository for categories"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str, type: Optional[str] = None) -> List[Category]:
        query = self.db.query(Category).filter(Category.user_id == user_id)
        if type:
            query = query.filter(Category.type == type)
        return query.order_by(Category.name).all()

    def get(self, user_id: str, category_id: uuid.UUID) -> Optional[Category]:
        return (
            self.db.query(Category)
            .filter(Category.id == category_id, Category.user_id == user_id)
            .first()
        )

    def find_by_name(self, user_id: str, name: str, exclude_id: Optional[uuid.UUID] = None) -> Optional[Category]:
        """Case-insensitive name lookup"""
        query = self.db.query(Category).filter(
            Category.user_id == user_id,
            func.lower(Category.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first()

    def create(self, user_id: str, name: str, type: str, color: str) -> Category:
        category = Category(user_id=user_id, name=name, type=type, color=color)
        self.db.add(category)
        self.db.flush()
        return category

    def delete(self, category: Category) -> None:
        self.db.delete(category)
        self.db.flush()


class CreditCardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str, active: Optional[bool] = None) -> List[CreditCard]:
        query = self.db.query(CreditCard).filter(CreditCard.user_id == user_id)
        if active is not None:
            query = query.filter(CreditCard.is_active == active)
        return query.order_by(CreditCard.name).all()

    def get(self, user_id: str, card_id: uuid.UUID) -> Optional[CreditCard]:
        return (
            self.db.query(CreditCard)
            .filter(CreditCard.id == card_id, CreditCard.user_id == user_id)
            .first()
        )

    def create(self, user_id: str, **fields) -> CreditCard:
        card = CreditCard(user_id=user_id, **fields)
        self.db.add(card)
        self.db.flush()
        return card

    def delete(self, card: CreditCard) -> None:
        self.db.delete(card)
        self.db.flush()

    def active_limits_cents(self, user_id: str) -> List[int]:
        rows = (
            self.db.query(CreditCard.limit_cents)
            .filter(CreditCard.user_id == user_id, CreditCard.is_active.is_(True))
            .all()
        )
        return [row[0] for row in rows]


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def search(
        self,
        user_id: str,
        period: Optional[str] = None,
        type: Optional[str] = None,
        category_id: Optional[uuid.UUID] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Transaction], int]:
        """Filtered page of transactions, newest first, plus the total match count"""
        query = self.db.query(Transaction).filter(Transaction.user_id == user_id)
        if period:
            query = query.filter(Transaction.period == period)
        if type:
            query = query.filter(Transaction.type == type)
        if category_id is not None:
            query = query.filter(Transaction.category_id == category_id)

        total = query.count()
        items = (
            query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def list_for_period(self, user_id: str, period: str) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.user_id == user_id, Transaction.period == period)
            .order_by(Transaction.date.desc())
            .all()
        )

    def get(self, user_id: str, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .first()
        )

    def create(self, user_id: str, **fields) -> Transaction:
        txn = Transaction(user_id=user_id, **fields)
        self.db.add(txn)
        self.db.flush()
        return txn

    def delete(self, txn: Transaction) -> None:
        self.db.delete(txn)
        self.db.flush()

    def find_fixed(self, user_id: str, period: str, card_scope: CardScope) -> List[Transaction]:
        """Fixed transactions of a period, filtered by credit card association"""
        query = self.db.query(Transaction).filter(
            Transaction.user_id == user_id,
            Transaction.period == period,
            Transaction.is_fixed.is_(True),
        )
        if card_scope == CardScope.EXCLUDE:
            query = query.filter(Transaction.credit_card_id.is_(None))
        elif card_scope == CardScope.ONLY:
            query = query.filter(Transaction.credit_card_id.isnot(None))
        return query.order_by(Transaction.date, Transaction.created_at).all()

    def find_equivalent(self, user_id: str, period: str, template: Transaction) -> Optional[Transaction]:
        """
        Look for a transaction in `period` matching the template's identity.

        Same description, amount, category, type, fixed flag and credit card
        reference; a missing card only matches a missing card.
        """
        query = self.db.query(Transaction).filter(
            Transaction.user_id == user_id,
            Transaction.period == period,
            Transaction.description == template.description,
            Transaction.amount_cents == template.amount_cents,
            Transaction.category_id == template.category_id,
            Transaction.type == template.type,
            Transaction.is_fixed == template.is_fixed,
        )
        if template.credit_card_id is None:
            query = query.filter(Transaction.credit_card_id.is_(None))
        else:
            query = query.filter(Transaction.credit_card_id == template.credit_card_id)
        return query.first()

    def list_for_card_period(self, user_id: str, card_id: uuid.UUID, period: str) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.user_id == user_id,
                Transaction.credit_card_id == card_id,
                Transaction.period == period,
            )
            .order_by(Transaction.date, Transaction.created_at)
            .all()
        )


class BillRepository:
    """Repository for credit card bills"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_period(self, user_id: str, period: str) -> List[CreditCardBill]:
        return (
            self.db.query(CreditCardBill)
            .filter(CreditCardBill.user_id == user_id, CreditCardBill.period == period)
            .order_by(CreditCardBill.created_at, CreditCardBill.due_date)
            .all()
        )

    def get_for_card_period(self, user_id: str, card_id: uuid.UUID, period: str) -> Optional[CreditCardBill]:
        return (
            self.db.query(CreditCardBill)
            .filter(
                CreditCardBill.user_id == user_id,
                CreditCardBill.card_id == card_id,
                CreditCardBill.period == period,
            )
            .first()
        )

    def create(self, user_id: str, **fields) -> CreditCardBill:
        bill = CreditCardBill(user_id=user_id, **fields)
        self.db.add(bill)
        self.db.flush()
        return bill


class AIAnalysisRepository:
    """Repository for monthly AI analyses, one per user and month"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str, offset: int = 0, limit: int = 10) -> Tuple[List[AIAnalysis], int]:
        """Page of analyses, most recent month first, plus the total count"""
        query = self.db.query(AIAnalysis).filter(AIAnalysis.user_id == user_id)
        total = query.count()
        items = query.order_by(AIAnalysis.month.desc()).offset(offset).limit(limit).all()
        return items, total

    def get_for_month(self, user_id: str, month: str) -> Optional[AIAnalysis]:
        return (
            self.db.query(AIAnalysis)
            .filter(AIAnalysis.user_id == user_id, AIAnalysis.month == month)
            .first()
        )

    def upsert(self, user_id: str, month: str, analysis: dict) -> Tuple[AIAnalysis, bool]:
        """Replace the month's analysis or create it; the flag is True when created"""
        record = self.get_for_month(user_id, month)
        created = record is None
        if created:
            record = AIAnalysis(user_id=user_id, month=month, analysis=analysis)
            self.db.add(record)
        else:
            record.analysis = analysis
        self.db.flush()
        return record, created

    def delete(self, record: AIAnalysis) -> None:
        self.db.delete(record)
        self.db.flush()


class BudgetGoalsRepository:
    """Repository for budget goals, a single document per user"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_user(self, user_id: str) -> Optional[BudgetGoals]:
        return self.db.query(BudgetGoals).filter(BudgetGoals.user_id == user_id).first()

    def upsert(self, user_id: str, goals: dict) -> Tuple[BudgetGoals, bool]:
        record = self.get_for_user(user_id)
        created = record is None
        if created:
            record = BudgetGoals(user_id=user_id, goals=goals)
            self.db.add(record)
        else:
            record.goals = goals
        self.db.flush()
        return record, created

    def delete(self, record: BudgetGoals) -> None:
        self.db.delete(record)
        self.db.flush()
