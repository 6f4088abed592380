"""Period duplication - carries fixed transactions and card bills into another month"""

import hashlib
import logging
from typing import Any, Callable, Dict

from sqlalchemy import UniqueConstraint
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from finance_api.domain.exceptions import StoreFailureError
from finance_api.domain.models import DuplicationOptions, DuplicationResult
from finance_api.domain.periods import bill_due_date, parse_period, project_date
from finance_api.infrastructure.database.models import (
    Transaction,
    bill_period_uq,
    transaction_duplication_uq,
)
from finance_api.infrastructure.database.repositories import (
    BillRepository,
    CreditCardRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)


def duplication_key(txn: Transaction) -> str:
    """Stable digest of the fields that make two fixed transactions equivalent"""
    parts = [
        txn.description,
        str(txn.amount_cents),
        str(txn.category_id),
        txn.type,
        "fixed" if txn.is_fixed else "variable",
        str(txn.credit_card_id) if txn.credit_card_id is not None else "-",
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


class PeriodDuplicationService:
    """
    Copy a user's recurring obligations from a source period to a target period.

    Every created record is committed on its own so the run is safe to repeat:
    equivalent transactions and existing bills are counted and skipped, and a
    uniqueness violation raised by a concurrent run counts as "already exists".
    Nothing in the source period is modified.
    """

    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.cards = CreditCardRepository(db)
        self.bills = BillRepository(db)

    def duplicate(
        self,
        user_id: str,
        source_period: str,
        target_period: str,
        options: DuplicationOptions,
    ) -> DuplicationResult:
        """
        Run one duplication variant.

        Raises:
            InvalidPeriodFormatError: either period is not YYYY-MM (nothing is read)
            StoreFailureError: the database failed mid-run; records already created stay
        """
        parse_period(source_period)
        parse_period(target_period)

        result = DuplicationResult(source_period=source_period, target_period=target_period)

        try:
            self._duplicate_transactions(user_id, source_period, target_period, options, result)
            if options.duplicate_bills:
                # Bills last so recomputed totals see the new transactions
                self._duplicate_bills(user_id, source_period, target_period, options, result)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureError(f"Duplication {source_period} -> {target_period} failed: {e}") from e

        return result

    def _duplicate_transactions(
        self,
        user_id: str,
        source_period: str,
        target_period: str,
        options: DuplicationOptions,
        result: DuplicationResult,
    ) -> None:
        candidates = self.transactions.find_fixed(user_id, source_period, options.card_scope)

        for source in candidates:
            if self.transactions.find_equivalent(user_id, target_period, source) is not None:
                result.transactions_existing += 1
                continue

            fields = self._copy_fields(source, target_period)
            if self._commit_new(lambda: self.transactions.create(user_id, **fields), transaction_duplication_uq):
                result.transactions_created += 1
            else:
                result.transactions_existing += 1

    def _copy_fields(self, source: Transaction, target_period: str) -> Dict[str, Any]:
        has_card = source.credit_card_id is not None
        return {
            "category_id": source.category_id,
            "description": source.description,
            "amount_cents": source.amount_cents,
            "date": project_date(target_period, source.date, source.day_of_month),
            "period": target_period,
            "type": source.type,
            "is_fixed": source.is_fixed,
            "is_recurring": bool(source.is_recurring),
            "recurring_rule": source.recurring_rule or None,
            "day_of_month": source.day_of_month or None,
            "credit_card_id": source.credit_card_id,
            "installment_info": (source.installment_info or None) if has_card else None,
            "is_paid": False,
            "duplication_key": duplication_key(source),
        }

    def _duplicate_bills(
        self,
        user_id: str,
        source_period: str,
        target_period: str,
        options: DuplicationOptions,
        result: DuplicationResult,
    ) -> None:
        source_card_ids = [bill.card_id for bill in self.bills.list_for_period(user_id, source_period)]

        for card_id in source_card_ids:
            if self.bills.get_for_card_period(user_id, card_id, target_period) is not None:
                result.bills_existing += 1
                continue

            card = self.cards.get(user_id, card_id)
            if card is None:
                logger.info(
                    "Skipping bill of deleted card",
                    extra={"user_id": user_id, "card_id": str(card_id), "target_period": target_period},
                )
                result.bills_skipped_stale += 1
                continue

            linked = []
            if options.recompute_bill_total or options.copy_bill_transaction_refs:
                linked = self.transactions.list_for_card_period(user_id, card_id, target_period)

            fields = {
                "card_id": card_id,
                "period": target_period,
                "total_cents": sum(t.amount_cents for t in linked) if options.recompute_bill_total else 0,
                "paid_cents": 0,
                "due_date": bill_due_date(target_period, card.due_day),
                "status": "pending",
                "transaction_ids": [str(t.id) for t in linked] if options.copy_bill_transaction_refs else [],
            }
            if self._commit_new(lambda: self.bills.create(user_id, **fields), bill_period_uq):
                result.bills_created += 1
            else:
                result.bills_existing += 1

    def _commit_new(self, create: Callable[[], Any], constraint: UniqueConstraint) -> bool:
        """
        Insert and commit one record.

        Returns False when `constraint` rejects it (a concurrent run created it
        first). Any other integrity error propagates.
        """
        try:
            create()
            self.db.commit()
            return True
        except IntegrityError as e:
            self.db.rollback()
            if not violates(e, constraint):
                raise
            logger.warning(
                "Concurrent duplicate rejected by unique constraint",
                extra={"constraint": constraint.name},
            )
            return False


def violates(error: IntegrityError, constraint: UniqueConstraint) -> bool:
    """Whether an integrity error was raised by the given unique constraint"""
    diag = getattr(error.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name == constraint.name

    # sqlite names the columns, not the constraint
    message = str(error.orig)
    columns = ", ".join(f"{constraint.table.name}.{column.name}" for column in constraint.columns)
    return constraint.name in message or f"UNIQUE constraint failed: {columns}" in message
