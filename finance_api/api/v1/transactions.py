"""Transaction CRUD routes"""

import math
import uuid
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_api.api.v1.schemas import (
    ApiResponse,
    Pagination,
    TransactionCreate,
    TransactionOut,
    TransactionPage,
    TransactionUpdate,
    transaction_out,
)
from finance_api.api.dependencies import get_current_user_id, parse_id
from finance_api.config import settings
from finance_api.infrastructure.database.session import get_db
from finance_api.infrastructure.database.repositories import (
    CategoryRepository,
    CreditCardRepository,
    TransactionRepository,
)
from finance_api.domain.exceptions import InvalidPeriodFormatError, StaleReferenceError
from finance_api.domain.periods import parse_period, period_of
from finance_api.utils.money import to_cents

router = APIRouter()

# Changing any of these, or moving it to another period, makes a duplicated transaction a different one
IDENTITY_FIELDS = {"description", "amount_cents", "category_id", "type", "is_fixed", "credit_card_id"}


def _check_references(
    db: Session,
    user_id: str,
    category_id: Optional[uuid.UUID],
    credit_card_id: Optional[uuid.UUID],
) -> None:
    """
    Raises:
        StaleReferenceError: category or card missing for this user
    """
    if category_id is not None and CategoryRepository(db).get(user_id, category_id) is None:
        raise StaleReferenceError("Category not found")
    if credit_card_id is not None and CreditCardRepository(db).get(user_id, credit_card_id) is None:
        raise StaleReferenceError("Credit card not found")


@router.get("/transactions", response_model=ApiResponse[TransactionPage])
def list_transactions(
    period: Optional[str] = Query(None, description="YYYY-MM"),
    type: Optional[Literal["income", "expense", "investment"]] = Query(None),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Paginated, filterable transaction listing, newest first"""
    if period is not None:
        try:
            parse_period(period)
        except InvalidPeriodFormatError as e:
            raise HTTPException(status_code=400, detail=str(e))

    category_uuid = parse_id(category_id) if category_id else None

    items, total = TransactionRepository(db).search(
        user_id,
        period=period,
        type=type,
        category_id=category_uuid,
        offset=(page - 1) * limit,
        limit=limit,
    )

    return ApiResponse(
        message="Transactions found",
        data=TransactionPage(
            transactions=[transaction_out(t) for t in items],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        ),
    )


@router.get("/transactions/{transaction_id}", response_model=ApiResponse[TransactionOut])
def get_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    txn = TransactionRepository(db).get(user_id, parse_id(transaction_id))
    if not txn:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return ApiResponse(message="Transaction found", data=transaction_out(txn))


@router.post("/transactions", status_code=201, response_model=ApiResponse[TransactionOut])
def create_transaction(
    body: TransactionCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Create a transaction.

    The period is always derived from the date, and the category (plus the
    credit card, when given) must belong to the caller.
    """
    try:
        _check_references(db, user_id, body.category_id, body.credit_card_id)
    except StaleReferenceError as e:
        raise HTTPException(status_code=400, detail=str(e))

    txn = TransactionRepository(db).create(
        user_id,
        category_id=body.category_id,
        description=body.description,
        amount_cents=to_cents(body.amount),
        date=body.date,
        period=period_of(body.date),
        type=body.type,
        is_paid=body.is_paid,
        is_fixed=body.is_fixed,
        is_recurring=body.is_recurring,
        recurring_rule=(
            body.recurring_rule.model_dump(mode="json", by_alias=True, exclude_none=True)
            if body.recurring_rule
            else None
        ),
        day_of_month=body.day_of_month,
        credit_card_id=body.credit_card_id,
        installment_info=(
            body.installment_info.model_dump(mode="json", by_alias=True) if body.installment_info else None
        ),
    )
    db.commit()

    return ApiResponse(message="Transaction created", data=transaction_out(txn))


@router.put("/transactions/{transaction_id}", response_model=ApiResponse[TransactionOut])
def update_transaction(
    transaction_id: str,
    body: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Partial update; only fields present in the body change"""
    repo = TransactionRepository(db)
    txn = repo.get(user_id, parse_id(transaction_id))
    if not txn:
        raise HTTPException(status_code=404, detail="Transaction not found")

    changes = body.model_dump(exclude_unset=True)

    try:
        _check_references(db, user_id, changes.get("category_id"), changes.get("credit_card_id"))
    except StaleReferenceError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if "amount" in changes:
        amount = changes.pop("amount")
        if amount is None:
            raise HTTPException(status_code=400, detail="Amount is required")
        changes["amount_cents"] = to_cents(amount)
    if "date" in changes:
        if changes["date"] is None:
            raise HTTPException(status_code=400, detail="Date is required")
        changes["period"] = period_of(changes["date"])
    if "recurring_rule" in changes:
        changes["recurring_rule"] = (
            body.recurring_rule.model_dump(mode="json", by_alias=True, exclude_none=True)
            if body.recurring_rule
            else None
        )
    if "installment_info" in changes:
        changes["installment_info"] = (
            body.installment_info.model_dump(mode="json", by_alias=True) if body.installment_info else None
        )

    required = {"category_id", "description", "type", "is_paid", "is_fixed", "is_recurring"}
    missing = sorted(name for name in required if name in changes and changes[name] is None)
    if missing:
        raise HTTPException(status_code=400, detail=f"Fields cannot be null: {', '.join(missing)}")

    is_recurring = changes.get("is_recurring", txn.is_recurring)
    recurring_rule = changes.get("recurring_rule", txn.recurring_rule)
    if is_recurring and not recurring_rule:
        raise HTTPException(status_code=400, detail="recurringRule is required when isRecurring is true")

    moved = "period" in changes and changes["period"] != txn.period
    if moved or IDENTITY_FIELDS.intersection(changes):
        changes["duplication_key"] = None

    for field, value in changes.items():
        setattr(txn, field, value)
    db.commit()

    return ApiResponse(message="Transaction updated", data=transaction_out(txn))


@router.delete("/transactions/{transaction_id}", response_model=ApiResponse[None], response_model_exclude_none=True)
def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    repo = TransactionRepository(db)
    txn = repo.get(user_id, parse_id(transaction_id))
    if not txn:
        raise HTTPException(status_code=404, detail="Transaction not found")

    repo.delete(txn)
    db.commit()

    return ApiResponse(message="Transaction deleted")
