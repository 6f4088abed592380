"""Period routes - month-to-month duplication, bills and dashboard stats"""

import time
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finance_api.api.v1.schemas import (
    ApiResponse,
    BillOut,
    CardDuplicationOut,
    MonthDuplicationOut,
    PeriodStatsOut,
    TransactionDuplicationOut,
    TransactionOut,
    bill_out,
    month_duplication_out,
    period_stats_out,
    transaction_out,
)
from finance_api.api.dependencies import get_current_user_id, get_request_id
from finance_api.infrastructure.database.session import get_db
from finance_api.infrastructure.database.repositories import (
    BillRepository,
    CreditCardRepository,
    TransactionRepository,
)
from finance_api.services.duplication import PeriodDuplicationService
from finance_api.domain.models import (
    CARDS_AND_BILLS,
    TRANSACTIONS_ONLY,
    WHOLE_MONTH,
    DuplicationOptions,
    DuplicationResult,
)
from finance_api.domain.periods import parse_period
from finance_api.domain.stats import summarize_period
from finance_api.domain.exceptions import InvalidPeriodFormatError, StoreFailureError
from finance_api.infrastructure.observability.metrics import record_duplication, store_failures_counter
from finance_api.infrastructure.observability.logging import log_duplication

router = APIRouter()


def _validate_period(period: str) -> None:
    try:
        parse_period(period)
    except InvalidPeriodFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _run_duplication(
    db: Session,
    request: Request,
    user_id: str,
    source_period: str,
    target_period: str,
    options: DuplicationOptions,
) -> DuplicationResult:
    """Shared flow for every duplication variant: run, then record metrics and logs"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = PeriodDuplicationService(db).duplicate(user_id, source_period, target_period, options)

    except InvalidPeriodFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except StoreFailureError as e:
        store_failures_counter.inc()
        logging.error(f"Store failure: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_duplication(options.name, result)
    log_duplication(request_id, user_id, options.name, result, duration_ms)

    return result


@router.post(
    "/periods/{source_period}/duplicate-transactions/{target_period}",
    response_model=ApiResponse[TransactionDuplicationOut],
)
def duplicate_transactions(
    source_period: str,
    target_period: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Copy fixed transactions without a credit card into the target period.

    Re-running is safe: equivalent transactions already in the target period
    are counted in alreadyExistsCount instead of being created again.
    """
    result = _run_duplication(db, request, user_id, source_period, target_period, TRANSACTIONS_ONLY)

    return ApiResponse(
        message=(
            f"Fixed transactions duplicated from {source_period} to {target_period}. "
            f"{result.transactions_created} new transactions created, "
            f"{result.transactions_existing} already existed."
        ),
        data=TransactionDuplicationOut(
            source_period=source_period,
            target_period=target_period,
            duplicated_count=result.transactions_created,
            already_exists_count=result.transactions_existing,
        ),
    )


@router.post(
    "/periods/{source_period}/duplicate-cards/{target_period}",
    response_model=ApiResponse[CardDuplicationOut],
)
def duplicate_cards(
    source_period: str,
    target_period: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Copy fixed credit card transactions, then open a bill per card.

    Flow:
    1. Duplicate fixed transactions that carry a credit card
    2. For each source bill without a target counterpart, create one due on
       the card's due day, totalling the card's target-period transactions
    3. Bills of deleted cards are skipped silently
    """
    result = _run_duplication(db, request, user_id, source_period, target_period, CARDS_AND_BILLS)

    return ApiResponse(
        message=(
            f"Card transactions and bills duplicated from {source_period} to {target_period}. "
            f"{result.created_total} new items created, "
            f"{result.transactions_existing} transactions and {result.bills_existing} bills already existed."
        ),
        data=CardDuplicationOut(
            source_period=source_period,
            target_period=target_period,
            duplicated_count=result.created_total,
            already_exists_transactions_count=result.transactions_existing,
            already_exists_bills_count=result.bills_existing,
        ),
    )


@router.post(
    "/periods/{source_period}/duplicate-month/{target_period}",
    response_model=ApiResponse[MonthDuplicationOut],
)
def duplicate_month(
    source_period: str,
    target_period: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Copy every fixed transaction and open empty bills for the target period"""
    result = _run_duplication(db, request, user_id, source_period, target_period, WHOLE_MONTH)

    return ApiResponse(
        message=f"Month {source_period} duplicated to {target_period}. {result.created_total} new items created.",
        data=month_duplication_out(result),
    )


@router.get("/periods/{period}/transactions", response_model=ApiResponse[List[TransactionOut]])
def get_period_transactions(
    period: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Transactions of one period, newest first"""
    _validate_period(period)
    transactions = TransactionRepository(db).list_for_period(user_id, period)
    return ApiResponse(message="Period transactions found", data=[transaction_out(t) for t in transactions])


@router.get("/periods/{period}/bills", response_model=ApiResponse[List[BillOut]])
def get_period_bills(
    period: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _validate_period(period)
    bills = BillRepository(db).list_for_period(user_id, period)
    return ApiResponse(message="Period bills found", data=[bill_out(b) for b in bills])


@router.get("/periods/{period}/stats", response_model=ApiResponse[PeriodStatsOut])
def get_period_stats(
    period: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Dashboard totals for one period.

    Returns:
        Income, expense and investment totals, fixed/variable splits,
        balance (income - expenses) and credit card exposure
    """
    _validate_period(period)
    stats = summarize_period(
        TransactionRepository(db).list_for_period(user_id, period),
        BillRepository(db).list_for_period(user_id, period),
        CreditCardRepository(db).active_limits_cents(user_id),
    )
    return ApiResponse(message="Statistics calculated", data=period_stats_out(stats))
