"""Unit tests for the period duplication service"""

import pytest
from datetime import date
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from finance_api.services.duplication import PeriodDuplicationService, duplication_key
from finance_api.domain.models import CARDS_AND_BILLS, TRANSACTIONS_ONLY, WHOLE_MONTH
from finance_api.domain.exceptions import InvalidPeriodFormatError, StoreFailureError
from finance_api.infrastructure.database.models import CreditCardBill, Transaction
from finance_api.infrastructure.database.repositories import BillRepository, TransactionRepository
from tests.conftest import OTHER_USER_ID, USER_ID


def _in_period(db: Session, period: str, user_id: str = USER_ID) -> list[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id, Transaction.period == period)
        .order_by(Transaction.date)
        .all()
    )


def _bills_in(db: Session, period: str) -> list[CreditCardBill]:
    return db.query(CreditCardBill).filter(CreditCardBill.period == period).all()


def test_rent_example_and_idempotence(db, make_transaction):
    """Fixed rent on day 5 lands on Feb 5 once, however often the run repeats"""
    make_transaction(description="Rent", amount_cents=150000, on=date(2024, 1, 5), day_of_month=5, is_paid=True)
    service = PeriodDuplicationService(db)

    first = service.duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert first.transactions_created == 1
    assert first.transactions_existing == 0
    created = _in_period(db, "2024-02")
    assert len(created) == 1
    assert created[0].date == date(2024, 2, 5)
    assert created[0].amount_cents == 150000
    assert created[0].is_paid is False
    assert created[0].day_of_month == 5

    second = service.duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert second.transactions_created == 0
    assert second.transactions_existing == 1
    assert len(_in_period(db, "2024-02")) == 1


@pytest.mark.parametrize(
    "target,expected",
    [
        ("2024-04", date(2024, 4, 30)),
        ("2023-02", date(2023, 2, 28)),
        ("2024-02", date(2024, 2, 29)),
        ("2024-03", date(2024, 3, 31)),
    ],
)
def test_anchor_day_31_clamps_to_month_length(db, make_transaction, target, expected):
    source_period = "2023-12" if target.startswith("2023") else "2024-01"
    year, month = int(source_period[:4]), int(source_period[5:])
    make_transaction(description="Internet", on=date(year, month, 31), day_of_month=31)

    PeriodDuplicationService(db).duplicate(USER_ID, source_period, target, TRANSACTIONS_ONLY)

    created = _in_period(db, target)
    assert [t.date for t in created] == [expected]


def test_card_transaction_without_anchor_clamps_to_april_30(db, make_transaction, card):
    make_transaction(description="Streaming", amount_cents=20000, on=date(2024, 1, 31), credit_card_id=card.id)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-04", CARDS_AND_BILLS)

    assert result.transactions_created == 1
    created = _in_period(db, "2024-04")
    assert created[0].date == date(2024, 4, 30)
    assert created[0].credit_card_id == card.id


def test_transactions_variant_excludes_card_transactions(db, make_transaction, card):
    make_transaction(description="Rent", on=date(2024, 1, 5))
    make_transaction(description="Gym", amount_cents=9900, on=date(2024, 1, 8), credit_card_id=card.id)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert result.transactions_created == 1
    created = _in_period(db, "2024-02")
    assert [t.description for t in created] == ["Rent"]
    assert all(t.credit_card_id is None for t in created)


def test_cards_variant_only_copies_card_transactions(db, make_transaction, card):
    make_transaction(description="Rent", on=date(2024, 1, 5))
    make_transaction(description="Gym", amount_cents=9900, on=date(2024, 1, 8), credit_card_id=card.id)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert result.transactions_created == 1
    assert [t.description for t in _in_period(db, "2024-02")] == ["Gym"]


def test_variable_transactions_are_never_copied(db, make_transaction):
    make_transaction(description="Groceries", on=date(2024, 1, 12), is_fixed=False)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", WHOLE_MONTH)

    assert result.transactions_created == 0
    assert _in_period(db, "2024-02") == []


def test_month_variant_copies_all_fixed_transactions(db, make_transaction, card):
    make_transaction(description="Rent", on=date(2024, 1, 5))
    make_transaction(description="Gym", amount_cents=9900, on=date(2024, 1, 8), credit_card_id=card.id)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", WHOLE_MONTH)

    assert result.transactions_created == 2
    assert sorted(t.description for t in _in_period(db, "2024-02")) == ["Gym", "Rent"]


def test_equivalent_with_different_card_presence_is_not_a_duplicate(db, make_transaction, card):
    """A cash rent in the target does not block copying the same rent paid by card"""
    make_transaction(description="Rent", on=date(2024, 1, 5), credit_card_id=card.id)
    make_transaction(description="Rent", on=date(2024, 2, 5))

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert result.transactions_created == 1
    assert result.transactions_existing == 0


def test_manual_equivalent_in_target_counts_as_existing(db, make_transaction):
    make_transaction(description="Rent", on=date(2024, 1, 5))
    make_transaction(description="Rent", on=date(2024, 2, 7))  # entered by hand, other day

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert result.transactions_created == 0
    assert result.transactions_existing == 1


def test_source_period_is_untouched(db, make_transaction):
    source = make_transaction(description="Rent", on=date(2024, 1, 5), is_paid=True)
    source_id = source.id

    PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    db.expire_all()
    reloaded = db.get(Transaction, source_id)
    assert reloaded.is_paid is True
    assert reloaded.period == "2024-01"
    assert reloaded.duplication_key is None
    assert len(_in_period(db, "2024-01")) == 1


def test_other_users_data_is_ignored(db, make_transaction, category):
    make_transaction(description="Rent", on=date(2024, 1, 5), user_id=OTHER_USER_ID)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert result.transactions_created == 0
    assert _in_period(db, "2024-02", user_id=OTHER_USER_ID) == []


def test_installment_info_and_card_carried_over(db, make_transaction, card):
    info = {"totalInstallments": 10, "currentInstallment": 3, "installmentAmount": 120.0}
    make_transaction(description="Laptop", amount_cents=12000, on=date(2024, 1, 15), credit_card_id=card.id, installment_info=info)

    PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    created = _in_period(db, "2024-02")[0]
    assert created.installment_info == info
    assert created.credit_card_id == card.id


def test_bill_total_is_recomputed_from_target_transactions(db, make_transaction, make_bill, card):
    make_transaction(description="Gym", amount_cents=9900, on=date(2024, 1, 8), credit_card_id=card.id)
    make_transaction(description="Streaming", amount_cents=5590, on=date(2024, 1, 20), credit_card_id=card.id)
    make_transaction(description="Taxi", amount_cents=4300, on=date(2024, 1, 21), credit_card_id=card.id, is_fixed=False)
    make_bill(card.id, "2024-01", total_cents=19790)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert result.transactions_created == 2
    assert result.bills_created == 1
    assert result.created_total == 3

    bills = _bills_in(db, "2024-02")
    assert len(bills) == 1
    bill = bills[0]
    new_transactions = _in_period(db, "2024-02")
    assert bill.total_cents == sum(t.amount_cents for t in new_transactions) == 15490
    assert sorted(bill.transaction_ids) == sorted(str(t.id) for t in new_transactions)
    assert bill.status == "pending"
    assert bill.paid_cents == 0
    assert bill.due_date == date(2024, 2, 10)


def test_bill_due_day_clamped(db, make_bill, card):
    card.due_day = 31
    db.commit()
    make_bill(card.id, "2024-01")

    PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert _bills_in(db, "2024-02")[0].due_date == date(2024, 2, 29)


def test_existing_bill_is_not_duplicated(db, make_bill, card):
    make_bill(card.id, "2024-01", total_cents=1000)
    make_bill(card.id, "2024-02", total_cents=2000)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert result.bills_created == 0
    assert result.bills_existing == 1
    assert _bills_in(db, "2024-02")[0].total_cents == 2000


def test_bill_of_deleted_card_is_skipped_without_error(db, make_bill, card):
    make_bill(card.id, "2024-01", total_cents=5000)
    db.delete(card)
    db.commit()

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert result.bills_created == 0
    assert result.bills_skipped_stale == 1
    assert _bills_in(db, "2024-02") == []


def test_month_variant_creates_empty_bills(db, make_transaction, make_bill, card):
    make_transaction(description="Gym", amount_cents=9900, on=date(2024, 1, 8), credit_card_id=card.id)
    make_bill(card.id, "2024-01", total_cents=9900)

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", WHOLE_MONTH)

    assert result.transactions_created == 1
    assert result.bills_created == 1
    bill = _bills_in(db, "2024-02")[0]
    assert bill.total_cents == 0
    assert bill.transaction_ids == []


def test_transactions_variant_never_creates_bills(db, make_bill, card):
    make_bill(card.id, "2024-01")

    result = PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert result.bills_created == 0
    assert _bills_in(db, "2024-02") == []


def test_invalid_period_rejected_before_any_work(db, make_transaction):
    make_transaction(description="Rent", on=date(2024, 1, 5))
    service = PeriodDuplicationService(db)

    with pytest.raises(InvalidPeriodFormatError):
        service.duplicate(USER_ID, "2024-1", "2024-02", TRANSACTIONS_ONLY)
    with pytest.raises(InvalidPeriodFormatError):
        service.duplicate(USER_ID, "2024-01", "2024-13", TRANSACTIONS_ONLY)

    assert _in_period(db, "2024-02") == []


def test_concurrent_transaction_insert_counts_as_existing(db, make_transaction, monkeypatch):
    """A racing run that missed the equivalence check is stopped by the unique key"""
    make_transaction(description="Rent", on=date(2024, 1, 5))
    service = PeriodDuplicationService(db)
    service.duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    monkeypatch.setattr(TransactionRepository, "find_equivalent", lambda self, *args: None)
    result = service.duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert result.transactions_created == 0
    assert result.transactions_existing == 1
    assert len(_in_period(db, "2024-02")) == 1


def test_concurrent_bill_insert_counts_as_existing(db, make_bill, card, monkeypatch):
    make_bill(card.id, "2024-01")
    service = PeriodDuplicationService(db)
    service.duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    monkeypatch.setattr(BillRepository, "get_for_card_period", lambda self, *args: None)
    result = service.duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    assert result.bills_created == 0
    assert result.bills_existing == 1
    assert len(_bills_in(db, "2024-02")) == 1


def test_store_failure_keeps_created_records(db, make_transaction, make_bill, card, monkeypatch):
    make_transaction(description="Gym", amount_cents=9900, on=date(2024, 1, 8), credit_card_id=card.id)
    make_bill(card.id, "2024-01")

    def broken(self, *args):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(BillRepository, "list_for_period", broken)

    with pytest.raises(StoreFailureError):
        PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", CARDS_AND_BILLS)

    # Transactions committed before the failure stay in place
    assert len(_in_period(db, "2024-02")) == 1


def test_other_integrity_errors_are_store_failures(db, make_transaction, monkeypatch):
    """Only the duplication constraints mean "already exists" """
    make_transaction(description="Rent", on=date(2024, 1, 5))
    copy_fields = PeriodDuplicationService._copy_fields

    def without_description(self, source, target_period):
        fields = copy_fields(self, source, target_period)
        fields["description"] = None
        return fields

    monkeypatch.setattr(PeriodDuplicationService, "_copy_fields", without_description)

    with pytest.raises(StoreFailureError):
        PeriodDuplicationService(db).duplicate(USER_ID, "2024-01", "2024-02", TRANSACTIONS_ONLY)

    assert _in_period(db, "2024-02") == []


def test_duplication_key_depends_on_identity_fields(make_transaction, card):
    base = make_transaction(description="Rent", on=date(2024, 1, 5))
    other_day = make_transaction(description="Rent", on=date(2024, 1, 9))
    on_card = make_transaction(description="Rent", on=date(2024, 1, 5), credit_card_id=card.id)

    assert duplication_key(base) == duplication_key(other_day)
    assert duplication_key(base) != duplication_key(on_card)
    assert len(duplication_key(base)) == 64
