"""Period statistics - sums transaction amounts by type"""

from typing import Iterable

from finance_api.domain.models import PeriodStats


def summarize_period(transactions: Iterable, bills: Iterable = (), active_limits_cents: Iterable[int] = ()) -> PeriodStats:
    """
    Aggregate a period's transactions into dashboard totals.

    Requirements:
    - Income and expenses split into fixed vs variable
    - Investments summed separately and left out of the balance
    - Card debt is what remains unpaid on the period's bills
    - Available credit is the active cards' limits minus that debt, never negative

    Any object exposing `type`, `amount_cents` and `is_fixed` works as a
    transaction; bills need `total_cents` and `paid_cents`.
    """
    stats = PeriodStats()

    for txn in transactions:
        if txn.type == "income":
            stats.total_income_cents += txn.amount_cents
            if txn.is_fixed:
                stats.fixed_income_cents += txn.amount_cents
            else:
                stats.variable_income_cents += txn.amount_cents
        elif txn.type == "expense":
            stats.total_expenses_cents += txn.amount_cents
            if txn.is_fixed:
                stats.fixed_expenses_cents += txn.amount_cents
            else:
                stats.variable_expenses_cents += txn.amount_cents
        elif txn.type == "investment":
            stats.total_investments_cents += txn.amount_cents

    stats.credit_card_debt_cents = sum(max(bill.total_cents - bill.paid_cents, 0) for bill in bills)
    stats.available_credit_cents = max(sum(active_limits_cents) - stats.credit_card_debt_cents, 0)

    return stats
