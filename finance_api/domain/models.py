"""Domain models - pure Python dataclasses for duplication and period reporting"""

from dataclasses import dataclass
from enum import Enum

TRANSACTION_TYPES = ("income", "expense", "investment")
BILL_STATUSES = ("pending", "paid", "overdue")
CARD_BRANDS = ("visa", "mastercard", "amex", "elo", "other")


class CardScope(str, Enum):
    """Which fixed transactions a duplication run considers"""

    EXCLUDE = "exclude"  # only transactions without a credit card
    ONLY = "only"  # only credit card transactions
    ANY = "any"


@dataclass(frozen=True)
class DuplicationOptions:
    """Switches that distinguish the duplication variants"""

    name: str
    card_scope: CardScope
    duplicate_bills: bool
    copy_bill_transaction_refs: bool = False
    recompute_bill_total: bool = False


TRANSACTIONS_ONLY = DuplicationOptions(
    name="transactions",
    card_scope=CardScope.EXCLUDE,
    duplicate_bills=False,
)

CARDS_AND_BILLS = DuplicationOptions(
    name="cards",
    card_scope=CardScope.ONLY,
    duplicate_bills=True,
    copy_bill_transaction_refs=True,
    recompute_bill_total=True,
)

WHOLE_MONTH = DuplicationOptions(
    name="month",
    card_scope=CardScope.ANY,
    duplicate_bills=True,
)


@dataclass
class DuplicationResult:
    """Outcome counters of one duplication run"""

    source_period: str
    target_period: str
    transactions_created: int = 0
    transactions_existing: int = 0
    bills_created: int = 0
    bills_existing: int = 0
    bills_skipped_stale: int = 0

    @property
    def created_total(self) -> int:
        return self.transactions_created + self.bills_created


@dataclass
class PeriodStats:
    """Aggregated totals for one period, all in cents"""

    total_income_cents: int = 0
    total_expenses_cents: int = 0
    total_investments_cents: int = 0
    fixed_income_cents: int = 0
    variable_income_cents: int = 0
    fixed_expenses_cents: int = 0
    variable_expenses_cents: int = 0
    credit_card_debt_cents: int = 0
    available_credit_cents: int = 0

    @property
    def balance_cents(self) -> int:
        return self.total_income_cents - self.total_expenses_cents
