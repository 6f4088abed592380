"""Pydantic schemas for API request/response validation"""

import uuid
import datetime
from decimal import Decimal
from typing import Annotated, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from finance_api.domain.models import DuplicationResult, PeriodStats
from finance_api.infrastructure.database.models import (
    AIAnalysis,
    BudgetGoals,
    Category,
    CreditCard,
    CreditCardBill,
    Transaction,
)
from finance_api.utils.money import from_cents

TransactionType = Literal["income", "expense", "investment"]
CardBrand = Literal["visa", "mastercard", "amex", "elo", "other"]
HexColor = Annotated[str, StringConstraints(pattern=r"^#[0-9A-Fa-f]{6}$")]
ShortName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=30)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
DayOfMonth = Annotated[int, Field(ge=1, le=31)]
Level = Literal["low", "medium", "high"]
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

DataT = TypeVar("DataT")


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(ApiModel, Generic[DataT]):
    """Envelope shared by every endpoint"""

    success: bool = True
    message: str
    data: Optional[DataT] = None


# Categories


class CategoryCreate(ApiModel):
    """Request body for POST/PUT /categories"""

    name: ShortName
    type: TransactionType
    color: HexColor


class CategoryOut(ApiModel):
    id: str
    name: str
    type: str
    color: str


# Credit cards


class CreditCardCreate(ApiModel):
    """Request body for POST/PUT /credit-cards"""

    name: ShortName
    last_four_digits: Annotated[str, StringConstraints(pattern=r"^\d{4}$")]
    brand: CardBrand
    limit: Decimal = Field(..., ge=0, decimal_places=2, description="Spending limit")
    closing_day: DayOfMonth
    due_day: DayOfMonth
    color: HexColor
    is_active: bool = True


class CreditCardOut(ApiModel):
    id: str
    name: str
    last_four_digits: str
    brand: str
    limit: float
    closing_day: int
    due_day: int
    color: str
    is_active: bool


# Transactions


class RecurringRule(ApiModel):
    """Recurrence of a transaction, stored as JSON"""

    type: Literal["daily", "weekly", "monthly", "yearly"]
    interval: int = Field(..., ge=1)
    day_of_month: Optional[DayOfMonth] = None
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    end_date: Optional[datetime.date] = None
    max_occurrences: Optional[int] = Field(None, ge=1)


class InstallmentInfo(ApiModel):
    """Installment purchase metadata, stored as JSON"""

    total_installments: int = Field(..., ge=1, le=24)
    current_installment: int = Field(..., ge=1)
    installment_amount: float = Field(..., ge=0)


class TransactionCreate(ApiModel):
    """Request body for POST /transactions"""

    category_id: uuid.UUID
    description: Description
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Positive amount")
    date: datetime.date
    type: TransactionType
    is_paid: bool = False
    is_fixed: bool = False
    is_recurring: bool = False
    recurring_rule: Optional[RecurringRule] = None
    day_of_month: Optional[DayOfMonth] = None
    credit_card_id: Optional[uuid.UUID] = None
    installment_info: Optional[InstallmentInfo] = None

    @model_validator(mode="after")
    def require_rule_for_recurring(self):
        if self.is_recurring and self.recurring_rule is None:
            raise ValueError("recurringRule is required when isRecurring is true")
        return self


class TransactionUpdate(ApiModel):
    """Request body for PUT /transactions/{id}; only provided fields change"""

    category_id: Optional[uuid.UUID] = None
    description: Optional[Description] = None
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    date: Optional[datetime.date] = None
    type: Optional[TransactionType] = None
    is_paid: Optional[bool] = None
    is_fixed: Optional[bool] = None
    is_recurring: Optional[bool] = None
    recurring_rule: Optional[RecurringRule] = None
    day_of_month: Optional[DayOfMonth] = None
    credit_card_id: Optional[uuid.UUID] = None
    installment_info: Optional[InstallmentInfo] = None


class TransactionOut(ApiModel):
    id: str
    category_id: str
    description: str
    amount: float
    date: datetime.date
    period: str
    type: str
    is_paid: bool
    is_fixed: bool
    is_recurring: bool
    recurring_rule: Optional[RecurringRule] = None
    day_of_month: Optional[int] = None
    credit_card_id: Optional[str] = None
    installment_info: Optional[InstallmentInfo] = None


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class TransactionPage(ApiModel):
    """Response data for GET /transactions"""

    transactions: List[TransactionOut]
    pagination: Pagination


# Bills and periods


class BillOut(ApiModel):
    id: str
    card_id: str
    period: str
    total_amount: float
    paid_amount: float
    due_date: datetime.date
    status: str
    transactions: List[str]


class PeriodStatsOut(ApiModel):
    """Response data for GET /periods/{period}/stats"""

    total_income: float
    total_expenses: float
    total_investments: float
    balance: float
    fixed_income: float
    variable_income: float
    fixed_expenses: float
    variable_expenses: float
    credit_card_debt: float
    available_credit: float


class TransactionDuplicationOut(ApiModel):
    """Response data for POST /periods/{source}/duplicate-transactions/{target}"""

    source_period: str
    target_period: str
    duplicated_count: int
    already_exists_count: int


class CardDuplicationOut(ApiModel):
    """Response data for POST /periods/{source}/duplicate-cards/{target}"""

    source_period: str
    target_period: str
    duplicated_count: int
    already_exists_transactions_count: int
    already_exists_bills_count: int


class MonthDuplicationOut(ApiModel):
    """Response data for POST /periods/{source}/duplicate-month/{target}"""

    source_period: str
    target_period: str
    duplicated_count: int
    duplicated_transactions_count: int
    duplicated_bills_count: int
    already_exists_transactions_count: int
    already_exists_bills_count: int


def category_out(category: Category) -> CategoryOut:
    return CategoryOut(id=str(category.id), name=category.name, type=category.type, color=category.color)


def credit_card_out(card: CreditCard) -> CreditCardOut:
    return CreditCardOut(
        id=str(card.id),
        name=card.name,
        last_four_digits=card.last_four_digits,
        brand=card.brand,
        limit=from_cents(card.limit_cents),
        closing_day=card.closing_day,
        due_day=card.due_day,
        color=card.color,
        is_active=card.is_active,
    )


def transaction_out(txn: Transaction) -> TransactionOut:
    return TransactionOut(
        id=str(txn.id),
        category_id=str(txn.category_id),
        description=txn.description,
        amount=from_cents(txn.amount_cents),
        date=txn.date,
        period=txn.period,
        type=txn.type,
        is_paid=txn.is_paid,
        is_fixed=txn.is_fixed,
        is_recurring=txn.is_recurring,
        recurring_rule=RecurringRule.model_validate(txn.recurring_rule) if txn.recurring_rule else None,
        day_of_month=txn.day_of_month,
        credit_card_id=str(txn.credit_card_id) if txn.credit_card_id else None,
        installment_info=InstallmentInfo.model_validate(txn.installment_info) if txn.installment_info else None,
    )


def bill_out(bill: CreditCardBill) -> BillOut:
    return BillOut(
        id=str(bill.id),
        card_id=str(bill.card_id),
        period=bill.period,
        total_amount=from_cents(bill.total_cents),
        paid_amount=from_cents(bill.paid_cents),
        due_date=bill.due_date,
        status=bill.status,
        transactions=list(bill.transaction_ids or []),
    )


def period_stats_out(stats: PeriodStats) -> PeriodStatsOut:
    return PeriodStatsOut(
        total_income=from_cents(stats.total_income_cents),
        total_expenses=from_cents(stats.total_expenses_cents),
        total_investments=from_cents(stats.total_investments_cents),
        balance=from_cents(stats.balance_cents),
        fixed_income=from_cents(stats.fixed_income_cents),
        variable_income=from_cents(stats.variable_income_cents),
        fixed_expenses=from_cents(stats.fixed_expenses_cents),
        variable_expenses=from_cents(stats.variable_expenses_cents),
        credit_card_debt=from_cents(stats.credit_card_debt_cents),
        available_credit=from_cents(stats.available_credit_cents),
    )


def month_duplication_out(result: DuplicationResult) -> MonthDuplicationOut:
    return MonthDuplicationOut(
        source_period=result.source_period,
        target_period=result.target_period,
        duplicated_count=result.created_total,
        duplicated_transactions_count=result.transactions_created,
        duplicated_bills_count=result.bills_created,
        already_exists_transactions_count=result.transactions_existing,
        already_exists_bills_count=result.bills_existing,
    )


# AI analyses and budget goals (generated by the client, stored per user)


class AnalysisSuggestion(ApiModel):
    type: Literal[
        "expense_reduction",
        "income_increase",
        "investment_optimization",
        "budget_adjustment",
        "financial_planning",
        "budget_management",
    ]
    title: Text
    description: Text
    impact: Level
    category: Optional[str] = None
    estimated_savings: Optional[float] = None
    priority: int = Field(..., ge=1, le=5)
    timeline: Optional[str] = None


class BudgetAnalysis(ApiModel):
    current_needs: Optional[str] = None
    current_wants: Optional[str] = None
    ideal_needs: Optional[float] = None
    ideal_wants: Optional[float] = None
    ideal_savings: Optional[float] = None


class AnalysisPayload(ApiModel):
    """Analysis document as produced by the client"""

    summary: Text
    insights: List[str]
    suggestions: List[AnalysisSuggestion]
    budget_analysis: Optional[BudgetAnalysis] = None
    risk_level: Level
    score: float = Field(..., ge=0, le=100)
    recommendations: Optional[List[str]] = None


class AIAnalysisSave(ApiModel):
    """Request body for POST /ai-analysis; replaces the month's analysis if present"""

    month: str = Field(..., description="YYYY-MM")
    analysis: AnalysisPayload


class AIAnalysisOut(ApiModel):
    id: str
    month: str
    analysis: AnalysisPayload
    created_at: datetime.datetime
    updated_at: datetime.datetime


class AIAnalysisPage(ApiModel):
    """Response data for GET /ai-analysis"""

    analyses: List[AIAnalysisOut]
    pagination: Pagination


class CategoryGoal(ApiModel):
    category_id: str
    category_name: str
    category_type: TransactionType
    current_average: float
    recommended_goal: float
    percentage_of_income: float
    ideal_percentage: float
    difference: float
    priority: Level
    reasoning: str
    payment_method: Optional[Literal["card", "cash", "both"]] = None


class BudgetBreakdown(ApiModel):
    needs: float
    wants: float
    savings: float


class GoalPreferences(ApiModel):
    target_savings: Optional[float] = None
    fixed_categories: Optional[List[str]] = None


class GoalsPayload(ApiModel):
    """Budget goals document as produced by the client"""

    summary: Text
    average_monthly_income: float = Field(..., gt=0)
    average_monthly_expenses: float
    category_goals: List[CategoryGoal]
    overall_recommendations: List[str] = Field(default_factory=list)
    ideal_budget_breakdown: BudgetBreakdown
    generated_at: str
    user_preferences: Optional[GoalPreferences] = None


class BudgetGoalsSave(ApiModel):
    """Request body for POST /budget-goals"""

    goals: GoalsPayload


class BudgetGoalsOut(ApiModel):
    id: str
    goals: GoalsPayload
    created_at: datetime.datetime
    updated_at: datetime.datetime


def ai_analysis_out(record: AIAnalysis) -> AIAnalysisOut:
    return AIAnalysisOut(
        id=str(record.id),
        month=record.month,
        analysis=AnalysisPayload.model_validate(record.analysis),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def budget_goals_out(record: BudgetGoals) -> BudgetGoalsOut:
    return BudgetGoalsOut(
        id=str(record.id),
        goals=GoalsPayload.model_validate(record.goals),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
