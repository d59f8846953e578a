"""
Derived Insight Models

Everything here is computed fresh from a list of records on every call.
Nothing in this module is persisted.

Amounts stay as Decimal and are never formatted: currency symbols, locale
and display rounding are the presentation layer's concern.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CategoryTotal(BaseModel):
    """One label's total and its share of the group."""

    label: str
    total: Decimal
    percent_of_group: Decimal = Field(
        ...,
        description="total / group sum * 100, or 0 when the group sum is 0"
    )


class HighestCategory(BaseModel):
    """The label with the largest summed amount."""

    label: str
    amount: Decimal


class Prediction(BaseModel):
    """Naive next-spend forecast for one expense category."""

    category: str
    predicted_amount: Decimal


class LedgerSummary(BaseModel):
    """Headline totals for a mixed list of records."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_savings: Decimal = Decimal("0")
    net_total: Decimal = Field(
        default=Decimal("0"),
        description="Income minus expenses"
    )
    savings_rate: Decimal = Field(
        default=Decimal("0"),
        description="Net total as a percent of income, 0 without income"
    )
    expense_count: int = Field(default=0, ge=0)


class DashboardView(BaseModel):
    """
    Every derived view for one owner, after month and label filters.

    monthly_trend maps "Mon YYYY" keys, in chronological order, to the
    per-category expense totals of that month.
    """

    month: str = "all"
    label: Optional[str] = None

    summary: LedgerSummary
    expense_breakdown: list[CategoryTotal] = Field(default_factory=list)
    income_breakdown: list[CategoryTotal] = Field(default_factory=list)
    savings_breakdown: list[CategoryTotal] = Field(default_factory=list)
    highest_category: Optional[HighestCategory] = None
    average_daily_spend: Decimal = Decimal("0")
    monthly_trend: dict[str, dict[str, Decimal]] = Field(default_factory=dict)
