"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and PURE.
Every function takes an already-fetched list of one owner's records and
returns plain values. Nothing here touches storage, credentials or the clock.

GUARANTEES:
- Empty input is never an error: totals are 0, lists are empty, the
  highest category is None
- Malformed records are never coerced: a bad amount or date raises
  DataError naming the record and the field
- Money stays Decimal end to end; nothing is rounded for display
- Ties and orderings are fixed rules, not accidents of storage order
- Zero or negative stored amounts are summed as stored
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Sequence, Union

import structlog

from finance_tracker.models.insights import (
    CategoryTotal,
    DashboardView,
    HighestCategory,
    LedgerSummary,
)
from finance_tracker.models.record import DataError, Record, RecordKind


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


# =============================================================================
# FIELD ACCESS
# =============================================================================

def _record_id(record) -> object:
    return getattr(record, "id", None)


def amount_of(record) -> Decimal:
    """Read a record's amount as a finite Decimal."""
    amount = getattr(record, "amount", None)

    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)) and not isinstance(amount, bool):
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise DataError(
                _record_id(record), "amount", f"not a number: {amount!r}"
            ) from None
    elif amount is None:
        raise DataError(_record_id(record), "amount", "missing")
    else:
        raise DataError(_record_id(record), "amount", f"not a number: {amount!r}")

    if not value.is_finite():
        raise DataError(_record_id(record), "amount", "not a finite number")

    return value


def date_of(record) -> dt.date:
    """Read a record's calendar date."""
    value = getattr(record, "date", None)

    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            raise DataError(
                _record_id(record), "date", f"not a calendar date: {value!r}"
            ) from None
    if value is None:
        raise DataError(_record_id(record), "date", "missing")
    raise DataError(_record_id(record), "date", f"not a calendar date: {value!r}")


def label_of(record) -> str:
    label = getattr(record, "label", None)
    if not isinstance(label, str) or not label:
        raise DataError(_record_id(record), "label", "missing")
    return label


def _month_key(year: int, month: int) -> str:
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"


# =============================================================================
# TOTALS
# =============================================================================

def total_amount(records: Iterable[Record]) -> Decimal:
    """Sum of amounts; 0 for an empty list."""
    return sum((amount_of(record) for record in records), ZERO)


def net_total(
    income_records: Iterable[Record],
    expense_records: Iterable[Record],
) -> Decimal:
    """Income minus expenses."""
    return total_amount(income_records) - total_amount(expense_records)


def group_by_label(records: Iterable[Record]) -> dict[str, Decimal]:
    """
    Sum amounts per distinct label.

    Labels are compared exactly (case-sensitive, no trimming). Keys appear
    in the order their label is first encountered.
    """
    totals: dict[str, Decimal] = {}
    for record in records:
        label = label_of(record)
        totals[label] = totals.get(label, ZERO) + amount_of(record)
    return totals


def category_breakdown(records: Iterable[Record]) -> list[CategoryTotal]:
    """Per-label totals with their percentage of the group sum."""
    totals = group_by_label(records)
    group_sum = sum(totals.values(), ZERO)

    return [
        CategoryTotal(
            label=label,
            total=total,
            percent_of_group=(total / group_sum * HUNDRED) if group_sum else ZERO,
        )
        for label, total in totals.items()
    ]


def highest_category(records: Iterable[Record]) -> Optional[HighestCategory]:
    """
    The label with the largest summed amount.

    On equal totals the label encountered first in the input wins.
    Returns None for an empty list.
    """
    highest = None
    for label, total in group_by_label(records).items():
        # Strict comparison keeps the earlier label on a tie
        if highest is None or total > highest.amount:
            highest = HighestCategory(label=label, amount=total)
    return highest


def average_daily_spend(expense_records: Sequence[Record]) -> Decimal:
    """
    Total spend divided by the inclusive number of days covered.

    The span runs from the earliest to the latest record date, both
    included, and is never shorter than one day.
    """
    if not expense_records:
        return ZERO

    dates = [date_of(record) for record in expense_records]
    day_span = max(1, (max(dates) - min(dates)).days + 1)
    return total_amount(expense_records) / day_span


def monthly_breakdown(
    records: Iterable[Record],
    labels: Optional[Iterable[str]] = None,
) -> dict[str, dict[str, Decimal]]:
    """
    Bucket amounts by calendar month, then by label.

    Keys look like "Nov 2025" and are ordered chronologically.
    Each month carries every requested label, zero-filled and sorted, so
    the result can feed a stacked bar chart directly. Without `labels` the
    labels present in `records` are used.
    """
    records = list(records)
    if labels is None:
        selected = sorted({label_of(record) for record in records})
    else:
        selected = sorted(set(labels))
    wanted = set(selected)

    buckets: dict[tuple[int, int], dict[str, Decimal]] = {}
    for record in records:
        label = label_of(record)
        if label not in wanted:
            continue
        day = date_of(record)
        month = buckets.setdefault(
            (day.year, day.month),
            {name: ZERO for name in selected},
        )
        month[label] += amount_of(record)

    return {
        _month_key(year, month): totals
        for (year, month), totals in sorted(buckets.items())
    }


# =============================================================================
# FILTERS
# =============================================================================

def filter_by_month(
    records: Iterable[Record],
    month: Union[int, str],
) -> list[Record]:
    """
    Keep records dated in one calendar month, of any year.

    `month` is 0-based (0 = January) or "all".
    """
    if month == "all":
        return list(records)
    if isinstance(month, bool) or not isinstance(month, int) or not 0 <= month <= 11:
        raise ValueError(f"month must be 0-11 or 'all', got {month!r}")

    return [record for record in records if date_of(record).month == month + 1]


def filter_by_year_month(records: Iterable[Record], key: str) -> list[Record]:
    """Keep records dated in one specific month, given as "YYYY-MM" or "all"."""
    if key == "all":
        return list(records)

    match = _YEAR_MONTH.match(key)
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValueError(f"month key must look like 'YYYY-MM' or be 'all', got {key!r}")
    year, month = int(match.group(1)), int(match.group(2))

    selected = []
    for record in records:
        day = date_of(record)
        if day.year == year and day.month == month:
            selected.append(record)
    return selected


def filter_by_label(records: Iterable[Record], label: Optional[str]) -> list[Record]:
    """Exact label match; None keeps everything."""
    if label is None:
        return list(records)
    return [record for record in records if label_of(record) == label]


def filter_by_kind(records: Iterable[Record], kind: RecordKind) -> list[Record]:
    kind = RecordKind(kind)
    return [record for record in records if getattr(record, "kind", None) == kind.value]


# =============================================================================
# COMBINED VIEWS
# =============================================================================

def summarize(records: Sequence[Record]) -> LedgerSummary:
    """Headline totals over a mixed list of records."""
    incomes = filter_by_kind(records, RecordKind.INCOME)
    expenses = filter_by_kind(records, RecordKind.EXPENSE)
    savings = filter_by_kind(records, RecordKind.SAVING)

    total_income = total_amount(incomes)
    total_expenses = total_amount(expenses)
    net = total_income - total_expenses

    return LedgerSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        total_savings=total_amount(savings),
        net_total=net,
        savings_rate=(net / total_income * HUNDRED) if total_income else ZERO,
        expense_count=len(expenses),
    )


def build_dashboard(
    records: Sequence[Record],
    month: Union[int, str] = "all",
    label: Optional[str] = None,
) -> DashboardView:
    """
    Compute every dashboard view for one owner.

    `month` is "all", a 0-based month index, or a "YYYY-MM" key.
    The label filter applies to every kind, so filtering on "Salary"
    leaves only records labelled "Salary".
    """
    if isinstance(month, str) and month != "all":
        filtered = filter_by_year_month(records, month)
    else:
        filtered = filter_by_month(records, month)
    filtered = filter_by_label(filtered, label)

    expenses = filter_by_kind(filtered, RecordKind.EXPENSE)

    view = DashboardView(
        month=str(month),
        label=label,
        summary=summarize(filtered),
        expense_breakdown=category_breakdown(expenses),
        income_breakdown=category_breakdown(filter_by_kind(filtered, RecordKind.INCOME)),
        savings_breakdown=category_breakdown(filter_by_kind(filtered, RecordKind.SAVING)),
        highest_category=highest_category(expenses),
        average_daily_spend=average_daily_spend(expenses),
        monthly_trend=monthly_breakdown(expenses),
    )

    logger.debug(
        "dashboard_built",
        month=str(month),
        label=label,
        record_count=len(filtered),
    )
    return view
