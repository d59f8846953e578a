"""
Prediction Engine

Forecasts the next likely spend per expense category as the plain average
of that category's most recent amounts. This is deliberately naive: no
seasonality, no weighting, no model fitting.

Rules:
- Only expense records count; income and savings are ignored
- A category needs at least `min_history` expenses to get a prediction
- Most recent first by date; expenses sharing a date keep their input order
- The average is rounded to cents with ROUND_HALF_UP
- Results are sorted by category name
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

import structlog

from finance_tracker.analytics.aggregation import amount_of, date_of, label_of
from finance_tracker.models.insights import Prediction
from finance_tracker.models.record import Record, RecordKind


logger = structlog.get_logger(__name__)

DEFAULT_WINDOW = 3
DEFAULT_MIN_HISTORY = 3

CENTS = Decimal("0.01")


def predict_next(
    expense_records: Iterable[Record],
    window: int = DEFAULT_WINDOW,
    min_history: int = DEFAULT_MIN_HISTORY,
) -> list[Prediction]:
    """
    Predict the next expense amount for every category with enough history.

    Args:
        expense_records: One owner's expense history, in any order
        window: How many of the most recent expenses are averaged
        min_history: Categories with fewer expenses are left out

    Returns:
        One Prediction per qualifying category, sorted by category.
        Empty when nothing qualifies.
    """
    if window < 1 or min_history < 1:
        raise ValueError("window and min_history must both be at least 1")

    groups: dict[str, list[Record]] = {}
    for record in expense_records:
        if getattr(record, "kind", None) != RecordKind.EXPENSE.value:
            continue
        groups.setdefault(label_of(record), []).append(record)

    predictions = []
    for category in sorted(groups):
        history = groups[category]
        if len(history) < min_history:
            logger.debug(
                "prediction_skipped",
                category=category,
                history=len(history),
                min_history=min_history,
            )
            continue

        # sorted() is stable with reverse=True, so same-day expenses keep input order
        recent = sorted(history, key=date_of, reverse=True)[:window]
        average = sum((amount_of(record) for record in recent), Decimal("0")) / len(recent)

        predictions.append(
            Prediction(
                category=category,
                predicted_amount=average.quantize(CENTS, rounding=ROUND_HALF_UP),
            )
        )

    return predictions
