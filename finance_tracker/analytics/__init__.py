"""Ledger analytics package: aggregation and prediction engines."""

from finance_tracker.analytics.aggregation import (
    average_daily_spend,
    build_dashboard,
    category_breakdown,
    filter_by_kind,
    filter_by_label,
    filter_by_month,
    filter_by_year_month,
    group_by_label,
    highest_category,
    monthly_breakdown,
    net_total,
    summarize,
    total_amount,
)
from finance_tracker.analytics.prediction import predict_next

__all__ = [
    "average_daily_spend",
    "build_dashboard",
    "category_breakdown",
    "filter_by_kind",
    "filter_by_label",
    "filter_by_month",
    "filter_by_year_month",
    "group_by_label",
    "highest_category",
    "monthly_breakdown",
    "net_total",
    "predict_next",
    "summarize",
    "total_amount",
]
