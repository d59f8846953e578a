"""
Finance Tracker - Source Package

The ledger core of a personal finance tracker: expense, income and savings
records per owner, the dashboard aggregations computed from them, and a
naive next-spend prediction per expense category.

DESIGN PRINCIPLES:
1. Aggregation is pure: records in, numbers out
2. Fail early, fail visibly (malformed data raises DataError)
3. No silent corrections
4. Every mutation and insight is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
