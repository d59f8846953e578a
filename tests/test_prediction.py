"""
Tests for the prediction engine.
"""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.analytics.prediction import predict_next
from finance_tracker.models.record import ExpenseRecord, IncomeRecord


def expense(amount, category, day):
    return ExpenseRecord(
        owner_id="user-1", amount=Decimal(amount), category=category, date=day
    )


class TestPredictNext:
    """Tests for the moving-average forecast."""

    def test_average_of_three_most_recent(self):
        """Test the worked example: 25.50, 15.00 and 18.25 predict 19.58."""
        records = [
            expense("25.50", "Food", date(2025, 11, 28)),
            expense("15.00", "Food", date(2025, 11, 29)),
            expense("18.25", "Food", date(2025, 11, 30)),
        ]
        predictions = predict_next(records)
        assert len(predictions) == 1
        assert predictions[0].category == "Food"
        assert predictions[0].predicted_amount == Decimal("19.58")

    def test_category_below_min_history_is_excluded(self):
        """Test that Bills with 2 records is left out while Food with 3 is predicted."""
        records = [
            expense("25.50", "Food", date(2025, 11, 28)),
            expense("100.00", "Bills", date(2025, 11, 1)),
            expense("15.00", "Food", date(2025, 11, 29)),
            expense("90.00", "Bills", date(2025, 10, 1)),
            expense("18.25", "Food", date(2025, 11, 30)),
        ]
        predictions = predict_next(records)
        assert [p.category for p in predictions] == ["Food"]

    def test_only_most_recent_window_counts(self):
        """Test that older expenses beyond the window are ignored."""
        records = [
            expense("1000.00", "Food", date(2025, 1, 1)),
            expense("10.00", "Food", date(2025, 3, 1)),
            expense("20.00", "Food", date(2025, 2, 1)),
            expense("30.00", "Food", date(2025, 4, 1)),
        ]
        predictions = predict_next(records)
        assert predictions[0].predicted_amount == Decimal("20.00")

    def test_input_order_does_not_matter(self):
        """Test that the result is independent of input order across dates."""
        records = [
            expense("5.00", "Fun", date(2025, 1, 3)),
            expense("7.00", "Fun", date(2025, 1, 1)),
            expense("9.00", "Fun", date(2025, 1, 2)),
            expense("100.00", "Fun", date(2024, 12, 1)),
        ]
        assert predict_next(records) == predict_next(list(reversed(records)))

    def test_same_date_records_keep_input_order(self):
        """Test that records sharing a date are taken in input order."""
        records = [
            expense(amount, "Food", date(2025, 5, 1))
            for amount in ("1.00", "2.00", "3.00", "100.00")
        ]
        predictions = predict_next(records)
        assert predictions[0].predicted_amount == Decimal("2.00")

    def test_non_positive_amounts_are_averaged_as_stored(self):
        """Test that zero and negative stored amounts still give a prediction."""
        records = [
            expense("0", "Food", date(2025, 1, 1)),
            expense("-5", "Food", date(2025, 1, 2)),
            expense("5", "Food", date(2025, 1, 3)),
        ]
        predictions = predict_next(records)
        assert predictions[0].predicted_amount == Decimal("0.00")

    def test_rounds_half_up_to_cents(self):
        """Test that a half cent rounds up."""
        records = [
            expense("0.01", "Snacks", date(2025, 1, 1)),
            expense("0.02", "Snacks", date(2025, 1, 2)),
        ]
        predictions = predict_next(records, window=2, min_history=2)
        assert predictions[0].predicted_amount == Decimal("0.02")

    def test_results_sorted_by_category(self):
        """Test that predictions come out alphabetically."""
        records = []
        for category in ["Rent", "Food", "Bills"]:
            for day in range(1, 4):
                records.append(expense("10", category, date(2025, 1, day)))
        predictions = predict_next(records)
        assert [p.category for p in predictions] == ["Bills", "Food", "Rent"]

    def test_non_expense_records_are_ignored(self):
        """Test that income never feeds a prediction."""
        records = [
            IncomeRecord(
                owner_id="user-1", amount=Decimal("3000"), source="Food",
                date=date(2025, 1, day),
            )
            for day in range(1, 4)
        ]
        assert predict_next(records) == []

    def test_empty_history(self):
        """Test that no expenses give no predictions."""
        assert predict_next([]) == []

    def test_window_must_be_positive(self):
        """Test that a zero window is rejected."""
        with pytest.raises(ValueError):
            predict_next([], window=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
