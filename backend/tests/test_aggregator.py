"""Tests for aggregation helpers."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from budgetbook.services.aggregator import (
    group_by_period,
    period_key,
    sort_by_total,
    transaction_total,
)


def fake_transaction(txn_id, *amounts):
    return SimpleNamespace(
        id=txn_id,
        allocations=[SimpleNamespace(amount=Decimal(a)) for a in amounts],
    )


class TestGroupByPeriod:
    """Income/expense buckets."""

    def test_monthly_buckets(self):
        """Expenses and income land in their own month, in key order."""
        rows = [
            (date(2024, 2, 2), Decimal("100")),
            (date(2024, 1, 15), Decimal("-50")),
        ]
        buckets = group_by_period(rows, "month")
        assert [b.model_dump() for b in buckets] == [
            {"period": "2024-01", "income": 0.0, "expenses": 50.0},
            {"period": "2024-02", "income": 100.0, "expenses": 0.0},
        ]

    def test_amounts_in_same_bucket_accumulate(self):
        rows = [
            (date(2024, 3, 1), Decimal("-10.50")),
            (date(2024, 3, 20), Decimal("-4.50")),
            (date(2024, 3, 31), Decimal("20")),
        ]
        (bucket,) = group_by_period(rows, "month")
        assert bucket.income == 20.0
        assert bucket.expenses == 15.0

    def test_weekly_buckets_use_iso_weeks(self):
        rows = [
            (date(2024, 12, 30), Decimal("-5")),
            (date(2024, 12, 28), Decimal("-7")),
        ]
        buckets = group_by_period(rows, "week")
        assert [b.period for b in buckets] == ["2024-W52", "2025-W01"]

    def test_empty(self):
        assert group_by_period([], "month") == []


class TestPeriodKey:

    def test_month_is_zero_padded(self):
        assert period_key(date(2024, 3, 9), "month") == "2024-03"

    def test_iso_year_differs_from_calendar_year(self):
        assert period_key(date(2021, 1, 3), "week") == "2020-W53"
        assert period_key(date(2024, 12, 30), "week") == "2025-W01"


class TestTransactionTotals:
    """Derived amounts and the in-memory amount sort."""

    def test_total_is_sum_of_allocations(self):
        assert transaction_total(fake_transaction(1, "-20.00", "-30.00", "5.25")) == Decimal("-44.75")

    def test_total_without_allocations(self):
        assert transaction_total(fake_transaction(1)) == Decimal("0")

    def test_sort_by_total(self):
        txns = [
            fake_transaction(1, "-50"),
            fake_transaction(2, "100"),
            fake_transaction(3, "-20", "-30"),
            fake_transaction(4, "-200"),
        ]
        assert [t.id for t in sort_by_total(txns, "asc")] == [4, 1, 3, 2]
        assert [t.id for t in sort_by_total(txns, "desc")] == [2, 3, 1, 4]
