"""
Aggregation helpers shared by the listing and analytics endpoints.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from budgetbook.models.transaction import Transaction
from budgetbook.schemas.analytics import PeriodBucket


def transaction_total(transaction: Transaction) -> Decimal:
    """Effective amount of a transaction: the sum of its allocations."""
    return sum((Decimal(a.amount) for a in transaction.allocations), Decimal("0"))


def sort_by_total(transactions: Iterable[Transaction], direction: str = "desc") -> List[Transaction]:
    """Sort on the derived total, id breaking ties in the same direction."""
    return sorted(
        transactions,
        key=lambda t: (transaction_total(t), t.id),
        reverse=direction == "desc",
    )


def period_key(day: date, period: str) -> str:
    """``YYYY-MM`` for months, ``YYYY-Www`` (ISO year and week) for weeks."""
    if period == "week":
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return f"{day.year}-{day.month:02d}"


def group_by_period(rows: Iterable[Tuple[date, Decimal]], period: str = "month") -> List[PeriodBucket]:
    """
    Bucket (date, signed amount) rows into income/expense sums per period.

    Keys are zero padded, so sorting them as strings is chronological.
    """
    groups: Dict[str, Dict[str, Decimal]] = {}

    for day, amount in rows:
        amount = Decimal(amount)
        bucket = groups.setdefault(
            period_key(day, period),
            {"income": Decimal("0"), "expenses": Decimal("0")},
        )
        if amount >= 0:
            bucket["income"] += amount
        else:
            bucket["expenses"] += abs(amount)

    return [
        PeriodBucket(period=key, income=float(sums["income"]), expenses=float(sums["expenses"]))
        for key, sums in sorted(groups.items())
    ]
