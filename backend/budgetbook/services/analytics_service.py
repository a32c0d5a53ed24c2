"""
Read-only aggregate views: analytics chart, financial summary, totals,
bank balances and per-category counts.

The transfers category (matched by its exact configured name) moves money
between the user's own accounts, so it is left out of income/expense views.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from budgetbook.config import settings
from budgetbook.errors import ValidationError
from budgetbook.models.account import Account, AccountType
from budgetbook.models.bank import Bank
from budgetbook.models.category import Category, Subcategory
from budgetbook.models.transaction import Transaction, TransactionCategory
from budgetbook.schemas.analytics import (
    BankBalance,
    BankBalances,
    CategoryAmount,
    FinancialPeriod,
    PeriodBucket,
)
from budgetbook.schemas.category import CategoryCount, CategoryTotal
from budgetbook.schemas.filters import FilterState
from budgetbook.schemas.transaction import TransactionTotals
from budgetbook.services.aggregator import group_by_period
from budgetbook.services.category_service import list_categories
from budgetbook.services.query_builder import (
    TransactionQueryBuilder,
    amount_condition,
    search_condition,
)

logger = logging.getLogger(__name__)

SUMMARY_PERIODS = ("month", "year")


def transfer_category_ids(db: Session, user_id: str) -> List[int]:
    return [
        row.id for row in db.query(Category.id).filter(
            Category.user_id == user_id,
            Category.name == settings.transfers_category_name
        )
    ]


def _allocation_query(db: Session, user_id: str, *entities):
    """Allocations of the user's transactions, joined up to the bank."""
    return (
        db.query(*entities)
        .select_from(TransactionCategory)
        .join(TransactionCategory.transaction)
        .join(Transaction.account)
        .join(Account.bank)
        .filter(Bank.user_id == user_id)
    )


def get_chart_data(db: Session, user_id: str, filters: FilterState) -> List[PeriodBucket]:
    """Income/expense per month or ISO week for the analytics chart.

    Filters apply per allocation here: a negated category selection drops
    the allocations in those categories, not whole transactions.
    """
    query = _allocation_query(db, user_id, Transaction.operation_date, TransactionCategory.amount)

    query = query.filter(Transaction.operation_date >= filters.effective_date_from())
    if filters.date_range.date_to:
        query = query.filter(Transaction.operation_date <= filters.date_range.date_to)

    transfers = transfer_category_ids(db, user_id)
    if transfers:
        query = query.filter(TransactionCategory.category_id.notin_(transfers))

    type_condition = amount_condition(filters.type)
    if type_condition is not None:
        query = query.filter(type_condition)

    if filters.categories.selected:
        selected = TransactionCategory.category_id.in_(filters.categories.selected)
        query = query.filter(~selected if filters.categories.is_negative else selected)

    if filters.subcategories.selected:
        query = query.filter(TransactionCategory.subcategory_id.in_(filters.subcategories.selected))

    text_condition = search_condition(filters.search)
    if text_condition is not None:
        query = query.filter(text_condition)

    rows = query.all()
    logger.debug("Analytics for user %s: %d allocation rows", user_id, len(rows))
    return group_by_period(((row.operation_date, row.amount) for row in rows), filters.period)


def _period_windows(period: str, count: int, offset: int, today: date) -> List[Tuple[str, date, date]]:
    """(key, start, end-exclusive) for ``count`` periods ending ``offset`` before today's."""
    windows = []
    for back in range(offset + count - 1, offset - 1, -1):
        if period == "year":
            year = today.year - back
            windows.append((str(year), date(year, 1, 1), date(year + 1, 1, 1)))
        else:
            index = today.year * 12 + today.month - 1 - back
            year, month = divmod(index, 12)
            start = date(year, month + 1, 1)
            end = date(year + 1, 1, 1) if month == 11 else date(year, month + 2, 1)
            windows.append((f"{year}-{month + 1:02d}", start, end))
    return windows


def get_financial_summary(
    db: Session,
    user_id: str,
    period: str = "month",
    count: int = 5,
    offset: int = 0,
    today: Optional[date] = None,
) -> List[FinancialPeriod]:
    if period not in SUMMARY_PERIODS:
        raise ValidationError("Invalid period. Must be month or year.")
    if offset < 0:
        raise ValidationError("Invalid offset. Must be a non-negative number.")
    if count <= 0:
        raise ValidationError("Invalid count. Must be a positive number.")

    today = today or date.today()
    # Periods available back to January of year 1
    available = today.year if period == "year" else (today.year - 1) * 12 + today.month
    if offset + count > available:
        raise ValidationError("Invalid offset or count. Periods cannot start before year 1.")

    windows = _period_windows(period, count, offset, today)
    query = _allocation_query(
        db, user_id,
        Transaction.operation_date,
        TransactionCategory.amount,
        Category.id.label("category_id"),
        Category.name.label("category_name"),
    ).join(TransactionCategory.category).filter(
        Transaction.operation_date >= windows[0][1],
        Transaction.operation_date < windows[-1][2],
    )
    transfers = transfer_category_ids(db, user_id)
    if transfers:
        query = query.filter(TransactionCategory.category_id.notin_(transfers))

    summary = {
        key: {"income": Decimal("0"), "expenses": Decimal("0"), "categories": {}}
        for key, _, _ in windows
    }
    for row in query.all():
        key = next(k for k, start, end in windows if start <= row.operation_date < end)
        bucket = summary[key]
        amount = Decimal(row.amount)
        if amount >= 0:
            bucket["income"] += amount
        else:
            bucket["expenses"] += abs(amount)
        name_and_total = bucket["categories"].setdefault(row.category_id, [row.category_name, Decimal("0")])
        name_and_total[1] += amount

    result = []
    for key, _, _ in windows:
        bucket = summary[key]
        categories = sorted(
            (
                CategoryAmount(id=cat_id, name=name, amount=float(total))
                for cat_id, (name, total) in bucket["categories"].items()
            ),
            key=lambda c: abs(c.amount),
            reverse=True,
        )
        result.append(FinancialPeriod(
            period=key,
            income=float(bucket["income"]),
            expenses=float(bucket["expenses"]),
            net=float(bucket["income"] - bucket["expenses"]),
            categories=categories,
        ))
    return result


def get_transactions_totals(db: Session, user_id: str, filters: FilterState) -> TransactionTotals:
    """Income, expenses and net over the allocations of the filtered listing."""
    matching = (
        TransactionQueryBuilder(db, user_id, filters)
        .filtered_query()
        .with_entities(Transaction.id)
        .subquery()
    )
    query = db.query(TransactionCategory.amount).filter(
        TransactionCategory.transaction_id.in_(select(matching.c.id))
    )
    type_condition = amount_condition(filters.type)
    if type_condition is not None:
        query = query.filter(type_condition)

    income = Decimal("0")
    expenses = Decimal("0")
    for (amount,) in query.all():
        amount = Decimal(amount)
        if amount >= 0:
            income += amount
        else:
            expenses += abs(amount)

    return TransactionTotals(
        total_income=income,
        total_expenses=expenses,
        net_amount=income - expenses,
    )


def get_category_totals(
    db: Session,
    user_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    type_filter: str = "all",
) -> List[CategoryTotal]:
    query = (
        db.query(
            Category.id.label("category_id"),
            Category.name.label("category_name"),
            Subcategory.id.label("subcategory_id"),
            Subcategory.name.label("subcategory_name"),
            func.sum(TransactionCategory.amount).label("total"),
            func.count(func.distinct(TransactionCategory.transaction_id)).label("transaction_count"),
        )
        .select_from(TransactionCategory)
        .join(TransactionCategory.category)
        .outerjoin(TransactionCategory.subcategory)
        .join(TransactionCategory.transaction)
        .filter(
            Category.user_id == user_id,
            Transaction.operation_date >= (date_from or settings.filter_epoch),
        )
    )
    if date_to:
        query = query.filter(Transaction.operation_date <= date_to)
    type_condition = amount_condition(type_filter)
    if type_condition is not None:
        query = query.filter(type_condition)

    rows = (
        query.group_by(Category.id, Category.name, Subcategory.id, Subcategory.name)
        .order_by(Category.name, Subcategory.name)
        .all()
    )
    return [
        CategoryTotal(
            category_id=row.category_id,
            category_name=row.category_name,
            subcategory_id=row.subcategory_id,
            subcategory_name=row.subcategory_name,
            total=float(row.total or 0),
            transaction_count=row.transaction_count,
        )
        for row in rows
    ]


def get_bank_balances(db: Session, user_id: str) -> BankBalances:
    banks = db.query(Bank).filter(Bank.user_id == user_id).order_by(Bank.name).all()

    balances: Dict[int, Decimal] = dict(
        _allocation_query(db, user_id, Account.bank_id, func.sum(TransactionCategory.amount))
        .group_by(Account.bank_id)
        .all()
    )

    counts: Dict[int, Dict[str, int]] = {}
    account_rows = (
        db.query(Account.bank_id, Account.account_type, func.count(Account.id))
        .join(Account.bank)
        .filter(Bank.user_id == user_id)
        .group_by(Account.bank_id, Account.account_type)
        .all()
    )
    for bank_id, account_type, number in account_rows:
        counts.setdefault(bank_id, {})[AccountType(account_type).value] = number

    result = []
    for bank in banks:
        account_counts = {t.value: 0 for t in AccountType}
        account_counts.update(counts.get(bank.id, {}))
        result.append(BankBalance(
            id=bank.id,
            name=bank.name,
            balance=float(balances.get(bank.id) or 0),
            account_counts=account_counts,
        ))

    return BankBalances(
        banks=result,
        total_balance=sum(b.balance for b in result),
    )


def get_category_transaction_counts(db: Session, user_id: str) -> List[CategoryCount]:
    category_counts = dict(
        db.query(
            TransactionCategory.category_id,
            func.count(func.distinct(TransactionCategory.transaction_id)),
        )
        .join(TransactionCategory.category)
        .filter(Category.user_id == user_id)
        .group_by(TransactionCategory.category_id)
        .all()
    )
    subcategory_counts = dict(
        db.query(
            TransactionCategory.subcategory_id,
            func.count(func.distinct(TransactionCategory.transaction_id)),
        )
        .join(TransactionCategory.category)
        .filter(Category.user_id == user_id, TransactionCategory.subcategory_id.isnot(None))
        .group_by(TransactionCategory.subcategory_id)
        .all()
    )

    return [
        CategoryCount(
            id=category.id,
            name=category.name,
            transaction_count=category_counts.get(category.id, 0),
            subcategories=[
                CategoryCount(
                    id=sub.id,
                    name=sub.name,
                    transaction_count=subcategory_counts.get(sub.id, 0),
                )
                for sub in category.subcategories
            ],
        )
        for category in list_categories(db, user_id)
    ]
