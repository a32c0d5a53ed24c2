"""
Translate a ``FilterState`` into transaction queries.

Predicates are applied in a fixed order (date range, type, category and
subcategory selection, search) so the same filters always produce the same
SQL. Category filters are expressed with EXISTS / NOT EXISTS over the
allocations: excluding a category drops every transaction that has any
allocation in it.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query, Session, contains_eager, joinedload, selectinload

from budgetbook.config import settings
from budgetbook.models.account import Account
from budgetbook.models.bank import Bank
from budgetbook.models.transaction import Transaction, TransactionCategory
from budgetbook.schemas.filters import FilterState, SearchFilter
from budgetbook.services.aggregator import sort_by_total

logger = logging.getLogger(__name__)

INCOME_THRESHOLD = Decimal("0.01")


@dataclass
class PageResult:
    transactions: List[Transaction]
    total_count: int
    current_page: int
    total_pages: int


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def amount_condition(type_filter: str):
    """Allocation-level predicate for the income/expense filter, or None."""
    if type_filter == "income":
        return TransactionCategory.amount >= INCOME_THRESHOLD
    if type_filter == "expense":
        return TransactionCategory.amount < 0
    return None


def search_condition(search: SearchFilter):
    """Case-insensitive substring match on either description, or None."""
    if not search.value:
        return None
    pattern = f"%{escape_like(search.value)}%"
    raw_match = Transaction.description.ilike(pattern, escape="\\")
    # A missing override never matches, negated or not
    user_match = func.coalesce(Transaction.user_description, "").ilike(pattern, escape="\\")
    if search.is_negative:
        return and_(~raw_match, ~user_match)
    return or_(raw_match, user_match)


def total_pages(total_count: int, page_size: int) -> int:
    return max(math.ceil(total_count / page_size), 0)


class TransactionQueryBuilder:
    """Builds the count and page queries for one user's filtered listing."""

    def __init__(self, db: Session, user_id: str, filters: FilterState):
        self.db = db
        self.user_id = user_id
        self.filters = filters

    def base_query(self) -> Query:
        return (
            self.db.query(Transaction)
            .join(Transaction.account)
            .join(Account.bank)
            .filter(Bank.user_id == self.user_id)
        )

    def filtered_query(self) -> Query:
        filters = self.filters
        query = self.base_query()

        query = query.filter(Transaction.operation_date >= filters.effective_date_from())
        if filters.date_range.date_to:
            query = query.filter(Transaction.operation_date <= filters.date_range.date_to)

        type_condition = amount_condition(filters.type)
        if type_condition is not None:
            query = query.filter(Transaction.allocations.any(type_condition))

        if filters.categories.selected:
            in_selection = Transaction.allocations.any(
                TransactionCategory.category_id.in_(filters.categories.selected)
            )
            query = query.filter(~in_selection if filters.categories.is_negative else in_selection)

        if filters.subcategories.selected:
            query = query.filter(
                Transaction.allocations.any(
                    TransactionCategory.subcategory_id.in_(filters.subcategories.selected)
                )
            )

        text_condition = search_condition(filters.search)
        if text_condition is not None:
            query = query.filter(text_condition)

        return query

    def count(self) -> int:
        return self.filtered_query().count()

    def _with_relations(self, query: Query) -> Query:
        return query.options(
            contains_eager(Transaction.account).contains_eager(Account.bank),
            selectinload(Transaction.allocations).options(
                joinedload(TransactionCategory.category),
                joinedload(TransactionCategory.subcategory),
            ),
        )

    def _ordered(self, query: Query) -> Query:
        column = self.filters.sort.column
        ascending = self.filters.sort.direction == "asc"

        def directed(expr):
            return expr.asc() if ascending else expr.desc()

        if column == "description":
            return query.order_by(
                directed(Transaction.user_description).nulls_last(),
                directed(Transaction.description),
                directed(Transaction.id),
            )
        if column is None:
            return query.order_by(Transaction.operation_date.desc(), Transaction.id.desc())
        return query.order_by(directed(Transaction.operation_date), directed(Transaction.id))

    def page(self) -> PageResult:
        filters = self.filters
        query = self.filtered_query()

        if filters.sort.column == "amount":
            # Amount is derived from the allocations, so the whole filtered
            # set is loaded and sorted here before slicing.
            rows = self._with_relations(query).all()
            if len(rows) > settings.amount_sort_warn_rows:
                logger.warning(
                    "Amount sort materialised %d transactions for user %s",
                    len(rows), self.user_id,
                )
            ordered = sort_by_total(rows, filters.sort.direction)
            total_count = len(rows)
            transactions = ordered[filters.offset:filters.offset + filters.page_size]
        else:
            total_count = query.count()
            if filters.offset >= total_count:
                # Past the last page; the offset may not fit a bound parameter
                transactions = []
            else:
                transactions = (
                    self._with_relations(self._ordered(query))
                    .offset(filters.offset)
                    .limit(filters.page_size)
                    .all()
                )

        logger.debug(
            "Filtered listing for user %s: %d matches, page %d",
            self.user_id, total_count, filters.page,
        )
        return PageResult(
            transactions=transactions,
            total_count=total_count,
            current_page=filters.page,
            total_pages=total_pages(total_count, filters.page_size),
        )


def get_filtered_transactions(db: Session, user_id: str, filters: FilterState) -> PageResult:
    return TransactionQueryBuilder(db, user_id, filters).page()
