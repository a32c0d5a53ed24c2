"""
Auto-categorization rules.

A rule matches a transaction when its pattern occurs, ignoring case, in the
raw description or in the user's description override. Applying a rule
replaces the matching transactions' allocations with a single allocation
for the rule's category/subcategory carrying the transaction's full amount.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from budgetbook.errors import AppError, NotFoundError, ValidationError
from budgetbook.models.account import Account
from budgetbook.models.bank import Bank
from budgetbook.models.category import Category, Subcategory
from budgetbook.models.rule import TransactionRule
from budgetbook.models.transaction import Transaction
from budgetbook.schemas.category import CategoryRuleView
from budgetbook.schemas.filters import SearchFilter
from budgetbook.schemas.rule import RuleWrite
from budgetbook.services.aggregator import transaction_total
from budgetbook.services.query_builder import search_condition
from budgetbook.services.transaction_service import replace_allocations

logger = logging.getLogger(__name__)


def list_rules(db: Session, user_id: str) -> List[TransactionRule]:
    return (
        db.query(TransactionRule)
        .filter(TransactionRule.user_id == user_id)
        .options(
            joinedload(TransactionRule.category),
            joinedload(TransactionRule.subcategory),
        )
        .order_by(TransactionRule.id)
        .all()
    )


def list_category_rules(db: Session, user_id: str) -> List[CategoryRuleView]:
    """Flat pattern -> category name view, ordered by pattern."""
    rules = (
        db.query(TransactionRule)
        .filter(TransactionRule.user_id == user_id)
        .options(joinedload(TransactionRule.category))
        .order_by(TransactionRule.pattern)
        .all()
    )
    return [
        CategoryRuleView(
            id=rule.id,
            category_id=rule.category_id,
            pattern=rule.pattern,
            category_name=rule.category.name if rule.category else "Unknown",
        )
        for rule in rules
    ]


def suggest_rule(db: Session, user_id: str, description: str) -> Optional[TransactionRule]:
    """First rule, by id, whose pattern occurs in ``description`` ignoring case."""
    text = (description or "").lower()
    if not text.strip():
        return None
    return next((r for r in list_rules(db, user_id) if r.pattern.lower() in text), None)


def get_rule(db: Session, user_id: str, rule_id: int) -> TransactionRule:
    rule = db.query(TransactionRule).filter(
        TransactionRule.id == rule_id,
        TransactionRule.user_id == user_id
    ).first()
    if not rule:
        raise NotFoundError("Rule not found")
    return rule


def _validated(db: Session, user_id: str, data: RuleWrite):
    pattern = (data.pattern or "").strip()
    if not pattern or data.category_id is None:
        raise ValidationError("Pattern and category are required")

    category = db.query(Category).filter(
        Category.id == data.category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise ValidationError("Unknown category")

    if data.subcategory_id is not None:
        subcategory = db.query(Subcategory).filter(Subcategory.id == data.subcategory_id).first()
        if not subcategory or subcategory.category_id != category.id:
            raise ValidationError("Subcategory does not belong to the selected category")

    return pattern, category.id, data.subcategory_id


def create_rule(db: Session, user_id: str, data: RuleWrite) -> TransactionRule:
    pattern, category_id, subcategory_id = _validated(db, user_id, data)
    rule = TransactionRule(
        pattern=pattern,
        category_id=category_id,
        subcategory_id=subcategory_id,
        user_id=user_id
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    logger.info("Created rule %s (%r) for user %s", rule.id, pattern, user_id)
    return rule


def update_rule(db: Session, user_id: str, rule_id: int, data: RuleWrite) -> TransactionRule:
    rule = get_rule(db, user_id, rule_id)
    rule.pattern, rule.category_id, rule.subcategory_id = _validated(db, user_id, data)
    db.commit()
    db.refresh(rule)
    return rule


def delete_rule(db: Session, user_id: str, rule_id: int) -> None:
    rule = get_rule(db, user_id, rule_id)
    db.delete(rule)
    db.commit()


def _matching_transactions(db: Session, user_id: str, pattern: str) -> List[Transaction]:
    return (
        db.query(Transaction)
        .join(Transaction.account)
        .join(Account.bank)
        .filter(
            Bank.user_id == user_id,
            search_condition(SearchFilter(value=pattern)),
        )
        .options(selectinload(Transaction.allocations))
        .order_by(Transaction.id)
        .all()
    )


def apply_rule(db: Session, user_id: str, rule_id: int) -> int:
    """Assign the rule's category to every matching transaction.

    Transactions already allocated to exactly the rule's pair are left
    alone, so applying the same rule twice changes nothing the second time.
    Returns the number of transactions changed.
    """
    rule = get_rule(db, user_id, rule_id)
    affected = 0

    try:
        for transaction in _matching_transactions(db, user_id, rule.pattern):
            spec = (rule.category_id, rule.subcategory_id, transaction_total(transaction))
            if replace_allocations(db, transaction, [spec]):
                affected += 1
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to apply rule %s", rule_id)
        raise AppError("Failed to apply rule") from exc

    logger.info("Rule %s applied to %d transactions", rule_id, affected)
    return affected

