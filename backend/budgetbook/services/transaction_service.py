"""
Single-transaction reads and mutations.

Category allocations are only ever replaced as a whole: the old rows are
deleted and the new ones inserted in the same database transaction, so a
failure half way leaves the previous allocations in place.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from budgetbook.errors import AppError, NotFoundError, ValidationError
from budgetbook.models.account import Account
from budgetbook.models.bank import Bank
from budgetbook.models.category import Category, Subcategory
from budgetbook.models.transaction import Transaction, TransactionCategory
from budgetbook.schemas.transaction import AllocationInput

logger = logging.getLogger(__name__)

DUPLICATE_PAIR_MESSAGE = (
    "Cannot assign the same category and subcategory combination multiple times to a transaction"
)

# (category_id, subcategory_id, amount)
AllocationSpec = Tuple[int, Optional[int], Decimal]


def get_transaction(db: Session, user_id: str, transaction_id: int) -> Transaction:
    transaction = (
        db.query(Transaction)
        .join(Transaction.account)
        .join(Account.bank)
        .filter(Transaction.id == transaction_id, Bank.user_id == user_id)
        .options(
            joinedload(Transaction.account).joinedload(Account.bank),
            selectinload(Transaction.allocations).options(
                joinedload(TransactionCategory.category),
                joinedload(TransactionCategory.subcategory),
            ),
        )
        .first()
    )
    if not transaction:
        raise NotFoundError("Transaction not found")
    return transaction


def update_description(db: Session, user_id: str, transaction_id: int, user_description: str) -> Transaction:
    """Set the user's description override; a blank value clears it."""
    if not isinstance(user_description, str):
        raise ValidationError("Invalid description data")

    transaction = get_transaction(db, user_id, transaction_id)
    transaction.user_description = user_description.strip() or None
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update description of transaction %s", transaction_id)
        raise AppError("Failed to update transaction description") from exc

    db.refresh(transaction)
    return transaction


def validate_allocations(db: Session, user_id: str, allocations: Sequence[AllocationInput]) -> None:
    """Reject empty lists, duplicate pairs and ids outside the user's taxonomy."""
    if not allocations:
        raise ValidationError("Invalid categories data")

    pairs = Counter((a.category_id, a.subcategory_id) for a in allocations)
    if any(count > 1 for count in pairs.values()):
        raise ValidationError(DUPLICATE_PAIR_MESSAGE)

    category_ids = {a.category_id for a in allocations}
    known_categories = {
        c.id for c in db.query(Category.id).filter(
            Category.id.in_(category_ids), Category.user_id == user_id
        )
    }
    if category_ids - known_categories:
        raise ValidationError("Unknown category")

    subcategory_ids = {a.subcategory_id for a in allocations if a.subcategory_id is not None}
    if subcategory_ids:
        owners = dict(
            db.query(Subcategory.id, Subcategory.category_id)
            .filter(Subcategory.id.in_(subcategory_ids))
            .all()
        )
        for allocation in allocations:
            if allocation.subcategory_id is None:
                continue
            if owners.get(allocation.subcategory_id) != allocation.category_id:
                raise ValidationError("Subcategory does not belong to the selected category")


def _signature(specs: Iterable[AllocationSpec]) -> Counter:
    return Counter((c, s, Decimal(a).quantize(Decimal("0.01"))) for c, s, a in specs)


def current_allocations(transaction: Transaction) -> List[AllocationSpec]:
    return [(a.category_id, a.subcategory_id, Decimal(a.amount)) for a in transaction.allocations]


def _new_allocation(transaction: Transaction, spec: AllocationSpec) -> TransactionCategory:
    category_id, subcategory_id, amount = spec
    return TransactionCategory(
        transaction_id=transaction.id,
        category_id=category_id,
        subcategory_id=subcategory_id,
        amount=amount,
    )


def replace_allocations(db: Session, transaction: Transaction, specs: Sequence[AllocationSpec]) -> bool:
    """
    Swap a transaction's allocations for ``specs`` without committing.

    Returns False when the allocations already match and nothing was written.
    """
    if _signature(current_allocations(transaction)) == _signature(specs):
        return False

    transaction.allocations.clear()
    # Deletes must reach the database before the inserts, otherwise a
    # re-added pair trips the unique constraint.
    db.flush()
    for spec in specs:
        transaction.allocations.append(_new_allocation(transaction, spec))
    db.flush()
    return True


def update_transaction_categories(
    db: Session,
    user_id: str,
    transaction_id: int,
    allocations: Sequence[AllocationInput],
) -> Transaction:
    transaction = get_transaction(db, user_id, transaction_id)
    validate_allocations(db, user_id, allocations)

    specs = [(a.category_id, a.subcategory_id, a.amount) for a in allocations]
    try:
        changed = replace_allocations(db, transaction, specs)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Constraint violation updating transaction %s: %s", transaction_id, exc.orig)
        raise ValidationError(DUPLICATE_PAIR_MESSAGE) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update categories of transaction %s", transaction_id)
        raise AppError("Failed to update transaction categories") from exc

    if changed:
        logger.info("Replaced allocations of transaction %s (%d rows)", transaction_id, len(specs))
    db.refresh(transaction)
    return transaction
