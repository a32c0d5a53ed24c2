"""
Category and subcategory management.

A category can only be deleted once it has no subcategories and no
allocation points at it; a subcategory once no allocation points at it.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from budgetbook.errors import NotFoundError, ValidationError
from budgetbook.models.category import Category, Subcategory
from budgetbook.models.rule import TransactionRule
from budgetbook.models.transaction import TransactionCategory

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str], message: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(message)
    return cleaned


def list_categories(db: Session, user_id: str) -> List[Category]:
    """All of a user's categories with their subcategories, by name."""
    return (
        db.query(Category)
        .filter(Category.user_id == user_id)
        .options(selectinload(Category.subcategories))
        .order_by(Category.name)
        .all()
    )


def build_taxonomy(categories: List[Category]) -> List[Dict[str, Any]]:
    return [
        {
            "id": c.id,
            "name": c.name,
            "subcategories": [{"id": s.id, "name": s.name} for s in c.subcategories],
        }
        for c in categories
    ]


def get_category(db: Session, user_id: str, category_id: int) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def get_subcategory(db: Session, user_id: str, subcategory_id: int) -> Subcategory:
    subcategory = (
        db.query(Subcategory)
        .join(Subcategory.category)
        .filter(Subcategory.id == subcategory_id, Category.user_id == user_id)
        .first()
    )
    if not subcategory:
        raise NotFoundError("Subcategory not found")
    return subcategory


def create_category(db: Session, user_id: str, name: str) -> Category:
    category = Category(
        name=_clean_name(name, "Category name is required"),
        user_id=user_id
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Created category %s for user %s", category.id, user_id)
    return category


def rename_category(db: Session, user_id: str, category_id: int, name: str) -> Category:
    category = get_category(db, user_id, category_id)
    category.name = _clean_name(name, "Category name is required")
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, user_id: str, category_id: int) -> None:
    category = get_category(db, user_id, category_id)

    has_subcategories = db.query(Subcategory.id).filter(
        Subcategory.category_id == category_id
    ).first()
    if has_subcategories:
        raise ValidationError("Cannot delete category with subcategories")

    has_allocations = db.query(TransactionCategory.id).filter(
        TransactionCategory.category_id == category_id
    ).first()
    if has_allocations:
        raise ValidationError("Cannot delete category with associated transactions")

    # Rules pointing at the category go with it
    db.query(TransactionRule).filter(
        TransactionRule.category_id == category_id
    ).delete(synchronize_session=False)
    db.delete(category)
    db.commit()
    logger.info("Deleted category %s", category_id)


def create_subcategory(db: Session, user_id: str, category_id: int, name: str) -> Subcategory:
    get_category(db, user_id, category_id)
    subcategory = Subcategory(
        name=_clean_name(name, "Subcategory name and category ID are required"),
        category_id=category_id
    )
    db.add(subcategory)
    db.commit()
    db.refresh(subcategory)
    return subcategory


def rename_subcategory(db: Session, user_id: str, subcategory_id: int, name: str) -> Subcategory:
    subcategory = get_subcategory(db, user_id, subcategory_id)
    subcategory.name = _clean_name(name, "Subcategory name is required")
    db.commit()
    db.refresh(subcategory)
    return subcategory


def delete_subcategory(db: Session, user_id: str, subcategory_id: int) -> None:
    subcategory = get_subcategory(db, user_id, subcategory_id)

    has_allocations = db.query(TransactionCategory.id).filter(
        TransactionCategory.subcategory_id == subcategory_id
    ).first()
    if has_allocations:
        raise ValidationError("Cannot delete subcategory with associated transactions")

    # Rules keep their category but lose the subcategory
    db.query(TransactionRule).filter(
        TransactionRule.subcategory_id == subcategory_id
    ).update({"subcategory_id": None}, synchronize_session=False)
    db.delete(subcategory)
    db.commit()
    logger.info("Deleted subcategory %s", subcategory_id)
