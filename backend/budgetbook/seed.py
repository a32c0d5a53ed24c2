"""
Default category taxonomy for new users.
"""

import logging

from sqlalchemy.orm import Session

from budgetbook.config import settings
from budgetbook.models import Category, Subcategory

logger = logging.getLogger(__name__)


def default_categories():
    """Category name -> subcategory names."""
    return {
        "Income": ["Salary", "Refunds"],
        "Housing": ["Rent/Mortgage", "Utilities", "Insurance"],
        "Transportation": ["Fuel", "Public Transport", "Maintenance", "Parking"],
        "Food": ["Groceries", "Restaurants", "Coffee"],
        "Shopping": ["Clothing", "Electronics", "Home"],
        "Entertainment": ["Streaming", "Games", "Events"],
        "Health": ["Medical", "Pharmacy", "Fitness"],
        "Travel": [],
        "Subscriptions": [],
        "Fees": [],
        "Other": [],
        settings.transfers_category_name: [],
    }


def seed_categories(db: Session, user_id: str) -> int:
    """Seed the default taxonomy for a user that has no categories yet.

    Does not commit; returns the number of categories created.
    """
    existing_count = db.query(Category).filter(Category.user_id == user_id).count()
    if existing_count > 0:
        logger.debug("User %s already has %d categories", user_id, existing_count)
        return 0

    taxonomy = default_categories()
    for name, children in taxonomy.items():
        parent = Category(name=name, user_id=user_id)
        db.add(parent)
        db.flush()
        for child in children:
            db.add(Subcategory(name=child, category_id=parent.id))

    logger.info("Seeded %d categories for user %s", len(taxonomy), user_id)
    return len(taxonomy)
