"""
Auto-categorization rule database model.
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from budgetbook.database import Base


class TransactionRule(Base):
    """Maps a description pattern to a (category, subcategory) pair."""

    __tablename__ = "transaction_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pattern = Column(String(255), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    subcategory_id = Column(Integer, ForeignKey("subcategories.id"), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="rules")
    category = relationship("Category")
    subcategory = relationship("Subcategory")
