"""
Category and subcategory database models.
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from budgetbook.database import Base


class Category(Base):
    """Top-level category owned by a user."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="categories")
    subcategories = relationship(
        "Subcategory",
        back_populates="category",
        order_by="Subcategory.name",
    )
    allocations = relationship("TransactionCategory", back_populates="category")


class Subcategory(Base):
    """Second level of the taxonomy; always belongs to one category."""

    __tablename__ = "subcategories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    # Relationships
    category = relationship("Category", back_populates="subcategories")
    allocations = relationship("TransactionCategory", back_populates="subcategory")
