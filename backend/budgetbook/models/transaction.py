"""
Transaction and category allocation database models.
"""

from uuid import uuid4
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Numeric, Text, ForeignKey, Index, UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from budgetbook.database import Base, utcnow


class Transaction(Base):
    """Imported bank transaction.

    There is no stored amount: the effective amount is the sum of the
    allocation amounts.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid4()))
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    operation_date = Column(Date, nullable=False, index=True)
    value_date = Column(Date, nullable=True)
    inserted_at = Column(DateTime, default=utcnow, nullable=False)
    description = Column(Text, nullable=False)
    user_description = Column(Text, nullable=True)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    allocations = relationship(
        "TransactionCategory",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionCategory.id",
    )

    __table_args__ = (
        Index("idx_transaction_date_account", "operation_date", "account_id"),
    )


class TransactionCategory(Base):
    """A signed share of a transaction assigned to a category/subcategory pair."""

    __tablename__ = "transaction_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    subcategory_id = Column(Integer, ForeignKey("subcategories.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = expense, positive = income

    # Relationships
    transaction = relationship("Transaction", back_populates="allocations")
    category = relationship("Category", back_populates="allocations")
    subcategory = relationship("Subcategory", back_populates="allocations")

    __table_args__ = (
        UniqueConstraint(
            "transaction_id", "category_id", "subcategory_id",
            name="uq_transaction_category_pair",
        ),
        # NULLs are distinct in the constraint above
        Index(
            "uq_transaction_category_only", "transaction_id", "category_id",
            unique=True,
            sqlite_where=text("subcategory_id IS NULL"),
            postgresql_where=text("subcategory_id IS NULL"),
        ),
        Index("idx_allocation_category", "category_id"),
        Index("idx_allocation_transaction", "transaction_id"),
    )
