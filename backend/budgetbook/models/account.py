"""
Account database model.
"""

import enum
from sqlalchemy import Column, Integer, String, Enum, ForeignKey
from sqlalchemy.orm import relationship
from budgetbook.database import Base


class AccountType(str, enum.Enum):
    """Account type enumeration."""
    bank_account = "bank_account"
    virtual_card = "virtual_card"


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False, index=True)
    account_type = Column(Enum(AccountType), nullable=False, default=AccountType.bank_account)
    account_number = Column(String(64), nullable=False)

    # Relationships
    bank = relationship("Bank", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account")
