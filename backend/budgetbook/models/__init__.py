"""
Database models package.
"""

from budgetbook.models.user import User, UserSession
from budgetbook.models.bank import Bank
from budgetbook.models.account import Account, AccountType
from budgetbook.models.category import Category, Subcategory
from budgetbook.models.transaction import Transaction, TransactionCategory
from budgetbook.models.rule import TransactionRule

__all__ = [
    "User",
    "UserSession",
    "Bank",
    "Account",
    "AccountType",
    "Category",
    "Subcategory",
    "Transaction",
    "TransactionCategory",
    "TransactionRule",
]
