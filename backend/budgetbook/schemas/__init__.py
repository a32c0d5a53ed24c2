"""
Pydantic schemas package.
"""

from budgetbook.schemas.common import ApiResponse, CamelModel, Money
from budgetbook.schemas.filters import FilterState
from budgetbook.schemas.category import (
    CategoryResponse,
    CategoryWrite,
    SubcategoryResponse,
)
from budgetbook.schemas.rule import RuleWrite, RuleResponse, ApplyRuleResult
from budgetbook.schemas.transaction import (
    TransactionResponse,
    TransactionPage,
    TransactionTotals,
    CategoryPrediction,
)

__all__ = [
    "ApiResponse",
    "CamelModel",
    "Money",
    "FilterState",
    "CategoryResponse",
    "CategoryWrite",
    "SubcategoryResponse",
    "RuleWrite",
    "RuleResponse",
    "ApplyRuleResult",
    "TransactionResponse",
    "TransactionPage",
    "TransactionTotals",
    "CategoryPrediction",
]
