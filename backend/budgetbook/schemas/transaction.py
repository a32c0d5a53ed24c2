"""
Transaction schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field

from budgetbook.models.account import AccountType
from budgetbook.schemas.common import CamelModel, Money


class CategoryRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class AllocationResponse(BaseModel):
    id: int
    category_id: int
    subcategory_id: Optional[int]
    amount: Money
    category: CategoryRef
    subcategory: Optional[CategoryRef] = None

    model_config = ConfigDict(from_attributes=True)


class BankResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class AccountResponse(BaseModel):
    id: int
    bank_id: int
    account_type: AccountType
    account_number: str
    bank: BankResponse

    model_config = ConfigDict(from_attributes=True)


class TransactionResponse(BaseModel):
    id: int
    uuid: str
    account_id: int
    operation_date: date
    value_date: Optional[date]
    inserted_at: datetime
    description: str
    user_description: Optional[str]
    categories: List[AllocationResponse] = Field(
        default_factory=list,
        validation_alias=AliasChoices("allocations", "categories"),
    )
    account: Optional[AccountResponse] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def amount(self) -> Money:
        """Sum of the allocation amounts."""
        return sum((c.amount for c in self.categories), Decimal("0"))


class TransactionPage(CamelModel):
    transactions: List[TransactionResponse]
    total_count: int
    current_page: int
    total_pages: int


class TransactionTotals(CamelModel):
    total_income: Money
    total_expenses: Money
    net_amount: Money


class DescriptionUpdate(BaseModel):
    user_description: str


class AllocationInput(CamelModel):
    category_id: int
    subcategory_id: Optional[int] = None
    amount: Decimal


class CategoriesUpdate(BaseModel):
    categories: List[AllocationInput]


class PredictCategoryRequest(CamelModel):
    transaction_description: Optional[str] = None


class CategoryPrediction(CamelModel):
    category_id: int
    subcategory_id: Optional[int] = None
