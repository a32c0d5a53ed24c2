"""
Category Pydantic schemas for API validation.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from budgetbook.schemas.common import CamelModel


class SubcategoryResponse(BaseModel):
    id: int
    category_id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class CategoryResponse(BaseModel):
    """Category with its nested subcategories."""
    id: int
    name: str
    subcategories: List[SubcategoryResponse] = []

    model_config = ConfigDict(from_attributes=True)


class CategoryWrite(BaseModel):
    """Body for creating or renaming a category or subcategory."""
    name: str = Field(..., max_length=100)


class CategoryRuleView(BaseModel):
    id: int
    category_id: int
    pattern: str
    category_name: str


class CategoryCount(CamelModel):
    id: int
    name: str
    transaction_count: int
    subcategories: List["CategoryCount"] = []


CategoryCount.model_rebuild()


class CategoryTotal(BaseModel):
    category_id: int
    category_name: str
    subcategory_id: Optional[int] = None
    subcategory_name: Optional[str] = None
    total: float
    transaction_count: int
