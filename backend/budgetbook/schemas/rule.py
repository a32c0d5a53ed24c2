"""
Rule schemas.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from budgetbook.schemas.common import CamelModel
from budgetbook.schemas.transaction import CategoryRef


class RuleWrite(BaseModel):
    pattern: Optional[str] = None
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None


class RuleResponse(BaseModel):
    id: int
    pattern: str
    category_id: int
    subcategory_id: Optional[int]
    category: Optional[CategoryRef] = None
    subcategory: Optional[CategoryRef] = None

    model_config = ConfigDict(from_attributes=True)


class ApplyRuleResult(CamelModel):
    affected_count: int
