"""
Category API endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budgetbook.dependencies import get_current_user_id, get_db
from budgetbook.schemas.category import (
    CategoryResponse,
    CategoryRuleView,
    CategoryWrite,
    SubcategoryResponse,
)
from budgetbook.schemas.common import ApiResponse
from budgetbook.services import category_service
from budgetbook.services.rule_service import list_category_rules

router = APIRouter(tags=["categories"])


@router.get("/categories", response_model=ApiResponse[List[CategoryResponse]])
def list_categories(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """List categories with nested subcategories."""
    categories = category_service.list_categories(db, user_id)
    return ApiResponse(data=[CategoryResponse.model_validate(c) for c in categories])


@router.get("/categories/rules", response_model=ApiResponse[List[CategoryRuleView]])
def get_category_rules(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return ApiResponse(data=list_category_rules(db, user_id))


@router.post("/categories", response_model=ApiResponse[CategoryResponse], status_code=201)
def create_category(
    body: CategoryWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    category = category_service.create_category(db, user_id, body.name)
    return ApiResponse(data=CategoryResponse.model_validate(category))


@router.put("/categories/{category_id}", response_model=ApiResponse[CategoryResponse])
def rename_category(
    category_id: int,
    body: CategoryWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    category = category_service.rename_category(db, user_id, category_id, body.name)
    return ApiResponse(data=CategoryResponse.model_validate(category))


@router.delete("/categories/{category_id}", response_model=ApiResponse)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Delete a category that has no subcategories and no allocations."""
    category_service.delete_category(db, user_id, category_id)
    return ApiResponse()


@router.post(
    "/categories/{category_id}/subcategories",
    response_model=ApiResponse[SubcategoryResponse],
    status_code=201,
)
def create_subcategory(
    category_id: int,
    body: CategoryWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    subcategory = category_service.create_subcategory(db, user_id, category_id, body.name)
    return ApiResponse(data=SubcategoryResponse.model_validate(subcategory))


@router.put("/subcategories/{subcategory_id}", response_model=ApiResponse[SubcategoryResponse])
def rename_subcategory(
    subcategory_id: int,
    body: CategoryWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    subcategory = category_service.rename_subcategory(db, user_id, subcategory_id, body.name)
    return ApiResponse(data=SubcategoryResponse.model_validate(subcategory))


@router.delete("/subcategories/{subcategory_id}", response_model=ApiResponse)
def delete_subcategory(
    subcategory_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    category_service.delete_subcategory(db, user_id, subcategory_id)
    return ApiResponse()
