"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from budgetbook.ai.client import AIClient, get_ai_client
from budgetbook.dependencies import get_current_user_id, get_db
from budgetbook.errors import ValidationError
from budgetbook.schemas.category import CategoryTotal
from budgetbook.schemas.common import ApiResponse
from budgetbook.schemas.filters import FilterState
from budgetbook.schemas.transaction import (
    CategoriesUpdate,
    CategoryPrediction,
    DescriptionUpdate,
    PredictCategoryRequest,
    TransactionPage,
    TransactionResponse,
    TransactionTotals,
)
from budgetbook.services import analytics_service, transaction_service
from budgetbook.services.ai_service import predict_category
from budgetbook.services.category_service import build_taxonomy, list_categories
from budgetbook.services.query_builder import get_filtered_transactions
from budgetbook.services.rule_service import list_rules

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/filtered", response_model=ApiResponse[TransactionPage])
def list_filtered_transactions(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Paginated, filtered and sorted transaction listing"""
    filters = FilterState.from_query_params(request.query_params)
    result = get_filtered_transactions(db, user_id, filters)

    return ApiResponse(data=TransactionPage(
        transactions=[TransactionResponse.model_validate(t) for t in result.transactions],
        total_count=result.total_count,
        current_page=result.current_page,
        total_pages=result.total_pages
    ))


@router.get("/totals", response_model=ApiResponse[TransactionTotals])
def get_transactions_totals(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Income, expense and net totals for the current listing filters"""
    filters = FilterState.from_query_params(request.query_params)
    return ApiResponse(data=analytics_service.get_transactions_totals(db, user_id, filters))


@router.get("/category-totals", response_model=ApiResponse[list[CategoryTotal]])
def get_category_totals(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    filters = FilterState.from_query_params(request.query_params)
    totals = analytics_service.get_category_totals(
        db,
        user_id,
        date_from=filters.date_range.date_from,
        date_to=filters.date_range.date_to,
        type_filter=filters.type
    )
    return ApiResponse(data=totals)


@router.post("/predict-category", response_model=ApiResponse[CategoryPrediction])
async def predict_transaction_category(
    body: PredictCategoryRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    ai_client: AIClient = Depends(get_ai_client)
):
    """Ask the completion service for a category guess, checked against the user's taxonomy"""
    description = (body.transaction_description or "").strip()
    if not description:
        raise ValidationError("Transaction description is required")

    taxonomy = build_taxonomy(list_categories(db, user_id))
    rules = list_rules(db, user_id)
    prediction = await predict_category(description, taxonomy, rules, client=ai_client)
    return ApiResponse(data=prediction)


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get a single transaction"""
    transaction = transaction_service.get_transaction(db, user_id, transaction_id)
    return ApiResponse(data=TransactionResponse.model_validate(transaction))


@router.put("/{transaction_id}/description", response_model=ApiResponse[TransactionResponse])
def update_transaction_description(
    transaction_id: int,
    update: DescriptionUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    transaction = transaction_service.update_description(
        db, user_id, transaction_id, update.user_description
    )
    return ApiResponse(data=TransactionResponse.model_validate(transaction))


@router.put("/{transaction_id}/categories", response_model=ApiResponse[TransactionResponse])
def update_transaction_categories(
    transaction_id: int,
    update: CategoriesUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Replace every category allocation of a transaction"""
    transaction = transaction_service.update_transaction_categories(
        db, user_id, transaction_id, update.categories
    )
    return ApiResponse(data=TransactionResponse.model_validate(transaction))
