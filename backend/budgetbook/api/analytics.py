"""
Analytics and aggregate view endpoints.
"""

import json
import logging
from typing import List

from fastapi import APIRouter, Depends, Form, Query, Request
from sqlalchemy.orm import Session

from budgetbook.dependencies import get_current_user_id, get_db
from budgetbook.schemas.analytics import BankBalances, ChartData, FinancialPeriod
from budgetbook.schemas.category import CategoryCount
from budgetbook.schemas.common import ApiResponse
from budgetbook.schemas.filters import FilterState
from budgetbook.services import analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analytics"])


@router.get("/financial-data", response_model=ApiResponse[List[FinancialPeriod]])
def get_financial_data(
    period: str = Query("month", description="month or year"),
    offset: int = Query(0),
    count: int = Query(5),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """
    Income, expenses and per-category totals for the last ``count`` periods,
    skipping the most recent ``offset`` ones.
    """
    summary = analytics_service.get_financial_summary(
        db, user_id, period=period, count=count, offset=offset
    )
    return ApiResponse(data=summary)


@router.get("/bank-balances", response_model=ApiResponse[BankBalances])
def get_bank_balances(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return ApiResponse(data=analytics_service.get_bank_balances(db, user_id))


@router.get("/category-transaction-counts", response_model=ApiResponse[List[CategoryCount]])
def get_category_transaction_counts(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return ApiResponse(data=analytics_service.get_category_transaction_counts(db, user_id))


@router.get("/analytics", response_model=ApiResponse[ChartData])
def get_analytics(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Chart data for the filters in the query string"""
    filters = FilterState.from_query_params(request.query_params)
    chart = analytics_service.get_chart_data(db, user_id, filters)
    return ApiResponse(data=ChartData(chart_data=chart))


@router.post("/analytics", response_model=ApiResponse[ChartData])
def filter_analytics(
    filters: str = Form("{}"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Chart data for the JSON filter payload posted by the analytics form"""
    try:
        payload = json.loads(filters)
    except json.JSONDecodeError:
        logger.debug("Ignoring malformed analytics filters: %r", filters)
        payload = {}

    state = FilterState.from_payload(payload)
    chart = analytics_service.get_chart_data(db, user_id, state)
    return ApiResponse(data=ChartData(chart_data=chart))
