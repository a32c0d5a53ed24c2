"""
Main API router.
"""

from fastapi import APIRouter
from budgetbook.api import analytics, categories, rules, transactions

api_router = APIRouter()

api_router.include_router(categories.router)
api_router.include_router(rules.router)
api_router.include_router(transactions.router)
api_router.include_router(analytics.router)
