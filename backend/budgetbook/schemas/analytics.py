"""
Analytics and aggregate view schemas.
"""

from typing import Dict, List

from pydantic import BaseModel

from budgetbook.schemas.common import CamelModel


class PeriodBucket(BaseModel):
    period: str
    income: float
    expenses: float


class ChartData(CamelModel):
    chart_data: List[PeriodBucket]


class CategoryAmount(BaseModel):
    id: int
    name: str
    amount: float


class FinancialPeriod(BaseModel):
    period: str
    income: float
    expenses: float
    net: float
    categories: List[CategoryAmount] = []


class BankBalance(CamelModel):
    id: int
    name: str
    balance: float
    account_counts: Dict[str, int]


class BankBalances(CamelModel):
    banks: List[BankBalance]
    total_balance: float
