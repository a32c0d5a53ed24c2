"""
FastAPI dependencies.
"""

from fastapi import Request

from budgetbook.database import get_db
from budgetbook.errors import UnauthorizedError

__all__ = ["get_db", "get_current_user_id"]


def get_current_user_id(request: Request) -> str:
    """
    Id of the user the auth gate resolved for this request.
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise UnauthorizedError()
    return user_id
