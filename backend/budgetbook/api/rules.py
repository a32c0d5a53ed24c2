"""
Rule API endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from budgetbook.dependencies import get_current_user_id, get_db
from budgetbook.schemas.common import ApiResponse
from budgetbook.schemas.rule import ApplyRuleResult, RuleResponse, RuleWrite
from budgetbook.services import rule_service

router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("", response_model=ApiResponse[List[RuleResponse]])
def list_rules(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    rules = rule_service.list_rules(db, user_id)
    return ApiResponse(data=[RuleResponse.model_validate(r) for r in rules])


@router.get("/suggest", response_model=ApiResponse[Optional[RuleResponse]])
def suggest_rule(
    description: str = Query(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """The saved rule that would categorize ``description``, if any"""
    rule = rule_service.suggest_rule(db, user_id, description)
    return ApiResponse(data=RuleResponse.model_validate(rule) if rule else None)


@router.post("", response_model=ApiResponse[RuleResponse])
def create_rule(
    body: RuleWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    rule = rule_service.create_rule(db, user_id, body)
    return ApiResponse(data=RuleResponse.model_validate(rule))


@router.put("/{rule_id}", response_model=ApiResponse[RuleResponse])
def update_rule(
    rule_id: int,
    body: RuleWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    rule = rule_service.update_rule(db, user_id, rule_id, body)
    return ApiResponse(data=RuleResponse.model_validate(rule))


@router.delete("/{rule_id}", response_model=ApiResponse)
def delete_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    rule_service.delete_rule(db, user_id, rule_id)
    return ApiResponse()


@router.post("/{rule_id}/apply", response_model=ApiResponse[ApplyRuleResult])
def apply_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Assign the rule's category to every matching transaction"""
    affected = rule_service.apply_rule(db, user_id, rule_id)
    return ApiResponse(data=ApplyRuleResult(affected_count=affected))
