"""
Category prediction through the text-completion service.

The model only proposes ids; nothing it returns is trusted until it has been
checked against the taxonomy that was sent with the request.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from budgetbook.ai.client import AIClient, get_ai_client
from budgetbook.ai.prompts import CATEGORIZATION_SYSTEM, CATEGORIZATION_USER
from budgetbook.config import settings
from budgetbook.errors import FeatureDisabledError, PredictionError, UpstreamError
from budgetbook.models.rule import TransactionRule
from budgetbook.schemas.transaction import CategoryPrediction

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def format_category_list(taxonomy: List[Dict[str, Any]]) -> str:
    lines = []
    for category in taxonomy:
        lines.append(f"- {category['name']} (id: {category['id']})")
        subcategories = category.get("subcategories") or []
        if subcategories:
            lines.append("    Subcategories:")
            lines.extend(f"      - {sub['name']} (id: {sub['id']})" for sub in subcategories)
    return "\n".join(lines)


def format_rules(rules: Sequence[TransactionRule]) -> str:
    if not rules:
        return "No saved rules yet."
    return "\n".join(
        f"- \"{rule.pattern}\" -> category {rule.category_id}"
        + (f", subcategory {rule.subcategory_id}" if rule.subcategory_id else "")
        for rule in rules
    )


def validate_prediction(result: Any, taxonomy: List[Dict[str, Any]]) -> CategoryPrediction:
    """Accept only ids that exist in ``taxonomy``; raise PredictionError otherwise."""
    if not isinstance(result, dict):
        raise PredictionError("Invalid AI response")

    category_id = result.get("categoryId")
    subcategory_id = result.get("subcategoryId")

    if not _is_int(category_id):
        raise PredictionError("Invalid categoryId in AI response")
    if subcategory_id is not None and not _is_int(subcategory_id):
        raise PredictionError("Invalid subcategoryId in AI response")

    category = next((c for c in taxonomy if c["id"] == category_id), None)
    if category is None:
        raise PredictionError("Selected category ID does not exist")

    if subcategory_id is not None:
        sub_ids = {s["id"] for s in category.get("subcategories") or []}
        if subcategory_id not in sub_ids:
            raise PredictionError("Selected subcategory ID does not belong to the selected category")

    return CategoryPrediction(category_id=category_id, subcategory_id=subcategory_id)


async def predict_category(
    description: str,
    taxonomy: List[Dict[str, Any]],
    rules: Sequence[TransactionRule] = (),
    client: Optional[AIClient] = None,
) -> CategoryPrediction:
    if not settings.ai_predict_categories:
        raise FeatureDisabledError("Category prediction is disabled")

    client = client or get_ai_client()

    user_prompt = CATEGORIZATION_USER.format(
        description=description,
        category_list=format_category_list(taxonomy),
        rules=format_rules(rules),
    )

    try:
        result = await client.complete_json(
            system_prompt=CATEGORIZATION_SYSTEM,
            user_prompt=user_prompt,
            temperature=0.3,
            max_tokens=150
        )
    except json.JSONDecodeError as exc:
        logger.warning("Unparseable prediction for %r: %s", description, exc)
        raise PredictionError("Failed to parse AI prediction") from exc
    except Exception as exc:
        logger.error("Category prediction failed: %s", exc)
        raise UpstreamError("Failed to predict category") from exc

    try:
        return validate_prediction(result, taxonomy)
    except PredictionError as exc:
        logger.warning("Rejected prediction %r for %r: %s", result, description, exc.message)
        raise
