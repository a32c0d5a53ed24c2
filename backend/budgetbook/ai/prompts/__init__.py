from budgetbook.ai.prompts.categorization import CATEGORIZATION_SYSTEM, CATEGORIZATION_USER

__all__ = [
    "CATEGORIZATION_SYSTEM",
    "CATEGORIZATION_USER",
]
