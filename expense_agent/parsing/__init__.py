"""Expense parsing and category suggestion."""

from expense_agent.parsing.categories import (
    DEFAULT_CATEGORY_KEYWORDS,
    CategoryLookup,
    keyword_lookup,
    load_category_keywords,
    suggest_category,
)
from expense_agent.parsing.parser import (
    FORMAT_HINT,
    ExpenseParser,
    ExpenseValidationError,
    ParseError,
)

__all__ = [
    "DEFAULT_CATEGORY_KEYWORDS",
    "CategoryLookup",
    "ExpenseParser",
    "ExpenseValidationError",
    "FORMAT_HINT",
    "ParseError",
    "keyword_lookup",
    "load_category_keywords",
    "suggest_category",
]
