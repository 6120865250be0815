"""
Keyword-Based Category Suggestion

DESIGN DECISION: The suggestion is a plain dictionary lookup, not a model.
It is a best-effort default that the user always has to confirm.

Matching is a lowercase substring search in table order and the FIRST
hit wins, so put more specific keywords before generic ones when you
customize the table.
"""

import json
from pathlib import Path
from typing import Callable, Mapping, Union

from expense_agent.models.expense import DEFAULT_CATEGORY


CategoryLookup = Callable[[str], str]


DEFAULT_CATEGORY_KEYWORDS: dict[str, str] = {
    "mercado": "Groceries",
    "compra": "Groceries",
    "padaria": "Food",
    "restaurante": "Food",
    "almoco": "Food",
    "jantar": "Food",
    "pizza": "Food",
    "lanche": "Food",
    "transporte": "Transport",
    "uber": "Transport",
    "taxi": "Transport",
    "gasolina": "Car",
    "combustivel": "Car",
    "cinema": "Entertainment",
    "filme": "Entertainment",
    "role": "Entertainment",
    "roupa": "Shopping",
    "sapato": "Shopping",
    "eletronico": "Shopping",
    "conta": "Bills",
    "aluguel": "Housing",
    "internet": "Services",
}


def suggest_category(
    description: str,
    keywords: Mapping[str, str] = DEFAULT_CATEGORY_KEYWORDS,
) -> str:
    """
    Suggest a category for an expense description.

    Returns the category of the first keyword (in table order) that
    occurs anywhere in the lowercased description, or "Other".
    """
    lowered = description.lower()
    for keyword, category in keywords.items():
        if keyword in lowered:
            return category
    return DEFAULT_CATEGORY


def keyword_lookup(keywords: Mapping[str, str]) -> CategoryLookup:
    """Bind a keyword table into a one-argument lookup."""
    table = dict(keywords)

    def lookup(description: str) -> str:
        return suggest_category(description, table)

    return lookup


def load_category_keywords(path: Union[str, Path]) -> dict[str, str]:
    """
    Load a keyword table from a JSON object file.

    Keys are lowercased; order is preserved as written in the file.

    Raises:
        ValueError: If the file is not a JSON object of strings
        OSError: If the file cannot be read
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Category map {path} must be a JSON object")

    table = {}
    for keyword, category in data.items():
        if not isinstance(category, str) or not category.strip():
            raise ValueError(f"Category for keyword {keyword!r} must be a non-empty string")
        table[keyword.strip().lower()] = category.strip()
    return table
