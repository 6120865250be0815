"""
Expense Statement Parser

Recognizes statements of the form

    <trigger> <amount> <connector> <description>
    gastei 25,50 no cinema
    gastei 100 com supermercado

The amount is an integer optionally followed by "," or "." and one or
two decimal digits.

IMPORTANT: The parser never guesses. A text that does not have this
exact shape is NOT an expense; the caller decides whether to complain.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from expense_agent.models.expense import ParsedExpense


DEFAULT_TRIGGER_WORDS = ("gastei",)
DEFAULT_CONNECTORS = ("na", "no", "com")

FORMAT_HINT = "gastei [amount] na/no/com [description]"


class ParseError(ValueError):
    """Text looked like an expense statement but could not be parsed."""
    pass


class ExpenseValidationError(ParseError):
    """Statement had the right shape but an invalid amount or description."""
    pass


def _alternation(words: Iterable[str]) -> str:
    escaped = [re.escape(word.strip()) for word in words if word.strip()]
    if not escaped:
        raise ValueError("At least one word is required")
    return "|".join(escaped)


class ExpenseParser:
    """
    Parses natural-language expense statements.

    Trigger words and connectors are configurable so the bot can be
    taught other phrasings without touching the regex.
    """

    def __init__(
        self,
        trigger_words: Iterable[str] = DEFAULT_TRIGGER_WORDS,
        connectors: Iterable[str] = DEFAULT_CONNECTORS,
    ):
        triggers = _alternation(trigger_words)
        joins = _alternation(connectors)
        self._pattern = re.compile(
            rf"^(?:{triggers})\s+([0-9]+(?:[.,][0-9]{{1,2}})?)\s+(?:{joins})\s+(.+)$",
            re.IGNORECASE,
        )
        self._attempt = re.compile(rf"^(?:{triggers})(?:\s|$)", re.IGNORECASE)

    def is_expense_attempt(self, text: str) -> bool:
        """Does the text start with a trigger word?"""
        return bool(self._attempt.match(text.strip()))

    def parse(self, text: str) -> Optional[ParsedExpense]:
        """
        Parse an expense statement.

        Returns:
            The parsed expense, or None when the text does not have the
            expected shape

        Raises:
            ExpenseValidationError: If the shape matches but the amount is
                not positive or the description is empty
        """
        match = self._pattern.match(text.strip())
        if match is None:
            return None

        raw_value, raw_description = match.groups()
        try:
            value = Decimal(raw_value.replace(",", "."))
        except InvalidOperation:
            raise ExpenseValidationError(f"Invalid amount: {raw_value}")

        if value <= 0:
            raise ExpenseValidationError("Amount must be greater than zero")

        description = raw_description.strip()
        if not description:
            raise ExpenseValidationError("Description cannot be empty")

        return ParsedExpense(value=value, description=description)

    def require(self, text: str) -> ParsedExpense:
        """
        Parse a text that is known to be an expense attempt.

        Raises:
            ParseError: If the text does not match the expected format
            ExpenseValidationError: If amount or description are invalid
        """
        parsed = self.parse(text)
        if parsed is None:
            raise ParseError(f"Expected format: {FORMAT_HINT}")
        return parsed
