"""
Outbound Reply Texts

Every text the bot can send lives here so the state machine reads as a
transition table and the wording can be changed in one place.
"""

import random
from datetime import date
from decimal import Decimal

from expense_agent.models.expense import DEFAULT_CATEGORY
from expense_agent.parsing.parser import FORMAT_HINT
from expense_agent.reports.formatting import format_day, format_money


HELP = (
    "🤖 *Available commands:*\n\n"
    "💰 *Record an expense:*\n"
    f"   Use the format `{FORMAT_HINT}`\n"
    "   _Ex: gastei 25,50 no cinema_\n"
    "   _Ex: gastei 100 com supermercado_\n\n"
    "📊 *Reports:*\n"
    "   `/report` - All expenses by month/day, monthly totals and category ranking.\n"
    "   `/today` - Today's expenses with total.\n"
    "   `/week` - Expenses of the last 7 days with total.\n"
    "   `/total` - Total of every recorded expense.\n\n"
    "🗑️ *Management:*\n"
    "   `/clear` - Deletes ALL recorded expenses (asks for confirmation). "
    "Answer \"sim\" or \"não\".\n\n"
    "❓ `/help` - Shows this message."
)

NO_EXPENSES = "📂 No expenses found yet."
NO_EXPENSES_TODAY = "🗓️ No expenses recorded today."
NO_EXPENSES_PERIOD = "🗓️ No expenses recorded in the last {days} days."
NOTHING_TO_CLEAR = "📂 No expenses found to clear."

INVALID_FORMAT = f"❌ Invalid format to record an expense. Use: `{FORMAT_HINT}`."

INVALID_EXPENSE_ANSWER = (
    "🤔 Invalid answer. Please reply \"sim\" or \"não\" to confirm the expense."
)
INVALID_CATEGORY_ANSWER = (
    "🤔 Invalid answer. Please reply \"sim\" or \"não\" to confirm the category."
)
INVALID_CLEAR_ANSWER = (
    "🤔 Invalid answer. Please reply \"sim\" or \"não\" to confirm clearing."
)

EXPENSE_CANCELLED = "❌ Expense cancelled."
SAVE_FAILED = "⚠️ An error occurred while saving the expense. Please try again."

CATEGORY_KEPT = f"👍 Ok, the category was kept as \"{DEFAULT_CATEGORY}\"."
CATEGORY_NOT_FOUND = (
    "⚠️ Could not find the expense to classify. "
    "It may already have a category."
)
CATEGORY_SAVE_FAILED = "⚠️ An error occurred while saving the category. Please try again."
STATE_LOST = (
    "❌ Something went wrong with the pending confirmation. "
    "Please start again."
)

CLEAR_PROMPT = (
    "⚠️ *WARNING:* Are you sure you want to delete ALL recorded expenses?\n"
    "This cannot be undone.\n\n"
    "_(Reply \"sim\" to confirm or \"não\" to cancel)_"
)
CLEAR_DONE = "🧹 All expenses were deleted."
CLEAR_ALREADY_EMPTY = "📂 The expense ledger was already empty."
CLEAR_CANCELLED = "👍 Clearing was cancelled."
CLEAR_FAILED = "⚠️ An error occurred while deleting the data."

READ_FAILED = "⚠️ An error occurred while reading the expenses. Please try again."

SUCCESS_PHRASES = (
    "🎉 Nice! Expense recorded successfully! 📝",
    "✅ Got it, expense written down. 😉",
    "💰 Ok, {value} on {description} recorded. Books are up to date! 💪",
    "📝 Expense added! Mind your wallet! 😅",
    "💸 Recorded! Bring on the next one! 😂",
)


def expense_confirmation(
    value: Decimal,
    description: str,
    day: date,
    currency_symbol: str = "R$",
) -> str:
    return (
        "📌 *Expense confirmation:*\n\n"
        f"Description: *{description}*\n"
        f"Amount: 💸 {format_money(value, currency_symbol)}\n"
        f"Date: 📆 {format_day(day)}\n\n"
        "Is this correct?\n\n"
        "_(Reply \"sim\" or \"não\")_"
    )


def success_phrase(
    value: Decimal,
    description: str,
    currency_symbol: str = "R$",
) -> str:
    phrase = random.choice(SUCCESS_PHRASES)
    return phrase.format(
        value=format_money(value, currency_symbol),
        description=description,
    )


def category_prompt(
    value: Decimal,
    description: str,
    suggested_category: str,
    currency_symbol: str = "R$",
) -> str:
    return (
        success_phrase(value, description, currency_symbol)
        + f"\n\nClassify it as *{suggested_category}*? (Reply \"sim\" or \"não\")"
    )


def saved_without_category(
    value: Decimal,
    description: str,
    currency_symbol: str = "R$",
) -> str:
    return (
        f"✅ Expense of {format_money(value, currency_symbol)} on \"{description}\" was "
        "recorded, but asking for its category failed. "
        f"The category stays \"{DEFAULT_CATEGORY}\"."
    )


def category_updated(category: str) -> str:
    return f"✅ Expense now classified as *{category}*! 🎉"
