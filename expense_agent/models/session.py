"""
Conversation Session Models

A session is the state machine's record of an unresolved confirmation
for one conversation. "Idle" is represented by the absence of a session.

DESIGN DECISION: Sessions are a discriminated union on `kind`.
The pending commit lives inside the category-confirmation state, so a
category confirmation can never exist without the record it refers to.
"""

from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from expense_agent.models.expense import PendingCommit


class AwaitingExpenseConfirmation(BaseModel):
    """User was shown a parsed expense and must answer sim/não."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["expense_confirm"] = "expense_confirm"
    value: Decimal
    description: str
    suggested_category: str


class AwaitingCategoryConfirmation(BaseModel):
    """Expense is saved as "Other"; user must accept or refuse the suggestion."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["category_confirm"] = "category_confirm"
    commit: PendingCommit


class AwaitingClearConfirmation(BaseModel):
    """User asked to wipe the ledger and must confirm."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["clear_confirm"] = "clear_confirm"


SessionState = Annotated[
    Union[
        AwaitingExpenseConfirmation,
        AwaitingCategoryConfirmation,
        AwaitingClearConfirmation,
    ],
    Field(discriminator="kind"),
]
