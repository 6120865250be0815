"""Conversation state machine package."""

from expense_agent.conversation.state_machine import (
    COMMANDS,
    NO_ANSWERS,
    YES_ANSWERS,
    Answer,
    ConversationStateMachine,
    StateInconsistencyError,
    classify_answer,
)

__all__ = [
    "COMMANDS",
    "NO_ANSWERS",
    "YES_ANSWERS",
    "Answer",
    "ConversationStateMachine",
    "StateInconsistencyError",
    "classify_answer",
]
