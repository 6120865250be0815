"""
Shared fixtures for Expense Agent tests.

No real transport and no real clock: conversations run against a
recording fake transport, an in-memory ledger and a fixed instant.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncIterator, Callable, Optional, Union

import pytest

from expense_agent.conversation import ConversationStateMachine
from expense_agent.ledger import LedgerBook
from expense_agent.models.expense import ExpenseRecord
from expense_agent.services.storage import InMemoryLedgerStorage
from expense_agent.services.transport import (
    InboundMessage,
    TransportError,
    TransportInterface,
)


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeTransport(TransportInterface):
    """
    Records every reply.

    `inbound` feeds `receive()`; exception instances in it are raised
    when reached. `fail_when` makes `send_text` fail for matching texts.
    """

    def __init__(self, inbound: Optional[list[Union[InboundMessage, Exception]]] = None):
        self.inbound = list(inbound or [])
        self.sent: list[tuple[str, str]] = []
        self.fail_when: Optional[Callable[[str], bool]] = None
        self.connect_failures = 0
        self.connect_calls = 0
        self.closed = False

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_failures:
            self.connect_failures -= 1
            raise TransportError("network down")

    async def receive(self) -> AsyncIterator[InboundMessage]:
        while self.inbound:
            item = self.inbound.pop(0)
            if isinstance(item, Exception):
                raise item
            yield item

    async def send_text(self, conversation_id: str, text: str) -> None:
        if self.fail_when is not None and self.fail_when(text):
            raise TransportError("send failed")
        self.sent.append((conversation_id, text))

    async def close(self) -> None:
        self.closed = True

    @property
    def last(self) -> str:
        return self.sent[-1][1]

    def texts(self, conversation_id: Optional[str] = None) -> list[str]:
        return [
            text for cid, text in self.sent
            if conversation_id is None or cid == conversation_id
        ]


def make_record(
    timestamp: datetime,
    value: str,
    description: str,
    category: str = "Other",
    record_id: Optional[str] = None,
) -> ExpenseRecord:
    return ExpenseRecord(
        timestamp=timestamp,
        value=Decimal(value),
        description=description,
        category=category,
        record_id=record_id,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def machine(storage, transport, clock) -> ConversationStateMachine:
    return ConversationStateMachine(
        ledger=LedgerBook(storage),
        transport=transport,
        clock=clock,
        tz=timezone.utc,
    )


@pytest.fixture
def say(machine):
    """Send a text to the state machine as the given conversation."""

    async def _say(text: str, conversation_id: str = "chat-1") -> None:
        await machine.handle_message(
            InboundMessage(conversation_id=conversation_id, text=text)
        )

    return _say


@pytest.fixture
def record_factory():
    return make_record
