"""
Abstract Messaging Transport

DESIGN DECISION: The bot never talks to a chat protocol directly.
Connecting, authenticating and moving bytes belong to a transport;
the conversation logic only sees `InboundMessage`s and calls `send_text`.

This allows us to:
1. Run the bot from a terminal during development
2. Plug in a real chat network without touching the state machine
3. Use a recording fake in tests
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from pydantic import BaseModel, ConfigDict, Field


class InboundMessage(BaseModel):
    """One text message received from a conversation."""
    model_config = ConfigDict(frozen=True)

    conversation_id: str = Field(
        ...,
        min_length=1,
        description="Opaque id of the chat/thread"
    )
    text: str = Field(
        default="",
        description="Message body"
    )
    is_outgoing_echo: bool = Field(
        default=False,
        description="True for our own messages echoed back by the network"
    )


class TransportInterface(ABC):
    """
    Abstract interface for a chat transport.

    `receive()` yields messages until the stream ends. It raises
    `TransportDisconnected` when the connection drops and can be
    re-established, or `LoggedOutError` when it cannot.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection.

        Raises:
            TransportError: If the connection cannot be established
        """
        pass

    @abstractmethod
    def receive(self) -> AsyncIterator[InboundMessage]:
        """Async iterator over inbound messages."""
        pass

    @abstractmethod
    async def send_text(self, conversation_id: str, text: str) -> None:
        """
        Deliver a text reply.

        Raises:
            TransportError: If the message could not be sent
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class TransportError(Exception):
    """Base exception for transport operations."""
    pass


class TransportDisconnected(TransportError):
    """Connection dropped; sessions must be reset before reconnecting."""
    pass


class LoggedOutError(TransportError):
    """The account was logged out; reconnecting is pointless."""
    pass
