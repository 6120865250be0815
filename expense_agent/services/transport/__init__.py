"""Messaging transport package."""

from expense_agent.services.transport.interface import (
    InboundMessage,
    LoggedOutError,
    TransportDisconnected,
    TransportError,
    TransportInterface,
)
from expense_agent.services.transport.console import ConsoleTransport

__all__ = [
    "ConsoleTransport",
    "InboundMessage",
    "LoggedOutError",
    "TransportDisconnected",
    "TransportError",
    "TransportInterface",
]
