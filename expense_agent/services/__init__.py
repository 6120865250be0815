"""Services package."""

from expense_agent.services.storage import (
    AuditStorageInterface,
    ClearOutcome,
    FileLedgerStorage,
    InMemoryLedgerStorage,
    JsonlAuditStorage,
    LedgerIOError,
    LedgerStorageInterface,
    StorageError,
)
from expense_agent.services.transport import (
    ConsoleTransport,
    InboundMessage,
    LoggedOutError,
    TransportDisconnected,
    TransportError,
    TransportInterface,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ClearOutcome",
    "FileLedgerStorage",
    "InMemoryLedgerStorage",
    "JsonlAuditStorage",
    "LedgerIOError",
    "LedgerStorageInterface",
    "StorageError",
    # Transport services
    "ConsoleTransport",
    "InboundMessage",
    "LoggedOutError",
    "TransportDisconnected",
    "TransportError",
    "TransportInterface",
]
