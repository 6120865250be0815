"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The ledger lives in a plain text file; tests use the in-memory variant.
"""

from expense_agent.services.storage.interface import (
    AuditStorageInterface,
    ClearOutcome,
    LedgerIOError,
    LedgerStorageInterface,
    StorageError,
)
from expense_agent.services.storage.file_ledger import FileLedgerStorage
from expense_agent.services.storage.memory import InMemoryLedgerStorage
from expense_agent.services.storage.audit_file import JsonlAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    "ClearOutcome",
    # Exceptions
    "LedgerIOError",
    "StorageError",
    # Implementations
    "FileLedgerStorage",
    "InMemoryLedgerStorage",
    "JsonlAuditStorage",
]
