"""
JSON-Lines Audit Storage

One audit event per line, appended and never rewritten.
File access runs in a worker thread so the event loop never blocks on disk.
"""

import asyncio
import json
from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from expense_agent.models.audit import AuditEvent
from expense_agent.services.storage.interface import (
    AuditStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonlAuditStorage(AuditStorageInterface):
    """Audit trail kept in a local `.jsonl` file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    async def append_event(self, event: AuditEvent) -> bool:
        await asyncio.to_thread(self._append_line, event.model_dump_json() + "\n")
        return True

    def _append_line(self, line: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        except OSError as e:
            raise StorageError(f"Could not write audit log {self._path}: {e}") from e

    async def get_events_by_conversation(
        self,
        conversation_id: str,
    ) -> list[AuditEvent]:
        events = await asyncio.to_thread(self._read_events)
        return [event for event in events if event.conversation_id == conversation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = await asyncio.to_thread(self._read_events)
        events.reverse()
        return events[:limit]

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise StorageError(f"Could not read audit log {self._path}: {e}") from e

        events = []
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except (ValidationError, json.JSONDecodeError):
                logger.warning("audit_line_skipped", path=str(self._path))
        return events
