"""
Plain-Text Ledger Storage

DESIGN DECISION: The ledger is a UTF-8 text file with one record per line:

    timestamp;value;description;category[;record_id]

1. Users can open and read it with any editor
2. Appends are a single write of a single line
3. No database setup required

TRADEOFFS:
- Every read parses the whole file (fine for a personal ledger)
- Category corrections rewrite the whole file
- No transactions; a rewrite is written to a temporary file and moved
  into place so readers see either the old or the new file

Text fields are backslash-escaped so a description containing ";"
or a line break cannot split a record.
"""

import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog

from expense_agent.models.expense import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    ExpenseRecord,
)
from expense_agent.services.storage.interface import (
    ClearOutcome,
    LedgerIOError,
    LedgerStorageInterface,
)


logger = structlog.get_logger(__name__)

FIELD_DELIMITER = ";"

_ESCAPES = {
    "\\": "\\\\",
    FIELD_DELIMITER: "\\" + FIELD_DELIMITER,
    "\n": "\\n",
    "\r": "\\r",
}
_UNESCAPES = {
    "\\": "\\",
    FIELD_DELIMITER: FIELD_DELIMITER,
    "n": "\n",
    "r": "\r",
}


# =============================================================================
# LINE FORMAT
# =============================================================================

def escape_field(text: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def split_fields(line: str) -> list[str]:
    """
    Split a ledger line on unescaped delimiters and unescape each field.

    Unknown escape sequences are kept verbatim so that lines written
    before escaping existed read back unchanged.
    """
    fields = []
    current = []
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, None)
            if nxt is None:
                current.append(ch)
            elif nxt in _UNESCAPES:
                current.append(_UNESCAPES[nxt])
            else:
                current.append(ch + nxt)
        elif ch == FIELD_DELIMITER:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    text = ts.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    raw = raw.strip()
    if raw[-1:] in ("Z", "z"):
        raw = raw[:-1] + "+00:00"
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def serialize_record(record: ExpenseRecord) -> str:
    """Render one record as a ledger line (without the newline)."""
    fields = [
        format_timestamp(record.timestamp),
        f"{record.value:.2f}",
        escape_field(record.description),
        escape_field(record.category),
    ]
    if record.record_id:
        fields.append(escape_field(record.record_id))
    return FIELD_DELIMITER.join(fields)


def parse_record(line: str) -> Optional[ExpenseRecord]:
    """
    Parse one ledger line.

    Returns None for anything that is not a valid record: fewer than
    three fields, a bad timestamp, or a value that is not a positive
    finite number.
    """
    fields = split_fields(line)
    if len(fields) < 3:
        return None

    raw_timestamp, raw_value, description = fields[:3]
    category = fields[3] if len(fields) > 3 else ""
    record_id = fields[4] if len(fields) > 4 and fields[4] else None

    try:
        timestamp = parse_timestamp(raw_timestamp)
        value = Decimal(raw_value.strip())
    except (ValueError, InvalidOperation):
        return None

    if not value.is_finite() or value <= 0:
        return None

    try:
        return ExpenseRecord(
            timestamp=timestamp,
            value=value,
            description=description or DEFAULT_DESCRIPTION,
            category=category or DEFAULT_CATEGORY,
            record_id=record_id,
        )
    except ValueError:
        return None


# =============================================================================
# STORAGE
# =============================================================================

class FileLedgerStorage(LedgerStorageInterface):
    """
    Text-file implementation of the ledger.

    The file is created on the first append and deleted by `clear()`.
    An absent file is an empty ledger.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read_all(self) -> list[ExpenseRecord]:
        try:
            if not self._path.exists():
                return []
            content = self._path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise LedgerIOError(f"Could not read ledger {self._path}: {e}") from e

        records = []
        for line_number, line in enumerate(content.split("\n"), start=1):
            line = line.rstrip("\r")
            if not line.strip():
                continue
            record = parse_record(line)
            if record is None:
                logger.debug(
                    "ledger_line_skipped",
                    path=str(self._path),
                    line_number=line_number,
                )
                continue
            records.append(record)
        return records

    def append(self, record: ExpenseRecord) -> None:
        line = serialize_record(record) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._needs_leading_newline():
                line = "\n" + line
            with self._path.open("a", encoding="utf-8", newline="") as fh:
                fh.write(line)
        except OSError as e:
            raise LedgerIOError(f"Could not append to ledger {self._path}: {e}") from e

        logger.debug("ledger_appended", path=str(self._path), record_id=record.record_id)

    def rewrite_all(self, records: Iterable[ExpenseRecord]) -> None:
        content = "".join(serialize_record(record) + "\n" for record in records)
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                newline="",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise LedgerIOError(f"Could not rewrite ledger {self._path}: {e}") from e

        logger.debug("ledger_rewritten", path=str(self._path))

    def clear(self) -> ClearOutcome:
        try:
            if not self._path.exists():
                return ClearOutcome.ALREADY_EMPTY
            content = self._path.read_text(encoding="utf-8", errors="replace")
            self._path.unlink()
        except OSError as e:
            raise LedgerIOError(f"Could not clear ledger {self._path}: {e}") from e

        if not content.strip():
            return ClearOutcome.ALREADY_EMPTY
        logger.info("ledger_cleared", path=str(self._path))
        return ClearOutcome.REMOVED

    def _needs_leading_newline(self) -> bool:
        """True when the file exists, is non-empty and its last byte is not a newline."""
        if not self._path.exists() or self._path.stat().st_size == 0:
            return False
        with self._path.open("rb") as fh:
            fh.seek(-1, os.SEEK_END)
            return fh.read(1) != b"\n"
