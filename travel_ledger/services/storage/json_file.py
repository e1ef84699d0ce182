"""
Local JSON File Storage

DESIGN DECISION: The ledger lives in a single JSON document on the user's
machine, the same way the browser version kept it in local storage:

    {"users": ["Asha", "Ben"], "expenses": [{...}, {...}]}

TRADEOFFS:
- The whole file is rewritten on every change (fine for a trip's worth of data)
- Writes go to a temp file first and replace the original, so a crash
  never leaves a half-written ledger behind
- No locking: one user, one process

Reading is tolerant. Records written by older versions, or edited by
hand, are parsed with defaults (see parse_expense_record) rather than
rejected, and only records that still make no sense are skipped.
"""

import json
import os
import tempfile
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from travel_ledger.config import get_settings
from travel_ledger.models.audit import AuditEvent
from travel_ledger.models.ledger import TEXT_MAX_LENGTH, Expense
from travel_ledger.services.storage.interface import (
    AuditStorageInterface,
    CorruptDataError,
    DuplicateError,
    LedgerStorageInterface,
    StorageError,
)


USERS_KEY = "users"
EXPENSES_KEY = "expenses"


# =============================================================================
# PARSE WITH DEFAULTS
# =============================================================================

def _to_decimal(value: Any) -> Optional[Decimal]:
    """Read a stored number; None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _to_amount_map(value: Any) -> dict[str, Decimal]:
    """Read a member -> amount mapping, dropping unreadable entries."""
    if not isinstance(value, dict):
        return {}
    amounts = {}
    for name, raw in value.items():
        amount = _to_decimal(raw)
        if amount is not None:
            amounts[str(name)] = amount
    return amounts


def _to_label(value: Any) -> str:
    """Read a free-text label, cut to the length an Expense accepts."""
    return str(value or "").strip()[:TEXT_MAX_LENGTH]


def _to_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_expense_record(record: Any) -> Expense:
    """
    Build an Expense from a stored record, filling in defaults.

    Handles:
    - missing paid_by / distribution (treated as empty)
    - the single-payer format, where paid_by is just a name and the
      whole amount was paid by that member
    - `date` in place of `timestamp`, and camelCase `paidBy`
    - non-numeric entries in either mapping (dropped)
    - over-long titles and locations (cut to fit; the amounts still count)

    Raises:
        ValueError: If the record has no readable amount or is not an
            object at all
    """
    if not isinstance(record, dict):
        raise ValueError("Expense record is not an object")

    amount = _to_decimal(record.get("amount"))
    if amount is None:
        raise ValueError("Expense record has no readable amount")

    raw_paid = record.get("paid_by", record.get("paidBy"))
    if isinstance(raw_paid, str):
        paid_by = {raw_paid: amount} if raw_paid else {}
    else:
        paid_by = _to_amount_map(raw_paid)

    fields: dict[str, Any] = {
        "title": _to_label(record.get("title")),
        "location": _to_label(record.get("location")),
        "amount": amount,
        "paid_by": paid_by,
        "distribution": _to_amount_map(record.get("distribution")),
    }

    timestamp = _to_timestamp(record.get("timestamp") or record.get("date"))
    if timestamp is not None:
        fields["timestamp"] = timestamp

    try:
        fields["id"] = UUID(str(record["id"]))
    except (KeyError, ValueError):
        pass

    try:
        return Expense(**fields)
    except ValidationError as e:
        raise ValueError(f"Expense record is invalid: {e.error_count()} errors") from e


def expense_to_record(expense: Expense) -> dict:
    """Serialize an Expense for the JSON document (amounts as strings)."""
    return expense.model_dump(mode="json")


# =============================================================================
# FILE ACCESS
# =============================================================================

@retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, max=1),
    reraise=True,
)
def _atomic_write(path: Path, text: str) -> None:
    """Write text to path via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    JSON file implementation of ledger storage.

    The file is read on every call, so changes made by another session
    (or by hand) are picked up the next time the ledger is loaded.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path or get_settings().ledger.storage_path)
        self._skipped: list[tuple[int, str]] = []

    @property
    def path(self) -> Path:
        return self._path

    @property
    def skipped_records(self) -> list[tuple[int, str]]:
        return list(self._skipped)

    def _read(self) -> dict:
        """Load the JSON document; a missing file is an empty ledger."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {USERS_KEY: [], EXPENSES_KEY: []}
        except OSError as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")

        if not text.strip():
            return {USERS_KEY: [], EXPENSES_KEY: []}

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Ledger file {self._path} is not valid JSON: {e}")

        if not isinstance(document, dict):
            raise CorruptDataError(f"Ledger file {self._path} does not hold an object")

        users = document.get(USERS_KEY)
        expenses = document.get(EXPENSES_KEY)
        document[USERS_KEY] = users if isinstance(users, list) else []
        document[EXPENSES_KEY] = expenses if isinstance(expenses, list) else []
        return document

    def _write(self, document: dict) -> None:
        try:
            _atomic_write(
                self._path,
                json.dumps(document, ensure_ascii=False, indent=2),
            )
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

    async def load_members(self) -> list[str]:
        """Load registered members."""
        document = self._read()
        names = [str(name) for name in document[USERS_KEY] if name]
        return list(dict.fromkeys(names))

    async def add_member(self, name: str) -> bool:
        """Register a member."""
        document = self._read()
        if name in document[USERS_KEY]:
            raise DuplicateError(f"Member already exists: {name}")
        document[USERS_KEY].append(name)
        self._write(document)
        return True

    async def load_expenses(self) -> list[Expense]:
        """Load the expense history, skipping records that can't be read."""
        document = self._read()

        expenses = []
        self._skipped = []
        for index, record in enumerate(document[EXPENSES_KEY]):
            try:
                expenses.append(parse_expense_record(record))
            except ValueError as e:
                self._skipped.append((index, str(e)))
        return expenses

    async def append_expense(self, expense: Expense) -> bool:
        """Append an expense to the history."""
        document = self._read()
        document[EXPENSES_KEY].append(expense_to_record(expense))
        self._write(document)
        return True

    async def clear(self) -> None:
        """Delete all members and expenses."""
        document = self._read()
        document[USERS_KEY] = []
        document[EXPENSES_KEY] = []
        self._write(document)


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    JSON-lines implementation of audit log storage.

    Audit events are append-only: one JSON object per line.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path or get_settings().ledger.audit_log_path)

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=1),
        reraise=True,
    )
    def _append_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_line(event.to_json_line())
            return True
        except OSError as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read audit events: {e}")

        events = []
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except ValidationError:
                continue  # Skip malformed lines

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
