"""
In-Memory Storage

Used in tests, and as the fallback when the ledger file can't be opened.
Nothing survives a restart.
"""

from travel_ledger.models.audit import AuditEvent
from travel_ledger.models.ledger import Expense
from travel_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage backed by plain lists."""

    def __init__(self):
        self._members: list[str] = []
        self._expenses: list[Expense] = []

    async def load_members(self) -> list[str]:
        return list(self._members)

    async def add_member(self, name: str) -> bool:
        if name in self._members:
            raise DuplicateError(f"Member already exists: {name}")
        self._members.append(name)
        return True

    async def load_expenses(self) -> list[Expense]:
        return list(self._expenses)

    async def append_expense(self, expense: Expense) -> bool:
        self._expenses.append(expense)
        return True

    async def clear(self) -> None:
        self._members.clear()
        self._expenses.clear()


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit storage that keeps events in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
