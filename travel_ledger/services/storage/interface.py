"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger in a local JSON file today
2. Use in-memory storage for testing
3. Swap in a database later without touching the service layer

The interface mirrors what the ledger actually needs: an append-only
expense history, a member list, and a way to wipe both together.
There is deliberately no update or delete for single expenses.
"""

from abc import ABC, abstractmethod

from travel_ledger.models.audit import AuditEvent
from travel_ledger.models.ledger import Expense


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (JSON file, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def load_members(self) -> list[str]:
        """
        Load registered members.

        Returns:
            Member names in registration order
        """
        pass

    @abstractmethod
    async def add_member(self, name: str) -> bool:
        """
        Register a member.

        Args:
            name: The new member's name

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If the name is already registered
            StorageError: If the save fails
        """
        pass

    @abstractmethod
    async def load_expenses(self) -> list[Expense]:
        """
        Load the expense history.

        Records that cannot be read are skipped; see skipped_records.

        Returns:
            Expenses in the order they were recorded
        """
        pass

    @abstractmethod
    async def append_expense(self, expense: Expense) -> bool:
        """
        Append an expense to the history.

        Args:
            expense: The expense to save

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the save fails
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """
        Delete all members and expenses.

        Raises:
            StorageError: If the wipe fails
        """
        pass

    @property
    def skipped_records(self) -> list[tuple[int, str]]:
        """(index, reason) for records skipped by the last load_expenses()."""
        return []


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class CorruptDataError(StorageError):
    """Stored data exists but cannot be read."""
    pass
