"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a local JSON file as the backend, but designed to be
swappable.
"""

from travel_ledger.services.storage.interface import (
    AuditStorageInterface,
    CorruptDataError,
    DuplicateError,
    LedgerStorageInterface,
    StorageError,
)
from travel_ledger.services.storage.json_file import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    expense_to_record,
    parse_expense_record,
)
from travel_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "CorruptDataError",
    "DuplicateError",
    "StorageError",
    # JSON file implementation
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
    "expense_to_record",
    "parse_expense_record",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
]
