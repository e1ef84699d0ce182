"""
Data Models Package

This package contains all Pydantic models used in Travel Ledger.
All data flowing through the system must conform to these schemas.
"""

from travel_ledger.models.ledger import (
    Expense,
    ExpenseDraft,
    LedgerState,
    LedgerSummary,
    NetBalance,
    Settlement,
    SettlementPlan,
    ValidationIssue,
    ValidationResult,
)
from travel_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Expense",
    "ExpenseDraft",
    "LedgerState",
    "LedgerSummary",
    "NetBalance",
    "Settlement",
    "SettlementPlan",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
