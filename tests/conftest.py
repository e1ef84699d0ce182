"""Shared fixtures for Travel Ledger tests."""

from decimal import Decimal

import pytest

from travel_ledger.audit import AuditLogger
from travel_ledger.config import LedgerSettings, get_settings
from travel_ledger.models.ledger import Expense
from travel_ledger.orchestrator import LedgerService
from travel_ledger.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; make every test load them again."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ledger_settings(tmp_path) -> LedgerSettings:
    return LedgerSettings(
        storage_path=tmp_path / "ledger.json",
        audit_log_path=tmp_path / "audit.jsonl",
    )


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def service(ledger_settings, audit_storage) -> LedgerService:
    return LedgerService(
        storage=InMemoryLedgerStorage(),
        audit_logger=AuditLogger(audit_storage),
        settings=ledger_settings,
    )


def make_expense(amount, paid_by, distribution, title="Dinner") -> Expense:
    """Build an Expense from plain numbers."""
    return Expense(
        title=title,
        location="Goa",
        amount=Decimal(str(amount)),
        paid_by={k: Decimal(str(v)) for k, v in paid_by.items()},
        distribution={k: Decimal(str(v)) for k, v in distribution.items()},
    )
