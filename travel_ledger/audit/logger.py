"""
Audit Logger

DESIGN DECISION: Every user action on the ledger is logged.
This provides:
1. A record of every expense entered, even after a history wipe
2. Debugging capability when balances look wrong
3. A trace of rejected input

The audit logger:
- Is async, matching the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from travel_ledger.config import AppSettings, get_settings
from travel_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from travel_ledger.services.storage import AuditStorageInterface


def configure_logging(app_settings: Optional[AppSettings] = None) -> None:
    """Configure structlog for local logging."""
    app_settings = app_settings or get_settings().app

    logging.basicConfig(format="%(message)s", level=app_settings.log_level)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if app_settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("travel_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_member_added(
        self,
        name: str,
        correlation_id: UUID,
    ) -> None:
        """Log member registration."""
        await self.log(AuditEventBuilder.member_added(
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_member_rejected(
        self,
        name: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a rejected member registration."""
        await self.log(AuditEventBuilder.member_rejected(
            name=name,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_expense_recorded(
        self,
        expense_id: UUID,
        title: str,
        amount: Decimal,
        payers: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a saved expense."""
        await self.log(AuditEventBuilder.expense_recorded(
            expense_id=expense_id,
            title=title,
            amount=str(amount),
            payers=payers,
            correlation_id=correlation_id,
        ))

    async def log_expense_rejected(
        self,
        title: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log validation failure of an expense draft."""
        await self.log(AuditEventBuilder.expense_rejected(
            title=title,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_summary_computed(
        self,
        member_count: int,
        expense_count: int,
        transfer_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.summary_computed(
            member_count=member_count,
            expense_count=expense_count,
            transfer_count=transfer_count,
            correlation_id=correlation_id,
        ))

    async def log_ledger_imbalanced(
        self,
        imbalance: Decimal,
        residual: Decimal,
        correlation_id: UUID,
    ) -> None:
        """Log balances that don't sum to zero."""
        await self.log(AuditEventBuilder.ledger_imbalanced(
            imbalance=str(imbalance),
            residual=str(residual),
            correlation_id=correlation_id,
        ))

    async def log_history_cleared(
        self,
        member_count: int,
        expense_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.history_cleared(
            member_count=member_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_record_skipped(
        self,
        index: int,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a stored expense that could not be parsed."""
        await self.log(AuditEventBuilder.record_skipped(
            index=index,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., submitting an
    expense). Pass it through all subsequent operations.
    """
    return uuid4()
