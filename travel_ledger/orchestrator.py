"""
Main Orchestrator for Travel Ledger

This module ties together storage, validation, the settlement engine and
the audit log, and defines the user-facing flows:
1. Add member (name → validate → save)
2. Record expense (form → validate → Expense → save)
3. Summary (history → balances → settlement plan)
4. Delete history (wipe members and expenses together)

DESIGN DECISION: The service owns the LedgerState.
The engine is handed that state on every call and keeps nothing between
calls, so a summary always reflects exactly what is in the history.
"""

from typing import Optional
from uuid import UUID

import structlog

from travel_ledger.audit import AuditLogger, create_correlation_id
from travel_ledger.config import LedgerSettings, get_settings
from travel_ledger.engine import UnbalancedLedgerError, ledger_imbalance, summarize
from travel_ledger.models.ledger import (
    Expense,
    ExpenseDraft,
    LedgerState,
    LedgerSummary,
    ValidationResult,
)
from travel_ledger.services.storage import (
    DuplicateError,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    StorageError,
)
from travel_ledger.validation import ExpenseValidator


logger = structlog.get_logger(__name__)


class LedgerService:
    """
    Orchestrates every ledger operation the UI can trigger.

    Flow for a new expense:
    1. Validate the draft against the current members
    2. Build an immutable Expense
    3. Append it to storage, then to the in-memory history
    4. Audit the outcome

    Storage is written before the in-memory state changes, so a failed
    save never leaves the screen showing an expense that isn't stored.
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._storage = storage or InMemoryLedgerStorage()
        self._validator = validator or ExpenseValidator(self._settings)
        self._audit_logger = audit_logger
        self._state = LedgerState()

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    async def load(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerState:
        """
        Reload members and expenses from storage.

        Stored expenses that can't be parsed are skipped and audited.

        Raises:
            StorageError: If the ledger can't be read at all
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            members = await self._storage.load_members()
            expenses = await self._storage.load_expenses()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            for index, reason in self._storage.skipped_records:
                await self._audit_logger.log_record_skipped(
                    index=index,
                    reason=reason,
                    correlation_id=correlation_id,
                )

        self._state = LedgerState(members=members, expenses=expenses)
        return self._state

    async def add_member(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[bool, str]:
        """
        Register a new member.

        Returns:
            (added, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()
        name = (name or "").strip()

        result = self._validator.validate_member_name(name, self._state.members)
        if not result.is_valid:
            reason = result.first_error or "Invalid name"
            if self._audit_logger:
                await self._audit_logger.log_member_rejected(
                    name=name,
                    reason=reason,
                    correlation_id=correlation_id,
                )
            return False, f"⚠ {reason}"

        try:
            await self._storage.add_member(name)
        except DuplicateError:
            # Stored by another session since we last loaded
            if self._audit_logger:
                await self._audit_logger.log_member_rejected(
                    name=name,
                    reason="duplicate in storage",
                    correlation_id=correlation_id,
                )
            await self.load(correlation_id)
            return False, f"⚠ {name} is already a member"
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="add_member",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._state.members.append(name)

        if self._audit_logger:
            await self._audit_logger.log_member_added(
                name=name,
                correlation_id=correlation_id,
            )

        return True, f"✅ Added member: {name}"

    async def record_expense(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Expense], ValidationResult, str]:
        """
        Validate and save a new expense.

        Returns:
            (expense or None if rejected, validation_result, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(draft, self._state.members)
        message = self._validator.get_user_friendly_summary(result)

        if not result.is_valid:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ]
                await self._audit_logger.log_expense_rejected(
                    title=draft.title,
                    issues=issues,
                    correlation_id=correlation_id,
                )
            return None, result, message

        expense = self._validator.build_expense(draft)

        try:
            await self._storage.append_expense(expense)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="append_expense",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._state.expenses.append(expense)

        if self._audit_logger:
            await self._audit_logger.log_expense_recorded(
                expense_id=expense.id,
                title=expense.title,
                amount=expense.amount,
                payers=expense.payers,
                correlation_id=correlation_id,
            )

        if result.warnings:
            return expense, result, "✅ Expense added!\n" + message
        return expense, result, "✅ Expense added!"

    def compute_summary(self) -> LedgerSummary:
        """Run the settlement engine over the current state."""
        return summarize(
            self._state.expenses,
            self._state.members,
            epsilon=self._settings.balance_epsilon,
            transfer_floor=self._settings.transfer_floor,
            settle_tolerance=self._settings.settle_tolerance,
            strict=self._settings.strict_zero_sum,
        )

    async def get_summary(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSummary:
        """
        Compute balances and settlements, auditing anything suspicious.

        Raises:
            UnbalancedLedgerError: In strict mode, when balances don't
                sum to zero
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            summary = self.compute_summary()
        except UnbalancedLedgerError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="unbalanced_ledger",
                    error_message=str(e),
                    details={"imbalance": str(e.imbalance)},
                    correlation_id=correlation_id,
                )
            raise

        imbalance = ledger_imbalance(summary.balances)
        if self._audit_logger:
            if abs(imbalance) > self._settings.settle_tolerance:
                await self._audit_logger.log_ledger_imbalanced(
                    imbalance=imbalance,
                    residual=summary.plan.residual,
                    correlation_id=correlation_id,
                )
            await self._audit_logger.log_summary_computed(
                member_count=len(summary.balances),
                expense_count=summary.expense_count,
                transfer_count=len(summary.plan.transfers),
                correlation_id=correlation_id,
            )

        return summary

    async def delete_history(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """
        Delete all members and expenses.

        CRITICAL: The UI must get explicit confirmation before calling this.
        """
        correlation_id = correlation_id or create_correlation_id()
        member_count = len(self._state.members)
        expense_count = len(self._state.expenses)

        try:
            await self._storage.clear()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="clear",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._state.clear()

        if self._audit_logger:
            await self._audit_logger.log_history_cleared(
                member_count=member_count,
                expense_count=expense_count,
                correlation_id=correlation_id,
            )

        return "🗑️ All expense history deleted."


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerService, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to keep the ledger in the local JSON file.
                    Set to False for an in-memory ledger (tests, demos).

    Returns:
        (ledger_service, audit_logger)
    """
    settings = get_settings().ledger
    storage: LedgerStorageInterface

    if use_storage:
        try:
            storage = JsonFileLedgerStorage(settings.storage_path)
            audit_logger = AuditLogger(JsonLinesAuditStorage(settings.audit_log_path))
        except Exception as e:
            # Storage not usable - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            storage = InMemoryLedgerStorage()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger()  # Local-only logging

    service = LedgerService(
        storage=storage,
        audit_logger=audit_logger,
        settings=settings,
    )

    return service, audit_logger
