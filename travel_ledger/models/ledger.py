"""
Core Data Models for Travel Ledger

These models define the schemas for everything flowing between the
input layer, the storage layer and the settlement engine.

Money is always Decimal. The engine never rounds; two-decimal formatting
happens only at the presentation boundary.

DESIGN DECISION: Models describe shape, not business rules.
An Expense whose payer total does not match its amount is still a valid
Expense object, because persisted history may contain such records and
the engine must tolerate them. The sum checks live in ExpenseValidator,
which runs before a new Expense is ever created.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)


# Longest title or location an Expense accepts
TEXT_MAX_LENGTH = 200


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(BaseModel):
    """
    A single shared cost.

    Immutable once created: expenses are appended to the history and
    only ever removed together with the whole ledger.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    title: str = Field(
        default="",
        max_length=TEXT_MAX_LENGTH,
        description="What the money was spent on"
    )
    location: str = Field(
        default="",
        max_length=TEXT_MAX_LENGTH,
        description="Where the money was spent"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Total cost"
    )

    # member -> amount actually paid; one entry for a single payer
    paid_by: dict[str, Decimal] = Field(default_factory=dict)

    # member -> amount the member is responsible for
    distribution: dict[str, Decimal] = Field(default_factory=dict)

    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the expense was recorded (informational)"
    )

    @property
    def payers(self) -> list[str]:
        """Members who paid something towards this expense."""
        return [name for name, value in self.paid_by.items() if value]


class ExpenseDraft(BaseModel):
    """
    Raw expense form input, before validation.

    Values are kept exactly as entered (strings or numbers) so the
    validator can report which field could not be read.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = ""
    location: str = ""
    amount: Optional[Union[Decimal, str]] = None
    paid_by: dict[str, Optional[Union[Decimal, str]]] = Field(default_factory=dict)
    distribution: dict[str, Optional[Union[Decimal, str]]] = Field(default_factory=dict)


# =============================================================================
# DERIVED RESULTS
# =============================================================================

class NetBalance(BaseModel):
    """
    Paid/owed totals for one member across the whole history.

    Positive balance: the member should receive money.
    Negative balance: the member owes money.
    """

    member: str
    paid: Decimal = Decimal("0")
    owed: Decimal = Decimal("0")

    @computed_field
    @property
    def balance(self) -> Decimal:
        return self.paid - self.owed


class Settlement(BaseModel):
    """A single debtor -> creditor transfer instruction."""

    from_member: str
    to_member: str
    amount: Decimal = Field(..., gt=0)


class SettlementPlan(BaseModel):
    """
    Result of running the settlement solver.

    When no transfer is needed the plan is the "fully settled" sentinel:
    no transfers and fully_settled=True. Callers render both states
    through this one type.
    """

    transfers: list[Settlement] = Field(default_factory=list)
    fully_settled: bool = False
    residual: Decimal = Field(
        default=Decimal("0"),
        description="Imbalance left unmatched when balances do not sum to zero"
    )

    @classmethod
    def settled(cls, residual: Decimal = Decimal("0")) -> "SettlementPlan":
        """The fully-settled sentinel."""
        return cls(transfers=[], fully_settled=True, residual=residual)

    @property
    def total_transferred(self) -> Decimal:
        return sum((t.amount for t in self.transfers), Decimal("0"))


class LedgerSummary(BaseModel):
    """Everything the summary view shows, computed in one pass."""

    total_expense: Decimal = Decimal("0")
    expense_count: int = Field(default=0, ge=0)
    balances: list[NetBalance] = Field(default_factory=list)
    plan: SettlementPlan = Field(default_factory=SettlementPlan.settled)

    @property
    def has_expenses(self) -> bool:
        return self.expense_count > 0


# =============================================================================
# APPLICATION STATE
# =============================================================================

class LedgerState(BaseModel):
    """
    The members and expense history of one ledger.

    Owned by the application layer and handed to the engine on every
    call. Members keep their registration order.
    """

    members: list[str] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    @field_validator('members')
    @classmethod
    def members_unique(cls, v: list[str]) -> list[str]:
        """Drop repeated names, keeping the first occurrence."""
        return list(dict.fromkeys(v))

    def has_member(self, name: str) -> bool:
        return name in self.members

    def clear(self) -> None:
        self.members.clear()
        self.expenses.clear()


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_number', 'sum_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a member name or an expense draft.

    Stage 1: Schema validation (required fields, readable numbers)
    Stage 2: Semantic validation (sums, known members)
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[str]:
        """Message of the first error, for one-line notifications."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None
