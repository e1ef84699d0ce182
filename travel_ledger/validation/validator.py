"""
Two-Stage Input Validation

Everything a user types goes through here before it becomes a member or an
Expense. The settlement engine itself never validates; it relies on this
layer to keep payer and share totals equal to the expense amount.

STAGE 1 - SCHEMA VALIDATION:
- Required fields present (title, location, amount, a payer)
- Title and location within the configured length
- Every amount is a readable, non-negative number

STAGE 2 - SEMANTIC VALIDATION:
- Payers and debtors are registered members
- Payer total matches the expense amount
- Share total matches the expense amount

Stage 2 only runs if stage 1 passes: sums over unreadable numbers
would only produce confusing follow-up errors.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the form.
"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from travel_ledger.config import LedgerSettings, get_settings
from travel_ledger.models.ledger import (
    Expense,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
)


RawAmount = Optional[Union[Decimal, str, int, float]]

ZERO = Decimal("0")


class InvalidAmountError(ValueError):
    """A value entered as an amount could not be read as a number."""
    pass


def parse_amount(raw: RawAmount) -> Optional[Decimal]:
    """
    Read a user-entered amount.

    Returns None for blank input. Raises InvalidAmountError for anything
    that isn't a finite number.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise InvalidAmountError(f"Not a number: {raw!r}")
    if not value.is_finite():
        raise InvalidAmountError(f"Not a number: {raw!r}")
    return value


class ExpenseValidator:
    """
    Validates member registrations and expense drafts.

    Stage 1: Schema validation
    Stage 2: Semantic validation (needs the current member list)
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    @property
    def tolerance(self) -> Decimal:
        return self._settings.amount_tolerance

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def validate_member_name(
        self,
        name: str,
        existing: Iterable[str],
    ) -> ValidationResult:
        """Check a new member name is non-empty and not taken."""
        issues = []
        name = (name or "").strip()

        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Enter a member name",
                severity="error",
            ))
        elif len(name) > self._settings.max_member_name_length:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=(
                    f"Member names can be at most "
                    f"{self._settings.max_member_name_length} characters"
                ),
                severity="error",
            ))
        elif name in set(existing):
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"{name} is already a member",
                severity="error",
                suggested_fix="Enter a unique member name",
            ))

        is_valid = not issues
        return ValidationResult(
            schema_valid=is_valid,
            semantic_valid=is_valid,
            is_valid=is_valid,
            issues=issues,
        )

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def _read_amounts(
        self,
        group: str,
        raw_values: dict[str, RawAmount],
        blank_is_error: bool,
        issues: list[ValidationIssue],
    ) -> dict[str, Decimal]:
        """Parse one member -> amount mapping, collecting issues as we go."""
        values = {}
        for name, raw in raw_values.items():
            field = f"{group}.{name}"
            try:
                value = parse_amount(raw)
            except InvalidAmountError:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_number",
                    message=f"Amount for {name} is not a number",
                    severity="error",
                ))
                continue

            if value is None:
                if blank_is_error:
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="missing",
                        message=f"Enter the amount owed by {name}",
                        severity="error",
                        suggested_fix="Enter 0 if they don't owe anything",
                    ))
                continue

            if value < 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=f"Amount for {name} can't be negative",
                    severity="error",
                ))
                continue

            values[name] = value
        return values

    def _validate_schema(
        self,
        draft: ExpenseDraft,
        members: list[str],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not members:
            issues.append(ValidationIssue(
                field="members",
                issue_type="missing",
                message="Add members before recording an expense",
                severity="error",
            ))

        limit = self._settings.max_text_length
        for field, label, value in [
            ("title", "Title", draft.title),
            ("location", "Location", draft.location),
        ]:
            if not value:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{label} is required",
                    severity="error",
                ))
            elif len(value) > limit:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="too_long",
                    message=f"{label} can be at most {limit} characters",
                    severity="error",
                    suggested_fix=f"Shorten the {field}",
                ))

        try:
            amount = parse_amount(draft.amount)
        except InvalidAmountError:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_number",
                message="Amount is not a number",
                severity="error",
            ))
        else:
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ))
            elif amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ))

        # Blank payer entries just mean "didn't pay"
        paid = self._read_amounts("paid_by", draft.paid_by, False, issues)
        if not any(value > 0 for value in paid.values()):
            issues.append(ValidationIssue(
                field="paid_by",
                issue_type="missing",
                message="Choose who paid",
                severity="error",
            ))

        self._read_amounts("distribution", draft.distribution, True, issues)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: ExpenseDraft,
        members: list[str],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Assumes stage 1 passed, so every value parses.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        registered = set(members)
        amount = parse_amount(draft.amount)
        paid = {
            name: value
            for name, value in self._parsed(draft.paid_by).items()
            if value > 0
        }
        owed = self._parsed(draft.distribution)

        for name in paid:
            if name not in registered:
                issues.append(ValidationIssue(
                    field=f"paid_by.{name}",
                    issue_type="unknown_member",
                    message=f"{name} is not a member",
                    severity="error",
                    suggested_fix="Add them as a member first",
                ))

        for name, value in owed.items():
            if value and name not in registered:
                issues.append(ValidationIssue(
                    field=f"distribution.{name}",
                    issue_type="unknown_member",
                    message=f"{name} is not a member",
                    severity="error",
                    suggested_fix="Add them as a member first",
                ))

        total_paid = sum(paid.values(), ZERO)
        if abs(total_paid - amount) > self.tolerance:
            issues.append(ValidationIssue(
                field="paid_by",
                issue_type="sum_mismatch",
                message=f"Total paid ({total_paid:.2f}) ≠ Total amount ({amount:.2f})",
                severity="error",
                suggested_fix="Make the amounts paid add up to the total",
            ))

        total_owed = sum(owed.values(), ZERO)
        if abs(total_owed - amount) > self.tolerance:
            issues.append(ValidationIssue(
                field="distribution",
                issue_type="sum_mismatch",
                message=f"Total owed ({total_owed:.2f}) ≠ Total amount ({amount:.2f})",
                severity="error",
                suggested_fix="Make the amounts owed add up to the total",
            ))

        debtors = [name for name, value in owed.items() if value]
        if len(paid) == 1 and debtors == list(paid):
            issues.append(ValidationIssue(
                field="distribution",
                issue_type="no_effect",
                message=f"Only {debtors[0]} is involved, so no balance changes",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _parsed(self, raw_values: dict[str, RawAmount]) -> dict[str, Decimal]:
        """Parse a mapping already known to be valid; blanks become zero."""
        return {
            name: parse_amount(raw) or ZERO
            for name, raw in raw_values.items()
        }

    def validate(
        self,
        draft: ExpenseDraft,
        members: Iterable[str],
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The expense form input
            members: Currently registered members

        Returns:
            ValidationResult with all issues found
        """
        members = list(members)
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft, members)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft, members)
            all_issues.extend(semantic_issues)

        warnings = [
            issue.message for issue in all_issues if issue.severity == "warning"
        ]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def build_expense(self, draft: ExpenseDraft) -> Expense:
        """
        Turn a validated draft into an Expense.

        Payers who paid nothing are left out. Call validate() first;
        an unreadable draft raises InvalidAmountError.
        """
        amount = parse_amount(draft.amount)
        if amount is None:
            raise InvalidAmountError("Amount is required")

        return Expense(
            title=draft.title,
            location=draft.location,
            amount=amount,
            paid_by={
                name: value
                for name, value in self._parsed(draft.paid_by).items()
                if value > 0
            },
            distribution=self._parsed(draft.distribution),
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Render validation results as short messages for the form."""
        if result.is_valid and not result.warnings:
            return "✅ Expense looks good."

        lines = []

        if result.has_errors:
            lines.append("⚠ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("ℹ️ Note:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
