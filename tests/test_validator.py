"""Tests for member and expense input validation."""

from decimal import Decimal

import pytest

from travel_ledger.models.ledger import ExpenseDraft
from travel_ledger.validation import ExpenseValidator, InvalidAmountError, parse_amount


MEMBERS = ["Asha", "Ben", "Cara"]


@pytest.fixture
def validator(ledger_settings):
    return ExpenseValidator(ledger_settings)


def draft(**overrides):
    fields = {
        "title": "Dinner",
        "location": "Goa",
        "amount": "30",
        "paid_by": {"Asha": "30"},
        "distribution": {"Asha": "10", "Ben": "10", "Cara": "10"},
    }
    fields.update(overrides)
    return ExpenseDraft(**fields)


def issue_types(result):
    return [(issue.field, issue.issue_type) for issue in result.issues]


class TestParseAmount:
    """Tests for parse_amount()."""

    def test_reads_numbers(self):
        assert parse_amount(" 12.50 ") == Decimal("12.50")
        assert parse_amount(Decimal("3")) == Decimal("3")

    def test_blank_is_none(self):
        assert parse_amount(None) is None
        assert parse_amount("   ") is None

    @pytest.mark.parametrize("raw", ["abc", "12,50", "NaN", "Infinity"])
    def test_rejects_non_numbers(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw)


class TestMemberValidation:
    """Tests for validate_member_name()."""

    def test_valid_name(self, validator):
        """Test a fresh name passes."""
        result = validator.validate_member_name("Dev", MEMBERS)
        assert result.is_valid is True

    def test_blank_name(self, validator):
        """Test whitespace-only names are rejected."""
        result = validator.validate_member_name("   ", MEMBERS)
        assert result.first_error == "Enter a member name"

    def test_duplicate_name(self, validator):
        """Test an existing name is rejected."""
        result = validator.validate_member_name(" Asha ", MEMBERS)
        assert issue_types(result) == [("name", "duplicate")]

    def test_names_are_case_sensitive(self, validator):
        """Test names are opaque strings."""
        result = validator.validate_member_name("asha", MEMBERS)
        assert result.is_valid is True

    def test_too_long(self, validator):
        """Test the configured length limit."""
        result = validator.validate_member_name("x" * 101, MEMBERS)
        assert issue_types(result) == [("name", "too_long")]


class TestExpenseSchemaValidation:
    """Stage 1: required fields and readable numbers."""

    def test_valid_expense(self, validator):
        """Test a complete, balanced draft passes."""
        result = validator.validate(draft(), MEMBERS)
        assert result.is_valid is True
        assert result.issues == []

    def test_missing_title_and_location(self, validator):
        """Test required text fields."""
        result = validator.validate(draft(title=" ", location=""), MEMBERS)
        assert ("title", "missing") in issue_types(result)
        assert ("location", "missing") in issue_types(result)
        assert result.semantic_valid is False

    def test_title_too_long(self, validator):
        """Test over-long labels are reported instead of failing later."""
        result = validator.validate(draft(title="x" * 201), MEMBERS)
        assert issue_types(result) == [("title", "too_long")]
        assert result.first_error == "Title can be at most 200 characters"

    def test_location_at_limit(self, validator):
        result = validator.validate(draft(location="y" * 200), MEMBERS)
        assert result.is_valid is True

    def test_amount_not_a_number(self, validator):
        """Test unreadable amount is reported, not coerced."""
        result = validator.validate(draft(amount="thirty"), MEMBERS)
        assert ("amount", "invalid_number") in issue_types(result)

    def test_amount_must_be_positive(self, validator):
        """Test a zero amount is rejected."""
        result = validator.validate(draft(amount="0"), MEMBERS)
        assert ("amount", "invalid_value") in issue_types(result)

    def test_no_payer(self, validator):
        """Test at least one member must have paid."""
        result = validator.validate(draft(paid_by={"Asha": "", "Ben": "0"}), MEMBERS)
        assert result.first_error == "Choose who paid"

    def test_blank_share_is_an_error(self, validator):
        """Test every listed member needs an owed amount."""
        result = validator.validate(
            draft(distribution={"Asha": "15", "Ben": "15", "Cara": None}),
            MEMBERS,
        )
        assert result.first_error == "Enter the amount owed by Cara"

    def test_negative_share(self, validator):
        """Test negative amounts are rejected."""
        result = validator.validate(
            draft(distribution={"Asha": "40", "Ben": "-10"}),
            MEMBERS,
        )
        assert ("distribution.Ben", "invalid_value") in issue_types(result)

    def test_no_members(self, validator):
        """Test expenses need registered members."""
        result = validator.validate(draft(), [])
        assert ("members", "missing") in issue_types(result)


class TestExpenseSemanticValidation:
    """Stage 2: sums and known members."""

    def test_paid_total_mismatch(self, validator):
        """Test payer total must equal the amount."""
        result = validator.validate(draft(paid_by={"Asha": "20"}), MEMBERS)
        assert result.first_error == "Total paid (20.00) ≠ Total amount (30.00)"

    def test_owed_total_mismatch(self, validator):
        """Test share total must equal the amount."""
        result = validator.validate(
            draft(distribution={"Asha": "10", "Ben": "10", "Cara": "5"}),
            MEMBERS,
        )
        assert result.first_error == "Total owed (25.00) ≠ Total amount (30.00)"

    def test_sum_within_tolerance(self, validator):
        """Test a one-cent rounding gap is accepted."""
        result = validator.validate(
            draft(
                amount="100",
                paid_by={"Asha": "100"},
                distribution={"Asha": "33.33", "Ben": "33.33", "Cara": "33.33"},
            ),
            MEMBERS,
        )
        assert result.is_valid is True

    def test_unknown_payer(self, validator):
        """Test payers must be registered."""
        result = validator.validate(draft(paid_by={"Zed": "30"}), MEMBERS)
        assert ("paid_by.Zed", "unknown_member") in issue_types(result)

    def test_payer_only_debtor_warns(self, validator):
        """Test a self-paid expense is allowed but flagged."""
        result = validator.validate(
            draft(distribution={"Asha": "30", "Ben": "0", "Cara": "0"}),
            MEMBERS,
        )
        assert result.is_valid is True
        assert result.warnings == ["Only Asha is involved, so no balance changes"]


class TestBuildExpense:
    """Tests for build_expense() and the user summary."""

    def test_build_drops_zero_payers(self, validator):
        """Test payers who paid nothing are left out."""
        expense = validator.build_expense(
            draft(paid_by={"Asha": "30", "Ben": "0", "Cara": ""})
        )
        assert expense.paid_by == {"Asha": Decimal("30")}
        assert expense.distribution["Ben"] == Decimal("10")

    def test_build_without_amount_raises(self, validator):
        with pytest.raises(InvalidAmountError):
            validator.build_expense(draft(amount=None))

    def test_summary_for_valid_draft(self, validator):
        result = validator.validate(draft(), MEMBERS)
        assert validator.get_user_friendly_summary(result) == "✅ Expense looks good."

    def test_summary_lists_errors(self, validator):
        result = validator.validate(draft(title=""), MEMBERS)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("⚠ Please fix the following:")
        assert "Title is required" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
