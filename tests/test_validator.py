"""Tests for input validation."""

import pytest
from decimal import Decimal

from khata.errors import ValidationFailureError
from khata.models import TransactionType
from khata.validation import LedgerInputValidator


@pytest.fixture
def validator():
    return LedgerInputValidator()


class TestAmounts:
    """Tests for amount parsing."""

    def test_numeric_string(self, validator):
        """Test strings with thousands separators parse."""
        assert validator.parse_amount(" 1,500 ") == Decimal("1500")

    def test_numbers(self, validator):
        """Test ints and floats parse exactly."""
        assert validator.parse_amount(250) == Decimal("250")
        assert validator.parse_amount(12.5) == Decimal("12.5")

    @pytest.mark.parametrize("raw, issue_type", [
        (None, "missing"),
        ("  ", "missing"),
        ("abc", "not_a_number"),
        (True, "not_a_number"),
        ("inf", "not_a_number"),
        ("0", "not_positive"),
        (-3, "not_positive"),
    ])
    def test_rejected(self, validator, raw, issue_type):
        """Test each kind of bad amount is reported with its issue type."""
        amount, issues = validator.check_amount(raw)
        assert amount is None
        assert issues[0].issue_type == issue_type

    def test_parse_raises_with_message(self, validator):
        """Test parse_amount raises with a readable message."""
        with pytest.raises(ValidationFailureError) as exc:
            validator.parse_amount("0")
        assert exc.value.user_message == "Amount must be greater than zero"


class TestTypesAndCustomers:
    """Tests for transaction types and the customer form."""

    def test_type_is_case_insensitive(self, validator):
        """Test types are matched regardless of case."""
        assert validator.parse_type(" Credit ") == TransactionType.CREDIT
        assert validator.parse_type(TransactionType.PAYMENT) == TransactionType.PAYMENT

    def test_unknown_type(self, validator):
        """Test an unknown type raises."""
        with pytest.raises(ValidationFailureError):
            validator.parse_type("loan")

    def test_customer_form(self, validator):
        """Test a blank name and an overlong mobile are both reported."""
        result = validator.check_customer("", mobile="1" * 40)
        assert result.error_count == 2
        assert not result.is_valid
        summary = validator.get_user_friendly_summary(result)
        assert "Customer name is required" in summary
        assert "Mobile must be at most 30 characters" in summary

    def test_note_checks(self, validator):
        """Test notes are optional but must be text of limited length."""
        assert validator.check_note(None) == []
        assert validator.check_note("Rice and flour") == []
        assert validator.check_note("x" * 501)[0].issue_type == "too_long"
        assert validator.check_note(42)[0].issue_type == "invalid_value"
        with pytest.raises(ValidationFailureError):
            validator.require_note("x" * 501)

    def test_valid_customer(self, validator):
        """Test a complete form passes."""
        result = validator.check_customer("Ali", mobile="0300 1234567", nic="35202-1234567-1")
        assert result.is_valid
        assert validator.get_user_friendly_summary(result) == "All checks passed."
