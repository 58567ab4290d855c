"""
Input Validation

Form input arrives as loosely-typed values (strings from text fields).
This module checks it before anything touches the ledger:

- Amounts must parse as finite decimals and be greater than zero
- Transaction types must be 'credit' or 'payment'
- Customer names must not be blank
- Notes must be text and not overly long

Validation never silently fixes issues. It reports them.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from khata.errors import ValidationFailureError
from khata.models.ledger import TransactionType
from khata.models.results import ValidationIssue, ValidationResult


MAX_NAME_LENGTH = 200
MAX_CONTACT_LENGTH = 30
MAX_NOTE_LENGTH = 500


class LedgerInputValidator:
    """Checks user input for customers and transactions."""

    def check_amount(self, raw: Any) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """
        Parse an amount.

        Returns: (amount_or_None, list_of_issues)
        """
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None, [ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            )]

        if isinstance(raw, bool):
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message=f"Amount must be a number, got {raw!r}",
            )]

        try:
            text = raw.strip().replace(",", "") if isinstance(raw, str) else str(raw)
            amount = Decimal(text)
        except (InvalidOperation, ValueError):
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message=f"Amount must be a number, got {raw!r}",
            )]

        if not amount.is_finite():
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message="Amount must be a finite number",
            )]

        if amount <= 0:
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_positive",
                message="Amount must be greater than zero",
            )]

        return amount, []

    def check_type(self, raw: Any) -> tuple[Optional[TransactionType], list[ValidationIssue]]:
        """Parse a transaction type."""
        if isinstance(raw, TransactionType):
            return raw, []
        try:
            return TransactionType(str(raw).strip().lower()), []
        except ValueError:
            return None, [ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Transaction type must be 'credit' or 'payment', got {raw!r}",
            )]

    def check_note(self, note: Any) -> list[ValidationIssue]:
        """Notes are optional free text with a length cap for the form."""
        if note is None:
            return []
        if not isinstance(note, str):
            return [ValidationIssue(
                field="note",
                issue_type="invalid_value",
                message="Note must be text",
            )]
        if len(note.strip()) > MAX_NOTE_LENGTH:
            return [ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note must be at most {MAX_NOTE_LENGTH} characters",
            )]
        return []

    def check_customer(
        self,
        name: Any,
        mobile: Any = None,
        nic: Any = None,
    ) -> ValidationResult:
        """Validate the add-customer form."""
        issues = []

        if not isinstance(name, str) or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Customer name is required",
            ))
        elif len(name.strip()) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Customer name must be at most {MAX_NAME_LENGTH} characters",
            ))

        for field, label, value in (("mobile", "Mobile", mobile), ("nic", "NIC", nic)):
            if value is not None and len(str(value).strip()) > MAX_CONTACT_LENGTH:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="too_long",
                    message=f"{label} must be at most {MAX_CONTACT_LENGTH} characters",
                ))

        return ValidationResult(issues=issues)

    def parse_amount(self, raw: Any) -> Decimal:
        """
        Parse an amount or raise.

        Raises:
            ValidationFailureError: If the amount is missing, not numeric or not positive
        """
        amount, issues = self.check_amount(raw)
        if issues:
            raise ValidationFailureError(issues=issues)
        return amount

    def parse_type(self, raw: Any) -> TransactionType:
        """
        Parse a transaction type or raise.

        Raises:
            ValidationFailureError: If the type is not credit or payment
        """
        transaction_type, issues = self.check_type(raw)
        if issues:
            raise ValidationFailureError(issues=issues)
        return transaction_type

    def require_note(self, note: Any) -> None:
        """
        Raises:
            ValidationFailureError: If the note is not text or is too long
        """
        issues = self.check_note(note)
        if issues:
            raise ValidationFailureError(issues=issues)

    def require_customer(self, name: Any, mobile: Any = None, nic: Any = None) -> None:
        """
        Raises:
            ValidationFailureError: If the customer form is invalid
        """
        result = self.check_customer(name, mobile, nic)
        if result.has_errors:
            raise ValidationFailureError(issues=result.issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary of validation results for display."""
        if result.is_valid:
            return "All checks passed."
        lines = ["Please fix the following:"]
        for issue in result.issues:
            lines.append(f"   - {issue.message}")
        return "\n".join(lines)
