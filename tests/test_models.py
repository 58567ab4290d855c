"""
Tests for Khata Ledger models

Test strategy:
1. Persisted documents round through the models in camelCase
2. Amounts are positive decimals and leave as plain JSON numbers
3. Every timestamp ends up as aware UTC
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from khata.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Customer,
    LedgerState,
    Transaction,
    TransactionType,
    User,
    generate_id,
)


class TestLedgerModels:
    """Tests for the ledger entities."""

    def test_generated_ids_have_short_form(self):
        """Test generated ids are an underscore plus nine characters."""
        new_id = generate_id()
        assert new_id.startswith("_")
        assert len(new_id) == 10
        assert new_id[1:].isalnum()

    def test_customer_reads_camel_case(self):
        """Test a stored customer document loads into snake_case attributes."""
        customer = Customer.model_validate({
            "id": "_abc123def",
            "name": "  Ali Khan  ",
            "mobile": "",
            "createdAt": "2024-01-05T09:30:00.000Z",
        })
        assert customer.name == "Ali Khan"
        assert customer.mobile is None
        assert customer.created_at == datetime(2024, 1, 5, 9, 30, tzinfo=timezone.utc)

    def test_customer_numeric_id_becomes_string(self):
        """Test numeric ids from older documents are kept as strings."""
        customer = Customer.model_validate({"id": 42, "name": "Sara"})
        assert customer.id == "42"

    def test_customer_contact_details_are_not_capped(self):
        """Test long or numeric contact details from old documents load."""
        customer = Customer.model_validate({
            "id": "_c1",
            "name": "Ali",
            "mobile": 3001234567,
            "nic": "35202-1234567-1 (old card: 35202-7654321-9)",
        })
        assert customer.mobile == "3001234567"
        assert customer.nic.startswith("35202")

    def test_transaction_long_note(self):
        """Test a long note is kept as-is."""
        transaction = Transaction(customer_id="_c1", amount=Decimal("1"), type="credit", note="x" * 600)
        assert len(transaction.note) == 600

    def test_customer_requires_name(self):
        """Test a blank name is rejected."""
        with pytest.raises(ValidationError):
            Customer(name="   ")

    def test_transaction_document_is_camel_case(self):
        """Test a transaction serializes with camelCase keys."""
        transaction = Transaction(
            customer_id="_c1",
            amount=Decimal("500"),
            type=TransactionType.CREDIT,
            user_id=1,
        )
        document = transaction.to_document()
        assert document["customerId"] == "_c1"
        assert document["userId"] == 1
        assert document["type"] == "credit"
        assert "customer_id" not in document

    def test_transaction_amount_is_json_number(self):
        """Test whole amounts become ints and fractional amounts floats."""
        whole = Transaction(customer_id="_c1", amount=Decimal("500"), type="credit")
        fractional = Transaction(customer_id="_c1", amount=Decimal("12.50"), type="payment")
        assert whole.to_document()["amount"] == 500
        assert isinstance(whole.to_document()["amount"], int)
        assert fractional.to_document()["amount"] == 12.5

    def test_transaction_rejects_non_positive_amount(self):
        """Test zero and negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Transaction(customer_id="_c1", amount=Decimal("0"), type="credit")
        with pytest.raises(ValidationError):
            Transaction(customer_id="_c1", amount=Decimal("-10"), type="payment")

    def test_transaction_rejects_unknown_type(self):
        """Test only credit and payment are valid types."""
        with pytest.raises(ValidationError):
            Transaction(customer_id="_c1", amount=Decimal("10"), type="refund")

    def test_transaction_category_defaults(self):
        """Test a missing or blank category becomes General."""
        missing = Transaction(customer_id="_c1", amount=Decimal("10"), type="credit")
        blank = Transaction(customer_id="_c1", amount=Decimal("10"), type="credit", category=" ")
        assert missing.category == "General"
        assert blank.category == "General"

    def test_transaction_naive_date_is_utc(self):
        """Test naive dates are read as UTC."""
        transaction = Transaction(
            customer_id="_c1",
            amount=Decimal("10"),
            type="credit",
            date=datetime(2024, 2, 1, 8, 0),
        )
        assert transaction.date.tzinfo is not None
        assert transaction.date == datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)

    def test_transaction_aware_date_is_converted(self):
        """Test aware dates in another zone are converted to UTC."""
        karachi = timezone(timedelta(hours=5))
        transaction = Transaction(
            customer_id="_c1",
            amount=Decimal("10"),
            type="credit",
            date=datetime(2024, 2, 1, 10, 0, tzinfo=karachi),
        )
        assert transaction.date.utcoffset() == timedelta(0)
        assert transaction.date.hour == 5

    def test_user_matches_by_string_form(self):
        """Test user ids compare equal whether given as int or str."""
        user = User(id=2, name="Helper")
        assert user.matches("2")
        assert user.matches(2)
        assert not user.matches(3)

    def test_export_dict_has_five_keys(self):
        """Test the export document carries exactly the persisted collections."""
        owner = User(id=1, name="Owner")
        state = LedgerState(users=[owner], categories=["Goods"], current_user=owner)
        document = state.to_export_dict()
        assert set(document) == {"users", "customers", "transactions", "categories", "currentUser"}
        assert document["currentUser"] == {"id": 1, "name": "Owner"}

    def test_find_customer_missing(self):
        """Test looking up an unknown customer returns None."""
        state = LedgerState(customers=[Customer(id="_c1", name="Ali")])
        assert state.find_customer("_c1").name == "Ali"
        assert state.find_customer("_nope") is None
        assert state.find_customer(None) is None


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test basic AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.CUSTOMER_ADDED,
            description="Customer added: Ali",
        )
        assert event.event_type == AuditEventType.CUSTOMER_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.IMPORT_STARTED,
            correlation_id=correlation_id,
            description="Import started",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "import_started"
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_builder_transaction_rejected(self):
        """Test rejected transactions are warnings carrying their issues."""
        event = AuditEventBuilder.transaction_rejected(
            customer_id="_c1",
            reason="Amount must be greater than zero",
            issues=[{"field": "amount"}],
        )
        assert event.event_type == AuditEventType.TRANSACTION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.details["issues"] == [{"field": "amount"}]

    def test_builder_import_failed(self):
        """Test failed imports are errors with a code and message."""
        event = AuditEventBuilder.import_failed(
            source="https://example.com/khata.json",
            error_code="NetworkFailureError",
            error_message="Error loading data",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "NetworkFailureError"
        assert event.details["source"] == "https://example.com/khata.json"
