"""
Data Models Package

This package contains all Pydantic models used in the Khata Ledger.
All data flowing through the system must conform to these schemas.
"""

from khata.models.ledger import (
    DEFAULT_CATEGORY,
    EPOCH,
    UNKNOWN_CUSTOMER_NAME,
    CashFlowWindow,
    Customer,
    LedgerState,
    Transaction,
    TransactionType,
    User,
    as_utc,
    generate_id,
    utc_now,
)
from khata.models.results import (
    CashFlowSummary,
    CustomerDetail,
    CustomerListing,
    CustomerRow,
    DashboardSummary,
    DebtorSummary,
    ExportBundle,
    ImportSummary,
    PersistOutcome,
    RecentTransaction,
    ValidationIssue,
    ValidationResult,
)
from khata.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORY",
    "EPOCH",
    "UNKNOWN_CUSTOMER_NAME",
    "CashFlowWindow",
    "Customer",
    "LedgerState",
    "Transaction",
    "TransactionType",
    "User",
    "as_utc",
    "generate_id",
    "utc_now",
    # Result models
    "CashFlowSummary",
    "CustomerDetail",
    "CustomerListing",
    "CustomerRow",
    "DashboardSummary",
    "DebtorSummary",
    "ExportBundle",
    "ImportSummary",
    "PersistOutcome",
    "RecentTransaction",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
