"""
Result Models for Khata Ledger

Everything the ledger hands back to the presentation layer: cash-flow
totals, dashboard rows, customer views, validation results, and the
outcomes of import and export.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from khata.models.ledger import (
    CashFlowWindow,
    Customer,
    Transaction,
    TransactionType,
    utc_now,
)


# =============================================================================
# BALANCE ENGINE RESULTS
# =============================================================================

class CashFlowSummary(BaseModel):
    """Money in and out since a threshold."""

    cash_in: Decimal = Field(
        default=Decimal("0"),
        description="Sum of payments received"
    )
    cash_out: Decimal = Field(
        default=Decimal("0"),
        description="Sum of credit given"
    )

    @property
    def net(self) -> Decimal:
        return self.cash_in - self.cash_out


class RecentTransaction(BaseModel):
    """A transaction joined with its customer's display name."""

    transaction: Transaction
    customer_name: str

    @property
    def date(self) -> datetime:
        return self.transaction.date

    @property
    def amount(self) -> Decimal:
        return self.transaction.amount

    @property
    def type(self) -> TransactionType:
        return self.transaction.type

    @property
    def label(self) -> str:
        """What the dashboard shows in the category column."""
        return self.transaction.category or self.transaction.note or "-"


class DebtorSummary(BaseModel):
    """A customer who owes money, with their last activity."""

    customer: Customer
    balance: Decimal = Field(
        ...,
        lt=0,
        description="Negative balance (amount receivable)"
    )
    last_activity: datetime
    days_inactive: int = Field(ge=0)

    @property
    def receivable(self) -> Decimal:
        return -self.balance


# =============================================================================
# QUERY RESULTS
# =============================================================================

class DashboardSummary(BaseModel):
    """Data for the dashboard view."""

    window: CashFlowWindow
    since: datetime
    generated_at: datetime = Field(default_factory=utc_now)
    cash_flow: CashFlowSummary
    recent_transactions: list[RecentTransaction] = Field(default_factory=list)
    oldest_debtors: list[DebtorSummary] = Field(default_factory=list)


class CustomerRow(BaseModel):
    """One line of the customer list."""

    customer: Customer
    balance: Decimal
    status_label: str = Field(
        ...,
        description="'Receivable', 'Advance' or '' when settled"
    )

    @property
    def is_settled(self) -> bool:
        return self.balance == 0


class CustomerListing(BaseModel):
    """Data for the customer list view."""

    rows: list[CustomerRow] = Field(default_factory=list)
    total_receivable: Decimal = Decimal("0")

    @property
    def is_empty(self) -> bool:
        return not self.rows


class CustomerDetail(BaseModel):
    """Data for a single customer's page."""

    customer: Customer
    balance: Decimal
    balance_label: str = Field(
        ...,
        description="'They Owe You', 'You Owe Them' or 'Settled'"
    )
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="History, newest first"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one form submission."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# IMPORT / EXPORT
# =============================================================================

class ImportSummary(BaseModel):
    """What an accepted import replaced."""

    source: str = Field(
        ...,
        description="Where the document came from (URL, file path or 'inline')"
    )
    imported_at: datetime = Field(default_factory=utc_now)
    customer_count: int = Field(ge=0)
    transaction_count: int = Field(ge=0)
    user_count: int = Field(ge=0)
    users_replaced: bool = False
    categories_replaced: bool = False
    migrated_transactions: int = Field(
        default=0,
        ge=0,
        description="Transactions moved out of the legacy nested shape"
    )


class ExportBundle(BaseModel):
    """A downloadable snapshot of the ledger."""

    filename: str
    content: bytes
    exported_at: datetime = Field(default_factory=utc_now)
    customer_count: int = Field(default=0, ge=0)
    transaction_count: int = Field(default=0, ge=0)

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class PersistOutcome(BaseModel):
    """Result of writing the ledger through to storage."""

    ok: bool
    failed_keys: list[str] = Field(default_factory=list)
    error_message: Optional[str] = None
