"""
Audit Models for Khata Ledger

Every mutation of the ledger, every import and export, and every failure
that reaches the user is recorded as an audit event.

Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from khata.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Customers
    CUSTOMER_ADDED = "customer_added"
    CUSTOMER_REMOVED = "customer_removed"

    # Transactions
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Session
    USER_SWITCHED = "user_switched"

    # Import / export
    IMPORT_STARTED = "import_started"
    IMPORT_COMPLETED = "import_completed"
    IMPORT_FAILED = "import_failed"
    LEGACY_MIGRATED = "legacy_migrated"
    EXPORT_CREATED = "export_created"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'customer', 'transaction', 'import')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one import run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Ledger user active when the event happened"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
            "user_id": self.user_id,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.customer_added(customer_id, name)
        event = AuditEventBuilder.import_failed(source, "invalid_format", message)
    """

    @staticmethod
    def customer_added(
        customer_id: str,
        name: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_ADDED,
            entity_type="customer",
            entity_id=customer_id,
            description=f"Customer added: {name}",
            details={"name": name},
            is_user_action=True,
            user_id=user_id,
        )

    @staticmethod
    def customer_removed(
        customer_id: str,
        removed_transactions: int,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_REMOVED,
            severity=AuditSeverity.WARNING,
            entity_type="customer",
            entity_id=customer_id,
            description=f"Customer removed with {removed_transactions} transactions",
            details={"removed_transactions": removed_transactions},
            is_user_action=True,
            user_id=user_id,
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        customer_id: str,
        transaction_type: str,
        amount: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{transaction_type.capitalize()} of {amount} recorded",
            details={
                "customer_id": customer_id,
                "type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
            user_id=user_id,
        )

    @staticmethod
    def transaction_rejected(
        customer_id: Optional[str],
        reason: str,
        issues: Optional[list[dict]] = None,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="customer",
            entity_id=customer_id,
            description=f"Transaction rejected: {reason}",
            details={"issues": issues or []},
            is_user_action=True,
            user_id=user_id,
        )

    @staticmethod
    def user_switched(
        previous_user_id: Optional[str],
        new_user_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SWITCHED,
            entity_type="user",
            entity_id=new_user_id,
            description=f"Switched to user {new_user_id}",
            details={"previous_user_id": previous_user_id},
            is_user_action=True,
            user_id=new_user_id,
        )

    @staticmethod
    def import_started(
        source: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_STARTED,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"Import started from {source}",
            details={"source": source},
            is_user_action=True,
        )

    @staticmethod
    def import_completed(
        source: str,
        customer_count: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            entity_type="import",
            correlation_id=correlation_id,
            description=(
                f"Imported {customer_count} customers and "
                f"{transaction_count} transactions"
            ),
            details={
                "source": source,
                "customer_count": customer_count,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def import_failed(
        source: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"Import from {source} failed",
            details={"source": source},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def legacy_migrated(
        migrated_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEGACY_MIGRATED,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Migrated {migrated_count} nested transactions",
            details={"migrated_count": migrated_count},
        )

    @staticmethod
    def export_created(
        filename: str,
        size_bytes: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_CREATED,
            entity_type="export",
            description=f"Backup exported: {filename}",
            details={"filename": filename, "size_bytes": size_bytes},
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        keys: list[str],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            description=f"Could not save {', '.join(keys)}",
            details={"keys": keys},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
