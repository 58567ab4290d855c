"""
Ledger Errors

Every error the ledger raises to its caller is recoverable. Each carries a
`user_message` the presentation layer can show as-is.
"""

from typing import Optional

from khata.models.results import ValidationIssue


class KhataError(Exception):
    """Base exception for ledger operations."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class InvalidFormatError(KhataError):
    """Import document is not a ledger document."""

    default_message = "Invalid JSON format"


class NetworkFailureError(KhataError):
    """Import document could not be fetched or read."""

    default_message = "Error loading data"

    def __init__(self, message: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NotFoundError(KhataError):
    """Operation referenced a customer or user that does not exist."""

    def __init__(self, entity_type: str, entity_id: object):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class ValidationFailureError(KhataError):
    """User input was rejected (bad amount, blank name, unknown type)."""

    default_message = "Invalid input"

    def __init__(
        self,
        message: Optional[str] = None,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        self.issues = issues or []
        if message is None and self.issues:
            message = "; ".join(issue.message for issue in self.issues)
        super().__init__(message)


class ImportInProgressError(KhataError):
    """A second import was started while one is still pending."""

    default_message = "An import is already in progress"
