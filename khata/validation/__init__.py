"""Input validation package."""

from khata.validation.validator import LedgerInputValidator

__all__ = ["LedgerInputValidator"]
