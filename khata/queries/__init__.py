"""Read-only queries behind the dashboard, customer list and customer page."""

from khata.queries.dashboard import (
    LedgerQueries,
    balance_label,
    status_label,
)

__all__ = [
    "LedgerQueries",
    "balance_label",
    "status_label",
]
