"""Balance engine package."""

from khata.engine.balance import (
    balance_of,
    balances_by_customer,
    cash_flow,
    customer_transactions,
    last_activity,
    oldest_outstanding_debtors,
    recent_transactions,
    signed_amount,
    total_receivable,
    window_threshold,
)

__all__ = [
    "balance_of",
    "balances_by_customer",
    "cash_flow",
    "customer_transactions",
    "last_activity",
    "oldest_outstanding_debtors",
    "recent_transactions",
    "signed_amount",
    "total_receivable",
    "window_threshold",
]
