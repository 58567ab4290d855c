"""
Khata Ledger - Source Package

A personal credit-ledger ("khata") tracker for small shopkeepers:
customers, credit/payment transactions, balances and cash-flow summaries.

DESIGN PRINCIPLES:
1. Direction lives in the transaction type, never in the amount's sign
2. Every write is persisted immediately (write-through)
3. No silent no-ops: missing customers and bad amounts are reported
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Khata Ledger Team"
