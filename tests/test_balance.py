"""
Tests for the balance engine

All functions are pure, so every test builds its own customers and
transactions and pins `now`.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from khata.engine import (
    balance_of,
    cash_flow,
    customer_transactions,
    oldest_outstanding_debtors,
    recent_transactions,
    total_receivable,
    window_threshold,
)
from khata.models import EPOCH, CashFlowWindow, Customer, Transaction, TransactionType


NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)


def customer(customer_id, name=None):
    return Customer(id=customer_id, name=name or customer_id)


def txn(customer_id, amount, kind, days_ago=0, txn_id=None):
    return Transaction(
        id=txn_id or f"_t{customer_id}{amount}{days_ago}",
        customer_id=customer_id,
        amount=Decimal(str(amount)),
        type=TransactionType(kind),
        date=NOW - timedelta(days=days_ago),
    )


class TestBalanceOf:
    """Tests for a single customer's balance."""

    def test_credit_then_partial_payment(self):
        """Test 1000 credit and 400 payment leaves 600 receivable."""
        ali = customer("_c1")
        transactions = [txn("_c1", 1000, "credit"), txn("_c1", 400, "payment")]
        assert balance_of(ali, transactions) == Decimal("-600")

    def test_overpayment_is_advance(self):
        """Test paying more than the credit gives a positive balance."""
        ali = customer("_c1")
        transactions = [txn("_c1", 100, "credit"), txn("_c1", 150, "payment")]
        assert balance_of(ali, transactions) == Decimal("50")

    def test_other_customers_are_ignored(self):
        """Test only the customer's own transactions count."""
        ali = customer("_c1")
        transactions = [txn("_c1", 100, "credit"), txn("_c2", 900, "credit")]
        assert balance_of(ali, transactions) == Decimal("-100")

    def test_no_transactions_is_exactly_zero(self):
        """Test a customer with no history is settled."""
        assert balance_of(customer("_c1"), []) == Decimal("0")

    def test_missing_customer_is_zero(self):
        """Test None returns zero instead of raising."""
        assert balance_of(None, [txn("_c1", 100, "credit")]) == Decimal("0")

    def test_fractional_amounts_are_exact(self):
        """Test decimal amounts do not pick up float error."""
        ali = customer("_c1")
        transactions = [
            txn("_c1", "0.1", "payment", txn_id="_a"),
            txn("_c1", "0.2", "payment", txn_id="_b"),
        ]
        assert balance_of(ali, transactions) == Decimal("0.3")


class TestWindowThreshold:
    """Tests for the start of each cash-flow window."""

    def test_thirty_days(self):
        """Test 30d is exactly thirty days back."""
        assert window_threshold(CashFlowWindow.LAST_30_DAYS, NOW) == NOW - timedelta(days=30)

    def test_month_end_is_clamped(self):
        """Test 31 May minus three months lands on 29 February in a leap year."""
        now = datetime(2024, 5, 31, tzinfo=timezone.utc)
        assert window_threshold("3m", now) == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_six_months(self):
        """Test 31 August minus six months is the end of February."""
        now = datetime(2023, 8, 31, tzinfo=timezone.utc)
        assert window_threshold("6m", now) == datetime(2023, 2, 28, tzinfo=timezone.utc)

    def test_leap_day_minus_a_year(self):
        """Test 29 February minus one year is 28 February."""
        now = datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert window_threshold("1y", now) == datetime(2023, 2, 28, tzinfo=timezone.utc)

    def test_all_is_epoch(self):
        """Test the all-time window starts at the Unix epoch."""
        assert window_threshold(CashFlowWindow.ALL_TIME, NOW) == EPOCH

    def test_unknown_window_rejected(self):
        """Test an unknown window name raises."""
        with pytest.raises(ValueError):
            window_threshold("2w", NOW)


class TestCashFlow:
    """Tests for cash in and cash out."""

    def test_sums_by_type_since_threshold(self):
        """Test payments are cash in, credits cash out, older ones excluded."""
        transactions = [
            txn("_c1", 500, "credit", days_ago=5),
            txn("_c1", 200, "payment", days_ago=3),
            txn("_c2", 300, "payment", days_ago=40),
        ]
        summary = cash_flow(transactions, NOW - timedelta(days=30))
        assert summary.cash_in == Decimal("200")
        assert summary.cash_out == Decimal("500")
        assert summary.net == Decimal("-300")

    def test_threshold_is_inclusive(self):
        """Test a transaction dated exactly at the threshold is counted."""
        since = NOW - timedelta(days=30)
        summary = cash_flow([txn("_c1", 100, "payment", days_ago=30)], since)
        assert summary.cash_in == Decimal("100")

    def test_naive_threshold_is_utc(self):
        """Test a naive threshold compares as UTC."""
        summary = cash_flow([txn("_c1", 100, "credit")], datetime(2024, 3, 1))
        assert summary.cash_out == Decimal("100")

    def test_empty(self):
        """Test no transactions gives zero both ways."""
        summary = cash_flow([], EPOCH)
        assert summary.cash_in == 0
        assert summary.cash_out == 0


class TestRecentTransactions:
    """Tests for the dashboard's recent list."""

    def test_newest_first_with_names(self):
        """Test transactions are sorted newest first and joined with names."""
        customers = [customer("_c1", "Ali"), customer("_c2", "Sara")]
        transactions = [
            txn("_c1", 100, "credit", days_ago=10),
            txn("_c2", 200, "credit", days_ago=1),
        ]
        recent = recent_transactions(transactions, customers)
        assert [r.customer_name for r in recent] == ["Sara", "Ali"]
        assert recent[0].amount == Decimal("200")

    def test_missing_customer_is_na(self):
        """Test an orphan transaction shows N/A instead of raising."""
        recent = recent_transactions([txn("_gone", 100, "credit")], [])
        assert recent[0].customer_name == "N/A"

    def test_equal_dates_keep_recorded_order(self):
        """Test ties keep insertion order."""
        transactions = [
            txn("_c1", 100, "credit", txn_id="_first"),
            txn("_c1", 200, "credit", txn_id="_second"),
        ]
        recent = recent_transactions(transactions, [customer("_c1")])
        assert [r.transaction.id for r in recent] == ["_first", "_second"]

    def test_limit(self):
        """Test the list is truncated to the limit."""
        transactions = [txn("_c1", 10 + i, "credit", days_ago=i) for i in range(15)]
        assert len(recent_transactions(transactions, [customer("_c1")])) == 10
        assert len(recent_transactions(transactions, [customer("_c1")], limit=3)) == 3


class TestOldestDebtors:
    """Tests for the oldest outstanding debtors."""

    def test_only_debtors_oldest_first(self):
        """Test settled and advance customers are excluded and order is by last activity."""
        customers = [customer("_a"), customer("_b"), customer("_c"), customer("_d")]
        transactions = [
            txn("_a", 100, "credit", days_ago=2),
            txn("_b", 100, "credit", days_ago=20),
            txn("_c", 100, "credit", days_ago=50),
            txn("_c", 100, "payment", days_ago=1),
            txn("_d", 100, "payment", days_ago=60),
        ]
        debtors = oldest_outstanding_debtors(customers, transactions, now=NOW)
        assert [d.customer.id for d in debtors] == ["_b", "_a"]
        assert debtors[0].days_inactive == 20
        assert debtors[0].receivable == Decimal("100")

    def test_last_activity_counts_payments(self):
        """Test a recent partial payment moves the debtor back in the list."""
        customers = [customer("_a"), customer("_b")]
        transactions = [
            txn("_a", 500, "credit", days_ago=90),
            txn("_a", 100, "payment", days_ago=1),
            txn("_b", 100, "credit", days_ago=30),
        ]
        debtors = oldest_outstanding_debtors(customers, transactions, now=NOW)
        assert [d.customer.id for d in debtors] == ["_b", "_a"]

    def test_ties_broken_by_id(self):
        """Test equal last activity is ordered by customer id."""
        customers = [customer("_z"), customer("_m")]
        transactions = [
            txn("_z", 100, "credit", days_ago=5),
            txn("_m", 100, "credit", days_ago=5),
        ]
        debtors = oldest_outstanding_debtors(customers, transactions, now=NOW)
        assert [d.customer.id for d in debtors] == ["_m", "_z"]

    def test_limit(self):
        """Test at most five debtors are returned by default."""
        customers = [customer(f"_c{i}") for i in range(8)]
        transactions = [txn(f"_c{i}", 100, "credit", days_ago=i) for i in range(8)]
        assert len(oldest_outstanding_debtors(customers, transactions, now=NOW)) == 5


class TestAggregates:
    """Tests for total receivable and customer history."""

    def test_total_receivable_ignores_advances(self):
        """Test only what debtors owe is summed."""
        customers = [customer("_a"), customer("_b")]
        transactions = [
            txn("_a", 700, "credit"),
            txn("_b", 300, "payment"),
        ]
        assert total_receivable(customers, transactions) == Decimal("700")

    def test_customer_transactions_newest_first(self):
        """Test history is the customer's own entries in reverse recorded order."""
        transactions = [
            txn("_a", 1, "credit", txn_id="_1"),
            txn("_b", 2, "credit", txn_id="_2"),
            txn("_a", 3, "payment", txn_id="_3"),
        ]
        history = customer_transactions("_a", transactions)
        assert [t.id for t in history] == ["_3", "_1"]
        oldest_first = customer_transactions("_a", transactions, newest_first=False)
        assert [t.id for t in oldest_first] == ["_1", "_3"]
