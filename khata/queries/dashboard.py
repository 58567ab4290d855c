"""
Ledger Queries

Builds the data behind each view from the current ledger state.

Queries are READ-ONLY. They never touch storage and never change the
state; every number comes from the balance engine, so the dashboard, the
customer list and the customer page always agree with each other.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from khata.config import Settings, get_settings
from khata.engine import (
    balance_of,
    balances_by_customer,
    cash_flow,
    customer_transactions,
    oldest_outstanding_debtors,
    recent_transactions,
    total_receivable,
    window_threshold,
)
from khata.errors import NotFoundError
from khata.models.ledger import CashFlowWindow, LedgerState, as_utc, utc_now
from khata.models.results import (
    CustomerDetail,
    CustomerListing,
    CustomerRow,
    DashboardSummary,
)


RECEIVABLE = "Receivable"
ADVANCE = "Advance"

THEY_OWE_YOU = "They Owe You"
YOU_OWE_THEM = "You Owe Them"
SETTLED = "Settled"


def status_label(balance: Decimal) -> str:
    """Short label for the customer list; settled customers get none."""
    if balance < 0:
        return RECEIVABLE
    if balance > 0:
        return ADVANCE
    return ""


def balance_label(balance: Decimal) -> str:
    """Heading for the balance on a customer's page."""
    if balance < 0:
        return THEY_OWE_YOU
    if balance > 0:
        return YOU_OWE_THEM
    return SETTLED


class LedgerQueries:
    """
    Answers the presentation layer's questions about a ledger.

    Takes the state explicitly, or a callable returning it, so it can be
    bound to a LedgerStore whose state is swapped out by an import.
    """

    def __init__(self, state, settings: Optional[Settings] = None):
        self._state = state
        self._settings = (settings or get_settings()).dashboard

    @property
    def state(self) -> LedgerState:
        return self._state() if callable(self._state) else self._state

    def dashboard(
        self,
        window: Optional[CashFlowWindow] = None,
        now: Optional[datetime] = None,
    ) -> DashboardSummary:
        """
        Cash flow for the selected window, the latest transactions and the
        customers who have owed money the longest.

        Without `window` the state's dashboard filter is used.
        """
        state = self.state
        now = as_utc(now) if now else utc_now()
        window = CashFlowWindow(window or state.dashboard_filter)
        since = window_threshold(window, now)

        return DashboardSummary(
            window=window,
            since=since,
            generated_at=now,
            cash_flow=cash_flow(state.transactions, since),
            recent_transactions=recent_transactions(
                state.transactions,
                state.customers,
                limit=self._settings.recent_limit,
            ),
            oldest_debtors=oldest_outstanding_debtors(
                state.customers,
                state.transactions,
                limit=self._settings.debtor_limit,
                now=now,
            ),
        )

    def customer_list(self) -> CustomerListing:
        """Every customer in recorded order with their balance."""
        state = self.state
        balances = balances_by_customer(state.transactions)

        rows = []
        for customer in state.customers:
            balance = balances.get(customer.id, Decimal("0"))
            rows.append(CustomerRow(
                customer=customer,
                balance=balance,
                status_label=status_label(balance),
            ))

        return CustomerListing(
            rows=rows,
            total_receivable=total_receivable(state.customers, state.transactions),
        )

    def customer_detail(self, customer_id: Optional[str] = None) -> CustomerDetail:
        """
        One customer's balance and history, newest first.

        Without an id the currently selected customer is used.

        Raises:
            NotFoundError: If the customer does not exist
        """
        state = self.state
        customer_id = customer_id or state.selected_customer_id
        customer = state.find_customer(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)

        balance = balance_of(customer, state.transactions)
        return CustomerDetail(
            customer=customer,
            balance=balance,
            balance_label=balance_label(balance),
            transactions=customer_transactions(customer.id, state.transactions),
        )
