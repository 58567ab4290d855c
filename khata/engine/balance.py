"""
Balance Engine

Pure functions over the customer and transaction collections. Nothing here
reads or writes storage, and nothing mutates its inputs.

Sign convention (ledger owner's point of view):
    payment -> +amount   (money came in, the customer owes less)
    credit  -> -amount   (value went out, the customer owes more)

So a negative balance is a receivable: the customer owes the owner.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from khata.models.ledger import (
    EPOCH,
    UNKNOWN_CUSTOMER_NAME,
    CashFlowWindow,
    Customer,
    Transaction,
    TransactionType,
    as_utc,
    utc_now,
)
from khata.models.results import CashFlowSummary, DebtorSummary, RecentTransaction


ZERO = Decimal("0")


def signed_amount(transaction: Transaction) -> Decimal:
    """The transaction's effect on its customer's balance."""
    if transaction.type == TransactionType.PAYMENT:
        return transaction.amount
    return -transaction.amount


def balance_of(
    customer: Optional[Customer],
    transactions: Iterable[Transaction],
) -> Decimal:
    """
    Net balance of one customer.

    Transactions of other customers are ignored. A customer with no
    transactions (or no customer at all) has a balance of exactly zero.
    """
    if customer is None:
        return ZERO
    return sum(
        (signed_amount(t) for t in transactions if t.customer_id == customer.id),
        ZERO,
    )


def balances_by_customer(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Every customer's balance in a single pass."""
    balances: dict[str, Decimal] = {}
    for t in transactions:
        balances[t.customer_id] = balances.get(t.customer_id, ZERO) + signed_amount(t)
    return balances


def window_threshold(
    window: CashFlowWindow,
    now: Optional[datetime] = None,
) -> datetime:
    """
    Start of a cash-flow window.

    Month and year steps are calendar steps with the day clamped to the end
    of the target month: 31 March minus one month is 28 (or 29) February,
    and 29 February minus one year is 28 February.
    """
    window = CashFlowWindow(window)
    now = as_utc(now) if now else utc_now()

    if window == CashFlowWindow.LAST_30_DAYS:
        return now - timedelta(days=30)
    if window == CashFlowWindow.LAST_3_MONTHS:
        return now - relativedelta(months=3)
    if window == CashFlowWindow.LAST_6_MONTHS:
        return now - relativedelta(months=6)
    if window == CashFlowWindow.LAST_YEAR:
        return now - relativedelta(years=1)
    return EPOCH


def cash_flow(
    transactions: Iterable[Transaction],
    since: datetime,
) -> CashFlowSummary:
    """Sum payments (cash in) and credits (cash out) dated on or after `since`."""
    since = as_utc(since)
    cash_in = ZERO
    cash_out = ZERO
    for t in transactions:
        if t.date < since:
            continue
        if t.type == TransactionType.PAYMENT:
            cash_in += t.amount
        elif t.type == TransactionType.CREDIT:
            cash_out += t.amount
    return CashFlowSummary(cash_in=cash_in, cash_out=cash_out)


def recent_transactions(
    transactions: Sequence[Transaction],
    customers: Iterable[Customer],
    limit: int = 10,
) -> list[RecentTransaction]:
    """
    Newest transactions first, each with its customer's name.

    Transactions whose customer no longer exists are labelled "N/A".
    Equal timestamps keep their recorded order.
    """
    names = {c.id: c.name for c in customers}
    # sorted() is stable, so ties stay in insertion order
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return [
        RecentTransaction(
            transaction=t,
            customer_name=names.get(t.customer_id, UNKNOWN_CUSTOMER_NAME),
        )
        for t in ordered[:max(limit, 0)]
    ]


def last_activity(
    customer_id: str,
    transactions: Iterable[Transaction],
) -> datetime:
    """Date of the customer's most recent transaction, or the epoch."""
    dates = [t.date for t in transactions if t.customer_id == customer_id]
    return max(dates) if dates else EPOCH


def oldest_outstanding_debtors(
    customers: Iterable[Customer],
    transactions: Sequence[Transaction],
    limit: int = 5,
    now: Optional[datetime] = None,
) -> list[DebtorSummary]:
    """
    Customers who owe money, longest-inactive first.

    Ties on last activity are broken by customer id.
    """
    now = as_utc(now) if now else utc_now()
    balances = balances_by_customer(transactions)

    latest: dict[str, datetime] = {}
    for t in transactions:
        if t.customer_id not in latest or t.date > latest[t.customer_id]:
            latest[t.customer_id] = t.date

    debtors = []
    for customer in customers:
        balance = balances.get(customer.id, ZERO)
        if balance >= 0:
            continue
        last = latest.get(customer.id, EPOCH)
        debtors.append(
            DebtorSummary(
                customer=customer,
                balance=balance,
                last_activity=last,
                days_inactive=max((now - last).days, 0),
            )
        )

    debtors.sort(key=lambda d: (d.last_activity, d.customer.id))
    return debtors[:max(limit, 0)]


def total_receivable(
    customers: Iterable[Customer],
    transactions: Iterable[Transaction],
) -> Decimal:
    """Sum of what every debtor owes."""
    balances = balances_by_customer(transactions)
    return sum(
        (-balances[c.id] for c in customers if balances.get(c.id, ZERO) < 0),
        ZERO,
    )


def customer_transactions(
    customer_id: str,
    transactions: Sequence[Transaction],
    newest_first: bool = True,
) -> list[Transaction]:
    """One customer's history, by recorded order (reversed when newest_first)."""
    history = [t for t in transactions if t.customer_id == customer_id]
    if newest_first:
        history.reverse()
    return history
