"""
Import / Migration Reconciler

Turns raw ledger documents (from storage or from an import) into a valid
LedgerState with a single flat transaction list.

Older versions of the app stored each customer's transactions inside the
customer record:

    {"customers": [{"id": "_a1", "name": "Ali", "transactions": [...]}]}

The canonical shape keeps them in one top-level list, each transaction
pointing back at its customer through `customerId`. Every import entry point
and the startup load run through this module, so there is exactly one place
that knows about the old shape.
"""

from typing import Any, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from khata.errors import InvalidFormatError
from khata.models.ledger import (
    CashFlowWindow,
    Customer,
    LedgerState,
    Transaction,
    User,
)
from khata.models.results import ImportSummary


logger = structlog.get_logger("khata.reconciler")

LEGACY_KEY = "transactions"

_users_adapter = TypeAdapter(list[User])
_customers_adapter = TypeAdapter(list[Customer])
_transactions_adapter = TypeAdapter(list[Transaction])


def _require_list(value: Any, field: str) -> list:
    if not isinstance(value, list):
        raise InvalidFormatError(f"Invalid JSON format: '{field}' must be a list")
    return value


def _require_records(values: list, field: str) -> None:
    for index, value in enumerate(values):
        if not isinstance(value, dict):
            raise InvalidFormatError(
                f"Invalid JSON format: {field}[{index}] is not an object"
            )


def has_legacy_shape(customers: list[dict], transactions: list[dict]) -> bool:
    """True when the flat list is empty but customers still carry their own."""
    if transactions:
        return False
    return any(isinstance(c.get(LEGACY_KEY), list) for c in customers)


def flatten_legacy_transactions(
    customers: list[dict],
    transactions: list[dict],
) -> tuple[list[dict], list[dict], int]:
    """
    Move nested customer transactions into the flat list.

    Only runs when the flat list is empty. Each moved transaction gets the
    owning customer's id as `customerId`, and the nested list is removed from
    the customer. The inputs are not modified.

    Returns:
        (customers, transactions, migrated_count)
    """
    _require_records(customers, "customers")
    _require_records(transactions, "transactions")

    if not has_legacy_shape(customers, transactions):
        leftover = sum(
            len(c[LEGACY_KEY]) for c in customers if isinstance(c.get(LEGACY_KEY), list)
        )
        if leftover:
            logger.warning(
                "nested_transactions_ignored",
                count=leftover,
                reason="flat transaction list is not empty",
            )
        return list(customers), list(transactions), 0

    flat_customers: list[dict] = []
    flat_transactions: list[dict] = []

    for customer in customers:
        record = dict(customer)
        nested = record.pop(LEGACY_KEY, None)
        if isinstance(nested, list):
            for position, entry in enumerate(nested):
                if not isinstance(entry, dict):
                    raise InvalidFormatError(
                        f"Invalid JSON format: transaction {position} of customer "
                        f"{record.get('id')} is not an object"
                    )
                moved = dict(entry)
                moved["customerId"] = record.get("id")
                flat_transactions.append(moved)
        flat_customers.append(record)

    logger.info("nested_transactions_migrated", count=len(flat_transactions))
    return flat_customers, flat_transactions, len(flat_transactions)


def _describe(error: ValidationError, field: str) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid JSON format: {field}.{location}: {first.get('msg')}"


def validate_collections(
    users: list[dict],
    customers: list[dict],
    transactions: list[dict],
) -> tuple[list[User], list[Customer], list[Transaction]]:
    """
    Validate raw records into models.

    Raises:
        InvalidFormatError: If any record does not match its model
    """
    try:
        user_models = _users_adapter.validate_python(users)
    except ValidationError as e:
        raise InvalidFormatError(_describe(e, "users"))
    try:
        customer_models = _customers_adapter.validate_python(customers)
    except ValidationError as e:
        raise InvalidFormatError(_describe(e, "customers"))
    try:
        transaction_models = _transactions_adapter.validate_python(transactions)
    except ValidationError as e:
        raise InvalidFormatError(_describe(e, "transactions"))

    known = {c.id for c in customer_models}
    orphans = sum(1 for t in transaction_models if t.customer_id not in known)
    if orphans:
        logger.warning("orphan_transactions", count=orphans)

    return user_models, customer_models, transaction_models


def _resolve_current_user(
    users: list[User],
    previous: Optional[User],
) -> Optional[User]:
    if previous is not None:
        for user in users:
            if user.matches(previous.id):
                return user
    return users[0] if users else None


def build_state(
    users: list[dict],
    customers: list[dict],
    transactions: list[dict],
    categories: list[str],
    current_user: Optional[User] = None,
    selected_customer_id: Optional[str] = None,
    dashboard_filter: CashFlowWindow = CashFlowWindow.LAST_30_DAYS,
) -> tuple[LedgerState, int]:
    """
    Flatten, validate and assemble a LedgerState from raw collections.

    Returns:
        (state, migrated_count)
    """
    customers, transactions, migrated = flatten_legacy_transactions(
        customers, transactions
    )
    user_models, customer_models, transaction_models = validate_collections(
        users, customers, transactions
    )

    state = LedgerState(
        users=user_models,
        customers=customer_models,
        transactions=transaction_models,
        categories=[str(c) for c in categories],
        current_user=_resolve_current_user(user_models, current_user),
        dashboard_filter=dashboard_filter,
    )
    if state.find_customer(selected_customer_id) is not None:
        state.selected_customer_id = selected_customer_id

    return state, migrated


def reconcile_import(
    document: Any,
    current: LedgerState,
    source: str = "inline",
) -> tuple[LedgerState, ImportSummary]:
    """
    Build the state that results from importing a document.

    The document must be a JSON object with a `customers` list. Customers and
    transactions are replaced wholesale; users and categories only when the
    document supplies a non-empty list. The current state is never modified;
    the caller swaps the returned state in.

    Raises:
        InvalidFormatError: If the document is not an acceptable ledger document
    """
    if not isinstance(document, dict) or document.get("customers") is None:
        raise InvalidFormatError()

    customers = _require_list(document["customers"], "customers")
    transactions = _require_list(document.get("transactions") or [], "transactions")

    raw_users = document.get("users")
    users_replaced = isinstance(raw_users, list) and len(raw_users) > 0
    if users_replaced:
        users = raw_users
    else:
        users = [u.model_dump() for u in current.users]

    raw_categories = document.get("categories")
    categories_replaced = isinstance(raw_categories, list) and len(raw_categories) > 0
    categories = raw_categories if categories_replaced else list(current.categories)

    state, migrated = build_state(
        users=users,
        customers=customers,
        transactions=transactions,
        categories=categories,
        current_user=current.current_user,
        selected_customer_id=current.selected_customer_id,
        dashboard_filter=current.dashboard_filter,
    )

    summary = ImportSummary(
        source=source,
        customer_count=len(state.customers),
        transaction_count=len(state.transactions),
        user_count=len(state.users),
        users_replaced=users_replaced,
        categories_replaced=categories_replaced,
        migrated_transactions=migrated,
    )
    return state, summary
