"""
Ledger Store

Owns the LedgerState and is the only thing that changes it. Every mutation
is written through to storage immediately.

If a save fails (disk full, quota exceeded, directory gone) the mutation
stays applied in memory, the failure is logged and audited, and
`persistence_error` holds a message for the user until a later save
succeeds.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from khata.audit import AuditLogger
from khata.config import Settings, get_settings
from khata.errors import NotFoundError, ValidationFailureError
from khata.models.audit import AuditEventBuilder
from khata.models.ledger import (
    CashFlowWindow,
    Customer,
    LedgerState,
    Transaction,
    TransactionType,
    User,
    as_utc,
    generate_id,
    utc_now,
)
from khata.models.results import ImportSummary, PersistOutcome
from khata.reconciler import build_state, reconcile_import
from khata.services.storage import (
    CorruptValueError,
    KeyValueStorageInterface,
    StorageError,
)
from khata.validation import LedgerInputValidator


logger = structlog.get_logger("khata.store")

USERS = "users"
CUSTOMERS = "customers"
TRANSACTIONS = "transactions"
CATEGORIES = "categories"
CURRENT_USER = "current_user"

PERSISTED_KEYS = (USERS, CUSTOMERS, TRANSACTIONS, CATEGORIES, CURRENT_USER)


class LedgerStore:
    """
    The ledger aggregate root.

    Usage:
        store = LedgerStore.open(JsonFileStorage())
        customer = store.add_customer("Ali Khan", mobile="0300 1234567")
        store.add_transaction(customer.id, "500", "credit", note="Rice")
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        state: LedgerState,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        validator: Optional[LedgerInputValidator] = None,
    ):
        settings = settings or get_settings()
        self._storage = storage
        self._state = state
        self._audit_logger = audit_logger
        self._app_settings = settings.app
        self._key_prefix = settings.storage.key_prefix
        self._clock = clock or utc_now
        self._validator = validator or LedgerInputValidator()
        self._persistence_error: Optional[str] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "LedgerStore":
        """
        Load the ledger from storage, filling in defaults for missing keys.

        Nested legacy transactions are flattened and, if any were moved, the
        new shape is saved straight away.

        Raises:
            StorageUnavailableError: If storage cannot be read at all
            InvalidFormatError: If stored records do not match the models
        """
        settings = settings or get_settings()
        prefix = settings.storage.key_prefix
        app = settings.app

        def load(name: str, default: Any) -> Any:
            key = f"{prefix}{name}"
            try:
                value = storage.load(key)
            except CorruptValueError as e:
                logger.warning("corrupt_value_replaced", key=key, error=str(e))
                if audit_logger:
                    audit_logger.log_error("corrupt_value", str(e), {"key": key})
                return default
            return default if value is None else value

        users = load(USERS, app.default_users_list or [{"id": 1, "name": "Owner"}])
        customers = load(CUSTOMERS, [])
        transactions = load(TRANSACTIONS, [])
        categories = load(CATEGORIES, app.default_categories_list)
        current = load(CURRENT_USER, None)

        current_user = None
        if isinstance(current, dict):
            try:
                current_user = User.model_validate(current)
            except ValidationError:
                logger.warning("current_user_ignored", value=current)

        state, migrated = build_state(
            users=users if isinstance(users, list) else [],
            customers=customers if isinstance(customers, list) else [],
            transactions=transactions if isinstance(transactions, list) else [],
            categories=categories if isinstance(categories, list) else [],
            current_user=current_user,
        )
        state.dashboard_filter = CashFlowWindow(settings.dashboard.default_filter)

        store = cls(
            storage=storage,
            state=state,
            audit_logger=audit_logger,
            settings=settings,
            clock=clock,
        )
        logger.info(
            "ledger_loaded",
            customers=len(state.customers),
            transactions=len(state.transactions),
        )

        if migrated:
            if audit_logger:
                audit_logger.log(AuditEventBuilder.legacy_migrated(migrated))
            store.persist()

        return store

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def current_user(self) -> Optional[User]:
        return self._state.current_user

    @property
    def persistence_error(self) -> Optional[str]:
        """Message from the last failed save, or None."""
        return self._persistence_error

    @property
    def save_ok(self) -> bool:
        return self._persistence_error is None

    def get_customer(self, customer_id: str) -> Customer:
        """
        Raises:
            NotFoundError: If no customer has this id
        """
        customer = self._state.find_customer(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)
        return customer

    def snapshot(self) -> dict[str, Any]:
        """The full export document."""
        return self._state.to_export_dict()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _key(self, name: str) -> str:
        return f"{self._key_prefix}{name}"

    @staticmethod
    def _value_for(document: dict[str, Any], name: str) -> Any:
        if name == CURRENT_USER:
            return document["currentUser"]
        return document[name]

    def persist(self, names: Iterable[str] = PERSISTED_KEYS) -> PersistOutcome:
        """
        Write the given parts of the ledger to storage.

        Never raises for storage failures; they are reported through the
        returned outcome and `persistence_error`.
        """
        document = self._state.to_export_dict()
        failed: list[str] = []
        last_error: Optional[str] = None

        for name in names:
            key = self._key(name)
            try:
                self._storage.save(key, self._value_for(document, name))
            except StorageError as e:
                failed.append(key)
                last_error = str(e)
                logger.error("persist_failed", key=key, error=last_error)

        if failed:
            self._persistence_error = (
                f"Your changes are kept for now but could not be saved: {last_error}"
            )
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.persistence_failed(failed, last_error or "")
                )
            return PersistOutcome(ok=False, failed_keys=failed, error_message=last_error)

        self._persistence_error = None
        return PersistOutcome(ok=True)

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _current_user_id(self) -> Optional[str]:
        user = self._state.current_user
        return str(user.id) if user else None

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def _unique_id(self, taken: set[str]) -> str:
        new_id = generate_id()
        while new_id in taken:
            new_id = generate_id()
        return new_id

    def add_customer(
        self,
        name: str,
        mobile: Optional[str] = None,
        nic: Optional[str] = None,
    ) -> Customer:
        """
        Add a customer. Duplicate names are allowed.

        Raises:
            ValidationFailureError: If the name is blank or a field is too long
        """
        self._validator.require_customer(name, mobile, nic)

        customer = Customer(
            id=self._unique_id({c.id for c in self._state.customers}),
            name=name,
            mobile=mobile,
            nic=nic,
            created_at=self._clock(),
        )
        self._state.customers.append(customer)
        self._audit(AuditEventBuilder.customer_added(
            customer_id=customer.id,
            name=customer.name,
            user_id=self._current_user_id(),
        ))
        self.persist()
        return customer

    def remove_customer(self, customer_id: str, cascade: bool = True) -> int:
        """
        Remove a customer.

        With cascade (the default) their transactions are removed too;
        without it they are kept as orphans and show up as "N/A".

        Returns:
            Number of transactions removed

        Raises:
            NotFoundError: If no customer has this id
        """
        customer = self.get_customer(customer_id)
        self._state.customers = [c for c in self._state.customers if c.id != customer.id]

        removed = 0
        if cascade:
            kept = [t for t in self._state.transactions if t.customer_id != customer.id]
            removed = len(self._state.transactions) - len(kept)
            self._state.transactions = kept

        if self._state.selected_customer_id == customer.id:
            self._state.selected_customer_id = None

        self._audit(AuditEventBuilder.customer_removed(
            customer_id=customer.id,
            removed_transactions=removed,
            user_id=self._current_user_id(),
        ))
        self.persist()
        return removed

    def select_customer(self, customer_id: Optional[str]) -> Optional[Customer]:
        """Set (or clear, with None) the customer being viewed. Not persisted."""
        if customer_id is None:
            self._state.selected_customer_id = None
            return None
        customer = self.get_customer(customer_id)
        self._state.selected_customer_id = customer.id
        return customer

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def add_transaction(
        self,
        customer_id: Optional[str],
        amount: Any,
        type: Any,
        note: Optional[str] = None,
        category: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record a credit or payment for an existing customer.

        `amount` may be a Decimal, number or numeric string; `type` may be a
        TransactionType or its string value. Without `date` the transaction
        is stamped with the current time.

        Raises:
            NotFoundError: If the customer does not exist
            ValidationFailureError: If the amount, type or note is invalid
        """
        customer = self._state.find_customer(customer_id)
        if customer is None:
            self._audit(AuditEventBuilder.transaction_rejected(
                customer_id=None if customer_id is None else str(customer_id),
                reason="customer not found",
                user_id=self._current_user_id(),
            ))
            raise NotFoundError("customer", customer_id)

        try:
            parsed_amount: Decimal = self._validator.parse_amount(amount)
            parsed_type: TransactionType = self._validator.parse_type(type)
            self._validator.require_note(note)
        except ValidationFailureError as e:
            self._audit(AuditEventBuilder.transaction_rejected(
                customer_id=customer.id,
                reason=e.user_message,
                issues=[issue.model_dump() for issue in e.issues],
                user_id=self._current_user_id(),
            ))
            raise

        label = (category or "").strip() or self._app_settings.default_category
        user = self._state.current_user or (self._state.users[0] if self._state.users else None)

        transaction = Transaction(
            id=self._unique_id({t.id for t in self._state.transactions}),
            customer_id=customer.id,
            date=as_utc(date) if date else self._clock(),
            amount=parsed_amount,
            type=parsed_type,
            note=note,
            category=label,
            user_id=user.id if user else None,
        )
        self._state.transactions.append(transaction)
        if label not in self._state.categories:
            self._state.categories.append(label)

        self._audit(AuditEventBuilder.transaction_recorded(
            transaction_id=transaction.id,
            customer_id=customer.id,
            transaction_type=parsed_type.value,
            amount=str(parsed_amount),
            user_id=self._current_user_id(),
        ))
        self.persist()
        return transaction

    # ------------------------------------------------------------------
    # Categories, users and session
    # ------------------------------------------------------------------

    def add_category(self, name: str) -> bool:
        """
        Add a category suggestion.

        Returns:
            True if it was new
        """
        label = (name or "").strip()
        if not label:
            raise ValidationFailureError("Category name is required")
        if label in self._state.categories:
            return False
        self._state.categories.append(label)
        self.persist([CATEGORIES])
        return True

    def switch_user(self, user_id: Any) -> User:
        """
        Make another user current. Only the pointer is persisted.

        Raises:
            NotFoundError: If no user has this id
        """
        user = self._state.find_user(user_id)
        if user is None:
            raise NotFoundError("user", user_id)

        previous = self._current_user_id()
        self._state.current_user = user
        self._audit(AuditEventBuilder.user_switched(previous, str(user.id)))
        self.persist([CURRENT_USER])
        return user

    def set_dashboard_filter(self, window: Any) -> CashFlowWindow:
        """
        Choose the dashboard's cash-flow window. Not persisted.

        Raises:
            ValidationFailureError: If the window is not one of 30d, 3m, 6m, 1y, all
        """
        try:
            parsed = CashFlowWindow(window)
        except ValueError:
            raise ValidationFailureError(f"Unknown dashboard filter: {window}")
        self._state.dashboard_filter = parsed
        return parsed

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def apply_import(
        self,
        document: Any,
        source: str = "inline",
        correlation_id: Optional[UUID] = None,
    ) -> ImportSummary:
        """
        Replace the ledger with an imported document.

        The document is fully reconciled and validated before anything is
        swapped in, so a rejected document leaves the ledger untouched.

        Raises:
            InvalidFormatError: If the document is not a ledger document
        """
        new_state, summary = reconcile_import(document, self._state, source=source)
        self._state = new_state

        if summary.migrated_transactions:
            self._audit(AuditEventBuilder.legacy_migrated(
                summary.migrated_transactions, correlation_id=correlation_id
            ))
        self._audit(AuditEventBuilder.import_completed(
            source=source,
            customer_count=summary.customer_count,
            transaction_count=summary.transaction_count,
            correlation_id=correlation_id,
        ))
        self.persist()
        return summary
