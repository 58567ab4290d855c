"""
Core Data Models for Khata Ledger

These models define the strict schemas for everything the ledger stores:
users, customers, transactions and the ledger state aggregate.

Python attributes are snake_case; the persisted and exported JSON uses
camelCase (customerId, createdAt, userId) so documents written by earlier
versions of the app load unchanged.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_CATEGORY = "General"

UNKNOWN_CUSTOMER_NAME = "N/A"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Generate a short record id of the form `_xxxxxxxxx`."""
    return f"_{uuid4().hex[:9]}"


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _amount_to_json(value: Decimal) -> Union[int, float]:
    # Stored documents carry plain JSON numbers
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Amount = Annotated[
    Decimal,
    Field(gt=0, description="Positive amount; direction is carried by the type"),
    PlainSerializer(_amount_to_json, when_used="json"),
]

UserId = Union[int, str]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction, from the ledger owner's point of view.

    CREDIT: value given to the customer (goods, cash loan). They owe more.
    PAYMENT: value received from the customer. They owe less.
    """
    CREDIT = "credit"
    PAYMENT = "payment"


class CashFlowWindow(str, Enum):
    """Named dashboard windows for cash-flow summaries."""
    LAST_30_DAYS = "30d"
    LAST_3_MONTHS = "3m"
    LAST_6_MONTHS = "6m"
    LAST_YEAR = "1y"
    ALL_TIME = "all"


# =============================================================================
# LEDGER ENTITIES
# =============================================================================

class LedgerModel(BaseModel):
    """Base for persisted entities: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-ready, camelCase document form."""
        return self.model_dump(mode="json", by_alias=True)


class User(LedgerModel):
    """Someone who records transactions in the ledger."""

    id: UserId
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )

    def matches(self, user_id: Any) -> bool:
        """Compare ids by string form; UI selects deliver strings."""
        return str(self.id) == str(user_id)


class Customer(LedgerModel):
    """
    A person the ledger owner extends credit to.

    Names are not unique; two customers may share a name.
    """

    id: str = Field(
        default_factory=generate_id,
        min_length=1,
        description="Unique customer id"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Customer name"
    )
    mobile: Optional[str] = Field(
        default=None,
        description="Mobile number"
    )
    nic: Optional[str] = Field(
        default=None,
        description="National identity card number"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the customer was added"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Older documents may carry numeric ids."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('mobile', 'nic', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Older documents may carry numbers; blank values mean absent."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('created_at')
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class Transaction(LedgerModel):
    """
    A single credit or payment for one customer.

    The amount is always positive. Whether it raises or lowers what the
    customer owes is decided by `type`.
    """

    id: str = Field(
        default_factory=generate_id,
        min_length=1,
        description="Unique transaction id"
    )
    customer_id: str = Field(
        ...,
        min_length=1,
        description="Id of the customer this transaction belongs to"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the transaction happened (UTC)"
    )
    amount: Amount
    type: TransactionType
    note: Optional[str] = Field(
        default=None,
        description="Free-text description"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Category label"
    )
    user_id: Optional[UserId] = Field(
        default=None,
        description="Id of the user who recorded it"
    )

    @field_validator('id', 'customer_id', mode='before')
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('note', mode='before')
    @classmethod
    def blank_note_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('category', mode='before')
    @classmethod
    def default_blank_category(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return as_utc(v)


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

class LedgerState(BaseModel):
    """
    Everything the ledger knows, plus the session selections.

    The collections are persisted; selected_customer_id and dashboard_filter
    live only for the session. current_user is persisted as a snapshot.
    """
    model_config = ConfigDict(validate_assignment=False)

    users: list[User] = Field(default_factory=list)
    customers: list[Customer] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    # Session
    current_user: Optional[User] = None
    selected_customer_id: Optional[str] = None
    dashboard_filter: CashFlowWindow = CashFlowWindow.LAST_30_DAYS

    def find_customer(self, customer_id: Optional[str]) -> Optional[Customer]:
        """Look up a customer by id."""
        if customer_id is None:
            return None
        for customer in self.customers:
            if customer.id == customer_id:
                return customer
        return None

    def find_user(self, user_id: Any) -> Optional[User]:
        """Look up a user by id (compared by string form)."""
        for user in self.users:
            if user.matches(user_id):
                return user
        return None

    def to_export_dict(self) -> dict[str, Any]:
        """The five-key document written by export and read back by import."""
        return {
            "users": [u.to_document() for u in self.users],
            "customers": [c.to_document() for c in self.customers],
            "transactions": [t.to_document() for t in self.transactions],
            "categories": list(self.categories),
            "currentUser": self.current_user.to_document() if self.current_user else None,
        }
