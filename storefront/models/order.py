"""Order model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict, get_args


# Simulated payment gateway outcome, chosen by the shopper
PaymentStatus = Literal["approved", "declined", "error"]
PAYMENT_STATUSES: tuple[str, ...] = get_args(PaymentStatus)


class ProductVariant(TypedDict):
    """Selected variant of the product."""

    color: str
    size: str


class ProductSnapshot(TypedDict):
    """Product as it was at purchase time.

    Stored as the product JSONB column. Never a reference to the catalog.
    """

    name: str
    price: float
    variant: ProductVariant
    quantity: int


class CustomerSnapshot(TypedDict):
    """Normalized billing/shipping fields, stored as the customer JSONB column."""

    fullName: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zipCode: str


class PaymentSnapshot(TypedDict):
    """Payment outcome. ``cardNumber`` only ever holds the last 4 digits."""

    cardNumber: str
    status: PaymentStatus


class OrderRow(TypedDict):
    """Orders table row representation.

    Maps directly to the database schema; ``order_id`` carries a unique
    constraint and rows are never updated after insert.
    """

    order_id: str
    product: ProductSnapshot
    customer: CustomerSnapshot
    payment: PaymentSnapshot
    total: float
    created_at: datetime | str


class Order(TypedDict):
    """Order as exposed by the API and the order service."""

    orderId: str
    product: ProductSnapshot
    customer: CustomerSnapshot
    payment: PaymentSnapshot
    total: float
    createdAt: datetime | str
