"""Database model type definitions."""

from storefront.models.order import (
    PAYMENT_STATUSES,
    CustomerSnapshot,
    Order,
    OrderRow,
    PaymentSnapshot,
    PaymentStatus,
    ProductSnapshot,
    ProductVariant,
)

__all__ = [
    "PAYMENT_STATUSES",
    "CustomerSnapshot",
    "Order",
    "OrderRow",
    "PaymentSnapshot",
    "PaymentStatus",
    "ProductSnapshot",
    "ProductVariant",
]
