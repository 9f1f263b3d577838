"""Order creation and lookup business logic service."""

import logging
import secrets
import string
import time
from datetime import date, datetime, timezone
from typing import Any, Mapping

from postgrest.exceptions import APIError as PostgrestAPIError
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from storefront.api.middleware.error_handler import NotFoundError, PersistenceError, ValidationError
from storefront.core.config import get_settings
from storefront.models.order import Order, OrderRow
from storefront.schemas.checkout import CheckoutRequest, ProductSnapshotSchema
from storefront.services.notification_service import NotificationDispatcher
from storefront.services.validation import CheckoutForm

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "ORD"
ORDER_ID_SUFFIX_LENGTH = 9
ORDER_ID_ALPHABET = string.digits + string.ascii_uppercase

# Postgres error code for unique_violation
UNIQUE_VIOLATION = "23505"


def generate_order_id() -> str:
    """Build an order ID: ``ORD-<epoch ms>-<9 random base-36 chars>``."""
    suffix = "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_SUFFIX_LENGTH))
    return f"{ORDER_ID_PREFIX}-{int(time.time() * 1000)}-{suffix}"


def order_from_row(row: Mapping[str, Any]) -> Order:
    """Convert an orders table row to the API shape."""
    return {
        "orderId": row["order_id"],
        "product": row["product"],
        "customer": row["customer"],
        "payment": row["payment"],
        "total": float(row["total"]),
        "createdAt": row["created_at"],
    }


class OrderService:
    """Service for persisting and reading orders.

    Orders are written once and never updated or deleted.
    """

    def __init__(
        self,
        client: Client,
        notifications: NotificationDispatcher | None = None,
        table: str | None = None,
    ) -> None:
        """Initialize order service.

        Args:
            client: Supabase client created at application startup.
            notifications: Dispatcher for order emails; no email is sent when omitted.
            table: Orders table name, defaults to the configured one.
        """
        self.client = client
        self.notifications = notifications
        self.table = table or get_settings().orders_table

    async def create_order(
        self,
        customer: CheckoutForm | Mapping[str, Any],
        product: ProductSnapshotSchema | Mapping[str, Any],
        payment_status: str,
        total: Any,
        today: date | None = None,
    ) -> Order:
        """Validate, snapshot and persist a checkout attempt.

        The card number is reduced to its last 4 digits and the CVV is
        dropped before anything is written.

        Args:
            customer: Validated form, or raw fields keyed by wire name (``fullName``...).
            product: Product snapshot ``{name, price, variant: {color, size}, quantity}``.
            payment_status: Simulated outcome, one of approved/declined/error.
            total: Client-supplied total; must equal price times quantity.
            today: Reference date for the card expiry check.

        Returns:
            Order: The stored order.

        Raises:
            ValidationError: If any field is missing or invalid.
            PersistenceError: If the insert fails, including a duplicate order ID.
        """
        try:
            request = CheckoutRequest.model_validate(
                {
                    "customer": customer,
                    "product": product,
                    "paymentStatus": payment_status,
                    "total": total,
                },
                context={"today": today},
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid checkout data") from e

        form = request.customer
        order_id = generate_order_id()
        row: OrderRow = {
            "order_id": order_id,
            "product": request.product.model_dump(),
            "customer": form.to_customer_snapshot(),
            "payment": {"cardNumber": form.card_last4, "status": request.payment_status},
            "total": request.total,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.info("Creating order %s (%s)", order_id, request.payment_status)

        try:
            response = self.client.table(self.table).insert(row).execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise PersistenceError(cause=f"Duplicate order ID {order_id}: {e.message}") from e
            raise PersistenceError(cause=f"Insert failed for {order_id}: {e.message}") from e
        except Exception as e:
            raise PersistenceError(cause=f"Store unavailable while saving {order_id}: {e}") from e

        if not response.data:
            raise PersistenceError(cause=f"Insert for {order_id} returned no data")

        order = order_from_row(response.data[0])
        logger.info("Order %s saved", order_id)

        if self.notifications is not None:
            self.notifications.dispatch(order)

        return order

    async def get_order_by_id(self, order_id: str) -> Order:
        """Get an order by its order ID.

        Args:
            order_id: Exact order identifier.

        Returns:
            Order: The stored order.

        Raises:
            NotFoundError: If no order has this ID.
            PersistenceError: If the store cannot be queried.
        """
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("order_id", order_id)
                .maybe_single()
                .execute()
            )
        except PostgrestAPIError as e:
            # Older clients report an empty maybe_single() result as HTTP 204
            if str(e.code) == "204":
                response = None
            else:
                raise PersistenceError("Failed to fetch order", cause=f"Lookup of {order_id} failed: {e.message}") from e
        except Exception as e:
            raise PersistenceError("Failed to fetch order", cause=f"Store unavailable looking up {order_id}: {e}") from e

        if not response or not response.data:
            raise NotFoundError("Order not found")

        return order_from_row(response.data)
