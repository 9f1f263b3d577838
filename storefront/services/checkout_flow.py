"""Checkout flow state machine and order status page content.

A checkout moves through::

    SELECTING_PRODUCT -> FILLING_FORM -> AWAITING_OUTCOME_CHOICE -> SUBMITTING -> DONE

The payment outcome is picked by the shopper (it stands in for a payment
gateway). A failed submission leaves the flow in SUBMITTING until ``retry``
is called; nothing is retried automatically.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

from storefront.api.middleware.error_handler import APIError
from storefront.core.config import get_settings
from storefront.models.order import PAYMENT_STATUSES, Order, ProductSnapshot
from storefront.schemas.checkout import OrderResponse, StatusPageResponse
from storefront.schemas.product import ProductSelection
from storefront.services.catalog import validate_product_selection
from storefront.services.order_service import OrderService
from storefront.services.validation import CheckoutForm, mask_card_number, validate_checkout_form

logger = logging.getLogger(__name__)

GENERIC_SUBMIT_ERROR = "Something went wrong while placing your order. Please try again."


class CheckoutState(str, Enum):
    """Checkout flow states."""

    SELECTING_PRODUCT = "selecting_product"
    FILLING_FORM = "filling_form"
    AWAITING_OUTCOME_CHOICE = "awaiting_outcome_choice"
    SUBMITTING = "submitting"
    DONE = "done"


class CheckoutStateError(Exception):
    """An operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state: CheckoutState) -> None:
        super().__init__(f"Cannot {operation} while {state.value}")
        self.operation = operation
        self.state = state


class CheckoutFlow:
    """Drives one shopper through a checkout attempt."""

    def __init__(
        self,
        order_service: OrderService,
        approval_delay_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the flow in SELECTING_PRODUCT.

        Args:
            order_service: Service used to persist the order.
            approval_delay_seconds: Confirmation delay before an approved order is
                submitted, defaults to the configured value.
            sleep: Awaitable sleep, replaceable in tests.
        """
        if approval_delay_seconds is None:
            approval_delay_seconds = get_settings().approval_delay_seconds
        self.order_service = order_service
        self.approval_delay_seconds = approval_delay_seconds
        self._sleep = sleep

        self.state = CheckoutState.SELECTING_PRODUCT
        self.product: ProductSnapshot | None = None
        self.form: CheckoutForm | None = None
        self.outcome: str | None = None
        self.order: Order | None = None
        self.error: str | None = None

    def _require(self, operation: str, *states: CheckoutState) -> None:
        if self.state not in states:
            raise CheckoutStateError(operation, self.state)

    @property
    def total(self) -> float | None:
        """Price times quantity for the current selection."""
        if self.product is None:
            return None
        return round(self.product["price"] * self.product["quantity"], 2)

    def select_product(self, selection: ProductSelection | Mapping[str, Any]) -> ProductSnapshot:
        """Pick a variant and quantity ("buy now").

        Raises:
            ValidationError: If the variant or quantity is not offered.
        """
        self._require("select a product", CheckoutState.SELECTING_PRODUCT)
        self.product = validate_product_selection(selection)
        self.state = CheckoutState.FILLING_FORM
        return self.product

    def submit_form(self, fields: Mapping[str, Any]) -> CheckoutForm:
        """Validate the checkout form.

        On failure the flow stays in FILLING_FORM so the shopper can fix the
        reported fields.

        Raises:
            ValidationError: One detail entry per invalid field.
        """
        self._require("submit the form", CheckoutState.FILLING_FORM)
        self.form = validate_checkout_form(fields)
        self.state = CheckoutState.AWAITING_OUTCOME_CHOICE
        return self.form

    async def choose_outcome(self, outcome: str) -> Order:
        """Pick the simulated payment outcome and place the order.

        ``approved`` plays the confirmation delay first.

        Raises:
            ValueError: If the outcome is not approved/declined/error.
            APIError: If the order could not be created.
        """
        self._require("choose an outcome", CheckoutState.AWAITING_OUTCOME_CHOICE)
        if outcome not in PAYMENT_STATUSES:
            raise ValueError(f"Unknown outcome {outcome!r}")

        self.outcome = outcome
        if outcome == "approved" and self.approval_delay_seconds > 0:
            await self._sleep(self.approval_delay_seconds)

        self.state = CheckoutState.SUBMITTING
        return await self._submit()

    async def retry(self) -> Order:
        """Resubmit after a failed submission."""
        self._require("retry", CheckoutState.SUBMITTING)
        return await self._submit()

    async def _submit(self) -> Order:
        self.error = None
        try:
            order = await self.order_service.create_order(
                customer=self.form,
                product=self.product or {},
                payment_status=self.outcome,
                total=self.total,
            )
        except APIError as e:
            logger.warning("Checkout submission failed: %s", e.message)
            self.error = GENERIC_SUBMIT_ERROR
            raise

        self.order = order
        self.state = CheckoutState.DONE
        return order

    @property
    def redirect_url(self) -> str | None:
        """Status page address once DONE.

        Non-approved outcomes are also carried as a ``status`` query parameter.
        """
        if self.state is not CheckoutState.DONE or self.order is None:
            return None
        url = f"/thank-you/{self.order['orderId']}"
        if self.outcome != "approved":
            url = f"{url}?status={self.outcome}"
        return url


def build_status_page(order: Order, status_override: str | None = None) -> StatusPageResponse:
    """Render the outcome-specific content of the order status page.

    Args:
        order: The stored order.
        status_override: Outcome from the ``status`` query parameter; wins over
            the stored outcome when it is a valid one.

    Returns:
        StatusPageResponse: Page content for the effective outcome.
    """
    status = order["payment"]["status"]
    if status_override in PAYMENT_STATUSES:
        status = status_override

    masked_card = mask_card_number(order["payment"]["cardNumber"])
    order_id = order["orderId"]

    if status == "approved":
        return StatusPageResponse(
            order_id=order_id,
            status=status,
            title="Order Confirmed!",
            message="Thank you for your purchase",
            guidance=[
                f"A confirmation email has been sent to {order['customer']['email']}",
                "Your order is being prepared for shipment",
                "Delivery takes 3-5 business days",
            ],
            masked_card=masked_card,
            order=OrderResponse.model_validate(order),
        )

    if status == "declined":
        return StatusPageResponse(
            order_id=order_id,
            status=status,
            title="Payment Declined",
            message="Your card was declined by the bank",
            guidance=[
                "Insufficient funds",
                "Incorrect card information",
                "Card security restrictions",
                "Daily transaction limit exceeded",
                "Please check your card details or use a different card and try again",
            ],
            masked_card=masked_card,
        )

    return StatusPageResponse(
        order_id=order_id,
        status=status,
        title="Payment Gateway Error",
        message="A technical error occurred during payment processing",
        guidance=[
            "Your card has not been charged",
            "Please wait a few minutes and try again",
            f"If the problem persists, contact support and mention order {order_id}",
        ],
        masked_card=masked_card,
    )
