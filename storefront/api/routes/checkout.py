"""Checkout and order API routes."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from storefront.api.deps import OrderServiceDep
from storefront.api.middleware.error_handler import BadRequestError
from storefront.schemas.checkout import (
    CheckoutRequest,
    CheckoutResponse,
    OrderResponse,
    StatusPageResponse,
)
from storefront.schemas.common import ErrorResponse
from storefront.services.checkout_flow import build_status_page

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="Validates the checkout form, records the simulated payment outcome and persists the order.",
    responses={
        422: {"model": ErrorResponse, "description": "Invalid checkout data"},
        500: {"model": ErrorResponse, "description": "Order could not be saved"},
    },
)
async def create_checkout(data: CheckoutRequest, service: OrderServiceDep) -> CheckoutResponse:
    """Create an order from a checkout submission.

    The confirmation or failure email is sent in the background; the
    response does not wait for it.

    Args:
        data: Customer form, product snapshot, chosen outcome and total.
        service: Order service.

    Returns:
        CheckoutResponse: ``{"success": true, "orderId": ...}``.
    """
    order = await service.create_order(
        customer=data.customer,
        product=data.product,
        payment_status=data.payment_status,
        total=data.total,
    )
    return CheckoutResponse(order_id=order["orderId"])


# Orders router - mounted separately at /orders
orders_router = APIRouter(prefix="/orders", tags=["orders"])


@orders_router.get(
    "",
    response_model=OrderResponse,
    summary="Get order by ID",
    description="Returns a single order by its order ID.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing orderId"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
async def get_order(
    service: OrderServiceDep,
    order_id: Annotated[str | None, Query(alias="orderId", description="Order identifier")] = None,
) -> OrderResponse:
    """Get a single order by ID.

    Raises:
        BadRequestError: 400 if orderId is missing.
        NotFoundError: 404 if order not found.
    """
    if not order_id:
        raise BadRequestError("Order ID is required")

    order = await service.get_order_by_id(order_id)
    return OrderResponse.model_validate(order)


@orders_router.get(
    "/{order_id}/status",
    response_model=StatusPageResponse,
    summary="Order status page",
    description="Outcome-specific content for the order status (thank-you) page.",
    responses={404: {"model": ErrorResponse, "description": "Order not found"}},
)
async def get_order_status(
    order_id: str,
    service: OrderServiceDep,
    status_override: Annotated[
        str | None, Query(alias="status", description="Outcome to display instead of the stored one")
    ] = None,
) -> StatusPageResponse:
    """Render the status page for an order.

    Args:
        order_id: Order identifier.
        service: Order service.
        status_override: Optional ``status`` query parameter set by the redirect.

    Returns:
        StatusPageResponse: Page content for the effective outcome.
    """
    order = await service.get_order_by_id(order_id)
    return build_status_page(order, status_override)
