"""Checkout and order Pydantic schemas for API request/response models.

Every schema here uses the camelCase ``CamelModel`` base; the customer form
itself lives with its rules in ``storefront.services.validation``.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from storefront.models.order import PaymentStatus
from storefront.schemas.common import CamelModel
from storefront.services.validation import CheckoutForm

# Largest difference still counted as the same amount of cents
HALF_CENT = Decimal("0.005")


class VariantSchema(CamelModel):
    """Selected product variant."""

    color: str = Field(min_length=1, description="Selected color")
    size: str = Field(min_length=1, description="Selected size")


class ProductSnapshotSchema(CamelModel):
    """Product snapshot submitted with the checkout."""

    name: str = Field(min_length=1, description="Product name")
    price: float = Field(gt=0, allow_inf_nan=False, description="Unit price at purchase time")
    variant: VariantSchema = Field(description="Selected variant")
    quantity: int = Field(ge=1, description="Quantity ordered")


class CheckoutRequest(CamelModel):
    """Schema for POST /checkout."""

    customer: CheckoutForm = Field(description="Checkout form fields")
    product: ProductSnapshotSchema = Field(description="Product selection")
    payment_status: PaymentStatus = Field(description="Simulated payment outcome chosen by the shopper")
    total: float = Field(gt=0, allow_inf_nan=False, description="Order total, price times quantity")

    @field_validator("total")
    @classmethod
    def total_matches_product(cls, value: float, info: ValidationInfo) -> float:
        """Require the total to equal price times quantity, to the cent."""
        product = info.data.get("product")
        if product is None:
            return value
        expected = Decimal(str(product.price)) * product.quantity
        if abs(Decimal(str(value)) - expected) >= HALF_CENT:
            raise PydanticCustomError(
                "total_mismatch",
                "Total must equal price times quantity ({expected})",
                {"expected": f"{expected:.2f}"},
            )
        return value


class CheckoutResponse(CamelModel):
    """Schema for checkout creation response."""

    success: bool = Field(default=True, description="Whether the order was created")
    order_id: str = Field(description="Created order identifier")


class CustomerSnapshotSchema(CamelModel):
    """Stored customer snapshot."""

    full_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str


class PaymentSnapshotSchema(CamelModel):
    """Stored payment outcome with the card reduced to its last 4 digits."""

    card_number: str = Field(description="Last 4 digits of the card")
    status: PaymentStatus = Field(description="Payment outcome")


class OrderResponse(CamelModel):
    """Schema for order API responses."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    order_id: str = Field(description="Order unique identifier")
    product: ProductSnapshotSchema = Field(description="Product snapshot")
    customer: CustomerSnapshotSchema = Field(description="Customer snapshot")
    payment: PaymentSnapshotSchema = Field(description="Payment outcome")
    total: float = Field(description="Order total")
    created_at: datetime = Field(description="Creation timestamp")


class StatusPageResponse(CamelModel):
    """Outcome-specific content for the order status (thank-you) page."""

    order_id: str = Field(description="Order identifier")
    status: PaymentStatus = Field(description="Outcome being displayed")
    title: str = Field(description="Page heading")
    message: str = Field(description="Lead message")
    guidance: list[str] = Field(default_factory=list, description="Next steps for the shopper")
    masked_card: str = Field(description="Card in display form, last 4 digits only")
    order: OrderResponse | None = Field(
        default=None, description="Order details, only shown for approved orders"
    )
