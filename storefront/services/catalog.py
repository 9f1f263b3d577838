"""Catalog for the single product sold by the storefront."""

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from storefront.api.middleware.error_handler import ValidationError
from storefront.models.order import ProductSnapshot
from storefront.schemas.product import MAX_QUANTITY, ProductResponse, ProductSelection, ProductVariantsSchema

PRODUCT = ProductResponse(
    id="1",
    name="Premium T-Shirt",
    description="Comfortable cotton t-shirt perfect for everyday wear.",
    price=29.99,
    image="https://image.hm.com/assets/hm/05/66/05664a801dd930fcfcee8bc419221598e426794b.jpg",
    variants=ProductVariantsSchema(
        color=["Black", "White", "Blue", "Red", "Green", "Gray"],
        size=["S", "M", "L", "XL"],
    ),
    max_quantity=MAX_QUANTITY,
)


def get_product() -> ProductResponse:
    """Return the catalog product."""
    return PRODUCT


def validate_product_selection(
    selection: ProductSelection | Mapping[str, Any],
    product: ProductResponse = PRODUCT,
) -> ProductSnapshot:
    """Check a selection against the catalog and snapshot it.

    Args:
        selection: Color, size and quantity picked by the shopper.
        product: Catalog product to check against.

    Returns:
        ProductSnapshot: Name and price copied from the catalog at this moment.

    Raises:
        ValidationError: One detail entry per invalid part of the selection.
    """
    if isinstance(selection, ProductSelection):
        selection = selection.model_dump()

    try:
        checked = ProductSelection.model_validate(selection, context={"variants": product.variants})
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "Product selection is invalid") from e

    return {
        "name": product.name,
        "price": product.price,
        "variant": {"color": checked.color, "size": checked.size},
        "quantity": checked.quantity,
    }
