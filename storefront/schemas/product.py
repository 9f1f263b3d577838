"""Product Pydantic schemas for API request/response models."""

from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from storefront.schemas.common import CamelModel

MAX_QUANTITY = 99


class ProductVariantsSchema(CamelModel):
    """Available variant options."""

    color: list[str] = Field(description="Available colors")
    size: list[str] = Field(description="Available sizes")


class ProductResponse(CamelModel):
    """Schema for the catalog product."""

    id: str = Field(description="Product identifier")
    name: str = Field(description="Product name")
    description: str = Field(description="Product description")
    price: float = Field(description="Unit price")
    image: str = Field(description="Product image URL")
    variants: ProductVariantsSchema = Field(description="Available variants")
    max_quantity: int = Field(description="Largest quantity accepted per order")


class ProductSelection(CamelModel):
    """A shopper's product choice carried from the landing page to checkout.

    When validated with a ``variants`` context (a ``ProductVariantsSchema``),
    color and size must also be offered by that product.
    """

    color: str = Field(min_length=1, description="Selected color")
    size: str = Field(min_length=1, description="Selected size")
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY, description="Quantity to buy")

    @field_validator("color", "size")
    @classmethod
    def check_variant_offered(cls, value: str, info: ValidationInfo) -> str:
        variants: Any = (info.context or {}).get("variants")
        if variants is not None and value not in getattr(variants, info.field_name):
            raise PydanticCustomError(
                "variant_unavailable",
                "{field} '{value}' is not available",
                {"field": info.field_name.capitalize(), "value": value},
            )
        return value
