"""Product catalog API routes."""

from fastapi import APIRouter

from storefront.schemas.product import ProductResponse
from storefront.services.catalog import get_product as get_catalog_product

router = APIRouter(prefix="/product", tags=["product"])


@router.get(
    "",
    response_model=ProductResponse,
    summary="Get the product",
    description="Returns the product on sale with its color and size variants.",
)
async def get_product() -> ProductResponse:
    """Return the catalog product for the landing page."""
    return get_catalog_product()
