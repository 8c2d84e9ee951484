"""Product API routes."""

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from src.api.deps import AdminUser, CatalogServiceDep
from src.api.middleware.error_handler import NotFoundError
from src.models.product import ProductCreate as ProductRow, ProductUpdate as ProductPatch
from src.schemas.product import (
    ProductCategory,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    catalog: CatalogServiceDep,
    category: Annotated[ProductCategory | None, Query(description="Filter by category")] = None,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    page_size: Annotated[int, Query(description="Results per page (clamped to 1..50)")] = 12,
    sort: Annotated[str, Query(description="created_at, price_cents or name; prefix '-' for descending")] = "-created_at",
) -> ProductListResponse:
    """List products with optional category filter, sorting and pagination.

    Products are publicly readable.
    """
    result = await catalog.list_products(category=category, page=page, page_size=page_size, sort=sort)
    return ProductListResponse(
        items=[ProductResponse(**p) for p in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        pages=result["pages"],
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, catalog: CatalogServiceDep) -> ProductResponse:
    """Get a product by ID."""
    product = await catalog.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return ProductResponse(**product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    catalog: CatalogServiceDep,
    admin: AdminUser,
) -> ProductResponse:
    """Create a new product. Admin only."""
    product = await catalog.create_product(ProductRow(**data.model_dump(mode="json")))
    return ProductResponse(**product)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    catalog: CatalogServiceDep,
    admin: AdminUser,
) -> ProductResponse:
    """Partially update a product. Admin only.

    Only fields present in the body are written.
    """
    product = await catalog.update_product(product_id, ProductPatch(**data.model_dump(mode="json", exclude_unset=True)))
    if not product:
        raise NotFoundError("Product not found")
    return ProductResponse(**product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    catalog: CatalogServiceDep,
    admin: AdminUser,
) -> Response:
    """Delete a product. Admin only.

    Orders keep their own snapshots of the product's name and price.
    """
    if not await catalog.delete_product(product_id):
        raise NotFoundError("Product not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
