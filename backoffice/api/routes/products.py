"""Product routes."""

import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator

from backoffice.api.deps import get_aggregator, get_client, unwrap
from backoffice.enrich.aggregates import CatalogAggregator, summarize_products
from backoffice.upstream.client import DEFAULT_CATEGORY_CODE, TSoftClient
from backoffice.upstream.models import Product, to_wire

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductCreate(BaseModel):
    product_code: str
    product_name: str
    category_code: str = DEFAULT_CATEGORY_CODE
    price: Decimal = Decimal("0")
    stock: int = 0
    extra_fields: Optional[dict[str, Any]] = None

    @field_validator("product_code", "product_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class BulkImagesRequest(BaseModel):
    product_codes: list[str]
    max_parallel: Optional[int] = Field(default=None, ge=1, le=20)


@router.get("")
async def list_products(
    limit: int = Query(50, ge=1, le=500),
    page: int = Query(1, ge=1),
    search: Optional[str] = None,
    client: TSoftClient = Depends(get_client),
):
    """List products as returned by the upstream."""
    return unwrap(await client.get_products(limit=limit, page=page, search=search))


@router.get("/enhanced")
async def list_enhanced_products(
    limit: int = Query(50, ge=1, le=500),
    page: int = Query(1, ge=1),
    include_images: bool = True,
    aggregator: CatalogAggregator = Depends(get_aggregator),
):
    """List products with category paths, images (page 1) and listing totals."""
    result = await aggregator.get_enhanced_products(limit=limit, page=page, include_images=include_images)
    body = unwrap(result)
    summary = summarize_products(result.data)
    body["summary"] = {**asdict(summary), "total_value": str(summary.total_value)}
    return body


@router.post("", status_code=201)
async def create_product(
    product: ProductCreate,
    client: TSoftClient = Depends(get_client),
):
    """Create a single product."""
    result = await client.create_product(
        product.product_code,
        product.product_name,
        product.category_code,
        product.price,
        product.stock,
        product.extra_fields,
    )
    if result.success:
        logger.info(f"Created product {product.product_code}")
    return unwrap(result)


@router.post("/bulk")
async def create_products(
    products: list[dict[str, Any]],
    client: TSoftClient = Depends(get_client),
):
    """Create products one by one; the response lists what failed."""
    records = [Product.model_validate(item) for item in products]
    result = await client.create_products(records)
    # Partial failures still carry the per-product report
    return result.to_dict()


@router.post("/images")
async def get_bulk_product_images(
    request: BulkImagesRequest,
    client: TSoftClient = Depends(get_client),
):
    """Images for many products; products whose lookup failed are absent."""
    images = await client.get_bulk_product_images(request.product_codes, request.max_parallel)
    return {"success": True, "data": to_wire(images), "messages": []}


@router.get("/{product_code}/images")
async def get_product_images(
    product_code: str,
    client: TSoftClient = Depends(get_client),
):
    """Images for one product."""
    return unwrap(await client.get_product_images(product_code))
