"""Order routes."""

from fastapi import APIRouter, Depends, Query

from backoffice.api.deps import get_aggregator, get_client, unwrap
from backoffice.enrich.aggregates import CatalogAggregator
from backoffice.upstream.client import TSoftClient
from backoffice.upstream.models import to_wire

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def list_orders(
    limit: int = Query(100, ge=1, le=500),
    page: int = Query(1, ge=1),
    include_details: bool = True,
    aggregator: CatalogAggregator = Depends(get_aggregator),
):
    """
    List orders with their detail rows.

    Detail enrichment is best-effort: when it is unavailable the orders are
    still returned and ``warnings`` says why.
    """
    result = await aggregator.get_orders_with_details(
        limit=limit, page=page, include_details=include_details
    )
    unwrap(result)
    listing = result.data
    return {
        "success": True,
        "data": to_wire(listing.orders),
        "warnings": listing.warnings,
        "page": listing.page,
        "limit": listing.limit,
        "has_more": listing.has_more,
        "details_loaded": listing.details_loaded,
    }


@router.get("/{order_id}/details")
async def get_order_details(order_id: str, client: TSoftClient = Depends(get_client)):
    return unwrap(await client.get_order_details_by_order_id(order_id))
