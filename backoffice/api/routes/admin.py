"""Administrative routes."""

import logging

from fastapi import APIRouter, Depends

from backoffice.api.deps import get_aggregator, require_admin_api_key
from backoffice.enrich.aggregates import CatalogAggregator

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_api_key)],
)


@router.get("/order-details")
async def order_details_status(aggregator: CatalogAggregator = Depends(get_aggregator)):
    """Current state of the order details capability."""
    return aggregator.order_details.status()


@router.post("/order-details/reset")
async def reset_order_details(aggregator: CatalogAggregator = Depends(get_aggregator)):
    """Re-enable order detail lookups after they were switched off."""
    aggregator.reset_order_details()
    logger.info("Order details capability reset by admin")
    return {"success": True, **aggregator.order_details.status()}
