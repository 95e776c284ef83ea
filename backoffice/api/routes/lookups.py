"""Reference data routes used by order screens."""

from fastapi import APIRouter, Depends

from backoffice.api.deps import get_client, unwrap
from backoffice.upstream.client import TSoftClient

router = APIRouter(prefix="/api/lookups", tags=["lookups"])


@router.get("/payment-types")
async def payment_types(client: TSoftClient = Depends(get_client)):
    return unwrap(await client.get_payment_types())


@router.get("/cargo-companies")
async def cargo_companies(client: TSoftClient = Depends(get_client)):
    return unwrap(await client.get_cargo_companies())


@router.get("/order-statuses")
async def order_statuses(client: TSoftClient = Depends(get_client)):
    return unwrap(await client.get_order_status_list())
