"""Customer routes."""

from fastapi import APIRouter, Depends, Query

from backoffice.api.deps import get_client, unwrap
from backoffice.upstream.client import TSoftClient

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("")
async def list_customers(
    limit: int = Query(50, ge=1, le=500),
    client: TSoftClient = Depends(get_client),
):
    return unwrap(await client.get_customers(limit=limit))


@router.get("/{customer_id}")
async def get_customer(customer_id: str, client: TSoftClient = Depends(get_client)):
    return unwrap(await client.get_customer_by_id(customer_id))
