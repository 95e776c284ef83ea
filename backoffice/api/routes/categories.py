"""Category routes."""

from fastapi import APIRouter, Depends

from backoffice.api.deps import get_client, unwrap
from backoffice.upstream.client import TSoftClient

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(client: TSoftClient = Depends(get_client)):
    """Flat category list."""
    return unwrap(await client.get_categories())


@router.get("/tree")
async def category_tree(client: TSoftClient = Depends(get_client)):
    """Category hierarchy with display paths."""
    return unwrap(await client.get_category_tree())
