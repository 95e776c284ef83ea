"""FastAPI dependencies."""

from typing import Any

from fastapi import Header, HTTPException, Request, status

from backoffice.config import settings
from backoffice.enrich.aggregates import CatalogAggregator
from backoffice.upstream.client import TSoftClient
from backoffice.upstream.models import ApiResult


def get_client(request: Request) -> TSoftClient:
    """Dependency for the shared upstream client."""
    return request.app.state.client


def get_aggregator(request: Request) -> CatalogAggregator:
    """Dependency for the shared aggregator (owns the capability latches)."""
    return request.app.state.aggregator


def unwrap(result: ApiResult) -> dict[str, Any]:
    """
    Turn an operation result into a response body.

    Raises:
        HTTPException: 502 with the result payload if the upstream call failed
    """
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.to_dict(),
        )
    return result.to_dict()


async def require_admin_api_key(
    x_admin_api_key: str = Header(..., alias="X-Admin-API-Key")
) -> None:
    """
    Dependency to require admin API key for protected endpoints.

    Args:
        x_admin_api_key: Admin API key from X-Admin-API-Key header

    Raises:
        HTTPException: 503 if no key is configured, 403 if invalid
    """
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key not configured"
        )

    if x_admin_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin API key"
        )
