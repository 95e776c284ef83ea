"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from backoffice.api.routes import admin, categories, customers, lookups, orders, products
from backoffice.config import settings
from backoffice.enrich.aggregates import CatalogAggregator
from backoffice.upstream.client import TSoftClient

# Configure structured logging
from backoffice.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting T-Soft back-office gateway...")

    # A missing token raises ConfigurationError here, before any request
    client = TSoftClient()
    app.state.client = client
    app.state.aggregator = CatalogAggregator(client)
    logger.info(f"Upstream: {client.transport.base_url}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await client.close()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="T-Soft Back-Office Gateway",
    description="Normalized access to the T-Soft e-commerce API",
    version="0.1.0",
    lifespan=lifespan,
)

# Add Prometheus instrumentation
instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_respect_env_var=False,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/metrics", "/health"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

# Include API routes
app.include_router(products.router)
app.include_router(categories.router)
app.include_router(customers.router)
app.include_router(orders.router)
app.include_router(lookups.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    # Run with uvicorn
    uvicorn.run(
        "backoffice.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
