"""Enriched listings built from a primary call plus bounded secondary lookups."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from backoffice.config import settings
from backoffice.enrich.bounded import CapabilityLatch, enrich
from backoffice.enrich.category_tree import flatten_tree, split_path
from backoffice.upstream.client import TSoftClient
from backoffice.upstream.flexible import parse_decimal, parse_int
from backoffice.upstream.models import ApiResult, Order, OrderDetail, Product, ProductImage

logger = logging.getLogger(__name__)

ORDER_DETAILS_CAPABILITY = "order_details"
PRODUCT_IMAGES_CAPABILITY = "product_images"

DETAILS_UNAVAILABLE_WARNING = (
    "Order details are not available from this API. "
    "Item counts and shipping data are not shown."
)
DETAILS_DISABLED_WARNING = (
    "Order details are disabled after an earlier failure. "
    "An administrator can re-enable them."
)
DETAILS_ALL_FAILED_WARNING = "Order details could not be loaded for any order."


@dataclass
class OrderListing:
    """Orders page with advisories for partial enrichment."""

    orders: list[Order]
    warnings: list[str] = field(default_factory=list)
    page: int = 1
    limit: int = 50
    has_more: bool = False
    details_loaded: int = 0


@dataclass
class ProductSummary:
    """Totals shown above a product listing."""

    total: int = 0
    active: int = 0
    total_stock: int = 0
    total_value: Decimal = Decimal("0")
    brands: list[str] = field(default_factory=list)


def apply_images(product: Product, images: list[ProductImage]):
    """Attach images and pick the display image: first primary, else first."""
    if not images:
        return
    primary = next((image for image in images if image.is_primary_image), images[0])
    product.images = images
    product.thumbnail_url = (
        primary.thumbnail_url or primary.thumbnail or primary.image_url or product.thumbnail_url
    )
    product.image_url = primary.image_url or primary.image or product.image_url


def apply_order_details(order: Order, details: list[OrderDetail]):
    """Fold detail rows into their order."""
    order.order_details = details
    order.item_count = len(details)
    if not details:
        return

    first = details[0]
    # Location is copied only when the order carries none
    if not order.city and not order.shipping_city:
        order.city = first.city
        order.shipping_city = first.shipping_city
    if not order.supply_status:
        order.supply_status = first.supply_status


def summarize_products(products: list[Product]) -> ProductSummary:
    """
    Compute listing totals.

    Stock and prices are parsed as invariant decimals; unparsable values
    count as zero.
    """
    summary = ProductSummary(total=len(products))
    brands: set[str] = set()

    for product in products:
        if product.is_active == "1":
            summary.active += 1

        stock = parse_int(product.stock) or 0
        summary.total_stock += stock

        price = parse_decimal(product.selling_price or product.price) or Decimal("0")
        summary.total_value += stock * price

        if product.brand:
            brands.add(product.brand)

    summary.brands = sorted(brands)
    return summary


class CatalogAggregator:
    """
    Builds enhanced product and order listings.

    Owns the order-details capability latch: once the details endpoints
    prove unavailable, later listings skip them until ``reset_order_details``.
    """

    def __init__(self, client: TSoftClient, order_details: Optional[CapabilityLatch] = None):
        self.client = client
        self.order_details = order_details or CapabilityLatch(ORDER_DETAILS_CAPABILITY)

    async def get_enhanced_products(
        self,
        limit: int = 50,
        page: int = 1,
        include_images: bool = True,
    ) -> ApiResult[list[Product]]:
        """
        Get products with category names, category paths and images.

        Args:
            limit: Page size
            page: 1-based page number; images are only fetched for page 1
            include_images: Fetch product images

        Returns:
            The primary failure unchanged, or the enriched products
        """
        result = await self.client.get_products(limit=limit, page=page)
        if not result.success or result.data is None:
            return result

        products = result.data
        await self._attach_categories(products)

        if include_images and page == 1 and products:
            await self._attach_images(products)

        return ApiResult.ok(products, result.messages)

    async def _attach_categories(self, products: list[Product]):
        tree = await self.client.get_category_tree()
        if not tree.success or tree.data is None:
            logger.warning(f"Category tree unavailable, listing without category paths: {tree.first_message}")
            return

        index = flatten_tree(tree.data)
        for product in products:
            category = index.get(product.default_category_code or "")
            if category is None:
                continue
            product.category_name = category.category_name
            product.category_path = split_path(category.path)

    async def _attach_images(self, products: list[Product]):
        head = products[: settings.enhanced_image_product_limit]
        codes = [product.product_code for product in head if product.product_code]

        images = await enrich(
            codes,
            self.client.get_product_images,
            settings.product_image_max_concurrent,
            capability=PRODUCT_IMAGES_CAPABILITY,
        )

        for product in head:
            found = images.get(product.product_code)
            if found:
                apply_images(product, found)

    async def get_orders_with_details(
        self,
        limit: int = 100,
        page: int = 1,
        include_details: bool = True,
    ) -> ApiResult[OrderListing]:
        """
        Get a page of orders enriched with their detail rows.

        The first order acts as a probe for the details capability. A failed
        probe latches the capability off and the page is returned without
        details plus an advisory. Failures of individual lookups after a
        good probe leave those orders unenriched.

        Args:
            limit: Page size
            page: 1-based page number
            include_details: Fetch order details

        Returns:
            ApiResult with an OrderListing; advisories are both in the
            listing and in ``messages``
        """
        offset = (page - 1) * limit
        filters = {"page": str(page), "offset": str(offset), "start": str(offset)}

        result = await self.client.get_orders(limit=limit, filters=filters)
        if not result.success or result.data is None:
            return ApiResult.fail(*result.messages)

        orders = result.data
        listing = OrderListing(
            orders=orders,
            page=page,
            limit=limit,
            has_more=len(orders) >= limit,
        )

        if include_details and orders:
            await self._attach_order_details(listing)

        return ApiResult.ok(listing, listing.warnings)

    async def _attach_order_details(self, listing: OrderListing):
        if not self.order_details.available:
            logger.info("Order details disabled by an earlier failure, skipping")
            listing.warnings.append(DETAILS_DISABLED_WARNING)
            return

        keyed = [(order.lookup_id, order) for order in listing.orders if order.lookup_id]
        if not keyed:
            return

        probe_id = keyed[0][0]
        probe = await self.client.get_order_details_by_order_id(probe_id)
        if not probe.success or probe.data is None:
            self.order_details.trip(probe.first_message)
            listing.warnings.append(DETAILS_UNAVAILABLE_WARNING)
            return

        if not probe.data:
            logger.info(f"Order {probe_id} has no detail rows, skipping detail lookups for this page")
            return

        rest_keys = [key for key, _ in keyed if key != probe_id]
        details = await enrich(
            rest_keys,
            self.client.get_order_details_by_order_id,
            settings.order_detail_max_concurrent,
            capability=ORDER_DETAILS_CAPABILITY,
        )
        details[probe_id] = probe.data

        for key, order in keyed:
            found = details.get(key)
            if found is not None:
                apply_order_details(order, found)

        listing.details_loaded = len(details)
        if rest_keys and len(details) == 1:
            listing.warnings.append(DETAILS_ALL_FAILED_WARNING)

        logger.info(f"Loaded details for {len(details)}/{len(rest_keys) + 1} orders")

    def reset_order_details(self):
        """Re-enable order detail lookups after the latch tripped."""
        self.order_details.reset()
