"""T-Soft API client: one method per logical upstream operation."""

import json
import logging
from decimal import Decimal
from typing import Any, Optional, Union

import httpx

from backoffice.config import settings
from backoffice.enrich.bounded import enrich
from backoffice.enrich.category_tree import build_tree, compute_paths
from backoffice.upstream.endpoints import EndpointCandidate
from backoffice.upstream.flexible import parse_decimal, parse_int
from backoffice.upstream.http_client import UpstreamTransport
from backoffice.upstream.models import (
    ApiResult,
    CargoCompany,
    Category,
    Customer,
    Order,
    OrderDetail,
    OrderStatusInfo,
    PaymentType,
    Product,
    ProductImage,
)
from backoffice.upstream.requester import MultiEndpointRequester

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_CODE = "T1"
DEFAULT_VAT = 18


def _category_id(category_code: Optional[str]) -> int:
    """Numeric id for the V3 relation hierarchy: "T12" -> 12, anything unparsable -> 1."""
    digits = (category_code or "").lstrip("Tt")
    return int(digits) if digits.isdigit() else 1


def _vat(value: Any) -> int:
    """VAT rate as an integer percentage; missing or unparsable values use the default."""
    if value is None:
        return DEFAULT_VAT
    rate = parse_int(str(value))
    return rate if rate is not None else DEFAULT_VAT


def _page_filters(limit: int, page: int) -> dict[str, str]:
    offset = (page - 1) * limit
    return {"page": str(page), "offset": str(offset), "start": str(offset)}


def _first(data: Union[Any, list[Any]]) -> Optional[Any]:
    if isinstance(data, list):
        return data[0] if data else None
    return data


class TSoftClient:
    """
    Client for the T-Soft e-commerce API.

    Every method returns an ApiResult; upstream problems never raise.
    Endpoint fallback is handled by the requester.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        debug: Optional[bool] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        operations: Optional[dict[str, tuple[EndpointCandidate, ...]]] = None,
    ):
        """
        Initialize the client.

        Args:
            token: API token (defaults to config)
            base_url: API base URL (defaults to config)
            timeout: Per-call timeout in seconds (defaults to config)
            debug: Verbose request/response logging (defaults to config)
            http_client: Optional pre-built httpx client
            operations: Optional endpoint registry override

        Raises:
            ConfigurationError: If no token is configured
        """
        self.transport = UpstreamTransport(
            token=token if token is not None else settings.tsoft_api_token,
            base_url=base_url or settings.tsoft_base_url,
            timeout=timeout,
            debug=settings.tsoft_debug if debug is None else debug,
            client=http_client,
        )
        self.requester = MultiEndpointRequester(self.transport, operations)

    async def close(self):
        await self.transport.close()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def get_products(
        self,
        limit: int = 50,
        page: int = 1,
        search: Optional[str] = None,
        filters: Optional[dict[str, str]] = None,
    ) -> ApiResult[list[Product]]:
        """
        Get a page of products.

        Args:
            limit: Page size
            page: 1-based page number
            search: Free-text search (V3 only)
            filters: Extra upstream parameters sent to every candidate

        Returns:
            ApiResult with the product list
        """
        form = {"limit": str(limit)}
        if page > 1:
            form.update(_page_filters(limit, page))
        form.update(filters or {})

        query = {"page": str(page), "limit": str(limit)}
        if search and search.strip():
            query["search"] = search.strip()
        query.update(filters or {})

        return await self.requester.call("get_products", list[Product], form=form, query=query)

    async def get_product_images(self, product_code: str) -> ApiResult[list[ProductImage]]:
        return await self.requester.call(
            "get_product_images",
            list[ProductImage],
            form={"ProductCode": product_code},
        )

    async def get_bulk_product_images(
        self,
        product_codes: list[str],
        max_parallel: Optional[int] = None,
    ) -> dict[str, list[ProductImage]]:
        """
        Fetch images for many products concurrently.

        Products whose lookup fails are absent from the result.
        """
        codes = [code for code in product_codes if code]
        return await enrich(
            codes,
            self.get_product_images,
            max_parallel or settings.bulk_image_max_concurrent,
            capability="product_images",
        )

    async def get_categories(self) -> ApiResult[list[Category]]:
        return await self.requester.call("get_categories", list[Category], form={})

    async def get_category_tree(self) -> ApiResult[list[Category]]:
        """
        Get the category hierarchy with display paths.

        Uses the tree endpoint when the deployment serves one, otherwise
        builds the tree from the flat category list.
        """
        tree = await self.requester.call("get_category_tree", list[Category], form={})
        if tree.success and tree.data is not None:
            roots = build_tree(tree.data)
            compute_paths(roots)
            return ApiResult.ok(roots, tree.messages)

        logger.info("Category tree endpoint unavailable, building from flat categories")
        flat = await self.get_categories()
        if not flat.success or flat.data is None:
            return ApiResult.fail(*flat.messages)

        roots = build_tree(flat.data)
        compute_paths(roots)
        return ApiResult.ok(roots, flat.messages)

    async def create_product(
        self,
        product_code: str,
        product_name: str,
        category_code: str,
        price: Union[Decimal, float, int],
        stock: int = 0,
        extra_fields: Optional[dict[str, Any]] = None,
    ) -> ApiResult[Product]:
        """
        Create a product.

        V3 JSON candidates are tried first with the modern body shape, then
        the REST1 form candidates with a one-element ``data`` array.

        Args:
            product_code: Shop product code
            product_name: Display name
            category_code: Default category code, e.g. "T12"
            price: Selling price
            stock: Initial stock
            extra_fields: Extra REST1 fields (e.g. Brand, Vat, Currency)

        Returns:
            ApiResult with the created product as echoed by the upstream
        """
        extra_fields = dict(extra_fields or {})
        price = Decimal(str(price))

        json_body = {
            "name": product_name,
            "wsProductCode": product_code,
            "priceSale": float(price),
            "stock": stock,
            "vat": _vat(extra_fields.get("Vat")),
            "visibility": True,
            "relation_hierarchy": [{"id": _category_id(category_code), "type": "category"}],
        }

        form_product = {
            "ProductCode": product_code,
            "ProductName": product_name,
            "DefaultCategoryCode": category_code,
            "SellingPrice": f"{price:.2f}",
            "Stock": str(stock),
            "IsActive": "1",
        }
        form_product.update(extra_fields)
        form = {"data": json.dumps([form_product], default=str)}

        result = await self.requester.call(
            "create_product",
            Union[Product, list[Product]],
            form=form,
            json_body=json_body,
        )
        if not result.success:
            return result

        created = _first(result.data)
        if created is None:
            created = Product(product_code=product_code, product_name=product_name)
        return ApiResult.ok(created, result.messages)

    async def create_products(self, products: list[Product]) -> ApiResult[dict[str, Any]]:
        """
        Create products one by one.

        Returns:
            ApiResult that succeeds only if every product was created; data
            holds the counts and the ok/fail lists either way
        """
        created: list[Product] = []
        failed: list[dict[str, Any]] = []

        for product in products:
            price = parse_decimal(product.selling_price or product.price) or Decimal("0")
            stock = parse_int(product.stock) or 0
            extra = {
                key: value
                for key, value in (
                    ("Brand", product.brand),
                    ("Vat", product.vat),
                    ("Currency", product.currency),
                    ("BuyingPrice", product.buying_price),
                    ("ShortDescription", product.short_description),
                )
                if value
            }

            result = await self.create_product(
                product.product_code or "",
                product.product_name or "",
                product.default_category_code or DEFAULT_CATEGORY_CODE,
                price,
                stock,
                extra,
            )
            if result.success:
                created.append(result.data)
            else:
                failed.append({"ProductCode": product.product_code, "Messages": result.messages})

        logger.info(f"Bulk create: {len(created)} created, {len(failed)} failed")

        data = {
            "success": len(created),
            "failed": len(failed),
            "ok": created,
            "fail": failed,
        }
        messages = [f"{len(failed)} of {len(products)} products failed"] if failed else []
        return ApiResult(success=not failed, data=data, messages=messages)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def get_customers(
        self,
        limit: int = 50,
        filters: Optional[dict[str, str]] = None,
    ) -> ApiResult[list[Customer]]:
        form = {"limit": str(limit)}
        form.update(filters or {})
        return await self.requester.call("get_customers", list[Customer], form=form)

    async def get_customer_by_id(self, customer_id: Union[int, str]) -> ApiResult[Customer]:
        """Get one customer; list-shaped answers are narrowed to the matching record."""
        customer_id = str(customer_id)
        form = {"CustomerId": customer_id, "customerId": customer_id, "Id": customer_id}
        result = await self.requester.call(
            "get_customer_by_id",
            Union[Customer, list[Customer]],
            form=form,
        )
        if not result.success:
            return result

        if isinstance(result.data, list):
            match = next((c for c in result.data if c.customer_id == customer_id), None)
            customer = match or _first(result.data)
        else:
            customer = result.data

        if customer is None:
            return ApiResult.fail(f"Customer {customer_id} not found")
        return ApiResult.ok(customer, result.messages)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def get_orders(
        self,
        limit: int = 50,
        filters: Optional[dict[str, str]] = None,
    ) -> ApiResult[list[Order]]:
        form = {"limit": str(limit)}
        form.update(filters or {})
        return await self.requester.call("get_orders", list[Order], form=form)

    async def get_order_details_by_order_id(
        self, order_id: Union[int, str]
    ) -> ApiResult[list[OrderDetail]]:
        order_id = str(order_id)
        return await self.requester.call(
            "get_order_details",
            list[OrderDetail],
            form={"OrderId": order_id, "orderId": order_id},
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_payment_types(self) -> ApiResult[list[PaymentType]]:
        return await self.requester.call("get_payment_types", list[PaymentType], form={})

    async def get_cargo_companies(self) -> ApiResult[list[CargoCompany]]:
        return await self.requester.call("get_cargo_companies", list[CargoCompany], form={})

    async def get_order_status_list(self) -> ApiResult[list[OrderStatusInfo]]:
        return await self.requester.call("get_order_statuses", list[OrderStatusInfo], form={})
