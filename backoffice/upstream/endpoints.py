"""Endpoint candidates per logical upstream operation.

Which endpoint variants a T-Soft deployment actually serves differs from
shop to shop, so every logical operation lists its candidates in priority
order. The requester walks them top to bottom and stops at the first one
that returns a usable body.
"""

from dataclasses import dataclass
from enum import Enum


class Transport(Enum):
    """Request styles understood by the upstream."""
    FORM_POST = "form_post"  # REST1
    JSON_GET = "json_get"  # V3
    JSON_POST = "json_post"  # V3


@dataclass(frozen=True)
class EndpointCandidate:
    """One concrete transport + path combination for an operation."""

    transport: Transport
    path: str


def _form(*paths: str) -> tuple[EndpointCandidate, ...]:
    return tuple(EndpointCandidate(Transport.FORM_POST, path) for path in paths)


def _json_get(*paths: str) -> tuple[EndpointCandidate, ...]:
    return tuple(EndpointCandidate(Transport.JSON_GET, path) for path in paths)


def _json_post(*paths: str) -> tuple[EndpointCandidate, ...]:
    return tuple(EndpointCandidate(Transport.JSON_POST, path) for path in paths)


# Logical operation name -> candidates, highest priority first
OPERATIONS: dict[str, tuple[EndpointCandidate, ...]] = {
    # Catalog
    "get_products": (
        _form("/product/getProducts", "/product/get", "/products/get")
        + _json_get("/catalog/products", "/api/v3/catalog/products")
    ),
    "create_product": (
        _json_post("/catalog/products", "/api/v3/catalog/products")
        + _form("/product/createProducts", "/product/create", "/product/add")
    ),
    "get_product_images": _form("/product/getProductImages"),
    "get_categories": (
        _form("/category/getCategories", "/category/get", "/categories/get")
        + _json_get("/catalog/categories", "/api/v3/catalog/categories")
    ),
    "get_category_tree": _form("/category/getCategoryTree"),

    # Customers
    "get_customers": (
        _form("/customer/getCustomers", "/customer/get", "/customers/get")
        + _json_get("/customers", "/api/v3/customers")
    ),
    "get_customer_by_id": _form("/customer/getCustomerById", "/customer/get", "/customers/get"),

    # Orders
    "get_orders": (
        _form("/order/getOrders", "/order/get", "/orders/get")
        + _json_get("/orders", "/api/v3/orders")
    ),
    "get_order_details": _form(
        "/order/getOrderDetailsByOrderId",
        "/order/getOrderDetails",
        "/order/details",
        "/orders/details",
    ),

    # Lookups
    "get_payment_types": _form("/order/getPaymentTypeList", "/payment/getTypes", "/paymenttype/get"),
    "get_cargo_companies": _form("/order/getCargoCompanyList", "/cargo/getCompanies", "/cargocompany/get"),
    "get_order_statuses": _form("/order/getOrderStatusList", "/orderstatus/get", "/order/statuses"),
}
