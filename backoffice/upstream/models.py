"""Normalized upstream records and the operation result type.

Every upstream scalar is a ``FlexStr`` (optional string). Only the values
computed here (``Order.item_count``) and nested collections are typed
otherwise. Field names are snake_case; the wire names are PascalCase and
incoming keys are matched case-insensitively, as the upstream mixes both.
"""

from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_pascal

from backoffice.upstream.flexible import FlexStr, FlexStrList, tolerant_record_list

T = TypeVar("T")

_ALIAS_LOOKUPS: dict[type, dict[str, str]] = {}


class UpstreamRecord(BaseModel):
    """Base class for all normalized upstream records."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def _alias_lookup(cls) -> dict[str, str]:
        lookup = _ALIAS_LOOKUPS.get(cls)
        if lookup is None:
            lookup = {}
            for name, info in cls.model_fields.items():
                alias = info.alias or to_pascal(name)
                lookup[alias.lower()] = alias
                lookup[name.lower()] = alias
            _ALIAS_LOOKUPS[cls] = lookup
        return lookup

    @model_validator(mode="before")
    @classmethod
    def _match_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup = cls._alias_lookup()
        matched: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            alias = lookup.get(key.lower())
            if alias is not None:
                # First spelling wins when a key appears in two casings
                matched.setdefault(alias, value)
        return matched

    def to_wire(self) -> dict[str, Any]:
        """Dump with wire (PascalCase) names, omitting absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ProductImage(UpstreamRecord):
    image_id: FlexStr = None
    product_image_id: FlexStr = None
    image_url: FlexStr = None
    image_path: FlexStr = None
    image: FlexStr = None
    thumbnail_url: FlexStr = None
    thumbnail: FlexStr = None
    is_primary: FlexStr = None
    is_main: FlexStr = None
    is_active: FlexStr = None
    order: FlexStr = None
    order_no: FlexStr = None

    @property
    def is_primary_image(self) -> bool:
        return any(
            flag is not None and flag.lower() in ("1", "true")
            for flag in (self.is_primary, self.is_main)
        )


class Product(UpstreamRecord):
    # IDs
    product_id: FlexStr = None
    product_code: FlexStr = None

    # Basic info
    product_name: FlexStr = None
    default_category_code: FlexStr = None
    default_category_id: FlexStr = None
    default_category_name: FlexStr = None
    default_category_path: FlexStr = None

    # Stock
    stock: FlexStr = None
    stock_unit: FlexStr = None
    stock_unit_id: FlexStr = None
    stock_code: FlexStr = None

    # Status
    is_active: FlexStr = None
    is_approved: FlexStr = None
    comparison_sites: FlexStr = None
    has_sub_products: FlexStr = None
    has_images: FlexStr = None

    # Prices
    price: FlexStr = None
    buying_price: FlexStr = None
    selling_price: FlexStr = None
    selling_price_vat_included: FlexStr = None
    selling_price_vat_included_no_discount: FlexStr = None
    discounted_selling_price: FlexStr = None
    vat: FlexStr = None
    currency_id: FlexStr = None
    currency: FlexStr = None

    # Brand & model
    brand: FlexStr = None
    brand_id: FlexStr = None
    brand_link: FlexStr = None
    model: FlexStr = None
    model_id: FlexStr = None

    # Supplier
    supplier_id: FlexStr = None
    supplier_product_code: FlexStr = None

    # Details
    barcode: FlexStr = None
    description: FlexStr = None
    short_description: FlexStr = None
    search_keywords: FlexStr = None
    seo_link: FlexStr = None

    # Display settings
    display_on_homepage: FlexStr = None
    is_new_product: FlexStr = None
    on_sale: FlexStr = None
    is_display_product: FlexStr = None
    vendor_display_only: FlexStr = None
    display_with_vat: FlexStr = None
    customer_group_display: FlexStr = None

    additional1: FlexStr = None
    additional2: FlexStr = None
    additional3: FlexStr = None

    # Images
    image_url: FlexStr = None
    thumbnail_url: FlexStr = None
    image: FlexStr = None
    images: Annotated[Optional[list[ProductImage]], BeforeValidator(tolerant_record_list)] = None

    # Category info, filled in by the enhanced listing
    category_name: FlexStr = None
    category_path: FlexStrList = None
    categories: FlexStrList = None

    # Dates
    update_date: FlexStr = None
    update_date_time_stamp: FlexStr = None
    created_date: FlexStr = None
    date_created: FlexStr = None
    last_modified: FlexStr = None

    # "model" is a real upstream field name
    model_config = ConfigDict(protected_namespaces=())


class Category(UpstreamRecord):
    category_code: FlexStr = None
    category_name: FlexStr = None
    parent_category_code: FlexStr = None
    is_active: FlexStr = None
    category_id: FlexStr = None
    parent_category_id: FlexStr = None
    level: FlexStr = None
    order: FlexStr = None
    children: Annotated[Optional[list["Category"]], BeforeValidator(tolerant_record_list)] = None
    path: FlexStr = None  # "Root > Child > Leaf"

    @property
    def display_name(self) -> str:
        return self.category_name or self.category_code or "Unknown"


class Customer(UpstreamRecord):
    customer_id: FlexStr = None
    customer_code: FlexStr = None
    customer_name: FlexStr = None
    email: FlexStr = None
    phone: FlexStr = None
    is_active: FlexStr = None
    created_date: FlexStr = None
    date_created: FlexStr = None
    update_date: FlexStr = None
    update_date_time_stamp: FlexStr = None
    last_modified: FlexStr = None
    customer_group_id: FlexStr = None
    customer_group: FlexStr = None
    city: FlexStr = None
    country: FlexStr = None
    address: FlexStr = None


class OrderDetail(UpstreamRecord):
    id: FlexStr = None
    order_id: FlexStr = None
    product_id: FlexStr = None
    product_code: FlexStr = None
    product_name: FlexStr = None
    quantity: FlexStr = None
    price: FlexStr = None
    total: FlexStr = None
    city: FlexStr = None
    shipping_city: FlexStr = None
    supply_status: FlexStr = None


class Order(UpstreamRecord):
    # Basic info
    id: FlexStr = None
    order_id: FlexStr = None
    order_code: FlexStr = None
    status: FlexStr = None
    order_status: FlexStr = None
    order_status_id: FlexStr = None
    supply_status: FlexStr = None

    # Customer
    customer_id: FlexStr = None
    customer_code: FlexStr = None
    customer_name: FlexStr = None
    customer_username: FlexStr = None
    customer_email: FlexStr = None
    customer_phone: FlexStr = None
    customer_group_id: FlexStr = None

    # Dates
    order_date: FlexStr = None
    order_date_time_stamp: FlexStr = None
    created_date: FlexStr = None
    date_created: FlexStr = None
    update_date: FlexStr = None
    update_date_time_stamp: FlexStr = None
    approval_time: FlexStr = None

    # Location
    city: FlexStr = None
    shipping_city: FlexStr = None
    shipping_address: FlexStr = None
    billing_city: FlexStr = None

    # Financial
    total: FlexStr = None
    total_amount: FlexStr = None
    order_total_price: FlexStr = None
    order_subtotal: FlexStr = None
    general_total: FlexStr = None
    sub_total: FlexStr = None
    discount_total: FlexStr = None
    tax_total: FlexStr = None
    shipping_total: FlexStr = None
    currency: FlexStr = None
    site_default_currency: FlexStr = None

    # Payment
    payment_type_id: FlexStr = None
    payment_type: FlexStr = None
    payment_type_name: FlexStr = None
    sub_payment_type_id: FlexStr = None
    payment_sub_method: FlexStr = None
    payment_bank_name: FlexStr = None
    bank: FlexStr = None
    payment_info: FlexStr = None

    # Shipping
    cargo_id: FlexStr = None
    cargo_code: FlexStr = None
    cargo: FlexStr = None
    cargo_company_id: FlexStr = None
    cargo_company_name: FlexStr = None
    shipping_company_name: FlexStr = None
    cargo_tracking_code: FlexStr = None
    cargo_payment_method: FlexStr = None
    cargo_charge_with_vat: FlexStr = None
    cargo_charge_without_vat: FlexStr = None

    # Misc
    application: FlexStr = None
    language: FlexStr = None
    exchange_rate: FlexStr = None
    installment: FlexStr = None
    is_transferred: FlexStr = None
    non_member_shopping: FlexStr = None
    waybill_number: FlexStr = None
    invoice_number: FlexStr = None

    # Computed from the order details, never read from upstream
    item_count: int = 0
    order_details: Annotated[Optional[list[OrderDetail]], BeforeValidator(tolerant_record_list)] = None
    items: Annotated[Optional[list[OrderDetail]], BeforeValidator(tolerant_record_list)] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_upstream_item_count(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if not (isinstance(k, str) and k.lower() == "itemcount")}
        return data

    @property
    def lookup_id(self) -> Optional[str]:
        """Identifier accepted by the order details endpoints."""
        return self.order_id or self.id


class OrderStatusInfo(UpstreamRecord):
    id: FlexStr = None
    order_status_id: FlexStr = None
    name: FlexStr = None
    order_status_name: FlexStr = None
    code: FlexStr = None


class PaymentType(UpstreamRecord):
    id: FlexStr = None
    payment_type_id: FlexStr = None
    name: FlexStr = None
    payment_type_name: FlexStr = None
    code: FlexStr = None


class CargoCompany(UpstreamRecord):
    id: FlexStr = None
    cargo_company_id: FlexStr = None
    name: FlexStr = None
    cargo_company_name: FlexStr = None
    code: FlexStr = None


def to_wire(data: Any) -> Any:
    """Recursively dump records to their wire representation."""
    if isinstance(data, UpstreamRecord):
        return data.to_wire()
    if isinstance(data, list):
        return [to_wire(item) for item in data]
    if isinstance(data, dict):
        return {key: to_wire(value) for key, value in data.items()}
    return data


@dataclass
class ApiResult(Generic[T]):
    """Outcome of one upstream operation: never an exception."""

    success: bool
    data: Optional[T] = None
    messages: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T, messages: Optional[list[str]] = None) -> "ApiResult[T]":
        return cls(success=True, data=data, messages=list(messages or []))

    @classmethod
    def fail(cls, *messages: str) -> "ApiResult[T]":
        return cls(success=False, data=None, messages=[m for m in messages if m])

    @property
    def first_message(self) -> Optional[str]:
        return self.messages[0] if self.messages else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": to_wire(self.data),
            "messages": list(self.messages),
        }


Category.model_rebuild()
