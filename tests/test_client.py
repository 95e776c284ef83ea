"""Tests for the T-Soft client operations against a fake upstream."""

import json
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest

from backoffice.upstream.models import Product

from tests.fakes import wrapped


def httpx_response(status, text):
    return httpx.Response(status, text=text)


def form_of(request):
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


@pytest.mark.asyncio
async def test_get_products_normalizes_stock(upstream, client):
    upstream.route("/product/getProducts", body=wrapped([{"ProductCode": "P1", "Stock": 5}]))

    result = await client.get_products(limit=10)

    assert result.success is True
    assert result.to_dict() == {
        "success": True,
        "data": [{"ProductCode": "P1", "Stock": "5"}],
        "messages": [],
    }
    assert form_of(upstream.requests[0]) == {"limit": "10", "token": "test-token"}


@pytest.mark.asyncio
async def test_get_products_paging_and_search(upstream, client):
    upstream.route("/catalog/products", body=[])

    result = await client.get_products(limit=20, page=3, search="  chair ")

    assert result.success is True
    form = form_of(upstream.calls_to("/product/getProducts")[0])
    assert form["offset"] == "40"
    assert form["start"] == "40"
    params = upstream.calls_to("/catalog/products")[0].url.params
    assert params["page"] == "3"
    assert params["limit"] == "20"
    assert params["search"] == "chair"


@pytest.mark.asyncio
async def test_category_tree_endpoint(upstream, client):
    upstream.route("/category/getCategoryTree", body=wrapped([
        {"CategoryCode": "T1", "CategoryName": "Home", "Children": [
            {"CategoryCode": "T2", "CategoryName": "Garden"},
        ]},
    ]))

    result = await client.get_category_tree()

    assert result.success is True
    assert result.data[0].children[0].path == "Home > Garden"
    assert upstream.paths == ["/category/getCategoryTree"]


@pytest.mark.asyncio
async def test_category_tree_falls_back_to_flat_list(upstream, client):
    upstream.route("/category/getCategories", body=wrapped([
        {"CategoryCode": "T1", "CategoryName": "Home"},
        {"CategoryCode": "T2", "CategoryName": "Garden", "ParentCategoryCode": "T1"},
    ]))

    result = await client.get_category_tree()

    assert result.success is True
    assert [c.category_code for c in result.data] == ["T1"]
    assert result.data[0].children[0].path == "Home > Garden"
    assert upstream.paths == ["/category/getCategoryTree", "/category/getCategories"]


@pytest.mark.asyncio
async def test_category_tree_failure(upstream, client):
    result = await client.get_category_tree()

    assert result.success is False
    assert result.first_message == "All endpoints failed for get_categories"


@pytest.mark.asyncio
async def test_get_customer_by_id_narrows_list(upstream, client):
    upstream.route("/customer/getCustomerById", body=wrapped([
        {"CustomerId": 11, "CustomerName": "Other"},
        {"CustomerId": 12, "CustomerName": "Ayse"},
    ]))

    result = await client.get_customer_by_id(12)

    assert result.success is True
    assert result.data.customer_name == "Ayse"
    form = form_of(upstream.requests[0])
    assert form["CustomerId"] == form["customerId"] == form["Id"] == "12"


@pytest.mark.asyncio
async def test_get_customer_by_id_empty_list(upstream, client):
    upstream.route("/customer/getCustomerById", body=wrapped([]))

    result = await client.get_customer_by_id("12")

    assert result.success is False
    assert result.first_message == "Customer 12 not found"


@pytest.mark.asyncio
async def test_get_order_details(upstream, client):
    upstream.route("/order/getOrderDetails", body={"data": [{"ProductCode": "P1", "Quantity": 2}]})

    result = await client.get_order_details_by_order_id(1001)

    assert result.data[0].quantity == "2"
    assert upstream.paths == ["/order/getOrderDetailsByOrderId", "/order/getOrderDetails"]
    assert form_of(upstream.requests[0])["OrderId"] == "1001"


@pytest.mark.asyncio
async def test_lookups(upstream, client):
    upstream.route("/order/getPaymentTypeList", body=wrapped([{"PaymentTypeId": 1, "PaymentTypeName": "Card"}]))
    upstream.route("/cargo/getCompanies", body=wrapped([{"CargoCompanyId": 3, "CargoCompanyName": "Aras"}]))
    upstream.route("/order/statuses", body=[{"OrderStatusId": 1, "OrderStatusName": "New"}])

    payment = await client.get_payment_types()
    cargo = await client.get_cargo_companies()
    statuses = await client.get_order_status_list()

    assert payment.data[0].payment_type_name == "Card"
    assert cargo.data[0].cargo_company_id == "3"
    assert statuses.data[0].order_status_name == "New"


@pytest.mark.asyncio
async def test_bulk_product_images(upstream, client):
    def images(request):
        code = form_of(request)["ProductCode"]
        if code == "BAD":
            return httpx_response(500, "error")
        return httpx_response(200, json.dumps(wrapped([{"ImageUrl": f"https://img/{code}.jpg"}])))

    upstream.route("/product/getProductImages", handler=images)

    result = await client.get_bulk_product_images(["P1", "BAD", "", "P2"], max_parallel=2)

    assert set(result) == {"P1", "P2"}
    assert result["P2"][0].image_url == "https://img/P2.jpg"


class TestCreateProduct:
    """Test product creation across the V3 and REST1 variants."""

    @pytest.mark.asyncio
    async def test_json_body_first(self, upstream, client):
        upstream.route("/catalog/products", body=wrapped({"ProductCode": "P1", "ProductId": 55}))

        result = await client.create_product("P1", "Chair", "T12", Decimal("12.5"), 3, {"Vat": 20})

        assert result.success is True
        assert result.data.product_id == "55"
        body = json.loads(upstream.requests[0].content)
        assert body == {
            "name": "Chair",
            "wsProductCode": "P1",
            "priceSale": 12.5,
            "stock": 3,
            "vat": 20,
            "visibility": True,
            "relation_hierarchy": [{"id": 12, "type": "category"}],
        }

    @pytest.mark.asyncio
    async def test_form_fallback(self, upstream, client):
        upstream.route("/product/createProducts", body=wrapped([{"ProductCode": "P1"}]))

        result = await client.create_product("P1", "Chair", "bad-code", 12.5, extra_fields={"Brand": "Acme"})

        assert result.success is True
        assert upstream.paths == ["/catalog/products", "/api/v3/catalog/products", "/product/createProducts"]
        v3_body = json.loads(upstream.requests[0].content)
        assert v3_body["vat"] == 18
        assert v3_body["relation_hierarchy"] == [{"id": 1, "type": "category"}]
        data = json.loads(form_of(upstream.requests[2])["data"])
        assert data == [{
            "ProductCode": "P1",
            "ProductName": "Chair",
            "DefaultCategoryCode": "bad-code",
            "SellingPrice": "12.50",
            "Stock": "0",
            "IsActive": "1",
            "Brand": "Acme",
        }]

    @pytest.mark.asyncio
    async def test_create_products_reports_failures(self, upstream, client):
        def create(request):
            body = json.loads(request.content)
            if body["wsProductCode"] == "BAD":
                return httpx_response(400, "rejected")
            return httpx_response(200, json.dumps(wrapped({"ProductCode": body["wsProductCode"]})))

        upstream.route("/catalog/products", handler=create)

        result = await client.create_products([
            Product(product_code="P1", product_name="Chair", selling_price="10", stock="2"),
            Product(product_code="BAD", product_name="Broken"),
        ])

        assert result.success is False
        assert result.data["success"] == 1
        assert result.data["failed"] == 1
        assert result.data["ok"][0].product_code == "P1"
        assert result.data["fail"][0]["ProductCode"] == "BAD"
        assert result.messages == ["1 of 2 products failed"]

    @pytest.mark.asyncio
    async def test_rejected_create_is_a_failure(self, upstream, client):
        upstream.route("/catalog/products", body={"errors": ["ProductCode already exists"]})

        result = await client.create_product("P1", "Chair", "T1", 10)

        assert result.success is False
        assert result.first_message == "All endpoints failed for create_product"
        assert result.messages[-1] == "ProductCode already exists"
        assert len(upstream.requests) == 5

    @pytest.mark.asyncio
    async def test_rejected_create_counted_as_failed(self, upstream, client):
        upstream.route("/catalog/products", body={"message": [{"text": ["Invalid token"]}]})

        result = await client.create_products([Product(product_code="P1", product_name="Chair")])

        assert result.success is False
        assert result.data["success"] == 0
        assert result.data["fail"][0]["Messages"][-1] == "Invalid token"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("vat,expected", [("8", 8), ("8.0", 8), (20, 20), ("abc", 18), (None, 18)])
    async def test_vat_sent_as_integer(self, upstream, client, vat, expected):
        upstream.route("/catalog/products", body=wrapped({"ProductCode": "P1"}))
        extra = {"Vat": vat} if vat is not None else None

        await client.create_product("P1", "Chair", "T1", 10, extra_fields=extra)

        body = json.loads(upstream.requests[0].content)
        assert isinstance(body["vat"], int)
        assert body["vat"] == expected

    @pytest.mark.asyncio
    async def test_bulk_create_sends_product_vat_as_integer(self, upstream, client):
        upstream.route("/catalog/products", body=wrapped({"ProductCode": "P1"}))

        result = await client.create_products([
            Product(product_code="P1", product_name="Chair", selling_price="10", vat="8"),
        ])

        assert result.success is True
        body = json.loads(upstream.requests[0].content)
        assert body["vat"] == 8
