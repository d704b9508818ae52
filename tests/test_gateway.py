"""Tests for the GraphQL gateway"""
import json

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient

from bazaar.cache import CacheService
from bazaar.gateway import GatewayContext, ServiceClients, create_gateway_app, schema
from bazaar.gateway.caching import gql_cache_key
from bazaar.gateway.clients import _clean_params
from bazaar.gateway.errors import code_for_status

API_PRODUCT = {
    "id": "prod-123",
    "name": "Wireless Headphones",
    "description": "Noise cancelling",
    "price": 199.99,
    "category": "Electronics",
    "sellerId": "seller-1",
    "stock": 3,
    "rating": 4.5,
    "reviewCount": 120,
    "isActive": True,
    "createdAt": "2025-01-01T00:00:00+00:00",
}

API_TICKET = {
    "id": "ticket-1",
    "ticketId": "TKT-LZ1ABC-7K2Q",
    "subject": "Order not delivered",
    "description": "Still waiting",
    "category": "order",
    "priority": "high",
    "status": "in-progress",
    "customerName": "Jane Doe",
    "customerEmail": "jane@example.com",
    "customerId": "user-123",
    "comments": [],
}


class Downstream:
    """Routes (method, path) to canned responses and records every request."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, status=200, body=None, raises=None):
        self.routes[(method, path)] = (status, body, raises)

    def count(self, method, path):
        return sum(1 for m, p, _, _ in self.calls if m == method and p == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, dict(request.url.params), body))
        status, payload, raises = self.routes.get(
            (request.method, request.url.path), (404, {"success": False, "message": "Route not found"}, None)
        )
        if raises is not None:
            raise raises
        return httpx.Response(status, json=payload)


@pytest.fixture
def downstream():
    return Downstream()


@pytest.fixture
def clients(downstream):
    return ServiceClients.from_settings(transport=httpx.MockTransport(downstream.handler))


@pytest.fixture
def cache():
    return CacheService()


@pytest.fixture
def context(clients, cache):
    """Anonymous request context"""
    return GatewayContext(clients, cache)


@pytest.fixture
def user_context(clients, cache):
    """Logged-in request context"""
    token = jwt.encode(
        {"userId": "user-123", "email": "jane@example.com", "role": "admin", "name": "Jane"},
        "any-secret-the-gateway-does-not-verify-it",
        algorithm="HS256",
    )
    return GatewayContext.from_authorization(f"Bearer {token}", clients, cache)


def _products_body():
    return {
        "success": True,
        "data": {
            "products": [API_PRODUCT],
            "pagination": {"page": 1, "limit": 2, "total": 3, "pages": 2},
        },
        "fromCache": False,
    }


PRODUCTS_QUERY = """
query ($page: Int, $limit: Int, $category: String) {
  products(page: $page, limit: $limit, category: $category) {
    total page totalPages
    pagination { pages }
    products { id name sellerId reviewCount isActive createdAt }
  }
}
"""


def test_gql_cache_key_ignores_nulls_and_order():
    assert gql_cache_key("products", {"page": 1, "search": None, "limit": 2}) == 'gql:products:{"limit": 2, "page": 1}'
    assert gql_cache_key("products", {"limit": 2, "page": 1}) == gql_cache_key("products", {"page": 1, "limit": 2})


def test_clean_params():
    assert _clean_params({"page": 1, "featured": True, "search": None}) == {"page": 1, "featured": "true"}


@pytest.mark.parametrize(
    "status,code",
    [(400, "BAD_USER_INPUT"), (401, "UNAUTHENTICATED"), (403, "FORBIDDEN"), (404, "NOT_FOUND"), (409, "BAD_USER_INPUT"), (502, "DOWNSTREAM_ERROR")],
)
def test_code_for_status(status, code):
    assert code_for_status(status) == code


@pytest.mark.asyncio
async def test_products_query(downstream, context):
    downstream.on("GET", "/api/products", body=_products_body())

    result = await schema.execute(PRODUCTS_QUERY, variable_values={"page": 1, "limit": 2}, context_value=context)

    assert result.errors is None
    products = result.data["products"]
    assert products["total"] == 3
    assert products["totalPages"] == 2
    assert products["products"][0]["sellerId"] == "seller-1"
    assert products["products"][0]["reviewCount"] == 120
    assert downstream.calls[0][2] == {"page": "1", "limit": "2"}


@pytest.mark.asyncio
async def test_anonymous_products_are_cached(downstream, context):
    downstream.on("GET", "/api/products", body=_products_body())

    for _ in range(2):
        result = await schema.execute(PRODUCTS_QUERY, variable_values={"limit": 2}, context_value=context)
        assert result.errors is None

    assert downstream.count("GET", "/api/products") == 1

    # different arguments are a different entry
    await schema.execute(PRODUCTS_QUERY, variable_values={"limit": 2, "category": "Books"}, context_value=context)
    assert downstream.count("GET", "/api/products") == 2


@pytest.mark.asyncio
async def test_authenticated_requests_bypass_cache(downstream, user_context):
    downstream.on("GET", "/api/products", body=_products_body())

    for _ in range(2):
        await schema.execute(PRODUCTS_QUERY, variable_values={"limit": 2}, context_value=user_context)

    assert downstream.count("GET", "/api/products") == 2


@pytest.mark.asyncio
async def test_product_not_found(downstream, context):
    downstream.on("GET", "/api/products/missing", status=404, body={"success": False, "message": "Product not found"})

    result = await schema.execute('{ product(id: "missing") { id } }', context_value=context)

    assert result.errors[0].message == "Product not found"
    assert result.errors[0].extensions["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_mutation_requires_token(downstream, context):
    result = await schema.execute('mutation { deleteProduct(id: "prod-123") }', context_value=context)

    assert result.errors[0].extensions["code"] == "UNAUTHENTICATED"
    assert downstream.calls == []


@pytest.mark.asyncio
async def test_create_product_invalidates_cache(downstream, user_context, cache):
    await cache.set('gql:products:{"limit": 2}', {"products": []}, 60)
    await cache.set('gql:product:{"id": "prod-123"}', API_PRODUCT, 60)
    await cache.set("gql:categories:{}", [], 120)
    downstream.on("POST", "/api/products", status=201, body={"success": True, "data": {"product": API_PRODUCT}})

    result = await schema.execute(
        'mutation { createProduct(input: {name: "Wireless Headphones", price: 199.99, imageUrl: "x.png"}) { id name } }',
        context_value=user_context,
    )

    assert result.errors is None
    assert result.data["createProduct"]["id"] == "prod-123"
    sent = downstream.calls[0][3]
    assert sent["imageUrl"] == "x.png"
    assert "category" not in sent
    assert await cache.get('gql:products:{"limit": 2}') is None
    assert await cache.get('gql:product:{"id": "prod-123"}') is None
    assert await cache.get("gql:categories:{}") == []


@pytest.mark.asyncio
async def test_product_mutation_invalidates_seller_listing(downstream, user_context, cache):
    await cache.set('gql:productsBySeller:{"sellerId": "seller-1"}', [API_PRODUCT], 60)
    downstream.on("PUT", "/api/products/prod-123", body={"success": True, "data": {"product": API_PRODUCT}})

    result = await schema.execute(
        'mutation { updateProduct(id: "prod-123", input: {stock: 2}) { id } }', context_value=user_context
    )

    assert result.errors is None
    assert await cache.get('gql:productsBySeller:{"sellerId": "seller-1"}') is None


@pytest.mark.asyncio
async def test_seller_listing_is_cached_then_refetched_after_delete(downstream, context, user_context):
    downstream.on("GET", "/api/products/seller/seller-1", body={"success": True, "data": {"products": [API_PRODUCT]}})
    downstream.on("DELETE", "/api/products/prod-123", body={"success": True, "message": "Product deleted successfully"})
    query = '{ productsBySeller(sellerId: "seller-1") { id } }'

    await schema.execute(query, context_value=context)
    await schema.execute(query, context_value=context)
    assert downstream.count("GET", "/api/products/seller/seller-1") == 1

    await schema.execute('mutation { deleteProduct(id: "prod-123") }', context_value=user_context)
    await schema.execute(query, context_value=context)
    assert downstream.count("GET", "/api/products/seller/seller-1") == 2


@pytest.mark.asyncio
async def test_category_mutation_invalidates_category_cache(downstream, user_context, cache):
    await cache.set("gql:categories:{}", [], 120)
    await cache.set('gql:category:{"id": "c1"}', {"id": "c1", "name": "Books"}, 120)
    await cache.set('gql:products:{"limit": 2}', {"products": []}, 60)
    downstream.on("POST", "/api/categories", status=201, body={"success": True, "data": {"id": "c2", "name": "Games", "slug": "games"}})

    result = await schema.execute('mutation { createCategory(input: {name: "Games"}) { id slug } }', context_value=user_context)

    assert result.errors is None
    assert result.data["createCategory"] == {"id": "c2", "slug": "games"}
    assert await cache.get("gql:categories:{}") is None
    assert await cache.get('gql:category:{"id": "c1"}') is None
    assert await cache.get('gql:products:{"limit": 2}') == {"products": []}


@pytest.mark.asyncio
async def test_delete_category_invalidates_category_cache(downstream, user_context, cache):
    await cache.set('gql:category:{"id": "c1"}', {"id": "c1", "name": "Books"}, 120)
    downstream.on("DELETE", "/api/categories/c1", body={"success": True, "message": "Category deleted successfully"})

    result = await schema.execute('mutation { deleteCategory(id: "c1") }', context_value=user_context)

    assert result.data["deleteCategory"] is True
    assert await cache.get('gql:category:{"id": "c1"}') is None


@pytest.mark.asyncio
async def test_include_inactive_is_never_cached(downstream, context, cache):
    downstream.on("GET", "/api/products", body=_products_body())

    for _ in range(2):
        result = await schema.execute(
            "{ products(includeInactive: true) { total } }", context_value=context
        )
        assert result.errors is None

    assert downstream.count("GET", "/api/products") == 2
    assert downstream.calls[0][2]["includeInactive"] == "true"
    assert await cache.get('gql:products:{"includeInactive": true, "limit": 20, "page": 1}') is None


@pytest.mark.asyncio
async def test_downstream_validation_error(downstream, user_context):
    downstream.on("PUT", "/api/categories/c1", status=409, body={"success": False, "message": "Category with this name already exists"})

    result = await schema.execute(
        'mutation { updateCategory(id: "c1", input: {name: "Books"}) { id } }', context_value=user_context
    )

    assert result.errors[0].extensions["code"] == "BAD_USER_INPUT"
    assert result.errors[0].extensions["status"] == 409


@pytest.mark.asyncio
async def test_get_is_retried_on_transport_error(downstream, context):
    downstream.on("GET", "/api/categories", raises=httpx.ConnectError("connection refused"))

    result = await schema.execute("{ categories { id } }", context_value=context)

    assert result.errors[0].extensions["code"] == "DOWNSTREAM_ERROR"
    assert result.errors[0].message == "Service temporarily unavailable"
    assert downstream.count("GET", "/api/categories") == 3


@pytest.mark.asyncio
async def test_ticket_status_enum(downstream, user_context):
    downstream.on("GET", "/api/tickets/ticket-1", body={"success": True, "data": API_TICKET})
    downstream.on("PATCH", "/api/tickets/ticket-1/status", body={"success": True, "data": {**API_TICKET, "status": "resolved"}})

    result = await schema.execute('{ ticket(id: "ticket-1") { ticketId status } }', context_value=user_context)
    assert result.data["ticket"]["status"] == "in_progress"

    result = await schema.execute(
        'mutation { updateTicketStatus(id: "ticket-1", status: in_progress, resolution: "On it") { status } }',
        context_value=user_context,
    )
    assert result.errors is None
    assert downstream.calls[-1][3] == {"status": "in-progress", "resolution": "On it"}


@pytest.mark.asyncio
async def test_tickets_status_filter(downstream, user_context):
    downstream.on("GET", "/api/tickets", body={"success": True, "data": [API_TICKET], "pagination": {"page": 1, "limit": 10, "total": 1, "pages": 1}})

    result = await schema.execute(
        '{ tickets(status: "in_progress") { tickets { id } pagination { total } } }', context_value=user_context
    )

    assert result.data["tickets"]["pagination"]["total"] == 1
    assert downstream.calls[0][2]["status"] == "in-progress"


@pytest.mark.asyncio
async def test_my_tickets_uses_token_user(downstream, user_context):
    downstream.on("GET", "/api/tickets", body={"success": True, "data": [], "pagination": None})

    result = await schema.execute("{ myTickets { tickets { id } pagination { page } } }", context_value=user_context)

    assert result.errors is None
    assert downstream.calls[0][2]["customerId"] == "user-123"


@pytest.mark.asyncio
async def test_my_tickets_with_unreadable_token(clients, cache):
    context = GatewayContext.from_authorization("Bearer garbage", clients, cache)

    result = await schema.execute("{ myTickets { tickets { id } } }", context_value=context)

    assert result.errors[0].message == "User ID not found in token"


@pytest.mark.asyncio
async def test_create_ticket_fills_customer(downstream, user_context):
    downstream.on("POST", "/api/tickets", status=201, body={"success": True, "data": {**API_TICKET, "status": "open"}})

    result = await schema.execute(
        'mutation { createTicket(input: {subject: "Late", description: "Still waiting", '
        'customerName: "Jane", customerEmail: "jane@example.com"}) { status } }',
        context_value=user_context,
    )

    assert result.data["createTicket"]["status"] == "open"
    assert downstream.calls[0][3]["customerId"] == "user-123"


@pytest.mark.asyncio
async def test_customer_ticket_ignores_supplied_customer(downstream, clients, cache):
    token = jwt.encode({"userId": "user-555", "email": "sam@example.com", "role": "customer"}, "unverified", algorithm="HS256")
    customer_context = GatewayContext.from_authorization(f"Bearer {token}", clients, cache)
    downstream.on("POST", "/api/tickets", status=201, body={"success": True, "data": {**API_TICKET, "status": "open"}})

    result = await schema.execute(
        'mutation { createTicket(input: {subject: "Late", description: "Still waiting", '
        'customerName: "Jane", customerEmail: "jane@example.com", customerId: "victim-999"}) { status } }',
        context_value=customer_context,
    )

    assert result.errors is None
    assert downstream.calls[0][3]["customerId"] == "user-555"


@pytest.mark.asyncio
async def test_validate_coupon(downstream, context):
    downstream.on(
        "POST",
        "/api/coupons/validate",
        body={"success": True, "data": {"valid": True, "code": "SAVE10NOW", "discount": 10, "finalTotal": 90, "discountType": "percentage"}},
    )

    result = await schema.execute(
        '{ validateCoupon(code: "SAVE10NOW", orderTotal: 100) { valid discount finalTotal discountType } }',
        context_value=context,
    )

    assert result.data["validateCoupon"] == {"valid": True, "discount": 10.0, "finalTotal": 90.0, "discountType": "percentage"}
    assert downstream.calls[0][3] == {"code": "SAVE10NOW", "orderTotal": 100.0}


API_ORDER = {
    "id": "order-1",
    "orderNumber": "ORD-1736935200000-AB12",
    "customerId": "user-123",
    "customerEmail": "jane@example.com",
    "sellerId": "seller-1",
    "items": [{"productId": "prod-1", "name": "Desk Lamp", "price": 10, "quantity": 2, "subtotal": 20, "sellerId": "seller-1"}],
    "subtotal": 20,
    "tax": 2,
    "shipping": 50,
    "total": 72,
    "orderStatus": "pending",
    "paymentStatus": "pending",
    "paymentMethod": "card",
    "shippingAddress": {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip": "62701", "country": "US"},
}


@pytest.mark.asyncio
async def test_orders_query(downstream, user_context):
    downstream.on(
        "GET",
        "/api/orders",
        body={"success": True, "data": {"orders": [API_ORDER], "pagination": {"page": 1, "limit": 5, "total": 1, "pages": 1}}},
    )

    result = await schema.execute(
        "{ orders(limit: 5, status: pending) { orders { orderNumber orderStatus items { subtotal } shippingAddress { city } } pagination { total } } }",
        context_value=user_context,
    )

    assert result.errors is None
    orders = result.data["orders"]
    assert orders["orders"][0]["orderStatus"] == "pending"
    assert orders["orders"][0]["items"][0]["subtotal"] == 20.0
    assert orders["orders"][0]["shippingAddress"]["city"] == "Springfield"
    assert orders["pagination"]["total"] == 1
    assert downstream.calls[0][2] == {"page": "1", "limit": "5", "status": "pending"}


@pytest.mark.asyncio
async def test_orders_require_token(downstream, context):
    result = await schema.execute("{ orders { pagination { total } } }", context_value=context)

    assert result.errors[0].extensions["code"] == "UNAUTHENTICATED"
    assert downstream.calls == []


@pytest.mark.asyncio
async def test_create_order_sends_nested_input(downstream, user_context):
    second = {**API_ORDER, "id": "order-2", "sellerId": "seller-2"}
    downstream.on(
        "POST",
        "/api/orders",
        status=201,
        body={"success": True, "data": {"order": API_ORDER, "orders": [API_ORDER, second], "orderCount": 2}},
    )

    result = await schema.execute(
        'mutation { createOrder(input: {customerEmail: "jane@example.com", paymentMethod: "card", '
        'items: [{productId: "prod-1", name: "Desk Lamp", price: 10, quantity: 2, sellerId: "seller-1"}], '
        'shippingAddress: {street: "1 Main St", city: "Springfield", state: "IL", zip: "62701", country: "US"}}) '
        "{ orderCount orders { id sellerId } } }",
        context_value=user_context,
    )

    assert result.errors is None
    assert result.data["createOrder"]["orderCount"] == 2
    sent = downstream.calls[0][3]
    assert sent["items"] == [{"productId": "prod-1", "name": "Desk Lamp", "price": 10.0, "quantity": 2, "sellerId": "seller-1"}]
    assert sent["shippingAddress"]["zip"] == "62701"
    assert sent["shippingMethod"] == "standard"


@pytest.mark.asyncio
async def test_cancel_order_rejection(downstream, user_context):
    downstream.on(
        "POST",
        "/api/orders/order-1/cancel",
        status=400,
        body={"success": False, "message": "Cannot cancel order with status: shipped"},
    )

    result = await schema.execute('mutation { cancelOrder(id: "order-1") { orderStatus } }', context_value=user_context)

    assert result.errors[0].message == "Cannot cancel order with status: shipped"
    assert result.errors[0].extensions["code"] == "BAD_USER_INPUT"


DASHBOARD_QUERY = "{ dashboardStats { totalUsers totalOrders totalRevenue pendingOrders } }"


@pytest.mark.asyncio
async def test_dashboard_stats(downstream, user_context):
    downstream.on("GET", "/api/orders/admin-stats", body={"success": True, "data": {"totalOrders": 12, "totalRevenue": "1500.50", "pendingOrders": 2}})
    downstream.on("GET", "/api/auth/stats", body={"success": True, "data": {"totalUsers": 40}})

    result = await schema.execute(DASHBOARD_QUERY, context_value=user_context)

    assert result.data["dashboardStats"] == {"totalUsers": 40, "totalOrders": 12, "totalRevenue": 1500.5, "pendingOrders": 2}


@pytest.mark.asyncio
async def test_dashboard_without_auth_service(downstream, user_context):
    downstream.on("GET", "/api/orders/admin-stats", body={"success": True, "data": {"totalOrders": 12, "totalRevenue": 100, "pendingOrders": 0}})
    downstream.on("GET", "/api/auth/stats", status=503, body={"success": False})

    result = await schema.execute(DASHBOARD_QUERY, context_value=user_context)

    assert result.errors is None
    assert result.data["dashboardStats"]["totalUsers"] == 0
    assert result.data["dashboardStats"]["totalOrders"] == 12


@pytest.mark.asyncio
async def test_dashboard_without_order_service(downstream, user_context):
    downstream.on("GET", "/api/orders/admin-stats", status=500, body={"success": False})
    downstream.on("GET", "/api/auth/stats", body={"success": True, "data": {"totalUsers": 40}})

    result = await schema.execute(DASHBOARD_QUERY, context_value=user_context)

    assert result.data["dashboardStats"] == {"totalUsers": 0, "totalOrders": 0, "totalRevenue": 0.0, "pendingOrders": 0}


class TestGatewayHTTP:
    @pytest.fixture
    def client(self, clients, cache):
        return TestClient(create_gateway_app(clients=clients, cache=cache))

    def test_root(self, client):
        body = client.get("/").json()

        assert body["message"] == "GraphQL Gateway API"
        assert body["graphqlEndpoint"] == "/graphql"

    def test_health(self, client):
        assert client.get("/health").json()["message"] == "GraphQL Gateway is running"

    def test_graphql_forwards_token(self, client, downstream, make_token):
        downstream.on("GET", "/api/coupons", body={"success": True, "data": {"coupons": [], "pagination": {"page": 1, "limit": 10, "total": 0, "pages": 0}}})
        token = make_token(role="admin")

        response = client.post(
            "/graphql",
            json={"query": "{ coupons { coupons { id } pagination { total } } }"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["coupons"]["pagination"]["total"] == 0
        assert downstream.calls[0][:2] == ("GET", "/api/coupons")
