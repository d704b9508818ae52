"""Tests for the order service"""
import re
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.orders import app
from bazaar.auth import TokenPayload
from bazaar.errors import ForbiddenError, NotFoundError, ValidationFailed
from bazaar.models import Coupon, Order, OrderCreate, OrderItem, OrderStatusUpdate
from bazaar.repositories import OrderRepository
from bazaar.services.coupons import CouponService
from bazaar.services.orders import (
    OrderService,
    generate_order_number,
    get_order_service,
    group_by_seller,
    seller_view,
)

CUSTOMER = TokenPayload(user_id="user-123", email="jane@example.com", role="customer", name="Jane Doe")
OTHER_CUSTOMER = TokenPayload(user_id="user-999", email="joe@example.com", role="customer")
SELLER = TokenPayload(user_id="seller-1", email="shop@example.com", role="seller")
ADMIN = TokenPayload(user_id="admin-1", email="ops@example.com", role="admin")

ADDRESS = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip": "62701", "country": "US"}
LAMP = {"productId": "prod-1", "name": "Desk Lamp", "price": 10, "quantity": 2, "sellerId": "seller-1"}
BOOK = {"productId": "prod-2", "name": "Novel", "price": 30, "quantity": 1, "sellerId": "seller-2"}


def _checkout(*items, **extra):
    return OrderCreate.model_validate(
        {
            "customerEmail": "Jane@Example.com",
            "items": list(items),
            "paymentMethod": "card",
            "shippingAddress": ADDRESS,
            **extra,
        }
    )


def _inserted(rows):
    return [Order(**{**row, "id": f"order-{n}"}) for n, row in enumerate(rows, start=1)]


def test_generate_order_number_format():
    assert re.fullmatch(r"ORD-\d+-[0-9A-Z]{4}", generate_order_number())
    assert generate_order_number(now_ms=1736935200000).startswith("ORD-1736935200000-")


def test_group_by_seller_keeps_first_seen_order():
    items = [OrderItem.model_validate(i) for i in (BOOK, LAMP, {**BOOK, "productId": "prod-3"})]

    groups = group_by_seller(items)

    assert list(groups) == ["seller-2", "seller-1"]
    assert [i.product_id for i in groups["seller-2"]] == ["prod-2", "prod-3"]


def test_item_subtotal_is_recomputed():
    item = OrderItem.model_validate({**LAMP, "subtotal": 999})
    assert item.subtotal == 20.0


def test_seller_view_hides_other_sellers_items(sample_order):
    order = Order(**{**sample_order, "items": [*sample_order["items"], {**BOOK, "productId": "prod-2"}]})

    data = seller_view(order, "seller-1")

    assert [i["productId"] for i in data["items"]] == ["prod-1"]
    assert data["sellerSubtotal"] == 20.0
    assert data["sellerItemCount"] == 1
    assert data["totalItemCount"] == 2
    assert data["isMultiSellerOrder"] is True


@pytest.fixture
def repo():
    repo = AsyncMock(spec=OrderRepository)
    repo.create_many.side_effect = _inserted
    return repo


@pytest.fixture
def coupons():
    return AsyncMock(spec=CouponService)


@pytest.fixture
def service(repo, coupons):
    return OrderService(repo, coupons)


@pytest.fixture
def order(sample_order):
    return Order(**sample_order)


class TestCreateOrders:
    @pytest.mark.asyncio
    async def test_single_seller(self, service, repo, coupons):
        orders = await service.create_orders(_checkout(LAMP), CUSTOMER)

        assert len(orders) == 1
        row = repo.create_many.await_args.args[0][0]
        assert row["customer_id"] == "user-123"
        assert row["customer_email"] == "jane@example.com"
        assert row["seller_id"] == "seller-1"
        assert (row["subtotal"], row["tax"], row["shipping"], row["total"]) == (20.0, 2.0, 50.0, 72.0)
        assert row["order_status"] == "pending"
        assert row["payment_status"] == "pending"
        assert row["notes"] is None
        assert row["items"][0]["subtotal"] == 20.0
        coupons.redeem.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_split_by_seller_with_coupon(self, service, repo, coupons, sample_coupon):
        coupons.redeem.return_value = Coupon(**{**sample_coupon, "usage_count": 6})

        orders = await service.create_orders(_checkout(LAMP, BOOK, couponCode="save10now", notes="Gift"), CUSTOMER)

        coupons.redeem.assert_awaited_once_with("save10now", 50.0)
        rows = repo.create_many.await_args.args[0]
        assert [r["seller_id"] for r in rows] == ["seller-1", "seller-2"]
        assert [(r["subtotal"], r["discount"], r["tax"], r["shipping"], r["total"]) for r in rows] == [
            (20.0, 2.0, 1.8, 20.0, 39.8),
            (30.0, 3.0, 2.7, 30.0, 59.7),
        ]
        # shares add up to the single-order total: 50 - 5 + 4.5 + 50
        assert sum(o.total for o in orders) == pytest.approx(99.5)
        assert all(r["coupon_code"] == "SAVE10NOW" for r in rows)
        assert rows[1]["notes"] == "Gift (Split order for seller: seller-2)"

    @pytest.mark.asyncio
    async def test_client_totals_are_ignored(self, service, repo):
        payload = _checkout({**LAMP, "subtotal": 1, "price": 12.5}, subtotal=1, total=1)

        await service.create_orders(payload, CUSTOMER)

        row = repo.create_many.await_args.args[0][0]
        assert row["subtotal"] == 25.0
        assert row["total"] == 25.0 + 2.5 + 50.0

    @pytest.mark.asyncio
    async def test_customer_cannot_order_for_someone_else(self, service, repo):
        await service.create_orders(_checkout(LAMP, customerId="victim-999"), CUSTOMER)

        assert repo.create_many.await_args.args[0][0]["customer_id"] == "user-123"

    @pytest.mark.asyncio
    async def test_admin_can_order_for_customer(self, service, repo):
        await service.create_orders(_checkout(LAMP, customerId="user-123"), ADMIN)

        assert repo.create_many.await_args.args[0][0]["customer_id"] == "user-123"

    @pytest.mark.asyncio
    async def test_unknown_shipping_method(self, service, repo, coupons):
        with pytest.raises(ValidationFailed, match="Unknown shipping method: teleport"):
            await service.create_orders(_checkout(LAMP, shippingMethod="teleport", couponCode="SAVE10NOW"), CUSTOMER)

        coupons.redeem.assert_not_awaited()
        repo.create_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_coupon_writes_nothing(self, service, repo, coupons):
        coupons.redeem.side_effect = ValidationFailed("Coupon usage limit reached")

        with pytest.raises(ValidationFailed):
            await service.create_orders(_checkout(LAMP, couponCode="SAVE10NOW"), CUSTOMER)

        repo.create_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_express_shipping(self, service, repo):
        await service.create_orders(_checkout(LAMP, shippingMethod="express"), CUSTOMER)

        row = repo.create_many.await_args.args[0][0]
        assert row["shipping"] == 150.0
        assert row["shipping_method"] == "express"


class TestReadOrders:
    @pytest.mark.asyncio
    async def test_customer_list_is_scoped_to_self(self, service, repo, order):
        repo.list.return_value = ([order], 1)

        result = await service.list_orders(CUSTOMER, 2, 10, customer_id="user-999")

        assert repo.list.await_args.args == (10, 10)
        assert repo.list.await_args.kwargs["customer_id"] == "user-123"
        assert result["pagination"] == {"page": 2, "limit": 10, "total": 1, "pages": 1}

    @pytest.mark.asyncio
    async def test_other_customers_orders_are_forbidden(self, service):
        with pytest.raises(ForbiddenError):
            await service.customer_orders("user-123", OTHER_CUSTOMER, 1, 10)

    @pytest.mark.asyncio
    async def test_owner_reads_order(self, service, repo, order):
        repo.get_by_id.return_value = order

        data = await service.get_order("order-1", CUSTOMER)

        assert data["orderNumber"] == "ORD-1736935200000-AB12"
        assert "sellerSubtotal" not in data

    @pytest.mark.asyncio
    async def test_seller_reads_own_slice(self, service, repo, order):
        repo.get_by_id.return_value = order

        data = await service.get_order("order-1", SELLER)

        assert data["sellerSubtotal"] == 20.0

    @pytest.mark.asyncio
    async def test_stranger_cannot_read(self, service, repo, order):
        repo.get_by_id.return_value = order

        with pytest.raises(ForbiddenError):
            await service.get_order("order-1", OTHER_CUSTOMER)

    @pytest.mark.asyncio
    async def test_missing_order(self, service, repo):
        repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_order("nope", ADMIN)

    @pytest.mark.asyncio
    async def test_seller_cannot_list_another_seller(self, service):
        with pytest.raises(ForbiddenError):
            await service.seller_orders("seller-2", SELLER, 1, 10)


class TestOrderUpdates:
    @pytest.mark.asyncio
    async def test_cancel_pending(self, service, repo, order):
        repo.get_by_id.return_value = order
        repo.update.return_value = order.model_copy(update={"order_status": "cancelled"})

        await service.cancel("order-1", CUSTOMER)

        repo.update.assert_awaited_once_with("order-1", {"order_status": "cancelled"})

    @pytest.mark.asyncio
    async def test_cancel_twice(self, service, repo, sample_order):
        repo.get_by_id.return_value = Order(**{**sample_order, "order_status": "cancelled"})

        with pytest.raises(ValidationFailed, match="Order is already cancelled"):
            await service.cancel("order-1", CUSTOMER)

    @pytest.mark.asyncio
    async def test_cannot_cancel_shipped(self, service, repo, sample_order):
        repo.get_by_id.return_value = Order(**{**sample_order, "order_status": "shipped"})

        with pytest.raises(ValidationFailed, match="Cannot cancel order with status: shipped"):
            await service.cancel("order-1", CUSTOMER)
        repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_customer_cannot_cancel(self, service, repo, order):
        repo.get_by_id.return_value = order

        with pytest.raises(ForbiddenError):
            await service.cancel("order-1", OTHER_CUSTOMER)

    @pytest.mark.asyncio
    async def test_seller_moves_own_order(self, service, repo, order):
        repo.get_by_id.return_value = order
        repo.update.return_value = order.model_copy(update={"order_status": "shipped"})

        await service.update_status("order-1", OrderStatusUpdate(order_status="shipped"), SELLER)

        repo.update.assert_awaited_once_with("order-1", {"order_status": "shipped"})

    @pytest.mark.asyncio
    async def test_customer_cannot_move_status(self, service, repo, order):
        repo.get_by_id.return_value = order

        with pytest.raises(ForbiddenError):
            await service.update_status("order-1", OrderStatusUpdate(order_status="delivered"), CUSTOMER)


class TestStats:
    @pytest.mark.asyncio
    async def test_admin_stats(self, service, repo):
        repo.status_totals.return_value = [
            {"order_status": "pending", "total": 100.5},
            {"order_status": "delivered", "total": "50"},
            {"order_status": "cancelled", "total": 70},
            {"order_status": "shipped", "total": 20},
        ]

        stats = await service.admin_stats()

        assert stats == {
            "totalOrders": 4,
            "totalRevenue": 170.5,
            "pendingOrders": 1,
            "processingOrders": 1,
            "completedOrders": 1,
            "cancelledOrders": 1,
        }

    @pytest.mark.asyncio
    async def test_seller_stats(self, service, repo, sample_order):
        repo.for_seller.return_value = (
            [
                Order(**sample_order),
                Order(**{**sample_order, "id": "o2", "order_status": "delivered",
                         "items": [{**sample_order["items"][0], "quantity": 3}]}),
                Order(**{**sample_order, "id": "o3", "order_status": "cancelled"}),
            ],
            3,
        )

        stats = await service.seller_stats("seller-1", SELLER)

        assert stats["totalOrders"] == 3
        assert stats["totalRevenue"] == 50.0
        assert stats["completionRate"] == 33.3
        assert stats["avgOrderValue"] == 25.0
        assert stats["successRate"] == 33
        assert stats["cancelledOrders"] == 1

    @pytest.mark.asyncio
    async def test_seller_earnings(self, service, repo, sample_order):
        february = {
            **sample_order,
            "id": "o2",
            "created_at": "2025-02-03T09:00:00+00:00",
            "items": [{**sample_order["items"][0], "quantity": 3}, {**BOOK, "productId": "prod-2"}],
        }
        repo.for_seller.return_value = (
            [
                Order(**{**february, "id": "o3", "order_status": "cancelled"}),
                Order(**february),
                Order(**sample_order),
            ],
            3,
        )

        earnings = await service.seller_earnings("seller-1", ADMIN)

        assert earnings["summary"] == {
            "totalRevenue": 50.0,
            "totalOrders": 2,
            "totalCommission": 5.0,
            "totalPayout": 45.0,
            "commissionRate": 0.1,
        }
        assert earnings["monthlyEarnings"] == [
            {"period": "February 2025", "monthKey": "2025-02", "revenue": 30.0, "orders": 1, "commission": 3.0, "payout": 27.0},
            {"period": "January 2025", "monthKey": "2025-01", "revenue": 20.0, "orders": 1, "commission": 2.0, "payout": 18.0},
        ]


class TestOrderAPI:
    @pytest.fixture
    def client(self, service):
        app.dependency_overrides[get_order_service] = lambda: service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_create_split_checkout(self, client, repo, auth_header):
        response = client.post(
            "/api/orders",
            json={
                "customerEmail": "jane@example.com",
                "items": [LAMP, BOOK],
                "paymentMethod": "card",
                "shippingAddress": ADDRESS,
            },
            headers=auth_header(user_id="user-123"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "2 orders created successfully (split by seller)"
        assert body["data"]["orderCount"] == 2
        assert body["data"]["order"]["id"] == "order-1"

    def test_create_requires_items(self, client, auth_header):
        response = client.post(
            "/api/orders",
            json={"customerEmail": "jane@example.com", "items": [], "paymentMethod": "card", "shippingAddress": ADDRESS},
            headers=auth_header(),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_create_requires_login(self, client):
        response = client.post("/api/orders", json={})
        assert response.status_code == 401

    def test_cancel_shipped_is_rejected(self, client, repo, sample_order, auth_header):
        repo.get_by_id.return_value = Order(**{**sample_order, "order_status": "shipped"})

        response = client.post("/api/orders/order-1/cancel", headers=auth_header(user_id="user-123"))

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Cannot cancel order with status: shipped"}

    def test_unknown_order(self, client, repo, auth_header):
        repo.get_by_id.return_value = None

        response = client.get("/api/orders/nope", headers=auth_header(role="admin"))

        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_admin_stats_requires_admin(self, client, auth_header):
        response = client.get("/api/orders/admin-stats", headers=auth_header(role="customer"))
        assert response.status_code == 403

    def test_admin_stats(self, client, repo, auth_header):
        repo.status_totals.return_value = [{"order_status": "pending", "total": 10}]

        body = client.get("/api/orders/admin-stats", headers=auth_header(role="admin")).json()

        assert body["data"]["totalOrders"] == 1
        assert body["data"]["pendingOrders"] == 1

    def test_payment_update_requires_admin(self, client, auth_header):
        response = client.patch(
            "/api/orders/order-1/payment", json={"paymentStatus": "paid"}, headers=auth_header(role="seller")
        )
        assert response.status_code == 403
