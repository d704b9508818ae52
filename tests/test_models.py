"""Tests for domain models"""
import pytest
from pydantic import ValidationError

from bazaar.models import (
    CouponCreate,
    Pagination,
    Product,
    ProductCreate,
    Ticket,
    TicketCreate,
    TicketStatus,
    slugify,
)


def test_product_accepts_rows_and_dumps_camel_case(sample_product):
    product = Product(**sample_product)
    data = product.to_api()

    assert data["sellerId"] == "seller-1"
    assert data["reviewCount"] == 120
    assert data["isActive"] is True
    assert "seller_id" not in data


def test_product_accepts_camel_case():
    product = Product.model_validate({"id": "p1", "name": "Lamp", "price": 20, "imageUrl": "x.png"})
    assert product.image_url == "x.png"


def test_product_null_lists():
    product = Product(id="p1", name="Lamp", price=20, images=None, tags=None)
    assert product.images == []
    assert product.tags == []


def test_product_create_limits():
    with pytest.raises(ValidationError):
        ProductCreate(name="", price=10)
    with pytest.raises(ValidationError):
        ProductCreate(name="Lamp", price=-1)
    with pytest.raises(ValidationError):
        ProductCreate(name="Lamp", price=1_000_000)
    with pytest.raises(ValidationError):
        ProductCreate(name="Lamp", price=10, stock=-2)


def test_product_create_to_row():
    row = ProductCreate.model_validate({"name": "Lamp", "price": 10, "imageUrl": "x.png"}).to_row()
    assert row["image_url"] == "x.png"
    assert row["stock"] == 0


def test_pagination_build():
    assert Pagination.build(1, 20, 41).pages == 3
    assert Pagination.build(1, 20, 0).pages == 0


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Home & Garden", "home-garden"),
        ("  Electronics ", "electronics"),
        ("Kids' Toys!", "kids-toys"),
    ],
)
def test_slugify(value, expected):
    assert slugify(value) == expected


class TestCouponCreate:
    def test_code_is_normalized(self):
        coupon = CouponCreate(code=" save10now ", discount_value=10)
        assert coupon.code == "SAVE10NOW"

    @pytest.mark.parametrize("code", ["ABC", "WAY-TOO-LONG-CODE-12345", "HAS SPACE"])
    def test_bad_codes(self, code):
        with pytest.raises(ValidationError):
            CouponCreate(code=code, discount_value=10)

    def test_percentage_over_100(self):
        with pytest.raises(ValidationError):
            CouponCreate(code="SAVE10NOW", discount_type="percentage", discount_value=150)

    def test_fixed_over_100_is_fine(self):
        coupon = CouponCreate(code="FLAT150OFF", discount_type="fixed", discount_value=150)
        assert coupon.discount_value == 150

    def test_window_order(self):
        with pytest.raises(ValidationError):
            CouponCreate(
                code="SAVE10NOW",
                discount_value=10,
                valid_from="2025-02-01T00:00:00Z",
                valid_to="2025-01-01T00:00:00Z",
            )


def test_ticket_status_values(sample_ticket):
    sample_ticket["status"] = "in-progress"
    ticket = Ticket(**sample_ticket)
    assert ticket.status == TicketStatus.IN_PROGRESS
    assert ticket.comments[1].is_internal is True


def test_ticket_create_email():
    ticket = TicketCreate(
        subject="Help",
        description="Something broke",
        customer_name="Jane",
        customer_email="Jane@Example.com",
    )
    assert ticket.customer_email == "jane@example.com"

    with pytest.raises(ValidationError):
        TicketCreate(subject="Help", description="x", customer_name="Jane", customer_email="nope")
