"""
Pytest fixtures and configuration for Produce Store backend tests

This file provides shared fixtures that can be used across all test modules.

Author: TM3
Date: 2026-02-11
"""
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from produce_store.core.auth import TokenUser
from produce_store.core.rate_limit import rate_limiter
from produce_store.domain.order import Order, OrderItem
from produce_store.domain.product import Product, ProductVariant


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Rate limit windows are process-wide; start every test clean"""
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def mock_db():
    """
    Provides a (connection, cursor) pair of MagicMocks

    Usage:
        @patch('produce_store.repositories.x.get_db_connection_dict')
        def test_something(self, mock_get_conn, mock_db):
            mock_conn, mock_cursor = mock_db
            mock_get_conn.return_value = mock_conn
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


@pytest.fixture
def customer():
    return TokenUser(id="user-1", email="asha@example.com", name="Asha", role="customer")


@pytest.fixture
def admin_user():
    return TokenUser(id="admin-1", email="admin@example.com", name="Admin", role="admin")


@pytest.fixture
def mango():
    """A plain product with a 10% discount and two variants"""
    return Product(
        id="prod-1",
        name="Alphonso Mango",
        price=Decimal("500"),
        unit="dozen",
        category="mangoes",
        stock_quantity=20,
        discount_enabled=True,
        discount_type="percentage",
        discount_value=Decimal("10"),
        variants=[
            ProductVariant(id="var-1", product_id="prod-1", name="Half dozen", price=Decimal("260")),
            ProductVariant(
                id="var-2", product_id="prod-1", name="Box of 24", price=Decimal("950"), is_available=False
            ),
        ],
    )


@pytest.fixture
def make_order():
    """Factory for orders in a given status"""
    def _make(status="pending", payment_status="pending", payment_method="cod", user_id="user-1", **extra):
        return Order(
            id="order-1",
            order_number="CF-20260217-0001",
            user_id=user_id,
            delivery_name="Asha",
            delivery_phone="9876543210",
            delivery_address="12 Civil Lines, 440001",
            delivery_slot="7:00 AM - 10:00 AM",
            order_date=date(2026, 2, 17),
            subtotal=Decimal("450"),
            delivery_charge=Decimal("0"),
            total=Decimal("450"),
            payment_method=payment_method,
            payment_status=payment_status,
            status=status,
            **extra,
            created_at=datetime(2026, 2, 16, 9, 30, tzinfo=timezone.utc),
            items=[
                OrderItem(
                    product_id="prod-1",
                    product_name="Alphonso Mango",
                    quantity=1,
                    unit_price=Decimal("450"),
                    total_price=Decimal("450"),
                )
            ],
        )
    return _make
