"""
Unit tests for the cart model, order-day calculation and banners
"""
import pytest
from datetime import date
from decimal import Decimal

from produce_store.domain.cart import Cart, CartItem
from produce_store.domain.preorder import PromotionalBanner
from produce_store.domain.settings import SiteSettings, next_order_date


def _item(product_id="p1", variant_id=None, price="100", original_price=None, quantity=1):
    return CartItem(
        product_id=product_id,
        variant_id=variant_id,
        name="Mango",
        variant_name="Half dozen" if variant_id else None,
        price=Decimal(price),
        original_price=Decimal(original_price) if original_price else None,
        quantity=quantity,
    )


class TestCart:

    def test_add_merges_same_product_and_variant(self):
        # Arrange
        cart = Cart()

        # Act
        cart.add(_item())
        cart.add(_item())
        cart.add(_item(variant_id="v1"))

        # Assert
        assert len(cart.items) == 2
        assert cart.item_count == 3
        assert cart.total == Decimal("300")

    def test_add_always_starts_new_line_at_one(self):
        cart = Cart()
        cart.add(_item(quantity=5))

        assert cart.items[0].quantity == 1

    def test_update_quantity_to_zero_removes_line(self):
        cart = Cart()
        cart.add(_item())

        cart.update_quantity("p1", 0)

        assert cart.is_empty

    def test_savings_use_original_price(self):
        cart = Cart(items=[_item(price="90", original_price="100", quantity=2)])

        assert cart.total == Decimal("180")
        assert cart.total_savings == Decimal("20")

    def test_display_name_includes_variant(self):
        assert _item(variant_id="v1").display_name == "Mango (Half dozen)"

    def test_to_dict(self):
        cart = Cart(items=[_item(price="45.50", quantity=2)])

        data = cart.to_dict()

        assert data['total'] == 91.0
        assert data['item_count'] == 2
        assert data['items'][0]['line_total'] == 91.0


class TestNextOrderDate:

    def test_order_day_is_today(self):
        # 2026-02-17 is a Tuesday
        assert next_order_date(["tuesday", "friday"], date(2026, 2, 17)) == date(2026, 2, 17)

    def test_next_configured_day(self):
        # Wednesday -> Friday
        assert next_order_date(["tuesday", "friday"], date(2026, 2, 18)) == date(2026, 2, 20)

    def test_wraps_to_next_week(self):
        # Saturday -> Tuesday
        assert next_order_date(["tuesday", "friday"], date(2026, 2, 21)) == date(2026, 2, 24)

    def test_no_days_means_every_day(self):
        assert next_order_date([], date(2026, 2, 21)) == date(2026, 2, 21)

    def test_unknown_weekday_rejected(self):
        with pytest.raises(ValueError):
            next_order_date(["funday"], date(2026, 2, 21))

    def test_settings_normalize_day_names(self):
        site = SiteSettings(order_days=["Tuesday", " FRIDAY ", "tuesday"])

        assert site.order_days == ["tuesday", "friday"]
        assert site.order_days_display() == "Tuesday & Friday"


class TestPromotionalBanner:

    def _banner(self, **kwargs):
        return PromotionalBanner(id="b1", title="Mango season", product_name="Alphonso Mango", **kwargs)

    def test_live_inside_window(self):
        banner = self._banner(start_date=date(2026, 3, 1), end_date=date(2026, 5, 31))

        assert banner.is_live(date(2026, 4, 1)) is True
        assert banner.is_live(date(2026, 2, 28)) is False
        assert banner.is_live(date(2026, 6, 1)) is False

    def test_inactive_is_never_live(self):
        assert self._banner(is_active=False).is_live(date(2026, 4, 1)) is False
