"""
Unit tests for product discount pricing and stock messages
"""
import pytest
from decimal import Decimal

from produce_store.domain.product import Product, calculate_discounted_price, stock_change_message


class TestCalculateDiscountedPrice:
    """Test calculate_discounted_price rules"""

    def test_percentage_discount_rounds_savings(self):
        # Act
        result = calculate_discounted_price(Decimal("199"), "percentage", Decimal("15"), True)

        # Assert: 199 * 15% = 29.85 -> 30
        assert result.savings == Decimal("30")
        assert result.final_price == Decimal("169")
        assert result.label == "15% OFF"
        assert result.has_discount is True

    def test_flat_discount_is_capped_at_price(self):
        result = calculate_discounted_price(Decimal("40"), "flat", Decimal("50"), True)

        assert result.savings == Decimal("40")
        assert result.final_price == Decimal("0")
        assert result.label == "Save ₹40"

    def test_flat_discount_label_drops_trailing_zeros(self):
        result = calculate_discounted_price(Decimal("100"), "flat", Decimal("12.50"), True)

        assert result.final_price == Decimal("87.50")
        assert result.label == "Save ₹12.5"

    @pytest.mark.parametrize("discount_type,value,enabled", [
        ("percentage", Decimal("10"), False),
        (None, Decimal("10"), True),
        ("percentage", Decimal("0"), True),
        ("percentage", None, True),
        ("bogus", Decimal("10"), True),
    ])
    def test_no_discount_cases(self, discount_type, value, enabled):
        result = calculate_discounted_price(Decimal("120"), discount_type, value, enabled)

        assert result.final_price == Decimal("120")
        assert result.savings == Decimal("0")
        assert result.label is None
        assert result.has_discount is False


class TestProduct:
    """Test Product computed fields"""

    def test_to_dict_includes_final_price(self, mango):
        data = mango.to_dict()

        assert data['price'] == 500.0
        assert data['final_price'] == 450.0
        assert data['discount_label'] == "10% OFF"
        assert data['is_in_stock'] is True
        assert len(data['variants']) == 2

    def test_discount_applies_to_variant_price(self, mango):
        result = mango.discount_for(Decimal("260"))

        assert result.final_price == Decimal("234")

    def test_out_of_stock_when_tracked_stock_is_zero(self):
        product = Product(id="p", name="Kesar", price=Decimal("300"), stock_quantity=0)

        assert product.is_in_stock is False
        assert product.is_purchasable is False

    def test_untracked_stock_counts_as_in_stock(self):
        product = Product(id="p", name="Kesar", price=Decimal("300"), stock_quantity=None)

        assert product.is_in_stock is True

    def test_hidden_product_is_not_purchasable(self):
        product = Product(id="p", name="Kesar", price=Decimal("300"), is_hidden=True)

        assert product.is_in_stock is True
        assert product.is_purchasable is False


class TestStockChangeMessage:

    def test_unavailable_wins_over_stock(self):
        assert stock_change_message("Kesar", "kg", 10, False) == "Kesar is now out of stock"

    def test_back_in_stock(self):
        assert stock_change_message("Kesar", "kg", 10, True) == "Kesar is back in stock! 10 kg(s) available"

    def test_no_message_for_zero_stock(self):
        assert stock_change_message("Kesar", "kg", 0, None) is None
