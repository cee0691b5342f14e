"""
Cart Service
Prices client-side cart lines against the live catalog

Author: TM3
Date: 2026-02-12
"""
import logging
from collections import OrderedDict
from typing import List, Optional

from produce_store.core.exceptions import NotFoundError, ValidationError
from produce_store.domain.cart import Cart, CartItem, CartLineRequest, CartQuote, UnavailableLine
from produce_store.domain.product import Product
from produce_store.repositories.analytics_repository import AnalyticsRepository
from produce_store.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


def price_line(product: Product, variant_id: Optional[str], quantity: int) -> Optional[CartItem]:
    """
    Build a cart line at today's price, or None when it can't be sold

    A variant replaces the base price; the product discount applies on top.
    """
    if not product.is_purchasable:
        return None

    variant = None
    if variant_id:
        variant = next((v for v in product.variants if v.id == variant_id), None)
        if variant is None or not variant.is_available:
            return None
        if variant.stock_quantity is not None and variant.stock_quantity <= 0:
            return None

    base_price = variant.price if variant else product.price
    discount = product.discount_for(base_price)

    return CartItem(
        product_id=product.id,
        variant_id=variant.id if variant else None,
        name=product.name,
        variant_name=variant.name if variant else None,
        unit=product.unit,
        image_url=product.image_url,
        price=discount.final_price,
        original_price=discount.original_price if discount.has_discount else None,
        quantity=quantity
    )


class CartService:
    """Service for cart pricing and add-to-cart tracking"""

    def __init__(
        self,
        product_repo: Optional[ProductRepository] = None,
        analytics_repo: Optional[AnalyticsRepository] = None
    ):
        self.product_repo = product_repo or ProductRepository()
        self.analytics_repo = analytics_repo or AnalyticsRepository()

    def quote(self, lines: List[CartLineRequest]) -> CartQuote:
        """
        Re-price submitted lines

        Lines for the same product/variant are merged. Missing, hidden and
        unavailable items are dropped and listed in unavailable_items.
        """
        merged = OrderedDict()
        for line in lines:
            key = (line.product_id, line.variant_id)
            merged[key] = merged.get(key, 0) + line.quantity

        products = self.product_repo.find_by_ids(list({pid for pid, _ in merged}))

        cart = Cart()
        unavailable = []
        for (product_id, variant_id), quantity in merged.items():
            product = products.get(product_id)
            if product is None:
                unavailable.append(UnavailableLine(
                    product_id=product_id, variant_id=variant_id, reason="not_found"
                ))
                continue

            item = price_line(product, variant_id, quantity)
            if item is None:
                unavailable.append(UnavailableLine(
                    product_id=product_id, variant_id=variant_id,
                    name=product.name, reason="unavailable"
                ))
                continue

            cart.items.append(item)

        if unavailable:
            logger.info(f"Cart quote dropped {len(unavailable)} unavailable line(s)")

        return CartQuote(cart=cart, unavailable_items=unavailable)

    def add_item(self, line: CartLineRequest, user_id: Optional[str] = None) -> CartItem:
        """
        Price one line for adding to the cart

        Records an add_to_cart activity when the caller is signed in.
        """
        product = self.product_repo.find_by_id(line.product_id)
        if product is None:
            raise NotFoundError("Product not found")

        item = price_line(product, line.variant_id, line.quantity)
        if item is None:
            raise ValidationError(f"{product.name} is currently unavailable")

        if user_id:
            try:
                self.analytics_repo.insert_activity(
                    "add_to_cart",
                    user_id=user_id,
                    action_details={
                        "product_id": item.product_id,
                        "variant_id": item.variant_id,
                        "product_name": item.display_name,
                        "quantity": item.quantity,
                        "price": float(item.price),
                    }
                )
            except Exception as e:
                logger.warning(f"Could not record add_to_cart for user {user_id}: {e}")

        return item
