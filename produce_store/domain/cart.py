"""
Cart Domain Models

The cart is keyed by product plus optional variant. Adding an item that
is already present bumps its quantity; quantities of zero or less
remove the line.

Author: TM3
Date: 2026-02-12
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Tuple
from decimal import Decimal


CartKey = Tuple[str, Optional[str]]


class CartItem(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    name: str
    variant_name: Optional[str] = None
    unit: Optional[str] = None
    image_url: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0)
    quantity: int = Field(1, ge=1)

    @property
    def key(self) -> CartKey:
        return (self.product_id, self.variant_id)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def line_savings(self) -> Decimal:
        if self.original_price is not None and self.original_price > self.price:
            return (self.original_price - self.price) * self.quantity
        return Decimal("0")

    @property
    def display_name(self) -> str:
        if self.variant_name:
            return f"{self.name} ({self.variant_name})"
        return self.name

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price)
        data['original_price'] = float(self.original_price) if self.original_price is not None else None
        data['line_total'] = float(self.line_total)
        return data


class Cart(BaseModel):
    items: List[CartItem] = Field(default_factory=list)

    def _find(self, key: CartKey) -> Optional[CartItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None

    def add(self, item: CartItem) -> CartItem:
        """Add one unit of item, merging with an existing line"""
        existing = self._find(item.key)
        if existing is not None:
            existing.quantity += 1
            return existing
        new_item = item.model_copy(update={"quantity": 1})
        self.items.append(new_item)
        return new_item

    def remove(self, product_id: str, variant_id: Optional[str] = None):
        self.items = [i for i in self.items if i.key != (product_id, variant_id)]

    def update_quantity(self, product_id: str, quantity: int, variant_id: Optional[str] = None):
        if quantity <= 0:
            self.remove(product_id, variant_id)
            return
        existing = self._find((product_id, variant_id))
        if existing is not None:
            existing.quantity = quantity

    def clear(self):
        self.items = []

    @property
    def total(self) -> Decimal:
        return sum((i.line_total for i in self.items), Decimal("0"))

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def total_savings(self) -> Decimal:
        return sum((i.line_savings for i in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> dict:
        return {
            "items": [i.to_dict() for i in self.items],
            "total": float(self.total),
            "item_count": self.item_count,
            "total_savings": float(self.total_savings),
        }


class CartLineRequest(BaseModel):
    """A line submitted by the client for pricing or checkout"""
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(..., ge=1, le=100)


class UnavailableLine(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    name: Optional[str] = None
    reason: str


class CartQuote(BaseModel):
    """Submitted lines re-priced from the live catalog"""
    cart: Cart
    unavailable_items: List[UnavailableLine] = Field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.cart.to_dict()
        data['unavailable_items'] = [u.model_dump() for u in self.unavailable_items]
        return data
