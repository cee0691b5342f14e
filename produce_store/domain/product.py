"""
Product Domain Models

Represents catalog products and their variants (pack sizes) in the store.
This is the single source of truth for product data structure.

Author: TM3
Date: 2026-02-11
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FLAT = "flat"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_FLAT)


class DiscountResult(BaseModel):
    """Outcome of applying a product discount to a base price"""
    original_price: Decimal
    final_price: Decimal
    savings: Decimal = Decimal("0")
    label: Optional[str] = None

    @property
    def has_discount(self) -> bool:
        return self.savings > 0

    def to_dict(self) -> dict:
        return {
            "original_price": float(self.original_price),
            "final_price": float(self.final_price),
            "savings": float(self.savings),
            "label": self.label,
            "has_discount": self.has_discount,
        }


def _round_rupees(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _format_amount(value: Decimal) -> str:
    """Render 10 as '10' and 12.5 as '12.5' for labels"""
    normalized = value.normalize()
    return format(normalized, "f")


def calculate_discounted_price(
    base_price,
    discount_type: Optional[str],
    discount_value,
    discount_enabled: Optional[bool]
) -> DiscountResult:
    """
    Apply a product-level discount.

    Rules:
    - disabled, missing type, or value <= 0: no discount
    - percentage: savings = round(base * value / 100), label "{value}% OFF"
    - flat: savings = min(value, base), label "Save ₹{savings}"
    - final price never drops below zero
    """
    base = Decimal(str(base_price))
    value = Decimal(str(discount_value)) if discount_value is not None else Decimal("0")

    if not discount_enabled or not discount_type or value <= 0:
        return DiscountResult(original_price=base, final_price=base)

    if discount_type == DISCOUNT_PERCENTAGE:
        savings = _round_rupees(base * value / Decimal("100"))
        label = f"{_format_amount(value)}% OFF"
    elif discount_type == DISCOUNT_FLAT:
        savings = min(value, base)
        label = f"Save ₹{_format_amount(savings)}"
    else:
        return DiscountResult(original_price=base, final_price=base)

    final_price = max(Decimal("0"), base - savings)
    return DiscountResult(
        original_price=base,
        final_price=final_price,
        savings=savings,
        label=label
    )


class ProductVariant(BaseModel):
    """
    Product Variant domain model - a purchasable size/pack of a product

    Fields:
        id: Variant ID (uuid)
        product_id: Parent product ID
        name: Variant label (e.g. "500 g", "1 kg")
        price: Variant price, replaces the product base price
        stock_quantity: Units on hand (optional)
        is_available: Whether this variant can be ordered
        display_order: Sort key within the product
    """

    id: str = Field(..., description="Variant ID")
    product_id: str = Field(..., description="Parent product ID")
    name: str = Field(..., description="Variant name")
    price: Decimal = Field(..., description="Variant price", ge=0)
    stock_quantity: Optional[int] = Field(None, description="Stock on hand")
    is_available: bool = Field(True, description="Whether the variant is orderable")
    display_order: int = Field(0, description="Sort order within product")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price)
        return data


class Product(BaseModel):
    """
    Product domain model - represents a product in the storefront catalog

    Fields:
        id: Product ID (uuid)
        name: Product name
        price: Base price in rupees
        unit: Selling unit (kg, dozen, box...)
        description: Product description (optional)
        category / subcategory: Category slugs used for browsing
        image_url: Primary image
        image_urls: Gallery images

        # Inventory
        stock_quantity: Units on hand
        is_available: Whether it can be ordered
        is_hidden: Hidden from the storefront (still visible to admins)

        # Merchandising
        is_bestseller: Bestseller badge
        is_fresh_today: "Fresh today" badge
        discount_enabled / discount_type / discount_value: Product discount
    """

    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    price: Decimal = Field(..., description="Base price", ge=0)
    unit: str = Field("kg", description="Selling unit")
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, description="Category slug")
    subcategory: Optional[str] = Field(None, description="Subcategory slug")
    image_url: Optional[str] = Field(None, description="Primary image URL")
    image_urls: List[str] = Field(default_factory=list, description="Gallery image URLs")

    stock_quantity: Optional[int] = Field(None, description="Units on hand")
    is_available: bool = Field(True, description="Whether the product can be ordered")
    is_hidden: bool = Field(False, description="Hidden from storefront")

    is_bestseller: bool = Field(False, description="Bestseller badge")
    is_fresh_today: bool = Field(False, description="Fresh today badge")
    discount_enabled: bool = Field(False, description="Discount switch")
    discount_type: Optional[str] = Field(None, description="percentage or flat")
    discount_value: Optional[Decimal] = Field(None, description="Discount amount or percent")

    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    variants: List[ProductVariant] = Field(default_factory=list, description="Loaded variants")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_in_stock(self) -> bool:
        """Available and (when tracked) with stock left"""
        if not self.is_available:
            return False
        if self.stock_quantity is None:
            return True
        return self.stock_quantity > 0

    @property
    def is_purchasable(self) -> bool:
        return self.is_in_stock and not self.is_hidden

    def discount_for(self, base_price=None) -> DiscountResult:
        """Apply this product's discount to its price or a variant price"""
        return calculate_discounted_price(
            self.price if base_price is None else base_price,
            self.discount_type,
            self.discount_value,
            self.discount_enabled
        )

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Includes the discounted price so clients never re-implement it.
        """
        data = self.model_dump(exclude={'variants'})
        discount = self.discount_for()

        data['price'] = float(self.price)
        if self.discount_value is not None:
            data['discount_value'] = float(self.discount_value)
        data['final_price'] = float(discount.final_price)
        data['discount_label'] = discount.label
        data['savings'] = float(discount.savings)
        data['is_in_stock'] = self.is_in_stock
        data['variants'] = [v.to_dict() for v in self.variants]

        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    unit: str = "kg"
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    image_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_available: bool = True
    is_hidden: bool = False
    is_bestseller: bool = False
    is_fresh_today: bool = False
    discount_enabled: bool = False
    discount_type: Optional[str] = Field(None, pattern="^(percentage|flat)$")
    discount_value: Optional[Decimal] = Field(None, ge=0)


class ProductUpdate(BaseModel):
    """Schema for updating an existing product (only set fields are written)"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    image_url: Optional[str] = None
    image_urls: Optional[List[str]] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
    is_hidden: Optional[bool] = None
    is_bestseller: Optional[bool] = None
    is_fresh_today: Optional[bool] = None
    discount_enabled: Optional[bool] = None
    discount_type: Optional[str] = Field(None, pattern="^(percentage|flat)$")
    discount_value: Optional[Decimal] = Field(None, ge=0)


class VariantCreate(BaseModel):
    """Schema for creating a product variant"""
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_available: bool = True
    display_order: int = 0


class VariantUpdate(BaseModel):
    """Schema for updating a product variant"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
    display_order: Optional[int] = None


def stock_change_message(
    product_name: str,
    unit: str,
    stock_quantity: Optional[int],
    is_available: Optional[bool]
) -> Optional[str]:
    """
    Message for a stock notification after an inventory edit, or None.

    Marking a product unavailable wins over a stock number.
    """
    if is_available is False:
        return f"{product_name} is now out of stock"
    if stock_quantity is not None and stock_quantity > 0:
        return f"{product_name} is back in stock! {stock_quantity} {unit}(s) available"
    return None
