"""
Pre-order Domain Models

Pre-orders reserve a not-yet-available product advertised on a
promotional banner. Some banners take payment up front.

Author: TM3
Date: 2026-02-18
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional, Dict
from datetime import datetime, date
from decimal import Decimal
from enum import Enum


class PreOrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class PreOrderPaymentStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    PAID = "paid"


PREORDER_TRANSITIONS: Dict[PreOrderStatus, frozenset] = {
    PreOrderStatus.PENDING: frozenset({PreOrderStatus.CONFIRMED, PreOrderStatus.CANCELLED}),
    PreOrderStatus.CONFIRMED: frozenset({PreOrderStatus.FULFILLED, PreOrderStatus.CANCELLED}),
    PreOrderStatus.FULFILLED: frozenset(),
    PreOrderStatus.CANCELLED: frozenset(),
}


def can_transition_preorder(current: PreOrderStatus, target: PreOrderStatus) -> bool:
    return PreOrderStatus(target) in PREORDER_TRANSITIONS[PreOrderStatus(current)]


def preorder_available_message(product_name: str, quantity: int) -> str:
    return (
        f"Great news! {product_name} is now in stock. "
        f"Your reserved quantity of {quantity} is ready for purchase."
    )


class PromotionalBanner(BaseModel):
    """
    Promotional Banner domain model

    A banner advertises an upcoming product. When payment_required is
    set, pre-orders are charged price_per_unit per unit up front.
    """

    id: str
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    product_name: str
    badge_text: Optional[str] = None
    cta_text: Optional[str] = None
    cta_link: Optional[str] = None
    image_url: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    payment_required: bool = False
    price_per_unit: Optional[Decimal] = None
    unit: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def is_live(self, today: date) -> bool:
        """Active and inside its optional start/end window"""
        if not self.is_active:
            return False
        if self.start_date and today < self.start_date:
            return False
        if self.end_date and today > self.end_date:
            return False
        return True

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        if self.price_per_unit is not None:
            data['price_per_unit'] = float(self.price_per_unit)
        return data


class BannerCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    product_name: str = Field(..., min_length=1, max_length=200)
    badge_text: Optional[str] = None
    cta_text: Optional[str] = None
    cta_link: Optional[str] = None
    image_url: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    payment_required: bool = False
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = None


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    product_name: Optional[str] = Field(None, min_length=1, max_length=200)
    badge_text: Optional[str] = None
    cta_text: Optional[str] = None
    cta_link: Optional[str] = None
    image_url: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    payment_required: Optional[bool] = None
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = None


class PreOrder(BaseModel):
    """
    Pre-order domain model

    Fields:
        id: Pre-order ID
        user_id: Customer who reserved
        banner_id: Banner the reservation came from (optional)
        product_name: Reserved product
        quantity: Reserved quantity
        customer_name / customer_phone / customer_email: Contact details
        delivery_*: Delivery quote captured at reservation time
        payment_amount: Upfront amount when the banner requires payment
        payment_status: not_required, pending, paid
        status: pending, confirmed, fulfilled, cancelled
    """

    id: str
    user_id: str
    banner_id: Optional[str] = None
    product_name: str
    quantity: int = Field(..., ge=1)
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_pincode: Optional[str] = None
    delivery_distance_km: Optional[Decimal] = None
    delivery_charge: Optional[Decimal] = None
    payment_amount: Optional[Decimal] = None
    payment_status: PreOrderPaymentStatus = PreOrderPaymentStatus.NOT_REQUIRED
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    status: PreOrderStatus = PreOrderStatus.PENDING
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        for field in ['delivery_distance_km', 'delivery_charge', 'payment_amount']:
            value = getattr(self, field)
            data[field] = float(value) if value is not None else None
        return data


class PreOrderCreate(BaseModel):
    """Customer request to reserve a banner product"""
    banner_id: str
    quantity: int = Field(..., ge=1, le=100)
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: str = Field(..., min_length=10, max_length=15)
    customer_email: Optional[EmailStr] = None
    delivery_address: Optional[str] = Field(None, max_length=500)
    delivery_pincode: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)


class PreOrderStatusUpdate(BaseModel):
    status: PreOrderStatus


class PreOrderNotification(BaseModel):
    id: str
    user_id: str
    pre_order_id: Optional[str] = None
    product_name: str
    message: str
    is_read: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
