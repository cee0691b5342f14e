"""
Order Domain Models

Represents customer orders, their line items, and the order / payment
status state machines.

Author: TM3
Date: 2026-02-11
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Tuple
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from produce_store.domain.cart import CartLineRequest


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    COD = "cod"
    ONLINE = "online"


# Fulfilment path an order walks through, in order
ORDER_FLOW: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

ORDER_TRANSITIONS: Dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, frozenset] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID, PaymentStatus.PENDING}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

# Statuses that trigger a customer email when reached
NOTIFY_STATUSES = frozenset({
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})

STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Whether an order in `current` may move to `target`"""
    return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]


def next_status(current: OrderStatus) -> Optional[OrderStatus]:
    """Next step on the fulfilment path, None when terminal"""
    current = OrderStatus(current)
    if current in TERMINAL_ORDER_STATUSES:
        return None
    return ORDER_FLOW[ORDER_FLOW.index(current) + 1]


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return PaymentStatus(target) in PAYMENT_TRANSITIONS[PaymentStatus(current)]


class OrderItem(BaseModel):
    """
    Order Item domain model - a line item in an order

    Product name and unit price are captured at order time so later
    catalog edits don't rewrite order history.
    """

    id: Optional[str] = Field(None, description="Order item ID")
    order_id: Optional[str] = Field(None, description="Parent order ID")
    product_id: Optional[str] = Field(None, description="Product catalog ID")
    product_name: str = Field(..., description="Product name at order time")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_price: Decimal = Field(..., description="Price per unit", ge=0)
    total_price: Decimal = Field(..., description="unit_price * quantity", ge=0)

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump()
        data['unit_price'] = float(self.unit_price)
        data['total_price'] = float(self.total_price)
        return data


class Order(BaseModel):
    """
    Order domain model

    Fields:
        id: Order ID (uuid)
        order_number: Human readable number from generate_order_number()
        user_id: Owner (auth user)

        # Delivery
        delivery_name / delivery_phone / delivery_address: Where it goes
        delivery_slot: Delivery time window
        order_date: Scheduled order (delivery) day

        # Amounts
        subtotal: Sum of line totals
        delivery_charge: Delivery fee (0 when free)
        total: subtotal + delivery_charge

        # Payment
        payment_method: cod or online
        payment_status: pending, paid, failed, refunded
        payment_verified_at: When payment was confirmed
        upi_reference: Gateway payment id / UPI reference
        razorpay_order_id: Gateway order the online payment must be made against

        status: Order status (see ORDER_TRANSITIONS)
        items: Line items (loaded on demand)
    """

    id: str = Field(..., description="Order ID")
    order_number: str = Field(..., description="Order number")
    user_id: Optional[str] = Field(None, description="Owner user ID")

    delivery_name: str = Field(..., description="Recipient name")
    delivery_phone: str = Field(..., description="Recipient phone")
    delivery_address: str = Field(..., description="Delivery address")
    delivery_slot: Optional[str] = Field(None, description="Delivery time slot")
    order_date: date = Field(..., description="Scheduled order day")
    notes: Optional[str] = Field(None, description="Customer notes")

    subtotal: Decimal = Field(..., description="Items subtotal", ge=0)
    delivery_charge: Decimal = Field(Decimal("0"), description="Delivery fee", ge=0)
    total: Decimal = Field(..., description="Order total", ge=0)

    payment_method: PaymentMethod = Field(PaymentMethod.COD, description="Payment method")
    payment_status: PaymentStatus = Field(PaymentStatus.PENDING, description="Payment status")
    payment_verified_at: Optional[datetime] = None
    payment_screenshot_url: Optional[str] = None
    upi_reference: Optional[str] = None
    razorpay_order_id: Optional[str] = None

    status: OrderStatus = Field(OrderStatus.PENDING, description="Order status")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    items: List[OrderItem] = Field(default_factory=list, description="Order line items")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        """Convert to dictionary with JSON-friendly values"""
        data = self.model_dump(exclude={'items'})

        for field in ['subtotal', 'delivery_charge', 'total']:
            if data.get(field) is not None:
                data[field] = float(data[field])

        data['status'] = self.status.value
        data['payment_status'] = self.payment_status.value
        data['payment_method'] = self.payment_method.value
        data['order_date'] = self.order_date.isoformat()
        for field in ['payment_verified_at', 'created_at', 'updated_at']:
            if data.get(field):
                data[field] = data[field].isoformat()

        data['status_label'] = STATUS_LABELS[self.status]
        data['items'] = [item.to_dict() for item in self.items]
        data['item_count'] = self.item_count

        return data


class OrderStatusUpdate(BaseModel):
    """Admin request to change an order status"""
    status: OrderStatus


class PaymentStatusUpdate(BaseModel):
    """Admin request to change a payment status"""
    payment_status: PaymentStatus
    upi_reference: Optional[str] = None


class CheckoutRequest(BaseModel):
    """
    Place an order from the client cart

    Either address_id (a saved address) or the manual address fields
    must be given.
    """
    items: List[CartLineRequest] = Field(..., min_length=1)
    address_id: Optional[str] = None
    full_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=15)
    address: Optional[str] = Field(None, max_length=500)
    pincode: Optional[str] = None
    save_address: bool = True
    payment_method: PaymentMethod = PaymentMethod.COD
    notes: Optional[str] = Field(None, max_length=500)


class PaymentVerifyRequest(BaseModel):
    """Razorpay checkout callback fields"""
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
