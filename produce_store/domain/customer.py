"""
Customer Domain Models

Registered customer profiles, walk-in (offline) customers, weekly
reminder subscriptions and the per-customer order statistics used by
segmentation.

Author: TM3
Date: 2026-02-20
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime
from decimal import Decimal


class Profile(BaseModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class CustomerStats(BaseModel):
    """
    Order statistics for one registered customer

    Fields:
        order_count: Non-cancelled orders
        total_spent: Sum of non-cancelled order totals
        last_order_date: Most recent non-cancelled order
        days_since_last_order: Whole days since last_order_date (None without orders)
    """
    user_id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    order_count: int = 0
    total_spent: Decimal = Decimal("0")
    last_order_date: Optional[datetime] = None
    days_since_last_order: Optional[int] = None

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data['total_spent'] = float(self.total_spent)
        return data


class OfflineCustomer(BaseModel):
    id: str
    full_name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    pincode: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class OfflineCustomerCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=10, max_length=15)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=500)
    pincode: Optional[str] = Field(None, max_length=6)
    notes: Optional[str] = Field(None, max_length=1000)


class OfflineCustomerUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=10, max_length=15)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=500)
    pincode: Optional[str] = Field(None, max_length=6)
    notes: Optional[str] = Field(None, max_length=1000)


class WeeklySubscription(BaseModel):
    id: str
    user_id: Optional[str] = None
    email: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class SubscriptionRequest(BaseModel):
    subscribe: bool = True
    phone: Optional[str] = Field(None, max_length=15)
