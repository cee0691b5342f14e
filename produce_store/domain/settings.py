"""
Site Settings Domain Model

Store-wide settings kept in the single site_settings row (id 'default'):
delivery pricing, order days, delivery slot and the seasonal box promo.

Author: TM3
Date: 2026-02-11
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime, date, timedelta
from decimal import Decimal

SETTINGS_ROW_ID = "default"

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _normalize_days(days: Optional[List[str]]) -> List[str]:
    if days is None:
        return []
    normalized = []
    for day in days:
        name = day.strip().lower()
        if name not in WEEKDAYS:
            raise ValueError(f"Unknown weekday: {day}")
        if name not in normalized:
            normalized.append(name)
    return normalized


def next_order_date(order_days: List[str], today: date) -> date:
    """
    The day an order placed today is booked for.

    Today when today is an order day, otherwise the nearest following
    configured weekday. With no order days configured every day is open.
    """
    days = [WEEKDAYS.index(d) for d in _normalize_days(order_days)]
    if not days:
        return today

    current = today.weekday()
    if current in days:
        return today

    offsets = []
    for day in days:
        diff = day - current
        if diff <= 0:
            diff += 7
        offsets.append(diff)
    return today + timedelta(days=min(offsets))


class SiteSettings(BaseModel):
    id: str = SETTINGS_ROW_ID
    delivery_rate_per_km: Optional[Decimal] = None
    free_delivery_threshold: Optional[Decimal] = None
    order_days: List[str] = Field(default_factory=lambda: ["tuesday", "friday"])
    delivery_time_slot: str = "7:00 AM - 10:00 AM"

    show_seasonal_box: bool = False
    seasonal_box_title: str = "Seasonal Box"
    seasonal_box_description: str = ""
    seasonal_box_price: Decimal = Decimal("0")
    seasonal_box_badge: str = "Limited"
    seasonal_box_button_text: str = "Order Now"
    seasonal_box_button_link: Optional[str] = None
    map_url: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("order_days", mode="before")
    @classmethod
    def normalize_order_days(cls, value):
        return _normalize_days(value)

    def order_date_for(self, today: date) -> date:
        return next_order_date(self.order_days, today)

    def order_days_display(self) -> str:
        """'Tuesday & Friday' style text for emails"""
        names = [d.capitalize() for d in self.order_days]
        if len(names) <= 1:
            return "".join(names)
        return ", ".join(names[:-1]) + " & " + names[-1]

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        for field in ['delivery_rate_per_km', 'free_delivery_threshold', 'seasonal_box_price']:
            value = getattr(self, field)
            data[field] = float(value) if value is not None else None
        return data


class SiteSettingsUpdate(BaseModel):
    delivery_rate_per_km: Optional[Decimal] = Field(None, ge=0)
    free_delivery_threshold: Optional[Decimal] = Field(None, ge=0)
    order_days: Optional[List[str]] = None
    delivery_time_slot: Optional[str] = Field(None, max_length=100)
    show_seasonal_box: Optional[bool] = None
    seasonal_box_title: Optional[str] = None
    seasonal_box_description: Optional[str] = None
    seasonal_box_price: Optional[Decimal] = Field(None, ge=0)
    seasonal_box_badge: Optional[str] = None
    seasonal_box_button_text: Optional[str] = None
    seasonal_box_button_link: Optional[str] = None
    map_url: Optional[str] = None

    @field_validator("order_days")
    @classmethod
    def normalize_order_days(cls, value):
        if value is None:
            return value
        return _normalize_days(value)
