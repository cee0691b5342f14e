"""
Delivery Domain Models

Distance-based delivery quotes from the store to a customer pincode.

Author: TM3
Date: 2026-02-12
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal, ROUND_HALF_UP


class Coordinates(BaseModel):
    lat: float
    lng: float


class RouteInfo(BaseModel):
    distance_km: float
    duration_minutes: int


class DeliveryZone(BaseModel):
    """Fee tier covering distances in [min_distance_km, max_distance_km)"""
    id: str
    zone_name: str
    min_distance_km: Decimal
    max_distance_km: Decimal
    delivery_charge: Decimal
    is_active: bool = True

    def covers(self, distance_km) -> bool:
        distance = Decimal(str(distance_km))
        return self.min_distance_km <= distance < self.max_distance_km

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "zone_name": self.zone_name,
            "min_distance_km": float(self.min_distance_km),
            "max_distance_km": float(self.max_distance_km),
            "delivery_charge": float(self.delivery_charge),
            "is_active": self.is_active,
        }


class DeliveryQuote(BaseModel):
    """
    Result of a delivery lookup for a pincode

    When delivery_unavailable is set, error explains why and the charge
    fields are not meaningful.
    """
    pincode: str
    distance_km: Optional[float] = None
    duration_minutes: Optional[int] = None
    delivery_charge: Decimal = Decimal("0")
    delivery_unavailable: bool = False
    free_delivery: bool = False
    zone_name: Optional[str] = None
    error: Optional[str] = None
    destination: Optional[Coordinates] = None

    @property
    def is_available(self) -> bool:
        return not self.delivery_unavailable

    def to_dict(self) -> dict:
        return {
            "pincode": self.pincode,
            "distance_km": self.distance_km,
            "duration_minutes": self.duration_minutes,
            "delivery_charge": float(self.delivery_charge),
            "delivery_unavailable": self.delivery_unavailable,
            "free_delivery": self.free_delivery,
            "zone_name": self.zone_name,
            "error": self.error,
        }


class DeliveryQuoteRequest(BaseModel):
    pincode: str = Field(..., min_length=1, max_length=12)
    subtotal: Optional[Decimal] = Field(None, ge=0)
    force_refresh: bool = False


def round_distance(distance_meters: float) -> float:
    """Meters to kilometers, one decimal place"""
    km = Decimal(str(distance_meters)) / Decimal("1000")
    return float(km.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def linear_charge(distance_km: float, rate_per_km) -> Decimal:
    """round(distance * rate) in whole rupees"""
    charge = Decimal(str(distance_km)) * Decimal(str(rate_per_km))
    return charge.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def find_zone(distance_km: float, zones: List[DeliveryZone]) -> Optional[DeliveryZone]:
    """Active zone whose range covers the distance, or None"""
    for zone in sorted(zones, key=lambda z: z.min_distance_km):
        if zone.is_active and zone.covers(distance_km):
            return zone
    return None
