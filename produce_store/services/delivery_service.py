"""
Delivery Service
Distance-based delivery quotes from the store to a customer pincode

Author: TM3
Date: 2026-02-12
"""
import time
import logging
from decimal import Decimal
from typing import Dict, Optional, Tuple, Callable

import httpx

from produce_store.connectors.geo_connector import GeoConnector
from produce_store.core.config import settings
from produce_store.domain.address import clean_pincode, is_valid_pincode
from produce_store.domain.delivery import (
    Coordinates, DeliveryQuote, RouteInfo, find_zone, linear_charge
)
from produce_store.repositories.settings_repository import SettingsRepository

logger = logging.getLogger(__name__)

INVALID_PINCODE = "Invalid pincode format"
PINCODE_NOT_FOUND = "Could not locate pincode. Delivery unavailable for this area."
ROUTE_NOT_FOUND = "Could not calculate delivery route. Please try again later."


class DeliveryService:
    """
    Service for delivery quotes

    Handles:
    - Pincode validation
    - Geocoding + road distance (cached per pincode)
    - Charge from delivery zones, or distance x rate when no zone applies
    - Free delivery above the order threshold
    """

    def __init__(
        self,
        geo: Optional[GeoConnector] = None,
        settings_repo: Optional[SettingsRepository] = None,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.geo = geo or GeoConnector()
        self.settings_repo = settings_repo or SettingsRepository()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.DELIVERY_CACHE_TTL_SECONDS
        self.clock = clock
        # {pincode: (stored_at, route)}
        self._cache: Dict[str, Tuple[float, RouteInfo]] = {}

    @property
    def origin(self) -> Coordinates:
        return Coordinates(lat=settings.STORE_LAT, lng=settings.STORE_LNG)

    # ========================================
    # Cache
    # ========================================

    def _cached_route(self, pincode: str) -> Optional[RouteInfo]:
        entry = self._cache.get(pincode)
        if entry is None:
            return None
        stored_at, route = entry
        if self.clock() - stored_at > self.ttl_seconds:
            del self._cache[pincode]
            return None
        return route

    def clear_cache(self, pincode: Optional[str] = None) -> int:
        """Drop one pincode (or everything); returns how many entries went"""
        if pincode is None:
            cleared = len(self._cache)
            self._cache.clear()
        else:
            cleared = 1 if self._cache.pop(clean_pincode(pincode), None) else 0
        logger.info(f"Cleared {cleared} delivery cache entries")
        return cleared

    # ========================================
    # Lookup
    # ========================================

    async def _lookup_route(self, pincode: str) -> Tuple[Optional[RouteInfo], Optional[str]]:
        """Route for a pincode, or (None, reason) when it can't be found"""
        try:
            destination = await self.geo.geocode_pincode(pincode)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Geocoding failed for pincode {pincode}: {e}")
            destination = None

        if destination is None:
            return None, PINCODE_NOT_FOUND

        try:
            route = await self.geo.get_route(self.origin, destination)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Routing failed for pincode {pincode}: {e}")
            route = None

        if route is None:
            return None, ROUTE_NOT_FOUND

        return route, None

    def _pricing(self):
        """(rate_per_km, free_threshold, active zones) from site settings, config as fallback"""
        rate = Decimal(str(settings.DELIVERY_RATE_PER_KM))
        threshold = Decimal(str(settings.FREE_DELIVERY_THRESHOLD))
        zones = []

        try:
            site = self.settings_repo.get()
            if site.delivery_rate_per_km is not None:
                rate = site.delivery_rate_per_km
            if site.free_delivery_threshold is not None:
                threshold = site.free_delivery_threshold
            zones = self.settings_repo.find_delivery_zones(active_only=True)
        except Exception as e:
            logger.warning(f"Could not load delivery settings, using defaults: {e}")

        return rate, threshold, zones

    async def quote(
        self,
        pincode: str,
        subtotal=None,
        force_refresh: bool = False
    ) -> DeliveryQuote:
        """
        Quote delivery to a pincode

        Args:
            pincode: Customer pincode (whitespace is ignored)
            subtotal: Cart subtotal; enables the free-delivery check
            force_refresh: Skip the cached route

        Returns:
            DeliveryQuote; delivery_unavailable + error when it can't be offered
        """
        cleaned = clean_pincode(pincode)
        if not is_valid_pincode(cleaned):
            return DeliveryQuote(pincode=cleaned, delivery_unavailable=True, error=INVALID_PINCODE)

        if cleaned == settings.STORE_PINCODE:
            route = RouteInfo(distance_km=0.0, duration_minutes=0)
        else:
            route = None if force_refresh else self._cached_route(cleaned)
            if route is None:
                route, error = await self._lookup_route(cleaned)
                if route is None:
                    return DeliveryQuote(pincode=cleaned, delivery_unavailable=True, error=error)
                self._cache[cleaned] = (self.clock(), route)

        max_km = settings.MAX_DELIVERY_DISTANCE_KM
        if route.distance_km > max_km:
            return DeliveryQuote(
                pincode=cleaned,
                distance_km=route.distance_km,
                duration_minutes=route.duration_minutes,
                delivery_unavailable=True,
                error=(
                    f"Delivery not available beyond {max_km:g} km. "
                    f"Your location is {route.distance_km} km away."
                )
            )

        zone_name = None
        rate, threshold, zones = self._pricing()
        if route.distance_km == 0:
            charge = Decimal("0")
        else:
            zone = find_zone(route.distance_km, zones) if zones else None
            if zone is not None:
                charge = zone.delivery_charge
                zone_name = zone.zone_name
            else:
                charge = linear_charge(route.distance_km, rate)

        free_delivery = subtotal is not None and Decimal(str(subtotal)) >= threshold
        if free_delivery:
            charge = Decimal("0")

        return DeliveryQuote(
            pincode=cleaned,
            distance_km=route.distance_km,
            duration_minutes=route.duration_minutes,
            delivery_charge=charge,
            free_delivery=free_delivery,
            zone_name=zone_name
        )


# Shared instance so the route cache lives for the whole process
delivery_service = DeliveryService()
