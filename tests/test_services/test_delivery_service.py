"""
Unit tests for DeliveryService

Geo lookups and settings are mocked; the clock is a plain counter so
cache expiry can be tested without sleeping.
"""
import asyncio
import httpx
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from produce_store.connectors.geo_connector import GeoConnector
from produce_store.domain.delivery import Coordinates, DeliveryZone, RouteInfo
from produce_store.domain.settings import SiteSettings
from produce_store.services.delivery_service import (
    DeliveryService, INVALID_PINCODE, PINCODE_NOT_FOUND, ROUTE_NOT_FOUND
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def geo():
    connector = MagicMock()
    connector.geocode_pincode = AsyncMock(return_value=Coordinates(lat=21.15, lng=79.08))
    connector.get_route = AsyncMock(return_value=RouteInfo(distance_km=12.3, duration_minutes=25))
    return connector


@pytest.fixture
def settings_repo():
    repo = MagicMock()
    repo.get.return_value = SiteSettings(
        delivery_rate_per_km=Decimal("10"),
        free_delivery_threshold=Decimal("399")
    )
    repo.find_delivery_zones.return_value = []
    return repo


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(geo, settings_repo, clock):
    return DeliveryService(geo=geo, settings_repo=settings_repo, ttl_seconds=3600, clock=clock)


class TestDeliveryQuote:

    def test_linear_charge_when_no_zones(self, service):
        # Act
        quote = asyncio.run(service.quote("440 010"))

        # Assert
        assert quote.pincode == "440010"
        assert quote.delivery_unavailable is False
        assert quote.distance_km == 12.3
        assert quote.delivery_charge == Decimal("123")
        assert quote.zone_name is None

    def test_zone_takes_precedence_over_rate(self, service, settings_repo):
        # Arrange
        settings_repo.find_delivery_zones.return_value = [
            DeliveryZone(
                id="z1", zone_name="City", min_distance_km=Decimal("10"),
                max_distance_km=Decimal("20"), delivery_charge=Decimal("60")
            )
        ]

        # Act
        quote = asyncio.run(service.quote("440010"))

        # Assert
        assert quote.delivery_charge == Decimal("60")
        assert quote.zone_name == "City"

    def test_free_delivery_at_threshold(self, service):
        quote = asyncio.run(service.quote("440010", subtotal=Decimal("399")))

        assert quote.free_delivery is True
        assert quote.delivery_charge == Decimal("0")

    def test_below_threshold_pays(self, service):
        quote = asyncio.run(service.quote("440010", subtotal=Decimal("398.99")))

        assert quote.free_delivery is False
        assert quote.delivery_charge == Decimal("123")

    def test_invalid_pincode_skips_lookup(self, service, geo):
        quote = asyncio.run(service.quote("4400"))

        assert quote.delivery_unavailable is True
        assert quote.error == INVALID_PINCODE
        geo.geocode_pincode.assert_not_called()

    def test_store_pincode_is_free_without_lookup(self, service, geo):
        quote = asyncio.run(service.quote("440024"))

        assert quote.distance_km == 0.0
        assert quote.delivery_charge == Decimal("0")
        geo.geocode_pincode.assert_not_called()

    def test_beyond_max_distance_is_unavailable(self, service, geo):
        # Arrange
        geo.get_route.return_value = RouteInfo(distance_km=62.4, duration_minutes=90)

        # Act
        quote = asyncio.run(service.quote("441001"))

        # Assert
        assert quote.delivery_unavailable is True
        assert quote.error == "Delivery not available beyond 50 km. Your location is 62.4 km away."

    def test_unknown_pincode(self, service, geo):
        geo.geocode_pincode.return_value = None

        quote = asyncio.run(service.quote("999999"))

        assert quote.delivery_unavailable is True
        assert quote.error == PINCODE_NOT_FOUND

    def test_routing_error_is_reported_not_raised(self, service, geo):
        geo.get_route.side_effect = httpx.ConnectError("connection refused")

        quote = asyncio.run(service.quote("440010"))

        assert quote.delivery_unavailable is True
        assert quote.error == ROUTE_NOT_FOUND

    def test_throttled_geocoder_page_is_unavailable(self, settings_repo, clock):
        # Arrange: Nominatim answers with an HTML page and a 200
        geo = GeoConnector(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>rate limited</html>"))
        )
        service = DeliveryService(geo=geo, settings_repo=settings_repo, ttl_seconds=3600, clock=clock)

        # Act
        quote = asyncio.run(service.quote("440001"))

        # Assert
        assert quote.delivery_unavailable is True
        assert quote.error == PINCODE_NOT_FOUND
        assert service.clear_cache() == 0

    def test_malformed_route_is_unavailable(self, settings_repo, clock):
        def handler(request):
            if "/route/" in request.url.path:
                return httpx.Response(200, json={"code": "Ok", "routes": [{}]})
            return httpx.Response(200, json=[{"lat": "21.1458", "lon": "79.0882"}])

        service = DeliveryService(
            geo=GeoConnector(transport=httpx.MockTransport(handler)),
            settings_repo=settings_repo, ttl_seconds=3600, clock=clock
        )

        quote = asyncio.run(service.quote("440001"))

        assert quote.delivery_unavailable is True
        assert quote.error == ROUTE_NOT_FOUND

    def test_settings_failure_falls_back_to_config(self, service, settings_repo):
        # Arrange
        settings_repo.get.side_effect = Exception("database unavailable")

        # Act
        quote = asyncio.run(service.quote("440010"))

        # Assert: default 10/km from config
        assert quote.delivery_charge == Decimal("123")


class TestRouteCache:

    def test_second_quote_uses_cache(self, service, geo):
        asyncio.run(service.quote("440010"))
        asyncio.run(service.quote("440010"))

        assert geo.geocode_pincode.call_count == 1
        assert geo.get_route.call_count == 1

    def test_force_refresh_bypasses_cache(self, service, geo):
        asyncio.run(service.quote("440010"))
        asyncio.run(service.quote("440010", force_refresh=True))

        assert geo.get_route.call_count == 2

    def test_entry_expires_after_ttl(self, service, geo, clock):
        asyncio.run(service.quote("440010"))

        clock.now += 3601
        asyncio.run(service.quote("440010"))

        assert geo.get_route.call_count == 2

    def test_failed_lookup_not_cached(self, service, geo):
        geo.geocode_pincode.return_value = None
        asyncio.run(service.quote("440010"))

        geo.geocode_pincode.return_value = Coordinates(lat=21.15, lng=79.08)
        quote = asyncio.run(service.quote("440010"))

        assert quote.delivery_unavailable is False

    def test_pricing_recomputed_with_cached_route(self, service, settings_repo):
        asyncio.run(service.quote("440010"))
        settings_repo.get.return_value = SiteSettings(delivery_rate_per_km=Decimal("20"))

        quote = asyncio.run(service.quote("440010"))

        assert quote.delivery_charge == Decimal("246")

    def test_clear_cache(self, service):
        asyncio.run(service.quote("440010"))
        asyncio.run(service.quote("440011"))

        assert service.clear_cache("440 010") == 1
        assert service.clear_cache("440010") == 0
        assert service.clear_cache() == 1
