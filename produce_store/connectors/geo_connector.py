"""
Geo Connector
Geocodes Indian pincodes with Nominatim and measures road distance with OSRM

Author: TM3
Date: 2026-02-12
"""
import logging
from typing import Optional

import httpx

from produce_store.core.config import settings
from produce_store.domain.delivery import Coordinates, RouteInfo, round_distance

logger = logging.getLogger(__name__)


class GeoConnector:
    """
    Connector for OpenStreetMap services

    Handles:
    - Pincode geocoding (Nominatim search, India only)
    - Driving distance / duration between two points (OSRM route)
    """

    def __init__(
        self,
        nominatim_url: str = None,
        osrm_url: str = None,
        user_agent: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize geo connector

        Args:
            nominatim_url: Nominatim base URL
            osrm_url: OSRM base URL
            user_agent: User-Agent header (Nominatim usage policy requires one)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.nominatim_url = (nominatim_url or settings.NOMINATIM_URL).rstrip("/")
        self.osrm_url = (osrm_url or settings.OSRM_URL).rstrip("/")
        self.headers = {"User-Agent": user_agent or settings.GEO_USER_AGENT}
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(headers=self.headers, timeout=15.0, transport=self.transport)

    async def geocode_pincode(self, pincode: str) -> Optional[Coordinates]:
        """
        Look up the centre of an Indian pincode

        Returns:
            Coordinates, or None when Nominatim has no match
        """
        async with self._client() as client:
            response = await client.get(
                f"{self.nominatim_url}/search",
                params={
                    "q": f"{pincode}, India",
                    "format": "json",
                    "limit": 1,
                    "countrycodes": "in",
                }
            )
            response.raise_for_status()

        try:
            results = response.json()
            if not results:
                logger.info(f"No geocoding result for pincode {pincode}")
                return None
            first = results[0]
            return Coordinates(lat=float(first["lat"]), lng=float(first["lon"]))
        except (ValueError, KeyError, IndexError, TypeError) as e:
            # Nominatim answers throttled clients with an HTML page and a 200
            logger.warning(f"Unreadable geocoding response for pincode {pincode}: {e}")
            return None

    async def get_route(self, origin: Coordinates, destination: Coordinates) -> Optional[RouteInfo]:
        """
        Driving route between two points

        Returns:
            RouteInfo (km rounded to 1 decimal, minutes rounded) or None
            when OSRM finds no route
        """
        coordinates = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"

        async with self._client() as client:
            response = await client.get(
                f"{self.osrm_url}/route/v1/driving/{coordinates}",
                params={"overview": "false"}
            )
            response.raise_for_status()

        try:
            data = response.json()
            if data.get("code") != "Ok" or not data.get("routes"):
                logger.info(f"OSRM returned no route: {data.get('code')}")
                return None
            route = data["routes"][0]
            return RouteInfo(
                distance_km=round_distance(route["distance"]),
                duration_minutes=int(round(route["duration"] / 60))
            )
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning(f"Unreadable OSRM response: {e}")
            return None
