"""Geocoding service for address to lat/lon mapping"""

import logging
import math
from typing import Any, Dict, Optional, Tuple

import httpx

from voltsage.core.config import settings
from voltsage.services.errors import GeocodingError

logger = logging.getLogger(__name__)


def _coordinate(result: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[float]:
    for key in keys:
        value = result.get(key)
        if value is None or value == "":
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


class GeocodingService:
    """Service for converting free-text addresses to coordinates"""

    def __init__(self, base_url: str = settings.GEOCODER_BASE_URL, api_key: Optional[str] = settings.GEOCODER_API_KEY,
                 timeout: float = settings.GEOCODER_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _build_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            # Nominatim rejects requests without an identifying agent
            "User-Agent": settings.GEOCODER_USER_AGENT,
        }
        if self.api_key:
            headers[settings.GEOCODER_API_KEY_HEADER_NAME] = self.api_key
        return headers

    async def geocode(self, address: str) -> Optional[Tuple[float, float]]:
        """
        Convert an address or city name to (latitude, longitude).

        Uses a Nominatim-compatible search endpoint and takes the first result.
        Both ``lat``/``lon`` and ``latitude``/``longitude`` result keys are accepted.

        Args:
            address: Free-text address

        Returns:
            (lat, lon) of the first result, None if nothing matched

        Raises:
            GeocodingError: non-2xx response, network error or unreadable payload
        """
        params = {"q": address, "format": "json", "limit": 1}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.base_url, params=params, headers=self._build_headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Geocoding failed for '{address}': status {e.response.status_code}")
            raise GeocodingError(f"Geocoder returned status {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Geocoding request failed for '{address}': {e}")
            raise GeocodingError(f"Geocoder unreachable: {e}") from e
        except ValueError as e:
            logger.error(f"Geocoder returned malformed JSON for '{address}'")
            raise GeocodingError("Geocoder returned malformed JSON") from e

        results = data if isinstance(data, list) else (data.get("results") if isinstance(data, dict) else None)
        if not results or not isinstance(results[0], dict):
            logger.warning(f"No geocoding results for '{address}'")
            return None

        first = results[0]
        lat = _coordinate(first, ("lat", "latitude"))
        lon = _coordinate(first, ("lon", "lng", "longitude"))
        if lat is None or lon is None:
            logger.warning(f"First geocoding result for '{address}' has no coordinates: {first}")
            return None

        logger.info(f"Geocoded '{address}' -> ({lat}, {lon})")
        return lat, lon

    def calculate_distance_km(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """
        Calculate approximate distance between two points using Haversine formula

        Args:
            lat1, lon1: First point coordinates
            lat2, lon2: Second point coordinates

        Returns:
            Distance in kilometers
        """
        # Convert to radians
        lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

        # Haversine formula
        dlat = lat2 - lat1
        dlon = lon2 - lon1
        a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
        c = 2 * math.asin(math.sqrt(a))

        # Earth radius in kilometers
        r = 6371

        return c * r


# Global instance
geocoding_service = GeocodingService()
