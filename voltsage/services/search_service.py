"""Search orchestration: input parsing, geocoding, provider fetch and normalization."""

import logging
import math
from typing import Callable, List, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from voltsage.core.config import settings
from voltsage.redis_client import get_cache, set_cache
from voltsage.schemas.search import SearchResult
from voltsage.schemas.station import ChargingStation
from voltsage.services.errors import GeocodingError, VoltsageError
from voltsage.services.geocoding_service import GeocodingService, geocoding_service
from voltsage.services.provider_clients import ProviderClient, get_provider_client
from voltsage.services.response_cache import ResponseCache, build_cache_key
from voltsage.services.station_normalizer import normalize_stations

logger = logging.getLogger(__name__)

INVALID_COORDINATES_ERROR = "Invalid coordinates provided."
UNEXPECTED_ERROR = "An unexpected error occurred while searching for chargers. Please try again."


def too_short_error(min_length: int) -> str:
    return f"Please enter at least {min_length} characters to search."


def location_not_found_error(query: str) -> str:
    return f'Could not find location for "{query}". Please try a different address.'


def parse_coordinate_input(query: str) -> Optional[Tuple[float, float]]:
    """Return (lat, lon) when ``query`` is exactly two numeric comma-separated segments.

    Range is not checked here; anything else is treated as an address.
    """
    parts = query.split(",")
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0].strip())
        lon = float(parts[1].strip())
    except ValueError:
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return lat, lon


def coordinates_in_range(lat: float, lon: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


class SearchService:
    """
    Turns one free-form query into a ``SearchResult``.

    ``search`` never raises: validation failures, geocoding misses, provider
    and configuration errors all come back as ``SearchResult(error=...)`` with
    an empty station list.
    """

    def __init__(
        self,
        provider_id: Optional[str] = None,
        geocoder: Optional[GeocodingService] = None,
        cache: Optional[ResponseCache] = None,
        client_factory: Callable[[Optional[str]], ProviderClient] = get_provider_client,
        min_query_length: int = settings.MIN_QUERY_LENGTH,
        max_results: int = settings.MAX_RESULTS,
        redis_client: Optional[Redis] = None,
    ):
        self.provider_id = provider_id or settings.DATA_PROVIDER
        self.geocoder = geocoder or geocoding_service
        self.cache = cache
        self.client_factory = client_factory
        self.min_query_length = min_query_length
        self.max_results = max_results
        # optional shared tier behind the in-process cache
        self.redis_client = redis_client

    async def search(self, query: str) -> SearchResult:
        try:
            return await self._search(query)
        except Exception as e:
            logger.error(f"Unexpected error searching for '{query}': {e}", exc_info=True)
            return SearchResult(error=UNEXPECTED_ERROR)

    async def _search(self, query: str) -> SearchResult:
        query = (query or "").strip()
        if len(query) < self.min_query_length:
            return SearchResult(error=too_short_error(self.min_query_length))

        coords = await self.resolve_location(query)
        if isinstance(coords, SearchResult):
            return coords
        lat, lon = coords

        try:
            stations = await self.fetch_stations(lat, lon)
        except VoltsageError as e:
            logger.warning(f"Station search near ({lat}, {lon}) failed: {e}")
            return SearchResult(error=str(e), latitude=lat, longitude=lon)

        return SearchResult(stations=stations, latitude=lat, longitude=lon)

    async def resolve_location(self, query: str):
        """Coordinates for ``query``, or a SearchResult carrying the error."""
        coords = parse_coordinate_input(query)
        if coords is not None:
            if not coordinates_in_range(*coords):
                return SearchResult(error=INVALID_COORDINATES_ERROR)
            return coords

        try:
            coords = await self.geocoder.geocode(query)
        except GeocodingError as e:
            logger.warning(f"Geocoding '{query}' failed: {e}")
            coords = None
        if coords is None or not coordinates_in_range(*coords):
            return SearchResult(error=location_not_found_error(query))
        return coords

    async def fetch_stations(self, lat: float, lon: float) -> List[ChargingStation]:
        client = self.client_factory(self.provider_id)
        cache_key = build_cache_key(client.provider_id, lat, lon, client.radius)

        stations = self.cache.get(cache_key) if self.cache is not None else None
        if stations is None:
            stations = await self._read_shared_cache(cache_key)
            if stations is not None and self.cache is not None:
                self.cache.set(cache_key, stations)

        if stations is None:
            records = await client.fetch_records(lat, lon)
            stations = normalize_stations(client.provider_id, records)
            if self.cache is not None:
                self.cache.set(cache_key, stations)
            await self._write_shared_cache(cache_key, stations)
        else:
            logger.info(f"Cache hit for {cache_key}")

        return self._rank(stations, lat, lon)

    async def _read_shared_cache(self, cache_key: str) -> Optional[List[ChargingStation]]:
        if self.redis_client is None:
            return None
        try:
            cached = await get_cache(cache_key, self.redis_client)
            if not isinstance(cached, list):
                return None
            return [ChargingStation.model_validate(s) for s in cached]
        except (RedisError, ValueError) as e:
            logger.warning(f"Ignoring shared cache entry {cache_key}: {e}")
            return None

    async def _write_shared_cache(self, cache_key: str, stations: List[ChargingStation]):
        if self.redis_client is None:
            return
        try:
            await set_cache(cache_key, [s.model_dump() for s in stations],
                            expire=settings.CACHE_EXPIRE_SECONDS, client=self.redis_client)
        except RedisError as e:
            logger.warning(f"Failed to store {cache_key} in the shared cache: {e}")

    def _rank(self, stations: List[ChargingStation], lat: float, lon: float) -> List[ChargingStation]:
        ranked = [
            s.model_copy(update={
                "distance_km": round(self.geocoder.calculate_distance_km(lat, lon, s.latitude, s.longitude), 3)
            })
            for s in stations
        ]
        ranked.sort(key=lambda s: s.distance_km)
        return ranked[:self.max_results]


class SearchSession:
    """
    Holds the current result set for one user.

    Every submission gets a generation number; a search that finishes after a
    newer one was submitted is discarded instead of replacing the newer result.
    """

    def __init__(self, service: SearchService):
        self.service = service
        self.generation = 0
        self.current: Optional[SearchResult] = None

    async def submit(self, query: str) -> Optional[SearchResult]:
        """Run a search; returns None when it was superseded while in flight."""
        self.generation += 1
        generation = self.generation
        result = await self.service.search(query)
        if generation != self.generation:
            logger.info(f"Discarding stale result for '{query}' (generation {generation} < {self.generation})")
            return None
        self.current = result
        return result

    def find_station(self, station_id: str) -> Optional[ChargingStation]:
        """Station with ``station_id`` in the current result set, if any."""
        if self.current is None:
            return None
        return next((s for s in self.current.stations if s.id == station_id), None)
