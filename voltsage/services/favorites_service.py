"""Favorites and ratings, keyed by station id.

The store outlives any single result set. Only a get/set key-value primitive
is needed from the backing store.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Protocol

from redis.asyncio import Redis

from voltsage.redis_client import get_cache, set_cache

logger = logging.getLogger(__name__)

FAVORITES_KEY = "voltsage-favorites"
RATINGS_KEY = "voltsage-ratings"

MIN_RATING = 1
MAX_RATING = 5


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store; values are copied in and out."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class RedisKeyValueStore:
    """JSON values in Redis, without expiry."""

    def __init__(self, client: Optional[Redis] = None):
        self.client = client

    async def get(self, key: str) -> Any:
        return await get_cache(key, client=self.client)

    async def set(self, key: str, value: Any) -> None:
        await set_cache(key, value, expire=None, client=self.client)


class FavoritesService:
    """
    Favorite / rating operations.
    Read-modify-write without locking: a single user is assumed.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def list_favorites(self) -> List[str]:
        favorites = await self.store.get(FAVORITES_KEY)
        if not isinstance(favorites, list):
            return []
        return [str(f) for f in favorites]

    async def is_favorite(self, station_id: str) -> bool:
        return station_id in await self.list_favorites()

    async def toggle_favorite(self, station_id: str) -> bool:
        """Add or remove ``station_id``; returns True when it is now a favorite."""
        favorites = await self.list_favorites()
        if station_id in favorites:
            favorites = [f for f in favorites if f != station_id]
            now_favorite = False
        else:
            favorites.append(station_id)
            now_favorite = True
        await self.store.set(FAVORITES_KEY, favorites)
        logger.info(f"Station {station_id} favorite={now_favorite}")
        return now_favorite

    async def get_ratings(self) -> Dict[str, int]:
        ratings = await self.store.get(RATINGS_KEY)
        if not isinstance(ratings, dict):
            return {}
        return {str(k): int(v) for k, v in ratings.items()}

    async def get_rating(self, station_id: str) -> Optional[int]:
        return (await self.get_ratings()).get(station_id)

    async def set_rating(self, station_id: str, rating: int) -> Dict[str, int]:
        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
        ratings = await self.get_ratings()
        ratings[station_id] = rating
        await self.store.set(RATINGS_KEY, ratings)
        return ratings
