import logging
from typing import Optional

from fastapi import Depends, HTTPException
from redis.asyncio import Redis

from voltsage.core.config import settings
from voltsage.redis_client import get_redis_client
from voltsage.services.errors import ProviderConfigError
from voltsage.services.favorites_service import FavoritesService, MemoryKeyValueStore, RedisKeyValueStore
from voltsage.services.provider_clients import StationDetailsClient
from voltsage.services.response_cache import ResponseCache
from voltsage.services.search_service import SearchService, SearchSession

logger = logging.getLogger(__name__)

# process-wide state shared by all requests (single user)
response_cache = ResponseCache()
memory_store = MemoryKeyValueStore()
_search_session: Optional[SearchSession] = None


def get_search_service() -> SearchService:
    return SearchService(cache=response_cache)


async def get_search_session(redis_client: Optional[Redis] = Depends(get_redis_client)) -> SearchSession:
    global _search_session
    if _search_session is None:
        _search_session = SearchSession(get_search_service())
    _search_session.service.redis_client = redis_client if settings.CACHE_REDIS_ENABLED else None
    return _search_session


async def get_favorites_service(redis_client: Optional[Redis] = Depends(get_redis_client)) -> FavoritesService:
    if settings.FAVORITES_BACKEND == "redis":
        if redis_client is not None:
            return FavoritesService(RedisKeyValueStore(redis_client))
        logger.warning("FAVORITES_BACKEND=redis but Redis is not connected; using in-memory favorites")
    return FavoritesService(memory_store)


def get_station_details_client() -> StationDetailsClient:
    try:
        return StationDetailsClient()
    except ProviderConfigError as e:
        logger.warning(f"Station details unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))
