"""FastAPI router for favorites and ratings"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path

from voltsage.api.deps import get_favorites_service
from voltsage.schemas.search import FavoriteToggleResponse, RatingUpdate
from voltsage.services.favorites_service import FavoritesService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Favorites"])


@router.get("/favorites", summary="List favorite station ids")
async def list_favorites(service: FavoritesService = Depends(get_favorites_service)):
    try:
        return {"favorites": await service.list_favorites()}
    except Exception as e:
        logger.error(f"Error listing favorites: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load favorites")


@router.post(
    "/favorites/{station_id}/toggle",
    response_model=FavoriteToggleResponse,
    summary="Add or remove a favorite",
)
async def toggle_favorite(
    station_id: str = Path(..., min_length=1),
    service: FavoritesService = Depends(get_favorites_service),
):
    try:
        favorite = await service.toggle_favorite(station_id)
    except Exception as e:
        logger.error(f"Error toggling favorite {station_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update favorites")
    return FavoriteToggleResponse(station_id=station_id, favorite=favorite)


@router.get("/ratings", summary="All station ratings")
async def list_ratings(service: FavoritesService = Depends(get_favorites_service)):
    try:
        return {"ratings": await service.get_ratings()}
    except Exception as e:
        logger.error(f"Error listing ratings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load ratings")


@router.put("/ratings/{station_id}", summary="Rate a station (1-5)")
async def rate_station(
    body: RatingUpdate,
    station_id: str = Path(..., min_length=1),
    service: FavoritesService = Depends(get_favorites_service),
):
    try:
        await service.set_rating(station_id, body.rating)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error saving rating for {station_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save rating")
    return {"station_id": station_id, "rating": body.rating}
