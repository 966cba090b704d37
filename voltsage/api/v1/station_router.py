"""FastAPI router for station search"""

import logging
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from voltsage.api.deps import get_favorites_service, get_search_session, get_station_details_client
from voltsage.schemas.search import FilterOptions, StationSearchResponse
from voltsage.schemas.station import StationDetails, to_flat
from voltsage.services.errors import ProviderConfigError, ProviderError
from voltsage.services.favorites_service import FavoritesService
from voltsage.services.filter_service import apply_filters, derive_facets
from voltsage.services.provider_clients import StationDetailsClient
from voltsage.services.search_service import SearchSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stations", tags=["Stations"])


@router.get(
    "/search",
    response_model=StationSearchResponse,
    summary="Search charging stations by address or coordinates",
    description="""
    Search for EV charging stations near an address or a "latitude,longitude" pair.

    Facets are derived from the full result set; filters are applied afterwards.
    Search failures (bad input, unknown location, provider errors) are reported
    in the `error` field with HTTP 200 and an empty station list.
    """
)
async def search_stations(
    q: str = Query(..., description='Address or "latitude,longitude"'),
    connector_types: List[str] = Query([], description="Connector types (any of)"),
    min_power: float = Query(0, description="Minimum max power in kW", ge=0),
    networks: List[str] = Query([], description="Networks (any of)"),
    show_available: bool = Query(False, description="Only stations with available > 0"),
    favorites_only: bool = Query(False, description="Only favorite stations"),
    shape: Literal["rich", "flat"] = Query("rich", description="Station record shape"),
    session: SearchSession = Depends(get_search_session),
    favorites_service: FavoritesService = Depends(get_favorites_service),
):
    """Search, derive facets, filter"""
    result = await session.submit(q)
    if result is None:
        raise HTTPException(status_code=409, detail="Search superseded by a newer search")

    filters = FilterOptions(
        connector_types=connector_types,
        min_power=min_power,
        networks=networks,
        show_available=show_available,
        favorites_only=favorites_only,
    )
    try:
        favorites = await favorites_service.list_favorites() if favorites_only else None
    except Exception as e:
        logger.error(f"Error loading favorites: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load favorites")

    stations = apply_filters(result.stations, filters, favorites)
    logger.info(f"Returned {len(stations)}/{len(result.stations)} stations for '{q}'")

    return StationSearchResponse(
        stations=[to_flat(s) for s in stations] if shape == "flat" else stations,
        facets=derive_facets(result.stations),
        total_count=len(result.stations),
        error=result.error,
    )


@router.get(
    "/{station_id}/details",
    response_model=StationDetails,
    summary="Generated network, pricing and hours for a station",
    description="""
    Looks up a station from the current result set and asks the generative
    source for its network, pricing and opening hours. The answer is
    model-generated and may be inaccurate; unknown values are "Unknown" or "Varies".
    """
)
async def get_station_details(
    station_id: str,
    session: SearchSession = Depends(get_search_session),
    details_client: StationDetailsClient = Depends(get_station_details_client),
):
    station = session.find_station(station_id)
    if station is None:
        raise HTTPException(status_code=404, detail="Station not found in the current results")

    try:
        details = await details_client.get_details(station.name, station.address)
    except ProviderConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ProviderError as e:
        logger.warning(f"Station details for {station_id} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Error getting details for station {station_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get station details")

    return details.model_copy(update={"station_id": station_id})
