# voltsage/schemas/__init__.py
from .station import (
    Availability,
    ChargingStation,
    Connector,
    FlatStation,
    StationDetails,
    to_flat
)
from .search import (
    FilterOptions,
    StationFacets,
    SearchResult,
    StationSearchResponse,
    RatingUpdate,
    FavoriteToggleResponse
)
