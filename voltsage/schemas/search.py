"""Pydantic schemas for search requests, filters and responses"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field

from .station import ChargingStation, FlatStation


class FilterOptions(BaseModel):
    """User-selected filters. All filters compose with logical AND."""
    connector_types: List[str] = Field(default_factory=list, description="Match any of these connector types")
    min_power: float = Field(0, description="Minimum station max power in kW", ge=0)
    networks: List[str] = Field(default_factory=list, description="Match any of these networks")
    show_available: bool = Field(False, description="Only stations reporting available > 0")
    favorites_only: bool = Field(False, description="Only stations in the favorites set")


class StationFacets(BaseModel):
    """Distinct values derived from a result set, used to populate filter controls."""
    connector_types: List[str] = Field(default_factory=list)
    networks: List[str] = Field(default_factory=list)
    max_power_kw: float = 0.0


class SearchResult(BaseModel):
    """Result-or-error envelope returned by the search orchestrator."""
    stations: List[ChargingStation] = Field(default_factory=list)
    error: Optional[str] = None
    # Coordinates the provider was queried with, when the input could be resolved
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class StationSearchResponse(BaseModel):
    """Station search response schema."""
    stations: List[Union[ChargingStation, FlatStation]] = Field(..., description="Filtered stations")
    facets: StationFacets = Field(..., description="Facets over the unfiltered result set")
    total_count: int = Field(..., description="Number of stations before filtering")
    error: Optional[str] = Field(None, description="User-visible error message")


class RatingUpdate(BaseModel):
    rating: int = Field(..., description="Star rating", ge=1, le=5)


class FavoriteToggleResponse(BaseModel):
    station_id: str
    favorite: bool

