"""Facet derivation and filtering over a station result set.

Everything here is pure: inputs are never mutated and the returned lists keep
the input order.
"""

from typing import Collection, Iterable, List, Optional

from voltsage.schemas.search import FilterOptions, StationFacets
from voltsage.schemas.station import UNKNOWN_NETWORK, ChargingStation


def _distinct(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return seen


def all_connector_types(stations: Iterable[ChargingStation]) -> List[str]:
    return _distinct(c.type for s in stations for c in s.connectors)


def all_networks(stations: Iterable[ChargingStation]) -> List[str]:
    return _distinct(s.network for s in stations if s.network and s.network != UNKNOWN_NETWORK)


def max_power(station: ChargingStation) -> float:
    """Highest connector power of a station, 0 without connectors."""
    return max((c.power_kw for c in station.connectors), default=0.0)


def derive_facets(stations: List[ChargingStation]) -> StationFacets:
    return StationFacets(
        connector_types=all_connector_types(stations),
        networks=all_networks(stations),
        max_power_kw=max((max_power(s) for s in stations), default=0.0),
    )


def matches(station: ChargingStation, filters: FilterOptions,
            favorites: Optional[Collection[str]] = None) -> bool:
    if filters.favorites_only and (not favorites or station.id not in favorites):
        return False

    if filters.connector_types:
        wanted = set(filters.connector_types)
        if not any(c.type in wanted for c in station.connectors):
            return False

    if max_power(station) < filters.min_power:
        return False

    if filters.networks and station.network not in filters.networks:
        return False

    if filters.show_available and station.availability.available <= 0:
        return False

    return True


def apply_filters(stations: List[ChargingStation], filters: Optional[FilterOptions] = None,
                  favorites: Optional[Collection[str]] = None) -> List[ChargingStation]:
    """Return the stations passing every selected filter (logical AND).

    ``favorites`` is the favorites id set used when ``filters.favorites_only``
    is on. Empty filters return the input list unchanged.
    """
    if filters is None:
        return list(stations)
    favorite_ids = set(favorites) if favorites else set()
    return [s for s in stations if matches(s, filters, favorite_ids)]
