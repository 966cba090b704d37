"""
Tests for facet derivation and filtering
"""
from voltsage.schemas.search import FilterOptions
from voltsage.schemas.station import Availability, ChargingStation, Connector
from voltsage.services.filter_service import (
    all_connector_types,
    all_networks,
    apply_filters,
    derive_facets,
    max_power,
)


def make_station(station_id, connectors, network="ChargePoint", available=-1):
    return ChargingStation(
        id=station_id,
        name=f"Station {station_id}",
        address="1 Test St",
        latitude=34.0,
        longitude=-118.0,
        network=network,
        connectors=[Connector(type=t, power_kw=p) for t, p in connectors],
        availability=Availability(total=4, available=available),
        provider="nrel",
    )


def sample_stations():
    return [
        make_station("a", [("J-1772", 7), ("CCS", 150)], network="Electrify America", available=2),
        make_station("b", [("J-1772", 7)], network="ChargePoint", available=0),
        make_station("c", [("CHAdeMO", 50)], network="Unknown", available=-1),
        make_station("d", [("Tesla (NACS)", 250)], network="Tesla", available=3),
    ]


class TestFacets:
    """Test facet derivation"""

    def test_connector_types_in_first_appearance_order(self):
        assert all_connector_types(sample_stations()) == ["J-1772", "CCS", "CHAdeMO", "Tesla (NACS)"]

    def test_networks_exclude_unknown(self):
        assert all_networks(sample_stations()) == ["Electrify America", "ChargePoint", "Tesla"]

    def test_max_power(self):
        assert max_power(sample_stations()[0]) == 150
        assert max_power(make_station("e", [])) == 0

    def test_derive_facets(self):
        facets = derive_facets(sample_stations())
        assert facets.max_power_kw == 250
        assert facets.networks == ["Electrify America", "ChargePoint", "Tesla"]

    def test_derive_facets_empty(self):
        facets = derive_facets([])
        assert facets.connector_types == []
        assert facets.networks == []
        assert facets.max_power_kw == 0


class TestApplyFilters:
    """Test filter composition"""

    def test_empty_filters_return_input_unchanged(self):
        stations = sample_stations()
        filters = FilterOptions(connector_types=[], min_power=0, networks=[], show_available=False)
        assert apply_filters(stations, filters) == stations
        assert apply_filters(stations, None) == stations

    def test_min_power_uses_station_max(self):
        x = make_station("x", [("J-1772", 7), ("CCS", 150)])
        y = make_station("y", [("J-1772", 7)])
        assert apply_filters([x, y], FilterOptions(min_power=50)) == [x]

    def test_connector_filter_matches_any_selected(self):
        result = apply_filters(sample_stations(), FilterOptions(connector_types=["CCS", "CHAdeMO"]))
        assert [s.id for s in result] == ["a", "c"]

    def test_network_filter(self):
        result = apply_filters(sample_stations(), FilterOptions(networks=["Tesla", "ChargePoint"]))
        assert [s.id for s in result] == ["b", "d"]

    def test_show_available_requires_positive_count(self):
        result = apply_filters(sample_stations(), FilterOptions(show_available=True))
        assert [s.id for s in result] == ["a", "d"]

    def test_favorites_only(self):
        filters = FilterOptions(favorites_only=True)
        assert [s.id for s in apply_filters(sample_stations(), filters, favorites=["b", "zz"])] == ["b"]
        assert apply_filters(sample_stations(), filters, favorites=None) == []

    def test_filters_combine_with_and(self):
        filters = FilterOptions(connector_types=["J-1772"], min_power=100, show_available=True)
        assert [s.id for s in apply_filters(sample_stations(), filters)] == ["a"]

    def test_filter_order_does_not_matter(self):
        stations = sample_stations()
        by_power = FilterOptions(min_power=50)
        by_network = FilterOptions(networks=["Tesla", "Unknown", "Electrify America"])
        one = apply_filters(apply_filters(stations, by_power), by_network)
        two = apply_filters(apply_filters(stations, by_network), by_power)
        assert one == two
        assert [s.id for s in one] == ["a", "c", "d"]

    def test_input_is_not_mutated(self):
        stations = sample_stations()
        before = [s.model_dump() for s in stations]
        apply_filters(stations, FilterOptions(min_power=200, show_available=True))
        assert [s.model_dump() for s in stations] == before
        assert len(stations) == 4
