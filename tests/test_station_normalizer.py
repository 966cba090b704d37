"""
Tests for provider record normalization
"""
import copy

import pytest

from voltsage.mock_api import get_mock_stations
from voltsage.schemas.station import AVAILABILITY_NOT_REPORTED, to_flat
from voltsage.services import station_normalizer
from voltsage.services.errors import ProviderConfigError
from voltsage.services.station_normalizer import (
    ADDRESS_NOT_AVAILABLE,
    NREL_MAPPING,
    build_address,
    classify_speed,
    extract_connector_types,
    get_mapping,
    normalize_record,
    normalize_stations,
    parse_coordinates,
)


class TestBuildAddress:
    """Test address assembly"""

    def test_full_address(self):
        assert build_address("200 N Spring St", "Los Angeles", "CA", "90012") == "200 N Spring St, Los Angeles, CA 90012"

    def test_all_missing(self):
        assert build_address(None, None, None, None) == ADDRESS_NOT_AVAILABLE
        assert build_address("", "  ", None, "") == ADDRESS_NOT_AVAILABLE

    @pytest.mark.parametrize("parts", [
        ("123 Main St,", None, " ", "90001"),
        (None, "Austin", None, None),
        (None, None, "TX", None),
        (", Suite 4 ,", "", "CA", ""),
    ])
    def test_partial_address_is_clean(self, parts):
        address = build_address(*parts)
        assert address
        assert ",," not in address
        assert ", ," not in address
        assert not address.startswith((",", " "))
        assert not address.endswith((",", " "))

    def test_partial_address_values(self):
        assert build_address("123 Main St,", None, " ", "90001") == "123 Main St, 90001"
        assert build_address(None, None, "CA", None) == "CA"


class TestFieldHelpers:
    """Test connector, speed and coordinate helpers"""

    def test_extract_connector_types_defaults_to_unknown(self):
        assert extract_connector_types(None, ("type",)) == ["Unknown"]
        assert extract_connector_types([], ("type",)) == ["Unknown"]
        assert extract_connector_types([{"type": ""}, "junk"], ("type",)) == ["Unknown"]

    def test_extract_connector_types_distinct_in_order(self):
        conns = [{"type": "CCS"}, {"name": "J-1772"}, {"type": "CCS"}]
        assert extract_connector_types(conns, ("type", "name")) == ["CCS", "J-1772"]

    def test_classify_speed_priority(self):
        assert classify_speed(1, 5, 2) == "DC Fast"
        assert classify_speed(0, 5, 2) == "Level 2"
        assert classify_speed(None, None, 2) == "Level 1"
        assert classify_speed(None, None, None) == "N/A"
        assert classify_speed(False, True, True) == "Level 2"

    def test_parse_coordinates(self):
        assert parse_coordinates("34.05", -118.24) == (34.05, -118.24)
        assert parse_coordinates(None, -118.24) is None
        assert parse_coordinates(91, 10) is None
        assert parse_coordinates(0, 0) is None
        assert parse_coordinates("abc", 10) is None


class TestNrelNormalization:
    """Test NREL record mapping"""

    def test_full_record(self, nrel_record):
        station = normalize_record(nrel_record(), NREL_MAPPING)

        assert station.id == "1517"
        assert station.name == "City Hall Garage"
        assert station.address == "200 N Spring St, Los Angeles, CA 90012"
        assert station.network == "ChargePoint Network"
        assert station.pricing == "Free"
        assert station.speed == "DC Fast"
        assert station.provider == "nrel"
        assert station.access_type == "public"
        assert station.status == "Operational"
        assert station.operating_hours == "24 hours daily"
        assert station.source_url == "http://www.chargepoint.com/"

        by_type = {c.type: c for c in station.connectors}
        assert set(by_type) == {"J-1772", "CCS"}
        assert by_type["J-1772"].quantity == 4
        assert by_type["J-1772"].power_kw == 7.0
        assert by_type["CCS"].quantity == 2
        assert by_type["CCS"].power_kw == 150.0
        assert all(c.power_estimated for c in station.connectors)

        assert station.availability.total == 6
        assert station.availability.available == AVAILABILITY_NOT_REPORTED

    def test_dc_fast_wins_over_lower_levels(self, nrel_record):
        raw = nrel_record(ev_connector_types=["J1772"], ev_dc_fast_num=1, ev_level2_evse_num=5, ev_level1_evse_num=2)
        station = normalize_record(raw, NREL_MAPPING)

        assert station.speed == "DC Fast"
        # the DC ports are still represented as a connector
        dc = [c for c in station.connectors if c.type == "DC Fast"]
        assert len(dc) == 1
        assert dc[0].quantity == 1

    def test_connector_codes_as_string(self, nrel_record):
        raw = nrel_record(ev_connector_types="J1772 CHADEMO", ev_dc_fast_num=1, ev_level2_evse_num=1)
        station = normalize_record(raw, NREL_MAPPING)
        assert station.connector_types == ["J-1772", "CHAdeMO"]

    def test_missing_connectors_yield_unknown(self, nrel_record):
        raw = nrel_record(ev_connector_types=None, ev_dc_fast_num=None, ev_level2_evse_num=None)
        station = normalize_record(raw, NREL_MAPPING)

        assert station.connector_types == ["Unknown"]
        assert station.speed == "N/A"
        assert station.connectors[0].quantity == 1

    def test_missing_address_and_network(self, nrel_record):
        raw = nrel_record(street_address=None, city="", state=None, zip=None, ev_network=None)
        station = normalize_record(raw, NREL_MAPPING)
        assert station.address == ADDRESS_NOT_AVAILABLE
        assert station.network == "Unknown"

    def test_null_latitude_is_dropped(self, nrel_record):
        assert normalize_stations("nrel", [nrel_record(latitude=None)]) == []

    def test_null_latitude_drops_only_that_record(self, nrel_record):
        stations = normalize_stations("nrel", [nrel_record(id=1, latitude=None), nrel_record(id=2)])
        assert [s.id for s in stations] == ["2"]

    def test_failing_record_drops_only_itself(self, nrel_record, monkeypatch):
        real_normalize = station_normalizer.normalize_record

        def flaky(raw, mapping, index=0, provider_id=None):
            if index == 1:
                raise RuntimeError("bad record")
            return real_normalize(raw, mapping, index=index, provider_id=provider_id)

        monkeypatch.setattr(station_normalizer, "normalize_record", flaky)
        stations = normalize_stations("nrel", [nrel_record(id=1), nrel_record(id=2), nrel_record(id=3)])

        assert [s.id for s in stations] == ["1", "3"]

    def test_duplicate_ids_are_merged(self, nrel_record):
        first = nrel_record(id=7, ev_connector_types=["J1772"], ev_level2_evse_num=2, ev_dc_fast_num=0)
        second = nrel_record(id=7, station_name="Other name", ev_connector_types=["J1772", "CHADEMO"],
                             ev_level2_evse_num=1, ev_dc_fast_num=1)

        stations = normalize_stations("nrel", [first, second])

        assert len(stations) == 1
        merged = stations[0]
        assert merged.name == "City Hall Garage"
        assert merged.speed == "DC Fast"
        by_type = {c.type: c for c in merged.connectors}
        assert by_type["J-1772"].quantity == 3
        assert by_type["CHAdeMO"].quantity == 1
        assert len(merged.connectors) == 2

    def test_missing_id_is_synthesized(self, nrel_record):
        stations = normalize_stations("nrel", [nrel_record(id=None), nrel_record(id=None)])
        ids = [s.id for s in stations]
        assert len(set(ids)) == 2
        assert ids[0].startswith("nrel-34.05370--118.24280-")


class TestOcmNormalization:
    """Test OpenChargeMap record mapping"""

    def test_full_record(self, ocm_record):
        [station] = normalize_stations("ocm", [ocm_record])

        assert station.id == "9001"
        assert station.name == "Mall Garage"
        assert station.address == "1 Mall Way, Pasadena, CA 91101"
        assert station.network == "EVgo"
        assert station.pricing == "$0.35/kWh"
        assert station.source_url == "https://www.evgo.com"
        assert station.access_type == "public"
        assert station.status == "Operational"
        assert station.speed == "DC Fast"

        ccs, j1772 = station.connectors
        assert (ccs.type, ccs.power_kw, ccs.quantity, ccs.power_estimated) == ("CCS (Type 1)", 50.0, 2, False)
        assert (j1772.type, j1772.power_kw, j1772.quantity, j1772.power_estimated) == ("Type 1 (J1772)", 7.0, 1, True)

        assert station.availability.total == 3
        assert station.availability.available == 2

    def test_no_connections(self, ocm_record):
        ocm_record["Connections"] = []
        [station] = normalize_stations("ocm", [ocm_record])
        assert station.connector_types == ["Unknown"]
        assert station.speed == "N/A"

    def test_merge_ignores_row_without_connections(self, ocm_record):
        bare = copy.deepcopy(ocm_record)
        bare["Connections"] = []

        [station] = normalize_stations("ocm", [ocm_record, bare])

        assert station.connector_types == ["CCS (Type 1)", "Type 1 (J1772)"]
        assert station.availability.total == 3
        assert station.availability.available == 2

    def test_merge_only_bare_rows_keeps_unknown(self, ocm_record):
        ocm_record["Connections"] = []
        [station] = normalize_stations("ocm", [ocm_record, copy.deepcopy(ocm_record)])

        assert station.connector_types == ["Unknown"]
        assert station.connectors[0].quantity == 2

    def test_merge_sums_connectors_and_availability(self, ocm_record):
        [station] = normalize_stations("ocm", [ocm_record, copy.deepcopy(ocm_record)])

        by_type = {c.type: c.quantity for c in station.connectors}
        assert by_type == {"CCS (Type 1)": 4, "Type 1 (J1772)": 2}
        assert station.availability.total == 6
        assert station.availability.available == 4

    def test_infinite_quantity_does_not_sink_the_batch(self, ocm_record):
        huge = copy.deepcopy(ocm_record)
        huge["ID"] = 9002
        huge["NumberOfPoints"] = float("inf")
        huge["Connections"][0]["Quantity"] = float("inf")

        stations = normalize_stations("ocm", [ocm_record, huge])

        assert [s.id for s in stations] == ["9001", "9002"]
        assert stations[1].connectors[0].quantity == 1


class TestEvChargersNormalization:
    """Test api-ninjas record mapping"""

    def test_full_record(self, evchargers_record):
        [station] = normalize_stations("evchargers", [evchargers_record])

        assert station.id == "evchargers-30.26000--97.74000-0"
        assert station.address == "100 Congress Ave, Austin, TX"
        assert station.network == "Unknown"
        assert station.speed == "DC Fast"

        tesla, j1772 = station.connectors
        assert (tesla.type, tesla.power_kw, tesla.quantity) == ("Tesla", 250.0, 8)
        assert not tesla.power_estimated
        assert (j1772.type, j1772.power_kw, j1772.quantity) == ("J1772", 7.0, 2)
        assert j1772.power_estimated

        assert station.availability.total == 10
        assert station.availability.available == AVAILABILITY_NOT_REPORTED

    def test_connector_type_list_fallback(self, evchargers_record):
        del evchargers_record["connections"]
        evchargers_record["ev_connector_types"] = ["CCS", "CHADEMO"]
        evchargers_record["ev_dc_fast_num"] = 2

        [station] = normalize_stations("evchargers", [evchargers_record])
        assert station.connector_types == ["CCS", "CHADEMO"]
        assert station.speed == "DC Fast"


class TestGeneratedNormalization:
    """Test mock / generative record mapping"""

    @pytest.mark.asyncio
    async def test_mock_records(self):
        records = await get_mock_stations(34.05, -118.24)
        stations = normalize_stations("mock", records)

        assert len(stations) == 5
        assert all(s.provider == "mock" for s in stations)

        hub = next(s for s in stations if s.id == "MOCK-0001")
        assert hub.speed == "DC Fast"
        assert hub.max_power_kw == 150.0
        assert hub.operating_hours == "24/7"
        assert hub.access_type == "public"
        assert 0 <= hub.availability.available <= hub.availability.total == 5

        apartments = next(s for s in stations if s.id == "MOCK-0005")
        assert apartments.speed == "Level 1"
        assert apartments.network == "Unknown"
        assert apartments.pricing is None
        assert apartments.access_type == "private"

    def test_flat_generative_record(self):
        raw = {
            "name": "Library Lot",
            "address": "5 Book St",
            "latitude": 40.0,
            "longitude": -75.0,
            "connectorTypes": ["J-1772"],
            "speed": "Level 2",
            "availability": "Mon-Fri 8-6",
        }
        [station] = normalize_stations("generative", [raw])

        assert station.speed == "Level 2"
        assert station.connector_types == ["J-1772"]
        assert station.connectors[0].power_kw == 7.0
        assert station.operating_hours == "Mon-Fri 8-6"
        assert station.provider == "generative"


class TestFlatAdapter:
    """Test the flat-shape adapter"""

    def test_to_flat_defaults(self, nrel_record):
        station = normalize_record(nrel_record(ev_pricing=None, access_days_time=None), NREL_MAPPING)
        flat = to_flat(station)

        assert flat.id == station.id
        assert flat.connector_types == ["J-1772", "CCS"]
        assert flat.pricing == "Varies"
        assert flat.availability == "Varies"
        assert flat.speed == "DC Fast"


class TestMappingLookup:
    def test_unknown_provider(self):
        with pytest.raises(ProviderConfigError):
            get_mapping("plugshare")

    def test_mock_uses_generated_mapping(self):
        assert get_mapping("MOCK") is get_mapping("generative")
