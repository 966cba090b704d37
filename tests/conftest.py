"""
Shared fixtures: fakes for the geocoder, provider clients, Redis and chat model,
plus raw record factories.

Environment is pinned before any voltsage module is imported so a local .env
cannot change the settings the tests run against.
"""
import os

os.environ["DATA_PROVIDER"] = "nrel"
os.environ["FAVORITES_BACKEND"] = "memory"
os.environ["MIN_QUERY_LENGTH"] = "3"
os.environ["MAX_RESULTS"] = "200"
os.environ["CACHE_COORD_ROUND_DECIMALS"] = "4"

import pytest

from voltsage.services.geocoding_service import GeocodingService


class FakeGeocoder(GeocodingService):
    """Geocoder returning a fixed answer and recording every lookup."""

    def __init__(self, result=None, error=None):
        super().__init__(base_url="http://geocoder.test/search")
        self.result = result
        self.error = error
        self.calls = []

    async def geocode(self, address):
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return self.result


class FakeProviderClient:
    """Provider client stand-in with the same surface the search service uses."""

    def __init__(self, records=None, error=None, provider_id="nrel", radius=5.0):
        self.records = records or []
        self.error = error
        self.provider_id = provider_id
        self.provider_name = "Fake provider"
        self.radius = radius
        self.calls = []

    async def fetch_records(self, lat, lon):
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return list(self.records)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for get/set of strings."""

    def __init__(self, error=None):
        self.data = {}
        self.expiry = {}
        self.error = error

    async def get(self, key):
        if self.error is not None:
            raise self.error
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        if self.error is not None:
            raise self.error
        self.data[key] = value
        self.expiry[key] = ex


class FakeChat:
    """Chat model stand-in returning a canned reply."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def ask(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

def make_nrel_record(**overrides):
    record = {
        "id": 1517,
        "station_name": "City Hall Garage",
        "street_address": "200 N Spring St",
        "city": "Los Angeles",
        "state": "CA",
        "zip": "90012",
        "latitude": 34.0537,
        "longitude": -118.2428,
        "ev_network": "ChargePoint Network",
        "ev_network_web": "http://www.chargepoint.com/",
        "ev_pricing": "Free",
        "ev_connector_types": ["J1772", "J1772COMBO"],
        "ev_level1_evse_num": None,
        "ev_level2_evse_num": 4,
        "ev_dc_fast_num": 2,
        "access_code": "public",
        "access_days_time": "24 hours daily",
        "facility_type": "MUNI_GOV",
        "status_code": "E",
    }
    record.update(overrides)
    return record


@pytest.fixture
def nrel_record():
    return make_nrel_record


@pytest.fixture
def ocm_record():
    return {
        "ID": 9001,
        "UUID": "6F1C3B2A",
        "AddressInfo": {
            "Title": "Mall Garage",
            "AddressLine1": "1 Mall Way",
            "Town": "Pasadena",
            "StateOrProvince": "CA",
            "Postcode": "91101",
            "Latitude": 34.14,
            "Longitude": -118.14,
        },
        "OperatorInfo": {"Title": "EVgo", "WebsiteURL": "https://www.evgo.com"},
        "UsageType": {"Title": "Public - Pay At Location"},
        "UsageCost": "$0.35/kWh",
        "NumberOfPoints": None,
        "StatusType": {"Title": "Operational"},
        "Connections": [
            {
                "ConnectionType": {"Title": "CCS (Type 1)"},
                "PowerKW": 50,
                "Quantity": 2,
                "LevelID": 3,
                "StatusType": {"ID": 50},
            },
            {
                "ConnectionType": {"Title": "Type 1 (J1772)"},
                "PowerKW": None,
                "Quantity": None,
                "LevelID": 2,
                "StatusTypeID": 30,
            },
        ],
    }


@pytest.fixture
def evchargers_record():
    return {
        "name": "Downtown Supercharger",
        "address": "100 Congress Ave",
        "city": "Austin",
        "region": "TX",
        "latitude": 30.26,
        "longitude": -97.74,
        "connections": [
            {"type_name": "Tesla", "level": "3", "num": 8, "power_kw": 250},
            {"type_name": "J1772", "level": "2", "num": 2},
        ],
    }


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder


@pytest.fixture
def fake_client():
    return FakeProviderClient


@pytest.fixture
def fake_redis():
    return FakeRedis


@pytest.fixture
def fake_chat():
    return FakeChat
