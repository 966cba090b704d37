"""
Tests for the geocoder
"""
import httpx
import pytest

from voltsage.services.errors import GeocodingError
from voltsage.services.geocoding_service import GeocodingService


def geocoder_with(handler, **kwargs):
    return GeocodingService(base_url="http://geocoder.test/search", transport=httpx.MockTransport(handler), **kwargs)


class TestGeocode:
    @pytest.mark.asyncio
    async def test_first_result(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[
                {"lat": "34.0536909", "lon": "-118.242766", "display_name": "Los Angeles"},
                {"lat": "1", "lon": "1"},
            ])

        coords = await geocoder_with(handler, api_key=None).geocode("Los Angeles")

        assert coords == (34.0536909, -118.242766)
        params = seen[0].url.params
        assert params["q"] == "Los Angeles"
        assert params["format"] == "json"
        assert params["limit"] == "1"
        assert seen[0].headers["User-Agent"]

    @pytest.mark.asyncio
    async def test_results_wrapper_and_long_keys(self):
        handler = lambda request: httpx.Response(200, json={"results": [{"latitude": 1.5, "longitude": 2.5}]})
        assert await geocoder_with(handler).geocode("somewhere") == (1.5, 2.5)

    @pytest.mark.asyncio
    async def test_no_results(self):
        assert await geocoder_with(lambda request: httpx.Response(200, json=[])).geocode("abc") is None

    @pytest.mark.asyncio
    async def test_api_key_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        await geocoder_with(handler, api_key="geo-key").geocode("abc")
        assert "geo-key" in seen[0].headers.values()

    @pytest.mark.asyncio
    async def test_http_error(self):
        with pytest.raises(GeocodingError):
            await geocoder_with(lambda request: httpx.Response(503)).geocode("abc")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(GeocodingError):
            await geocoder_with(handler).geocode("abc")


class TestDistance:
    def test_one_degree_of_longitude_at_equator(self):
        assert GeocodingService().calculate_distance_km(0, 0, 0, 1) == pytest.approx(111.195, abs=0.01)

    def test_same_point(self):
        assert GeocodingService().calculate_distance_km(34.05, -118.24, 34.05, -118.24) == 0
