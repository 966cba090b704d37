"""HTTP clients for the external station data providers.

Each client issues exactly one request per search and returns the list of raw
records; normalization happens in ``station_normalizer``. There is no retry
policy: any failure raises ``ProviderError`` and the caller decides what to do.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx

from voltsage.core.config import settings
from voltsage.mock_api import get_mock_stations
from voltsage.schemas.station import UNKNOWN_NETWORK, StationDetails
from voltsage.services.errors import ProviderConfigError, ProviderError

logger = logging.getLogger(__name__)

# Longest response body excerpt carried into logs
LOG_BODY_LIMIT = 2000
# Longest response body excerpt carried into user-visible errors
ERROR_BODY_LIMIT = 200


def _truncate(text: str, limit: int = LOG_BODY_LIMIT) -> str:
    return text[:limit] + ("...[truncated]" if len(text) > limit else "")


class ProviderClient:
    """
    Base class for provider clients.

    Subclasses implement ``build_request`` and, when the provider wraps its
    records, ``extract_records``.
    """

    provider_id: str = ""
    provider_name: str = ""

    def __init__(self, timeout: float = settings.PROVIDER_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        # injectable transport (tests use httpx.MockTransport)
        self.transport = transport

    @property
    def radius(self) -> float:
        raise NotImplementedError

    def build_request(self, lat: float, lon: float) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        """Return (url, params, headers) for a nearby search."""
        raise NotImplementedError

    def extract_records(self, payload: Any) -> List[Dict[str, Any]]:
        if not isinstance(payload, list):
            logger.error("%s did not return an array: %s", self.provider_name, _truncate(str(payload)))
            raise ProviderError("Received invalid data from charging station API.")
        return payload

    async def _get(self, url: str, params: Dict[str, Any], headers: Dict[str, str]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.error("%s request failed: %s", self.provider_name, e)
            raise ProviderError(f"Failed to reach {self.provider_name}: {e}") from e

        if not resp.is_success:
            logger.error(
                "%s API error: status=%s body=%s",
                self.provider_name, resp.status_code, _truncate(resp.text),
            )
            message = f"Failed to fetch data from {self.provider_name}. Status: {resp.status_code}"
            excerpt = _truncate(resp.text.strip(), ERROR_BODY_LIMIT)
            if excerpt:
                message = f"{message}: {excerpt}"
            raise ProviderError(message, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            logger.error("%s returned malformed JSON: %s", self.provider_name, _truncate(resp.text))
            raise ProviderError(f"{self.provider_name} returned a malformed response.") from e

    async def fetch_records(self, lat: float, lon: float) -> List[Dict[str, Any]]:
        url, params, headers = self.build_request(lat, lon)
        logger.info("Querying %s near (%s, %s) radius=%s", self.provider_name, lat, lon, self.radius)
        payload = await self._get(url, params, headers)
        records = self.extract_records(payload)
        logger.info("%s returned %s records", self.provider_name, len(records))
        return records


class NrelClient(ProviderClient):
    provider_id = "nrel"
    provider_name = "NREL API"

    def __init__(self, api_key: Optional[str] = None, base_url: str = settings.NREL_API_BASE_URL,
                 radius_miles: float = settings.SEARCH_RADIUS_MILES, limit: int = settings.NREL_RESULT_LIMIT,
                 **kwargs):
        super().__init__(**kwargs)
        # NREL keeps working with its public demo key
        self.api_key = api_key or settings.NREL_API_KEY or "DEMO_KEY"
        self.base_url = base_url
        self.radius_miles = radius_miles
        self.limit = limit

    @property
    def radius(self) -> float:
        return self.radius_miles

    def build_request(self, lat, lon):
        params = {
            "api_key": self.api_key,
            "latitude": lat,
            "longitude": lon,
            "radius": self.radius_miles,
            "fuel_type": "ELEC",
            "limit": self.limit,
        }
        return self.base_url, params, {"Accept": "application/json"}

    def extract_records(self, payload):
        stations = payload.get("fuel_stations") if isinstance(payload, dict) else None
        if stations is None:
            # a successful response without the key means no stations
            if isinstance(payload, dict) and "errors" not in payload:
                return []
            raise ProviderError("Received invalid data from NREL API.")
        return super().extract_records(stations)


class OpenChargeMapClient(ProviderClient):
    provider_id = "ocm"
    provider_name = "Open Charge Map API"

    def __init__(self, api_key: Optional[str] = None, base_url: str = settings.OCM_API_BASE_URL,
                 radius_miles: float = settings.SEARCH_RADIUS_MILES, max_results: int = settings.OCM_MAX_RESULTS,
                 **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key or settings.OCM_API_KEY
        if not self.api_key:
            raise ProviderConfigError(
                "Open Charge Map API key is missing. Please add OCM_API_KEY to your .env file."
            )
        self.base_url = base_url
        self.radius_miles = radius_miles
        self.max_results = max_results

    @property
    def radius(self) -> float:
        return self.radius_miles

    def build_request(self, lat, lon):
        params = {
            "key": self.api_key,
            "latitude": lat,
            "longitude": lon,
            "distance": self.radius_miles,
            "distanceunit": "Miles",
            "maxresults": self.max_results,
            "output": "json",
            "verbose": "false",
        }
        return self.base_url, params, {"Accept": "application/json"}


class EvChargersClient(ProviderClient):
    """api-ninjas evchargers endpoint (flat record family)."""

    provider_id = "evchargers"
    provider_name = "EV charger API"

    def __init__(self, api_key: Optional[str] = None, base_url: str = settings.EV_CHARGER_API_BASE_URL,
                 radius: int = settings.EV_CHARGER_RADIUS, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key or settings.EV_CHARGER_API_KEY
        if not self.api_key:
            raise ProviderConfigError(
                "EV charger API key is missing. Please add EV_CHARGER_API_KEY to your .env file."
            )
        self.base_url = base_url
        self._radius = radius

    @property
    def radius(self) -> float:
        return self._radius

    def build_request(self, lat, lon):
        params = {"latitude": lat, "longitude": lon, "radius": self._radius}
        return self.base_url, params, {"X-Api-Key": self.api_key, "Accept": "application/json"}


class MockClient(ProviderClient):
    """Canned stations around the search point; availability is randomized."""

    provider_id = "mock"
    provider_name = "Mock station API"

    @property
    def radius(self) -> float:
        return settings.SEARCH_RADIUS_MILES

    async def fetch_records(self, lat, lon):
        return self.extract_records(await get_mock_stations(lat, lon, self.radius))


GENERATIVE_PROMPT = """You are an expert assistant for finding EV charging stations.
Given a latitude and longitude, list the {count} closest, publicly accessible EV charging stations.

Return ONLY a JSON array. Each element must have:
  id, name, address, latitude, longitude, network, pricing,
  connectors: [{{type, powerKw, quantity}}],
  availability: {{total, available}},
  operatingHours, photoUrl
If a value is unknown, make a reasonable estimate but never leave a field blank.

Search near: Latitude {lat}, Longitude {lon}"""

STATION_DETAILS_PROMPT = """You are an expert on EV charging stations.
Given the name and address of a charging station, provide the network provider,
a summary of the pricing and the hours of operation.

Station Name: {name}
Address: {address}

Return ONLY a JSON object with the keys network, pricing and operatingHours.
Only use information you can verify from public sources. If you cannot find a
value, use "Unknown" for network and "Varies" for pricing or operatingHours."""


def _unfence(text: str) -> str:
    cleaned = (text or "").strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", cleaned, re.DOTALL)
    return fenced.group(1).strip() if fenced else cleaned


def parse_generated_stations(text: str) -> List[Dict[str, Any]]:
    """Pull the JSON array out of a model reply (optionally wrapped in a code fence)."""
    cleaned = _unfence(text)
    start, end = cleaned.find("["), cleaned.rfind("]")
    if start == -1 or end <= start:
        raise ProviderError("Generative source did not return a station list.")
    try:
        data = json.loads(cleaned[start:end + 1])
    except ValueError as e:
        raise ProviderError("Generative source returned malformed JSON.") from e
    if not isinstance(data, list):
        raise ProviderError("Generative source did not return a station list.")
    return [d for d in data if isinstance(d, dict)]


def _detail(data: Dict[str, Any], keys: Tuple[str, ...], default: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool) and str(value).strip():
            return str(value).strip()
    return default


def parse_station_details(text: str) -> StationDetails:
    """Pull the details object out of a model reply; blank or missing values get the defaults."""
    cleaned = _unfence(text)
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ProviderError("Generative source did not return station details.")
    try:
        data = json.loads(cleaned[start:end + 1])
    except ValueError as e:
        raise ProviderError("Generative source returned malformed JSON.") from e
    if not isinstance(data, dict):
        raise ProviderError("Generative source did not return station details.")
    return StationDetails(
        network=_detail(data, ("network",), UNKNOWN_NETWORK),
        pricing=_detail(data, ("pricing",), "Varies"),
        operating_hours=_detail(data, ("operatingHours", "operating_hours", "availability", "hours"), "Varies"),
    )


class ChatModel:
    """OpenAI-compatible chat model (langchain-openai) answering one prompt at a time."""

    def __init__(self, api_key: Optional[str] = None, model: str = settings.LLM_MODEL,
                 base_url: str = settings.LLM_API_BASE_URL,
                 timeout: float = settings.PROVIDER_TIMEOUT_SECONDS, temperature: float = 0.2):
        self.api_key = api_key or settings.LLM_API_KEY
        if not self.api_key:
            raise ProviderConfigError("LLM API key is missing. Please add LLM_API_KEY to your .env file.")
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.temperature = temperature

    async def ask(self, prompt: str) -> str:
        try:
            from langchain_openai import ChatOpenAI
            from langchain_core.messages import HumanMessage
        except ImportError as e:
            raise ProviderConfigError(
                "The generative provider needs the 'generative' extra (langchain-openai)."
            ) from e

        llm = ChatOpenAI(model=self.model, api_key=self.api_key, base_url=self.base_url,
                         timeout=self.timeout, temperature=self.temperature)
        try:
            response = await llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error("Chat model request failed: %s", e)
            raise ProviderError(f"Generative source failed: {e}") from e

        return response.content if isinstance(response.content, str) else str(response.content)


class GenerativeClient(ProviderClient):
    """
    Non-deterministic station source backed by a chat model.

    Output is model-generated and may be inaccurate; it is labeled with the
    ``generative`` provider id on every normalized station.
    """

    provider_id = "generative"
    provider_name = "Generative station source"

    def __init__(self, api_key: Optional[str] = None, model: str = settings.LLM_MODEL,
                 base_url: str = settings.LLM_API_BASE_URL, count: int = settings.LLM_STATION_COUNT,
                 chat: Optional[ChatModel] = None, **kwargs):
        super().__init__(**kwargs)
        self.chat = chat or ChatModel(api_key=api_key, model=model, base_url=base_url, timeout=self.timeout)
        self.count = count

    @property
    def radius(self) -> float:
        return 0

    async def fetch_records(self, lat, lon):
        prompt = GENERATIVE_PROMPT.format(count=self.count, lat=lat, lon=lon)
        return self.extract_records(parse_generated_stations(await self.chat.ask(prompt)))


class StationDetailsClient:
    """
    Looks up network, pricing and opening hours for one station by name and address.

    Answers come from the chat model and are labeled ``provider="generative"``.
    """

    def __init__(self, chat: Optional[ChatModel] = None, api_key: Optional[str] = None,
                 timeout: float = settings.PROVIDER_TIMEOUT_SECONDS):
        self.chat = chat or ChatModel(api_key=api_key, timeout=timeout)

    async def get_details(self, name: str, address: str) -> StationDetails:
        prompt = STATION_DETAILS_PROMPT.format(name=name, address=address)
        details = parse_station_details(await self.chat.ask(prompt))
        logger.info("Generated details for %r: network=%s", name, details.network)
        return details


PROVIDER_CLIENTS = {
    "nrel": NrelClient,
    "ocm": OpenChargeMapClient,
    "evchargers": EvChargersClient,
    "mock": MockClient,
    "generative": GenerativeClient,
}


def get_provider_client(provider_id: Optional[str] = None, **kwargs) -> ProviderClient:
    """Build the client for ``provider_id`` (defaults to settings.DATA_PROVIDER)."""
    key = (provider_id or settings.DATA_PROVIDER or "").lower()
    client_cls = PROVIDER_CLIENTS.get(key)
    if client_cls is None:
        raise ProviderConfigError(f"Unknown station data provider: {key!r}")
    return client_cls(**kwargs)
