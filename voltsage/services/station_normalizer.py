"""Normalization of raw provider records into ChargingStation records.

Every provider gets one ``ProviderMapping``: ordered key fallbacks for the
scalar fields plus callables for the provider specific parts (connectors,
speed tier, availability, access type). The mapping is selected once per
request with ``get_mapping`` and applied to every record of the payload.

Keys may be dotted paths (``"AddressInfo.Title"``) to reach nested objects.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from voltsage.schemas.station import (
    AVAILABILITY_NOT_REPORTED,
    SPEED_DC_FAST,
    SPEED_LEVEL_1,
    SPEED_LEVEL_2,
    SPEED_NA,
    UNKNOWN_CONNECTOR,
    UNKNOWN_NETWORK,
    Availability,
    ChargingStation,
    Connector,
)
from voltsage.services.errors import ProviderConfigError

logger = logging.getLogger(__name__)

UNKNOWN_STATION_NAME = "Unknown Station"
ADDRESS_NOT_AVAILABLE = "Address not available"

# Highest tier first; the first capable tier wins.
TIER_PRIORITY = (SPEED_DC_FAST, SPEED_LEVEL_2, SPEED_LEVEL_1)

# Estimates per connector class, used only when the provider reports no wattage.
DEFAULT_POWER_KW = {
    SPEED_DC_FAST: 150.0,
    SPEED_LEVEL_2: 7.0,
    SPEED_LEVEL_1: 1.9,
    SPEED_NA: 0.0,
}

# Thresholds used to classify a measured connector power into a tier
DC_FAST_MIN_KW = 50.0
LEVEL_2_MIN_KW = 3.0

# OpenChargeMap StatusType.ID for "Operational"
OCM_STATUS_OPERATIONAL = 50

NREL_CONNECTOR_LABELS = {
    "J1772": "J-1772",
    "J1772COMBO": "CCS",
    "CHADEMO": "CHAdeMO",
    "TESLA": "Tesla (NACS)",
    "NEMA515": "NEMA 5-15",
    "NEMA520": "NEMA 5-20",
    "NEMA1450": "NEMA 14-50",
}

NREL_CONNECTOR_TIERS = {
    "J1772COMBO": SPEED_DC_FAST,
    "CHADEMO": SPEED_DC_FAST,
    "J1772": SPEED_LEVEL_2,
    "NEMA1450": SPEED_LEVEL_2,
    "NEMA515": SPEED_LEVEL_1,
    "NEMA520": SPEED_LEVEL_1,
}

NREL_STATUS_CODES = {
    "E": "Operational",
    "P": "Planned",
    "T": "Temporarily Unavailable",
}


# --------------------------
# Field helpers
# --------------------------

def _lookup(raw: Any, path: str) -> Any:
    current = raw
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def first_value(raw: Dict[str, Any], keys: Sequence[str], default: Any = None) -> Any:
    """Return the first present value among ``keys`` (None and blank strings are skipped)."""
    for key in keys:
        value = _lookup(raw, key)
        if _present(value):
            return value.strip() if isinstance(value, str) else value
    return default


def _text(raw: Dict[str, Any], keys: Sequence[str], default: Optional[str] = None) -> Optional[str]:
    value = first_value(raw, keys)
    if value is None:
        return default
    return str(value).strip() or default


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def parse_coordinates(lat_raw: Any, lon_raw: Any) -> Optional[Tuple[float, float]]:
    """Return (lat, lon) when both are finite numbers in range, else None.

    The (0, 0) pair is treated as a missing-coordinates sentinel.
    """
    lat = _to_float(lat_raw)
    lon = _to_float(lon_raw)
    if lat is None or lon is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    if lat == 0.0 and lon == 0.0:
        return None
    return lat, lon


def build_address(street: Any = None, city: Any = None, state: Any = None, zip_code: Any = None) -> str:
    """Join ``street, city, state zip`` and collapse empty segments."""
    def clean(v: Any) -> str:
        return str(v).strip() if v is not None else ""

    state_zip = " ".join(p for p in (clean(state), clean(zip_code)) if p)
    joined = ", ".join([clean(street), clean(city), state_zip])
    # street values may themselves carry stray commas
    segments = [s.strip() for s in joined.split(",")]
    address = ", ".join(s for s in segments if s)
    address = re.sub(r"\s{2,}", " ", address).strip(" ,")
    return address or ADDRESS_NOT_AVAILABLE


def extract_connector_types(connections: Any, type_keys: Sequence[str]) -> List[str]:
    """Distinct connector types from a list of sub-records, ``["Unknown"]`` when none."""
    types: List[str] = []
    if isinstance(connections, list):
        for conn in connections:
            if not isinstance(conn, dict):
                continue
            value = first_value(conn, type_keys)
            if not value:
                continue
            label = str(value).strip()
            if label and label not in types:
                types.append(label)
    return types or [UNKNOWN_CONNECTOR]


def classify_speed(dc_fast: Any = None, level2: Any = None, level1: Any = None) -> str:
    """Priority ladder over raw level indicators.

    Each indicator is "capable" when it is a positive count or a true flag.
    Lower tiers are not reported when a higher one matches.
    """
    for tier, indicator in zip(TIER_PRIORITY, (dc_fast, level2, level1)):
        if isinstance(indicator, bool):
            if indicator:
                return tier
            continue
        count = _to_float(indicator)
        if count is not None and count > 0:
            return tier
    return SPEED_NA


def best_tier(tiers: Iterable[Optional[str]]) -> str:
    found = set(t for t in tiers if t)
    for tier in TIER_PRIORITY:
        if tier in found:
            return tier
    return SPEED_NA


def tier_for_power(power_kw: Optional[float]) -> Optional[str]:
    if not power_kw or power_kw <= 0:
        return None
    if power_kw >= DC_FAST_MIN_KW:
        return SPEED_DC_FAST
    if power_kw >= LEVEL_2_MIN_KW:
        return SPEED_LEVEL_2
    return SPEED_LEVEL_1


def tier_from_level(value: Any) -> Optional[str]:
    """Map a free-text or numeric level indicator ("DC Fast", "Level 2", 3) to a tier."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().lower()
    if not text:
        return None
    if "dc" in text or "fast" in text or text in ("3", "level 3", "l3"):
        return SPEED_DC_FAST
    if text in ("2", "level 2", "l2", "level2"):
        return SPEED_LEVEL_2
    if text in ("1", "level 1", "l1", "level1"):
        return SPEED_LEVEL_1
    return None


def estimate_power(tier: Optional[str]) -> float:
    return DEFAULT_POWER_KW.get(tier or SPEED_NA, 0.0)


def merge_connectors(connectors: Iterable[Connector]) -> List[Connector]:
    """Merge connectors sharing the same (type, power_kw) by summing quantity."""
    merged: Dict[Tuple[str, float], Connector] = {}
    for c in connectors:
        key = (c.type, float(c.power_kw))
        if key in merged:
            existing = merged[key]
            merged[key] = existing.model_copy(update={"quantity": existing.quantity + c.quantity})
        else:
            merged[key] = c
    return list(merged.values())


def ensure_connectors(connectors: List[Connector], speed: str, total_ports: int = 0) -> List[Connector]:
    connectors = [c for c in connectors if c.type]
    if connectors:
        return merge_connectors(connectors)
    return [Connector(
        type=UNKNOWN_CONNECTOR,
        power_kw=estimate_power(speed),
        quantity=max(1, total_ports),
        power_estimated=True,
    )]


def synthesize_id(provider_id: str, lat: float, lon: float, index: int) -> str:
    """Id for records without a provider id; stable within one result set only."""
    return f"{provider_id}-{lat:.5f}-{lon:.5f}-{index}"


# --------------------------
# NREL
# --------------------------

def _nrel_codes(raw: Dict[str, Any]) -> List[str]:
    codes = raw.get("ev_connector_types") or []
    if isinstance(codes, str):
        codes = re.split(r"[,|;\s]+", codes)
    if not isinstance(codes, list):
        return []
    return [str(c).strip() for c in codes if c and str(c).strip()]


def _nrel_label(code: str) -> str:
    label = NREL_CONNECTOR_LABELS.get(code.upper())
    if label:
        return label
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), code.replace("_", " "))


def _nrel_connector_tier(code: str, dc_fast_num: int) -> Optional[str]:
    upper = code.upper()
    if upper == "TESLA":
        return SPEED_DC_FAST if dc_fast_num > 0 else SPEED_LEVEL_2
    tier = NREL_CONNECTOR_TIERS.get(upper)
    if tier:
        return tier
    if "DC" in upper or "FAST" in upper or "COMBO" in upper:
        return SPEED_DC_FAST
    return None


def _nrel_counts(raw: Dict[str, Any]) -> Dict[str, int]:
    return {
        SPEED_DC_FAST: _to_int(raw.get("ev_dc_fast_num")),
        SPEED_LEVEL_2: _to_int(raw.get("ev_level2_evse_num")),
        SPEED_LEVEL_1: _to_int(raw.get("ev_level1_evse_num")),
    }


def _nrel_speed(raw: Dict[str, Any]) -> str:
    counts = _nrel_counts(raw)
    return classify_speed(counts[SPEED_DC_FAST], counts[SPEED_LEVEL_2], counts[SPEED_LEVEL_1])


def _nrel_connectors(raw: Dict[str, Any], speed: str) -> List[Connector]:
    counts = _nrel_counts(raw)
    dc_fast_num = counts[SPEED_DC_FAST]

    occurrences: Dict[str, int] = {}
    for code in _nrel_codes(raw):
        occurrences[code] = occurrences.get(code, 0) + 1

    tiers = {code: _nrel_connector_tier(code, dc_fast_num) for code in occurrences}
    codes_per_tier: Dict[Optional[str], int] = {}
    for tier in tiers.values():
        codes_per_tier[tier] = codes_per_tier.get(tier, 0) + 1

    connectors: List[Connector] = []
    for code, occurrence in occurrences.items():
        tier = tiers[code]
        quantity = occurrence
        # a lone connector code in its tier owns all of that tier's ports
        if tier and codes_per_tier.get(tier) == 1 and counts.get(tier, 0) > 0:
            quantity = counts[tier]
        connectors.append(Connector(
            type=_nrel_label(code),
            power_kw=estimate_power(tier or speed),
            quantity=max(1, quantity),
            power_estimated=True,
        ))

    if dc_fast_num > 0 and SPEED_DC_FAST not in tiers.values():
        connectors.append(Connector(
            type="DC Fast",
            power_kw=DEFAULT_POWER_KW[SPEED_DC_FAST],
            quantity=dc_fast_num,
            power_estimated=True,
        ))
    return connectors


def _nrel_availability(raw: Dict[str, Any], connectors: List[Connector]) -> Availability:
    total = _to_int(raw.get("ev_charge_port_count"))
    if total <= 0:
        total = sum(_nrel_counts(raw).values())
    # NREL has no real-time availability
    return Availability(total=total, available=AVAILABILITY_NOT_REPORTED)


def _nrel_access(raw: Dict[str, Any]) -> str:
    code = str(raw.get("access_code") or "").strip().lower()
    if code in ("public", "private"):
        return code
    return "unknown"


def _nrel_status(raw: Dict[str, Any]) -> Optional[str]:
    code = raw.get("status_code")
    if not code:
        return None
    return NREL_STATUS_CODES.get(str(code).upper(), str(code))


# --------------------------
# OpenChargeMap
# --------------------------

def _ocm_connections(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    conns = raw.get("Connections") or []
    return [c for c in conns if isinstance(c, dict)] if isinstance(conns, list) else []


def _ocm_connection_tier(conn: Dict[str, Any]) -> Optional[str]:
    level_id = first_value(conn, ("LevelID", "Level.ID"))
    tier = tier_from_level(level_id)
    if tier:
        return tier
    if _lookup(conn, "Level.IsFastChargeCapable") is True:
        return SPEED_DC_FAST
    return None


def _ocm_speed(raw: Dict[str, Any]) -> str:
    tiers = [_ocm_connection_tier(c) for c in _ocm_connections(raw)]
    return classify_speed(
        SPEED_DC_FAST in tiers,
        SPEED_LEVEL_2 in tiers,
        SPEED_LEVEL_1 in tiers,
    )


def _ocm_quantity(conn: Dict[str, Any]) -> int:
    return max(1, _to_int(conn.get("Quantity"), 1))


def _ocm_connectors(raw: Dict[str, Any], speed: str) -> List[Connector]:
    connectors: List[Connector] = []
    for conn in _ocm_connections(raw):
        label = _text(conn, ("ConnectionType.Title", "ConnectionType.FormalName"))
        if not label:
            continue
        power = _to_float(conn.get("PowerKW"))
        estimated = not power or power <= 0
        connectors.append(Connector(
            type=label,
            power_kw=estimate_power(_ocm_connection_tier(conn) or speed) if estimated else power,
            quantity=_ocm_quantity(conn),
            power_estimated=estimated,
        ))
    return connectors


def _ocm_status_id(conn: Dict[str, Any]) -> Optional[int]:
    value = first_value(conn, ("StatusType.ID", "StatusTypeID"))
    return _to_int(value, -1) if value is not None else None


def _ocm_availability(raw: Dict[str, Any], connectors: List[Connector]) -> Availability:
    conns = _ocm_connections(raw)
    total = _to_int(raw.get("NumberOfPoints"))
    if total <= 0:
        total = sum(_ocm_quantity(c) for c in conns)
    available = sum(_ocm_quantity(c) for c in conns if _ocm_status_id(c) == OCM_STATUS_OPERATIONAL)
    return Availability(total=total, available=available)


def _ocm_access(raw: Dict[str, Any]) -> str:
    usage = _text(raw, ("UsageType.Title",))
    if not usage:
        return "unknown"
    return "public" if "public" in usage.lower() else "private"


# --------------------------
# api-ninjas evchargers (flat family)
# --------------------------

EVCHARGERS_TYPE_KEYS = ("connection_type", "type_name", "type")
EVCHARGERS_QUANTITY_KEYS = ("num", "quantity", "count")
EVCHARGERS_POWER_KEYS = ("power_kw", "powerKw", "kw")


def _evchargers_connections(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    conns = raw.get("connections") or []
    return [c for c in conns if isinstance(c, dict)] if isinstance(conns, list) else []


def _evchargers_speed(raw: Dict[str, Any]) -> str:
    tiers = [tier_from_level(c.get("level")) for c in _evchargers_connections(raw)]
    return classify_speed(
        SPEED_DC_FAST in tiers or _to_int(raw.get("ev_dc_fast_num")) > 0,
        SPEED_LEVEL_2 in tiers or _to_int(raw.get("ev_level2_evse_num")) > 0,
        SPEED_LEVEL_1 in tiers or _to_int(raw.get("ev_level1_evse_num")) > 0,
    )


def _evchargers_connectors(raw: Dict[str, Any], speed: str) -> List[Connector]:
    conns = _evchargers_connections(raw)
    if not conns and isinstance(raw.get("ev_connector_types"), list):
        conns = [{"type": t} for t in raw["ev_connector_types"]]

    types = extract_connector_types(conns, EVCHARGERS_TYPE_KEYS)
    if types == [UNKNOWN_CONNECTOR]:
        return []

    connectors: List[Connector] = []
    for label in types:
        matching = [c for c in conns if str(first_value(c, EVCHARGERS_TYPE_KEYS) or "").strip() == label]
        powers = [p for p in (_to_float(first_value(c, EVCHARGERS_POWER_KEYS)) for c in matching) if p and p > 0]
        tier = best_tier(tier_from_level(c.get("level")) for c in matching)
        quantity = sum(max(1, _to_int(first_value(c, EVCHARGERS_QUANTITY_KEYS), 1)) for c in matching)
        connectors.append(Connector(
            type=label,
            power_kw=max(powers) if powers else estimate_power(tier if tier != SPEED_NA else speed),
            quantity=max(1, quantity),
            power_estimated=not powers,
        ))
    return connectors


def _evchargers_availability(raw: Dict[str, Any], connectors: List[Connector]) -> Availability:
    total = sum(c.quantity for c in connectors)
    if total <= 0:
        total = sum(_nrel_counts(raw).values())
    return Availability(total=total, available=AVAILABILITY_NOT_REPORTED)


# --------------------------
# Generative / mock (near-canonical camelCase records)
# --------------------------

def _generated_connections(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    conns = raw.get("connectors") or []
    return [c for c in conns if isinstance(c, dict)] if isinstance(conns, list) else []


def _generated_speed(raw: Dict[str, Any]) -> str:
    explicit = tier_from_level(raw.get("speed"))
    if explicit:
        return explicit
    tiers = [
        tier_for_power(_to_float(first_value(c, ("powerKw", "power_kw"))))
        for c in _generated_connections(raw)
    ]
    return best_tier(tiers)


def _generated_connectors(raw: Dict[str, Any], speed: str) -> List[Connector]:
    connections = _generated_connections(raw)
    if not connections and isinstance(raw.get("connectorTypes"), list):
        # flat shape: bare type labels without power
        connections = [{"type": t} for t in raw["connectorTypes"] if isinstance(t, str)]

    connectors: List[Connector] = []
    for conn in connections:
        label = _text(conn, ("type", "connectorType", "name"))
        if not label:
            continue
        power = _to_float(first_value(conn, ("powerKw", "power_kw")))
        estimated = not power or power <= 0
        connectors.append(Connector(
            type=label,
            power_kw=estimate_power(speed) if estimated else power,
            quantity=max(1, _to_int(conn.get("quantity"), 1)),
            power_estimated=estimated,
        ))
    return connectors


def _generated_availability(raw: Dict[str, Any], connectors: List[Connector]) -> Availability:
    availability = raw.get("availability")
    if isinstance(availability, dict):
        total = _to_int(availability.get("total"), sum(c.quantity for c in connectors))
        available = _to_int(availability.get("available"), AVAILABILITY_NOT_REPORTED)
        return Availability(total=total, available=available)
    return Availability(total=sum(c.quantity for c in connectors), available=AVAILABILITY_NOT_REPORTED)


def _generated_access(raw: Dict[str, Any]) -> str:
    value = str(raw.get("accessType") or raw.get("access_type") or "").strip().lower()
    return value if value in ("public", "private") else "unknown"


def _generated_hours(raw: Dict[str, Any]) -> Optional[str]:
    hours = _text(raw, ("operatingHours", "operating_hours"))
    if hours:
        return hours
    # the flat generative shape carries opening hours in "availability"
    availability = raw.get("availability")
    if isinstance(availability, str) and availability.strip():
        return availability.strip()
    return None


# --------------------------
# Mapping table
# --------------------------

@dataclass(frozen=True)
class ProviderMapping:
    provider_id: str
    id_keys: Tuple[str, ...]
    name_keys: Tuple[str, ...]
    lat_keys: Tuple[str, ...]
    lon_keys: Tuple[str, ...]
    street_keys: Tuple[str, ...] = ()
    city_keys: Tuple[str, ...] = ()
    state_keys: Tuple[str, ...] = ()
    zip_keys: Tuple[str, ...] = ()
    network_keys: Tuple[str, ...] = ()
    pricing_keys: Tuple[str, ...] = ()
    source_url_keys: Tuple[str, ...] = ()
    facility_keys: Tuple[str, ...] = ()
    status_keys: Tuple[str, ...] = ()
    photo_keys: Tuple[str, ...] = ()
    speed: Callable[[Dict[str, Any]], str] = lambda raw: SPEED_NA
    connectors: Callable[[Dict[str, Any], str], List[Connector]] = lambda raw, speed: []
    availability: Callable[[Dict[str, Any], List[Connector]], Availability] = (
        lambda raw, connectors: Availability(total=sum(c.quantity for c in connectors))
    )
    access_type: Callable[[Dict[str, Any]], str] = lambda raw: "unknown"
    operating_hours: Callable[[Dict[str, Any]], Optional[str]] = lambda raw: None
    status: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None


NREL_MAPPING = ProviderMapping(
    provider_id="nrel",
    id_keys=("id",),
    name_keys=("station_name", "name"),
    lat_keys=("latitude", "lat"),
    lon_keys=("longitude", "lon", "lng"),
    street_keys=("street_address",),
    city_keys=("city",),
    state_keys=("state",),
    zip_keys=("zip",),
    network_keys=("ev_network",),
    pricing_keys=("ev_pricing",),
    source_url_keys=("ev_network_web",),
    facility_keys=("facility_type",),
    speed=_nrel_speed,
    connectors=_nrel_connectors,
    availability=_nrel_availability,
    access_type=_nrel_access,
    operating_hours=lambda raw: _text(raw, ("access_days_time",)),
    status=_nrel_status,
)

OCM_MAPPING = ProviderMapping(
    provider_id="ocm",
    id_keys=("ID", "UUID"),
    name_keys=("AddressInfo.Title", "Title"),
    lat_keys=("AddressInfo.Latitude",),
    lon_keys=("AddressInfo.Longitude",),
    street_keys=("AddressInfo.AddressLine1",),
    city_keys=("AddressInfo.Town",),
    state_keys=("AddressInfo.StateOrProvince",),
    zip_keys=("AddressInfo.Postcode",),
    network_keys=("OperatorInfo.Title",),
    pricing_keys=("UsageCost", "UsageType.Title"),
    source_url_keys=("DataProvider.WebsiteURL", "OperatorInfo.WebsiteURL", "AddressInfo.RelatedURL"),
    status_keys=("StatusType.Title",),
    speed=_ocm_speed,
    connectors=_ocm_connectors,
    availability=_ocm_availability,
    access_type=_ocm_access,
)

EVCHARGERS_MAPPING = ProviderMapping(
    provider_id="evchargers",
    id_keys=("id", "station_id"),
    name_keys=("station_name", "name"),
    lat_keys=("latitude", "lat"),
    lon_keys=("longitude", "lon", "lng"),
    street_keys=("street_address", "address"),
    city_keys=("city",),
    state_keys=("state", "region"),
    zip_keys=("zip", "postal_code"),
    network_keys=("ev_network", "network"),
    pricing_keys=("ev_pricing", "pricing"),
    source_url_keys=("ev_network_web", "website"),
    facility_keys=("facility_type",),
    speed=_evchargers_speed,
    connectors=_evchargers_connectors,
    availability=_evchargers_availability,
    operating_hours=lambda raw: _text(raw, ("access_days_time",)),
)

GENERATED_MAPPING = ProviderMapping(
    provider_id="generative",
    id_keys=("id",),
    name_keys=("name", "station_name"),
    lat_keys=("latitude", "lat"),
    lon_keys=("longitude", "lon", "lng"),
    street_keys=("address",),
    network_keys=("network",),
    pricing_keys=("pricing",),
    source_url_keys=("sourceUrl", "source_url"),
    facility_keys=("facilityType", "facility_type"),
    status_keys=("status",),
    photo_keys=("photoUrl", "photo_url"),
    speed=_generated_speed,
    connectors=_generated_connectors,
    availability=_generated_availability,
    access_type=_generated_access,
    operating_hours=_generated_hours,
)

PROVIDER_MAPPINGS: Dict[str, ProviderMapping] = {
    "nrel": NREL_MAPPING,
    "ocm": OCM_MAPPING,
    "evchargers": EVCHARGERS_MAPPING,
    "generative": GENERATED_MAPPING,
    # canned mock records use the generative record shape
    "mock": GENERATED_MAPPING,
}


def get_mapping(provider_id: str) -> ProviderMapping:
    mapping = PROVIDER_MAPPINGS.get((provider_id or "").lower())
    if mapping is None:
        raise ProviderConfigError(f"Unknown station data provider: {provider_id!r}")
    return mapping


# --------------------------
# Normalization
# --------------------------

def normalize_record(
    raw: Any,
    mapping: ProviderMapping,
    index: int = 0,
    provider_id: Optional[str] = None,
) -> Optional[ChargingStation]:
    """Normalize one raw record, or return None when it is unusable."""
    if not isinstance(raw, dict):
        logger.debug("Skipping non-object record #%s from %s", index, mapping.provider_id)
        return None

    coords = parse_coordinates(first_value(raw, mapping.lat_keys), first_value(raw, mapping.lon_keys))
    if coords is None:
        logger.debug("Dropping record #%s from %s: missing or invalid coordinates", index, mapping.provider_id)
        return None
    lat, lon = coords

    provider = provider_id or mapping.provider_id
    speed = mapping.speed(raw)
    connectors = mapping.connectors(raw, speed)
    availability = mapping.availability(raw, connectors)
    connectors = ensure_connectors(connectors, speed, availability.total)

    raw_id = first_value(raw, mapping.id_keys)
    station_id = str(raw_id) if raw_id is not None else synthesize_id(provider, lat, lon, index)

    status = mapping.status(raw) if mapping.status else _text(raw, mapping.status_keys)

    return ChargingStation(
        id=station_id,
        name=_text(raw, mapping.name_keys, UNKNOWN_STATION_NAME),
        address=build_address(
            first_value(raw, mapping.street_keys),
            first_value(raw, mapping.city_keys),
            first_value(raw, mapping.state_keys),
            first_value(raw, mapping.zip_keys),
        ),
        latitude=lat,
        longitude=lon,
        network=_text(raw, mapping.network_keys, UNKNOWN_NETWORK),
        pricing=_text(raw, mapping.pricing_keys),
        connectors=connectors,
        availability=availability,
        source_url=_text(raw, mapping.source_url_keys),
        access_type=mapping.access_type(raw),
        operating_hours=mapping.operating_hours(raw),
        facility_type=_text(raw, mapping.facility_keys),
        status=status,
        speed=speed,
        provider=provider,
        photo_url=_text(raw, mapping.photo_keys),
    )


def _is_placeholder(connector: Connector) -> bool:
    return connector.type == UNKNOWN_CONNECTOR and connector.power_estimated


def merge_availability(first: Availability, second: Availability) -> Availability:
    """Sum port counts; ``available`` stays unreported only when neither side reports it."""
    reported = [a.available for a in (first, second) if a.reported]
    return Availability(
        total=first.total + second.total,
        available=sum(reported) if reported else AVAILABILITY_NOT_REPORTED,
    )


def merge_duplicate_stations(stations: Iterable[ChargingStation]) -> List[ChargingStation]:
    """Merge stations sharing an id.

    Connector lists are concatenated and then merged on (type, power_kw).
    "Unknown" placeholders from rows without connector data are dropped once
    any row contributes real connectors. Availability counts are summed. The
    first record wins for every other field except the speed tier, which
    keeps the highest tier seen.
    """
    by_id: Dict[str, ChargingStation] = {}
    for station in stations:
        existing = by_id.get(station.id)
        if existing is None:
            by_id[station.id] = station
            continue
        combined = list(existing.connectors) + list(station.connectors)
        real = [c for c in combined if not _is_placeholder(c)]
        by_id[station.id] = existing.model_copy(update={
            "connectors": merge_connectors(real or combined),
            "availability": merge_availability(existing.availability, station.availability),
            "speed": best_tier([existing.speed, station.speed]),
        })
    return list(by_id.values())


def normalize_stations(provider_id: str, records: Iterable[Any]) -> List[ChargingStation]:
    """Normalize a provider payload. Unusable records are dropped, not reported as errors."""
    mapping = get_mapping(provider_id)
    stations: List[ChargingStation] = []
    dropped = 0
    for index, raw in enumerate(records):
        try:
            station = normalize_record(raw, mapping, index=index, provider_id=provider_id)
        except Exception as e:
            logger.debug("Dropping record #%s from %s: %s", index, provider_id, e, exc_info=True)
            station = None
        if station is None:
            dropped += 1
            continue
        stations.append(station)

    merged = merge_duplicate_stations(stations)
    logger.info(
        "Normalized %s stations from %s (%s dropped, %s merged)",
        len(merged), provider_id, dropped, len(stations) - len(merged),
    )
    return merged
