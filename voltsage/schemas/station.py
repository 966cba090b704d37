"""Pydantic schemas for normalized charging stations"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


UNKNOWN_CONNECTOR = "Unknown"
UNKNOWN_NETWORK = "Unknown"

# availability.available sentinel: provider does not report real-time availability
AVAILABILITY_NOT_REPORTED = -1

SPEED_DC_FAST = "DC Fast"
SPEED_LEVEL_2 = "Level 2"
SPEED_LEVEL_1 = "Level 1"
SPEED_NA = "N/A"


class Connector(BaseModel):
    """A single charging-port type/power/quantity tuple at a station."""
    type: str = Field(UNKNOWN_CONNECTOR, description="Connector label (e.g. CCS, J-1772)")
    power_kw: float = Field(0.0, description="Connector power in kW")
    quantity: int = Field(1, description="Number of physical ports of this type", ge=1)
    power_estimated: bool = Field(
        False,
        description="True when power_kw is a default per connector class, not a provider measurement",
    )


class Availability(BaseModel):
    total: int = Field(0, description="Total number of ports at the station")
    available: int = Field(
        AVAILABILITY_NOT_REPORTED,
        description="Ports currently available; -1 when the provider does not report it",
    )

    @property
    def reported(self) -> bool:
        return self.available != AVAILABILITY_NOT_REPORTED


class ChargingStation(BaseModel):
    """Canonical station record shared by every provider."""
    id: str = Field(..., description="Unique within one result set")
    name: str = Field(..., description="Station name")
    address: str = Field(..., description="Single line address")
    latitude: float = Field(..., description="Latitude (WGS 84)", ge=-90, le=90)
    longitude: float = Field(..., description="Longitude (WGS 84)", ge=-180, le=180)
    network: str = Field(UNKNOWN_NETWORK, description="Charging network / operator")
    pricing: Optional[str] = Field(None, description="Pricing summary")
    connectors: List[Connector] = Field(default_factory=list, description="Connectors at this station")
    availability: Availability = Field(default_factory=Availability)
    source_url: Optional[str] = Field(None, description="Provider or network web page")
    access_type: Literal["public", "private", "unknown"] = "unknown"
    operating_hours: Optional[str] = Field(None, description="Access days / hours")
    facility_type: Optional[str] = None
    status: Optional[str] = None
    speed: str = Field(SPEED_NA, description="Charging tier: DC Fast, Level 2, Level 1 or N/A")
    provider: str = Field(..., description="Provider id that produced this record")
    distance_km: Optional[float] = Field(None, description="Distance from the search origin")
    photo_url: Optional[str] = None

    @property
    def connector_types(self) -> List[str]:
        seen: List[str] = []
        for c in self.connectors:
            if c.type not in seen:
                seen.append(c.type)
        return seen

    @property
    def max_power_kw(self) -> float:
        return max((c.power_kw for c in self.connectors), default=0.0)


class FlatStation(BaseModel):
    """Flat station shape used by the simple list view."""
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    network: str
    speed: str
    connector_types: List[str]
    availability: str
    pricing: str


class StationDetails(BaseModel):
    """Network, pricing and hours looked up by the generative source. May be inaccurate."""
    station_id: Optional[str] = None
    network: str = Field(UNKNOWN_NETWORK, description="Charging network provider")
    pricing: str = Field("Varies", description="Pricing summary")
    operating_hours: str = Field("Varies", description="Hours of operation")
    provider: str = Field("generative", description="Source of these details")


def to_flat(station: ChargingStation) -> FlatStation:
    """Adapt a canonical station to the flat shape.

    availability becomes the operating hours ("Varies" when unknown), pricing
    falls back to "Varies", matching the flat providers' display defaults.
    """
    return FlatStation(
        id=station.id,
        name=station.name,
        address=station.address,
        latitude=station.latitude,
        longitude=station.longitude,
        network=station.network,
        speed=station.speed,
        connector_types=station.connector_types or [UNKNOWN_CONNECTOR],
        availability=station.operating_hours or "Varies",
        pricing=station.pricing or "Varies",
    )
