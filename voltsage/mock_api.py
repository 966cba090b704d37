import random
import asyncio
import logging
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)

# --- Canned station templates ---
# Offsets are in degrees relative to the search point, so the mock always
# returns stations "near" whatever location was searched.
MOCK_STATIONS_DATA: List[Dict[str, Any]] = [
    {
        "id": "MOCK-0001",
        "name": "Downtown Fast Charge Hub",
        "address": "100 Market St, Springfield, IL 62701",
        "offset": (0.004, 0.003),
        "network": "Electrify America",
        "pricing": "$0.48/kWh",
        "connectors": [
            {"type": "CCS", "powerKw": 150, "quantity": 4},
            {"type": "CHAdeMO", "powerKw": 50, "quantity": 1},
        ],
        "operatingHours": "24/7",
        "facilityType": "PARKING_GARAGE",
    },
    {
        "id": "MOCK-0002",
        "name": "City Library Parking",
        "address": "25 Elm Ave, Springfield, IL 62702",
        "offset": (-0.006, 0.002),
        "network": "ChargePoint",
        "pricing": "$2.00/hr",
        "connectors": [
            {"type": "J-1772", "powerKw": 7, "quantity": 6},
        ],
        "operatingHours": "6 AM - 10 PM",
        "facilityType": "LIBRARY",
    },
    {
        "id": "MOCK-0003",
        "name": "Highway Travel Plaza",
        "address": "4800 Interstate Dr, Springfield, IL 62703",
        "offset": (0.011, -0.009),
        "network": "Tesla",
        "pricing": "Per-minute fees may apply",
        "connectors": [
            {"type": "Tesla (NACS)", "powerKw": 250, "quantity": 8},
        ],
        "operatingHours": "24/7",
        "facilityType": "TRAVEL_CENTER",
    },
    {
        "id": "MOCK-0004",
        "name": "Grocery Mart Chargers",
        "address": "712 Oak St, Springfield, IL 62704",
        "offset": (-0.002, -0.007),
        "network": "EVgo",
        "pricing": "$0.39/kWh",
        "connectors": [
            {"type": "CCS", "powerKw": 100, "quantity": 2},
            {"type": "J-1772", "powerKw": 7, "quantity": 2},
        ],
        "operatingHours": "7 AM - 11 PM",
        "facilityType": "GROCERY",
    },
    {
        "id": "MOCK-0005",
        "name": "Riverside Apartments",
        "address": "9 River Rd, Springfield, IL 62705",
        "offset": (0.008, 0.012),
        "network": "Unknown",
        "pricing": None,
        "connectors": [
            {"type": "NEMA 5-15", "powerKw": 1.9, "quantity": 2},
        ],
        "operatingHours": None,
        "facilityType": None,
        "accessType": "private",
    },
]


async def get_mock_stations(latitude: float, longitude: float, radius: Optional[float] = None) -> List[Dict[str, Any]]:
    """
    Mock station source.
    Returns generative-shaped records placed around the search point, with
    randomized availability. Results are intentionally not deterministic.
    """
    logger.info(f"Mock API: Retrieving stations near ({latitude}, {longitude}) with radius {radius}.")
    await asyncio.sleep(0.05)  # simulate a remote call

    stations: List[Dict[str, Any]] = []
    for template in MOCK_STATIONS_DATA:
        record = {k: v for k, v in template.items() if k != "offset"}
        d_lat, d_lon = template["offset"]
        record["latitude"] = round(latitude + d_lat, 6)
        record["longitude"] = round(longitude + d_lon, 6)
        record.setdefault("accessType", "public")

        total = sum(c["quantity"] for c in template["connectors"])
        record["availability"] = {
            "total": total,
            # weighted towards mostly free, like a typical weekday
            "available": random.choices(range(total + 1), weights=[1] + [3] * total, k=1)[0],
        }
        stations.append(record)

    return stations
