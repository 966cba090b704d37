"""
Usage:
  python scripts/query_provider.py 34.05 -118.24
  python scripts/query_provider.py 34.05 -118.24 --provider ocm --raw

Performs one request to the configured (or given) station provider and
prints either the raw records or the normalized stations.
"""
import argparse
import asyncio
import json
import sys

from voltsage.core.config import SUPPORTED_PROVIDERS
from voltsage.services.errors import VoltsageError
from voltsage.services.provider_clients import get_provider_client
from voltsage.services.station_normalizer import normalize_stations


def parse_args():
    p = argparse.ArgumentParser(description="Query a station provider once")
    p.add_argument("lat", type=float)
    p.add_argument("lon", type=float)
    p.add_argument("--provider", choices=SUPPORTED_PROVIDERS, help="Defaults to DATA_PROVIDER")
    p.add_argument("--raw", action="store_true", help="Print raw provider records")
    return p.parse_args()


async def run(args) -> int:
    try:
        client = get_provider_client(args.provider)
        print(f"Requesting {client.provider_name} near ({args.lat}, {args.lon}) radius={client.radius}")
        records = await client.fetch_records(args.lat, args.lon)
    except VoltsageError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Received {len(records)} record(s)")
    if args.raw:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return 0

    stations = normalize_stations(client.provider_id, records)
    print(f"Normalized {len(stations)} station(s)")
    for s in stations:
        connectors = ", ".join(f"{c.type} {c.power_kw:g}kW x{c.quantity}" for c in s.connectors)
        print(f"  [{s.speed}] {s.name} | {s.address} | {s.network} | {connectors}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run(parse_args())))
