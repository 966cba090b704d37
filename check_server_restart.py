#!/usr/bin/env python3
"""
Simple helper to detect whether a deployed service is running the latest
code. It probes the OpenAPI specification and checks that the
`/api/v1/stations/search` operation exposes the expected query parameters.

Usage:
  VOLTSAGE_BASE_URL=https://example.com python3 check_server_restart.py
"""
import os
import time

import requests

BASE_URL = os.getenv("VOLTSAGE_BASE_URL", "http://localhost:8000")
SEARCH_PATH = "/api/v1/stations/search"
EXPECTED_PARAMS = {"q", "connector_types", "min_power", "networks", "show_available", "favorites_only", "shape"}


def check_server_restart() -> bool:
    """Check whether the server is serving the current search API."""
    print(f"Checking {BASE_URL} ...")
    try:
        response = requests.get(f"{BASE_URL}/openapi.json", timeout=10)
    except requests.RequestException as e:
        print(f"Error: {e}")
        return False
    if response.status_code != 200:
        print(f"Failed to get OpenAPI spec: {response.status_code}")
        return False

    operation = response.json().get("paths", {}).get(SEARCH_PATH, {}).get("get")
    if not operation:
        print("Search endpoint not found")
        return False

    params = {p.get("name") for p in operation.get("parameters", [])}
    missing = EXPECTED_PARAMS - params
    if missing:
        print(f"Server still appears to be running old code (missing: {', '.join(sorted(missing))})")
        return False
    print("Server appears to be running the new code")
    return True


def wait_for_restart(max_attempts: int = 10, delay: int = 30) -> bool:
    for attempt in range(1, max_attempts + 1):
        print(f"\nAttempt {attempt}/{max_attempts}")
        if check_server_restart():
            return True
        if attempt < max_attempts:
            print(f"Waiting {delay} seconds before next check...")
            time.sleep(delay)
    print("Server did not pick up the new code in time")
    return False


if __name__ == "__main__":
    raise SystemExit(0 if wait_for_restart() else 1)
