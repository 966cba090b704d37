from locust import HttpUser, task, between
import os

# Configurable via environment variables:
# LOCUST_HEALTH_PATH (default: /health)
# LOCUST_SEARCH_QUERIES (semicolon-separated list of search inputs)

HEALTH_PATH = os.getenv("LOCUST_HEALTH_PATH", "/health")
SEARCH_PATH = "/api/v1/stations/search"
SEARCH_QUERIES = os.getenv("LOCUST_SEARCH_QUERIES", "34.0522,-118.2437;37.7749,-122.4194;40.7128,-74.0060")
SEARCH_QUERIES = [q.strip() for q in SEARCH_QUERIES.split(";") if q.strip()]


class StationSearchUser(HttpUser):
    wait_time = between(1, 3)

    @task(1)
    def health(self):
        self.client.get(HEALTH_PATH, name=f"GET {HEALTH_PATH}")

    @task(5)
    def search(self):
        for q in SEARCH_QUERIES:
            self.client.get(SEARCH_PATH, params={"q": q}, name=f"GET {SEARCH_PATH}")

    @task(2)
    def search_filtered(self):
        params = {"q": SEARCH_QUERIES[0], "min_power": 50, "connector_types": "CCS", "shape": "flat"}
        self.client.get(SEARCH_PATH, params=params, name=f"GET {SEARCH_PATH} (filtered)")
