"""
Load testing script for the RadioDeck API using locust.

Install: pip install -e ".[loadtest]"
Run:     locust -f loadtests/locustfile.py --host http://localhost:8000

Open http://localhost:8089 in your browser to configure and start the test.
"""
import random

from locust import HttpUser, task, between

SEARCH_TERMS = ["jazz", "rock", "news", "classical", "cafe", "bbc", "radio 1", "lofi"]
TAGS = ["pop", "talk", "electronic", "country"]


class Listener(HttpUser):
    """Browses the directory, searches, plays and favorites stations."""

    wait_time = between(1, 4)

    def on_start(self):
        self.seen = []

    @task(4)
    def browse(self):
        page = random.randint(1, 3)
        resp = self.client.get(f"/api/v1/stations?page={page}&limit=24", name="/api/v1/stations [browse]")
        if resp.ok:
            self.seen = resp.json().get("stations", [])[:10] or self.seen

    @task(5)
    def search(self):
        self.client.get(
            "/api/v1/stations",
            params={"query": random.choice(SEARCH_TERMS)},
            name="/api/v1/stations [search]",
        )

    @task(1)
    def filter_by_tag(self):
        self.client.get(
            "/api/v1/stations",
            params={"tag": random.choice(TAGS)},
            name="/api/v1/stations [tag]",
        )

    @task(2)
    def click(self):
        if not self.seen:
            return
        station = random.choice(self.seen)
        self.client.get(
            "/api/v1/stations",
            params={"action": "click", "stationId": station["id"]},
            name="/api/v1/stations [click]",
        )

    @task(1)
    def favorite(self):
        if not self.seen:
            return
        self.client.post("/api/v1/favorites", json=random.choice(self.seen))

    @task(1)
    def favorites(self):
        self.client.get("/api/v1/favorites")

    @task(1)
    def health_check(self):
        self.client.get("/health")
