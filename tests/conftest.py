"""
Pytest fixtures for the ranking and description pipeline tests.
"""
import json

import httpx
import pytest
from tortoise import Tortoise, connections

from hinyari.exceptions import CacheUnavailable
from hinyari.models.observation import Observation
from hinyari.services.description_cache import CacheBackend


STATION_TABLE_URL = "https://jma.test/amedas/const/amedastable.json"
LATEST_TIME_URL = "https://jma.test/amedas/data/latest_time.txt"
SNAPSHOT_URL_TEMPLATE = "https://jma.test/amedas/data/map/{token}00.json"

LATEST_TIME = "2024-07-20T09:05:00+09:00\n"
SNAPSHOT_PATH = "/amedas/data/map/20240720090500.json"

STATION_TABLE = {
    "11001": {
        "type": "C", "alt": 26, "lat": [45, 31.2], "lon": [141, 56.1],
        "kjName": "宗谷岬", "knName": "ソウヤミサキ", "enName": "Cape Soya",
    },
    "44132": {
        "type": "A", "alt": 25, "lat": [35, 41.5], "lon": [139, 45.0],
        "kjName": "東京", "knName": "トウキョウ", "enName": "Tokyo",
    },
    "50066": {
        "type": "B", "alt": 3775, "lat": [35, 21.6], "lon": [138, 43.7],
        "kjName": "富士山", "knName": "フジサン", "enName": "Mt. Fuji",
    },
    "41277": {
        "type": "C", "alt": 1292, "lat": [36, 44.3], "lon": [139, 30.0],
        "kjName": "奥日光", "knName": "オクニッコウ", "enName": "Okunikko",
    },
}

SNAPSHOT = {
    "11001": {"temp": [18.4, 0], "humidity": [80, 0], "wind": [5.2, 0], "precipitation1h": [0.0, 0]},
    "44132": {"temp": [31.5, 0], "humidity": [60, 0], "pressure": [1008.1, 0]},
    "50066": {"temp": [5.1, 0]},
    "41277": {"temp": [None, 5], "humidity": [95, 0]},
    "99999": {"temp": [40.0, 0]},
}


class FakeJMA:
    """MockTransport handler serving the three AMeDAS endpoints."""

    def __init__(self):
        self.station_status = 200
        self.latest_status = 200
        self.snapshot_status = 200
        self.latest_time = LATEST_TIME
        self.snapshot = SNAPSHOT
        self.requests = []

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/amedas/const/amedastable.json":
            return httpx.Response(self.station_status, json=STATION_TABLE)
        if path == "/amedas/data/latest_time.txt":
            return httpx.Response(self.latest_status, text=self.latest_time)
        if path == SNAPSHOT_PATH:
            return httpx.Response(self.snapshot_status, json=self.snapshot)
        return httpx.Response(404, text="not found")


class FakeBlobStore:
    """MockTransport handler imitating the blob list/put/download API."""

    api_host = "blob.test"
    public_host = "public.blob.test"

    def __init__(self, token="test-token"):
        self.token = token
        self.objects = {}
        self.fail = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(503, text="unavailable")

        if request.url.host == self.public_host:
            pathname = request.url.path.lstrip("/")
            if pathname not in self.objects:
                return httpx.Response(404)
            return httpx.Response(200, content=self.objects[pathname])

        if request.headers.get("authorization") != f"Bearer {self.token}":
            return httpx.Response(403, json={"error": {"code": "forbidden"}})

        if request.method == "GET":
            prefix = request.url.params.get("prefix", "")
            limit = int(request.url.params.get("limit", "1000"))
            matches = [name for name in sorted(self.objects) if name.startswith(prefix)][:limit]
            blobs = [
                {"url": f"https://{self.public_host}/{name}", "pathname": name}
                for name in matches
            ]
            return httpx.Response(200, json={"blobs": blobs, "hasMore": False})

        if request.method == "PUT":
            pathname = request.url.path.lstrip("/")
            self.objects[pathname] = request.content
            return httpx.Response(200, json={"url": f"https://{self.public_host}/{pathname}", "pathname": pathname})

        return httpx.Response(405)

    def document(self, pathname):
        return json.loads(self.objects[pathname])


class MemoryCacheBackend(CacheBackend):
    """Dict-backed backend for route and orchestrator tests."""

    name = "memory"

    def __init__(self):
        self.records = {}
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    async def read(self, key):
        if self.fail_reads:
            raise CacheUnavailable("read failed")
        return self.records.get(key)

    async def write(self, key, record):
        if self.fail_writes:
            raise CacheUnavailable("write failed")
        self.writes += 1
        self.records[key] = record


class FakeGenerator:
    """Text generator returning a fixed reply or raising."""

    def __init__(self, reply="涼しい高原の町です。", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def make_observation(station_name, temperature=None, station_id=None, lat=35.0, lon=139.0):
    """Build an Observation, leaving temperature unset when None."""
    fields = {}
    if temperature is not None:
        fields["temperature"] = temperature
    return Observation(
        station_id=station_id or station_name,
        station_name=station_name,
        lat=lat,
        lon=lon,
        **fields
    )


@pytest.fixture
def fake_jma():
    """Return a fake AMeDAS upstream."""
    return FakeJMA()


@pytest.fixture
async def jma_client(fake_jma):
    """Return an HTTP client routed to the fake AMeDAS upstream."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_jma)) as client:
        yield client


@pytest.fixture
def blob_store():
    """Return a fake blob store."""
    return FakeBlobStore()


@pytest.fixture
async def blob_client(blob_store):
    """Return an HTTP client routed to the fake blob store."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(blob_store)) as client:
        yield client


@pytest.fixture
async def local_db():
    """Initialize Tortoise ORM on an in-memory SQLite database."""
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": ["hinyari.database.models"]})
    await Tortoise.generate_schemas()
    yield
    await connections.close_all()


@pytest.fixture
def memory_backend():
    """Return an empty in-memory cache backend."""
    return MemoryCacheBackend()
