"""
Key-value cache for location descriptions.

Two backends are available: a local SQLite table managed by Tortoise ORM and
a remote Vercel Blob store. The backend is chosen once at startup and injected
into DescriptionCache, which treats every backend failure as non-fatal.
"""
import re
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from tortoise.exceptions import BaseORMException

from hinyari.database.models import CachedDescription
from hinyari.exceptions import CacheUnavailable
from hinyari.models.description import CacheRecord
from hinyari.settings import CacheSettings
from hinyari.utils.logger import get_logger


MISSING_REGION_VALUES = {"", "undefined"}


def normalize_region(region: Optional[str]) -> Optional[str]:
    """Return None for absent, blank or "undefined" regions."""
    if region is None:
        return None
    region = region.strip()
    if region in MISSING_REGION_VALUES:
        return None
    return region


def derive_cache_key(city: str, region: Optional[str] = None) -> str:
    """
    Derive the cache key for a location.

    Used on every read and write path so keys never drift.

    Args:
        city: City or station name
        region: Optional region qualifier

    Returns:
        "city_region" (or "city" without a region) with whitespace runs
        collapsed to "_"
    """
    region = normalize_region(region)
    raw = city.strip() if region is None else f"{city.strip()}_{region}"
    return re.sub(r"\s+", "_", raw)


class CacheBackend(ABC):
    """Storage for cache records. Implementations raise CacheUnavailable."""

    name = "abstract"

    @abstractmethod
    async def read(self, key: str) -> Optional[CacheRecord]:
        """Return the record stored under key, or None if unknown."""

    @abstractmethod
    async def write(self, key: str, record: CacheRecord) -> None:
        """Store record under key, replacing any previous value."""


class LocalCacheBackend(CacheBackend):
    """
    Embedded SQLite store, one row per key.

    Requires Tortoise ORM to be initialized with hinyari.database.models.
    """

    name = "local"

    async def read(self, key: str) -> Optional[CacheRecord]:
        try:
            row = await CachedDescription.get_or_none(key=key)
        except BaseORMException as e:
            raise CacheUnavailable(f"Local cache read failed: {e}") from e

        if row is None:
            return None
        try:
            return CacheRecord(info=row.info, timestamp=row.timestamp)
        except ValidationError as e:
            raise CacheUnavailable(f"Corrupt cache record for {key!r}") from e

    async def write(self, key: str, record: CacheRecord) -> None:
        document = record.to_document()
        try:
            await CachedDescription.update_or_create(
                key=key,
                defaults={"info": document["info"], "timestamp": document["timestamp"]}
            )
        except BaseORMException as e:
            raise CacheUnavailable(f"Local cache write failed: {e}") from e


class BlobCacheBackend(CacheBackend):
    """
    Vercel Blob store, one JSON object per key at {prefix}/{key}.json.

    Writes overwrite unconditionally, so the last write wins.
    """

    name = "blob"
    api_version = "7"

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        base_url: str = "https://blob.vercel-storage.com",
        prefix: str = "location-cache"
    ):
        """
        Initialize blob backend.

        Args:
            client: Shared HTTP client
            token: Blob read/write token
            base_url: Blob API base URL
            prefix: Path prefix for cache objects
        """
        self.client = client
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.prefix = prefix.strip("/")

    def pathname(self, key: str) -> str:
        return f"{self.prefix}/{key}.json"

    def _headers(self) -> dict:
        return {
            "authorization": f"Bearer {self.token}",
            "x-api-version": self.api_version,
        }

    async def read(self, key: str) -> Optional[CacheRecord]:
        try:
            listing = await self.client.get(
                self.base_url,
                params={"prefix": self.pathname(key), "limit": 1},
                headers=self._headers()
            )
            listing.raise_for_status()
            data = listing.json()
            if not isinstance(data, dict):
                raise CacheUnavailable(f"Blob listing for {key!r} has an unexpected shape")
            blobs = data.get("blobs") or []
            if not blobs:
                return None
            if not isinstance(blobs, list) or not isinstance(blobs[0], dict):
                raise CacheUnavailable(f"Blob listing for {key!r} has an unexpected shape")

            response = await self.client.get(blobs[0]["url"])
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return CacheRecord.model_validate(response.json())
        except (httpx.HTTPError, ValueError, KeyError) as e:
            # pydantic's ValidationError is a ValueError
            raise CacheUnavailable(f"Blob cache read failed for {key!r}: {e}") from e

    async def write(self, key: str, record: CacheRecord) -> None:
        headers = self._headers()
        headers.update({
            "x-content-type": "application/json",
            "x-add-random-suffix": "0",
            "x-allow-overwrite": "1",
        })
        try:
            response = await self.client.put(
                f"{self.base_url}/{quote(self.pathname(key), safe='/')}",
                json=record.to_document(),
                headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CacheUnavailable(f"Blob cache write failed for {key!r}: {e}") from e


class DescriptionCache:
    """
    get/set facade over a backend. A miss is a normal outcome; backend
    failures are logged and reported as a miss or a failed write.
    """

    def __init__(self, backend: CacheBackend, logger=None):
        self.backend = backend
        self.logger = logger or get_logger("hinyari.cache")

    @property
    def backend_name(self) -> str:
        return self.backend.name

    async def get(self, key: str) -> Optional[CacheRecord]:
        """
        Look up a record.

        Returns:
            The record, or None on a miss or when the backend is unavailable
        """
        try:
            record = await self.backend.read(key)
        except CacheUnavailable as e:
            self.logger.warning(f"Cache read treated as miss: {e}")
            return None

        if record is None:
            self.logger.debug(f"Cache miss: {key}")
        return record

    async def set(self, key: str, record: CacheRecord) -> bool:
        """
        Store a record.

        Returns:
            True if stored, False when the backend is unavailable
        """
        try:
            await self.backend.write(key, record)
        except CacheUnavailable as e:
            self.logger.error(f"Cache write failed: {e}")
            return False

        self.logger.debug(f"Cache write: {key}")
        return True


def create_cache_backend(settings: CacheSettings, client: httpx.AsyncClient) -> CacheBackend:
    """
    Build the configured backend.

    Args:
        settings: Cache settings with a resolved backend name
        client: Shared HTTP client for the blob backend

    Raises:
        ValueError: If the backend is unknown or the blob token is missing
    """
    if settings.backend == "local":
        return LocalCacheBackend()
    if settings.backend == "blob":
        if not settings.blob_token:
            raise ValueError("BLOB_READ_WRITE_TOKEN is required for the blob cache backend")
        return BlobCacheBackend(
            client,
            token=settings.blob_token,
            base_url=settings.blob_base_url,
            prefix=settings.blob_prefix
        )
    raise ValueError(f"Unknown cache backend: {settings.backend}")
