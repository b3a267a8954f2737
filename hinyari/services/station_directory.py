"""
AMeDAS station directory with a time-bounded in-memory cache.
"""
import time
from datetime import timedelta
from typing import Callable, Dict, Optional, Sequence

import httpx
from pydantic import ValidationError

from hinyari.exceptions import UpstreamFetchError
from hinyari.models.observation import Station
from hinyari.utils.logger import get_logger


STATION_TABLE_URL = "https://www.jma.go.jp/bosai/amedas/const/amedastable.json"


def to_decimal_degrees(pair: Sequence[float]) -> float:
    """
    Convert a [degrees, minutes] pair to decimal degrees.

    Args:
        pair: Degrees and minutes, e.g. [35, 30]

    Returns:
        Decimal degrees, e.g. 35.5
    """
    degrees, minutes = pair[0], pair[1]
    return degrees + minutes / 60


def parse_station_table(data: Dict[str, dict]) -> Dict[str, Station]:
    """
    Normalize the raw station table into Station models.

    Args:
        data: JSON object keyed by station ID

    Returns:
        Mapping of station ID to Station
    """
    stations = {}
    for station_id, raw in data.items():
        stations[station_id] = Station(
            id=station_id,
            type=raw.get("type"),
            lat=to_decimal_degrees(raw["lat"]),
            lon=to_decimal_degrees(raw["lon"]),
            alt=raw.get("alt"),
            kj_name=raw["kjName"],
            kn_name=raw.get("knName"),
            en_name=raw.get("enName"),
        )
    return stations


class StationDirectory:
    """
    Loads the station table lazily and keeps it for a fixed duration.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = STATION_TABLE_URL,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], float] = time.monotonic,
        logger=None
    ):
        """
        Initialize station directory.

        Args:
            client: Shared HTTP client
            url: Station table URL
            ttl: How long a loaded table stays valid
            clock: Monotonic clock in seconds
            logger: Logger instance
        """
        self.client = client
        self.url = url
        self.ttl_seconds = ttl.total_seconds()
        self.clock = clock
        self.logger = logger or get_logger("hinyari.stations")

        self._stations: Optional[Dict[str, Station]] = None
        self._expires_at = 0.0

    async def get_stations(self) -> Dict[str, Station]:
        """
        Get all stations, refetching after the TTL expires.

        Returns:
            Mapping of station ID to Station

        Raises:
            UpstreamFetchError: If the station table cannot be fetched
        """
        now = self.clock()
        if self._stations is not None and now < self._expires_at:
            return self._stations

        data = await self._fetch_table()
        try:
            stations = parse_station_table(data)
        except (KeyError, IndexError, TypeError, ValidationError) as e:
            raise UpstreamFetchError(f"Malformed station table: {e}", url=self.url) from e

        self._stations = stations
        self._expires_at = now + self.ttl_seconds
        self.logger.info(f"Station directory loaded: {len(stations)} stations")
        return stations

    async def _fetch_table(self) -> Dict[str, dict]:
        try:
            response = await self.client.get(self.url)
        except httpx.HTTPError as e:
            self.logger.error(f"Station table request failed: {e}")
            raise UpstreamFetchError(f"Failed to fetch station table: {e}", url=self.url) from e

        if response.status_code != 200:
            self.logger.error(f"Station table error: {response.status_code}")
            raise UpstreamFetchError(
                f"Failed to fetch station table: {response.status_code}",
                url=self.url,
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFetchError("Station table is not valid JSON", url=self.url) from e

        if not isinstance(data, dict):
            raise UpstreamFetchError("Station table has an unexpected shape", url=self.url)
        return data
