"""
Fetches the latest AMeDAS snapshot and joins it with the station directory.
"""
import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from hinyari.exceptions import UpstreamFetchError
from hinyari.models.observation import Observation, Station
from hinyari.services.station_directory import StationDirectory
from hinyari.utils.logger import get_logger


LATEST_TIME_URL = "https://www.jma.go.jp/bosai/amedas/data/latest_time.txt"
SNAPSHOT_URL_TEMPLATE = "https://www.jma.go.jp/bosai/amedas/data/map/{token}00.json"

# Upstream field name -> Observation field name
METRIC_FIELDS = {
    "temp": "temperature",
    "humidity": "humidity",
    "pressure": "pressure",
    "wind": "wind_speed",
    "precipitation1h": "precipitation",
}


def format_snapshot_token(latest_time: str) -> str:
    """
    Reformat the latest observation time into the YYYYMMDDHHmm URL token.

    The calendar fields are taken from the timestamp as written, so
    "2024-07-20T09:05:00+09:00" becomes "202407200905".

    Raises:
        ValueError: If the timestamp cannot be parsed
    """
    parsed = datetime.fromisoformat(latest_time.strip())
    return parsed.strftime("%Y%m%d%H%M")


def extract_metric(raw: Any) -> Optional[float]:
    """
    Return the value of a [value, qualityFlag, ...] pair.

    Anything that is not a list or whose first element is null counts as
    no reading.
    """
    if not isinstance(raw, (list, tuple)) or not raw:
        return None
    return raw[0]


def build_observation(station: Station, raw: Dict[str, Any]) -> Observation:
    """
    Build an Observation from one snapshot entry.

    Metrics without a reading are left unset rather than stored as None.
    """
    metrics = {}
    for upstream_name, field_name in METRIC_FIELDS.items():
        value = extract_metric(raw.get(upstream_name))
        if value is not None:
            metrics[field_name] = value

    return Observation(
        station_id=station.id,
        station_name=station.kj_name,
        lat=station.lat,
        lon=station.lon,
        **metrics
    )


class ObservationFetcher:
    """
    Retrieves the latest observation snapshot for every known station.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        directory: StationDirectory,
        latest_time_url: str = LATEST_TIME_URL,
        snapshot_url_template: str = SNAPSHOT_URL_TEMPLATE,
        logger=None
    ):
        """
        Initialize observation fetcher.

        Args:
            client: Shared HTTP client
            directory: Station directory used for the join
            latest_time_url: URL of the latest observation time text
            snapshot_url_template: Snapshot URL with a {token} placeholder
            logger: Logger instance
        """
        self.client = client
        self.directory = directory
        self.latest_time_url = latest_time_url
        self.snapshot_url_template = snapshot_url_template
        self.logger = logger or get_logger("hinyari.observations")

    async def get_latest_time(self) -> str:
        """
        Fetch the latest available observation time.

        Returns:
            Trimmed timestamp text, e.g. "2024-07-20T09:05:00+09:00"

        Raises:
            UpstreamFetchError: If the request fails
        """
        response = await self._get(self.latest_time_url)
        return response.text.strip()

    async def get_latest_observations(self) -> List[Observation]:
        """
        Fetch the latest snapshot and map it onto known stations.

        The station directory and the latest time are loaded concurrently;
        the snapshot request waits for the time.

        Returns:
            One Observation per known station in the snapshot. Entries with
            non-numeric readings are logged and skipped.

        Raises:
            UpstreamFetchError: If any request fails or returns bad data
        """
        latest_time, stations = await asyncio.gather(
            self.get_latest_time(),
            self.directory.get_stations()
        )

        try:
            token = format_snapshot_token(latest_time)
        except ValueError as e:
            raise UpstreamFetchError(
                f"Unparseable latest observation time: {latest_time!r}",
                url=self.latest_time_url
            ) from e

        url = self.snapshot_url_template.format(token=token)
        response = await self._get(url)

        try:
            snapshot = response.json()
        except ValueError as e:
            raise UpstreamFetchError("Observation snapshot is not valid JSON", url=url) from e

        if not isinstance(snapshot, dict):
            raise UpstreamFetchError("Observation snapshot has an unexpected shape", url=url)

        observations = []
        skipped = 0
        malformed = 0
        for station_id, raw in snapshot.items():
            station = stations.get(station_id)
            if station is None or not isinstance(raw, dict):
                skipped += 1
                continue
            try:
                observations.append(build_observation(station, raw))
            except ValidationError as e:
                malformed += 1
                self.logger.warning(f"Skipping malformed entry for station {station_id}: {e.errors()[0]['msg']}")

        self.logger.info(
            f"Snapshot {token}: {len(observations)} observations "
            f"({skipped} unknown stations, {malformed} malformed entries skipped)"
        )
        return observations

    async def _get(self, url: str) -> httpx.Response:
        self.logger.debug(f"GET {url}")
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            self.logger.error(f"Request failed: {url} - {e}")
            raise UpstreamFetchError(f"Request failed: {e}", url=url) from e

        if response.status_code != 200:
            self.logger.error(f"Upstream error: {response.status_code} - {url}")
            raise UpstreamFetchError(
                f"Upstream request failed: {response.status_code}",
                url=url,
                status_code=response.status_code
            )
        return response
