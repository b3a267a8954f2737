"""
Temperature ranking over the latest AMeDAS observations.
"""
from typing import Iterable, List, Sequence

import pandas as pd

from hinyari.exceptions import NoValidDataError
from hinyari.models.observation import Observation, RankingEntry, RankingType
from hinyari.services.observation_fetcher import ObservationFetcher
from hinyari.utils.logger import get_logger


# Mt. Fuji summit readings are not representative of any place people visit
DEFAULT_EXCLUDED_STATIONS = ("富士山",)


class RankingEngine:
    """
    Ranks observations by temperature.
    """

    def __init__(self, excluded_stations: Iterable[str] = DEFAULT_EXCLUDED_STATIONS):
        """
        Initialize ranking engine.

        Args:
            excluded_stations: Station display names never ranked
        """
        self.excluded_stations = frozenset(excluded_stations)

    def rank(
        self,
        observations: Sequence[Observation],
        limit: int = 10,
        direction: RankingType = RankingType.HOTTEST
    ) -> List[RankingEntry]:
        """
        Build a top-N temperature ranking.

        Observations without a temperature and excluded stations are dropped,
        the rest are stable-sorted so equal temperatures keep input order.

        Args:
            observations: Observations in upstream order
            limit: Maximum number of entries
            direction: HOTTEST ranks warmest first, COOLEST coolest first

        Returns:
            Entries ranked 1..min(limit, valid count)

        Raises:
            NoValidDataError: If no observation is eligible
            ValueError: If limit is less than 1
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")

        rows = [
            {
                "station_name": obs.station_name,
                "temperature": obs.temperature,
                "lat": obs.lat,
                "lon": obs.lon,
            }
            for obs in observations
            if obs.temperature is not None and obs.station_name not in self.excluded_stations
        ]

        if not rows:
            raise NoValidDataError("No valid temperature data found")

        df = pd.DataFrame(rows)
        df = df.sort_values(
            "temperature",
            ascending=direction == RankingType.COOLEST,
            kind="stable"
        ).head(limit)

        return [
            RankingEntry(
                rank=position + 1,
                station_name=row.station_name,
                temperature=float(row.temperature),
                lat=float(row.lat),
                lon=float(row.lon),
            )
            for position, row in enumerate(df.itertuples(index=False))
        ]


class RankingService:
    """
    Fetches the latest observations and ranks them.
    """

    def __init__(self, fetcher: ObservationFetcher, engine: RankingEngine, logger=None):
        self.fetcher = fetcher
        self.engine = engine
        self.logger = logger or get_logger("hinyari.ranking")

    async def get_temperature_ranking(
        self,
        limit: int = 10,
        direction: RankingType = RankingType.HOTTEST
    ) -> List[RankingEntry]:
        """
        Rank the latest snapshot.

        Raises:
            UpstreamFetchError: If the snapshot cannot be fetched
            NoValidDataError: If the snapshot has no usable temperatures
        """
        observations = await self.fetcher.get_latest_observations()
        ranking = self.engine.rank(observations, limit=limit, direction=direction)
        self.logger.info(f"Ranking built: {direction.value}, {len(ranking)} entries")
        return ranking
