"""
Pydantic models for AMeDAS stations, observations and rankings.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RankingType(str, Enum):
    """Ranking direction."""

    HOTTEST = "hottest"
    COOLEST = "coolest"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RankingType":
        """Anything other than "coolest" ranks warmest first."""
        return cls.COOLEST if value == cls.COOLEST.value else cls.HOTTEST


class Station(BaseModel):
    """One entry of the AMeDAS station table."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Optional[str] = None
    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")
    alt: Optional[float] = Field(None, description="Altitude (m)")
    kj_name: str = Field(..., description="Name in kanji")
    kn_name: Optional[str] = Field(None, description="Name in katakana")
    en_name: Optional[str] = Field(None, description="Romanized name")


class Observation(BaseModel):
    """Latest readings of one station. Unset metrics mean no reading."""

    station_id: str
    station_name: str
    lat: float
    lon: float
    temperature: Optional[float] = Field(None, description="Air temperature (°C)")
    humidity: Optional[float] = Field(None, description="Relative humidity (%)")
    pressure: Optional[float] = Field(None, description="Sea level pressure (hPa)")
    wind_speed: Optional[float] = Field(None, description="Wind speed (m/s)")
    precipitation: Optional[float] = Field(None, description="Precipitation over the last hour (mm)")


class RankingEntry(BaseModel):
    """One row of a temperature ranking."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rank: int = Field(..., ge=1)
    station_name: str
    temperature: float
    lat: float
    lon: float


class RankingResponse(BaseModel):
    """Successful ranking response."""

    success: bool = True
    data: List[RankingEntry]
    timestamp: datetime
    type: RankingType
    count: int


class ErrorResponse(BaseModel):
    """Failure envelope shared by the ranking endpoints."""

    success: bool = False
    error: str
    timestamp: datetime
