"""
Pydantic models for cached location descriptions.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Thumbnail(BaseModel):
    source: str
    width: int
    height: int


class LocationInfo(BaseModel):
    """Descriptive information about a location."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    extract: str = ""
    url: str = ""
    thumbnail: Optional[Thumbnail] = None
    found_via: Optional[str] = None
    is_generated: bool = False


class CacheRecord(BaseModel):
    """Stored cache document: the payload and its write time."""

    info: LocationInfo
    timestamp: int = Field(..., description="Write time in epoch milliseconds")

    def to_document(self) -> dict:
        """Serialize with the camelCase field names used on the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CacheWriteResponse(BaseModel):
    success: bool = True


class DescriptionResponse(BaseModel):
    """Description of a location, cached or placeholder."""

    city: str
    region: Optional[str] = None
    key: str
    description: str
