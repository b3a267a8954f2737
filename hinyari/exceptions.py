"""
Domain exceptions for the ranking and description pipeline.
"""
from typing import Optional


class HinyariError(Exception):
    """Base class for all service errors."""


class UpstreamFetchError(HinyariError):
    """An external data source failed or returned a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NoValidDataError(HinyariError):
    """The upstream response was valid but held no usable records."""


class CacheUnavailable(HinyariError):
    """The description cache backend could not be read or written."""


class GenerationError(HinyariError):
    """The text generation service failed."""
