"""
Health check endpoint for monitoring API status.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from hinyari.dependencies import get_description_cache, get_settings, get_station_directory
from hinyari.exceptions import UpstreamFetchError
from hinyari.services.description_cache import DescriptionCache
from hinyari.services.station_directory import StationDirectory
from hinyari.settings import Settings

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(
    directory: StationDirectory = Depends(get_station_directory),
    cache: DescriptionCache = Depends(get_description_cache),
    settings: Settings = Depends(get_settings)
):
    """
    Health check endpoint to verify API status.

    Returns:
        dict: Status of the station directory upstream, cache backend and generation
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "stations": "unknown",
        "cache_backend": cache.backend_name,
        "generation": "configured" if settings.generation.enabled else "disabled"
    }

    # Served from memory while the directory TTL is valid
    try:
        stations = await directory.get_stations()
        health_status["stations"] = f"loaded ({len(stations)})"
    except UpstreamFetchError as e:
        health_status["stations"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    return health_status
