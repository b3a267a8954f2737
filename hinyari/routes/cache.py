"""
Description cache read/write endpoints.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from hinyari.dependencies import get_description_cache
from hinyari.models.description import CacheRecord, CacheWriteResponse
from hinyari.services.description_cache import DescriptionCache

router = APIRouter()


@router.get(
    "/cache/{key}",
    response_model=CacheRecord,
    responses={404: {"description": "Key not cached"}},
    summary="Read cached description",
)
async def read_cache(key: str, cache: DescriptionCache = Depends(get_description_cache)):
    """
    Read one cache record.

    Returns:
        The stored {info, timestamp} document, or null with 404 on a miss
    """
    record = await cache.get(key)
    if record is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=None)
    return JSONResponse(content=record.to_document())


@router.post(
    "/cache/{key}",
    response_model=CacheWriteResponse,
    responses={500: {"description": "Cache backend unavailable"}},
    summary="Write cached description",
)
async def write_cache(
    key: str,
    record: CacheRecord,
    cache: DescriptionCache = Depends(get_description_cache)
):
    """
    Store one cache record, replacing any previous value.

    Raises:
        500: The cache backend could not store the record
    """
    if not await cache.set(key, record):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to save cache"}
        )
    return CacheWriteResponse()
