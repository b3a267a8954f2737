"""
Location description endpoint.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hinyari.dependencies import get_enrichment
from hinyari.models.description import DescriptionResponse
from hinyari.services.description_cache import derive_cache_key, normalize_region
from hinyari.services.enrichment import EnrichmentOrchestrator

router = APIRouter()


@router.get(
    "/descriptions",
    response_model=DescriptionResponse,
    summary="Describe a location",
    description="Return the cached description of a location, generating it on a cache miss"
)
async def describe_location(
    city: str = Query(..., min_length=1),
    region: Optional[str] = None,
    enrichment: EnrichmentOrchestrator = Depends(get_enrichment)
):
    region = normalize_region(region)
    description = await enrichment.describe(city, region)
    return DescriptionResponse(
        city=city,
        region=region,
        key=derive_cache_key(city, region),
        description=description
    )
