"""
Dependency injection for FastAPI.
Components are built once in the application lifespan and kept on app.state.
"""
from fastapi import Request

from hinyari.services.description_cache import DescriptionCache
from hinyari.services.enrichment import EnrichmentOrchestrator
from hinyari.services.ranking import RankingService
from hinyari.services.station_directory import StationDirectory
from hinyari.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_station_directory(request: Request) -> StationDirectory:
    return request.app.state.station_directory


def get_ranking_service(request: Request) -> RankingService:
    return request.app.state.ranking_service


def get_description_cache(request: Request) -> DescriptionCache:
    return request.app.state.description_cache


def get_enrichment(request: Request) -> EnrichmentOrchestrator:
    return request.app.state.enrichment
