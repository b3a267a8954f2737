"""
FastAPI main application for the Hinyari ranking API.
"""
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import timedelta
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tortoise.contrib.fastapi import RegisterTortoise

from hinyari.database import build_tortoise_config, ensure_sqlite_directory
from hinyari.routes import cache, descriptions, health, ranking
from hinyari.services.description_cache import DescriptionCache, create_cache_backend
from hinyari.services.enrichment import EnrichmentOrchestrator
from hinyari.services.generation import GeminiClient
from hinyari.services.observation_fetcher import ObservationFetcher
from hinyari.services.ranking import RankingEngine, RankingService
from hinyari.services.station_directory import StationDirectory
from hinyari.settings import Settings, load_settings
from hinyari.utils.logger import configure_logging, get_logger


def build_components(app: FastAPI, settings: Settings, client: httpx.AsyncClient):
    """
    Construct the pipeline components and attach them to app.state.

    Args:
        app: FastAPI application
        settings: Resolved settings
        client: Shared HTTP client
    """
    upstream = settings.upstream

    directory = StationDirectory(
        client,
        url=upstream.station_table_url,
        ttl=timedelta(hours=upstream.station_ttl_hours)
    )
    fetcher = ObservationFetcher(
        client,
        directory,
        latest_time_url=upstream.latest_time_url,
        snapshot_url_template=upstream.snapshot_url_template
    )
    engine = RankingEngine(excluded_stations=settings.ranking.excluded_stations)

    description_cache = DescriptionCache(create_cache_backend(settings.cache, client))

    generator = None
    if settings.generation.enabled:
        generator = GeminiClient(
            client,
            api_key=settings.generation.api_key,
            model=settings.generation.model,
            base_url=settings.generation.base_url,
            timeout=settings.generation.timeout
        )

    app.state.settings = settings
    app.state.station_directory = directory
    app.state.ranking_service = RankingService(fetcher, engine)
    app.state.description_cache = description_cache
    app.state.enrichment = EnrichmentOrchestrator(description_cache, generator)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Opens the shared HTTP client and, for the local cache, the SQLite database.
    """
    settings: Settings = app.state.settings
    logger = get_logger("hinyari.main")
    logger.info("🚀 Starting up API...")

    async with AsyncExitStack() as stack:
        client = await stack.enter_async_context(
            httpx.AsyncClient(timeout=settings.upstream.timeout)
        )

        if settings.cache.backend == "local":
            logger.info(f"📦 Opening local cache database: {settings.cache.db_url}")
            ensure_sqlite_directory(settings.cache.db_url)
            await stack.enter_async_context(RegisterTortoise(
                app,
                config=build_tortoise_config(settings.cache.db_url),
                generate_schemas=True,
            ))

        build_components(app, settings, client)
        logger.info(f"🗄️  Cache backend: {settings.cache.backend}")
        if not settings.generation.enabled:
            logger.warning("⚠️  GEMINI_API_KEY not set, descriptions fall back to placeholders")

        yield

        logger.info("👋 Shutting down API...")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use (default: loaded from config/api.yaml and the environment)

    Returns:
        FastAPI: Configured application
    """
    settings = settings or load_settings()
    configure_logging(settings.logging)
    api_config = settings.api

    app = FastAPI(
        title=api_config.get('title', "Hinyari Ranking API"),
        version=api_config.get('version', "0.1.0"),
        description=api_config.get('description', ""),
        lifespan=lifespan,
    )
    app.state.settings = settings

    cors = api_config.get('cors') or {}
    if cors.get('enabled'):
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors.get('origins', ["*"]),
            allow_credentials=cors.get('allow_credentials', False),
            allow_methods=cors.get('allow_methods', ["*"]),
            allow_headers=cors.get('allow_headers', ["*"]),
        )

    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(ranking.router, prefix="/api/v1", tags=["Ranking"])
    app.include_router(cache.router, prefix="/api/v1", tags=["Cache"])
    app.include_router(descriptions.router, prefix="/api/v1", tags=["Descriptions"])

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": app.title,
            "version": app.version,
            "description": app.description,
            "docs": "/docs",
            "health": "/api/v1/health"
        }

    return app


app = create_app()
