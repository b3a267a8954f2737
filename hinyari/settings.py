"""
Application settings loaded from config/api.yaml and environment variables.
"""
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "../config/api.yaml")

# Environment markers that identify a deployment with a blob store attached
BLOB_ENV_MARKERS = ("BLOB_READ_WRITE_TOKEN", "VERCEL")


class UpstreamSettings(BaseModel):
    """JMA AMeDAS endpoints."""

    station_table_url: str = "https://www.jma.go.jp/bosai/amedas/const/amedastable.json"
    latest_time_url: str = "https://www.jma.go.jp/bosai/amedas/data/latest_time.txt"
    snapshot_url_template: str = "https://www.jma.go.jp/bosai/amedas/data/map/{token}00.json"
    timeout: float = Field(15, gt=0, description="Timeout for every outgoing request (seconds)")
    station_ttl_hours: float = Field(24, gt=0)


class RankingSettings(BaseModel):
    default_limit: int = Field(10, ge=1)
    max_limit: int = Field(50, ge=1)
    excluded_stations: List[str] = Field(default_factory=lambda: ["富士山"])


class CacheSettings(BaseModel):
    backend: str = Field("auto", pattern="^(local|blob|auto)$")
    db_url: str = "sqlite://data/cache.sqlite3"
    blob_base_url: str = "https://blob.vercel-storage.com"
    blob_prefix: str = "location-cache"
    blob_token: Optional[str] = None


class GenerationSettings(BaseModel):
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.5-flash"
    timeout: float = Field(30, gt=0)
    api_key: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class Settings(BaseModel):
    """Resolved application settings."""

    api: Dict[str, Any] = Field(default_factory=dict)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    ranking: RankingSettings = Field(default_factory=RankingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    logging: Dict[str, Any] = Field(default_factory=dict)


def load_yaml_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load the YAML configuration file.

    Args:
        config_path: Path to the YAML file

    Returns:
        dict: Parsed configuration, empty if the file does not exist
    """
    if not os.path.exists(config_path):
        return {}
    with open(config_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def resolve_cache_backend(configured: str, environ: Mapping[str, str]) -> str:
    """
    Pick the cache backend name.

    "auto" selects the blob store when any deployment marker is present in the
    environment, otherwise the local store. Explicit values pass through.
    """
    if configured != "auto":
        return configured
    if any(environ.get(marker) for marker in BLOB_ENV_MARKERS):
        return "blob"
    return "local"


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """
    Build Settings from the YAML file with environment overrides applied.

    Args:
        config_path: YAML path (default: HINYARI_CONFIG or config/api.yaml)
        environ: Environment mapping (default: os.environ)

    Returns:
        Settings: Resolved settings with a concrete cache backend
    """
    environ = os.environ if environ is None else environ
    config_path = config_path or environ.get("HINYARI_CONFIG") or DEFAULT_CONFIG_PATH
    raw = load_yaml_config(config_path)

    cache = dict(raw.get("cache") or {})
    generation = dict(raw.get("generation") or {})
    logging_config = dict(raw.get("logging") or {})

    if environ.get("CACHE_BACKEND"):
        cache["backend"] = environ["CACHE_BACKEND"].strip().lower()
    if environ.get("CACHE_DB_URL"):
        cache["db_url"] = environ["CACHE_DB_URL"]
    if environ.get("BLOB_READ_WRITE_TOKEN"):
        cache["blob_token"] = environ["BLOB_READ_WRITE_TOKEN"]

    api_key = environ.get("GEMINI_API_KEY") or environ.get("GOOGLE_AI_API_KEY")
    if api_key:
        generation["api_key"] = api_key
    if environ.get("GEMINI_MODEL"):
        generation["model"] = environ["GEMINI_MODEL"]

    if environ.get("LOG_LEVEL"):
        logging_config["level"] = environ["LOG_LEVEL"]

    settings = Settings(
        api=raw.get("api") or {},
        upstream=raw.get("upstream") or {},
        ranking=raw.get("ranking") or {},
        cache=cache,
        generation=generation,
        logging=logging_config,
    )
    settings.cache.backend = resolve_cache_backend(settings.cache.backend, environ)
    return settings
