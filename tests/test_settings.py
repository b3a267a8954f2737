"""
Tests for configuration loading.
"""
import pytest
from pydantic import ValidationError

from hinyari.settings import load_settings


CONFIG = """
api:
  title: "Test API"
ranking:
  max_limit: 20
  excluded_stations: ["富士山", "剣山"]
cache:
  backend: "auto"
  db_url: "sqlite://:memory:"
generation:
  model: "gemini-test"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "api.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return str(path)


class TestLoadSettings:

    def test_reads_yaml(self, config_file):
        settings = load_settings(config_file, environ={})

        assert settings.api["title"] == "Test API"
        assert settings.ranking.max_limit == 20
        assert settings.ranking.default_limit == 10
        assert settings.ranking.excluded_stations == ["富士山", "剣山"]
        assert settings.generation.model == "gemini-test"
        assert settings.generation.enabled is False

    def test_auto_backend_resolved_once(self, config_file):
        assert load_settings(config_file, environ={}).cache.backend == "local"

        settings = load_settings(config_file, environ={"BLOB_READ_WRITE_TOKEN": "token"})
        assert settings.cache.backend == "blob"
        assert settings.cache.blob_token == "token"

    def test_environment_overrides(self, config_file):
        settings = load_settings(config_file, environ={
            "CACHE_BACKEND": "LOCAL",
            "CACHE_DB_URL": "sqlite://tmp/cache.sqlite3",
            "GEMINI_API_KEY": "secret",
            "GEMINI_MODEL": "gemini-override",
            "VERCEL": "1",
        })

        assert settings.cache.backend == "local"
        assert settings.cache.db_url == "sqlite://tmp/cache.sqlite3"
        assert settings.generation.enabled is True
        assert settings.generation.model == "gemini-override"

    def test_legacy_api_key_name(self, config_file):
        settings = load_settings(config_file, environ={"GOOGLE_AI_API_KEY": "secret"})

        assert settings.generation.api_key == "secret"

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"), environ={})

        assert settings.upstream.station_ttl_hours == 24
        assert settings.ranking.max_limit == 50

    def test_invalid_backend_rejected(self, config_file):
        with pytest.raises(ValidationError):
            load_settings(config_file, environ={"CACHE_BACKEND": "redis"})
