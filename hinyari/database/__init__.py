"""
Tortoise ORM configuration for the local description cache.
"""
import os

MODELS_MODULE = "hinyari.database.models"


def build_tortoise_config(db_url: str) -> dict:
    """
    Build a Tortoise ORM configuration for the given database URL.

    Args:
        db_url: Tortoise connection string (sqlite://path or sqlite://:memory:)

    Returns:
        dict: Tortoise configuration
    """
    return {
        "connections": {
            "default": db_url,
        },
        "apps": {
            "models": {
                "models": [MODELS_MODULE],
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


def ensure_sqlite_directory(db_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if not db_url.startswith("sqlite://") or db_url == "sqlite://:memory:":
        return
    db_dir = os.path.dirname(db_url[len("sqlite://"):])
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
