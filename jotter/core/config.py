"""
Configuration Management.

Loads overrides from config/.env (or JOTTER_* environment variables) and
settings from config/settings/*.yaml.

Overrides (.env / environment):
    JOTTER_DATABASE_URL, JOTTER_DATA_DIR

Settings (YAML):
    application.yaml   - App identity, display settings (date line, locale)
    database.yaml      - Database URL and echo flag
    storage.yaml       - Data directory, legacy folder names, export folder
    logging.yaml       - Logging configuration
    concurrency.yaml   - I/O pool size, shutdown timing
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from jotter.core.config_schema import (
    ApplicationSchema,
    ConcurrencySchema,
    DatabaseSchema,
    LoggingSchema,
    StorageSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Environment overrides loaded from config/.env. Every field is optional."""

    database_url: str | None = None
    data_dir: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="JOTTER_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._database = _load_validated(DatabaseSchema, "database.yaml")
        self._storage = _load_validated(StorageSchema, "storage.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")
        self._concurrency = _load_validated(ConcurrencySchema, "concurrency.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def database(self) -> DatabaseSchema:
        """Database settings."""
        return self._database

    @property
    def storage(self) -> StorageSchema:
        """Filesystem layout settings."""
        return self._storage

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging

    @property
    def concurrency(self) -> ConcurrencySchema:
        """Concurrency settings (I/O pool, shutdown)."""
        return self._concurrency


@lru_cache
def get_settings() -> Settings:
    """Get cached overrides instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def _resolve(path: str) -> Path:
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return find_project_root() / candidate


def get_database_url() -> str:
    """
    Get the database URL, honouring JOTTER_DATABASE_URL.

    Relative SQLite paths in database.yaml are anchored at the project root
    so the CLI behaves the same from any working directory.
    """
    override = get_settings().database_url
    if override:
        return override

    url = get_app_config().database.url
    prefix = "sqlite+aiosqlite:///"
    if url.startswith(prefix) and not url[len(prefix):].startswith(("/", ":memory:")):
        return prefix + str(_resolve(url[len(prefix):]))
    return url


def get_data_dir() -> Path:
    """Get the data directory that holds the legacy note folders."""
    override = get_settings().data_dir
    return _resolve(override or get_app_config().storage.data_dir)


def get_export_dir() -> Path:
    """Get the scratch folder rendered exports are written to."""
    return _resolve(get_app_config().storage.export_dir)
