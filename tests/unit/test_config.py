"""
Unit Tests for Configuration Management.

Black box tests against the public interface of config.py.
Tests run against the real project files (YAML configs).
Failure scenarios use tmp_path to create controlled filesystems.
No mocking: the config loader is the system under test.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from jotter.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_data_dir,
    get_database_url,
    get_export_dir,
    get_settings,
    load_yaml_config,
    validate_project_root,
)
from jotter.core.config_schema import ApplicationSchema, DatabaseSchema, StorageSchema


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Clear lru_cache between tests so each test gets a fresh load."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


# =============================================================================
# find_project_root
# =============================================================================


class TestFindProjectRoot:
    """Tests for .project_root marker discovery."""

    def test_finds_root_from_project_directory(self):
        root = find_project_root()
        assert (root / ".project_root").exists()
        assert (root / "config" / "settings").is_dir()

    def test_raises_when_no_marker_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()

    def test_validate_exits_when_marker_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            validate_project_root()


# =============================================================================
# YAML loading
# =============================================================================


class TestLoadYamlConfig:
    """Tests for raw YAML loading."""

    def test_loads_storage_yaml(self):
        raw = load_yaml_config("storage.yaml")
        assert raw["legacy"]["labels_key"] == "labelItems"

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_yaml_config("does-not-exist.yaml")


class TestAppConfig:
    """Tests for validated configuration."""

    def test_sections_are_typed(self):
        config = get_app_config()

        assert isinstance(config, AppConfig)
        assert isinstance(config.application, ApplicationSchema)
        assert isinstance(config.database, DatabaseSchema)
        assert isinstance(config.storage, StorageSchema)
        assert config.concurrency.thread_pool.max_workers > 0

    def test_display_defaults(self):
        display = get_app_config().application.display
        assert display.show_date_created is True
        assert display.date_format == "EEE d MMM yyyy"

    def test_unknown_key_rejected(self):
        with pytest.raises(PydanticValidationError):
            DatabaseSchema(url="sqlite+aiosqlite:///x.db", echo=False, pool_size=5)


# =============================================================================
# Environment overrides
# =============================================================================


class TestOverrides:
    """Tests for JOTTER_* environment overrides and path resolution."""

    def test_settings_fields_optional(self, monkeypatch):
        monkeypatch.delenv("JOTTER_DATABASE_URL", raising=False)
        monkeypatch.delenv("JOTTER_DATA_DIR", raising=False)
        settings = Settings()
        assert settings.database_url is None
        assert settings.data_dir is None

    def test_relative_sqlite_path_anchored_at_root(self, monkeypatch):
        monkeypatch.delenv("JOTTER_DATABASE_URL", raising=False)

        url = get_database_url()

        assert url == f"sqlite+aiosqlite:///{find_project_root() / 'data' / 'jotter.db'}"

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("JOTTER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        assert get_database_url() == "sqlite+aiosqlite:///:memory:"

    def test_data_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JOTTER_DATA_DIR", str(tmp_path))
        assert get_data_dir() == tmp_path

    def test_export_dir_under_root(self):
        assert get_export_dir() == find_project_root() / "cache" / "exported"
