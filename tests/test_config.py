"""Unit tests for repobrowser.engine.config — YAML loading & validation."""

import pytest

from repobrowser.engine.config import (
    BrowserConfig,
    CONFIG_FILE_NAME,
    LoggingConfig,
    SiteConfig,
    get_config,
    load_config,
    resolve_base_dir,
)
from repobrowser.engine.errors import ConfigurationError


class TestModels:

    def test_defaults(self):
        config = BrowserConfig()
        assert config.site.name == "Repository Browser"
        assert config.site.environment == "dev"
        assert config.repository.base_dir == "repository"
        assert config.update_sites.enabled is True
        assert config.update_sites.url == "sqlite:///updatesites.db"
        assert config.translations.default_language == "en"
        assert config.logging.level == "INFO"
        assert config.providers == ["local", "update_sites", "composite"]

    def test_invalid_environment(self):
        with pytest.raises(ValueError, match="environment"):
            SiteConfig(environment="qa")

    def test_level_uppercased(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="chatty")

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="unknown providers"):
            BrowserConfig(providers=["local", "ftp"])


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yaml"))
        assert config == BrowserConfig()

    def test_load_valid_file(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text(
            "site:\n"
            "  name: Updates\n"
            "  environment: prod\n"
            "repository:\n"
            "  base_dir: /srv/repo\n"
            "update_sites:\n"
            "  enabled: false\n"
            "providers: [local, composite]\n",
            encoding="utf-8",
        )
        config = load_config(str(path))
        assert config.site.name == "Updates"
        assert config.site.environment == "prod"
        assert config.repository.base_dir == "/srv/repo"
        assert config.update_sites.enabled is False
        assert config.providers == ["local", "composite"]

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == BrowserConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("site: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path))

    def test_validation_error_wrapped(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("site:\n  environment: qa\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.path == str(path)
        assert "validation_errors" in exc_info.value.context

    def test_auto_discovery(self, tmp_path, monkeypatch):
        (tmp_path / CONFIG_FILE_NAME).write_text("site:\n  name: Found\n", encoding="utf-8")
        nested = tmp_path / "deep" / "er"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config().site.name == "Found"

    def test_get_config_caches(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        first = get_config()
        assert get_config() is first


class TestResolveBaseDir:

    def test_absolute_kept(self, tmp_path):
        config = BrowserConfig(repository={"base_dir": str(tmp_path / "repo")})
        assert resolve_base_dir(config) == tmp_path / "repo"

    def test_relative_anchored_at_project_root(self, tmp_path, monkeypatch):
        (tmp_path / CONFIG_FILE_NAME).write_text("", encoding="utf-8")
        sub = tmp_path / "sub"
        sub.mkdir()
        monkeypatch.chdir(sub)
        resolved = resolve_base_dir(BrowserConfig())
        assert resolved.resolve() == (tmp_path / "repository").resolve()
