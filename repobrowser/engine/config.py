"""
Repository Browser Configuration — Load and validate repobrowser.yaml.

Usage:
    from repobrowser.engine.config import load_config, get_config
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from repobrowser.engine.errors import ConfigurationError

CONFIG_FILE_NAME = "repobrowser.yaml"

KNOWN_PROVIDERS = ("local", "memory", "update_sites", "composite")


# ---------------------------------------------------------------------------
# Pydantic models for repobrowser.yaml
# ---------------------------------------------------------------------------

class SiteConfig(BaseModel):
    name: str = "Repository Browser"
    environment: str = "dev"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


class RepositoryConfig(BaseModel):
    base_dir: str = "repository"


class UpdateSitesConfig(BaseModel):
    enabled: bool = True
    url: str = "sqlite:///updatesites.db"
    echo: bool = False
    temp_dir: Optional[str] = None


class TranslationsConfig(BaseModel):
    default_language: str = "en"
    file: Optional[str] = None


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".repobrowser/logs"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown logging level '{v}'")
        return v


class BrowserConfig(BaseModel):
    """Root model for repobrowser.yaml."""
    site: SiteConfig = SiteConfig()
    repository: RepositoryConfig = RepositoryConfig()
    update_sites: UpdateSitesConfig = UpdateSitesConfig()
    translations: TranslationsConfig = TranslationsConfig()
    logging: LoggingConfig = LoggingConfig()
    providers: List[str] = Field(
        default_factory=lambda: ["local", "update_sites", "composite"]
    )

    @field_validator("providers")
    @classmethod
    def validate_providers(cls, v: List[str]) -> List[str]:
        unknown = [name for name in v if name not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(
                f"unknown providers {unknown}; valid: {', '.join(KNOWN_PROVIDERS)}"
            )
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[BrowserConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for repobrowser.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists():
            return parent
    return current


def get_project_root() -> Path:
    """Return the project root directory."""
    return _find_project_root()


def load_config(config_path: Optional[str] = None) -> BrowserConfig:
    """
    Load and validate repobrowser.yaml.

    Args:
        config_path: Explicit path to repobrowser.yaml. If None, auto-discovers.

    Returns:
        Validated BrowserConfig instance. Defaults if the file does not exist.

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILE_NAME)

    path = Path(config_path)
    if not path.exists():
        _config = BrowserConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top of {path}", path=str(path)
        )

    try:
        _config = BrowserConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {path}: {e}",
            path=str(path),
            validation_errors=e.errors(),
        ) from e
    return _config


def get_config() -> BrowserConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def resolve_base_dir(config: BrowserConfig) -> Path:
    """Repository base directory; relative paths are anchored at the project root."""
    base = Path(config.repository.base_dir)
    if not base.is_absolute():
        base = _find_project_root() / base
    return base
