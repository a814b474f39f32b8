"""
Configuration management for intelx-mcp.
Loads and validates settings from YAML files and environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class GeneralConfig(BaseModel):
    """General configuration."""

    project_name: str = "intelx-mcp"
    version: str = "0.1.0"
    log_level: str = "INFO"
    # Empty string disables the log file (stderr only)
    logs_dir: str = "logs"


class APIConfig(BaseModel):
    """Upstream Intelligence X API configuration.

    Attributes:
        main_root: Service root for search, phonebook and file operations.
        identity_root: Service root for identity search and account export.
        user_agent: User-Agent header sent with every call.
        timeout_seconds: HTTP request timeout for a single upstream call.
    """

    main_root: str = "https://2.intelx.io"
    identity_root: str = "https://3.intelx.io"
    user_agent: str = "IntelX-MCP/1.0"
    timeout_seconds: float = 30.0


class RateLimitConfig(BaseModel):
    """Rate gate configuration (shared by every call to a service root)."""

    min_interval_seconds: float = 1.0


class PollingConfig(BaseModel):
    """Job polling configuration.

    Attributes:
        interval_seconds: Delay before every poll round.
        handle_min_length: Handles at or below this length are upstream error sentinels.
    """

    interval_seconds: float = 1.0
    handle_min_length: int = 3


class PostprocessConfig(BaseModel):
    """Response normalization configuration."""

    line_max_chars: int = 128


class Settings(BaseModel):
    """Main settings container."""

    api_key: str | None = None
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    postprocess: PostprocessConfig = Field(default_factory=PostprocessConfig)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary.

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_local_overrides(config_dir: Path) -> dict[str, Any]:
    """Load local.yaml overrides.

    Top-level keys correspond to config file names (without .yaml extension).

    Example local.yaml:
        settings:
          polling:
            interval_seconds: 2.0

    Args:
        config_dir: Configuration directory path.

    Returns:
        Local overrides dictionary (empty if the file does not exist).
    """
    local_path = config_dir / "local.yaml"
    if not local_path.exists():
        return {}
    with open(local_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _load_yaml_config(config_dir: Path) -> dict[str, Any]:
    """Load settings.yaml with local.yaml overrides (settings section).

    Args:
        config_dir: Configuration directory path.

    Returns:
        Merged configuration dictionary.
    """
    config: dict[str, Any] = {}

    base_path = config_dir / "settings.yaml"
    if base_path.exists():
        with open(base_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    local_overrides = _load_local_overrides(config_dir)
    if "settings" in local_overrides:
        config = _deep_merge(config, local_overrides["settings"])

    return config


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Environment variables should be prefixed with INTELX_ and use
    double underscores for nested keys.

    Example:
        INTELX_GENERAL__LOG_LEVEL=DEBUG
        INTELX_API_KEY=...  (top-level api_key)

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with environment overrides.
    """
    prefix = "INTELX_"

    for key, value in os.environ.items():
        if not key.startswith(prefix) or key == "INTELX_CONFIG_DIR":
            continue

        key_path = key[len(prefix) :].lower().split("__")

        current = config
        for part in key_path[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]

        final_key = key_path[-1]
        if final_key == "api_key":
            # Credentials are never numeric
            current[final_key] = value
            continue
        try:
            if value.lower() in ("true", "false"):
                current[final_key] = value.lower() == "true"
            elif "." in value:
                current[final_key] = float(value)
            else:
                current[final_key] = int(value)
        except ValueError:
            current[final_key] = value

    return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings.

    Settings are loaded from:
    1. Default values
    2. YAML configuration files (config/settings.yaml, config/local.yaml)
    3. Environment variables (highest priority)

    Returns:
        Settings instance.
    """
    config_dir = Path(os.environ.get("INTELX_CONFIG_DIR", "config"))

    config = _load_yaml_config(config_dir)
    config = _apply_env_overrides(config)

    return Settings(**config)
