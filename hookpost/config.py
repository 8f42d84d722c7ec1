"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _user_dir(env_var: str, windows_base: str, windows_default: str, xdg_var: str, xdg_default: str) -> Path:
    env = os.environ.get(env_var)
    if env:
        return Path(env)
    if sys.platform == "win32":
        return Path(os.environ.get(windows_base, Path.home() / "AppData" / windows_default)) / "hookpost"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "hookpost"
    return Path(os.environ.get(xdg_var, Path.home() / xdg_default)) / "hookpost"


def default_config_dir() -> Path:
    return _user_dir("HOOKPOST_CONFIG_DIR", "APPDATA", "Roaming", "XDG_CONFIG_HOME", ".config")


def default_data_dir() -> Path:
    return _user_dir("HOOKPOST_DATA_DIR", "LOCALAPPDATA", "Local", "XDG_DATA_HOME", ".local/share")


class WebhookConfig(BaseModel):
    # A webhook URL is accepted when its host contains one of these markers
    provider_markers: list[str] = Field(default_factory=lambda: ["discord"])
    path_marker: str = "/api/webhooks/"
    timeout: float = 15.0
    user_agent: str = "hookpost/0.1.0"


class ComposeConfig(BaseModel):
    default_color: str = "#5865f2"
    color_history_size: int = 5


class StorageConfig(BaseModel):
    db_name: str = "hookpost.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOOKPOST_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    compose: ComposeConfig = Field(default_factory=ComposeConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    data_dir: str = ""
    log_level: str = "WARNING"
    log_json: bool = False

    def get_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return default_data_dir()

    def get_db_path(self) -> Path:
        return self.get_data_dir() / self.storage.db_name


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("HOOKPOST_CONFIG")
    if config_path is None:
        default = default_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    if overrides:
        yaml_data = _deep_merge(yaml_data, overrides)

    # YAML values are passed as init kwargs; unset fields fall back to env vars
    return Settings(**yaml_data)
