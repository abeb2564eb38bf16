"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from hooktrigger.core.lifecycle import TriggerDeclaration
from hooktrigger.utils.platform import get_config_dir


class WebhooksConfig(BaseModel):
    enabled: bool = False
    bind: str = "0.0.0.0"
    port: int = 8420
    path: str = "/github-webhook"
    secret: str = ""


class JobConfig(BaseModel):
    """A job and the GitHub events it listens for."""
    name: str
    owner: str | None = None
    repository: str | None = None
    triggers: list[TriggerDeclaration] = Field(default_factory=list)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOOKTRIGGER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    jobs: list[JobConfig] = Field(default_factory=list)
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Env vars win over init kwargs, which carry the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("HOOKTRIGGER_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Build settings: YAML values as defaults, env vars override
    return Settings(**yaml_data)
