"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DOCMIRROR__FETCHER__CONCURRENCY=8)
  2. docmirror.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("docmirror")


def _find_config_file() -> str | None:
    """Return the path of the first docmirror.yaml found, or None."""
    candidates = [
        Path("docmirror.yaml"),
        Path(platformdirs.user_config_dir("docmirror")) / "docmirror.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class PathSettings(BaseModel):
    data_dir: str = _DEFAULT_DATA_DIR


class ResourceSettings(BaseModel):
    remote_url: str = "https://code.claude.com/docs/llms.txt"
    cache_ttl_seconds: int = 60 * 60
    timeout_seconds: float = 5.0
    max_retries: int = 2


class FetcherSettings(BaseModel):
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    timeout_seconds: float = 30.0
    concurrency: int = 5
    user_agent: str = "docmirror/1.0"


class UpdateSettings(BaseModel):
    reminder_hours: int = 24
    changelog_tail: int = 5


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DOCMIRROR__FETCHER__TIMEOUT_SECONDS=10
        env_prefix="DOCMIRROR__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    paths: PathSettings = PathSettings()
    resources: ResourceSettings = ResourceSettings()
    fetcher: FetcherSettings = FetcherSettings()
    update: UpdateSettings = UpdateSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
