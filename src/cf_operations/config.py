"""Connection and polling configuration.

An OperationsConfig is the single object the CLI builds before talking to
the platform.  Values come from a YAML file and are overridden by
``CF_OPERATIONS_<FIELD>`` environment variables, so secrets such as the
token never need to be written to disk.  Command-line flags win over both.

Example file::

    api_url: https://api.example.com
    organization: my-org
    space: development
    poll_interval_seconds: 2
    poll_timeout_seconds: 600
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cf_operations.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CF_OPERATIONS_"


class OperationsConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="forbid",
        validate_assignment=True,
    )

    api_url: str = "http://localhost"
    token: str = ""
    organization: str | None = None
    space: str | None = None
    page_size: int = Field(default=50, ge=1, le=100)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    poll_timeout_seconds: float = Field(default=300.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Init kwargs carry the YAML file, which the environment overrides.
        return (env_settings, init_settings)

    @field_validator("api_url")
    @classmethod
    def normalize_api_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return value

    @field_validator("organization", "space")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


def _read_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigurationError(f"Config file does not exist: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if raw is not None and not isinstance(raw, dict):
        raise ConfigurationError(f"Config YAML root must be a mapping: {path}")
    logger.debug("Loaded config file %s", path)
    return raw or {}


def load_config(path: str | Path | None = None, **overrides: Any) -> OperationsConfig:
    """Build a config from an optional YAML file, the environment, and overrides.

    Precedence, lowest first: file, ``CF_OPERATIONS_*`` environment,
    keyword overrides whose value is not ``None``.

    Raises:
        ConfigurationError: If the file is missing, malformed, or a value
            fails validation.
    """
    data = _read_file(Path(path)) if path is not None else {}
    try:
        config = OperationsConfig(**data)
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    return config
