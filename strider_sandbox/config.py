"""Configuration loader — optional YAML file plus environment overrides.

Precedence (lowest to highest): model defaults, YAML file, environment.

    HTTP_PORT       listening port (default 4001)
    HOST            bind address (default 0.0.0.0)
    STRIDER_DEBUG   "1"/"true"/"yes" enables request logging
    SANDBOX_ID      reported by the default health check
    STRIDER_HANDLER prompt handler for the default process: echo | anthropic
    STRIDER_MODEL   Claude model used by the anthropic handler
    STRIDER_CONFIG  YAML file to read when no path is passed
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

_ENV_FIELDS = {
    "HTTP_PORT": "port",
    "HOST": "host",
    "STRIDER_DEBUG": "debug",
    "SANDBOX_ID": "sandbox_id",
    "STRIDER_HANDLER": "handler",
    "STRIDER_MODEL": "model",
}


class SandboxConfig(BaseModel):
    """Process-level settings for the sandbox server."""

    host: str = "0.0.0.0"
    port: int = 4001
    debug: bool = False
    sandbox_id: str | None = None
    handler: Literal["echo", "anthropic"] = "echo"
    model: str | None = None

    @field_validator("port")
    @classmethod
    def port_in_range(cls, v: int) -> int:
        if not 0 <= v <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {v}")
        return v


def load_config(path: str | None = None) -> SandboxConfig:
    """Build the config from an optional YAML file and the environment.

    An explicit ``path`` must exist. A path taken from ``STRIDER_CONFIG``
    that does not exist is skipped with a warning.
    """
    raw: dict[str, Any] = {}

    if path is not None:
        config_file = Path(path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file.resolve()}")
        raw = _read_yaml(config_file)
    elif env_path := os.environ.get("STRIDER_CONFIG"):
        config_file = Path(env_path)
        if config_file.exists():
            raw = _read_yaml(config_file)
        else:
            logger.warning(f"STRIDER_CONFIG points to missing file {config_file}, ignoring")

    for env_name, field_name in _ENV_FIELDS.items():
        value = os.environ.get(env_name)
        if value is not None and value != "":
            raw[field_name] = value

    config = SandboxConfig(**raw)
    logger.debug(f"Loaded config: host={config.host}, port={config.port}, debug={config.debug}")
    return config


def _read_yaml(config_file: Path) -> dict[str, Any]:
    data = yaml.safe_load(config_file.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping")
    return data
