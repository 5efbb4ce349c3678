"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./a2a-desk.yaml (working directory)
3. ~/.a2a-desk/config.yaml (user home)

Environment variables override YAML: A2A_DESK_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
When no file exists, defaults plus env overrides are used.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
_ENV_PREFIX = "A2A_DESK_"


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ServerConfig(BaseModel):
    """Local HTTP API server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"


class DatabaseConfig(BaseModel):
    """Database location. None falls back to DATABASE_URL or the data dir."""

    url: str | None = None
    lock_timeout_seconds: float = 10.0


class LLMConfig(BaseModel):
    """Upstream completion endpoint used by the chat relay.

    The endpoint must speak the Anthropic Messages API.
    """

    base_url: str = "https://api.deepseek.com/anthropic"
    model: str = "deepseek-chat"
    max_tokens: int = 4000
    temperature: float = 0.3
    completion_temperature: float = 0.7
    stream_timeout_seconds: float = 300.0


class A2AConfig(BaseModel):
    """Outbound A2A HTTP settings."""

    request_timeout_seconds: float = 30.0


class AppConfig(BaseModel):
    """Top-level configuration for A2A Desk."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    a2a: A2AConfig = Field(default_factory=A2AConfig)


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    candidates = [
        Path.cwd() / "a2a-desk.yaml",
        Path.cwd() / "a2a-desk.yml",
        Path.home() / ".a2a-desk" / "config.yaml",
        Path.home() / ".a2a-desk" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply A2A_DESK_<SECTION>_<KEY> env var overrides to config data.

    Section names are matched longest-first. For example,
    ``A2A_DESK_LLM_BASE_URL`` maps to section ``llm``, field ``base_url``.
    Unknown sections are ignored, so variables like ``A2A_DESK_DB_PATH``
    pass through untouched.
    """
    known_sections = sorted(AppConfig.model_fields.keys(), key=len, reverse=True)
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        suffix = key[len(_ENV_PREFIX):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if matched_section not in data or data[matched_section] is None:
            data[matched_section] = {}
        if isinstance(data[matched_section], dict):
            # Coerce to int or bool, otherwise let pydantic coerce the string
            try:
                data[matched_section][matched_field] = int(value)
            except ValueError:
                if value.lower() in ("true", "false"):
                    data[matched_section][matched_field] = value.lower() == "true"
                else:
                    data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> AppConfig:
    """Load configuration from YAML file with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.a2a-desk/).

    Returns:
        Parsed and validated AppConfig.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist.
    """
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    raw_data: dict[str, Any] = {}
    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return AppConfig(**data)
