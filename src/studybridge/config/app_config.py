"""Application configuration loader.

Loads centralized configuration from data/config/app_config.yaml when
present, then applies environment overrides (STRAPI_URL and the two API
tokens are normally supplied this way).

Usage:
    from studybridge.config.app_config import load_app_config

    config = load_app_config()
    config.upstream.base_url
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config.yaml")

# Environment variable -> (section, key, cast)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "STRAPI_URL": ("upstream", "base_url", str),
    "STRAPI_CONTENT_API_TOKEN": ("upstream", "content_token", str),
    "STRAPI_USER_API_TOKEN": ("upstream", "user_token", str),
    "UPSTREAM_TIMEOUT": ("upstream", "timeout", float),
    "UPSTREAM_MAX_CONNECTIONS": ("upstream", "max_connections", int),
    "UPSTREAM_MAX_KEEPALIVE": ("upstream", "max_keepalive_connections", int),
    "PORT": ("server", "port", int),
}


@dataclass
class UpstreamConfig:
    """Connection settings for the upstream content service."""

    base_url: str = "http://localhost:1337"
    content_token: str = ""
    user_token: str = ""
    timeout: float = 15.0
    max_connections: int = 50
    max_keepalive_connections: int = 20

    def token_for(self, scope: str) -> str:
        """Return the bearer token for a credential scope."""
        if scope == "user":
            return self.user_token
        return self.content_token


@dataclass
class ServerConfig:
    """Settings for the HTTP listener."""

    port: int = 3000


@dataclass
class AppConfig:
    """Application-wide configuration."""

    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "upstream": {
            "base_url": "http://localhost:1337",
            "content_token": "",
            "user_token": "",
            "timeout": 15.0,
            "max_connections": 50,
            "max_keepalive_connections": 20,
        },
        "server": {
            "port": 3000,
        },
    }


def _apply_env_overrides(data: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    """Overlay environment variables onto the parsed config dictionary."""
    for env_name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError:
            logger.warning("invalid_env_override", env=env_name, value=raw)
            continue
        data.setdefault(section, {})[key] = value
    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    upstream_data = {**defaults["upstream"], **(data.get("upstream") or {})}
    upstream = UpstreamConfig(
        base_url=str(upstream_data["base_url"]).rstrip("/"),
        content_token=upstream_data["content_token"] or "",
        user_token=upstream_data["user_token"] or "",
        timeout=float(upstream_data["timeout"]),
        max_connections=int(upstream_data["max_connections"]),
        max_keepalive_connections=int(upstream_data["max_keepalive_connections"]),
    )

    server_data = {**defaults["server"], **(data.get("server") or {})}
    server = ServerConfig(port=int(server_data["port"]))

    return AppConfig(upstream=upstream, server=server)


def load_app_config(
    force_reload: bool = False,
    environ: dict[str, str] | None = None,
) -> AppConfig:
    """Load application config from file and environment.

    Args:
        force_reload: If True, ignore cached config and reload.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    data = _apply_env_overrides(data, dict(os.environ if environ is None else environ))

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
