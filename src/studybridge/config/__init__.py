"""Configuration package for studybridge."""

from studybridge.config.app_config import (
    AppConfig,
    ServerConfig,
    UpstreamConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "ServerConfig",
    "UpstreamConfig",
    "clear_config_cache",
    "load_app_config",
]
