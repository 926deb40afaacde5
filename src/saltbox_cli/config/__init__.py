from saltbox_cli.config.loader import YamlConfigLoader, load_motd_config
from saltbox_cli.config.models import (
    ApiKeyInstance,
    AppConfig,
    AppInstance,
    ConfigLoadRequest,
    LoggingSettings,
    MotdConfig,
    MotdSection,
    PathSettings,
    RTorrentInstance,
    TokenInstance,
    UserPassInstance,
)

__all__ = [
    "ApiKeyInstance",
    "AppConfig",
    "AppInstance",
    "ConfigLoadRequest",
    "LoggingSettings",
    "MotdConfig",
    "MotdSection",
    "PathSettings",
    "RTorrentInstance",
    "TokenInstance",
    "UserPassInstance",
    "YamlConfigLoader",
    "load_motd_config",
]
