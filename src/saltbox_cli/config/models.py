from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from saltbox_cli import constants


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Empty disables file logging.
    path: str = ""
    rotation: FileRotationSettings = FileRotationSettings()


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "WARNING"
    file: FileLoggingSettings = FileLoggingSettings()


class PathSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ansible_playbook: str = constants.ANSIBLE_PLAYBOOK_BINARY_PATH
    cache_file: str = constants.SALTBOX_CACHE_FILE
    motd_config: str = constants.SALTBOX_MOTD_CONFIG_PATH
    saltbox_repo: str = constants.SALTBOX_REPO_PATH
    sandbox_repo: str = constants.SANDBOX_REPO_PATH
    saltbox_mod_repo: str = constants.SALTBOX_MOD_REPO_PATH


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    logging: LoggingSettings = LoggingSettings()
    paths: PathSettings = PathSettings()


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: str = constants.SALTBOX_SETTINGS_PATH
    env_prefix: str = "SB__"
    dotenv_path: Optional[str] = None


class AppInstance(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    url: str = ""
    # Seconds. Unset or non-positive falls back to the caller's default.
    timeout: Optional[float] = None
    enabled: bool = True

    def effective_timeout(self, default: float = constants.DEFAULT_INSTANCE_TIMEOUT_SECONDS) -> float:
        if self.timeout is None or self.timeout <= 0:
            return default
        return self.timeout

    def display_name(self, default: str) -> str:
        return self.name or default

    def is_configured(self) -> bool:
        raise NotImplementedError


class ApiKeyInstance(AppInstance):
    apikey: str = ""

    def is_configured(self) -> bool:
        return bool(self.url and self.apikey)


class TokenInstance(AppInstance):
    token: str = ""

    def is_configured(self) -> bool:
        return bool(self.url and self.token)


class UserPassInstance(AppInstance):
    user: str = ""
    password: str = ""

    def is_configured(self) -> bool:
        return bool(self.url and self.user and self.password)


class RTorrentInstance(UserPassInstance):
    # Credentials are optional; rTorrent is often exposed without auth behind a proxy.
    def is_configured(self) -> bool:
        return bool(self.url)


InstanceT = TypeVar("InstanceT", bound=AppInstance)


class MotdSection(BaseModel, Generic[InstanceT]):
    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    instances: Sequence[InstanceT] = ()

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, list):
            return {"instances": data}
        return data

    def active_instances(self) -> list[InstanceT]:
        if not self.enabled:
            return []
        return [instance for instance in self.instances if instance.enabled]


class MotdConfig(BaseModel):
    """Application endpoints polled by the motd report. Unknown keys (colors, ...) are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    sonarr: MotdSection[ApiKeyInstance] = Field(default_factory=MotdSection[ApiKeyInstance])
    radarr: MotdSection[ApiKeyInstance] = Field(default_factory=MotdSection[ApiKeyInstance])
    lidarr: MotdSection[ApiKeyInstance] = Field(default_factory=MotdSection[ApiKeyInstance])
    readarr: MotdSection[ApiKeyInstance] = Field(default_factory=MotdSection[ApiKeyInstance])
    plex: MotdSection[TokenInstance] = Field(default_factory=MotdSection[TokenInstance])
    jellyfin: MotdSection[TokenInstance] = Field(default_factory=MotdSection[TokenInstance])
    emby: MotdSection[TokenInstance] = Field(default_factory=MotdSection[TokenInstance])
    sabnzbd: MotdSection[ApiKeyInstance] = Field(default_factory=MotdSection[ApiKeyInstance])
    nzbget: MotdSection[UserPassInstance] = Field(default_factory=MotdSection[UserPassInstance])
    qbittorrent: MotdSection[UserPassInstance] = Field(default_factory=MotdSection[UserPassInstance])
    rtorrent: MotdSection[RTorrentInstance] = Field(default_factory=MotdSection[RTorrentInstance])
