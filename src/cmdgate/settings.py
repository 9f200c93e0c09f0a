from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import (
    DEFAULT_EVICTION_INTERVAL,
    HOME_CONFIG_PATH,
    ConfigError,
    CooldownHandler,
    CustomCheck,
    DispatcherConfig,
    ErrorHandler,
    PrefixFn,
    build_config,
)
from .model import CooldownTarget, GuildId


class DispatcherSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_prefix: str | None = "!"
    guild_prefixes: dict[str, str] = Field(default_factory=dict)
    allow_mention: bool = False
    ignore_bots: bool = True
    ignore_system: bool = True
    ignore_webhooks: bool = False
    blacklist: list[str] = Field(default_factory=list)
    cooldown_target: CooldownTarget = CooldownTarget.NONE
    case_sensitive: bool = True
    report_errors: bool = False
    cooldown_eviction_interval: float = DEFAULT_EVICTION_INTERVAL

    @field_validator("blacklist", mode="before")
    @classmethod
    def _validate_blacklist(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("blacklist must be a list of user ids")
        return [str(item) for item in value]

    @field_validator("guild_prefixes", mode="before")
    @classmethod
    def _validate_guild_prefixes(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("guild_prefixes must be a table of guild id -> prefix")
        cleaned: dict[str, str] = {}
        for guild_id, prefix in value.items():
            if not isinstance(prefix, str) or not prefix.strip():
                raise ValueError(
                    f"guild_prefixes.{guild_id} must be a non-empty string"
                )
            cleaned[str(guild_id)] = prefix.strip()
        return cleaned


class DiscordTransportSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bot_token: SecretStr | None = None
    guild_id: int | None = None

    @field_validator("guild_id", mode="before")
    @classmethod
    def _validate_guild_id(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("guild_id must be an integer")
        return value

    @field_serializer("bot_token")
    def _dump_token(self, value: SecretStr | None) -> str | None:
        return value.get_secret_value() if value else None


class TransportsSettings(BaseModel):
    discord: DiscordTransportSettings = Field(default_factory=DiscordTransportSettings)

    model_config = ConfigDict(extra="forbid")


class CmdgateSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="CMDGATE__",
        env_nested_delimiter="__",
    )

    dispatcher: DispatcherSettings = Field(default_factory=DispatcherSettings)
    transports: TransportsSettings = Field(default_factory=TransportsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def guild_prefix_fn(self) -> PrefixFn | None:
        prefixes = dict(self.dispatcher.guild_prefixes)
        if not prefixes:
            return None

        def lookup(guild_id: GuildId) -> str | None:
            return prefixes.get(str(guild_id))

        return lookup

    def to_config(
        self,
        *,
        prefix_fn: PrefixFn | None = None,
        custom_check: CustomCheck | None = None,
        error_handler: ErrorHandler | None = None,
        cooldown_handler: CooldownHandler | None = None,
    ) -> DispatcherConfig:
        """Build a DispatcherConfig; callables can only come from code."""
        dispatcher = self.dispatcher
        return build_config(
            default_prefix=dispatcher.default_prefix,
            prefix_fn=prefix_fn or self.guild_prefix_fn(),
            allow_mention=dispatcher.allow_mention,
            ignore_bots=dispatcher.ignore_bots,
            ignore_system=dispatcher.ignore_system,
            ignore_webhooks=dispatcher.ignore_webhooks,
            blacklist=dispatcher.blacklist,
            custom_check=custom_check,
            error_handler=error_handler,
            cooldown_target=dispatcher.cooldown_target,
            cooldown_handler=cooldown_handler,
            case_sensitive=dispatcher.case_sensitive,
            report_errors=dispatcher.report_errors,
            cooldown_eviction_interval=dispatcher.cooldown_eviction_interval,
        )


def _resolve_config_path(path: str | Path | None) -> Path:
    return Path(path).expanduser() if path else HOME_CONFIG_PATH


def _load_settings_from_path(cfg_path: Path) -> CmdgateSettings:
    cfg = dict(CmdgateSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "CmdgateSettingsBound",
        (CmdgateSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed TOML in {cfg_path}: {exc}") from None
    except Exception as exc:  # pragma: no cover - safety net
        raise ConfigError(f"Failed to load config {cfg_path}: {exc}") from exc


def load_settings(path: str | Path | None = None) -> tuple[CmdgateSettings, Path]:
    """Load settings from the TOML file at ``path``.

    Precedence is init kwargs, then ``CMDGATE__...`` env vars, then the file.
    A missing file is not an error; defaults and env vars still apply.
    """
    cfg_path = _resolve_config_path(path)
    if cfg_path.exists() and not cfg_path.is_file():
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.") from None
    return _load_settings_from_path(cfg_path), cfg_path


def require_discord_token(settings: CmdgateSettings, config_path: Path) -> str:
    token = settings.transports.discord.bot_token
    if token is None or not token.get_secret_value().strip():
        raise ConfigError(f"Missing discord bot token in {config_path}.")
    return token.get_secret_value().strip()
