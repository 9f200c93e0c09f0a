from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .model import (
    CommandDefinition,
    Cooldown,
    CooldownTarget,
    GuildId,
    MessageEvent,
    UserId,
)

type PrefixFn = Callable[[GuildId], Awaitable[str | None] | str | None]
type CustomCheck = Callable[
    [MessageEvent, CommandDefinition], Awaitable[bool] | bool
]
type ErrorHandler = Callable[[MessageEvent, Exception], Awaitable[Any] | Any]
type CooldownHandler = Callable[[MessageEvent, Cooldown], Awaitable[Any] | Any]
type BlacklistSource = Iterable[UserId] | Callable[[], Iterable[UserId]]

DEFAULT_EVICTION_INTERVAL = 300.0
HOME_CONFIG_PATH = Path.home() / ".cmdgate" / "cmdgate.toml"


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class DispatcherConfig:
    default_prefix: str | None = None
    prefix_fn: PrefixFn | None = None
    allow_mention: bool = False
    ignore_bots: bool = False
    ignore_system: bool = False
    ignore_webhooks: bool = False
    blacklist: frozenset[str] = frozenset()
    custom_check: CustomCheck | None = None
    error_handler: ErrorHandler | None = None
    cooldown_target: CooldownTarget = CooldownTarget.NONE
    cooldown_handler: CooldownHandler | None = None
    case_sensitive: bool = True
    report_errors: bool = False
    cooldown_eviction_interval: float = DEFAULT_EVICTION_INTERVAL


def _normalize_blacklist(source: BlacklistSource | None) -> frozenset[str]:
    if source is None:
        return frozenset()
    if callable(source):
        source = source()
    return frozenset(str(user_id) for user_id in source)


def _normalize_target(value: CooldownTarget | str) -> CooldownTarget:
    try:
        return CooldownTarget(value)
    except ValueError:
        choices = ", ".join(target.value for target in CooldownTarget)
        raise ConfigError(
            f"Invalid cooldown target {value!r}; expected one of: {choices}."
        ) from None


def build_config(
    *,
    default_prefix: str | None = None,
    prefix_fn: PrefixFn | None = None,
    allow_mention: bool = False,
    ignore_bots: bool = False,
    ignore_system: bool = False,
    ignore_webhooks: bool = False,
    blacklist: BlacklistSource | None = None,
    custom_check: CustomCheck | None = None,
    error_handler: ErrorHandler | None = None,
    cooldown_target: CooldownTarget | str = CooldownTarget.NONE,
    cooldown_handler: CooldownHandler | None = None,
    case_sensitive: bool = True,
    report_errors: bool = False,
    cooldown_eviction_interval: float = DEFAULT_EVICTION_INTERVAL,
) -> DispatcherConfig:
    """Validate dispatcher options and freeze them into a DispatcherConfig.

    Raises ConfigError when no prefix can ever match: an unset default prefix
    is only allowed when mentions are accepted as a prefix.
    """
    if default_prefix is not None:
        if not isinstance(default_prefix, str):
            raise ConfigError("default_prefix must be a string.")
        if default_prefix != default_prefix.strip():
            raise ConfigError(
                f"Invalid default prefix {default_prefix!r}; "
                "prefixes must not start or end with whitespace."
            )
        if not default_prefix:
            default_prefix = None
    if default_prefix is None and not allow_mention:
        raise ConfigError(
            "Missing default prefix; set one or enable allow_mention."
        )
    if prefix_fn is not None and not callable(prefix_fn):
        raise ConfigError("prefix_fn must be callable.")
    if cooldown_eviction_interval < 0:
        raise ConfigError("cooldown_eviction_interval must not be negative.")

    return DispatcherConfig(
        default_prefix=default_prefix,
        prefix_fn=prefix_fn,
        allow_mention=allow_mention,
        ignore_bots=ignore_bots,
        ignore_system=ignore_system,
        ignore_webhooks=ignore_webhooks,
        blacklist=_normalize_blacklist(blacklist),
        custom_check=custom_check,
        error_handler=error_handler,
        cooldown_target=_normalize_target(cooldown_target),
        cooldown_handler=cooldown_handler,
        case_sensitive=case_sensitive,
        report_errors=report_errors,
        cooldown_eviction_interval=cooldown_eviction_interval,
    )

