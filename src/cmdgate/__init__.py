"""Prefix-command dispatch and gating for chat bots."""

from .config import ConfigError, DispatcherConfig, build_config
from .context import InvocationContext
from .dispatcher import Dispatcher
from .model import CommandDefinition, Cooldown, CooldownTarget, MessageEvent

__version__ = "0.1.0"

__all__ = [
    "CommandDefinition",
    "ConfigError",
    "Cooldown",
    "CooldownTarget",
    "Dispatcher",
    "DispatcherConfig",
    "InvocationContext",
    "MessageEvent",
    "__version__",
    "build_config",
]
