"""Message factories handed to command bodies through the context."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import InvocationContext

type MessageFactory = Callable[[InvocationContext, str], str]
type UsageFactory = Callable[[InvocationContext], str]


def default_info(_ctx: InvocationContext, text: str) -> str:
    return text


def default_warning(_ctx: InvocationContext, text: str) -> str:
    return f"\N{WARNING SIGN} {text}"


def default_error(_ctx: InvocationContext, text: str) -> str:
    return f"\N{CROSS MARK} {text}"


def default_usage(ctx: InvocationContext) -> str:
    command = ctx.command
    # mention prefixes need a space before the command
    separator = " " if ctx.prefix.startswith("<@") else ""
    invocation = f"{ctx.prefix}{separator}{command.name}"
    if command.usage:
        invocation = f"{invocation} {command.usage}"
    lines = [f"usage: `{invocation}`"]
    if command.description:
        lines.append(command.description)
    if command.aliases:
        aliases = ", ".join(f"`{alias}`" for alias in sorted(command.aliases))
        lines.append(f"aliases: {aliases}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class MessageFactories:
    info: MessageFactory = default_info
    warning: MessageFactory = default_warning
    error: MessageFactory = default_error
    usage: UsageFactory = default_usage
