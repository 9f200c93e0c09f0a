"""Built-in commands: help and ping."""

from __future__ import annotations

from dataclasses import replace

from .context import InvocationContext
from .model import CommandDefinition, CooldownTarget


def _format_command(prefix: str, command: CommandDefinition) -> str:
    line = f"`{prefix}{command.name}`"
    if command.description:
        line = f"{line} - {command.description}"
    return line


async def help_command(ctx: InvocationContext) -> None:
    registry = ctx.registry
    if ctx.arguments:
        target = registry.resolve(ctx.arguments[0])
        if target is None:
            await ctx.warning(f"unknown command `{ctx.arguments[0]}`")
            return
        await ctx.reply(ctx.messages.usage(_with_command(ctx, target)))
        return

    prefix = ctx.prefix
    if prefix.startswith("<@"):
        prefix = f"{prefix} "
    lines = ["**commands**"]
    lines.extend(_format_command(prefix, command) for command in registry)
    await ctx.info("\n".join(lines))


def _with_command(
    ctx: InvocationContext, command: CommandDefinition
) -> InvocationContext:
    # usage factories read the command off the context
    return replace(ctx, command=command)


async def ping_command(ctx: InvocationContext) -> None:
    await ctx.reply("pong")


HELP = CommandDefinition(
    name="help",
    handler=help_command,
    aliases=frozenset({"commands"}),
    description="List commands or show usage for one",
    usage="[command]",
)

PING = CommandDefinition(
    name="ping",
    handler=ping_command,
    cooldown=5.0,
    cooldown_target=CooldownTarget.USER,
    description="Check that the bot is responding",
)

BUILTIN_COMMANDS: tuple[CommandDefinition, ...] = (HELP, PING)
