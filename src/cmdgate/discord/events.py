"""Translate py-cord objects into transport-neutral message events."""

from __future__ import annotations

from typing import Any

import discord

from ..model import MessageEvent, UserId


def _is_system(message: discord.Message) -> bool:
    is_system = getattr(message, "is_system", None)
    if callable(is_system):
        return bool(is_system())
    return False


def event_from_message(
    message: discord.Message, *, self_id: UserId | None = None
) -> MessageEvent:
    async def reply(text: str) -> Any:
        return await message.reply(text, mention_author=False)

    author = message.author
    guild = message.guild
    return MessageEvent(
        text=message.content or "",
        author_id=author.id,
        channel_id=message.channel.id,
        guild_id=guild.id if guild is not None else None,
        author_is_bot=bool(getattr(author, "bot", False)),
        author_is_system=_is_system(message),
        author_is_webhook=getattr(message, "webhook_id", None) is not None,
        self_id=self_id,
        reply=reply,
        raw=message,
    )


def event_from_interaction(
    ctx: discord.ApplicationContext,
    *,
    name: str,
    arguments: str = "",
) -> MessageEvent:
    async def reply(text: str) -> Any:
        return await ctx.respond(text)

    author = ctx.author
    guild = ctx.guild
    text = f"/{name} {arguments}".rstrip()
    bot_user = ctx.bot.user if ctx.bot is not None else None
    return MessageEvent(
        text=text,
        author_id=author.id,
        channel_id=ctx.channel_id,
        guild_id=guild.id if guild is not None else None,
        author_is_bot=bool(getattr(author, "bot", False)),
        self_id=bot_user.id if bot_user is not None else None,
        reply=reply,
        raw=ctx,
    )
