"""py-cord bot wrapper feeding a Dispatcher."""

from __future__ import annotations

import contextlib
from collections.abc import Awaitable, Callable

import discord

from ..dispatcher import Dispatcher
from ..logging import get_logger
from ..model import CommandDefinition
from .events import event_from_interaction, event_from_message

logger = get_logger(__name__)

__all__ = ["DiscordCommandClient"]

DENIED_RESPONSE = "You can't use this command right now."


class DiscordCommandClient:
    """Wrapper around a py-cord Bot that routes messages into a Dispatcher."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        token: str,
        *,
        guild_id: int | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._token = token
        self._guild_id = guild_id
        # Defer bot creation until inside async context
        self._bot: discord.Bot | None = None
        self._slash_registered = False

    def _ensure_bot(self) -> discord.Bot:
        if self._bot is not None:
            return self._bot

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        debug_guilds = [self._guild_id] if self._guild_id else None
        self._bot = discord.Bot(intents=intents, debug_guilds=debug_guilds)

        @self._bot.event
        async def on_ready() -> None:
            assert self._bot is not None
            user = self._bot.user
            logger.info("bot.ready", user=user.name if user else "unknown")

        @self._bot.event
        async def on_message(message: discord.Message) -> None:
            await self.handle_message(message)

        return self._bot

    @property
    def bot(self) -> discord.Bot:
        return self._ensure_bot()

    @property
    def user(self) -> discord.User | None:
        if self._bot is None:
            return None
        return self._bot.user

    async def handle_message(self, message: discord.Message) -> bool:
        user = self.user
        if user is not None and message.author == user:
            return False
        event = event_from_message(message, self_id=user.id if user else None)
        return await self._dispatcher.on_message(event)

    def _make_slash_callback(
        self, definition: CommandDefinition
    ) -> Callable[..., Awaitable[None]]:
        dispatcher = self._dispatcher
        name = definition.name

        async def callback(
            ctx: discord.ApplicationContext,
            arguments: str = discord.Option(
                default="",
                description=definition.usage or "Command arguments",
            ),
        ) -> None:
            event = event_from_interaction(ctx, name=name, arguments=arguments)
            ran = await dispatcher.dispatch_slash(event, name, arguments)
            if not ran and not ctx.response.is_done():
                await ctx.respond(DENIED_RESPONSE, ephemeral=True)

        callback.__name__ = f"slash_{name}"
        return callback

    def register_slash_commands(self) -> list[str]:
        """Expose every slash-namespace definition as a py-cord slash command."""
        if self._slash_registered:
            return []
        bot = self._ensure_bot()
        names: list[str] = []
        for definition in self._dispatcher.slash_commands:
            bot.slash_command(
                name=definition.name,
                description=definition.description or definition.name,
            )(self._make_slash_callback(definition))
            names.append(definition.name)
        self._slash_registered = True
        if names:
            logger.info("slash_commands.registered", count=len(names), commands=names)
        return names

    async def run(self) -> None:
        """Start the dispatcher and serve until the bot disconnects."""
        self._dispatcher.start()
        self.register_slash_commands()
        bot = self._ensure_bot()
        try:
            await bot.start(self._token)
        finally:
            await self.close()

    async def close(self) -> None:
        if self._bot is not None and not self._bot.is_closed():
            with contextlib.suppress(RuntimeError):
                await self._bot.close()

