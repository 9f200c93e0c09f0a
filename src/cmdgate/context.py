"""Invocation context handed to command bodies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .blacklist import BlacklistStore
from .messages import MessageFactories
from .model import ChannelId, CommandDefinition, GuildId, MessageEvent, UserId
from .waiter import EventPredicate, EventWaiter

if TYPE_CHECKING:
    from .dispatcher import Dispatcher
    from .registry import CommandRegistry


def split_arguments(raw: str) -> tuple[str, ...]:
    """Split on runs of whitespace; an empty string yields no tokens."""
    if not raw:
        return ()
    return tuple(raw.split())


@dataclass(frozen=True, slots=True)
class InvocationContext:
    prefix: str
    event: MessageEvent
    arguments: tuple[str, ...]
    arguments_raw: str
    command: CommandDefinition
    dispatcher: Dispatcher = field(repr=False)
    blacklist: BlacklistStore = field(repr=False)
    waiter: EventWaiter = field(repr=False)
    messages: MessageFactories = field(default_factory=MessageFactories, repr=False)

    @property
    def author_id(self) -> UserId:
        return self.event.author_id

    @property
    def channel_id(self) -> ChannelId:
        return self.event.channel_id

    @property
    def guild_id(self) -> GuildId | None:
        """None when the command was sent in a direct message."""
        return self.event.guild_id

    @property
    def is_direct(self) -> bool:
        return self.event.is_direct

    @property
    def registry(self) -> CommandRegistry:
        if self.command.slash:
            return self.dispatcher.slash_commands
        return self.dispatcher.commands

    @property
    def blacklist_ids(self) -> frozenset[str]:
        return self.blacklist.snapshot()

    async def reply(self, text: str) -> Any:
        if self.event.reply is None:
            raise RuntimeError("event has no reply channel")
        return await self.event.reply(text)

    async def info(self, text: str) -> Any:
        return await self.reply(self.messages.info(self, text))

    async def warning(self, text: str) -> Any:
        return await self.reply(self.messages.warning(self, text))

    async def error(self, text: str) -> Any:
        return await self.reply(self.messages.error(self, text))

    async def send_usage(self) -> Any:
        return await self.reply(self.messages.usage(self))

    async def wait_for(
        self,
        predicate: EventPredicate,
        *,
        timeout: float | None = None,
    ) -> MessageEvent | None:
        return await self.waiter.wait_for(predicate, timeout=timeout)


def build_context(
    *,
    prefix: str,
    event: MessageEvent,
    arguments_raw: str,
    command: CommandDefinition,
    dispatcher: Dispatcher,
) -> InvocationContext:
    return InvocationContext(
        prefix=prefix,
        event=event,
        arguments=split_arguments(arguments_raw),
        arguments_raw=arguments_raw,
        command=command,
        dispatcher=dispatcher,
        blacklist=dispatcher.blacklist,
        waiter=dispatcher.waiter,
        messages=dispatcher.messages,
    )
