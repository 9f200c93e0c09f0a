"""cmdgate domain types (events, command definitions, cooldowns, gate results)."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from .context import InvocationContext

type UserId = int | str
type ChannelId = int | str
type GuildId = int | str

type ReplyFn = Callable[[str], Awaitable[Any]]
type CommandHandler = Callable[[InvocationContext], Awaitable[Any] | Any]

type DenyReason = Literal[
    "bot",
    "system",
    "webhook",
    "blacklisted",
    "check",
    "cooldown",
]


class CooldownTarget(StrEnum):
    NONE = "none"
    USER = "user"
    MEMBER = "member"
    CHANNEL = "channel"
    GUILD = "guild"
    GLOBAL = "global"


@dataclass(frozen=True, slots=True)
class MessageEvent:
    """A message-received event, independent of the chat platform.

    ``guild_id`` is None for direct messages. ``self_id`` is the bot's own user
    id as seen by the transport; it is needed for mention prefixes.
    """

    text: str
    author_id: UserId
    channel_id: ChannelId
    guild_id: GuildId | None = None
    author_is_bot: bool = False
    author_is_system: bool = False
    author_is_webhook: bool = False
    self_id: UserId | None = None
    reply: ReplyFn | None = field(default=None, compare=False, hash=False)
    raw: Any | None = field(default=None, compare=False, hash=False, repr=False)

    @property
    def is_direct(self) -> bool:
        return self.guild_id is None


@dataclass(frozen=True, slots=True)
class CommandDefinition:
    name: str
    handler: CommandHandler = field(compare=False, repr=False)
    aliases: frozenset[str] = frozenset()
    cooldown: float | None = None
    # None defers to the dispatcher-wide default target
    cooldown_target: CooldownTarget | None = None
    description: str = ""
    usage: str | None = None
    slash: bool = False

    @property
    def triggers(self) -> tuple[str, ...]:
        return (self.name, *sorted(self.aliases))


@dataclass(frozen=True, slots=True)
class Cooldown:
    command: CommandDefinition
    target: CooldownTarget
    key: Hashable
    duration: float
    remaining: float


@dataclass(frozen=True, slots=True)
class Allowed:
    allowed: Literal[True] = field(default=True, init=False)


@dataclass(frozen=True, slots=True)
class Denied:
    reason: DenyReason
    cooldown: Cooldown | None = None
    allowed: Literal[False] = field(default=False, init=False)


type GateResult = Allowed | Denied
