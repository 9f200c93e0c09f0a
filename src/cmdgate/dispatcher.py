"""Message dispatch: prefix, lookup, gate, context, invoke."""

from __future__ import annotations

import inspect
import time
from collections.abc import Callable, Iterable

from .blacklist import BlacklistStore
from .config import DispatcherConfig
from .context import InvocationContext, build_context
from .cooldowns import CooldownTracker
from .gate import PreconditionGate
from .logging import dispatch_context, get_logger
from .messages import MessageFactories
from .model import (
    CommandDefinition,
    CommandHandler,
    Cooldown,
    CooldownTarget,
    Denied,
    MessageEvent,
)
from .prefix import PrefixResolver
from .registry import CommandRegistry
from .waiter import EventWaiter

logger = get_logger(__name__)

__all__ = ["Dispatcher", "split_invocation"]

SLASH_PREFIX = "/"


def split_invocation(remainder: str) -> tuple[str, str] | None:
    """Split text after the prefix into (command token, raw arguments)."""
    parts = remainder.split(None, 1)
    if not parts:
        return None
    token = parts[0]
    arguments_raw = parts[1].strip() if len(parts) > 1 else ""
    return token, arguments_raw


class Dispatcher:
    """Turns message events into gated command invocations.

    Failures raised by command bodies (or by the custom check) stop here: they
    go to the configured error handler, or are logged and dropped, and never
    reach the transport's event loop.
    """

    def __init__(
        self,
        config: DispatcherConfig,
        *,
        commands: Iterable[CommandDefinition] = (),
        messages: MessageFactories | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.commands = CommandRegistry(case_sensitive=config.case_sensitive)
        self.slash_commands = CommandRegistry(
            case_sensitive=config.case_sensitive, label="slash command"
        )
        self.blacklist = BlacklistStore(config.blacklist)
        self.cooldowns = CooldownTracker(
            clock=clock, eviction_interval=config.cooldown_eviction_interval
        )
        self.waiter = EventWaiter()
        self.messages = messages or MessageFactories()
        self.prefixes = PrefixResolver(
            config.default_prefix,
            prefix_fn=config.prefix_fn,
            allow_mention=config.allow_mention,
        )
        self.gate = PreconditionGate(
            config, blacklist=self.blacklist, cooldowns=self.cooldowns
        )
        self._started = False
        for definition in commands:
            self.register(definition)

    def register(self, definition: CommandDefinition) -> CommandDefinition:
        registry = self.slash_commands if definition.slash else self.commands
        registry.add(definition)
        logger.debug(
            "command.registered",
            command=definition.name,
            aliases=sorted(definition.aliases),
            slash=definition.slash,
        )
        return definition

    def command(
        self,
        name: str,
        *,
        aliases: Iterable[str] = (),
        cooldown: float | None = None,
        cooldown_target: CooldownTarget | None = None,
        description: str = "",
        usage: str | None = None,
    ) -> Callable[[CommandHandler], CommandHandler]:
        return self.commands.command(
            name,
            aliases=aliases,
            cooldown=cooldown,
            cooldown_target=cooldown_target,
            description=description,
            usage=usage,
        )

    def slash_command(
        self,
        name: str,
        *,
        cooldown: float | None = None,
        cooldown_target: CooldownTarget | None = None,
        description: str = "",
        usage: str | None = None,
    ) -> Callable[[CommandHandler], CommandHandler]:
        return self.slash_commands.command(
            name,
            cooldown=cooldown,
            cooldown_target=cooldown_target,
            description=description,
            usage=usage,
            slash=True,
        )

    def start(self) -> None:
        """Freeze both registries; call once before serving events."""
        if self._started:
            return
        self.commands.freeze()
        self.slash_commands.freeze()
        self._started = True
        logger.info(
            "dispatcher.started",
            default_prefix=self.config.default_prefix,
            allow_mention=self.config.allow_mention,
            commands=self.commands.names(),
            slash_commands=self.slash_commands.names(),
            blacklisted=len(self.blacklist),
        )

    async def on_message(self, event: MessageEvent) -> bool:
        """Dispatch one message event. Returns True when a command body ran."""
        self.waiter.feed(event)

        match = await self.prefixes.match(event)
        if match is None:
            return False
        split = split_invocation(match.remainder)
        if split is None:
            return False
        token, arguments_raw = split

        definition = self.commands.resolve(token)
        if definition is None:
            logger.debug("dispatch.unknown_command", token=token)
            return False

        return await self._run(match.prefix, event, arguments_raw, definition)

    async def dispatch_slash(
        self, event: MessageEvent, name: str, arguments_raw: str = ""
    ) -> bool:
        self.waiter.feed(event)
        definition = self.slash_commands.resolve(name)
        if definition is None:
            logger.warning("dispatch.unknown_slash_command", name=name)
            return False
        return await self._run(SLASH_PREFIX, event, arguments_raw.strip(), definition)

    async def _run(
        self,
        prefix: str,
        event: MessageEvent,
        arguments_raw: str,
        definition: CommandDefinition,
    ) -> bool:
        with dispatch_context(
            command=definition.name,
            author_id=event.author_id,
            channel_id=event.channel_id,
            guild_id=event.guild_id,
        ):
            try:
                result = await self.gate.evaluate(event, definition)
            except Exception as exc:
                logger.debug("dispatch.check_failed", error_type=type(exc).__name__)
                await self._handle_error(event, exc, None)
                return False

            if isinstance(result, Denied):
                logger.debug("dispatch.denied", reason=result.reason)
                if result.cooldown is not None:
                    await self._handle_cooldown(event, result.cooldown)
                return False

            ctx = build_context(
                prefix=prefix,
                event=event,
                arguments_raw=arguments_raw,
                command=definition,
                dispatcher=self,
            )
            await self._invoke(ctx)
            return True

    async def _invoke(self, ctx: InvocationContext) -> None:
        logger.info("command.invoked", arguments=len(ctx.arguments))
        try:
            outcome = ctx.command.handler(ctx)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            await self._handle_error(ctx.event, exc, ctx)
            return
        logger.debug("command.completed")

    async def _handle_error(
        self,
        event: MessageEvent,
        exc: Exception,
        ctx: InvocationContext | None,
    ) -> None:
        handler = self.config.error_handler
        if handler is None:
            logger.exception(
                "command.failed_unhandled",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=exc,
            )
        else:
            logger.debug("command.failed", error_type=type(exc).__name__)
            try:
                outcome = handler(event, exc)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("error_handler.failed")

        if self.config.report_errors and ctx is not None and event.reply is not None:
            try:
                await ctx.error(f"`{ctx.command.name}` failed: {exc}")
            except Exception:
                logger.exception("command.error_report_failed")

    async def _handle_cooldown(self, event: MessageEvent, cooldown: Cooldown) -> None:
        handler = self.config.cooldown_handler
        logger.debug(
            "dispatch.cooldown",
            target=cooldown.target.value,
            remaining=round(cooldown.remaining, 3),
        )
        if handler is None:
            return
        try:
            outcome = handler(event, cooldown)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("cooldown_handler.failed")
