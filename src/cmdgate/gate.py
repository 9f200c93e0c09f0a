from __future__ import annotations

import inspect

from .blacklist import BlacklistStore
from .config import DispatcherConfig
from .cooldowns import CooldownTracker, cooldown_key
from .logging import get_logger
from .model import (
    Allowed,
    CommandDefinition,
    Cooldown,
    CooldownTarget,
    Denied,
    GateResult,
    MessageEvent,
)

logger = get_logger(__name__)

ALLOWED = Allowed()


class PreconditionGate:
    """Ordered precondition checks for a candidate invocation.

    Order: origin filters, blacklist, custom check, cooldown. The first denial
    wins. Cooldown runs last so attempts denied for any other reason never
    start or refresh a cooldown window.
    """

    def __init__(
        self,
        config: DispatcherConfig,
        *,
        blacklist: BlacklistStore,
        cooldowns: CooldownTracker,
    ) -> None:
        self._config = config
        self._blacklist = blacklist
        self._cooldowns = cooldowns

    def cooldown_target_for(self, definition: CommandDefinition) -> CooldownTarget:
        if definition.cooldown_target is not None:
            return definition.cooldown_target
        return self._config.cooldown_target

    def check_origin(self, event: MessageEvent) -> Denied | None:
        cfg = self._config
        if cfg.ignore_bots and event.author_is_bot:
            return Denied("bot")
        if cfg.ignore_system and event.author_is_system:
            return Denied("system")
        if cfg.ignore_webhooks and event.author_is_webhook:
            return Denied("webhook")
        return None

    async def evaluate(
        self, event: MessageEvent, definition: CommandDefinition
    ) -> GateResult:
        denied = self.check_origin(event)
        if denied is not None:
            return denied

        if event.author_id in self._blacklist:
            return Denied("blacklisted")

        check = self._config.custom_check
        if check is not None:
            passed = check(event, definition)
            if inspect.isawaitable(passed):
                passed = await passed
            if not passed:
                return Denied("check")

        return self._acquire_cooldown(event, definition)

    def _acquire_cooldown(
        self, event: MessageEvent, definition: CommandDefinition
    ) -> GateResult:
        duration = definition.cooldown
        if not duration:
            return ALLOWED
        target = self.cooldown_target_for(definition)
        key = cooldown_key(target, event)
        if key is None:
            return ALLOWED
        remaining = self._cooldowns.acquire(definition, key, duration)
        if remaining <= 0:
            return ALLOWED
        return Denied(
            "cooldown",
            cooldown=Cooldown(
                command=definition,
                target=target,
                key=key,
                duration=duration,
                remaining=remaining,
            ),
        )
