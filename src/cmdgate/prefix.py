"""Prefix resolution per message origin."""

from __future__ import annotations

import inspect
from dataclasses import dataclass

from .config import PrefixFn
from .logging import get_logger
from .model import MessageEvent, UserId

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PrefixMatch:
    prefix: str
    remainder: str
    mention: bool = False


def mention_prefixes(self_id: UserId) -> tuple[str, str]:
    return (f"<@{self_id}>", f"<@!{self_id}>")


class PrefixResolver:
    def __init__(
        self,
        default_prefix: str | None,
        *,
        prefix_fn: PrefixFn | None = None,
        allow_mention: bool = False,
    ) -> None:
        self._default_prefix = default_prefix
        self._prefix_fn = prefix_fn
        self._allow_mention = allow_mention

    async def resolve(self, event: MessageEvent) -> str | None:
        """Return the textual prefix in effect for the event's origin."""
        if event.is_direct or self._prefix_fn is None:
            return self._default_prefix
        try:
            value = self._prefix_fn(event.guild_id)
            if inspect.isawaitable(value):
                value = await value
        except Exception:
            logger.exception("prefix.guild_lookup_failed", guild_id=event.guild_id)
            return self._default_prefix
        if isinstance(value, str) and value.strip():
            return value
        if value not in (None, ""):
            logger.warning(
                "prefix.guild_prefix_ignored",
                guild_id=event.guild_id,
                value=repr(value),
            )
        return self._default_prefix

    async def match(self, event: MessageEvent) -> PrefixMatch | None:
        text = event.text
        if self._allow_mention and event.self_id is not None:
            for mention in mention_prefixes(event.self_id):
                if text.startswith(mention):
                    return PrefixMatch(
                        prefix=mention,
                        remainder=text[len(mention) :].lstrip(),
                        mention=True,
                    )
        prefix = await self.resolve(event)
        if prefix and text.startswith(prefix):
            return PrefixMatch(prefix=prefix, remainder=text[len(prefix) :])
        return None
