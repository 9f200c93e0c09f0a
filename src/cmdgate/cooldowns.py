"""Per-target command cooldowns.

An entry maps ``(command, key)`` to an expiry timestamp on the tracker's
clock. The dispatcher passes the CommandDefinition itself as ``command``, so a
text command and a slash command sharing a name keep separate windows. Whether an entry is active or expired is decided at read time against
the clock, so expired entries need no cleanup to be correct; eviction only
bounds memory.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable

from .logging import get_logger
from .model import CooldownTarget, MessageEvent

logger = get_logger(__name__)

GLOBAL_KEY = "global"

type EntryKey = tuple[Hashable, Hashable]


def cooldown_key(target: CooldownTarget, event: MessageEvent) -> Hashable | None:
    """Derive the bucket key for ``event`` under ``target``; None disables."""
    match target:
        case CooldownTarget.NONE:
            return None
        case CooldownTarget.USER:
            return ("user", event.author_id)
        case CooldownTarget.MEMBER:
            return ("member", event.guild_id, event.author_id)
        case CooldownTarget.CHANNEL:
            return ("channel", event.channel_id)
        case CooldownTarget.GUILD:
            if event.guild_id is None:
                return ("channel", event.channel_id)
            return ("guild", event.guild_id)
        case CooldownTarget.GLOBAL:
            return GLOBAL_KEY
    raise ValueError(f"unknown cooldown target: {target!r}")


class CooldownTracker:
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        eviction_interval: float = 300.0,
    ) -> None:
        self._clock = clock
        self._eviction_interval = eviction_interval
        self._entries: dict[EntryKey, float] = {}
        self._lock = threading.Lock()
        self._last_eviction = clock()

    def __len__(self) -> int:
        return len(self._entries)

    def remaining(self, command: Hashable, key: Hashable) -> float:
        expiry = self._entries.get((command, key))
        if expiry is None:
            return 0.0
        return max(0.0, expiry - self._clock())

    def acquire(self, command: Hashable, key: Hashable, duration: float) -> float:
        """Start a cooldown window unless one is active.

        Returns 0.0 when a new window was recorded, otherwise the time left on
        the active window. Check and record happen under one lock.
        """
        with self._lock:
            now = self._clock()
            self._maybe_evict(now)
            expiry = self._entries.get((command, key))
            if expiry is not None and now < expiry:
                return expiry - now
            self._entries[(command, key)] = now + duration
            return 0.0

    def reset(
        self, command: Hashable | None = None, key: Hashable | None = None
    ) -> int:
        with self._lock:
            doomed = [
                entry
                for entry in self._entries
                if (command is None or entry[0] == command)
                and (key is None or entry[1] == key)
            ]
            for entry in doomed:
                del self._entries[entry]
        return len(doomed)

    def evict_expired(self) -> int:
        with self._lock:
            return self._evict(self._clock())

    def _maybe_evict(self, now: float) -> None:
        if self._eviction_interval <= 0:
            return
        if now - self._last_eviction < self._eviction_interval:
            return
        self._evict(now)

    def _evict(self, now: float) -> int:
        self._last_eviction = now
        expired = [entry for entry, expiry in self._entries.items() if expiry <= now]
        for entry in expired:
            del self._entries[entry]
        if expired:
            logger.debug("cooldowns.evicted", count=len(expired))
        return len(expired)
