"""Wait for a future message matching a predicate."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

import anyio

from .logging import get_logger
from .model import MessageEvent

logger = get_logger(__name__)

type EventPredicate = Callable[[MessageEvent], bool]


@dataclass(slots=True, eq=False)
class _Waiter:
    predicate: EventPredicate
    done: anyio.Event = field(default_factory=anyio.Event)
    result: MessageEvent | None = None


class EventWaiter:
    """One-shot listeners fed by the dispatcher with every incoming message.

    ``wait_for`` suspends only the calling command body; unrelated events keep
    flowing through ``feed``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._waiters: list[_Waiter] = []

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def wait_for(
        self,
        predicate: EventPredicate,
        *,
        timeout: float | None = None,
    ) -> MessageEvent | None:
        """Return the first later event matching ``predicate``, or None on timeout."""
        waiter = _Waiter(predicate=predicate)
        with self._lock:
            self._waiters.append(waiter)
        try:
            if timeout is None:
                await waiter.done.wait()
            else:
                with anyio.move_on_after(timeout):
                    await waiter.done.wait()
        finally:
            with self._lock:
                if waiter in self._waiters:
                    self._waiters.remove(waiter)
        if waiter.result is None:
            logger.debug("waiter.timeout", timeout=timeout)
        return waiter.result

    def feed(self, event: MessageEvent) -> int:
        """Resolve every pending waiter whose predicate accepts ``event``."""
        with self._lock:
            candidates = list(self._waiters)
        matched: list[_Waiter] = []
        for waiter in candidates:
            try:
                accepted = waiter.predicate(event)
            except Exception:
                logger.exception("waiter.predicate_failed")
                continue
            if accepted:
                matched.append(waiter)
        resolved = 0
        with self._lock:
            for waiter in matched:
                if waiter in self._waiters and waiter.result is None:
                    self._waiters.remove(waiter)
                    waiter.result = event
                    waiter.done.set()
                    resolved += 1
        return resolved
