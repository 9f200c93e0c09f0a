from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

from .logging import get_logger
from .model import UserId

logger = get_logger(__name__)


class BlacklistStore:
    """User ids barred from invoking any command.

    Reads go against an immutable snapshot; mutations swap in a new snapshot
    under a lock, so membership checks never block.
    """

    def __init__(self, user_ids: Iterable[UserId] = ()) -> None:
        self._lock = threading.Lock()
        self._snapshot: frozenset[str] = frozenset(str(uid) for uid in user_ids)

    def __contains__(self, user_id: object) -> bool:
        return str(user_id) in self._snapshot

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshot)

    def __len__(self) -> int:
        return len(self._snapshot)

    def snapshot(self) -> frozenset[str]:
        return self._snapshot

    def add(self, user_id: UserId) -> bool:
        key = str(user_id)
        with self._lock:
            if key in self._snapshot:
                return False
            self._snapshot = self._snapshot | {key}
        logger.info("blacklist.added", user_id=key)
        return True

    def remove(self, user_id: UserId) -> bool:
        key = str(user_id)
        with self._lock:
            if key not in self._snapshot:
                return False
            self._snapshot = self._snapshot - {key}
        logger.info("blacklist.removed", user_id=key)
        return True

    def replace(self, user_ids: Iterable[UserId]) -> None:
        snapshot = frozenset(str(uid) for uid in user_ids)
        with self._lock:
            self._snapshot = snapshot
        logger.info("blacklist.replaced", count=len(snapshot))
