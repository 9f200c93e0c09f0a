from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from cmdgate.cooldowns import GLOBAL_KEY, CooldownTracker, cooldown_key
from cmdgate.model import CooldownTarget
from tests.factories import CHANNEL_ID, GUILD_ID, FakeClock, make_event


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        (CooldownTarget.NONE, None),
        (CooldownTarget.USER, ("user", 1)),
        (CooldownTarget.MEMBER, ("member", GUILD_ID, 1)),
        (CooldownTarget.CHANNEL, ("channel", CHANNEL_ID)),
        (CooldownTarget.GUILD, ("guild", GUILD_ID)),
        (CooldownTarget.GLOBAL, GLOBAL_KEY),
    ],
)
def test_cooldown_key_per_target(target: CooldownTarget, expected: object) -> None:
    assert cooldown_key(target, make_event("!x", author_id=1)) == expected


def test_guild_key_falls_back_to_channel_in_direct_messages() -> None:
    event = make_event("!x", guild_id=None, channel_id=55)
    assert cooldown_key(CooldownTarget.GUILD, event) == ("channel", 55)


def test_member_key_differs_per_guild() -> None:
    first = cooldown_key(CooldownTarget.MEMBER, make_event("!x", guild_id=1))
    second = cooldown_key(CooldownTarget.MEMBER, make_event("!x", guild_id=2))
    assert first != second


def test_acquire_records_then_denies_until_expiry(clock: FakeClock) -> None:
    tracker = CooldownTracker(clock=clock)

    assert tracker.acquire("kick", "u1", 10) == 0.0
    clock.advance(4)
    assert tracker.acquire("kick", "u1", 10) == pytest.approx(6)
    assert tracker.remaining("kick", "u1") == pytest.approx(6)

    clock.advance(6)
    assert tracker.remaining("kick", "u1") == 0.0
    assert tracker.acquire("kick", "u1", 10) == 0.0
    assert tracker.remaining("kick", "u1") == pytest.approx(10)


def test_denied_acquire_does_not_extend_window(clock: FakeClock) -> None:
    tracker = CooldownTracker(clock=clock)
    tracker.acquire("kick", "u1", 10)
    clock.advance(5)
    tracker.acquire("kick", "u1", 10)

    assert tracker.remaining("kick", "u1") == pytest.approx(5)


def test_keys_and_commands_are_independent(clock: FakeClock) -> None:
    tracker = CooldownTracker(clock=clock)
    tracker.acquire("kick", "u1", 10)

    assert tracker.acquire("kick", "u2", 10) == 0.0
    assert tracker.acquire("ban", "u1", 10) == 0.0


def test_remaining_for_unknown_entry_is_zero(clock: FakeClock) -> None:
    assert CooldownTracker(clock=clock).remaining("kick", "nobody") == 0.0


def test_reset_filters(clock: FakeClock) -> None:
    tracker = CooldownTracker(clock=clock)
    tracker.acquire("kick", "u1", 10)
    tracker.acquire("kick", "u2", 10)
    tracker.acquire("ban", "u1", 10)

    assert tracker.reset("kick", "u1") == 1
    assert tracker.reset(key="u1") == 1
    assert tracker.reset() == 1
    assert len(tracker) == 0


def test_evict_expired(clock: FakeClock) -> None:
    tracker = CooldownTracker(clock=clock, eviction_interval=0)
    tracker.acquire("kick", "u1", 5)
    tracker.acquire("kick", "u2", 50)
    clock.advance(10)

    assert tracker.evict_expired() == 1
    assert len(tracker) == 1


def test_access_time_eviction(clock: FakeClock) -> None:
    tracker = CooldownTracker(clock=clock, eviction_interval=60)
    tracker.acquire("kick", "u1", 5)
    clock.advance(30)
    tracker.acquire("kick", "u2", 5)
    assert len(tracker) == 2

    clock.advance(31)
    tracker.acquire("kick", "u3", 5)
    assert len(tracker) == 1


def test_concurrent_acquire_records_exactly_once() -> None:
    tracker = CooldownTracker()
    workers = 16
    barrier = threading.Barrier(workers)

    def attempt() -> float:
        barrier.wait()
        return tracker.acquire("kick", ("user", 1), 10)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda _: attempt(), range(workers)))

    assert results.count(0.0) == 1
    assert all(remaining > 0 for remaining in results if remaining != 0.0)
    assert len(tracker) == 1
