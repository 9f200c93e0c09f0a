from __future__ import annotations

import pytest

from cmdgate.blacklist import BlacklistStore
from cmdgate.config import build_config
from cmdgate.cooldowns import CooldownTracker
from cmdgate.gate import PreconditionGate
from cmdgate.model import Allowed, CommandDefinition, CooldownTarget, Denied
from tests.factories import FakeClock, make_event


async def _noop(ctx) -> None:
    return None


def _gate(clock: FakeClock, **options) -> PreconditionGate:
    options.setdefault("default_prefix", "!")
    config = build_config(**options)
    return PreconditionGate(
        config,
        blacklist=BlacklistStore(config.blacklist),
        cooldowns=CooldownTracker(clock=clock),
    )


def _command(**kwargs) -> CommandDefinition:
    kwargs.setdefault("name", "kick")
    return CommandDefinition(handler=_noop, **kwargs)


class TestOriginFilters:
    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("option", "flag", "reason"),
        [
            ("ignore_bots", "author_is_bot", "bot"),
            ("ignore_system", "author_is_system", "system"),
            ("ignore_webhooks", "author_is_webhook", "webhook"),
        ],
    )
    async def test_enabled_filter_denies(
        self, clock: FakeClock, option: str, flag: str, reason: str
    ) -> None:
        gate = _gate(clock, **{option: True})
        result = await gate.evaluate(make_event("!kick", **{flag: True}), _command())
        assert result == Denied(reason)

    @pytest.mark.anyio
    async def test_disabled_filters_allow(self, clock: FakeClock) -> None:
        gate = _gate(clock)
        event = make_event(
            "!kick", author_is_bot=True, author_is_system=True, author_is_webhook=True
        )
        assert isinstance(await gate.evaluate(event, _command()), Allowed)

    @pytest.mark.anyio
    async def test_filters_are_independent(self, clock: FakeClock) -> None:
        gate = _gate(clock, ignore_webhooks=True)
        result = await gate.evaluate(make_event("!kick", author_is_bot=True), _command())
        assert result.allowed is True


class TestOrdering:
    @pytest.mark.anyio
    async def test_origin_filter_runs_before_custom_check(
        self, clock: FakeClock
    ) -> None:
        calls: list[str] = []

        def check(event, command) -> bool:
            calls.append(command.name)
            return True

        gate = _gate(clock, ignore_bots=True, custom_check=check)
        await gate.evaluate(make_event("!kick", author_is_bot=True), _command())
        assert calls == []

    @pytest.mark.anyio
    async def test_blacklist_runs_before_custom_check(self, clock: FakeClock) -> None:
        calls: list[str] = []

        def check(event, command) -> bool:
            calls.append(command.name)
            return True

        gate = _gate(clock, blacklist=["1"], custom_check=check)
        result = await gate.evaluate(make_event("!kick", author_id=1), _command())
        assert result == Denied("blacklisted")
        assert calls == []

    @pytest.mark.anyio
    async def test_async_custom_check(self, clock: FakeClock) -> None:
        async def check(event, command) -> bool:
            return event.author_id == 2

        gate = _gate(clock, custom_check=check)
        assert (await gate.evaluate(make_event("!k", author_id=1), _command())) == Denied(
            "check"
        )
        assert (await gate.evaluate(make_event("!k", author_id=2), _command())).allowed

    @pytest.mark.anyio
    async def test_blacklisted_attempt_leaves_cooldown_untouched(
        self, clock: FakeClock
    ) -> None:
        gate = _gate(clock, blacklist=["1"])
        command = _command(cooldown=10, cooldown_target=CooldownTarget.CHANNEL)

        await gate.evaluate(make_event("!kick", author_id=1), command)
        result = await gate.evaluate(make_event("!kick", author_id=2), command)

        assert result.allowed is True


class TestCooldownTargets:
    @pytest.mark.anyio
    async def test_user_target_does_not_block_other_user_in_channel(
        self, clock: FakeClock
    ) -> None:
        gate = _gate(clock)
        command = _command(cooldown=10, cooldown_target=CooldownTarget.USER)

        assert (await gate.evaluate(make_event("!kick", author_id=1), command)).allowed
        assert (await gate.evaluate(make_event("!kick", author_id=2), command)).allowed

    @pytest.mark.anyio
    async def test_channel_target_blocks_other_user_in_channel(
        self, clock: FakeClock
    ) -> None:
        gate = _gate(clock)
        command = _command(cooldown=10, cooldown_target=CooldownTarget.CHANNEL)

        assert (await gate.evaluate(make_event("!kick", author_id=1), command)).allowed
        result = await gate.evaluate(make_event("!kick", author_id=2), command)

        assert isinstance(result, Denied)
        assert result.reason == "cooldown"
        assert result.cooldown is not None
        assert result.cooldown.target is CooldownTarget.CHANNEL
        assert result.cooldown.remaining == pytest.approx(10)

    @pytest.mark.anyio
    async def test_none_target_never_cools_down(self, clock: FakeClock) -> None:
        gate = _gate(clock)
        command = _command(cooldown=10, cooldown_target=CooldownTarget.NONE)

        for _ in range(3):
            assert (await gate.evaluate(make_event("!kick"), command)).allowed

    @pytest.mark.anyio
    async def test_command_without_duration_never_cools_down(
        self, clock: FakeClock
    ) -> None:
        gate = _gate(clock, cooldown_target="global")
        command = _command()

        for _ in range(3):
            assert (await gate.evaluate(make_event("!kick"), command)).allowed

    def test_command_target_overrides_default(self, clock: FakeClock) -> None:
        gate = _gate(clock, cooldown_target="guild")
        assert gate.cooldown_target_for(_command()) is CooldownTarget.GUILD
        assert (
            gate.cooldown_target_for(_command(cooldown_target=CooldownTarget.USER))
            is CooldownTarget.USER
        )
