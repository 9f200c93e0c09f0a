from __future__ import annotations

import pytest

from cmdgate.context import build_context, split_arguments
from cmdgate.messages import MessageFactories
from cmdgate.model import CommandDefinition
from tests.factories import ReplyRecorder, make_dispatcher, make_event


async def _noop(ctx) -> None:
    return None


def _context(raw: str, *, reply=None, dispatcher=None, **command_kwargs):
    dispatcher = dispatcher or make_dispatcher()
    command = CommandDefinition(name="ban", handler=_noop, **command_kwargs)
    return build_context(
        prefix="!",
        event=make_event(f"!ban {raw}", reply=reply),
        arguments_raw=raw,
        command=command,
        dispatcher=dispatcher,
    )


def test_empty_raw_string_has_no_tokens() -> None:
    assert split_arguments("") == ()
    assert _context("").arguments == ()


@pytest.mark.parametrize("raw", ["a", "a b", "a\tb  c", " lead trail ", "x\n\ny"])
def test_split_is_stable_under_rejoin(raw: str) -> None:
    tokens = split_arguments(raw)
    assert split_arguments(" ".join(tokens)) == tokens
    assert "" not in tokens


def test_context_exposes_event_fields() -> None:
    dispatcher = make_dispatcher(blacklist=[3])
    ctx = _context("x y", dispatcher=dispatcher)

    assert ctx.arguments == ("x", "y")
    assert ctx.arguments_raw == "x y"
    assert ctx.author_id == 1
    assert ctx.guild_id is not None
    assert ctx.is_direct is False
    assert ctx.registry is dispatcher.commands
    assert ctx.blacklist is dispatcher.blacklist
    assert ctx.blacklist_ids == frozenset({"3"})
    assert ctx.waiter is dispatcher.waiter


@pytest.mark.anyio
async def test_message_helpers_reply(replies: ReplyRecorder) -> None:
    ctx = _context("", reply=replies, usage="<user> [reason]", description="Ban a user")

    await ctx.info("done")
    await ctx.warning("careful")
    await ctx.error("nope")
    await ctx.send_usage()

    assert replies.texts[0] == "done"
    assert replies.texts[1].endswith("careful")
    assert replies.texts[2].endswith("nope")
    assert "usage: `!ban <user> [reason]`" in replies.texts[3]
    assert "Ban a user" in replies.texts[3]


@pytest.mark.anyio
async def test_custom_factories(replies: ReplyRecorder) -> None:
    factories = MessageFactories(info=lambda ctx, text: f"[{ctx.command.name}] {text}")
    dispatcher = make_dispatcher()
    dispatcher.messages = factories
    ctx = _context("", reply=replies, dispatcher=dispatcher)

    await ctx.info("hello")

    assert replies.texts == ["[ban] hello"]


@pytest.mark.anyio
async def test_reply_without_channel_raises() -> None:
    ctx = _context("")
    with pytest.raises(RuntimeError, match="no reply channel"):
        await ctx.reply("hello")


def test_context_is_immutable() -> None:
    ctx = _context("a")
    with pytest.raises(AttributeError):
        ctx.arguments_raw = "b"  # type: ignore[misc]
