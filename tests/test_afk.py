from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from keeper.cogs.afk import Afk

from conftest import Recorder, StubUser


def _message(author, *, mentions=(), guild=SimpleNamespace(id=1)) -> SimpleNamespace:
    return SimpleNamespace(
        author=author,
        guild=guild,
        mentions=list(mentions),
        channel=SimpleNamespace(send=Recorder()),
        reply=Recorder(),
    )


def _ago(**kwargs) -> datetime:
    return datetime.now(timezone.utc) - timedelta(**kwargs)


def test_returning_user_is_cleared_and_welcomed(stores) -> None:
    asyncio.run(stores.afk.set(10, "lunch", now=_ago(hours=2, minutes=5, seconds=30)))
    cog = Afk(SimpleNamespace(stores=stores))
    message = _message(StubUser(10, "alice"))

    asyncio.run(cog.on_message(message))

    assert message.channel.send.last[0] == ("👋 Welcome back, <@10>! You were AFK for 2 hours, 5 minutes.",)
    assert stores.afk.get(10) is None


def test_mentioning_afk_user_replies_and_keeps_entry(stores) -> None:
    asyncio.run(stores.afk.set(20, "lunch", now=_ago(minutes=30, seconds=10)))
    cog = Afk(SimpleNamespace(stores=stores))
    message = _message(StubUser(10, "alice"), mentions=[StubUser(20, "bob"), StubUser(30, "carol")])

    asyncio.run(cog.on_message(message))

    assert message.reply.calls == [(("`bob` is currently AFK: `lunch` (AFK for 30 minutes)",), {})]
    assert not message.channel.send.called
    assert stores.afk.get(20) is not None


def test_mentioned_bots_are_skipped(stores) -> None:
    asyncio.run(stores.afk.set(20, "beep"))
    cog = Afk(SimpleNamespace(stores=stores))
    message = _message(StubUser(10, "alice"), mentions=[StubUser(20, "robot", bot=True)])

    asyncio.run(cog.on_message(message))

    assert not message.reply.called


def test_bots_and_direct_messages_are_ignored(stores) -> None:
    asyncio.run(stores.afk.set(10, "away"))
    cog = Afk(SimpleNamespace(stores=stores))

    asyncio.run(cog.on_message(_message(StubUser(10, "alice", bot=True))))
    asyncio.run(cog.on_message(_message(StubUser(10, "alice"), guild=None)))

    assert stores.afk.get(10) is not None


def test_timestamp_without_offset_is_read_as_utc(stores) -> None:
    stores.data_dir.mkdir(parents=True, exist_ok=True)
    (stores.data_dir / "afk.json").write_text(
        json.dumps({"users": [
            {"id": "10", "reason": "x", "timestamp": "2026-01-01T00:00:00"},
            {"id": "20", "reason": "nap", "timestamp": "2026-01-01T00:00:00"},
        ]}),
        encoding="utf-8",
    )
    assert stores.afk.get(20).timestamp.tzinfo is not None

    cog = Afk(SimpleNamespace(stores=stores))
    message = _message(StubUser(10, "alice"), mentions=[StubUser(20, "bob")])

    asyncio.run(cog.on_message(message))

    assert message.channel.send.last[0][0].startswith("👋 Welcome back, <@10>! You were AFK for ")
    assert message.reply.last[0][0].startswith("`bob` is currently AFK: `nap` (AFK for ")
    assert stores.afk.get(10) is None
