from __future__ import annotations

import asyncio
from types import SimpleNamespace

from discord import app_commands

from keeper.bot import BLACKLISTED, DM_REJECTION, GENERIC_FAILURE, KeeperBot, KeeperTree, report_failure
from keeper.config import Settings

from conftest import make_interaction

OWNER_ID = 99
BLOCKED_GUILD = SimpleNamespace(id=123456789012345678)


def _tree(stores) -> SimpleNamespace:
    return SimpleNamespace(client=SimpleNamespace(owner_id=OWNER_ID, stores=stores))


def test_report_failure_picks_initial_response_or_followup() -> None:
    fresh = make_interaction()
    answered = make_interaction(done=True)

    asyncio.run(report_failure(fresh, "nope"))
    asyncio.run(report_failure(answered))

    assert fresh.response.send_message.last == (("nope",), {"ephemeral": True})
    assert not fresh.followup.send.called
    assert answered.followup.send.last == ((GENERIC_FAILURE,), {"ephemeral": True})


def test_blacklisted_guild_is_refused(stores) -> None:
    asyncio.run(stores.blacklist.add(BLOCKED_GUILD.id))
    interaction = make_interaction(user_id=1, guild=BLOCKED_GUILD)

    allowed = asyncio.run(KeeperTree.interaction_check(_tree(stores), interaction))

    assert allowed is False
    assert interaction.response.send_message.last == ((BLACKLISTED,), {"ephemeral": True})


def test_owner_bypasses_blacklist(stores) -> None:
    asyncio.run(stores.blacklist.add(BLOCKED_GUILD.id))
    owner = make_interaction(user_id=OWNER_ID, guild=BLOCKED_GUILD)
    elsewhere = make_interaction(user_id=1, guild=SimpleNamespace(id=1))

    for interaction in (owner, elsewhere):
        assert asyncio.run(KeeperTree.interaction_check(_tree(stores), interaction)) is True
        assert not interaction.response.send_message.called


def test_direct_messages_are_refused(stores) -> None:
    for user_id in (1, OWNER_ID):
        interaction = make_interaction(user_id=user_id, guild=None)

        assert asyncio.run(KeeperTree.interaction_check(_tree(stores), interaction)) is False
        assert interaction.response.send_message.last == ((DM_REJECTION,), {"ephemeral": True})


def test_unknown_command_is_only_logged(stores) -> None:
    interaction = make_interaction()
    error = app_commands.CommandNotFound("ghost", [])

    asyncio.run(KeeperTree.on_error(_tree(stores), interaction, error))

    assert not interaction.response.send_message.called
    assert not interaction.followup.send.called


def test_direct_message_rejection(stores) -> None:
    interaction = make_interaction()

    asyncio.run(KeeperTree.on_error(_tree(stores), interaction, app_commands.NoPrivateMessage()))

    assert interaction.response.send_message.last == ((DM_REJECTION,), {"ephemeral": True})


def test_check_failure_is_not_answered_twice(stores) -> None:
    answered = make_interaction(done=True)
    fresh = make_interaction()

    asyncio.run(KeeperTree.on_error(_tree(stores), answered, app_commands.CheckFailure("denied")))
    asyncio.run(KeeperTree.on_error(_tree(stores), fresh, app_commands.CheckFailure("denied")))

    assert not answered.followup.send.called
    assert fresh.response.send_message.last == (("denied",), {"ephemeral": True})


def test_unexpected_error_gets_generic_reply(stores) -> None:
    interaction = make_interaction(done=True)

    asyncio.run(KeeperTree.on_error(_tree(stores), interaction, app_commands.AppCommandError("boom")))

    assert interaction.followup.send.last == ((GENERIC_FAILURE,), {"ephemeral": True})


def test_every_cog_loads(tmp_path) -> None:
    settings = Settings(discord_token="x", owner_id=OWNER_ID, data_dir=tmp_path / "data", web_enabled=False)
    bot = KeeperBot(settings)

    asyncio.run(bot._load_cogs())

    commands = {command.name: command for command in bot.tree.get_commands()}
    assert {
        "admin", "afk", "animal", "autorole", "blacklist", "bot", "channel", "emoji", "help",
        "list", "owner", "ping", "random", "role", "search", "server", "user", "welcome", "whois",
    } <= set(commands)
    assert commands["owner"].get_command("bot-leave") is not None
