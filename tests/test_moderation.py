"""Handler-level checks for the moderation cogs: denials must leave Discord untouched."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import discord

from keeper.cogs.admin import NOT_IN_GUILD, Admin
from keeper.cogs.channels import Channels
from keeper.cogs.owner import INVALID_ID, NOT_OWNER, Blacklist, Owner
from keeper.cogs.roles import Roles
from keeper.cogs.server import Server

from conftest import Recorder, make_interaction

GUILD_OWNER = 999
BOT_OWNER = 42


class Flags(SimpleNamespace):
    """Permission flags; anything not granted reads as False."""

    def __getattr__(self, name: str) -> bool:
        return False


class StubMember:
    def __init__(self, uid: int, name: str, position: int, guild, **flags: bool) -> None:
        self.id = uid
        self.name = name
        self.nick = None
        self.guild = guild
        self.guild_permissions = Flags(**flags)
        self.top_role = SimpleNamespace(id=uid * 10, position=position)
        self.timed_out = False
        self.ban = Recorder()
        self.kick = Recorder()
        self.timeout = Recorder()
        self.edit = Recorder()

    def is_timed_out(self) -> bool:
        return self.timed_out

    def __str__(self) -> str:
        return self.name


class StubRole:
    def __init__(self, rid: int, name: str, position: int) -> None:
        self.id = rid
        self.name = name
        self.position = position
        self.managed = False
        self.colour = discord.Colour(0)
        self.delete = Recorder()
        self.edit = Recorder()

    def is_default(self) -> bool:
        return False


def _not_found(*args, **kwargs):
    raise discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Member")


def _scene(actor_position: int = 5, **actor_flags: bool):
    """A guild with the bot at rank 10 holding every permission, and an actor."""

    guild = SimpleNamespace(id=500, owner_id=GUILD_OWNER, members={}, chunked=True)
    guild.get_member = guild.members.get
    guild.fetch_member = _not_found
    guild.me = StubMember(
        1, "Keeper", 10, guild,
        ban_members=True, kick_members=True, moderate_members=True, manage_roles=True, manage_nicknames=True,
    )
    actor = StubMember(2, "mod", actor_position, guild, **actor_flags)
    interaction = make_interaction(user_id=actor.id, guild=guild)
    interaction.user = actor
    interaction.channel_id = 7000
    return guild, actor, interaction


def _add_member(guild, uid: int, name: str, position: int) -> StubMember:
    member = StubMember(uid, name, position, guild)
    guild.members[uid] = member
    return member


def _reply(interaction) -> str:
    return interaction.edit_original_response.last[1]["content"]


def _bot(stores=None) -> SimpleNamespace:
    return SimpleNamespace(owner_id=BOT_OWNER, stores=stores, get_guild=lambda gid: None, fetch_guild=Recorder())


# ---------------------------------------------------------------------------
# /admin
# ---------------------------------------------------------------------------


def test_ban_rejected_when_target_outranks_actor() -> None:
    guild, actor, interaction = _scene(actor_position=3, ban_members=True)
    target = _add_member(guild, 3, "victim", 5)
    cog = Admin(_bot())

    asyncio.run(cog.ban.callback(cog, interaction, target, None))

    assert not target.ban.called
    assert _reply(interaction) == (
        "You cannot ban victim because their highest role is higher than or equal to your highest role."
    )


def test_ban_requires_actor_permission_first() -> None:
    guild, actor, interaction = _scene(actor_position=9)
    target = _add_member(guild, 3, "victim", 1)
    cog = Admin(_bot())

    asyncio.run(cog.ban.callback(cog, interaction, target, None))

    assert not target.ban.called
    assert _reply(interaction) == "You do not have permission to use the `/admin ban` command. (Requires: Ban Members)"


def test_ban_succeeds_below_both_ranks() -> None:
    guild, actor, interaction = _scene(actor_position=5, ban_members=True)
    target = _add_member(guild, 3, "victim", 2)
    cog = Admin(_bot())

    asyncio.run(cog.ban.callback(cog, interaction, target, "spam"))

    assert target.ban.last == ((), {"reason": "spam"})
    assert _reply(interaction) == "Successfully banned victim. Reason: spam"


def test_user_outside_guild_is_reported() -> None:
    guild, actor, interaction = _scene(actor_position=5, kick_members=True)
    stranger = SimpleNamespace(id=12345, name="stranger")
    cog = Admin(_bot())

    asyncio.run(cog.kick.callback(cog, interaction, stranger, None))

    assert _reply(interaction) == NOT_IN_GUILD


def test_cannot_ban_guild_owner() -> None:
    guild, actor, interaction = _scene(actor_position=5, ban_members=True)
    owner = _add_member(guild, GUILD_OWNER, "boss", 1)
    cog = Admin(_bot())

    asyncio.run(cog.ban.callback(cog, interaction, owner, None))

    assert not owner.ban.called
    assert _reply(interaction) == "You cannot ban the server owner."


def test_mute_skips_already_muted_member() -> None:
    guild, actor, interaction = _scene(actor_position=5, moderate_members=True)
    target = _add_member(guild, 3, "loud", 2)
    target.timed_out = True
    cog = Admin(_bot())

    asyncio.run(cog.mute.callback(cog, interaction, target, 30, None))

    assert not target.timeout.called
    assert _reply(interaction) == "loud is already muted."


# ---------------------------------------------------------------------------
# /role
# ---------------------------------------------------------------------------


def test_role_delete_rejected_for_higher_role() -> None:
    guild, actor, interaction = _scene(actor_position=3, manage_roles=True)
    role = StubRole(77, "Mods", 5)
    cog = Roles(_bot())

    asyncio.run(cog.delete.callback(cog, interaction, role))

    assert not role.delete.called
    assert _reply(interaction) == "You cannot delete the role `Mods` because your highest role is not above it."


def test_role_delete_refuses_bot_top_role() -> None:
    guild, actor, interaction = _scene(actor_position=20, manage_roles=True)
    role = StubRole(guild.me.top_role.id, "Keeper", 9)
    cog = Roles(_bot())

    asyncio.run(cog.delete.callback(cog, interaction, role))

    assert not role.delete.called
    assert _reply(interaction) == "I cannot delete my own highest role."


def test_role_color_validates_before_guards() -> None:
    guild, actor, interaction = _scene(actor_position=3)
    role = StubRole(77, "Mods", 5)
    cog = Roles(_bot())

    asyncio.run(cog.color.callback(cog, interaction, role, "red"))

    assert not role.edit.called
    assert _reply(interaction) == "Invalid HEX color format. Please use a format like `#FF0000` or `#F00`."


def test_role_color_rejected_for_higher_role() -> None:
    guild, actor, interaction = _scene(actor_position=3, manage_roles=True)
    role = StubRole(77, "Mods", 5)
    cog = Roles(_bot())

    asyncio.run(cog.color.callback(cog, interaction, role, "#FF0000"))

    assert not role.edit.called
    assert "your highest role is not above it" in _reply(interaction)


def test_role_color_applies_parsed_colour() -> None:
    guild, actor, interaction = _scene(actor_position=8, manage_roles=True)
    role = StubRole(77, "Mods", 5)
    cog = Roles(_bot())

    asyncio.run(cog.color.callback(cog, interaction, role, "#F00"))

    assert role.edit.last[1]["colour"] == discord.Colour(0xFF0000)
    assert _reply(interaction) == "Successfully changed color of role `Mods` from `#000000` to `#F00`."


# ---------------------------------------------------------------------------
# /channel
# ---------------------------------------------------------------------------


def test_channel_commands_require_manage_channels() -> None:
    guild, actor, interaction = _scene()
    cog = Channels(_bot())

    assert asyncio.run(cog.interaction_check(interaction)) is False
    assert interaction.response.send_message.last[0] == (
        "You do not have permission to use this command (Manage Channels required).",
    )


def test_lockall_leaves_command_channel_alone() -> None:
    guild, actor, interaction = _scene(manage_channels=True)
    channels = [SimpleNamespace(id=cid, name=f"c{cid}", set_permissions=Recorder()) for cid in (7000, 7001, 7002)]
    guild.text_channels = channels
    guild.default_role = SimpleNamespace(id=500)
    cog = Channels(_bot())

    asyncio.run(cog.lock_all.callback(cog, interaction))

    assert not channels[0].set_permissions.called
    assert channels[1].set_permissions.last[1]["send_messages"] is False
    assert _reply(interaction).startswith("Successfully locked 2 text channels.")


def test_channel_delete_refuses_current_channel() -> None:
    guild, actor, interaction = _scene(manage_channels=True)
    current = SimpleNamespace(id=7000, name="general", guild=guild, delete=Recorder())
    cog = Channels(_bot())

    asyncio.run(cog.delete.callback(cog, interaction, current))

    assert not current.delete.called
    assert _reply(interaction) == "I cannot delete the channel where this command was used!"


# ---------------------------------------------------------------------------
# /server, /owner, /blacklist
# ---------------------------------------------------------------------------


def test_banlist_requires_ban_members() -> None:
    guild, actor, interaction = _scene()
    cog = Server(_bot())

    asyncio.run(cog.banlist.callback(cog, interaction))

    assert _reply(interaction) == "You do not have permission to view the ban list. (Requires: `Ban Members`)"


def test_owner_commands_refuse_everyone_else(stores) -> None:
    interaction = make_interaction(user_id=1)

    for cog in (Owner(_bot(stores)), Blacklist(_bot(stores))):
        assert asyncio.run(cog.interaction_check(interaction)) is False
    assert interaction.response.send_message.last == ((NOT_OWNER,), {"ephemeral": True})
    assert asyncio.run(Blacklist(_bot(stores)).interaction_check(make_interaction(user_id=BOT_OWNER))) is True


def test_blacklist_server_validates_and_stores(stores) -> None:
    cog = Blacklist(_bot(stores))
    invalid = make_interaction(user_id=BOT_OWNER)
    valid = make_interaction(user_id=BOT_OWNER)
    again = make_interaction(user_id=BOT_OWNER)

    asyncio.run(cog.add_server.callback(cog, invalid, "12345"))
    asyncio.run(cog.add_server.callback(cog, valid, "123456789012345678"))
    asyncio.run(cog.add_server.callback(cog, again, "123456789012345678"))

    assert _reply(invalid) == INVALID_ID
    assert _reply(valid).startswith("Successfully blacklisted server: **123456789012345678**")
    assert _reply(again) == "Server `123456789012345678` is already blacklisted."
    assert stores.blacklist.all() == ["123456789012345678"]


def test_blacklist_remove(stores) -> None:
    asyncio.run(stores.blacklist.add("123456789012345678"))
    cog = Blacklist(_bot(stores))
    removed = make_interaction(user_id=BOT_OWNER)
    missing = make_interaction(user_id=BOT_OWNER)

    asyncio.run(cog.remove_server.callback(cog, removed, "123456789012345678"))
    asyncio.run(cog.remove_server.callback(cog, missing, "123456789012345678"))

    assert stores.blacklist.all() == []
    assert _reply(missing) == "Server `123456789012345678` is not currently blacklisted."
