from __future__ import annotations

import asyncio
from types import SimpleNamespace

from keeper.cogs.autorole import MISSING_MANAGE_ROLES, Autorole

from conftest import Recorder, make_interaction


def _role(rid: int, position: int, name: str = "Role") -> SimpleNamespace:
    return SimpleNamespace(id=rid, name=name, position=position)


def _guild(roles, *, manage_roles: bool = True, top: int = 10) -> SimpleNamespace:
    by_id = {r.id: r for r in roles}
    return SimpleNamespace(
        id=500,
        name="Guild",
        get_role=by_id.get,
        me=SimpleNamespace(
            guild_permissions=SimpleNamespace(manage_roles=manage_roles),
            top_role=SimpleNamespace(position=top),
        ),
    )


def _member(guild, *, bot: bool = False) -> SimpleNamespace:
    return SimpleNamespace(id=77, bot=bot, guild=guild, add_roles=Recorder())


def _cog(stores) -> Autorole:
    return Autorole(SimpleNamespace(stores=stores, user=SimpleNamespace(id=1)))


def test_join_assigns_existing_roles_below_bot(stores) -> None:
    low, high = _role(1, 3), _role(2, 12)
    guild = _guild([low, high])
    for rid in (1, 2, 3):
        asyncio.run(stores.autorole.add(500, "humans", rid))
    member = _member(guild)

    asyncio.run(_cog(stores).on_member_join(member))

    args, kwargs = member.add_roles.last
    assert args == (low,)
    assert len(member.add_roles.calls) == 1
    assert kwargs["reason"] == "Auto-role assignment for new member."


def test_join_uses_list_matching_member_kind(stores) -> None:
    human_role, bot_role = _role(1, 3), _role(2, 4)
    guild = _guild([human_role, bot_role])
    asyncio.run(stores.autorole.add(500, "humans", 1))
    asyncio.run(stores.autorole.add(500, "bots", 2))
    member = _member(guild, bot=True)

    asyncio.run(_cog(stores).on_member_join(member))

    assert member.add_roles.last[0] == (bot_role,)


def test_join_without_manage_roles_does_nothing(stores) -> None:
    guild = _guild([_role(1, 3)], manage_roles=False)
    asyncio.run(stores.autorole.add(500, "humans", 1))
    member = _member(guild)

    asyncio.run(_cog(stores).on_member_join(member))

    assert not member.add_roles.called


def test_add_rejects_duplicate_role(stores) -> None:
    guild = _guild([])
    role = _role(1, 3, name="Members")
    asyncio.run(stores.autorole.add(500, "humans", 1))
    interaction = make_interaction(guild=guild)

    asyncio.run(_cog(stores)._add(interaction, "humans", role))

    assert interaction.edit_original_response.last[1] == {"content": "`Members` is already set for new humans."}


def test_add_rejects_role_above_bot(stores) -> None:
    interaction = make_interaction(guild=_guild([], top=3))

    asyncio.run(_cog(stores)._add(interaction, "bots", _role(9, 3, name="Admin")))

    content = interaction.edit_original_response.last[1]["content"]
    assert content.startswith("❌ I cannot assign the role `Admin`")
    assert stores.autorole.roles_for(500, "bots") == []


def test_commands_require_manage_roles(stores) -> None:
    interaction = make_interaction(guild=_guild([], manage_roles=False))

    asyncio.run(_cog(stores)._list(interaction, "humans"))

    assert interaction.edit_original_response.last[1] == {"content": MISSING_MANAGE_ROLES}
