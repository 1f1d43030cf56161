from __future__ import annotations

from types import SimpleNamespace

from keeper.utils import permissions as perms

OWNER_ID = 99


def _guild() -> SimpleNamespace:
    return SimpleNamespace(owner_id=OWNER_ID)


def _member(uid: int, position: int, **flags: bool) -> SimpleNamespace:
    return SimpleNamespace(
        id=uid,
        guild=_guild(),
        guild_permissions=SimpleNamespace(**flags),
        top_role=SimpleNamespace(id=uid * 10, position=position),
    )


def _role(rid: int, position: int, *, name: str = "Role", managed: bool = False, default: bool = False):
    return SimpleNamespace(id=rid, name=name, position=position, managed=managed, is_default=lambda: default)


def test_permission_label() -> None:
    assert perms.permission_label("manage_roles") == "Manage Roles"
    assert perms.permission_label("ban_members") == "Ban Members"


def test_actor_permission_denial_names_command_and_flag() -> None:
    actor = _member(1, 5, manage_roles=False)

    message = perms.check_actor_permission(actor, "manage_roles", "/role add")

    assert message == "You do not have permission to use the `/role add` command. (Requires: Manage Roles)"
    assert perms.check_actor_permission(_member(1, 5, manage_roles=True), "manage_roles", "/role add") is None


def test_bot_permission_denial() -> None:
    me = _member(2, 5, kick_members=False)

    assert perms.check_bot_permission(me, "kick_members") == 'I do not have the "Kick Members" permission.'
    assert perms.check_bot_permission(me, "unknown_flag") is not None


def test_actor_below_or_equal_role_is_rejected() -> None:
    role = _role(7, 5, name="Mods")

    assert perms.check_actor_above_role(_member(1, 5), role, "add") is not None
    assert perms.check_actor_above_role(_member(1, 4), role, "add") is not None
    assert perms.check_actor_above_role(_member(1, 6), role, "add") is None


def test_guild_owner_bypasses_actor_hierarchy() -> None:
    owner = _member(OWNER_ID, 0)

    assert perms.check_actor_above_role(owner, _role(7, 50), "delete") is None
    assert perms.check_actor_above_member(owner, _member(3, 50), "ban") is None


def test_bot_hierarchy_has_no_owner_exemption() -> None:
    me = _member(2, 3)

    assert "my highest role" in perms.check_bot_above_role(me, _role(7, 3), "add")
    assert "my highest role" in perms.check_bot_above_member(me, _member(3, 3), "kick")
    assert perms.check_bot_above_member(me, _member(3, 2), "kick") is None


def test_manageable_role_rejects_everyone_and_managed() -> None:
    assert "`@everyone`" in perms.check_manageable_role(_role(1, 0, default=True), "delete")
    assert "managed by an integration" in perms.check_manageable_role(_role(2, 1, managed=True), "delete")
    assert perms.check_manageable_role(_role(3, 1), "delete") is None


def test_bot_cannot_delete_its_own_top_role() -> None:
    me = _member(2, 8)

    assert perms.check_not_bot_top_role(me, _role(20, 8)) == "I cannot delete my own highest role."
    assert perms.check_not_bot_top_role(me, _role(21, 7)) is None


def test_protected_members() -> None:
    actor, me = _member(1, 9), _member(2, 10)

    assert perms.check_protected_member(actor, actor, me, "ban") == "You cannot ban yourself."
    assert perms.check_protected_member(actor, me, me, "ban") == "I cannot ban myself."
    assert perms.check_protected_member(actor, _member(OWNER_ID, 1), me, "ban") == "You cannot ban the server owner."
    assert perms.check_protected_member(actor, _member(3, 1), me, "ban") is None


def test_first_denial_keeps_order() -> None:
    assert perms.first_denial(None, "first", "second") == "first"
    assert perms.first_denial(None, None) is None


def test_can_manage_member_for_bulk_operations() -> None:
    actor, me = _member(1, 5), _member(2, 8)

    assert perms.can_manage_member(actor, me, _member(3, 4)) is True
    assert perms.can_manage_member(actor, me, _member(3, 5)) is False
    assert perms.can_manage_member(actor, me, _member(3, 9)) is False
    assert perms.can_manage_member(_member(OWNER_ID, 0), me, _member(3, 6)) is True
