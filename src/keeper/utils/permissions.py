"""Permission and role-hierarchy guards used by the moderation cogs.

Each ``check_*`` function is pure: it inspects the objects it is given and
returns ``None`` when the guard passes, or the denial message to show the
invoking user. Combine them with :func:`first_denial`, which keeps the
order the guards are listed in.
"""

from __future__ import annotations

from typing import Any, Optional


def permission_label(flag: str) -> str:
    """``manage_roles`` -> ``Manage Roles``."""

    return flag.replace("_", " ").title()


def has_permission(member: Any, flag: str) -> bool:
    return bool(getattr(member.guild_permissions, flag, False))


def first_denial(*results: Optional[str]) -> Optional[str]:
    return next((r for r in results if r), None)


# ---------------------------------------------------------------------------
# Permission flags
# ---------------------------------------------------------------------------


def check_actor_permission(actor: Any, flag: str, command: str) -> Optional[str]:
    if has_permission(actor, flag):
        return None
    return (
        f"You do not have permission to use the `{command}` command. "
        f"(Requires: {permission_label(flag)})"
    )


def check_bot_permission(bot_member: Any, flag: str) -> Optional[str]:
    if has_permission(bot_member, flag):
        return None
    return f'I do not have the "{permission_label(flag)}" permission.'


# ---------------------------------------------------------------------------
# Role hierarchy
# ---------------------------------------------------------------------------


def _is_owner(member: Any) -> bool:
    return member.id == member.guild.owner_id


def check_actor_above_role(actor: Any, role: Any, action: str) -> Optional[str]:
    if _is_owner(actor) or actor.top_role.position > role.position:
        return None
    return f"You cannot {action} the role `{role.name}` because your highest role is not above it."


def check_bot_above_role(bot_member: Any, role: Any, action: str) -> Optional[str]:
    if bot_member.top_role.position > role.position:
        return None
    return f"I cannot {action} the role `{role.name}` because my highest role is not above it."


def check_actor_above_member(actor: Any, target: Any, action: str) -> Optional[str]:
    if _is_owner(actor) or actor.top_role.position > target.top_role.position:
        return None
    return (
        f"You cannot {action} {target} because their highest role is "
        "higher than or equal to your highest role."
    )


def check_bot_above_member(bot_member: Any, target: Any, action: str) -> Optional[str]:
    if bot_member.top_role.position > target.top_role.position:
        return None
    return (
        f"I cannot {action} {target} because their highest role is "
        "higher than or equal to my highest role."
    )


# ---------------------------------------------------------------------------
# Protected targets
# ---------------------------------------------------------------------------


def check_manageable_role(role: Any, action: str) -> Optional[str]:
    if role.is_default():
        return f"You cannot {action} the `@everyone` role."
    if role.managed:
        return f"I cannot {action} the role `{role.name}` as it is managed by an integration."
    return None


def check_not_bot_top_role(bot_member: Any, role: Any) -> Optional[str]:
    if role.id == bot_member.top_role.id:
        return "I cannot delete my own highest role."
    return None


def check_protected_member(actor: Any, target: Any, bot_member: Any, action: str) -> Optional[str]:
    if target.id == actor.id:
        return f"You cannot {action} yourself."
    if target.id == bot_member.id:
        return f"I cannot {action} myself."
    if _is_owner(target):
        return f"You cannot {action} the server owner."
    return None


def can_manage_member(actor: Any, bot_member: Any, target: Any) -> bool:
    """Bulk-operation filter: both actor and bot must outrank *target*."""

    if not _is_owner(target) and bot_member.top_role.position <= target.top_role.position:
        return False
    if not _is_owner(actor) and actor.top_role.position <= target.top_role.position:
        return False
    return True
