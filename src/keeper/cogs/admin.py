from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils import permissions as perms

_log = logging.getLogger(__name__)

NO_REASON = "No reason provided."
NOT_IN_GUILD = "That user is not in this server or could not be found."
FAILED = "Failed to {action} {target}. Make sure I have the necessary permissions and role hierarchy."


@app_commands.guild_only()
class Admin(commands.GroupCog, group_name="admin", group_description="Performs administrative actions."):
    """Moderation actions guarded by the permission and hierarchy checks."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _resolve_member(interaction: discord.Interaction, user: discord.abc.User) -> Optional[discord.Member]:
        """The invoking guild's member for *user*, or None when they are not in it."""

        member = interaction.guild.get_member(user.id)
        if member is not None:
            return member
        try:
            return await interaction.guild.fetch_member(user.id)
        except discord.NotFound:
            return None

    @staticmethod
    def _member_guards(
        interaction: discord.Interaction,
        target: Optional[discord.Member],
        flag: str,
        command: str,
        action: str,
    ) -> Optional[str]:
        actor = interaction.user
        me = interaction.guild.me
        denial = perms.first_denial(
            perms.check_actor_permission(actor, flag, f"/admin {command}"),
            perms.check_bot_permission(me, flag),
        )
        if denial:
            return denial
        if target is None:
            return NOT_IN_GUILD
        return perms.first_denial(
            perms.check_actor_above_member(actor, target, action),
            perms.check_bot_above_member(me, target, action),
            perms.check_protected_member(actor, target, me, action),
        )

    async def _attempt(self, interaction: discord.Interaction, action: str, target, coro, success: str) -> None:
        try:
            await coro
        except discord.Forbidden:
            _log.warning("Forbidden to %s %s in guild %s", action, target, interaction.guild_id)
            await interaction.edit_original_response(content=FAILED.format(action=action, target=target))
        except discord.HTTPException as exc:
            _log.error("Failed to %s %s: %s", action, target, exc)
            await interaction.edit_original_response(content=FAILED.format(action=action, target=target))
        else:
            await interaction.edit_original_response(content=success)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @app_commands.command(name="ban", description="Bans a user from the server.")
    @app_commands.describe(target="The user to ban.", reason="Reason for the ban.")
    async def ban(self, interaction: discord.Interaction, target: discord.User, reason: Optional[str] = None):
        await interaction.response.defer(ephemeral=True, thinking=True)
        reason = reason or NO_REASON
        target = await self._resolve_member(interaction, target)

        denial = self._member_guards(interaction, target, "ban_members", "ban", "ban")
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        await self._attempt(
            interaction, "ban", target, target.ban(reason=reason), f"Successfully banned {target}. Reason: {reason}"
        )

    @app_commands.command(name="kick", description="Kicks a user from the server.")
    @app_commands.describe(target="The user to kick.", reason="Reason for the kick.")
    async def kick(self, interaction: discord.Interaction, target: discord.User, reason: Optional[str] = None):
        await interaction.response.defer(ephemeral=True, thinking=True)
        reason = reason or NO_REASON
        target = await self._resolve_member(interaction, target)

        denial = self._member_guards(interaction, target, "kick_members", "kick", "kick")
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        await self._attempt(
            interaction, "kick", target, target.kick(reason=reason), f"Successfully kicked {target}. Reason: {reason}"
        )

    @app_commands.command(name="mute", description="Mutes (timeouts) a user in the server for a specified duration.")
    @app_commands.describe(
        target="The user to mute.",
        duration="Duration of the mute in minutes (default 60 minutes, max 28 days).",
        reason="Reason for the mute.",
    )
    async def mute(
        self,
        interaction: discord.Interaction,
        target: discord.User,
        duration: app_commands.Range[int, 1, 40320] = 60,
        reason: Optional[str] = None,
    ):
        await interaction.response.defer(ephemeral=True, thinking=True)
        reason = reason or NO_REASON
        target = await self._resolve_member(interaction, target)

        denial = self._member_guards(interaction, target, "moderate_members", "mute", "mute")
        if denial:
            await interaction.edit_original_response(content=denial)
            return
        if target.is_timed_out():
            await interaction.edit_original_response(content=f"{target} is already muted.")
            return

        await self._attempt(
            interaction,
            "mute",
            target,
            target.timeout(timedelta(minutes=duration), reason=reason),
            f"Successfully muted {target} for {duration} minutes. Reason: {reason}",
        )

    @app_commands.command(name="unmute", description="Unmutes (clears timeout) a user in the server.")
    @app_commands.describe(target="The user to unmute.", reason="Reason for the unmute.")
    async def unmute(self, interaction: discord.Interaction, target: discord.User, reason: Optional[str] = None):
        await interaction.response.defer(ephemeral=True, thinking=True)
        reason = reason or NO_REASON
        target = await self._resolve_member(interaction, target)
        if target is None:
            await interaction.edit_original_response(content=NOT_IN_GUILD)
            return

        actor, me = interaction.user, interaction.guild.me
        denial = perms.first_denial(
            perms.check_actor_permission(actor, "moderate_members", "/admin unmute"),
            perms.check_bot_permission(me, "moderate_members"),
            perms.check_actor_above_member(actor, target, "unmute"),
            perms.check_bot_above_member(me, target, "unmute"),
        )
        if denial:
            await interaction.edit_original_response(content=denial)
            return
        if not target.is_timed_out():
            await interaction.edit_original_response(content=f"{target} is not currently muted.")
            return

        await self._attempt(
            interaction,
            "unmute",
            target,
            target.timeout(None, reason=reason),
            f"Successfully unmuted {target}. Reason: {reason}",
        )

    @app_commands.command(name="unban", description="Unbans a user from the server by ID.")
    @app_commands.describe(userid="The ID of the user to unban.", reason="Reason for the unban.")
    async def unban(self, interaction: discord.Interaction, userid: str, reason: Optional[str] = None):
        await interaction.response.defer(ephemeral=True, thinking=True)
        reason = reason or NO_REASON

        denial = perms.first_denial(
            perms.check_actor_permission(interaction.user, "ban_members", "/admin unban"),
            perms.check_bot_permission(interaction.guild.me, "ban_members"),
        )
        if denial:
            await interaction.edit_original_response(content=denial)
            return
        if not userid.isdigit():
            await interaction.edit_original_response(content=f"User with ID `{userid}` is not currently banned.")
            return

        try:
            entry = await interaction.guild.fetch_ban(discord.Object(id=int(userid)))
            await interaction.guild.unban(entry.user, reason=reason)
        except discord.NotFound:
            await interaction.edit_original_response(content=f"User with ID `{userid}` is not currently banned.")
            return
        except discord.HTTPException as exc:
            _log.error("Failed to unban %s in guild %s: %s", userid, interaction.guild_id, exc)
            await interaction.edit_original_response(
                content=(
                    f"Failed to unban user with ID `{userid}`. "
                    'Make sure the ID is correct and I have the "Ban Members" permission.'
                )
            )
            return

        await interaction.edit_original_response(
            content=f"Successfully unbanned {entry.user} (ID: {userid}). Reason: {reason}"
        )

    @app_commands.command(name="setnick", description="Sets or removes a user's nickname.")
    @app_commands.describe(target="The user to change nickname for.", nickname="The new nickname (leave blank to remove).")
    async def setnick(
        self,
        interaction: discord.Interaction,
        target: discord.User,
        nickname: Optional[app_commands.Range[str, 1, 32]] = None,
    ):
        await interaction.response.defer(ephemeral=True, thinking=True)
        target = await self._resolve_member(interaction, target)
        if target is None:
            await interaction.edit_original_response(content=NOT_IN_GUILD)
            return
        actor, me = interaction.user, interaction.guild.me
        action = "change nickname for"

        denial = perms.first_denial(
            perms.check_actor_permission(actor, "manage_nicknames", "/admin setnick"),
            perms.check_bot_permission(me, "manage_nicknames"),
            perms.check_actor_above_member(actor, target, action),
        )
        if not denial:
            if target.id == me.id:
                if nickname is not None and not perms.has_permission(me, "change_nickname"):
                    denial = 'I do not have the "Change Nickname" permission to change my own nickname.'
            else:
                denial = perms.check_bot_above_member(me, target, action)
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        old = target.nick or target.name
        if nickname is None:
            success = f"Successfully removed nickname for {target}. Was: `{old}`."
        else:
            success = f"Successfully set nickname for {target} from `{old}` to `{nickname}`."
        await self._attempt(
            interaction, "set nickname for", target, target.edit(nick=nickname), success
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(Admin(bot))
