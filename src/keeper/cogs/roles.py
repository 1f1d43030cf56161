from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils import permissions as perms
from keeper.utils.formatting import discord_timestamp, parse_hex_colour

_log = logging.getLogger(__name__)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


@app_commands.guild_only()
class Roles(commands.GroupCog, group_name="role", group_description="Manages roles within the server."):
    """Role inspection, bulk assignment and editing."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _role_guards(interaction: discord.Interaction, role: discord.Role, command: str, action: str) -> Optional[str]:
        actor, me = interaction.user, interaction.guild.me
        return perms.first_denial(
            perms.check_actor_permission(actor, "manage_roles", f"/role {command}"),
            perms.check_actor_above_role(actor, role, action),
            perms.check_bot_permission(me, "manage_roles"),
            perms.check_bot_above_role(me, role, action),
            perms.check_manageable_role(role, action),
        )

    async def _members(self, guild: discord.Guild) -> list[discord.Member]:
        if not guild.chunked:
            await guild.chunk()
        return list(guild.members)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @app_commands.command(name="info", description="Displays information about a specific role.")
    @app_commands.describe(target_role="The role to get info about.")
    async def info(self, interaction: discord.Interaction, target_role: discord.Role):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role = target_role

        embed = discord.Embed(
            title=f"Role Info: {role.name}",
            colour=role.colour if role.colour.value else discord.Colour(0x0099FF),
            timestamp=discord.utils.utcnow(),
        )
        embed.add_field(name="ID", value=str(role.id), inline=True)
        embed.add_field(name="Name", value=role.name, inline=True)
        embed.add_field(name="Color (HEX)", value=str(role.colour), inline=True)
        embed.add_field(name="Hoisted", value=_yes_no(role.hoist), inline=True)
        embed.add_field(name="Mentionable", value=_yes_no(role.mentionable), inline=True)
        embed.add_field(name="Managed by Bot/Discord", value=_yes_no(role.managed), inline=True)
        embed.add_field(name="Position", value=str(role.position), inline=True)
        embed.add_field(name="Members with Role", value=str(len(role.members)), inline=True)
        embed.add_field(name="Created At", value=discord_timestamp(role.created_at), inline=False)
        await interaction.edit_original_response(embed=embed)

    @app_commands.command(name="all", description="Adds a role to all members (including bots) in the server.")
    @app_commands.describe(target_role="The role to add to all members.")
    async def add_all(self, interaction: discord.Interaction, target_role: discord.Role):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role = target_role

        denial = self._role_guards(interaction, role, "all", "add")
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        added = skipped = 0
        for member in await self._members(interaction.guild):
            if role in member.roles or not perms.can_manage_member(interaction.user, interaction.guild.me, member):
                skipped += 1
                continue
            try:
                await member.add_roles(role, reason=f"Added by {interaction.user} via /role all")
                added += 1
            except discord.HTTPException as exc:
                _log.error("Failed to add role %s to %s: %s", role.id, member, exc)
                skipped += 1

        await interaction.edit_original_response(
            content=(
                f"Successfully added role `{role.name}` to {added} members. "
                f"Skipped {skipped} (already had role or higher role)."
            )
        )

    @app_commands.command(name="removeall", description="Removes a role from all members (including bots) in the server.")
    @app_commands.describe(target_role="The role to remove from all members.")
    async def remove_all(self, interaction: discord.Interaction, target_role: discord.Role):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role = target_role

        denial = self._role_guards(interaction, role, "removeall", "remove")
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        removed = skipped = 0
        for member in await self._members(interaction.guild):
            if role not in member.roles or not perms.can_manage_member(interaction.user, interaction.guild.me, member):
                skipped += 1
                continue
            try:
                await member.remove_roles(role, reason=f"Removed by {interaction.user} via /role removeall")
                removed += 1
            except discord.HTTPException as exc:
                _log.error("Failed to remove role %s from %s: %s", role.id, member, exc)
                skipped += 1

        await interaction.edit_original_response(
            content=(
                f"Successfully removed role `{role.name}` from {removed} members. "
                f"Skipped {skipped} (didn't have role or higher role)."
            )
        )

    @app_commands.command(name="add", description="Adds a role to a specific user.")
    @app_commands.describe(target_role="The role to add.", target_user="The user to add the role to.")
    async def add(self, interaction: discord.Interaction, target_role: discord.Role, target_user: discord.Member):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role, member = target_role, target_user

        denial = perms.first_denial(
            self._role_guards(interaction, role, "add", "add"),
            perms.check_actor_above_member(interaction.user, member, "add roles to"),
            perms.check_bot_above_member(interaction.guild.me, member, "add roles to"),
        )
        if denial:
            await interaction.edit_original_response(content=denial)
            return
        if role in member.roles:
            await interaction.edit_original_response(content=f"{member} already has the `{role.name}` role.")
            return

        try:
            await member.add_roles(role, reason=f"Added by {interaction.user} via /role add")
        except discord.HTTPException as exc:
            _log.error("Failed to add role %s to %s: %s", role.id, member, exc)
            await interaction.edit_original_response(
                content=f"Failed to add role to {member}. Make sure I have the necessary permissions and role hierarchy."
            )
            return
        await interaction.edit_original_response(content=f"Successfully added role `{role.name}` to {member}.")

    @app_commands.command(name="remove", description="Removes a role from a specific user.")
    @app_commands.describe(target_role="The role to remove.", target_user="The user to remove the role from.")
    async def remove(self, interaction: discord.Interaction, target_role: discord.Role, target_user: discord.Member):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role, member = target_role, target_user

        denial = perms.first_denial(
            self._role_guards(interaction, role, "remove", "remove"),
            perms.check_actor_above_member(interaction.user, member, "remove roles from"),
            perms.check_bot_above_member(interaction.guild.me, member, "remove roles from"),
        )
        if denial:
            await interaction.edit_original_response(content=denial)
            return
        if role not in member.roles:
            await interaction.edit_original_response(content=f"{member} does not have the `{role.name}` role.")
            return

        try:
            await member.remove_roles(role, reason=f"Removed by {interaction.user} via /role remove")
        except discord.HTTPException as exc:
            _log.error("Failed to remove role %s from %s: %s", role.id, member, exc)
            await interaction.edit_original_response(
                content=(
                    f"Failed to remove role from {member}. "
                    "Make sure I have the necessary permissions and role hierarchy."
                )
            )
            return
        await interaction.edit_original_response(content=f"Successfully removed role `{role.name}` from {member}.")

    @app_commands.command(name="name", description="Changes the name of a role.")
    @app_commands.describe(target_role="The role to rename.", new_name="The new name for the role.")
    async def rename(
        self,
        interaction: discord.Interaction,
        target_role: discord.Role,
        new_name: app_commands.Range[str, 1, 100],
    ):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role = target_role

        denial = self._role_guards(interaction, role, "name", "rename")
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        old_name = role.name
        try:
            await role.edit(name=new_name, reason=f"Renamed by {interaction.user} via /role name")
        except discord.HTTPException as exc:
            _log.error("Failed to rename role %s: %s", role.id, exc)
            await interaction.edit_original_response(
                content="Failed to rename role. Make sure the new name is valid and I have the necessary permissions."
            )
            return
        await interaction.edit_original_response(content=f"Successfully renamed role `{old_name}` to `{new_name}`.")

    @app_commands.command(name="delete", description="Deletes a role from the server.")
    @app_commands.describe(target_role="The role to delete.")
    async def delete(self, interaction: discord.Interaction, target_role: discord.Role):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role = target_role

        denial = perms.first_denial(
            self._role_guards(interaction, role, "delete", "delete"),
            perms.check_not_bot_top_role(interaction.guild.me, role),
        )
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        name = role.name
        try:
            await role.delete(reason=f"Deleted by {interaction.user} via /role delete")
        except discord.HTTPException as exc:
            _log.error("Failed to delete role %s: %s", role.id, exc)
            await interaction.edit_original_response(
                content="Failed to delete role. Make sure I have the necessary permissions and hierarchy."
            )
            return
        await interaction.edit_original_response(content=f"Successfully deleted role `{name}`.")

    @app_commands.command(name="color", description="Changes the color of a role.")
    @app_commands.describe(
        target_role="The role to change the color of.",
        hex_color="The new color in HEX format (e.g., #FF0000).",
    )
    async def color(self, interaction: discord.Interaction, target_role: discord.Role, hex_color: str):
        await interaction.response.defer(ephemeral=True, thinking=True)
        role = target_role

        colour = parse_hex_colour(hex_color)
        if colour is None:
            await interaction.edit_original_response(
                content="Invalid HEX color format. Please use a format like `#FF0000` or `#F00`."
            )
            return

        denial = self._role_guards(interaction, role, "color", "change color of")
        if denial:
            await interaction.edit_original_response(content=denial)
            return

        old = str(role.colour)
        try:
            await role.edit(colour=colour, reason=f"Color changed by {interaction.user} via /role color")
        except discord.HTTPException as exc:
            _log.error("Failed to change colour of role %s: %s", role.id, exc)
            await interaction.edit_original_response(
                content="Failed to change role color. Make sure the color is valid and I have the necessary permissions."
            )
            return
        await interaction.edit_original_response(
            content=f"Successfully changed color of role `{role.name}` from `{old}` to `{hex_color}`."
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(Roles(bot))
