from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.stores import MemberKind

_log = logging.getLogger(__name__)

MISSING_MANAGE_ROLES = (
    '❌ I do not have the **"Manage Roles"** permission in this server. '
    "Please grant it to me to use auto-roles."
)


@app_commands.guild_only()
@app_commands.default_permissions(manage_roles=True)
class Autorole(
    commands.GroupCog,
    group_name="autorole",
    group_description="Manages automatic role assignments for new members.",
):
    """Grant configured roles to members when they join, split by bots and humans."""

    bots = app_commands.Group(name="bots", description="Manage auto-roles for new bots.")
    humans = app_commands.Group(name="humans", description="Manage auto-roles for new human members.")

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def store(self):
        return self.bot.stores.autorole

    # ------------------------------------------------------------------
    # Shared handlers
    # ------------------------------------------------------------------

    async def _begin(self, interaction: discord.Interaction) -> bool:
        await interaction.response.defer(ephemeral=True, thinking=True)
        if not interaction.guild.me.guild_permissions.manage_roles:
            await interaction.edit_original_response(content=MISSING_MANAGE_ROLES)
            return False
        return True

    async def _add(self, interaction: discord.Interaction, kind: MemberKind, role: discord.Role):
        if not await self._begin(interaction):
            return

        if role.position >= interaction.guild.me.top_role.position:
            await interaction.edit_original_response(
                content=(
                    f"❌ I cannot assign the role `{role.name}` because it is higher than or equal to my highest role. "
                    "Please ensure my role is above the role you want me to assign."
                )
            )
            return

        if not await self.store.add(interaction.guild.id, kind, role.id):
            await interaction.edit_original_response(content=f"`{role.name}` is already set for new {kind}.")
            return
        await interaction.edit_original_response(content=f"✅ Added `{role.name}` to auto-assign for new {kind}.")

    async def _remove(self, interaction: discord.Interaction, kind: MemberKind, role: discord.Role):
        if not await self._begin(interaction):
            return

        if not await self.store.remove(interaction.guild.id, kind, role.id):
            await interaction.edit_original_response(content=f"`{role.name}` is not currently set for new {kind}.")
            return
        await interaction.edit_original_response(content=f"✅ Removed `{role.name}` from auto-assign for new {kind}.")

    async def _list(self, interaction: discord.Interaction, kind: MemberKind):
        if not await self._begin(interaction):
            return

        role_ids = self.store.roles_for(interaction.guild.id, kind)
        if not role_ids:
            description = f"No auto-roles configured for new {kind} in this server."
        else:
            names = []
            for rid in role_ids:
                role = interaction.guild.get_role(int(rid))
                names.append(f"`{role.name}`" if role else f"<@&{rid}> (Deleted Role)")
            description = f"Auto-roles for new {kind}:\n" + "\n".join(names)

        embed = discord.Embed(
            title=f"Auto-Roles for New {kind.capitalize()}",
            description=description,
            colour=discord.Colour.green(),
            timestamp=discord.utils.utcnow(),
        )
        await interaction.edit_original_response(embed=embed)

    # ------------------------------------------------------------------
    # /autorole bots ...
    # ------------------------------------------------------------------

    @bots.command(name="add", description="Add a role to be automatically given to new bots.")
    @app_commands.describe(role="The role to add for new bots.")
    async def bots_add(self, interaction: discord.Interaction, role: discord.Role):
        await self._add(interaction, "bots", role)

    @bots.command(name="remove", description="Remove a role from being automatically given to new bots.")
    @app_commands.describe(role="The role to remove for new bots.")
    async def bots_remove(self, interaction: discord.Interaction, role: discord.Role):
        await self._remove(interaction, "bots", role)

    @bots.command(name="list", description="List all roles automatically given to new bots.")
    async def bots_list(self, interaction: discord.Interaction):
        await self._list(interaction, "bots")

    # ------------------------------------------------------------------
    # /autorole humans ...
    # ------------------------------------------------------------------

    @humans.command(name="add", description="Add a role to be automatically given to new human members.")
    @app_commands.describe(role="The role to add for new human members.")
    async def humans_add(self, interaction: discord.Interaction, role: discord.Role):
        await self._add(interaction, "humans", role)

    @humans.command(name="remove", description="Remove a role from being automatically given to new human members.")
    @app_commands.describe(role="The role to remove for new human members.")
    async def humans_remove(self, interaction: discord.Interaction, role: discord.Role):
        await self._remove(interaction, "humans", role)

    @humans.command(name="list", description="List all roles automatically given to new human members.")
    async def humans_list(self, interaction: discord.Interaction):
        await self._list(interaction, "humans")

    # ------------------------------------------------------------------
    # Resets
    # ------------------------------------------------------------------

    @app_commands.command(name="reset-all", description="Resets all auto-role settings (for bots and humans) for this server.")
    async def reset_all(self, interaction: discord.Interaction):
        if not await self._begin(interaction):
            return
        await self.store.reset(interaction.guild.id, "humans", "bots")
        await interaction.edit_original_response(content="✅ All auto-role settings for this server have been reset.")

    @app_commands.command(name="reset-bots", description="Resets all auto-role settings for new bots for this server.")
    async def reset_bots(self, interaction: discord.Interaction):
        if not await self._begin(interaction):
            return
        await self.store.reset(interaction.guild.id, "bots")
        await interaction.edit_original_response(
            content="✅ Auto-role settings for new bots in this server have been reset."
        )

    @app_commands.command(name="reset-humans", description="Resets all auto-role settings for new human members for this server.")
    async def reset_humans(self, interaction: discord.Interaction):
        if not await self._begin(interaction):
            return
        await self.store.reset(interaction.guild.id, "humans")
        await interaction.edit_original_response(
            content="✅ Auto-role settings for new human members in this server have been reset."
        )

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member):
        guild = member.guild
        if self.bot.user is not None and member.id == self.bot.user.id:
            return

        kind: MemberKind = "bots" if member.bot else "humans"
        role_ids = self.store.roles_for(guild.id, kind)
        if not role_ids:
            return

        roles = [r for r in (guild.get_role(int(rid)) for rid in role_ids) if r is not None]
        if not roles:
            return

        me = guild.me
        if not me.guild_permissions.manage_roles:
            _log.warning('Bot lacks "Manage Roles" in guild %s (%s), cannot assign auto-roles', guild.name, guild.id)
            return

        assignable = [r for r in roles if r.position < me.top_role.position]
        if not assignable:
            _log.info("No assignable auto-roles for %s in %s (roles too high)", member, guild.name)
            return

        try:
            await member.add_roles(*assignable, reason="Auto-role assignment for new member.")
            _log.info(
                "Assigned auto-roles to %s (%s) in %s: %s",
                member, member.id, guild.name, ", ".join(str(r.id) for r in assignable),
            )
        except discord.Forbidden:
            _log.warning("Missing permissions to assign auto-roles in guild %s", guild.id)
        except discord.HTTPException as exc:
            _log.error("Failed to assign auto-roles to %s: %s", member, exc)


async def setup(bot: commands.Bot):
    await bot.add_cog(Autorole(bot))
