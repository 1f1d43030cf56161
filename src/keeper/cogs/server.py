from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.pagination import Paginator
from keeper.utils.views import ConfirmView, PaginatorView

_log = logging.getLogger(__name__)

BANLIST_TIMEOUT = 60
BOTS_TIMEOUT = 60
DETAIL_LIMIT = 10


def _detail_field(embed: discord.Embed, label: str, entries: list[str]) -> None:
    if not entries:
        return
    if len(entries) <= DETAIL_LIMIT:
        embed.add_field(name=f"{label}:", value="\n".join(entries), inline=False)
    else:
        embed.add_field(
            name=f"{label} (partial list):",
            value="\n".join(entries[:DETAIL_LIMIT]) + f"\n...and {len(entries) - DETAIL_LIMIT} more.",
            inline=False,
        )


@app_commands.guild_only()
class Server(commands.GroupCog, group_name="server", group_description="Provides information about the server."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @staticmethod
    async def _fetch_bans(guild: discord.Guild) -> list[discord.BanEntry]:
        return [entry async for entry in guild.bans(limit=None)]

    @app_commands.command(name="banlist", description="Displays the server's ban list (users and bots).")
    async def banlist(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        guild = interaction.guild

        if not interaction.user.guild_permissions.ban_members:
            await interaction.edit_original_response(
                content="You do not have permission to view the ban list. (Requires: `Ban Members`)"
            )
            return
        if not guild.me.guild_permissions.ban_members:
            await interaction.edit_original_response(
                content='I do not have the "Ban Members" permission, so I cannot fetch the ban list.'
            )
            return

        try:
            bans = await self._fetch_bans(guild)
        except discord.HTTPException as exc:
            _log.error("Failed to fetch ban list for guild %s: %s", guild.id, exc)
            await interaction.edit_original_response(
                content="An error occurred while fetching the ban list. Please try again later."
            )
            return

        if not bans:
            await interaction.edit_original_response(
                content="There are no users or bots currently banned in this server."
            )
            return

        async def render(paginator: Paginator) -> discord.Embed:
            lines = []
            for index, ban in enumerate(paginator.page_items(), start=paginator.offset + 1):
                reason = f"Reason: {ban.reason}" if ban.reason else "No reason provided."
                lines.append(f"`{index}.` **{ban.user}** (`{ban.user.id}`)\n> {reason}")
            embed = discord.Embed(
                title=f"Server Ban List ({len(paginator.items)} total)",
                description="\n\n".join(lines) or "No banned users on this page.",
                colour=discord.Colour(0xFF0000),
                timestamp=discord.utils.utcnow(),
            )
            embed.set_footer(text=f"Page {paginator.page + 1} of {paginator.total_pages}")
            return embed

        view = PaginatorView(bans, render, owner_id=interaction.user.id, timeout=BANLIST_TIMEOUT)
        await view.start(interaction)

    @app_commands.command(name="unbanall", description="Unbans all users and bots from the server. Requires confirmation.")
    async def unbanall(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        guild = interaction.guild

        if not interaction.user.guild_permissions.administrator:
            await interaction.edit_original_response(
                content="🚫 You do not have permission to use this command. (Requires: `Administrator`)"
            )
            return
        if not guild.me.guild_permissions.ban_members:
            await interaction.edit_original_response(
                content='🚫 I do not have the "Ban Members" permission, so I cannot unban members.'
            )
            return

        try:
            bans = await self._fetch_bans(guild)
        except discord.HTTPException as exc:
            _log.error("Failed to fetch ban list for guild %s: %s", guild.id, exc)
            await interaction.edit_original_response(
                content="An error occurred while fetching the ban list. Cannot proceed with unbanall."
            )
            return

        if not bans:
            await interaction.edit_original_response(
                content="There are no users or bots currently banned in this server to unban."
            )
            return

        prompt = discord.Embed(
            title="⚠️ Confirm Unban All",
            description=(
                f"Are you sure you want to unban **ALL** {len(bans)} users and bots from this server?\n\n"
                "**This action cannot be undone!**"
            ),
            colour=discord.Colour(0xFFA500),
            timestamp=discord.utils.utcnow(),
        )
        view = ConfirmView(
            owner_id=interaction.user.id,
            confirm_label="Yes, Unban All",
            confirm_text="Unbanning all users...",
            cancel_text="Unban all operation cancelled.",
            timeout_text="Unban all confirmation timed out.",
        )
        message = await interaction.edit_original_response(embed=prompt, view=view)
        view.bind(message)

        await view.wait()
        if not view.value:
            return

        unbanned, failed = [], []
        for ban in bans:
            label = f"{ban.user} (`{ban.user.id}`)"
            try:
                await guild.unban(ban.user, reason=f"Unbanned by {interaction.user} via /server unbanall")
                unbanned.append(label)
            except discord.HTTPException as exc:
                _log.error("Failed to unban %s (%s): %s", ban.user, ban.user.id, exc)
                failed.append(label)

        result = discord.Embed(
            title="✅ Unban All Complete",
            description=f"Attempted to unban {len(bans)} users/bots.",
            colour=discord.Colour(0x00FF00),
            timestamp=discord.utils.utcnow(),
        )
        result.add_field(name="Successfully Unbanned", value=str(len(unbanned)), inline=True)
        result.add_field(name="Failed to Unban", value=str(len(failed)), inline=True)
        _detail_field(result, "Unbanned", unbanned)
        _detail_field(result, "Failed", failed)
        await interaction.followup.send(embed=result)


@app_commands.guild_only()
class ListEntities(commands.GroupCog, group_name="list", group_description="Lists various entities in the server."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="bots", description="Lists all bot accounts in the server.")
    async def bots(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        guild = interaction.guild

        if not interaction.user.guild_permissions.view_channel:
            await interaction.edit_original_response(content='You need the "View Channel" permission to use this command.')
            return

        try:
            if not guild.chunked:
                await guild.chunk()
        except discord.HTTPException as exc:
            _log.error("Failed to fetch members of guild %s: %s", guild.id, exc)
            await interaction.edit_original_response(
                content='Failed to fetch server members. Make sure I have the "View Members" intent and permissions.'
            )
            return

        bots = sorted((m for m in guild.members if m.bot), key=lambda m: m.name.lower())
        if not bots:
            await interaction.edit_original_response(content="No bots found in this server.")
            return

        async def render(paginator: Paginator) -> discord.Embed:
            lines = [
                f"`{index}.` {member.mention} ({member})"
                for index, member in enumerate(paginator.page_items(), start=paginator.offset + 1)
            ]
            embed = discord.Embed(
                title=f"Bots in {guild.name} ({len(paginator.items)})",
                description="\n".join(lines),
                colour=discord.Colour(0x00FF00),
                timestamp=discord.utils.utcnow(),
            )
            embed.set_footer(text=f"Page {paginator.page + 1} of {paginator.total_pages}")
            return embed

        view = PaginatorView(bots, render, owner_id=interaction.user.id, timeout=BOTS_TIMEOUT)
        await view.start(interaction)


async def setup(bot: commands.Bot):
    await bot.add_cog(Server(bot))
    await bot.add_cog(ListEntities(bot))
