from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.formatting import is_snowflake
from keeper.utils.pagination import Paginator
from keeper.utils.views import PaginatorView

_log = logging.getLogger(__name__)

NOT_OWNER = "🚫 You are not the bot owner."
INVALID_ID = "Invalid Server ID format. Please provide a valid Discord Server ID."
SERVERLIST_TIMEOUT = 120
BLACKLIST_TIMEOUT = 90


@dataclass
class GuildSummary:
    name: str
    id: int
    owner: str
    member_count: int


class OwnerOnly(commands.GroupCog):
    """Base for cogs whose every command is reserved for the configured owner."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id == self.bot.owner_id:
            return True
        await interaction.response.send_message(NOT_OWNER, ephemeral=True)
        return False

    async def _guild_name(self, guild_id: int) -> Optional[discord.Guild]:
        guild = self.bot.get_guild(guild_id)
        if guild is not None:
            return guild
        try:
            return await self.bot.fetch_guild(guild_id)
        except discord.HTTPException:
            return None


@app_commands.guild_only()
class Owner(OwnerOnly, group_name="owner", group_description="Owner-only commands for bot management."):
    async def _owner_tag(self, guild: discord.Guild) -> str:
        if guild.owner is not None:
            return str(guild.owner)
        try:
            return str(await self.bot.fetch_user(guild.owner_id))
        except discord.NotFound:
            return f"ID: {guild.owner_id}"
        except discord.HTTPException as exc:
            _log.error("Failed to fetch owner of guild %s (%s): %s", guild.name, guild.id, exc)
            return f"ID: {guild.owner_id} (Fetch Failed)"

    @app_commands.command(name="serverlist", description="Lists all servers the bot is in, along with their info.")
    async def serverlist(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)

        if not self.bot.guilds:
            await interaction.edit_original_response(content="I am not currently in any servers.")
            return

        summaries = [
            GuildSummary(g.name, g.id, await self._owner_tag(g), g.member_count or 0) for g in self.bot.guilds
        ]
        summaries.sort(key=lambda s: s.name.lower())

        async def render(paginator: Paginator) -> discord.Embed:
            blocks = [
                f"**{s.name}**\n> ID: `{s.id}`\n> Owner: `{s.owner}`\n> Members: `{s.member_count:,}`"
                for s in paginator.page_items()
            ]
            embed = discord.Embed(
                title="Servers I Am In",
                description="\n\n".join(blocks) or "No servers on this page.",
                colour=discord.Colour(0x00FF00),
                timestamp=discord.utils.utcnow(),
            )
            embed.set_footer(
                text=f"Page {paginator.page + 1} of {paginator.total_pages} | Total Servers: {len(paginator.items)}"
            )
            return embed

        view = PaginatorView(summaries, render, owner_id=interaction.user.id, timeout=SERVERLIST_TIMEOUT)
        await view.start(interaction)

    @app_commands.command(name="bot-leave", description="Makes the bot leave a specified server.")
    @app_commands.describe(server_id="The ID of the server to leave.")
    async def leave_server(self, interaction: discord.Interaction, server_id: str):
        await interaction.response.defer(ephemeral=True, thinking=True)

        guild = self.bot.get_guild(int(server_id)) if server_id.isdigit() else None
        if guild is None:
            await interaction.edit_original_response(content=f"❌ I am not in a server with the ID `{server_id}`.")
            return

        name = guild.name
        try:
            await guild.leave()
        except discord.HTTPException as exc:
            _log.error("Failed to leave guild %s: %s", server_id, exc)
            await interaction.edit_original_response(
                content=f"❌ Failed to leave server `{server_id}`. An error occurred: `{exc.text}`."
            )
            return
        _log.info("Left guild %s (%s) on owner request", name, server_id)
        await interaction.edit_original_response(content=f"✅ Successfully left server: `{name}` (ID: `{server_id}`).")


class Blacklist(OwnerOnly, group_name="blacklist", group_description="Manages the bot's server blacklist (Owner Only)."):
    """Servers listed here are refused at the command tree."""

    @property
    def store(self):
        return self.bot.stores.blacklist

    @app_commands.command(name="list", description="Displays all currently blacklisted servers.")
    async def list_servers(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)

        ids = self.store.all()
        if not ids:
            await interaction.edit_original_response(content="There are no servers currently blacklisted.")
            return

        async def render(paginator: Paginator) -> discord.Embed:
            lines = []
            for server_id in paginator.page_items():
                guild = await self._guild_name(int(server_id))
                if guild is not None:
                    count = guild.member_count if guild.member_count is not None else guild.approximate_member_count
                    lines.append(f"`{server_id}` - **{guild.name}** (Members: {count})")
                else:
                    lines.append(f"`{server_id}` - *Unknown Server (Bot not in guild or invalid ID)*")
            embed = discord.Embed(
                title="Blacklisted Servers",
                description="\n".join(lines) or "No servers on this page.",
                colour=discord.Colour(0xFFA500),
                timestamp=discord.utils.utcnow(),
            )
            embed.set_footer(
                text=f"Page {paginator.page + 1} of {paginator.total_pages} | Total: {len(paginator.items)}"
            )
            return embed

        view = PaginatorView(ids, render, owner_id=interaction.user.id, timeout=BLACKLIST_TIMEOUT)
        await view.start(interaction)

    @app_commands.command(name="server", description="Blacklist a server from using bot commands.")
    @app_commands.describe(serverid="The ID of the server to blacklist.")
    async def add_server(self, interaction: discord.Interaction, serverid: str):
        await interaction.response.defer(ephemeral=True, thinking=True)

        if not is_snowflake(serverid):
            await interaction.edit_original_response(content=INVALID_ID)
            return
        if self.store.contains(serverid):
            await interaction.edit_original_response(content=f"Server `{serverid}` is already blacklisted.")
            return

        guild = await self._guild_name(int(serverid))
        await self.store.add(serverid)
        _log.info("Blacklisted guild %s", serverid)
        await interaction.edit_original_response(
            content=(
                f"Successfully blacklisted server: **{guild.name if guild else serverid}** (`{serverid}`). "
                "Members in this server can no longer use bot commands."
            )
        )

    @app_commands.command(name="remove", description="Remove a server from the blacklist.")
    @app_commands.describe(serverid="The ID of the server to remove from blacklist.")
    async def remove_server(self, interaction: discord.Interaction, serverid: str):
        await interaction.response.defer(ephemeral=True, thinking=True)

        if not is_snowflake(serverid):
            await interaction.edit_original_response(content=INVALID_ID)
            return
        if not self.store.contains(serverid):
            await interaction.edit_original_response(content=f"Server `{serverid}` is not currently blacklisted.")
            return

        guild = await self._guild_name(int(serverid))
        await self.store.remove(serverid)
        _log.info("Removed guild %s from the blacklist", serverid)
        await interaction.edit_original_response(
            content=(
                f"Successfully removed server **{guild.name if guild else serverid}** (`{serverid}`) "
                "from the blacklist. Members in this server can now use bot commands again."
            )
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(Owner(bot))
    await bot.add_cog(Blacklist(bot))
