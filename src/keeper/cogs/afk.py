from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.formatting import format_duration
from keeper.utils.pagination import Paginator
from keeper.utils.views import PaginatorView

_log = logging.getLogger(__name__)

NO_REASON = "No reason provided."
LIST_TIMEOUT = 90
AFK_COLOUR = discord.Colour(0xFFA500)


@app_commands.guild_only()
class Afk(commands.GroupCog, group_name="afk", group_description="Manages your AFK status."):
    """Self-declared away status, cleared automatically on the user's next message.

    Entries are global: being AFK in one server shows up in every server the
    bot shares with the user.
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def store(self):
        return self.bot.stores.afk

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @app_commands.command(name="set", description="Set your AFK status with an optional reason.")
    @app_commands.describe(reason="The reason for your AFK status.")
    async def set_status(self, interaction: discord.Interaction, reason: Optional[str] = None):
        await interaction.response.defer(thinking=True)
        reason = reason or NO_REASON

        updated = await self.store.set(interaction.user.id, reason)
        if updated:
            await interaction.edit_original_response(content=f"✅ Your AFK status has been updated to: `{reason}`")
        else:
            await interaction.edit_original_response(
                content=f"✅ You are now AFK: `{reason}`. I will notify others who mention you."
            )

    @app_commands.command(name="list", description="List all currently AFK users.")
    async def list_users(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)

        entries = self.store.oldest_first()
        if not entries:
            await interaction.edit_original_response(content="There are currently no users marked as AFK.")
            return

        async def render(paginator: Paginator) -> discord.Embed:
            now = datetime.now(timezone.utc)
            lines = []
            for entry in paginator.page_items():
                tag = await self._user_tag(int(entry.id))
                duration = format_duration(now - entry.timestamp)
                lines.append(f"**{tag}** (AFK for {duration})\n> Reason: `{entry.reason}`")

            embed = discord.Embed(
                title="Currently AFK Users",
                description="\n\n".join(lines) or "No AFK users on this page.",
                colour=AFK_COLOUR,
                timestamp=now,
            )
            embed.set_footer(
                text=f"Page {paginator.page + 1} of {paginator.total_pages} | Total AFK: {len(paginator.items)}"
            )
            return embed

        view = PaginatorView(entries, render, owner_id=interaction.user.id, timeout=LIST_TIMEOUT)
        await view.start(interaction)

    async def _user_tag(self, user_id: int) -> str:
        user = self.bot.get_user(user_id)
        if user is None:
            try:
                user = await self.bot.fetch_user(user_id)
            except discord.HTTPException as exc:
                _log.warning("Could not fetch user %s: %s", user_id, exc)
                return f"<@{user_id}>"
        return str(user)

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        # Ignore bots to prevent loops, and DMs
        if message.author.bot or message.guild is None:
            return

        now = datetime.now(timezone.utc)

        if self.store.get(message.author.id) is not None:
            entry = await self.store.clear(message.author.id)
            if entry is not None:
                duration = format_duration(now - entry.timestamp)
                try:
                    await message.channel.send(
                        f"👋 Welcome back, {message.author.mention}! You were AFK for {duration}."
                    )
                except discord.HTTPException as exc:
                    _log.error("Failed to send AFK return message in guild %s: %s", message.guild.id, exc)

        if not message.mentions:
            return

        users = {entry.id: entry for entry in self.store.load().users}
        for mentioned in message.mentions:
            if mentioned.bot:
                continue
            entry = users.get(str(mentioned.id))
            if entry is None:
                continue
            duration = format_duration(now - entry.timestamp)
            try:
                await message.reply(f"`{mentioned}` is currently AFK: `{entry.reason}` (AFK for {duration})")
            except discord.HTTPException as exc:
                _log.error("Failed to send AFK mention reply in guild %s: %s", message.guild.id, exc)


async def setup(bot: commands.Bot):
    await bot.add_cog(Afk(bot))
