from __future__ import annotations

import logging
from typing import Iterable, Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.formatting import discord_timestamp

_log = logging.getLogger(__name__)

VISIBLE_TYPES = (discord.TextChannel, discord.VoiceChannel, discord.ForumChannel, discord.StageChannel)


@app_commands.guild_only()
@app_commands.default_permissions(manage_channels=True)
class Channels(commands.GroupCog, group_name="channel", group_description="Manages channels within the server."):
    """Bulk visibility/lock toggles for @everyone plus single-channel tools."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.guild_permissions.manage_channels:
            return True
        await interaction.response.send_message(
            "You do not have permission to use this command (Manage Channels required).", ephemeral=True
        )
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _overwrite_everyone(
        interaction: discord.Interaction,
        channels: Iterable[discord.abc.GuildChannel],
        **overwrite: bool,
    ) -> int:
        """Apply *overwrite* for @everyone on each channel; returns how many succeeded."""

        everyone = interaction.guild.default_role
        done = 0
        for channel in channels:
            try:
                await channel.set_permissions(everyone, reason=f"Requested by {interaction.user}", **overwrite)
                done += 1
            except discord.HTTPException as exc:
                _log.error("Failed to update overwrites on #%s (%s): %s", channel.name, channel.id, exc)
        return done

    @staticmethod
    def _visible_channels(interaction: discord.Interaction, *, skip_current: bool) -> list:
        return [
            c
            for c in interaction.guild.channels
            if isinstance(c, VISIBLE_TYPES) and not (skip_current and c.id == interaction.channel_id)
        ]

    @staticmethod
    def _text_channels(interaction: discord.Interaction, *, skip_current: bool) -> list:
        return [c for c in interaction.guild.text_channels if not (skip_current and c.id == interaction.channel_id)]

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    @app_commands.command(name="unhideall", description="Unhides all text and voice channels for @everyone.")
    async def unhide_all(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        count = await self._overwrite_everyone(
            interaction, self._visible_channels(interaction, skip_current=False), view_channel=True
        )
        await interaction.edit_original_response(content=f"Successfully unhid {count} channels.")

    @app_commands.command(name="hideall", description="Hides all text and voice channels from @everyone.")
    async def hide_all(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        count = await self._overwrite_everyone(
            interaction, self._visible_channels(interaction, skip_current=True), view_channel=False
        )
        await interaction.edit_original_response(
            content=(
                f"Successfully hid {count} channels. "
                "(Note: The command channel might not be hidden for this reply to be visible)"
            )
        )

    @app_commands.command(name="unlockall", description="Unlocks all text channels by allowing @everyone to send messages.")
    async def unlock_all(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        count = await self._overwrite_everyone(
            interaction, self._text_channels(interaction, skip_current=False), send_messages=True
        )
        await interaction.edit_original_response(content=f"Successfully unlocked {count} text channels.")

    @app_commands.command(name="lockall", description="Locks all text channels by preventing @everyone from sending messages.")
    async def lock_all(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        count = await self._overwrite_everyone(
            interaction, self._text_channels(interaction, skip_current=True), send_messages=False
        )
        await interaction.edit_original_response(
            content=(
                f"Successfully locked {count} text channels. "
                "(Note: The command channel might not be locked for this reply to be visible)"
            )
        )

    # ------------------------------------------------------------------
    # Single channel
    # ------------------------------------------------------------------

    @app_commands.command(name="clone", description="Clones an existing channel.")
    @app_commands.describe(target="The channel to clone.", new_name="The name for the new cloned channel (optional).")
    async def clone(
        self,
        interaction: discord.Interaction,
        target: discord.abc.GuildChannel,
        new_name: Optional[app_commands.Range[str, 1, 100]] = None,
    ):
        await interaction.response.defer(ephemeral=True, thinking=True)
        if target.guild.id != interaction.guild_id:
            await interaction.edit_original_response(content="You can only clone channels within this server.")
            return

        try:
            cloned = await target.clone(name=new_name or target.name, reason=f"Cloned by {interaction.user}")
        except discord.HTTPException as exc:
            _log.error("Failed to clone channel %s: %s", target.id, exc)
            await interaction.edit_original_response(
                content=(
                    'Failed to clone the channel. Make sure I have the "Manage Channels" permission '
                    "and that the channel type is cloneable."
                )
            )
            return
        await interaction.edit_original_response(content=f"Successfully cloned #{target.name} to #{cloned.name}.")

    @app_commands.command(name="delete", description="Deletes a specified channel.")
    @app_commands.describe(target="The channel to delete.")
    async def delete(self, interaction: discord.Interaction, target: discord.abc.GuildChannel):
        await interaction.response.defer(ephemeral=True, thinking=True)
        if target.guild.id != interaction.guild_id:
            await interaction.edit_original_response(content="You can only delete channels within this server.")
            return
        if target.id == interaction.channel_id:
            await interaction.edit_original_response(content="I cannot delete the channel where this command was used!")
            return

        name = target.name
        try:
            await target.delete(reason=f"Requested by {interaction.user}")
        except discord.HTTPException as exc:
            _log.error("Failed to delete channel %s: %s", target.id, exc)
            await interaction.edit_original_response(
                content='Failed to delete the channel. Make sure I have the "Manage Channels" permission.'
            )
            return
        await interaction.edit_original_response(content=f"Successfully deleted channel #{name}.")

    @app_commands.command(name="info", description="Displays information about a channel.")
    @app_commands.describe(target="The channel to get info about (defaults to current channel).")
    async def info(self, interaction: discord.Interaction, target: Optional[discord.abc.GuildChannel] = None):
        await interaction.response.defer(ephemeral=True, thinking=True)
        channel = target or interaction.channel
        if channel is None:
            await interaction.edit_original_response(content="Could not find that channel.")
            return

        await interaction.edit_original_response(embed=channel_embed(channel))


def channel_embed(channel) -> discord.Embed:
    embed = discord.Embed(title=f"Channel Info: #{channel.name}", colour=discord.Colour(0x0099FF))
    embed.add_field(name="ID", value=str(channel.id), inline=True)
    embed.add_field(name="Type", value=str(channel.type).replace("_", " ").title(), inline=True)
    embed.add_field(name="Created At", value=discord_timestamp(channel.created_at), inline=False)
    embed.add_field(name="Category", value=channel.category.name if channel.category else "None", inline=True)

    if isinstance(channel, discord.TextChannel):
        embed.add_field(name="Topic", value=channel.topic or "None", inline=False)
        embed.add_field(name="NSFW", value="Yes" if channel.nsfw else "No", inline=True)
        embed.add_field(
            name="Slowmode",
            value=f"{channel.slowmode_delay} seconds" if channel.slowmode_delay else "Off",
            inline=True,
        )
    elif isinstance(channel, discord.VoiceChannel):
        embed.add_field(name="User Limit", value=str(channel.user_limit) if channel.user_limit else "Unlimited", inline=True)
        embed.add_field(name="Bitrate", value=f"{channel.bitrate // 1000} kbps", inline=True)
    return embed


async def setup(bot: commands.Bot):
    await bot.add_cog(Channels(bot))
