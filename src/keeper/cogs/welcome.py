from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Literal, Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.formatting import calendar_difference
from keeper.utils.stores import WelcomeConfig
from keeper.utils.views import NoticeView

_log = logging.getLogger(__name__)

PLACEHOLDER_HELP = """\
`{username}` = member username
`{memberid}` = member ID
`{servername}` = discord server name
`{guildid}` = discord server ID
`{count}` = member count
`{joined}` = member join date
`{created}` = member create date
`{days-joined}` = member join in days
`{diff-joined}` = member join in years, months and days
`{days-created}` = member create in days
`{diff-created}` = member create in years, months and days"""

NOT_CONFIGURED = "No welcome configuration exists. Use `/welcome create` first."


def _date_string(moment: datetime) -> str:
    # e.g. "Mon Oct 19 2026"
    return moment.strftime("%a %b %d %Y")


def render_welcome(text: str, member: discord.Member, guild: discord.Guild, now: Optional[datetime] = None) -> str:
    """Replace every welcome placeholder in *text* for *member* joining *guild*."""

    now = now or datetime.now(timezone.utc)
    joined = member.joined_at or now
    created = member.created_at

    replacements = {
        "{username}": member.name,
        "{memberid}": str(member.id),
        "{servername}": guild.name,
        "{guildid}": str(guild.id),
        "{count}": str(guild.member_count or 0),
        "{joined}": _date_string(joined),
        "{created}": _date_string(created),
        "{days-joined}": str((now - joined).days),
        "{diff-joined}": calendar_difference(joined.date(), now.date()),
        "{days-created}": str((now - created).days),
        "{diff-created}": calendar_difference(created.date(), now.date()),
    }
    for token, value in replacements.items():
        text = text.replace(token, value)
    return text


def welcome_embed(title: str, description: str) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        colour=discord.Colour(0x00FF00),
        timestamp=discord.utils.utcnow(),
    )


@app_commands.guild_only()
@app_commands.default_permissions(manage_guild=True)
class Welcome(commands.GroupCog, group_name="welcome", group_description="Manage welcome messages for new members"):
    """Per-guild welcome message sent to a channel when a member joins."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def store(self):
        return self.bot.stores.welcome

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @app_commands.command(name="info", description="Display available placeholders for welcome messages")
    async def info(self, interaction: discord.Interaction):
        content = f"# 🌊 WELCOME INFO 🌊\n\n**Available Placeholders:**\n\n{PLACEHOLDER_HELP}"
        await interaction.response.send_message(view=NoticeView(content, discord.Colour(0x00AE86)))

    @app_commands.command(name="preview", description="Preview the welcome message with your data")
    async def preview(self, interaction: discord.Interaction):
        cfg = self.store.get(interaction.guild.id)
        if not cfg.message:
            await interaction.response.send_message(
                "No welcome message is configured. Use `/welcome create` first.", ephemeral=True
            )
            return

        rendered = render_welcome(cfg.message, interaction.user, interaction.guild)
        if cfg.format == "embed":
            await interaction.response.send_message(embed=welcome_embed("Welcome Preview", rendered))
        else:
            await interaction.response.send_message(f"**Welcome Message Preview:**\n{rendered}")

    @app_commands.command(name="create", description="Create a welcome message")
    @app_commands.describe(
        channel="Channel to send welcome messages",
        message="Welcome message (use placeholders from /welcome info)",
    )
    async def create(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel,
        message: app_commands.Range[str, 1, 2000],
    ):
        cfg = self.store.get(interaction.guild.id)
        cfg.channel = str(channel.id)
        cfg.message = message
        cfg.enabled = True
        await self.store.put(interaction.guild.id, cfg)

        embed = welcome_embed(
            "Welcome Message Created",
            f"Welcome messages will be sent to {channel.mention} when new members join.",
        )
        embed.add_field(name="Channel", value=channel.mention, inline=True)
        embed.add_field(name="Status", value="Enabled", inline=True)
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="change", description="Change the welcome message or channel")
    @app_commands.describe(channel="New channel for welcome messages", message="New welcome message")
    async def change(
        self,
        interaction: discord.Interaction,
        channel: Optional[discord.TextChannel] = None,
        message: Optional[app_commands.Range[str, 1, 2000]] = None,
    ):
        if channel is None and message is None:
            await interaction.response.send_message(
                "Please specify either a new channel or message to change.", ephemeral=True
            )
            return
        if not self.store.exists(interaction.guild.id):
            await interaction.response.send_message(NOT_CONFIGURED, ephemeral=True)
            return

        cfg = self.store.get(interaction.guild.id)
        changes = []
        if channel is not None:
            cfg.channel = str(channel.id)
            changes.append(f"Channel: {channel.mention}")
        if message is not None:
            cfg.message = message
            changes.append("Message updated")
        await self.store.put(interaction.guild.id, cfg)

        embed = welcome_embed("Welcome Configuration Updated", "**Changes made:**\n" + "\n".join(changes))
        embed.colour = discord.Colour(0x00AE86)
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="delete", description="Delete the welcome message configuration")
    async def delete(self, interaction: discord.Interaction):
        if not self.store.get(interaction.guild.id).channel:
            await interaction.response.send_message("No welcome configuration exists to delete.", ephemeral=True)
            return

        await self.store.delete(interaction.guild.id)
        embed = welcome_embed(
            "Welcome Configuration Deleted",
            "Welcome message configuration has been permanently removed.",
        )
        embed.colour = discord.Colour.red()
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="text", description="View the current welcome message configuration")
    async def text(self, interaction: discord.Interaction):
        cfg = self.store.get(interaction.guild.id)
        if not cfg.channel:
            await interaction.response.send_message("No welcome configuration exists.", ephemeral=True)
            return

        channel = interaction.guild.get_channel(int(cfg.channel))
        embed = welcome_embed("Current Welcome Configuration", "")
        embed.description = None
        embed.colour = discord.Colour(0x00AE86)
        embed.add_field(name="Channel", value=channel.mention if channel else "Channel not found", inline=True)
        embed.add_field(name="Status", value="Enabled" if cfg.enabled else "Disabled", inline=True)
        embed.add_field(name="Format", value="Embed" if cfg.format == "embed" else "Plain Text", inline=True)
        embed.add_field(name="Message", value=cfg.message or "No message set", inline=False)
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="toggle", description="Toggle welcome messages on/off")
    async def toggle(self, interaction: discord.Interaction):
        cfg = self.store.get(interaction.guild.id)
        if not cfg.channel:
            await interaction.response.send_message(NOT_CONFIGURED, ephemeral=True)
            return

        cfg.enabled = not cfg.enabled
        await self.store.put(interaction.guild.id, cfg)

        state = "enabled" if cfg.enabled else "disabled"
        colour = discord.Colour.green() if cfg.enabled else discord.Colour.red()
        content = f"# Welcome Messages Toggled\n\nWelcome messages are now **{state}**."
        await interaction.response.send_message(view=NoticeView(content, colour))

    @app_commands.command(name="format", description="Change welcome message format")
    @app_commands.describe(type="Format type")
    @app_commands.choices(
        type=[
            app_commands.Choice(name="Plain Text", value="text"),
            app_commands.Choice(name="Embed", value="embed"),
        ]
    )
    async def format(self, interaction: discord.Interaction, type: Literal["text", "embed"]):
        cfg = self.store.get(interaction.guild.id)
        if not cfg.channel:
            await interaction.response.send_message(NOT_CONFIGURED, ephemeral=True)
            return

        cfg.format = type
        await self.store.put(interaction.guild.id, cfg)

        label = "embeds" if type == "embed" else "plain text"
        embed = welcome_embed("Welcome Format Updated", f"Welcome messages will now be sent as **{label}**.")
        embed.colour = discord.Colour(0x00AE86)
        await interaction.response.send_message(embed=embed)

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member):
        cfg: WelcomeConfig = self.store.get(member.guild.id)
        if not cfg.enabled or not cfg.channel:
            return

        channel = member.guild.get_channel(int(cfg.channel))
        if channel is None:
            _log.warning("Welcome channel %s not found in guild %s", cfg.channel, member.guild.id)
            return

        rendered = render_welcome(cfg.message, member, member.guild)
        try:
            if cfg.format == "embed":
                embed = welcome_embed("Welcome!", rendered)
                embed.set_thumbnail(url=member.display_avatar.url)
                await channel.send(embed=embed)
            else:
                await channel.send(rendered)
        except discord.Forbidden:
            _log.warning("Missing permissions to send welcome message in channel %s", channel.id)
        except discord.HTTPException as exc:
            _log.error("Failed to send welcome message: %s", exc)


async def setup(bot: commands.Bot):
    await bot.add_cog(Welcome(bot))
