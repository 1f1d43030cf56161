from __future__ import annotations

import logging
import os
import platform
from typing import Iterable, Optional, Union

import discord
from discord import app_commands
from discord.ext import commands

from keeper.utils.formatting import format_uptime, truncate

_log = logging.getLogger(__name__)

HELP_PAGE_LIMIT = 1500
DEFAULT_COLOUR = discord.Colour(0x0099FF)
INFO_DATE_FORMAT = "%B %d, %Y, %I:%M:%S %p UTC"

ACTIVITY_LABELS = {
    discord.ActivityType.playing: "Playing",
    discord.ActivityType.streaming: "Streaming",
    discord.ActivityType.listening: "Listening to",
    discord.ActivityType.watching: "Watching",
    discord.ActivityType.custom: "Custom Status",
    discord.ActivityType.competing: "Competing in",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def command_lines(
    entries: Iterable[Union[app_commands.Command, app_commands.Group]],
) -> list[str]:
    """One line per command, subcommand group and subcommand, indented by depth."""

    lines: list[str] = []

    def walk(entry, depth: int) -> None:
        name = f"/{entry.qualified_name}"
        if depth == 0:
            lines.append(f"**`{name}`**: {entry.description}")
        else:
            lines.append(f"{'  ' * depth}↳ `{name}`: {entry.description}")
        if isinstance(entry, app_commands.Group):
            for child in entry.commands:
                walk(child, depth + 1)

    for entry in sorted(entries, key=lambda e: e.name):
        walk(entry, 0)
    return lines


def split_pages(lines: list[str], limit: int = HELP_PAGE_LIMIT) -> list[str]:
    """Join lines into pages no longer than *limit* characters (a single longer line stays whole)."""

    pages: list[str] = []
    current = ""
    for line in lines:
        if current and len(current) + len(line) + 1 > limit:
            pages.append(current.rstrip("\n"))
            current = ""
        current += line + "\n"
    if current:
        pages.append(current.rstrip("\n"))
    return pages


def peak_memory() -> str:
    """Peak resident memory of this process, or ``N/A`` where it cannot be read."""

    try:
        import resource
    except ImportError:  # not available on Windows
        return "N/A"
    # ru_maxrss is reported in KiB on Linux
    return f"{resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024:.2f} MB"


def _activity_text(member: discord.Member) -> str:
    if not member.activities:
        return "No current activity."
    out = []
    for act in member.activities:
        label = ACTIVITY_LABELS.get(act.type, "Unknown")
        detail = getattr(act, "state", None) if act.type is discord.ActivityType.custom else None
        out.append(f"**{label}:** {detail or act.name}")
    return "\n".join(out)


class PingView(discord.ui.LayoutView):
    def __init__(self, latency: float):
        super().__init__()
        if latency < 100:
            status = "🟢 Excellent"
            colour = discord.Colour.green()
        elif latency < 200:
            status = "🟡 Good"
            colour = discord.Colour.gold()
        else:
            status = "🔴 High"
            colour = discord.Colour.red()

        content = (
            f"# 🏓 Pong!\n\n"
            f"**Latency:** {latency:.2f} ms\n"
            f"**Status:** {status}\n\n"
            f"*The bot is online and responding.*"
        )
        container = discord.ui.Container(
            discord.ui.TextDisplay(content),
            accent_colour=colour,
        )
        self.add_item(container)


# ---------------------------------------------------------------------------
# Cogs
# ---------------------------------------------------------------------------


class Utility(commands.Cog):
    """General utility commands."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="ping", description="Check bot latency.")
    async def ping(self, interaction: discord.Interaction):
        await interaction.response.send_message(view=PingView(self.bot.latency * 1000))

    @app_commands.command(name="help", description="Shows all available commands of the bot.")
    async def help(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)

        top_level = self.bot.tree.get_commands(type=discord.AppCommandType.chat_input)
        if not top_level:
            await interaction.edit_original_response(content="❌ No commands found or loaded.")
            return

        pages = split_pages(command_lines(top_level))
        embeds = []
        for index, page in enumerate(pages, start=1):
            title = "🤖 Bot Commands" if len(pages) == 1 else f"🤖 Bot Commands (Page {index})"
            embed = discord.Embed(title=title, description=page, colour=DEFAULT_COLOUR, timestamp=discord.utils.utcnow())
            embed.set_footer(text=f"Total commands: {len(top_level)}")
            embeds.append(embed)

        if len(embeds) == 1:
            await interaction.edit_original_response(embed=embeds[0])
            return
        await interaction.edit_original_response(
            content="Here are my commands, split into multiple messages:", embed=embeds[0]
        )
        for embed in embeds[1:]:
            await interaction.followup.send(embed=embed)

    @app_commands.command(name="whois", description="Get detailed information about a user.")
    @app_commands.describe(target="The user to get information about (defaults to yourself).")
    async def whois(self, interaction: discord.Interaction, target: Optional[discord.User] = None):
        await interaction.response.defer(thinking=True)
        user = target or interaction.user

        member: Optional[discord.Member] = None
        if interaction.guild is not None:
            member = interaction.guild.get_member(user.id)
            if member is None:
                try:
                    member = await interaction.guild.fetch_member(user.id)
                except discord.HTTPException:
                    member = None

        embed = discord.Embed(
            title=f"Whois: {user.name}",
            colour=member.colour if member is not None and member.colour.value else DEFAULT_COLOUR,
            timestamp=discord.utils.utcnow(),
        )
        embed.set_thumbnail(url=user.display_avatar.with_size(256).url)
        embed.add_field(name="👤 Username", value=f"`{user.name}`", inline=True)
        embed.add_field(name="🏷️ Display Name", value=f"`{user.display_name}`", inline=True)
        embed.add_field(name="🆔 User ID", value=f"`{user.id}`", inline=True)
        embed.add_field(name="🤖 Is Bot?", value=f"`{'Yes' if user.bot else 'No'}`", inline=True)
        embed.add_field(name="⏰ Account Created", value=f"`{user.created_at.strftime(INFO_DATE_FORMAT)}`", inline=True)

        if member is not None:
            roles = [r for r in reversed(member.roles) if not r.is_default()]
            joined = member.joined_at.strftime(INFO_DATE_FORMAT) if member.joined_at else "N/A"
            highest = "None" if member.top_role.is_default() else member.top_role.name
            embed.add_field(name="🗓️ Joined Server", value=f"`{joined}`", inline=True)
            embed.add_field(name="✨ Nickname", value=f"`{member.nick or user.display_name}`", inline=True)
            embed.add_field(name="👑 Highest Role", value=f"`{highest}`", inline=True)
            embed.add_field(
                name="🛡️ Roles",
                value=truncate(", ".join(r.mention for r in roles) or "No custom roles."),
                inline=False,
            )
            embed.add_field(name="🟢 Status", value=f"`{member.status}`", inline=True)
            embed.add_field(name="🎮 Activity", value=truncate(_activity_text(member)), inline=True)
        else:
            absent = "Not in this server."
            embed.add_field(name="🗓️ Joined Server", value=f"`{absent}`", inline=True)
            embed.add_field(name="✨ Nickname", value=f"`{user.display_name}`", inline=True)
            embed.add_field(name="👑 Highest Role", value=f"`{absent}`", inline=True)
            embed.add_field(name="🛡️ Roles", value=absent, inline=False)
            embed.add_field(name="🟢 Status", value="`Not available (User not in this server).`", inline=True)
            embed.add_field(name="🎮 Activity", value="Not available (User not in this server).", inline=True)

        embed.set_footer(text=f"Requested by {interaction.user}")
        await interaction.edit_original_response(embed=embed)


class BotInfo(commands.GroupCog, group_name="bot", group_description="Provides information and statistics about the bot."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="ping", description="Shows the bot's latency.")
    async def ping(self, interaction: discord.Interaction):
        round_trip = (discord.utils.utcnow() - interaction.created_at).total_seconds() * 1000
        await interaction.response.send_message(
            f"Pong! Latency is {round_trip:.0f}ms. API Latency is {self.bot.latency * 1000:.0f}ms."
        )

    @app_commands.command(name="stats", description="Displays various statistics about the bot.")
    async def stats(self, interaction: discord.Interaction):
        embed = discord.Embed(title="Bot Statistics", colour=DEFAULT_COLOUR, timestamp=discord.utils.utcnow())
        embed.add_field(name="Servers", value=str(len(self.bot.guilds)), inline=True)
        embed.add_field(name="Users", value=str(len(self.bot.users)), inline=True)
        embed.add_field(name="Channels", value=str(sum(1 for _ in self.bot.get_all_channels())), inline=True)
        embed.add_field(name="Commands Loaded", value=str(len(self.bot.tree.get_commands())), inline=True)
        embed.add_field(name="Python Version", value=platform.python_version(), inline=True)
        embed.add_field(name="discord.py Version", value=discord.__version__, inline=True)
        embed.add_field(name="Memory Usage", value=peak_memory(), inline=True)
        embed.add_field(name="Platform", value=f"{platform.system().lower()} {platform.machine()}", inline=True)
        embed.add_field(name="CPU Cores", value=str(os.cpu_count() or "?"), inline=True)
        embed.set_footer(text=f"Requested by {interaction.user}", icon_url=interaction.user.display_avatar.url)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="uptime", description="Shows how long the bot has been online.")
    async def uptime(self, interaction: discord.Interaction):
        await interaction.response.send_message(f"I have been online for: `{format_uptime(self.bot.uptime)}`")


@app_commands.guild_only()
class UserInfo(commands.GroupCog, group_name="user", group_description="Provides user-related information."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _fetch(self, interaction: discord.Interaction, user: Optional[discord.User]) -> Optional[discord.User]:
        # fetch_user is the only way to get the banner
        try:
            return await self.bot.fetch_user((user or interaction.user).id)
        except discord.HTTPException as exc:
            _log.error("Failed to fetch user %s: %s", (user or interaction.user).id, exc)
            await interaction.edit_original_response(
                content=(
                    "Could not fetch data for that user. "
                    "They might no longer exist or I might lack necessary permissions."
                )
            )
            return None

    @staticmethod
    def _image_embed(title: str, url: str, requester: discord.abc.User) -> discord.Embed:
        embed = discord.Embed(title=title, url=url, colour=DEFAULT_COLOUR, timestamp=discord.utils.utcnow())
        embed.set_image(url=url)
        embed.set_footer(text=f"Requested by {requester}")
        return embed

    @app_commands.command(name="avatar", description="Displays the avatar of a user.")
    @app_commands.describe(user="The user whose avatar you want to see (defaults to yourself).")
    async def avatar(self, interaction: discord.Interaction, user: Optional[discord.User] = None):
        await interaction.response.defer(thinking=True)
        fetched = await self._fetch(interaction, user)
        if fetched is None:
            return

        url = fetched.display_avatar.with_size(1024).url
        await interaction.edit_original_response(
            embed=self._image_embed(f"{fetched.name}'s Avatar", url, interaction.user)
        )

    @app_commands.command(name="banner", description="Displays the banner of a user.")
    @app_commands.describe(user="The user whose banner you want to see (defaults to yourself).")
    async def banner(self, interaction: discord.Interaction, user: Optional[discord.User] = None):
        await interaction.response.defer(thinking=True)
        fetched = await self._fetch(interaction, user)
        if fetched is None:
            return

        if fetched.banner is None:
            await interaction.edit_original_response(content=f"{fetched.name} does not have a custom banner set.")
            return
        url = fetched.banner.with_size(1024).url
        await interaction.edit_original_response(
            embed=self._image_embed(f"{fetched.name}'s Banner", url, interaction.user)
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(Utility(bot))
    await bot.add_cog(BotInfo(bot))
    await bot.add_cog(UserInfo(bot))
