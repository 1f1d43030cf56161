from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

import discord
from discord import app_commands
from discord.ext import commands

from keeper.integrations.lookups import LookupFailed
from keeper.utils.formatting import is_valid_emoji_name

_log = logging.getLogger(__name__)

CUSTOM_EMOJI_RE = re.compile(r"<(a)?:(\w+):(\d+)>")
EMOJI_CDN_URL = "https://cdn.discordapp.com/emojis/{id}.{ext}"

LIST_CHUNK = 10
LIST_MAX_EMBEDS = 5
FIELD_LIMIT = 1024

NOT_FOUND = "❌ Custom emoji not found in this server. Please provide its exact name or ID."
NOT_FOUND_VERBOSE = (
    "❌ Custom emoji not found in this server. Please provide its exact name, ID, or the full custom "
    "emoji string (e.g., `:myemoji:` or `<:myemoji:123456789>`)."
)
BAD_NAME = (
    "❌ {what} must be between 2 and 32 alphanumeric characters or underscores, "
    "and cannot contain spaces or special characters."
)

# Discord JSON error codes
INVALID_FORM_BODY = 50035
MAX_EMOJIS = 30008


def find_emoji(emojis: Iterable[discord.Emoji], query: str) -> Optional[discord.Emoji]:
    """Resolve ``<:name:id>``, a bare id, or a (colon-wrapped) name, case-insensitively."""

    emojis = list(emojis)
    match = CUSTOM_EMOJI_RE.search(query)
    if match:
        found = discord.utils.get(emojis, id=int(match.group(3)))
        if found:
            return found
    if query.isdigit():
        found = discord.utils.get(emojis, id=int(query))
        if found:
            return found
    name = query.replace(":", "").lower()
    return next((e for e in emojis if e.name.lower() == name), None)


def chunk_lines(lines: list[str], *, size: int = LIST_CHUNK, limit: int = FIELD_LIMIT) -> list[list[str]]:
    """Group lines into chunks of at most *size* lines and *limit* characters."""

    chunks: list[list[str]] = []
    current: list[str] = []
    length = 0
    for line in lines:
        if current and (length + len(line) + 1 > limit or len(current) >= size):
            chunks.append(current)
            current, length = [], 0
        current.append(line)
        length += len(line) + 1
    if current:
        chunks.append(current)
    return chunks


@app_commands.guild_only()
class Emoji(commands.GroupCog, group_name="emoji", group_description="Manage custom emojis in this server."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _check_manage(interaction: discord.Interaction) -> bool:
        if not interaction.guild.me.guild_permissions.manage_emojis:
            message = '❌ I need the **"Manage Emojis"** permission to perform this action.'
        elif not interaction.user.guild_permissions.manage_emojis:
            message = '❌ You need the **"Manage Emojis"** permission to use this.'
        else:
            return True
        await interaction.response.send_message(message, ephemeral=True)
        return False

    @staticmethod
    def _requested_by(embed: discord.Embed, user: discord.abc.User) -> discord.Embed:
        embed.timestamp = discord.utils.utcnow()
        embed.set_footer(text=f"Requested by {user}", icon_url=user.display_avatar.url)
        return embed

    # ------------------------------------------------------------------
    # Manage
    # ------------------------------------------------------------------

    @app_commands.command(name="add", description="Adds a new custom emoji to the server.")
    @app_commands.describe(
        image_file="Upload an image file (PNG, JPG, GIF) for the emoji.",
        emoji_source="A URL to an image or an existing custom emoji (e.g., <:name:id>).",
        name="The name for the new emoji (defaults to filename or inferred).",
    )
    async def add(
        self,
        interaction: discord.Interaction,
        image_file: Optional[discord.Attachment] = None,
        emoji_source: Optional[str] = None,
        name: Optional[str] = None,
    ):
        if not await self._check_manage(interaction):
            return
        await interaction.response.defer(ephemeral=True, thinking=True)

        try:
            if image_file is not None:
                name = name or image_file.filename.split(".")[0]
                if not is_valid_emoji_name(name):
                    await interaction.edit_original_response(content=BAD_NAME.format(what="Emoji name"))
                    return
                image = await image_file.read()
            elif emoji_source:
                match = CUSTOM_EMOJI_RE.search(emoji_source)
                if match:
                    animated, original_name, emoji_id = match.groups()
                    url = EMOJI_CDN_URL.format(id=emoji_id, ext="gif" if animated else "png")
                    name = name or original_name
                elif emoji_source.startswith(("http://", "https://")):
                    url = emoji_source
                else:
                    await interaction.edit_original_response(
                        content="❌ Invalid emoji source. Please provide a valid image file, URL, or custom emoji string."
                    )
                    return
                if not is_valid_emoji_name(name):
                    await interaction.edit_original_response(content=BAD_NAME.format(what="Emoji name"))
                    return
                image = await self.bot.lookups.fetch_bytes(url)
            else:
                await interaction.edit_original_response(
                    content=(
                        "❌ You must provide either an `image_file` or an `emoji_source` "
                        "(URL/custom emoji) to add an emoji."
                    )
                )
                return
        except (LookupFailed, discord.HTTPException) as exc:
            _log.error("Failed to download emoji image: %s", exc)
            await interaction.edit_original_response(content="❌ Failed to add emoji: could not download the image.")
            return

        try:
            emoji = await interaction.guild.create_custom_emoji(
                name=name, image=image, reason=f"Added by {interaction.user} via /emoji add"
            )
        except discord.HTTPException as exc:
            _log.error("Failed to create emoji %s in guild %s: %s", name, interaction.guild_id, exc)
            if exc.code == INVALID_FORM_BODY:
                content = "❌ Failed to add emoji: Invalid image format or size. Please try a different image."
            elif exc.code == MAX_EMOJIS:
                content = "❌ Failed to add emoji: This server has reached the maximum number of emojis."
            else:
                content = f"❌ Failed to add emoji: {exc.text or 'An unknown error occurred.'}"
            await interaction.edit_original_response(content=content)
            return

        await interaction.edit_original_response(content=f"✅ Successfully added emoji: {emoji} (`{emoji.name}`)")

    @app_commands.command(name="delete", description="Deletes a custom emoji from the server.")
    @app_commands.describe(emoji="The custom emoji (e.g., :thonk: or its ID) to delete.")
    async def delete(self, interaction: discord.Interaction, emoji: str):
        if not await self._check_manage(interaction):
            return
        await interaction.response.defer(ephemeral=True, thinking=True)

        target = find_emoji(interaction.guild.emojis, emoji)
        if target is None:
            await interaction.edit_original_response(content=NOT_FOUND)
            return

        try:
            await target.delete(reason=f"Deleted by {interaction.user} via /emoji delete")
        except discord.HTTPException as exc:
            _log.error("Failed to delete emoji %s: %s", target.id, exc)
            await interaction.edit_original_response(
                content=f"❌ Failed to delete emoji: {exc.text or 'An unknown error occurred.'}"
            )
            return
        await interaction.edit_original_response(content=f"✅ Successfully deleted emoji: `{target.name}`")

    @app_commands.command(name="rename", description="Renames an existing custom emoji.")
    @app_commands.describe(
        emoji="The custom emoji (e.g., :oldname: or its ID) to rename.",
        new_name="The new name for the emoji.",
    )
    async def rename(self, interaction: discord.Interaction, emoji: str, new_name: str):
        if not await self._check_manage(interaction):
            return
        await interaction.response.defer(ephemeral=True, thinking=True)

        target = find_emoji(interaction.guild.emojis, emoji)
        if target is None:
            await interaction.edit_original_response(content=NOT_FOUND)
            return
        if not is_valid_emoji_name(new_name):
            await interaction.edit_original_response(content=BAD_NAME.format(what="New emoji name"))
            return

        old_name = target.name
        try:
            updated = await target.edit(name=new_name, reason=f"Renamed by {interaction.user} via /emoji rename")
        except discord.HTTPException as exc:
            _log.error("Failed to rename emoji %s: %s", target.id, exc)
            await interaction.edit_original_response(
                content=f"❌ Failed to rename emoji: {exc.text or 'An unknown error occurred.'}"
            )
            return
        await interaction.edit_original_response(
            content=f"✅ Successfully renamed emoji `{old_name}` to {updated} (`{updated.name}`)"
        )

    # ------------------------------------------------------------------
    # Inspect
    # ------------------------------------------------------------------

    @app_commands.command(name="list", description="Lists all custom emojis in this server.")
    async def list_emojis(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)

        emojis = sorted(interaction.guild.emojis, key=lambda e: e.name.lower())
        if not emojis:
            await interaction.edit_original_response(content="This server has no custom emojis.")
            return

        lines = [f"{e} `:{e.name}:` (ID: `{e.id}`)" for e in emojis]
        embeds = []
        for index, chunk in enumerate(chunk_lines(lines), start=1):
            embed = discord.Embed(
                title=f"Custom Emojis in {interaction.guild.name}",
                description="\n".join(chunk),
                colour=discord.Colour(0x3498DB),
            )
            embed.set_footer(text=f"Page {index}")
            embeds.append(embed)

        if len(embeds) <= LIST_MAX_EMBEDS:
            await interaction.edit_original_response(embeds=embeds)
            return

        await interaction.edit_original_response(
            content=(
                f"This server has {len(emojis)} custom emojis. "
                f"Showing the first {LIST_MAX_EMBEDS * LIST_CHUNK}:\n"
            ),
            embeds=embeds[:LIST_MAX_EMBEDS],
        )
        await interaction.followup.send(
            "There are too many emojis to list in one go. You can also view them in your server settings.",
            ephemeral=True,
        )

    @app_commands.command(name="image", description="Gets the full image of a custom emoji.")
    @app_commands.describe(emoji="The custom emoji (e.g., :emoji_name:, its ID, or the raw emoji) to get the image for.")
    async def image(self, interaction: discord.Interaction, emoji: str):
        await interaction.response.defer(thinking=True)

        target = find_emoji(interaction.guild.emojis, emoji)
        if target is None:
            await interaction.edit_original_response(content=NOT_FOUND_VERBOSE)
            return

        embed = discord.Embed(
            title=f"Image for :{target.name}:",
            description=(
                f"**Name:** `{target.name}`\n**ID:** `{target.id}`\n"
                f"**Animated:** `{'Yes' if target.animated else 'No'}`"
            ),
            colour=discord.Colour(0x7289DA),
        )
        embed.set_image(url=target.url)
        await interaction.edit_original_response(embed=self._requested_by(embed, interaction.user))

    @app_commands.command(name="info", description="Gets detailed information about a custom emoji.")
    @app_commands.describe(emoji="The custom emoji (e.g., :emoji_name:, its ID, or the raw emoji) to get info for.")
    async def info(self, interaction: discord.Interaction, emoji: str):
        await interaction.response.defer(thinking=True)

        target = find_emoji(interaction.guild.emojis, emoji)
        if target is None:
            await interaction.edit_original_response(content=NOT_FOUND_VERBOSE)
            return

        created = target.created_at.strftime("%B %d, %Y, %I:%M:%S %p UTC")
        mention = f"<{'a' if target.animated else ''}:{target.name}:{target.id}>"

        embed = discord.Embed(title=f"Emoji Info: :{target.name}:", colour=discord.Colour(0xADD8E6))
        embed.set_thumbnail(url=target.url)
        embed.add_field(name="🏷️ Name", value=f"`{target.name}`", inline=True)
        embed.add_field(name="🆔 ID", value=f"`{target.id}`", inline=True)
        embed.add_field(name="🔗 Mention", value=f"`{mention}`", inline=True)
        embed.add_field(name="🔄 Animated", value=f"`{'Yes' if target.animated else 'No'}`", inline=True)
        embed.add_field(
            name="🏠 Guild", value=f"`{interaction.guild.name}` (ID: `{interaction.guild.id}`)", inline=True
        )
        embed.add_field(name="⏰ Created At", value=f"`{created}`", inline=True)
        embed.add_field(name="🌐 Image URL", value=f"[Click Here]({target.url})", inline=False)
        await interaction.edit_original_response(embed=self._requested_by(embed, interaction.user))


async def setup(bot: commands.Bot):
    await bot.add_cog(Emoji(bot))
