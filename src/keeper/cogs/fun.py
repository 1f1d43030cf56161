from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

import discord
from discord import app_commands
from discord.ext import commands

from keeper.integrations.lookups import LookupFailed, LookupNotFound, title_words

_log = logging.getLogger(__name__)

COLOUR_SWATCH_URL = "https://singlecolorimage.com/get/{hex}/128x128"
BULBAPEDIA_URL = "https://bulbapedia.bulbagarden.net/wiki/{name}_(Pok%C3%A9mon)"
UNEXPECTED = "An unexpected error occurred while processing your request."


def _or_unspecified(value: Optional[str]) -> str:
    return value or "Not specified"


def github_embed(data: dict[str, Any]) -> discord.Embed:
    created: Optional[datetime] = None
    if data.get("created_at"):
        created = datetime.fromisoformat(data["created_at"].replace("Z", "+00:00"))

    embed = discord.Embed(
        title=f"{data['login']}'s GitHub Profile",
        url=data.get("html_url"),
        description=data.get("bio") or None,
        colour=discord.Colour(0x2B3137),
        timestamp=created,
    )
    embed.set_thumbnail(url=data.get("avatar_url"))
    embed.add_field(name="Name", value=_or_unspecified(data.get("name")), inline=True)
    embed.add_field(name="Company", value=_or_unspecified(data.get("company")), inline=True)
    embed.add_field(name="Location", value=_or_unspecified(data.get("location")), inline=True)
    embed.add_field(name="Followers", value=f"{data.get('followers', 0):,}", inline=True)
    embed.add_field(name="Following", value=f"{data.get('following', 0):,}", inline=True)
    embed.add_field(name="Public Repos", value=f"{data.get('public_repos', 0):,}", inline=True)
    embed.add_field(name="Public Gists", value=f"{data.get('public_gists', 0):,}", inline=True)
    if data.get("email"):
        embed.add_field(name="Email", value=data["email"], inline=True)
    if data.get("blog"):
        blog = data["blog"]
        link = blog if blog.startswith("http") else f"https://{blog}"
        embed.add_field(name="Website/Blog", value=f"[{blog}]({link})", inline=True)
    embed.set_footer(text=f"ID: {data.get('id')} | Account created:")
    return embed


def pokemon_embed(data: dict[str, Any]) -> discord.Embed:
    name = title_words(data["name"])
    types = ", ".join(title_words(t["type"]["name"]) for t in data.get("types", []))
    abilities = ", ".join(
        title_words(a["ability"]["name"]) + (" (Hidden)" if a.get("is_hidden") else "")
        for a in data.get("abilities", [])
    )
    stats = "\n".join(f"**{title_words(s['stat']['name'])}:** {s['base_stat']}" for s in data.get("stats", []))

    sprites = data.get("sprites") or {}
    artwork = ((sprites.get("other") or {}).get("official-artwork") or {}).get("front_default")

    embed = discord.Embed(
        title=f"{name} (#{data['id']})",
        url=BULBAPEDIA_URL.format(name=quote(name.replace(" ", "_"))),
        colour=discord.Colour(0xFF0000),
        timestamp=discord.utils.utcnow(),
    )
    embed.set_thumbnail(url=artwork or sprites.get("front_default"))
    embed.add_field(name="Type(s)", value=types or "Unknown", inline=True)
    embed.add_field(name="Abilities", value=abilities or "Unknown", inline=True)
    embed.add_field(name="Height", value=f"{data.get('height', 0) / 10:.1f} m", inline=True)
    embed.add_field(name="Weight", value=f"{data.get('weight', 0) / 10:.1f} kg", inline=True)
    embed.add_field(name="Base Stats", value=stats or "Unknown", inline=False)
    embed.set_footer(text="Data from PokéAPI.co")
    return embed


class Animal(commands.GroupCog, group_name="animal", group_description="Provides images of animals."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _send_image(self, interaction: discord.Interaction, fetch) -> None:
        await interaction.response.defer(thinking=True)
        try:
            url = await fetch()
        except LookupFailed:
            await interaction.edit_original_response(content="There was an error trying to get an animal image!")
            return
        if not url:
            await interaction.edit_original_response(
                content="Could not fetch an animal image at this time. Please try again later!"
            )
            return
        embed = discord.Embed(colour=discord.Colour.blurple())
        embed.set_image(url=url)
        await interaction.edit_original_response(embed=embed)

    @app_commands.command(name="cat", description="Gets a random cat image.")
    async def cat(self, interaction: discord.Interaction):
        await self._send_image(interaction, self.bot.lookups.random_cat)

    @app_commands.command(name="dog", description="Gets a random dog image.")
    async def dog(self, interaction: discord.Interaction):
        await self._send_image(interaction, self.bot.lookups.random_dog)


class Random(commands.GroupCog, group_name="random", group_description="Generates random things!"):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="color", description="Generates and displays a random hexadecimal color.")
    async def color(self, interaction: discord.Interaction):
        value = random.randint(0, 0xFFFFFF)
        hex_value = f"{value:06x}"

        embed = discord.Embed(
            title="🎨 Your Random Color!",
            description=f"Here's your random color:\n`#{hex_value}`",
            colour=discord.Colour(value),
            timestamp=discord.utils.utcnow(),
        )
        embed.set_thumbnail(url=COLOUR_SWATCH_URL.format(hex=hex_value))
        embed.set_footer(text=f"Generated for {interaction.user}", icon_url=interaction.user.display_avatar.url)
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="meme", description="Fetches a random meme from Reddit.")
    async def meme(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        try:
            data = await self.bot.lookups.random_meme()
        except LookupFailed:
            await interaction.edit_original_response(content="❌ Failed to fetch a random meme. Please try again later.")
            return

        embed = discord.Embed(
            title=data.get("title"),
            url=data.get("postLink"),
            colour=discord.Colour(0x00FF00),
            timestamp=discord.utils.utcnow(),
        )
        embed.set_image(url=data["url"])
        embed.add_field(name="Subreddit", value=f"r/{data.get('subreddit')}", inline=True)
        embed.add_field(name="Author", value=data.get("author") or "N/A", inline=True)
        embed.set_footer(text=f"From {data.get('subreddit')}")
        await interaction.edit_original_response(embed=embed)


class Search(commands.GroupCog, group_name="search", group_description="Searches for information on various platforms."):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="github", description="Get information about a GitHub user.")
    @app_commands.describe(username="The GitHub username to search for.")
    async def github(self, interaction: discord.Interaction, username: str):
        await interaction.response.defer(thinking=True)
        try:
            data = await self.bot.lookups.github_user(username)
            embed = github_embed(data)
        except LookupNotFound:
            await interaction.edit_original_response(
                content=f"❌ GitHub user `{username}` not found. Please check the username."
            )
            return
        except LookupFailed:
            await interaction.edit_original_response(
                content="An error occurred while fetching data from GitHub. Please try again later."
            )
            return
        except (KeyError, TypeError, ValueError):
            _log.exception("Unexpected GitHub payload for %s", username)
            await interaction.edit_original_response(content=UNEXPECTED)
            return
        await interaction.edit_original_response(embed=embed)

    @app_commands.command(name="pokemon", description="Get information about a Pokémon.")
    @app_commands.describe(pokemon="The name or ID of the Pokémon.")
    async def pokemon(self, interaction: discord.Interaction, pokemon: str):
        await interaction.response.defer(thinking=True)
        name = pokemon.lower()
        try:
            data = await self.bot.lookups.pokemon(name)
            embed = pokemon_embed(data)
        except LookupNotFound:
            await interaction.edit_original_response(
                content=f"❌ Pokémon `{name}` not found. Please check the spelling."
            )
            return
        except LookupFailed:
            await interaction.edit_original_response(
                content="An error occurred while fetching Pokémon data. Please try again later."
            )
            return
        except (KeyError, TypeError, ValueError):
            _log.exception("Unexpected PokeAPI payload for %s", name)
            await interaction.edit_original_response(content=UNEXPECTED)
            return
        await interaction.edit_original_response(embed=embed)


async def setup(bot: commands.Bot):
    await bot.add_cog(Animal(bot))
    await bot.add_cog(Random(bot))
    await bot.add_cog(Search(bot))
