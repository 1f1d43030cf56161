import asyncio
import importlib
import logging
import pkgutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import discord
import uvicorn
from discord import Intents, app_commands
from discord.ext import commands

from .config import Settings, get_settings
from .integrations.lookups import Lookups
from .utils.stores import Stores
from .utils.views import release_message
from .web.server import get_app

_log = logging.getLogger(__name__)

GENERIC_FAILURE = "There was an error while executing this command!"
DM_REJECTION = "❌ Cannot use this command in Direct Messages. Please use it in a server."
BLACKLISTED = "🚫 This server is blacklisted and cannot use my commands."


async def report_failure(interaction: discord.Interaction, message: str = GENERIC_FAILURE) -> None:
    """Tell the invoking user that their command failed, however far it got."""

    try:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
    except discord.HTTPException:
        _log.exception("Could not report failure for interaction %s", interaction.id)


class KeeperTree(app_commands.CommandTree):
    """Command tree that refuses DMs and blacklisted guilds, with a catch-all error boundary."""

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.guild_id is None:
            await interaction.response.send_message(DM_REJECTION, ephemeral=True)
            return False
        bot = self.client
        if interaction.user.id == bot.owner_id:
            return True
        if bot.stores.blacklist.contains(interaction.guild_id):
            await interaction.response.send_message(BLACKLISTED, ephemeral=True)
            return False
        return True

    async def on_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        if isinstance(error, app_commands.CommandNotFound):
            _log.warning("No command matching %r was found", error.name)
            return
        if isinstance(error, app_commands.NoPrivateMessage):
            await report_failure(interaction, DM_REJECTION)
            return
        if isinstance(error, app_commands.CheckFailure):
            # cog-level checks answer the user themselves
            if not interaction.response.is_done():
                await report_failure(interaction, str(error) or GENERIC_FAILURE)
            return

        command = interaction.command.qualified_name if interaction.command else "?"
        original = getattr(error, "original", error)
        _log.error("Command /%s failed", command, exc_info=original)
        await report_failure(interaction)


class KeeperBot(commands.Bot):
    """A subclass of `commands.Bot` that auto-discovers and loads cogs."""

    def __init__(self, settings: Optional[Settings] = None, *args, **kwargs):
        self.settings = settings or get_settings()
        intents = Intents.all()
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            owner_id=self.settings.owner_id,
            tree_cls=KeeperTree,
            *args,
            **kwargs,
        )

        self.stores = Stores(self.settings.data_dir)
        self.lookups = Lookups(timeout=self.settings.http_timeout)
        self.started_at = datetime.now(timezone.utc)

        # Placeholder for the uvicorn server instance.
        self._uvicorn: Optional[uvicorn.Server] = None

    @property
    def uptime(self) -> timedelta:
        return datetime.now(timezone.utc) - self.started_at

    async def setup_hook(self) -> None:  # noqa: D401
        """Called by discord.py to set up the bot before it connects."""

        await self._load_cogs()

        try:
            synced = await self.tree.sync()
            _log.info("Synced %d application command(s).", len(synced))
        except discord.HTTPException:  # pragma: no cover
            _log.exception("Failed to sync application commands")

    async def _load_cogs(self) -> None:
        """Auto-discover and load all cogs in the `keeper.cogs` package."""

        _log.info("Loading cogs ...")
        for module_info in pkgutil.walk_packages(path=[str(Path(__file__).parent / "cogs")], prefix="keeper.cogs."):
            if module_info.ispkg:
                continue
            try:
                module = importlib.import_module(module_info.name)
            except Exception as exc:  # pragma: no cover
                _log.exception("Failed to import cog %s: %s", module_info.name, exc)
                continue

            # The cog module should expose a `setup` coroutine following discord.py conventions
            if hasattr(module, "setup"):
                try:
                    await module.setup(self)
                    _log.debug("Loaded cog: %s", module_info.name)
                except Exception as exc:  # pragma: no cover
                    _log.exception("Failed to setup cog %s: %s", module_info.name, exc)

    async def on_ready(self) -> None:
        _log.info("Logged in as %s (%s) in %d guild(s)", self.user, getattr(self.user, "id", "?"), len(self.guilds))

    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent) -> None:
        release_message(payload.message_id)

    async def start_web_server(self) -> None:
        """Start the FastAPI status server in a background task."""

        settings = self.settings
        if not settings.web_enabled:
            _log.info("Web server disabled")
            return

        _log.info("Status endpoint available at http://%s:%d/status", settings.host, settings.port)
        config = uvicorn.Config(get_app(self), host=settings.host, port=settings.port, log_level="info")
        self._uvicorn = uvicorn.Server(config=config)

        loop = asyncio.get_event_loop()
        loop.create_task(self._uvicorn.serve())

    async def close(self) -> None:  # noqa: D401
        """Shut down the bot and the web server cleanly."""

        if self._uvicorn and self._uvicorn.started:
            await self._uvicorn.shutdown()
        await super().close()
