import asyncio
import logging
import signal
import sys

from .bot import KeeperBot
from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s | %(message)s"

_log = logging.getLogger("keeper")


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    # gateway heartbeats stay out of DEBUG output
    logging.getLogger("discord.gateway").setLevel(logging.INFO)


async def _run(settings: Settings) -> None:
    bot = KeeperBot(settings)
    _log.info("Data directory: %s", settings.data_dir.resolve())

    await bot.start_web_server()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(bot.close()))

    async with bot:
        await bot.start(settings.discord_token)


def main() -> None:  # noqa: D401
    """Console entry point (``keeper``)."""

    settings = get_settings()
    _configure_logging(settings)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        sys.exit(0)
