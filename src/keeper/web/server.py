from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

if TYPE_CHECKING:  # pragma: no cover
    from keeper.bot import KeeperBot


def get_app(bot: KeeperBot) -> FastAPI:  # noqa: D401
    """Return a FastAPI app instance bound to the provided bot."""

    app = FastAPI(title="Keeper Status API", version="0.1.0")

    # Routers read the bot from the application state so they can be
    # imported without creating import cycles.
    app.state.bot = bot

    from .routes import register_routes

    register_routes(app)

    return app
